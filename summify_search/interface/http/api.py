"""HTTP API for tier-gated chapter search.

Handlers hold no business logic and delegate to the search use case.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

try:
    from fastapi import FastAPI, Request
    from fastapi.responses import JSONResponse
    from pydantic import BaseModel, ConfigDict, Field
except ImportError as err:
    raise ImportError(
        "FastAPI not installed. Install with: pip install 'summify-search[http]'"
    ) from err

from summify_search.application.dto.search_dto import SearchRequest
from summify_search.domain.errors import InvalidQuery, UpgradeRequired
from summify_search.domain.services.tiering import DEFAULT_PLAN, DEFAULT_TIERS, SearchMethod
from summify_search.interface.presenters import (
    search_response_to_dict,
    tier_to_dict,
    upgrade_to_dict,
)


class SearchRequestModel(BaseModel):
    """Request body for POST /v1/search."""

    model_config = ConfigDict(populate_by_name=True)

    query: str
    plan: str = DEFAULT_PLAN
    usage_count: int = Field(default=0, ge=0, alias="usageCount")
    subscriber_id: str | None = Field(default=None, alias="subscriberId")
    method: SearchMethod | None = None


def create_app(use_case: Any | None = None) -> FastAPI:
    """Build the app; ``use_case`` is injected by tests, otherwise composed on startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if app.state.search is None:
            from summify_search.config.composition import build_search_use_case
            from summify_search.interface.logging_setup import setup_logging

            setup_logging()
            app.state.search = build_search_use_case()
        yield

    app = FastAPI(title="Summify Chapter Search API", version="1.0.0", lifespan=lifespan)
    app.state.search = use_case

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/v1/tiers")
    def tiers() -> dict[str, Any]:
        return {"tiers": [tier_to_dict(t) for t in DEFAULT_TIERS.values()]}

    @app.post("/v1/search")
    def search(req: SearchRequestModel, request: Request) -> JSONResponse:
        """Run one search.

        Example:
            POST /v1/search
            {"query": "leadership", "plan": "free", "usageCount": 0}
        """
        search_uc = request.app.state.search
        if search_uc is None:
            return JSONResponse(
                status_code=503, content={"status": "error", "error": "SearchFailed"}
            )

        dto = SearchRequest(
            query=req.query,
            plan=req.plan,
            usage_count=req.usage_count,
            subscriber_id=req.subscriber_id,
            method=req.method,
        )
        result = search_uc.execute(dto)

        if result.ok:
            return JSONResponse(
                content={"status": "success", "result": search_response_to_dict(result.value)}
            )
        err = result.error
        if isinstance(err, UpgradeRequired):
            return JSONResponse(
                content={"status": "upgrade_required", "upgrade": upgrade_to_dict(err)}
            )
        if isinstance(err, InvalidQuery):
            return JSONResponse(
                status_code=422,
                content={"status": "error", "error": err.code, "message": str(err)},
            )
        return JSONResponse(
            status_code=503,
            content={
                "status": "error",
                "error": "SearchFailed",
                "message": "Search is temporarily unavailable, please retry.",
            },
        )

    return app


app = create_app()
