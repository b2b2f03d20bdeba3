# summify_search/domain/services/tiering.py
# Pure domain services: no I/O, deterministic, no external libraries.
"""
Subscription tiers and the policy deciding which search method a request may use.

A tier's ``methods`` are ordered cheapest first. Without an explicit request the
cheapest permitted method is used; the feature table is exposed for UI gating and
is not interpreted here beyond method and enrichment depth.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType


class SearchMethod(str, Enum):
    LEXICAL = "lexical"
    VECTOR = "vector"
    VECTOR_ENRICHED = "vector_enriched"

    @property
    def cost(self) -> int:
        return _METHOD_COST[self]

    @property
    def uses_vector(self) -> bool:
        return self is not SearchMethod.LEXICAL

    @property
    def uses_llm_enrichment(self) -> bool:
        return self is SearchMethod.VECTOR_ENRICHED


_METHOD_COST = {
    SearchMethod.LEXICAL: 0,
    SearchMethod.VECTOR: 1,
    SearchMethod.VECTOR_ENRICHED: 2,
}


class AnalysisDepth(str, Enum):
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"


@dataclass(frozen=True)
class TierDefinition:
    """Static plan configuration, loaded once at startup."""

    name: str
    display_name: str
    monthly_limit: int | None  # None = unbounded
    methods: tuple[SearchMethod, ...]
    analysis_depth: AnalysisDepth = AnalysisDepth.BASIC
    max_chapters: int = 25
    features: Mapping[str, bool] = field(default_factory=dict)
    description: str = ""
    upgrade_message: str | None = None
    next_plan: str | None = None

    def __post_init__(self) -> None:
        if not self.methods:
            raise ValueError(f"tier '{self.name}' must allow at least one search method")
        ordered = tuple(sorted(self.methods, key=lambda m: m.cost))
        object.__setattr__(self, "methods", ordered)
        object.__setattr__(self, "features", MappingProxyType(dict(self.features)))

    @property
    def unlimited(self) -> bool:
        return self.monthly_limit is None

    def allows(self, method: SearchMethod) -> bool:
        return method in self.methods

    def has_feature(self, feature: str) -> bool:
        return bool(self.features.get(feature, False))


@dataclass(frozen=True)
class MethodDecision:
    tier: TierDefinition
    method: SearchMethod | None
    queries_remaining: int  # before this request; -1 means unbounded
    upgrade_required: bool = False
    upgrade_message: str | None = None


def _features(**enabled: bool) -> dict[str, bool]:
    base = {
        "summary_search": True,
        "basic_ai": True,
        "chapter_search": False,
        "fulltext_search": False,
        "advanced_analysis": False,
        "premium_ai": False,
        "export_results": False,
        "full_text_access": False,
        "api_access": False,
        "team_collaboration": False,
        "custom_models": False,
    }
    base.update(enabled)
    return base


DEFAULT_TIERS: Mapping[str, TierDefinition] = MappingProxyType(
    {
        "free": TierDefinition(
            name="free",
            display_name="Free",
            monthly_limit=10,
            methods=(SearchMethod.LEXICAL,),
            analysis_depth=AnalysisDepth.BASIC,
            max_chapters=5,
            features=_features(),
            description="Perfect for casual readers and students getting started",
            upgrade_message="Upgrade to Scholar for deeper chapter search and more queries!",
            next_plan="scholar",
        ),
        "scholar": TierDefinition(
            name="scholar",
            display_name="Scholar",
            monthly_limit=500,
            methods=(SearchMethod.LEXICAL, SearchMethod.VECTOR),
            analysis_depth=AnalysisDepth.ADVANCED,
            max_chapters=15,
            features=_features(chapter_search=True, advanced_analysis=True, export_results=True),
            description="Ideal for researchers and serious learners",
            upgrade_message="Upgrade to Professional for word-by-word precision search!",
            next_plan="professional",
        ),
        "professional": TierDefinition(
            name="professional",
            display_name="Professional",
            monthly_limit=2000,
            methods=(
                SearchMethod.LEXICAL,
                SearchMethod.VECTOR,
                SearchMethod.VECTOR_ENRICHED,
            ),
            analysis_depth=AnalysisDepth.PREMIUM,
            max_chapters=25,
            features=_features(
                chapter_search=True,
                fulltext_search=True,
                advanced_analysis=True,
                premium_ai=True,
                export_results=True,
                full_text_access=True,
                api_access=True,
            ),
            description="Built for professionals and content creators",
            upgrade_message="Upgrade to Institution for unlimited searches!",
            next_plan="institution",
        ),
        "institution": TierDefinition(
            name="institution",
            display_name="Institution",
            monthly_limit=None,
            methods=(
                SearchMethod.LEXICAL,
                SearchMethod.VECTOR,
                SearchMethod.VECTOR_ENRICHED,
            ),
            analysis_depth=AnalysisDepth.PREMIUM,
            max_chapters=25,
            features=_features(
                chapter_search=True,
                fulltext_search=True,
                advanced_analysis=True,
                premium_ai=True,
                export_results=True,
                full_text_access=True,
                api_access=True,
                team_collaboration=True,
                custom_models=True,
            ),
            description="Enterprise-grade search for institutions and large teams",
        ),
    }
)

DEFAULT_PLAN = "free"


def get_tier(
    plan: str | None, tiers: Mapping[str, TierDefinition] = DEFAULT_TIERS
) -> TierDefinition:
    """Look a plan up by name (case-insensitive); unknown plans get the free tier."""
    key = (plan or DEFAULT_PLAN).strip().lower()
    return tiers.get(key) or tiers[DEFAULT_PLAN]


def select_method(tier: TierDefinition, requested: SearchMethod | None = None) -> SearchMethod:
    """
    Cheapest permitted method unless one is requested.

    A request beyond the tier's entitlement is lowered to the most capable method
    the tier allows that costs no more than the request.
    """
    if requested is None:
        return tier.methods[0]
    if tier.allows(requested):
        return requested
    affordable = [m for m in tier.methods if m.cost <= requested.cost]
    return affordable[-1] if affordable else tier.methods[0]


def upgrade_message(tier: TierDefinition) -> str:
    extra = tier.upgrade_message or "Upgrade for more searches!"
    return f"You've reached your {tier.monthly_limit} monthly search limit. {extra}"


def resolve_method(
    tier: TierDefinition, usage_count: int, requested: SearchMethod | None = None
) -> MethodDecision:
    """Check the allowance first, then pick the method; no method when exhausted."""
    usage = max(usage_count, 0)
    if tier.monthly_limit is not None and usage >= tier.monthly_limit:
        return MethodDecision(
            tier=tier,
            method=None,
            queries_remaining=0,
            upgrade_required=True,
            upgrade_message=upgrade_message(tier),
        )
    remaining = -1 if tier.monthly_limit is None else tier.monthly_limit - usage
    return MethodDecision(
        tier=tier,
        method=select_method(tier, requested),
        queries_remaining=remaining,
    )
