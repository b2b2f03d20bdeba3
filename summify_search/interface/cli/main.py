"""Command-line entry point: search, list tiers, seed and index the catalogue."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Sequence

from summify_search.application.dto.search_dto import SearchRequest
from summify_search.config.composition import (
    build_raw_embedding,
    build_repository,
    build_search_use_case,
    build_vector_store,
)
from summify_search.config.settings import AppSettings
from summify_search.domain.errors import DomainError, UpgradeRequired
from summify_search.domain.services.tiering import DEFAULT_PLAN, DEFAULT_TIERS, SearchMethod
from summify_search.infrastructure.storage.sample_catalogue import seed_sample_catalogue
from summify_search.interface.logging_setup import setup_logging
from summify_search.interface.presenters import (
    search_response_to_dict,
    tier_to_dict,
    upgrade_to_dict,
)

logger = logging.getLogger(__name__)

INDEX_BATCH_SIZE = 64


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="summify-search")
    sub = parser.add_subparsers(dest="command", required=True)

    p_search = sub.add_parser("search", help="Search chapters by topic")
    p_search.add_argument("query")
    p_search.add_argument("--plan", default=DEFAULT_PLAN)
    p_search.add_argument("--usage", type=int, default=0, help="Queries already used this month")
    p_search.add_argument("--subscriber", default=None, help="Use the stored usage counter")
    p_search.add_argument(
        "--method", choices=[m.value for m in SearchMethod], default=None
    )
    p_search.add_argument("--json", action="store_true", help="Print the raw response")

    sub.add_parser("tiers", help="List subscription tiers")
    sub.add_parser("seed", help="Insert the sample catalogue into an empty database")
    p_index = sub.add_parser("index", help="Embed chapters and write them to the vector store")
    p_index.add_argument("--all", action="store_true", help="Re-embed chapters already indexed")
    return parser


def _print_search(payload: dict) -> None:
    print("\n" + "=" * 80)
    print(
        f"{payload['totalBooks']} books, {payload['totalChapters']} chapters "
        f"[{payload['searchType']}, {payload['processingTime']} ms]"
    )
    print("=" * 80)
    for i, book in enumerate(payload["books"], 1):
        print(f"[{i}] {book['title']} by {book['author']} (avg {book['averageRelevance']})")
        for ch in book["topChapters"]:
            print(f"    - {ch['title']} ({ch['relevanceScore']}%)")
            print(f"      {ch['whyRelevant']}")
    remaining = payload["queriesRemaining"]
    print(f"\nQueries remaining: {'unlimited' if remaining < 0 else remaining}")


def cmd_search(args: argparse.Namespace, settings: AppSettings) -> int:
    uc = build_search_use_case(settings)
    req = SearchRequest(
        query=args.query,
        plan=args.plan,
        usage_count=args.usage,
        subscriber_id=args.subscriber,
        method=SearchMethod(args.method) if args.method else None,
    )
    result = uc.execute(req)

    if result.ok and result.value is not None:
        payload = search_response_to_dict(result.value)
        if args.json:
            print(json.dumps(payload, indent=2, ensure_ascii=False))
        else:
            _print_search(payload)
        return 0

    err = result.error
    if isinstance(err, UpgradeRequired):
        if args.json:
            print(json.dumps(upgrade_to_dict(err), indent=2))
        else:
            print(f"\n[UPGRADE] {err.message}")
            if err.suggested_plan:
                print(f"  -> Suggested plan: {err.suggested_plan}")
        return 2
    code = err.code if isinstance(err, DomainError) else type(err).__name__
    print(f"\n[ERROR] {code}: {err}", file=sys.stderr)
    return 1


def cmd_tiers(args: argparse.Namespace, settings: AppSettings) -> int:
    print(json.dumps([tier_to_dict(t) for t in DEFAULT_TIERS.values()], indent=2))
    return 0


def cmd_seed(args: argparse.Namespace, settings: AppSettings) -> int:
    repo = build_repository(settings)
    try:
        inserted = seed_sample_catalogue(repo)
    finally:
        repo.close()
    if inserted:
        print(f"Seeded {inserted} chapters into {settings.db_path}")
    else:
        print(f"{settings.db_path} already has books; nothing seeded")
    return 0


def cmd_index(args: argparse.Namespace, settings: AppSettings) -> int:
    embedding = build_raw_embedding(settings)
    repo = build_repository(settings)
    store = build_vector_store(settings, repo)
    if embedding is None or store is None:
        print("[ERROR] indexing needs EMBEDDING_BACKEND and VECTOR_BACKEND", file=sys.stderr)
        return 1
    try:
        store.ensure_collection(settings.collection, embedding.dimension)
        # Qdrant tracks its own contents, so every chapter is pushed there.
        only_missing = not args.all and settings.vector_backend == "sqlite"
        chapters = repo.iter_chapters(only_missing_embeddings=only_missing)
        for start in range(0, len(chapters), INDEX_BATCH_SIZE):
            batch = chapters[start : start + INDEX_BATCH_SIZE]
            vectors = embedding.embed_texts([f"{c.chapter.title}\n{c.chapter.text}" for c in batch])
            store.upsert(
                [c.chapter.id for c in batch],
                vectors,
                [{"book_id": c.book.id, "title": c.chapter.title} for c in batch],
            )
            logger.info("indexed %d/%d chapters", start + len(batch), len(chapters))
    except DomainError as ex:
        print(f"[ERROR] {ex.code}: {ex}", file=sys.stderr)
        return 1
    finally:
        repo.close()
    print(f"Indexed {len(chapters)} chapters")
    return 0


COMMANDS = {
    "search": cmd_search,
    "tiers": cmd_tiers,
    "seed": cmd_seed,
    "index": cmd_index,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = AppSettings()
    setup_logging(settings)
    return COMMANDS[args.command](args, settings)


if __name__ == "__main__":
    sys.exit(main())
