"""
Offline catalog indexing entry point.

Usage:
    catalog-search-index [--pacing-delay 0.1] [--products-only | --accessories-only]
                         [--dry-run]

Exits 1 on configuration errors (missing credentials); 0 otherwise, even
when individual entities failed to index.
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .config import settings
from .core.errors import ConfigurationError
from .embeddings.embedder import Embedder, EmbeddingConfig
from .embeddings.models import IndexingSummary

logger = logging.getLogger("catalog.cli")

RULE = "-" * 48


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalog-search-index",
        description="Generate embeddings for every product, variant, "
                    "configuration and accessory in the catalog.",
    )
    scope = parser.add_mutually_exclusive_group()
    scope.add_argument(
        "--products-only",
        action="store_true",
        help="Index only the product hierarchy.",
    )
    scope.add_argument(
        "--accessories-only",
        action="store_true",
        help="Index only accessories.",
    )
    parser.add_argument(
        "--pacing-delay",
        type=float,
        default=settings.indexing_pacing_delay,
        help="Seconds to wait between embedding calls (default: %(default)s).",
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="Create the pgvector extension and embedding tables first.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Read and embed the catalog but write nothing to the embedding tables.",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        help="Logging level (default: %(default)s).",
    )
    return parser


def print_summary(summary: IndexingSummary, dry_run: bool = False) -> None:
    print(RULE)
    print("Dry run complete (nothing stored)" if dry_run else "Indexing complete")
    print(f"   Embeddings written:     {summary.embeddings_written}")
    print(f"   Entities processed:     {summary.entities_processed}")
    print(f"   Products processed:     {summary.products_processed}")
    print(f"   Accessories processed:  {summary.accessories_processed}")
    print(f"   Errors:                 {summary.errors}")
    print(RULE)


async def run(args: argparse.Namespace) -> IndexingSummary:
    # Validate credentials before touching the database
    embedder = Embedder(EmbeddingConfig.from_settings(settings))

    from .db import async_engine, create_owned_tables
    from .embeddings.jobs import run_catalog_index

    try:
        if args.create_tables and not args.dry_run:
            print("Creating embedding tables...")
            await create_owned_tables()

        return await run_catalog_index(
            embedder,
            pacing_delay=args.pacing_delay,
            include_products=not args.accessories_only,
            include_accessories=not args.products_only,
            dry_run=args.dry_run,
        )
    finally:
        await async_engine.dispose()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stdout,
    )

    print("Generating catalog embeddings...")
    try:
        summary = asyncio.run(run(args))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    print_summary(summary, dry_run=args.dry_run)
    return 0


if __name__ == "__main__":
    sys.exit(main())
