"""
Full catalog indexing job, run from the CLI or as a background task.
"""
import asyncio
import logging
from typing import Optional

from ..db import VectorStore, AsyncSessionLocal
from ..catalog.reader import SqlCatalogReader
from .embedder import Embedder
from .indexer import BatchIndexer
from .memory_store import MemoryVectorStore
from .models import IndexingSummary

logger = logging.getLogger("catalog.jobs")

# Only one rebuild per process at a time; a second request is refused
# rather than queued.
_rebuild_lock = asyncio.Lock()


def rebuild_in_progress() -> bool:
    return _rebuild_lock.locked()


async def run_catalog_index(
    embedder: Embedder,
    pacing_delay: float = 0.1,
    include_products: bool = True,
    include_accessories: bool = True,
    dry_run: bool = False,
) -> IndexingSummary:
    """
    Rebuild the embedding indexes inside a dedicated DB session.

    With ``dry_run`` the catalog is still read and embedded, but rows go to
    a throwaway in-memory store instead of the embedding tables.
    """
    async with _rebuild_lock:
        async with AsyncSessionLocal() as session:
            indexer = BatchIndexer(
                reader=SqlCatalogReader(session),
                embedder=embedder,
                store=MemoryVectorStore() if dry_run else VectorStore(session),
                pacing_delay=pacing_delay,
            )
            return await indexer.run(
                include_products=include_products,
                include_accessories=include_accessories,
            )


async def run_catalog_index_task(
    embedder: Embedder,
    pacing_delay: float = 0.1,
    include_products: bool = True,
    include_accessories: bool = True,
) -> Optional[IndexingSummary]:
    """
    Background-task wrapper: errors are logged, never raised into the
    server loop.
    """
    logger.info("Background catalog rebuild started.")
    try:
        summary = await run_catalog_index(
            embedder,
            pacing_delay=pacing_delay,
            include_products=include_products,
            include_accessories=include_accessories,
        )
    except Exception:
        logger.exception("Background catalog rebuild failed")
        return None

    logger.info("Background catalog rebuild finished: %s", summary.model_dump())
    return summary
