"""
Batch Indexer

Full (re)build of the embedding indexes by walking the entire catalog:

    product -> variants -> configurations      (product-hierarchy index)
    accessories                                (accessory index)

Each entity is synthesized, embedded and upserted as one unit. The run is
sequential, one embedding call at a time, with a fixed pause between calls
to stay under the provider's rate limits. A failure on one entity is
logged, rolled back and counted; the run always continues, except on
``ConfigurationError`` which aborts it.
"""

from __future__ import annotations

import asyncio
import logging

from ..catalog.models import Product
from ..catalog.reader import CatalogReader
from ..core.errors import ConfigurationError, StorageError
from .content import (
    synthesize_accessory,
    synthesize_configuration,
    synthesize_product,
    synthesize_variant,
)
from .embedder import Embedder
from .models import IndexKey, IndexingSummary

logger = logging.getLogger("catalog.indexer")


class BatchIndexer:
    """
    Sequential synthesizer -> embedder -> store pipeline over the catalog.

    ``store`` is any object exposing the async ``upsert`` / ``commit`` /
    ``rollback`` methods of ``VectorStore``.
    """

    def __init__(
        self,
        reader: CatalogReader,
        embedder: Embedder,
        store,
        pacing_delay: float = 0.1,
    ) -> None:
        self.reader = reader
        self.embedder = embedder
        self.store = store
        self.pacing_delay = pacing_delay
        self._embed_calls = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        include_products: bool = True,
        include_accessories: bool = True,
    ) -> IndexingSummary:
        """
        Index the whole catalog and return the run summary.

        Raises
        ------
        ConfigurationError
            Propagated immediately; nothing can proceed without credentials.
        """
        summary = IndexingSummary()
        self._embed_calls = 0

        if include_products:
            await self.index_products(summary)
        if include_accessories:
            await self.index_accessories(summary)

        logger.info(
            "Indexing finished: %d embeddings written, %d entities processed, %d errors",
            summary.embeddings_written,
            summary.entities_processed,
            summary.errors,
        )
        return summary

    async def index_products(self, summary: IndexingSummary) -> None:
        try:
            products = await self.reader.load_products()
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Could not load products, skipping product index: %s", exc)
            summary.errors += 1
            return

        logger.info("Found %d products", len(products))

        for product in products:
            await self.index_product(product, summary)
            summary.products_processed += 1

    async def index_product(self, product: Product, summary: IndexingSummary) -> None:
        """Index one product, each of its variants and their configurations."""
        logger.info("Processing product: %s (%s)", product.name, product.code)

        await self._index_entity(
            IndexKey.for_product(product.id),
            lambda: synthesize_product(product),
            f"product {product.name!r}",
            summary,
        )

        for variant in product.variants:
            await self._index_entity(
                IndexKey.for_variant(product.id, variant.id),
                lambda: synthesize_variant(product, variant),
                f"variant {variant.name!r} of {product.name!r}",
                summary,
            )

            for config in variant.configurations:
                await self._index_entity(
                    IndexKey.for_configuration(product.id, variant.id, config.id),
                    lambda: synthesize_configuration(product, variant, config),
                    f"configuration {config.sku or config.id} "
                    f"({config.watt}W - {config.lumens}lm) of {product.name!r}",
                    summary,
                )

    async def index_accessories(self, summary: IndexingSummary) -> None:
        try:
            accessories = await self.reader.load_accessories()
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Could not load accessories, skipping accessory index: %s", exc)
            summary.errors += 1
            return

        logger.info("Found %d accessories", len(accessories))

        for accessory in accessories:
            await self._index_entity(
                IndexKey.for_accessory(accessory.id),
                lambda: synthesize_accessory(accessory),
                f"accessory {accessory.name!r} ({accessory.code})",
                summary,
            )
            summary.accessories_processed += 1

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _pace(self) -> None:
        if self._embed_calls and self.pacing_delay > 0:
            await asyncio.sleep(self.pacing_delay)
        self._embed_calls += 1

    async def _index_entity(
        self,
        key: IndexKey,
        synthesize,
        label: str,
        summary: IndexingSummary,
    ) -> bool:
        """
        Synthesize, embed and upsert one entity.

        Returns True when the row was written.
        """
        summary.entities_processed += 1

        try:
            content = synthesize()
            await self._pace()
            embedding = await self.embedder.embed(content)
            await self.store.upsert(key, content, embedding, self.embedder.model_version)
            await self.store.commit()
        except ConfigurationError:
            raise
        except Exception as exc:
            logger.error("Failed to index %s [%s]: %s", label, key.entity_key, exc)
            summary.errors += 1
            await self._rollback_quietly(key)
            return False

        summary.embeddings_written += 1
        logger.info("Indexed %s [%s]", label, key.entity_key)
        return True

    async def _rollback_quietly(self, key: IndexKey) -> None:
        try:
            await self.store.rollback()
        except StorageError:
            logger.exception("Rollback failed after error on %s", key.entity_key)
