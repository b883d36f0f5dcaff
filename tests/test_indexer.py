import pytest
from unittest.mock import AsyncMock, patch

from catalog_search.core.errors import ConfigurationError, ServiceError, StorageError
from catalog_search.embeddings.content import synthesize_accessory, synthesize_product
from catalog_search.embeddings.indexer import BatchIndexer
from catalog_search.embeddings.memory_store import MemoryVectorStore
from catalog_search.embeddings.models import IndexKey, IndexScope


class FailingReader:
    """Reader whose product load fails; accessories load normally."""

    def __init__(self, accessories):
        self._accessories = accessories

    async def load_products(self):
        raise StorageError("catalog unavailable")

    async def load_accessories(self):
        return list(self._accessories)


def _indexer(reader, embedder, store=None):
    return BatchIndexer(
        reader=reader,
        embedder=embedder,
        store=store if store is not None else MemoryVectorStore(),
        pacing_delay=0,
    )


@pytest.mark.asyncio
async def test_full_run_indexes_every_level(
    buro_product, driver_accessory, keyword_embedder, make_reader
):
    store = MemoryVectorStore()
    indexer = _indexer(
        make_reader([buro_product], [driver_accessory]),
        keyword_embedder,
        store,
    )

    summary = await indexer.run()

    assert summary.products_processed == 1
    assert summary.accessories_processed == 1
    assert summary.entities_processed == 5
    assert summary.embeddings_written == 5
    assert summary.errors == 0
    assert len(store) == 5

    stats = await store.get_stats()
    assert stats["products"]["by_level"] == {"product": 1, "variant": 1, "configuration": 2}
    assert stats["accessories"]["by_model_version"] == {"test-model": 1}


@pytest.mark.asyncio
async def test_rows_carry_synthesized_content(
    buro_product, driver_accessory, keyword_embedder, make_reader
):
    store = MemoryVectorStore()
    await _indexer(
        make_reader([buro_product], [driver_accessory]), keyword_embedder, store
    ).run()

    product_row = await store.get(IndexKey.for_product(1))
    accessory_row = await store.get(IndexKey.for_accessory(7))

    assert product_row.content == synthesize_product(buro_product)
    assert accessory_row.content == synthesize_accessory(driver_accessory)
    assert keyword_embedder.calls[0] == synthesize_product(buro_product)
    assert keyword_embedder.calls[-1] == synthesize_accessory(driver_accessory)


@pytest.mark.asyncio
async def test_single_failure_is_isolated(
    buro_product, driver_accessory, make_embedder, make_reader
):
    embedder = make_embedder(fail_on=(("SKU: BUR-D-30W", ServiceError("boom", 500)),))
    store = MemoryVectorStore()

    summary = await _indexer(
        make_reader([buro_product], [driver_accessory]), embedder, store
    ).run()

    assert summary.errors == 1
    assert summary.entities_processed == 5
    assert summary.embeddings_written == 4
    assert len(store) == 4
    assert await store.get(IndexKey.for_configuration(1, 10, 100)) is None
    assert await store.get(IndexKey.for_configuration(1, 10, 101)) is not None


@pytest.mark.asyncio
async def test_variant_failure_still_indexes_its_configurations(
    buro_product, driver_accessory, make_embedder, make_reader
):
    embedder = make_embedder(fail_on=(("Variante:", ServiceError("boom")),))
    store = MemoryVectorStore()

    summary = await _indexer(
        make_reader([buro_product], [driver_accessory]), embedder, store
    ).run()

    assert summary.errors == 1
    assert await store.get(IndexKey.for_variant(1, 10)) is None
    assert await store.get(IndexKey.for_configuration(1, 10, 100)) is not None
    assert await store.get(IndexKey.for_configuration(1, 10, 101)) is not None


@pytest.mark.asyncio
async def test_configuration_error_aborts_run(
    buro_product, driver_accessory, make_embedder, make_reader
):
    embedder = make_embedder(fail_on=(("Producto:", ConfigurationError("no key")),))

    with pytest.raises(ConfigurationError):
        await _indexer(
            make_reader([buro_product], [driver_accessory]), embedder
        ).run()

    assert len(embedder.calls) == 1


@pytest.mark.asyncio
async def test_product_load_failure_counted_and_accessories_indexed(
    driver_accessory, keyword_embedder
):
    store = MemoryVectorStore()

    summary = await _indexer(FailingReader([driver_accessory]), keyword_embedder, store).run()

    assert summary.errors == 1
    assert summary.products_processed == 0
    assert summary.embeddings_written == 1
    assert len(store) == 1


@pytest.mark.asyncio
async def test_failed_upsert_rolls_back(buro_product, keyword_embedder, make_reader):
    store = AsyncMock()
    store.upsert.side_effect = StorageError("write failed")
    store.rollback.side_effect = StorageError("rollback failed")

    summary = await _indexer(make_reader([buro_product]), keyword_embedder, store).run(
        include_accessories=False
    )

    assert summary.errors == 4
    assert summary.embeddings_written == 0
    assert store.rollback.await_count == 4
    store.commit.assert_not_awaited()


@pytest.mark.asyncio
async def test_scope_flags(buro_product, driver_accessory, keyword_embedder, make_reader):
    store = MemoryVectorStore()
    reader = make_reader([buro_product], [driver_accessory])

    summary = await _indexer(reader, keyword_embedder, store).run(include_products=False)

    assert summary.products_processed == 0
    assert summary.accessories_processed == 1
    stats = await store.get_stats()
    assert stats[IndexScope.PRODUCTS.value]["total_vectors"] == 0


@pytest.mark.asyncio
async def test_rerun_does_not_duplicate_rows(
    buro_product, driver_accessory, keyword_embedder, make_reader
):
    store = MemoryVectorStore()
    reader = make_reader([buro_product], [driver_accessory])

    await _indexer(reader, keyword_embedder, store).run()
    await _indexer(reader, keyword_embedder, store).run()

    assert len(store) == 5


@pytest.mark.asyncio
async def test_pacing_between_embedding_calls(
    buro_product, driver_accessory, keyword_embedder, make_reader
):
    indexer = BatchIndexer(
        reader=make_reader([buro_product], [driver_accessory]),
        embedder=keyword_embedder,
        store=MemoryVectorStore(),
        pacing_delay=0.25,
    )

    with patch(
        "catalog_search.embeddings.indexer.asyncio.sleep", new_callable=AsyncMock
    ) as mock_sleep:
        await indexer.run()

    # five embedding calls, a pause before every call but the first
    assert mock_sleep.await_count == 4
    mock_sleep.assert_awaited_with(0.25)
