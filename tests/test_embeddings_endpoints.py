import asyncio

import pytest
from unittest.mock import AsyncMock, patch
from fastapi.testclient import TestClient
from pydantic import SecretStr
import contextlib

from catalog_search.main import create_app
from catalog_search.api.dependencies import get_vector_store, get_embedder
from catalog_search.embeddings.memory_store import MemoryVectorStore
from catalog_search.embeddings.models import IndexKey

TEST_ADMIN_KEY = "test-admin-key"
ADMIN_HEADERS = {"x-admin-key": TEST_ADMIN_KEY}


@pytest.fixture
def memory_store():
    store = MemoryVectorStore()

    async def seed():
        await store.upsert(IndexKey.for_product(1), "p", [1.0, 0.0], "test-model")
        await store.upsert(IndexKey.for_variant(1, 2), "v", [0.0, 1.0], "test-model")
        await store.upsert(IndexKey.for_product(3), "old", [1.0, 1.0], "older-model")
        await store.upsert(IndexKey.for_accessory(7), "a", [1.0, 0.0], "test-model")

    asyncio.run(seed())
    return store


@pytest.fixture
def client(memory_store, keyword_embedder):
    app = create_app()
    app.dependency_overrides[get_vector_store] = lambda: memory_store
    app.dependency_overrides[get_embedder] = lambda: keyword_embedder

    # Mock lifespan to avoid DB connection
    @contextlib.asynccontextmanager
    async def mock_lifespan(app):
        yield

    app.router.lifespan_context = mock_lifespan

    with TestClient(app) as c:
        yield c


@pytest.fixture
def mock_settings():
    with patch("catalog_search.api.security.settings") as mock:
        mock.admin_api_key = SecretStr(TEST_ADMIN_KEY)
        yield mock


def test_get_stats(client, mock_settings):
    resp = client.get("/embeddings/stats", headers=ADMIN_HEADERS)

    assert resp.status_code == 200
    data = resp.json()
    assert data["model_version"] == "test-model"
    assert data["products"] == {
        "total_vectors": 3,
        "by_level": {"product": 2, "variant": 1, "configuration": 0},
        "by_model_version": {"test-model": 2, "older-model": 1},
    }
    assert data["accessories"]["total_vectors"] == 1


def test_admin_key_accepted_as_query_param(client, mock_settings):
    resp = client.get(f"/embeddings/stats?key={TEST_ADMIN_KEY}")
    assert resp.status_code == 200


def test_wrong_admin_key_forbidden(client, mock_settings):
    resp = client.get("/embeddings/stats", headers={"x-admin-key": "nope"})
    assert resp.status_code == 403


def test_missing_admin_key_forbidden(client, mock_settings):
    assert client.get("/embeddings/stats").status_code == 403


def test_admin_disabled_when_unconfigured(client):
    with patch("catalog_search.api.security.settings") as mock:
        mock.admin_api_key = None
        resp = client.get("/embeddings/stats", headers=ADMIN_HEADERS)

    assert resp.status_code == 403
    assert "not configured" in resp.json()["detail"]


def test_rebuild_queues_background_job(client, mock_settings, keyword_embedder):
    with patch(
        "catalog_search.api.embedding_routes.run_catalog_index_task",
        new_callable=AsyncMock,
    ) as mock_task:
        resp = client.post(
            "/embeddings/rebuild",
            json={"include_products": False},
            headers=ADMIN_HEADERS,
        )

    assert resp.status_code == 202
    assert resp.json() == {
        "status": "queued",
        "count": None,
        "details": {"include_products": False, "include_accessories": True},
    }
    mock_task.assert_called_once()
    args, kwargs = mock_task.call_args
    assert args == (keyword_embedder,)
    assert kwargs["include_products"] is False
    assert kwargs["include_accessories"] is True


def test_rebuild_without_body_indexes_everything(client, mock_settings):
    with patch(
        "catalog_search.api.embedding_routes.run_catalog_index_task",
        new_callable=AsyncMock,
    ) as mock_task:
        resp = client.post("/embeddings/rebuild", headers=ADMIN_HEADERS)

    assert resp.status_code == 202
    kwargs = mock_task.call_args.kwargs
    assert kwargs["include_products"] is True
    assert kwargs["include_accessories"] is True


def test_rebuild_refused_while_running(client, mock_settings):
    with patch(
        "catalog_search.api.embedding_routes.rebuild_in_progress",
        return_value=True,
    ), patch(
        "catalog_search.api.embedding_routes.run_catalog_index_task",
        new_callable=AsyncMock,
    ) as mock_task:
        resp = client.post("/embeddings/rebuild", headers=ADMIN_HEADERS)

    assert resp.status_code == 409
    mock_task.assert_not_called()


def test_rebuild_requires_admin(client, mock_settings):
    resp = client.post("/embeddings/rebuild")
    assert resp.status_code == 403
