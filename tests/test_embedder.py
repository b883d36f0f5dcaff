import json

import httpx
import pytest
from pydantic import SecretStr

from catalog_search.config import Settings
from catalog_search.core.errors import ConfigurationError, ServiceError
from catalog_search.embeddings.embedder import Embedder, EmbeddingConfig


DIMENSIONS = 4


def _config(**overrides) -> EmbeddingConfig:
    data = {
        "api_key": "sk-test",
        "model": "text-embedding-3-small",
        "base_url": "https://embeddings.test/v1/embeddings",
        "dimensions": DIMENSIONS,
    }
    data.update(overrides)
    return EmbeddingConfig(**data)


def _embedder(handler, **overrides) -> Embedder:
    return Embedder(_config(**overrides), transport=httpx.MockTransport(handler))


def _ok(vector):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": [{"embedding": vector}]})
    return handler


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------

def test_from_settings_requires_api_key():
    with pytest.raises(ConfigurationError):
        EmbeddingConfig.from_settings(Settings(openai_api_key=None, _env_file=None))


def test_from_settings_rejects_blank_key():
    with pytest.raises(ConfigurationError):
        EmbeddingConfig.from_settings(
            Settings(openai_api_key=SecretStr("   "), _env_file=None)
        )


def test_from_settings_copies_values():
    config = EmbeddingConfig.from_settings(
        Settings(
            openai_api_key=SecretStr("sk-live"),
            embedding_model="custom-model",
            embedding_max_input_chars=500,
            _env_file=None,
        )
    )
    assert config.api_key == "sk-live"
    assert config.model == "custom-model"
    assert config.max_input_chars == 500


# ---------------------------------------------------------------------
# Successful requests
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_embed_returns_vector_and_sends_request():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"embedding": [0.1, 0.2, 0.3, 1]}]})

    embedder = _embedder(handler)
    vector = await embedder.embed("Producto: Buro")

    assert vector == [0.1, 0.2, 0.3, 1.0]
    assert all(isinstance(x, float) for x in vector)
    assert seen["auth"] == "Bearer sk-test"
    assert seen["body"] == {"model": "text-embedding-3-small", "input": "Producto: Buro"}


@pytest.mark.asyncio
async def test_input_truncated_to_cap():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["input"] = json.loads(request.content)["input"]
        return httpx.Response(200, json={"data": [{"embedding": [0.0] * DIMENSIONS}]})

    embedder = _embedder(handler)
    await embedder.embed("a" * 9000)

    assert len(seen["input"]) == 8000


def test_prepare_input_leaves_short_text_untouched():
    embedder = Embedder(_config(max_input_chars=10))
    assert embedder.prepare_input("corto") == "corto"
    assert embedder.prepare_input("x" * 25) == "x" * 10


def test_model_version_is_model_name():
    assert Embedder(_config(model="m-2")).model_version == "m-2"


# ---------------------------------------------------------------------
# Failures
# ---------------------------------------------------------------------

@pytest.mark.asyncio
async def test_rate_limited_response_carries_status_and_message():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            429,
            json={"error": {"message": "Rate limit reached", "type": "requests"}},
        )

    with pytest.raises(ServiceError) as exc_info:
        await _embedder(handler).embed("texto")

    assert exc_info.value.status_code == 429
    assert exc_info.value.message == "Rate limit reached"
    assert str(exc_info.value) == "[429] Rate limit reached"


@pytest.mark.asyncio
async def test_error_without_body_uses_reason_phrase():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream down")

    with pytest.raises(ServiceError) as exc_info:
        await _embedder(handler).embed("texto")

    assert exc_info.value.status_code == 503
    assert exc_info.value.message == "Service Unavailable"


@pytest.mark.asyncio
async def test_transport_failure_has_no_status():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ServiceError) as exc_info:
        await _embedder(handler).embed("texto")

    assert exc_info.value.status_code is None
    assert "ConnectTimeout" in str(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"data": []},
        {"data": [{"index": 0}]},
        {"data": [{"embedding": []}]},
        {"data": [{"embedding": ["a", "b", "c", "d"]}]},
        {"data": [{"embedding": [True, False, True, False]}]},
    ],
)
async def test_malformed_body_rejected(body):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=body)

    with pytest.raises(ServiceError):
        await _embedder(handler).embed("texto")


@pytest.mark.asyncio
async def test_non_json_body_rejected():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>oops</html>")

    with pytest.raises(ServiceError):
        await _embedder(handler).embed("texto")


@pytest.mark.asyncio
async def test_dimension_mismatch_rejected():
    with pytest.raises(ServiceError, match="3 dimensions, expected 4"):
        await _embedder(_ok([0.1, 0.2, 0.3])).embed("texto")


@pytest.mark.asyncio
async def test_dimension_check_disabled_when_unset():
    embedder = _embedder(_ok([0.1, 0.2]), dimensions=None)
    assert await embedder.embed("texto") == [0.1, 0.2]
