"""
Embedding Client

This module implements the embedding client that converts synthesized
catalog documents (and search queries) into vectors using the OpenAI
embeddings API (or any compatible provider). It is responsible for:

- Capping input length before submission
- Network and transport error isolation
- Strict response validation
- Exposing the model identifier used to stamp stored vectors

The client is stateless and safe to reuse across requests. It performs no
retries; retry policy belongs to the caller.
"""

from __future__ import annotations

from typing import List, Optional
import logging
import httpx
from pydantic import BaseModel, ConfigDict, Field

from ..config import Settings
from ..core.errors import ConfigurationError, ServiceError

logger = logging.getLogger("catalog.embedder")


class EmbeddingConfig(BaseModel):
    """
    Explicit embedding client configuration.

    Built once at startup (see ``from_settings``) and passed into the
    ``Embedder`` constructor.
    """

    api_key: str = Field(..., min_length=1)
    model: str = "text-embedding-3-small"
    base_url: str = "https://api.openai.com/v1/embeddings"
    timeout: float = Field(default=30.0, gt=0)
    max_input_chars: int = Field(default=8000, gt=0)
    dimensions: Optional[int] = Field(default=1536, gt=0)

    model_config = ConfigDict(extra="forbid", frozen=True)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmbeddingConfig":
        """
        Validate settings and build a config.

        Raises
        ------
        ConfigurationError
            If no API key is configured.
        """
        api_key = (
            settings.openai_api_key.get_secret_value()
            if settings.openai_api_key is not None
            else ""
        )
        if not api_key.strip():
            raise ConfigurationError(
                "OPENAI_API_KEY is not configured; embeddings cannot be generated."
            )

        return cls(
            api_key=api_key,
            model=settings.embedding_model,
            base_url=settings.embedding_base_url,
            timeout=settings.embedding_timeout,
            max_input_chars=settings.embedding_max_input_chars,
            dimensions=settings.embedding_dimensions,
        )


class Embedder:
    """
    Asynchronous text-to-vector client.

    One outbound HTTP call per ``embed`` invocation.
    """

    def __init__(
        self,
        config: EmbeddingConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize an Embedder.

        Parameters
        ----------
        config : EmbeddingConfig
            Validated client configuration.

        transport : Optional[httpx.AsyncBaseTransport]
            Optional transport override, mainly for tests.
        """
        self.config = config
        self._transport = transport

    @property
    def model_version(self) -> str:
        """Identifier stamped on every vector this client produces."""
        return self.config.model

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def prepare_input(self, text: str) -> str:
        """Truncate text to the configured character cap."""
        return text[: self.config.max_input_chars]

    async def embed(self, text: str) -> List[float]:
        """
        Generate the embedding for a single text.

        Parameters
        ----------
        text : str
            Input text. Anything past ``max_input_chars`` is dropped.

        Returns
        -------
        List[float]
            The embedding vector.

        Raises
        ------
        ServiceError
            If the request fails or the response is malformed.
        """
        payload = {
            "model": self.config.model,
            "input": self.prepare_input(text),
        }
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        async with httpx.AsyncClient(
            timeout=self.config.timeout,
            transport=self._transport,
        ) as client:
            try:
                response = await client.post(
                    self.config.base_url,
                    json=payload,
                    headers=headers,
                )
            except httpx.HTTPError as exc:
                logger.error(
                    "Embedding request failed (%s): input chars=%d, error=%s",
                    type(exc).__name__,
                    len(payload["input"]),
                    str(exc),
                )
                raise ServiceError(
                    f"Embedding request failed: {type(exc).__name__}"
                ) from exc

        if response.is_error:
            message = self._error_message(response)
            logger.error(
                "Embedding provider returned %d: %s",
                response.status_code,
                message,
            )
            raise ServiceError(message, status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise ServiceError(
                "Embedding response is not valid JSON.",
                status_code=response.status_code,
            ) from exc

        return self._extract_embedding(data)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """
        Pull the provider's error message out of a failed response.

        OpenAI returns:
            { "error": { "message": "...", "type": "..." } }
        """
        try:
            body = response.json()
        except ValueError:
            body = None

        if isinstance(body, dict):
            error = body.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])

        return response.reason_phrase or f"HTTP {response.status_code}"

    def _extract_embedding(self, data: dict) -> List[float]:
        """
        Parse and validate the first embedding of the response.

        OpenAI returns:
            { "data": [ {"embedding": [...]}, ... ] }
        """
        if not isinstance(data, dict) or "data" not in data:
            raise ServiceError("Embedding response missing 'data' field.")

        records = data["data"]
        if not isinstance(records, list) or not records:
            raise ServiceError("Embedding response contains no embeddings.")

        record = records[0]
        if not isinstance(record, dict) or "embedding" not in record:
            raise ServiceError(f"Malformed embedding record: {record!r}")

        emb = record["embedding"]
        if not isinstance(emb, list) or not emb or not all(
            isinstance(x, (float, int)) and not isinstance(x, bool) for x in emb
        ):
            raise ServiceError("Invalid embedding vector: must be a float list.")

        expected = self.config.dimensions
        if expected is not None and len(emb) != expected:
            raise ServiceError(
                f"Embedding has {len(emb)} dimensions, expected {expected} "
                f"for model {self.config.model}."
            )

        return [float(x) for x in emb]
