from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db import get_async_session, VectorStore, SearchRateLimiter, SearchLogStore
from ..embeddings.embedder import Embedder, EmbeddingConfig
from ..search.service import SearchService


@lru_cache
def get_embedding_config() -> EmbeddingConfig:
    # Raises ConfigurationError when OPENAI_API_KEY is missing; failures are
    # not cached, so a later call re-validates.
    return EmbeddingConfig.from_settings(settings)


@lru_cache
def get_embedder() -> Embedder:
    return Embedder(get_embedding_config())


def get_vector_store(
    session: AsyncSession = Depends(get_async_session),
) -> VectorStore:
    return VectorStore(session)


def get_search_service(
    embedder: Embedder = Depends(get_embedder),
    store: VectorStore = Depends(get_vector_store),
) -> SearchService:
    return SearchService(
        embedder=embedder,
        store=store,
        similarity_threshold=settings.similarity_threshold,
        default_limit=settings.search_default_limit,
    )


def get_rate_limiter(
    session: AsyncSession = Depends(get_async_session),
) -> SearchRateLimiter:
    return SearchRateLimiter(session)


def get_search_log_store(
    session: AsyncSession = Depends(get_async_session),
) -> SearchLogStore:
    return SearchLogStore(session)
