"""
Database Package

Provides SQLAlchemy async session management and model definitions
for PostgreSQL with pgvector.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, create_owned_tables
from .models import Base, ProductEmbedding, AccessoryEmbedding, SearchLog
from .vector_store import VectorStore
from .rate_limiter import SearchRateLimiter, RateLimitStatus
from .search_logs import SearchLogStore

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "create_owned_tables",
    "Base",
    "ProductEmbedding",
    "AccessoryEmbedding",
    "SearchLog",
    "VectorStore",
    "SearchRateLimiter",
    "RateLimitStatus",
    "SearchLogStore",
]
