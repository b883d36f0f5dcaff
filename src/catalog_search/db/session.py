"""
Database Session Management

Async SQLAlchemy engine and session factory for the PostgreSQL database
that holds both the catalog schema (read-only here) and the embedding
tables owned by this service.
"""

from __future__ import annotations

from typing import AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncSession,
    async_sessionmaker,
)

from ..config import settings


# Create async engine
async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=10,
    connect_args={"command_timeout": settings.database_command_timeout},
)

# Session factory
AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Request-scoped session for the search and admin endpoints.

    Commits on success; rolls back and re-raises on any error.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def create_owned_tables() -> None:
    """
    Create the pgvector extension and the tables owned by this service.

    Catalog tables are never created here; they belong to the CRUD schema.
    """
    from .models import Base
    from .catalog import OWNED_TABLES

    async with async_engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(
            Base.metadata.create_all,
            tables=[Base.metadata.tables[name] for name in OWNED_TABLES],
        )
