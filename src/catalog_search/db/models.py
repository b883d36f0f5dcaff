"""
SQLAlchemy Models

Defines the database schema owned by the search service:
- Product-hierarchy embeddings (vector storage with pgvector)
- Accessory embeddings
- Search logs (rate limiting and relevance feedback)

The catalog tables themselves are owned by the CRUD subsystem and mapped
read-only in ``catalog.py``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, List

from sqlalchemy import (
    Column,
    String,
    Integer,
    Float,
    Text,
    DateTime,
    Index,
    CheckConstraint,
    func,
)
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from pgvector.sqlalchemy import Vector


# 1536 dimensions for text-embedding-3-small
EMBEDDING_DIMENSIONS = 1536


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Product Hierarchy Embeddings
# ---------------------------------------------------------------------

class ProductEmbedding(Base):
    """
    Vector embedding for one node of the product hierarchy
    (product, variant or configuration).

    ``entity_key`` renders the full key tuple and carries the unique
    constraint used for upserts.
    """
    __tablename__ = "product_embeddings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_key: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    level: Mapped[str] = mapped_column(String(16), nullable=False)
    product_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    variant_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    configuration_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    model_version: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "level IN ('product', 'variant', 'configuration')",
            name="ck_product_embeddings_level",
        ),
        Index("idx_product_embeddings_model", "model_version"),
    )


# ---------------------------------------------------------------------
# Accessory Embeddings
# ---------------------------------------------------------------------

class AccessoryEmbedding(Base):
    """
    Vector embedding for one accessory.
    """
    __tablename__ = "accessory_embeddings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    entity_key: Mapped[str] = mapped_column(String(96), nullable=False, unique=True)
    level: Mapped[str] = mapped_column(String(16), nullable=False, default="accessory")
    accessory_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    model_version: Mapped[str] = mapped_column(String(64), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    embedding = Column(Vector(EMBEDDING_DIMENSIONS), nullable=False)

    __table_args__ = (
        Index("idx_accessory_embeddings_model", "model_version"),
    )


# ---------------------------------------------------------------------
# Search Log Model
# ---------------------------------------------------------------------

class SearchLog(Base):
    """
    One executed search.

    Rows double as the rate-limit ledger (per IP, per time window) and
    collect optional user feedback on result relevance.
    """
    __tablename__ = "search_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    query: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[str] = mapped_column(String(16), nullable=False, default="products")
    results_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    results_ids: Mapped[List[int]] = mapped_column(
        ARRAY(Integer),
        nullable=False,
        default=list,
    )
    top_similarity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    execution_time_ms: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    user_ip: Mapped[str] = mapped_column(String(64), nullable=False)
    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="unknown")
    source: Mapped[str] = mapped_column(String(16), nullable=False, default="api")
    user_feedback: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    user_clicked_product_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    feedback_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        Index("idx_search_logs_ip_created", "user_ip", "created_at"),
    )
