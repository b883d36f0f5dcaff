"""
API Models for the Catalog Search Service

This module defines the Pydantic models used for request/response
validation across the search, feedback and embedding-admin endpoints.
"""

from __future__ import annotations

from typing import List, Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict

from ..embeddings.models import IndexLevel, IndexScope, SearchMatch


# ---------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------

class OperationResult(BaseModel):
    """
    Standardized operation result.
    """
    status: Literal["queued", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Search Models
# ---------------------------------------------------------------------

class SearchRequest(BaseModel):
    """
    Semantic search request.
    """
    query: str = Field(..., min_length=1, max_length=500)
    # None falls back to SEARCH_DEFAULT_LIMIT
    limit: Optional[int] = Field(default=None, ge=1, le=50)
    scope: IndexScope = IndexScope.PRODUCTS

    model_config = ConfigDict(extra="forbid")


class SearchResult(BaseModel):
    """
    Individual search match.
    """
    level: IndexLevel
    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    configuration_id: Optional[int] = None
    accessory_id: Optional[int] = None
    similarity: float
    content: str

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_match(cls, match: SearchMatch) -> "SearchResult":
        return cls(
            level=match.level,
            product_id=match.key.product_id,
            variant_id=match.key.variant_id,
            configuration_id=match.key.configuration_id,
            accessory_id=match.key.accessory_id,
            similarity=match.similarity,
            content=match.content,
        )


class SearchResults(BaseModel):
    matches: List[SearchResult] = Field(default_factory=list)
    total: int = Field(..., ge=0)

    model_config = ConfigDict(extra="forbid")


class SearchResponse(BaseModel):
    """
    Search response payload. ``search_log_id`` is used to send feedback.
    """
    success: bool = True
    search_log_id: Optional[int] = None
    results: SearchResults

    model_config = ConfigDict(extra="forbid")


class SearchFeedbackRequest(BaseModel):
    """
    User feedback on a logged search.
    """
    search_log_id: int = Field(..., ge=1)
    feedback: Literal["helpful", "not_helpful"]
    clicked_product_id: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class SearchFeedbackResponse(BaseModel):
    success: bool = True
    message: str

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Embedding Models
# ---------------------------------------------------------------------

class IndexStats(BaseModel):
    total_vectors: int = Field(..., ge=0)
    by_level: Dict[str, int] = Field(default_factory=dict)
    by_model_version: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class EmbeddingStatsResponse(BaseModel):
    """
    Statistics for both embedding indexes.
    """
    model_version: str
    products: IndexStats
    accessories: IndexStats

    model_config = ConfigDict(extra="forbid")


class RebuildRequest(BaseModel):
    """
    Request a full re-index in the background.
    """
    include_products: bool = True
    include_accessories: bool = True

    model_config = ConfigDict(extra="forbid")
