"""
Embedding Data Models

This module defines the canonical identity of an indexed catalog entity and
the shapes returned by the store and the batch indexer.

Each indexed row corresponds to ONE embedding vector and ONE synthesized
document for exactly one node of the catalog hierarchy.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, Field, ConfigDict, model_validator


class IndexLevel(str, Enum):
    """Hierarchy node type of an indexed row."""

    PRODUCT = "product"
    VARIANT = "variant"
    CONFIGURATION = "configuration"
    ACCESSORY = "accessory"


class IndexScope(str, Enum):
    """Which index a query targets. The two are never searched together."""

    PRODUCTS = "products"
    ACCESSORIES = "accessories"

    def levels(self) -> Tuple[IndexLevel, ...]:
        if self is IndexScope.ACCESSORIES:
            return (IndexLevel.ACCESSORY,)
        return (IndexLevel.PRODUCT, IndexLevel.VARIANT, IndexLevel.CONFIGURATION)


class IndexKey(BaseModel):
    """
    Identifying key tuple of an indexed row.

    The set of populated identifiers determines the level:

    - product_id                                   -> product
    - product_id + variant_id                      -> variant
    - product_id + variant_id + configuration_id   -> configuration
    - accessory_id                                 -> accessory

    Any other combination is rejected.
    """

    product_id: Optional[int] = None
    variant_id: Optional[int] = None
    configuration_id: Optional[int] = None
    accessory_id: Optional[int] = None

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
    )

    @model_validator(mode="after")
    def _check_combination(self) -> "IndexKey":
        self._resolve_level()
        return self

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def for_product(cls, product_id: int) -> "IndexKey":
        return cls(product_id=product_id)

    @classmethod
    def for_variant(cls, product_id: int, variant_id: int) -> "IndexKey":
        return cls(product_id=product_id, variant_id=variant_id)

    @classmethod
    def for_configuration(
        cls,
        product_id: int,
        variant_id: int,
        configuration_id: int,
    ) -> "IndexKey":
        return cls(
            product_id=product_id,
            variant_id=variant_id,
            configuration_id=configuration_id,
        )

    @classmethod
    def for_accessory(cls, accessory_id: int) -> "IndexKey":
        return cls(accessory_id=accessory_id)

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    def _resolve_level(self) -> IndexLevel:
        present = (
            self.product_id is not None,
            self.variant_id is not None,
            self.configuration_id is not None,
            self.accessory_id is not None,
        )
        levels = {
            (True, False, False, False): IndexLevel.PRODUCT,
            (True, True, False, False): IndexLevel.VARIANT,
            (True, True, True, False): IndexLevel.CONFIGURATION,
            (False, False, False, True): IndexLevel.ACCESSORY,
        }
        if present not in levels:
            raise ValueError(
                "Invalid key combination: expected product, product+variant, "
                "product+variant+configuration, or accessory identifiers."
            )
        return levels[present]

    @property
    def level(self) -> IndexLevel:
        return self._resolve_level()

    @property
    def scope(self) -> IndexScope:
        if self.level is IndexLevel.ACCESSORY:
            return IndexScope.ACCESSORIES
        return IndexScope.PRODUCTS

    @property
    def entity_key(self) -> str:
        """
        Deterministic, non-null rendering of the full key tuple.

        Used as the unique storage key so upserts never depend on NULL
        comparison semantics.
        """
        level = self.level
        if level is IndexLevel.ACCESSORY:
            return f"accessory:{self.accessory_id}"
        if level is IndexLevel.PRODUCT:
            return f"product:{self.product_id}"
        if level is IndexLevel.VARIANT:
            return f"variant:{self.product_id}:{self.variant_id}"
        return f"configuration:{self.product_id}:{self.variant_id}:{self.configuration_id}"


class SearchMatch(BaseModel):
    """A single nearest-neighbour match."""

    key: IndexKey
    similarity: float
    content: str

    model_config = ConfigDict(extra="forbid", frozen=True)

    @property
    def level(self) -> IndexLevel:
        return self.key.level


class IndexingSummary(BaseModel):
    """Counters reported at the end of a batch indexing run."""

    products_processed: int = Field(default=0, ge=0)
    accessories_processed: int = Field(default=0, ge=0)
    entities_processed: int = Field(default=0, ge=0)
    embeddings_written: int = Field(default=0, ge=0)
    errors: int = Field(default=0, ge=0)
