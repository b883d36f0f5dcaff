"""
Catalog Reader

Loads the fully-joined, read-only view of the catalog that the batch
indexer walks: products with category, finishes, variants, variant light
tones and configurations; accessories with light tones and finishes.
"""

from __future__ import annotations

from typing import List, Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .models import Accessory, Product
from ..core.errors import StorageError
from ..db.catalog import AccessoryRow, ProductRow, VariantRow


class CatalogReader(Protocol):
    """Source of catalog snapshots for indexing."""

    async def load_products(self) -> List[Product]: ...

    async def load_accessories(self) -> List[Accessory]: ...


class SqlCatalogReader:
    """
    ``CatalogReader`` over the relational catalog schema.

    All relationships are eagerly loaded so the returned snapshots are
    detached from the session.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_products(self) -> List[Product]:
        stmt = (
            select(ProductRow)
            .options(
                selectinload(ProductRow.category),
                selectinload(ProductRow.finishes),
                selectinload(ProductRow.variants).selectinload(VariantRow.light_tones),
                selectinload(ProductRow.variants).selectinload(VariantRow.configurations),
            )
            .order_by(ProductRow.id)
        )

        try:
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load products: {type(exc).__name__}") from exc

        return [Product.model_validate(row, from_attributes=True) for row in rows]

    async def load_accessories(self) -> List[Accessory]:
        stmt = (
            select(AccessoryRow)
            .options(
                selectinload(AccessoryRow.light_tones),
                selectinload(AccessoryRow.finishes),
            )
            .order_by(AccessoryRow.id)
        )

        try:
            result = await self._session.execute(stmt)
            rows = result.scalars().all()
        except SQLAlchemyError as exc:
            raise StorageError(f"Failed to load accessories: {type(exc).__name__}") from exc

        return [Accessory.model_validate(row, from_attributes=True) for row in rows]

