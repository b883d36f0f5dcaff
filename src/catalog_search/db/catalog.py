"""
Catalog Table Mappings (read-only)

Maps the relational catalog schema owned by the CRUD subsystem. The search
service never writes to these tables; they are loaded with eager
``selectinload`` and converted into the snapshot models of
``catalog_search.catalog.models``.
"""

from __future__ import annotations

from typing import Optional, List

from sqlalchemy import Column, Table, Integer, String, Text, Float, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .models import Base


# ---------------------------------------------------------------------
# Association Tables
# ---------------------------------------------------------------------

product_finishes = Table(
    "product_finishes",
    Base.metadata,
    Column("product_id", ForeignKey("products.id"), primary_key=True),
    Column("finish_id", ForeignKey("finishes.id"), primary_key=True),
)

variant_light_tones = Table(
    "variant_light_tones",
    Base.metadata,
    Column("variant_id", ForeignKey("product_variants.id"), primary_key=True),
    Column("light_tone_id", ForeignKey("light_tones.id"), primary_key=True),
)

accessory_light_tones = Table(
    "accessory_light_tones",
    Base.metadata,
    Column("accessory_id", ForeignKey("accessories.id"), primary_key=True),
    Column("light_tone_id", ForeignKey("light_tones.id"), primary_key=True),
)

accessory_finishes = Table(
    "accessory_finishes",
    Base.metadata,
    Column("accessory_id", ForeignKey("accessories.id"), primary_key=True),
    Column("finish_id", ForeignKey("finishes.id"), primary_key=True),
)


# ---------------------------------------------------------------------
# Lookup Tables
# ---------------------------------------------------------------------

class CategoryRow(Base):
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)


class FinishRow(Base):
    __tablename__ = "finishes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)


class LightToneRow(Base):
    __tablename__ = "light_tones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    slug: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    kelvin: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


# ---------------------------------------------------------------------
# Product Hierarchy
# ---------------------------------------------------------------------

class ConfigurationRow(Base):
    __tablename__ = "variant_configurations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    variant_id: Mapped[int] = mapped_column(ForeignKey("product_variants.id"), nullable=False)
    sku: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    watt: Mapped[float] = mapped_column(Float, nullable=False)
    lumens: Mapped[float] = mapped_column(Float, nullable=False)
    voltage: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    diameter_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    length_cm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    width_cm: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class VariantRow(Base):
    __tablename__ = "product_variants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    variant_code: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    includes_led: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    includes_driver: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)

    light_tones: Mapped[List[LightToneRow]] = relationship(
        secondary=variant_light_tones,
        order_by=LightToneRow.id,
        viewonly=True,
    )
    configurations: Mapped[List[ConfigurationRow]] = relationship(
        order_by=ConfigurationRow.id,
        viewonly=True,
    )


class ProductRow(Base):
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    category_id: Mapped[Optional[int]] = mapped_column(ForeignKey("categories.id"), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    category: Mapped[Optional[CategoryRow]] = relationship(viewonly=True)
    finishes: Mapped[List[FinishRow]] = relationship(
        secondary=product_finishes,
        order_by=FinishRow.id,
        viewonly=True,
    )
    variants: Mapped[List[VariantRow]] = relationship(
        order_by=VariantRow.id,
        viewonly=True,
    )


# ---------------------------------------------------------------------
# Accessories
# ---------------------------------------------------------------------

class AccessoryRow(Base):
    __tablename__ = "accessories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String, nullable=False)
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    watt: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    voltage_label: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    light_tones: Mapped[List[LightToneRow]] = relationship(
        secondary=accessory_light_tones,
        order_by=LightToneRow.id,
        viewonly=True,
    )
    finishes: Mapped[List[FinishRow]] = relationship(
        secondary=accessory_finishes,
        order_by=FinishRow.id,
        viewonly=True,
    )


# Tables created by this service; everything else above is external.
OWNED_TABLES = ("product_embeddings", "accessory_embeddings", "search_logs")
