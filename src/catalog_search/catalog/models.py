"""
Catalog Snapshot Models

Read-only, fully-joined views of the catalog entities consumed by the
content synthesizers and the batch indexer. Instances are built either
directly (tests, fixtures) or from ORM rows via ``model_validate(...,
from_attributes=True)``.
"""

from __future__ import annotations

from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


_SNAPSHOT_CONFIG = ConfigDict(
    extra="ignore",
    frozen=True,
    from_attributes=True,
)


class Category(BaseModel):
    id: Optional[int] = None
    name: str

    model_config = _SNAPSHOT_CONFIG


class Finish(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None

    model_config = _SNAPSHOT_CONFIG


class LightTone(BaseModel):
    id: Optional[int] = None
    name: Optional[str] = None
    kelvin: Optional[int] = None

    model_config = _SNAPSHOT_CONFIG


class Configuration(BaseModel):
    """A purchasable configuration (SKU) of a variant."""

    id: int
    sku: Optional[str] = None
    watt: float
    lumens: float
    voltage: Optional[float] = None
    diameter_description: Optional[str] = None
    length_cm: Optional[float] = None
    width_cm: Optional[float] = None

    model_config = _SNAPSHOT_CONFIG


class Variant(BaseModel):
    id: int
    name: str
    variant_code: Optional[str] = None
    includes_led: Optional[bool] = None
    includes_driver: Optional[bool] = None
    light_tones: List[LightTone] = Field(default_factory=list)
    configurations: List[Configuration] = Field(default_factory=list)

    model_config = _SNAPSHOT_CONFIG


class Product(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    category: Optional[Category] = None
    finishes: List[Finish] = Field(default_factory=list)
    variants: List[Variant] = Field(default_factory=list)

    model_config = _SNAPSHOT_CONFIG


class Accessory(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    description: Optional[str] = None
    watt: Optional[float] = None
    voltage_label: Optional[str] = None
    light_tones: List[LightTone] = Field(default_factory=list)
    finishes: List[Finish] = Field(default_factory=list)

    model_config = _SNAPSHOT_CONFIG
