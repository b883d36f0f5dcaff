"""
Content Synthesis

Deterministic flattening of catalog entities into the plain-text documents
that are sent to the embedding model.

Each document is a sequence of ``Label: value`` lines joined by ``\\n``.
Optional lines are omitted when the source field is null/empty, so identical
source data always yields byte-identical content.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..catalog.models import Accessory, Configuration, Finish, LightTone, Product, Variant


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _number(value: float) -> str:
    """Render a number without a spurious trailing ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _join_names(names: Iterable[Optional[str]]) -> str:
    return ", ".join(name for name in names if name)


def _finish_names(finishes: Iterable[Finish]) -> str:
    return _join_names(f.name for f in finishes)


def _tone_label(tone: LightTone) -> Optional[str]:
    if not tone.name:
        return None
    if tone.kelvin:
        return f"{tone.name} ({tone.kelvin}K)"
    return tone.name


def _render(lines: List[str]) -> str:
    return "\n".join(lines)


# ---------------------------------------------------------------------
# Synthesizers
# ---------------------------------------------------------------------

def synthesize_product(product: Product) -> str:
    """
    Product-level document.

    Order: name, code, category, description, finishes.
    """
    lines = [f"Producto: {product.name}"]
    if product.code:
        lines.append(f"Código: {product.code}")
    if product.category is not None and product.category.name:
        lines.append(f"Categoría: {product.category.name}")
    if product.description:
        lines.append(f"Descripción: {product.description}")

    finishes = _finish_names(product.finishes)
    if finishes:
        lines.append(f"Acabados: {finishes}")

    return _render(lines)


def synthesize_variant(product: Product, variant: Variant) -> str:
    """
    Variant-level document: parent product identity, variant identity,
    presence-only feature flags and light tones.
    """
    lines = [f"Producto: {product.name}"]
    if product.code:
        lines.append(f"Código producto: {product.code}")

    lines.append(f"Variante: {variant.name}")
    if variant.variant_code:
        lines.append(f"Código variante: {variant.variant_code}")

    if variant.includes_led:
        lines.append("Incluye LED")
    if variant.includes_driver:
        lines.append("Incluye Driver")

    tones = _join_names(_tone_label(t) for t in variant.light_tones)
    if tones:
        lines.append(f"Tonos: {tones}")

    return _render(lines)


def synthesize_configuration(
    product: Product,
    variant: Variant,
    configuration: Configuration,
) -> str:
    """
    Configuration-level document. Wattage and lumens are always emitted;
    electrical and dimensional fields only when present.
    """
    lines = [f"Producto: {product.name} - {variant.name}"]
    if configuration.sku:
        lines.append(f"SKU: {configuration.sku}")

    lines.append(f"Potencia: {_number(configuration.watt)}W")
    lines.append(f"Lúmenes: {_number(configuration.lumens)} lm")

    if configuration.voltage:
        lines.append(f"Voltaje: {_number(configuration.voltage)}V")
    if configuration.diameter_description:
        lines.append(f"Diámetro: {configuration.diameter_description}")
    if configuration.length_cm:
        lines.append(f"Largo: {_number(configuration.length_cm)}cm")
    if configuration.width_cm:
        lines.append(f"Ancho: {_number(configuration.width_cm)}cm")

    return _render(lines)


def synthesize_accessory(accessory: Accessory) -> str:
    """Accessory-level document."""
    lines = [f"Accesorio: {accessory.name}"]
    if accessory.code:
        lines.append(f"Código: {accessory.code}")
    if accessory.description:
        lines.append(f"Descripción: {accessory.description}")

    if accessory.watt:
        lines.append(f"Potencia: {_number(accessory.watt)}W")
    if accessory.voltage_label:
        lines.append(f"Voltaje: {accessory.voltage_label}V")

    tones = _join_names(t.name for t in accessory.light_tones)
    if tones:
        lines.append(f"Tonos compatibles: {tones}")

    finishes = _finish_names(accessory.finishes)
    if finishes:
        lines.append(f"Acabados: {finishes}")

    return _render(lines)
