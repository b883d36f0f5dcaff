from typing import List, Optional

import pytest

from catalog_search.catalog.models import (
    Accessory,
    Category,
    Configuration,
    Finish,
    LightTone,
    Product,
    Variant,
)


VOCABULARY = ["buro", "lampara", "led", "driver", "perfil", "fuente", "negro", "blanco"]


class KeywordEmbedder:
    """
    Deterministic stand-in for the embedding client: one dimension per
    vocabulary word, counting occurrences in the lower-cased text.
    """

    model_version = "test-model"

    def __init__(self, fail_on: tuple = ()) -> None:
        self.calls: List[str] = []
        self._fail_on = fail_on

    async def embed(self, text: str) -> List[float]:
        self.calls.append(text)
        for marker, exc in self._fail_on:
            if marker in text:
                raise exc
        lowered = text.lower()
        vector = [float(lowered.count(word)) for word in VOCABULARY]
        # constant component keeps every vector non-zero
        vector.append(0.1)
        return vector


class StaticCatalogReader:
    """Catalog reader over pre-built snapshots."""

    def __init__(
        self,
        products: Optional[List[Product]] = None,
        accessories: Optional[List[Accessory]] = None,
    ) -> None:
        self._products = list(products or [])
        self._accessories = list(accessories or [])

    async def load_products(self) -> List[Product]:
        return list(self._products)

    async def load_accessories(self) -> List[Accessory]:
        return list(self._accessories)


@pytest.fixture
def buro_product() -> Product:
    return Product(
        id=1,
        name="Buro Directo",
        code="BUR",
        category=Category(id=3, name="Lámparas"),
        description="Lampara de escritorio",
        finishes=[Finish(id=1, name="Negro"), Finish(id=2, name="Blanco")],
        variants=[
            Variant(
                id=10,
                name="Directo LED",
                variant_code="BUR-D",
                includes_led=True,
                includes_driver=False,
                light_tones=[
                    LightTone(id=1, name="Cálido", kelvin=3000),
                    LightTone(id=2, name="Neutro", kelvin=None),
                ],
                configurations=[
                    Configuration(id=100, sku="BUR-D-30W", watt=30, lumens=3000),
                    Configuration(
                        id=101,
                        sku="BUR-D-45W",
                        watt=45,
                        lumens=4500,
                        voltage=220,
                        diameter_description="60 cm",
                        length_cm=120,
                        width_cm=7.5,
                    ),
                ],
            ),
        ],
    )


@pytest.fixture
def driver_accessory() -> Accessory:
    return Accessory(
        id=7,
        name="Fuente Driver 60W",
        code="DRV-60",
        description="Driver para perfiles LED",
        watt=60,
        voltage_label="12",
        light_tones=[LightTone(id=1, name="Cálido", kelvin=3000)],
        finishes=[Finish(id=2, name="Blanco")],
    )


@pytest.fixture
def keyword_embedder() -> KeywordEmbedder:
    return KeywordEmbedder()


@pytest.fixture
def make_embedder():
    return KeywordEmbedder


@pytest.fixture
def make_reader():
    return StaticCatalogReader
