import pytest
from pydantic import ValidationError

from catalog_search.embeddings.models import (
    IndexKey,
    IndexLevel,
    IndexScope,
    SearchMatch,
)


@pytest.mark.parametrize(
    "key, level, entity_key",
    [
        (IndexKey.for_product(1), IndexLevel.PRODUCT, "product:1"),
        (IndexKey.for_variant(1, 2), IndexLevel.VARIANT, "variant:1:2"),
        (
            IndexKey.for_configuration(1, 2, 3),
            IndexLevel.CONFIGURATION,
            "configuration:1:2:3",
        ),
        (IndexKey.for_accessory(4), IndexLevel.ACCESSORY, "accessory:4"),
    ],
)
def test_valid_combinations(key, level, entity_key):
    assert key.level is level
    assert key.entity_key == entity_key


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"variant_id": 2},
        {"product_id": 1, "configuration_id": 3},
        {"product_id": 1, "accessory_id": 4},
        {"variant_id": 2, "configuration_id": 3},
        {"accessory_id": 4, "variant_id": 2},
    ],
)
def test_invalid_combinations_rejected(fields):
    with pytest.raises(ValidationError):
        IndexKey(**fields)


def test_scope_follows_level():
    assert IndexKey.for_product(1).scope is IndexScope.PRODUCTS
    assert IndexKey.for_configuration(1, 2, 3).scope is IndexScope.PRODUCTS
    assert IndexKey.for_accessory(1).scope is IndexScope.ACCESSORIES


def test_scope_levels():
    assert IndexScope.ACCESSORIES.levels() == (IndexLevel.ACCESSORY,)
    assert IndexLevel.ACCESSORY not in IndexScope.PRODUCTS.levels()
    assert len(IndexScope.PRODUCTS.levels()) == 3


def test_keys_are_hashable_and_equal_by_value():
    assert IndexKey.for_variant(1, 2) == IndexKey(product_id=1, variant_id=2)
    assert len({IndexKey.for_product(1), IndexKey.for_product(1)}) == 1


def test_key_is_immutable():
    key = IndexKey.for_product(1)
    with pytest.raises(ValidationError):
        key.product_id = 2


def test_search_match_level():
    match = SearchMatch(
        key=IndexKey.for_configuration(1, 2, 3),
        similarity=0.82,
        content="Producto: X",
    )
    assert match.level is IndexLevel.CONFIGURATION
