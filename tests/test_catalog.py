"""Tests for the catalog query engine."""

import pytest

from catalog import ProductFilter, filter_products, matches

from conftest import CATALOG


def ids(products):
    return [p["id"] for p in products]


def test_no_filters_returns_full_catalog():
    assert filter_products(CATALOG, ProductFilter()) == CATALOG
    assert filter_products(CATALOG) == CATALOG


def test_price_range_is_inclusive_and_selects_middle_product():
    result = filter_products(CATALOG, ProductFilter(min_price=2000, max_price=3000))
    assert ids(result) == ["2"]

    result = filter_products(CATALOG, ProductFilter(min_price=2499, max_price=3499))
    assert ids(result) == ["2", "3"]


def test_category_substring_is_case_insensitive():
    assert ids(filter_products(CATALOG, ProductFilter(category="shirt"))) == ["1"]


def test_brand_substring_is_case_insensitive():
    assert ids(filter_products(CATALOG, ProductFilter(brand="denim"))) == ["3"]


def test_search_matches_any_text_field():
    assert ids(filter_products(CATALOG, ProductFilter(search_text="JACKET"))) == ["4"]
    # description only
    assert ids(filter_products(CATALOG, ProductFilter(search_text="casual outings"))) == ["2"]
    # brand only
    assert ids(filter_products(CATALOG, ProductFilter(search_text="amarbrand"))) == ["1"]


def test_boolean_flags_only_select_on_true():
    assert ids(filter_products(CATALOG, ProductFilter(in_stock=True))) == ["1", "2", "4"]
    assert ids(filter_products(CATALOG, ProductFilter(in_stock=False))) == ["1", "2", "3", "4"]
    assert ids(filter_products(CATALOG, ProductFilter(new_arrival=True))) == ["2", "4"]


def test_flag_must_be_literally_true_on_product():
    product = {"id": "x", "name": "x", "price": 1, "featured": "yes"}
    assert not matches(product, ProductFilter(featured=True))


def test_filters_combine_with_and():
    criteria = ProductFilter(featured=True, trending=True, max_price=2000)
    assert ids(filter_products(CATALOG, criteria)) == ["1"]

    criteria = ProductFilter(featured=True, search_text="dress", brand="stylehub")
    assert filter_products(CATALOG, criteria) == []


@pytest.mark.parametrize(
    "criteria",
    [
        ProductFilter(category="s"),
        ProductFilter(min_price=1500),
        ProductFilter(in_stock=True, trending=True),
        ProductFilter(search_text="premium", max_price=5000),
    ],
)
def test_result_is_subset_satisfying_every_predicate(criteria):
    result = filter_products(CATALOG, criteria)
    for product in result:
        assert product in CATALOG
        assert matches(product, criteria)
    excluded = [p for p in CATALOG if p not in result]
    assert not any(matches(p, criteria) for p in excluded)


def test_missing_fields_do_not_raise():
    sparse = [{"id": "s", "name": "Sparse"}]
    assert filter_products(sparse, ProductFilter(search_text="sparse")) == sparse
    assert filter_products(sparse, ProductFilter(category="x")) == []
    assert filter_products(sparse, ProductFilter(min_price=0)) == []
