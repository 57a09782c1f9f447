"""
Catalog query engine.

Filters are applied in memory over the decoded product documents returned by
a `product:` prefix scan. All supplied filters must hold; absent filters are
ignored. Input order is preserved.
"""

from typing import Any, Dict, Iterable, List, Optional

from pydantic import BaseModel


class ProductFilter(BaseModel):
    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    in_stock: Optional[bool] = None
    featured: Optional[bool] = None
    trending: Optional[bool] = None
    new_arrival: Optional[bool] = None
    search_text: Optional[str] = None


# filter attribute -> product document key
FLAG_FIELDS = {
    "in_stock": "inStock",
    "featured": "featured",
    "trending": "trending",
    "new_arrival": "newArrival",
}

SEARCH_FIELDS = ("name", "description", "category", "brand")


def _text(product: Dict[str, Any], field: str) -> str:
    value = product.get(field)
    if value is None:
        return ""
    return str(value).lower()


def _price(product: Dict[str, Any]) -> Optional[float]:
    value = product.get("price")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def matches(product: Dict[str, Any], criteria: ProductFilter) -> bool:
    if criteria.category and criteria.category.lower() not in _text(product, "category"):
        return False
    if criteria.brand and criteria.brand.lower() not in _text(product, "brand"):
        return False

    if criteria.min_price is not None or criteria.max_price is not None:
        price = _price(product)
        if price is None:
            return False
        if criteria.min_price is not None and price < criteria.min_price:
            return False
        if criteria.max_price is not None and price > criteria.max_price:
            return False

    for attr, field in FLAG_FIELDS.items():
        # only a literal True selects; False/None never filter
        if getattr(criteria, attr) is True and product.get(field) is not True:
            return False

    if criteria.search_text:
        needle = criteria.search_text.lower()
        if not any(needle in _text(product, field) for field in SEARCH_FIELDS):
            return False

    return True


def filter_products(products: Iterable[Dict[str, Any]], criteria: Optional[ProductFilter] = None) -> List[Dict[str, Any]]:
    if criteria is None:
        return list(products)
    return [p for p in products if matches(p, criteria)]
