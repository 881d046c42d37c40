"""
Product filtering for candidate pre-selection.

``matches(product, filters)`` is a logical AND over every filter field that
is set; unset fields are ignored. Filtering decides which products are
scored at all; it never contributes to a score.

Matching rules
--------------
category / brand : exact, case-sensitive equality
min_price        : price >= min_price
max_price        : price <= max_price
min_rating       : rating is set and rating >= min_rating
availability     : availability == filter value
search_query     : case-insensitive substring of
                   "<name> <description> <category> <brand>"

The helper predicates ``is_in_category`` / ``is_from_brand`` are
case-insensitive, for UI-driven lookups where "electronics" should find
"Electronics".
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from shopping_assistant.models.product import Product, ProductFilters


def searchable_text(product: "Product") -> str:
    """Lower-cased concatenation of the product's free-text fields."""
    return (
        f"{product.name} {product.description} {product.category} {product.brand}"
    ).lower()


def is_in_price_range(product: "Product", min_price: float, max_price: float) -> bool:
    return min_price <= product.price <= max_price


def is_in_category(product: "Product", category: str) -> bool:
    return product.category.lower() == category.lower()


def is_from_brand(product: "Product", brand: str) -> bool:
    return product.brand.lower() == brand.lower()


def matches(product: "Product", filters: "ProductFilters") -> bool:
    """Return ``True`` when ``product`` satisfies every set filter field."""
    if filters.category is not None and product.category != filters.category:
        return False
    if filters.brand is not None and product.brand != filters.brand:
        return False
    if filters.min_price is not None and product.price < filters.min_price:
        return False
    if filters.max_price is not None and product.price > filters.max_price:
        return False
    if filters.min_rating is not None and (
        product.rating is None or product.rating < filters.min_rating
    ):
        return False
    if filters.availability is not None and product.availability != filters.availability:
        return False
    if filters.search_query:
        if filters.search_query.lower() not in searchable_text(product):
            return False
    return True


def filter_products(
    products: Iterable["Product"],
    filters: "ProductFilters",
) -> list["Product"]:
    """Keep the products that satisfy ``filters``, preserving input order."""
    return [p for p in products if matches(p, filters)]
