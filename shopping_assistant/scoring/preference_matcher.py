"""
Preference matching: how well a product fits a user's stated preferences.

Score formula (normalized weighted sum, range 0–1)
--------------------------------------------------
    awarded  = 0.4 * category_hit + 0.3 * brand_hit + 0.2 * price_hit
               + 0.1 * style_hit
    possible = 0.4 + 0.3 + 0.2 + (0.1 if product has a style else 0)
    score    = awarded / possible

Each component is binary (hit = full weight, miss = 0); there is no partial
credit. The style weight leaves the denominator entirely when the product
carries no style, so a styleless product that matches everything else still
scores exactly 1.0.

Component rules
---------------
category : product.category in preferences.categories (case-insensitive)
brand    : product.brand in preferences.brands (case-insensitive)
price    : preferences.price_range.min <= product.price <= max (inclusive)
style    : product.style in preferences.style_preferences (exact)

Products may be ``Product`` models, any object with ``category`` / ``brand``
/ ``price`` / optional ``style`` attributes, or plain mappings with those keys.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional, Protocol, Union

if TYPE_CHECKING:
    from shopping_assistant.models.preferences import UserPreferences

CATEGORY_WEIGHT = 0.4
BRAND_WEIGHT = 0.3
PRICE_WEIGHT = 0.2
STYLE_WEIGHT = 0.1


class _ProductAttributes(Protocol):
    category: str
    brand: str
    price: float


ProductLike = Union[_ProductAttributes, Mapping[str, Any]]


@dataclass(frozen=True)
class MatchComponents:
    """Per-component hits for one (preferences, product) pair.

    Attributes:
        category_hit: Product category is a preferred category.
        brand_hit:    Product brand is a preferred brand.
        price_hit:    Product price is inside the preferred range.
        style_hit:    Product style is a preferred style; ``None`` when the
                      product has no style (component not applicable).
    """

    category_hit: bool
    brand_hit:    bool
    price_hit:    bool
    style_hit:    Optional[bool]

    @property
    def awarded(self) -> float:
        total = 0.0
        if self.category_hit:
            total += CATEGORY_WEIGHT
        if self.brand_hit:
            total += BRAND_WEIGHT
        if self.price_hit:
            total += PRICE_WEIGHT
        if self.style_hit:
            total += STYLE_WEIGHT
        return total

    @property
    def possible(self) -> float:
        total = CATEGORY_WEIGHT + BRAND_WEIGHT + PRICE_WEIGHT
        if self.style_hit is not None:
            total += STYLE_WEIGHT
        return total

    @property
    def score(self) -> float:
        """Normalized score in ``[0, 1]``."""
        # Rounded so an all-hit product is exactly 1.0 despite float sums
        return round(self.awarded / self.possible, 10)


def product_attribute(product: ProductLike, name: str) -> Any:
    """Read ``name`` from a model/object or a mapping, ``None`` if absent."""
    if isinstance(product, Mapping):
        return product.get(name)
    return getattr(product, name, None)


def match_components(
    preferences: "UserPreferences",
    product: ProductLike,
) -> MatchComponents:
    """Compute the per-component hits for one product.

    Args:
        preferences: The user's stated preferences.
        product:     Product attributes (model, object or mapping).

    Returns:
        MatchComponents with every hit populated.
    """
    category = product_attribute(product, "category")
    brand = product_attribute(product, "brand")
    price = product_attribute(product, "price")
    style = product_attribute(product, "style")

    style_hit: Optional[bool] = None
    if style:
        style_hit = preferences.has_style_preference(style)

    return MatchComponents(
        category_hit=bool(category) and preferences.has_category(category),
        brand_hit=bool(brand) and preferences.has_brand(brand),
        price_hit=price is not None and preferences.is_price_in_range(price),
        style_hit=style_hit,
    )


def match_score(preferences: "UserPreferences", product: ProductLike) -> float:
    """Return the normalized preference match score in ``[0, 1]``.

    Pure and deterministic: identical inputs always give identical output.
    """
    return match_components(preferences, product).score
