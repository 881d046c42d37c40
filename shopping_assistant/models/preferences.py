"""
User preference profile models.

``PriceRange`` is a frozen inclusive ``[min, max]`` price window.

``UserPreferences`` is the user's stated shopping taste: preferred categories,
brands, styles and a price range. It is mutable through explicit add/remove/
update methods only. The collection fields are tuples, so callers reading
``prefs.categories`` get an immutable view and can never edit the profile
behind its back; every mutation swaps in a new tuple and bumps ``updated_at``.

Collections behave as ordered sets: duplicates are dropped on construction
and ``add_*`` refuses values already present.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shopping_assistant.models.validation import (
    MAX_MONEY_VALUE,
    all_non_empty_strings,
    is_number,
    raise_if_invalid,
)
from shopping_assistant.scoring.preference_matcher import (
    MatchComponents,
    ProductLike,
    match_components,
    match_score,
)
from shopping_assistant.utils.time_utils import ensure_utc, utcnow

MAX_CATEGORIES = 20
MAX_BRANDS = 20
MAX_STYLE_PREFERENCES = 10

DEFAULT_PRICE_MIN = 0.0
DEFAULT_PRICE_MAX = 1000.0


class PriceRange(BaseModel):
    """Inclusive price window in the catalog currency.

    Attributes:
        min: Lower bound, ``>= 0``.
        max: Upper bound, ``>= min``.
    """

    model_config = ConfigDict(frozen=True)

    min: float = DEFAULT_PRICE_MIN
    max: float = DEFAULT_PRICE_MAX

    @model_validator(mode="after")
    def validate_bounds(self) -> "PriceRange":
        errors = price_range_errors(self.min, self.max)
        if errors:
            raise ValueError("; ".join(errors))
        return self

    def contains(self, price: float) -> bool:
        return self.min <= price <= self.max


def price_range_errors(min_value: Any, max_value: Any) -> list[str]:
    """Validate a ``(min, max)`` pair, returning error strings."""
    if not is_number(min_value) or not is_number(max_value):
        return ["Price range bounds must be valid numbers"]
    errors: list[str] = []
    if min_value < 0:
        errors.append("Minimum price cannot be negative")
    if max_value < min_value:
        errors.append("Maximum price must be greater than or equal to minimum price")
    if min_value > MAX_MONEY_VALUE or max_value > MAX_MONEY_VALUE:
        errors.append("Price values are too large")
    return errors


def _range_bounds(value: Any) -> tuple[Any, Any]:
    if isinstance(value, PriceRange):
        return value.min, value.max
    if isinstance(value, Mapping):
        return value.get("min"), value.get("max")
    return None, None


def _collection_errors(values: Any, label: str, limit: int) -> list[str]:
    if isinstance(values, (str, bytes)) or not hasattr(values, "__iter__"):
        return [f"{label.capitalize()} must be a list of strings"]
    values = list(values)
    errors: list[str] = []
    if len(values) > limit:
        errors.append(f"Too many {label} (maximum {limit})")
    if not all_non_empty_strings(values):
        errors.append(f"{label.capitalize()} must be non-empty strings")
    return errors


def _dedupe(values: tuple[str, ...]) -> tuple[str, ...]:
    return tuple(dict.fromkeys(values))


class UserPreferences(BaseModel):
    """A user's stated shopping preferences.

    Attributes:
        id: Persistence PK; ``0`` before insertion.
        user_id: Owning user.
        categories: Preferred product categories (max 20).
        brands: Preferred brands (max 20).
        style_preferences: Preferred styles (max 10).
        price_range: Acceptable price window.
        created_at: UTC creation time.
        updated_at: UTC time of the last effective mutation.
    """

    # Not frozen: mutated through add/remove/update methods
    model_config = ConfigDict(frozen=False)

    id: int = 0
    user_id: int
    categories: tuple[str, ...] = ()
    brands: tuple[str, ...] = ()
    style_preferences: tuple[str, ...] = ()
    price_range: PriceRange = Field(default_factory=PriceRange)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("categories", "brands", "style_preferences")
    @classmethod
    def drop_duplicates(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return _dedupe(v)

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_preferences(self) -> "UserPreferences":
        errors = type(self).validation_errors(
            {
                "categories": self.categories,
                "brands": self.brands,
                "style_preferences": self.style_preferences,
                "price_range": self.price_range,
            }
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self

    # ── Validation ────────────────────────────────────────────────────────────

    @classmethod
    def validation_errors(cls, data: Mapping[str, Any]) -> list[str]:
        """Check a partial preferences mapping without raising.

        Only keys present in ``data`` are checked.

        Returns:
            List of error strings; empty when the data is valid.
        """
        errors: list[str] = []
        if "categories" in data:
            errors += _collection_errors(data["categories"], "categories", MAX_CATEGORIES)
        if "brands" in data:
            errors += _collection_errors(data["brands"], "brands", MAX_BRANDS)
        if "style_preferences" in data:
            errors += _collection_errors(
                data["style_preferences"], "style preferences", MAX_STYLE_PREFERENCES
            )
        if "price_range" in data:
            errors += price_range_errors(*_range_bounds(data["price_range"]))
        return errors

    @classmethod
    def default(cls, user_id: int) -> "UserPreferences":
        """Empty preferences for a newly registered user."""
        return cls(user_id=user_id)

    # ── Queries ───────────────────────────────────────────────────────────────

    def has_category(self, category: str) -> bool:
        wanted = category.lower()
        return any(c.lower() == wanted for c in self.categories)

    def has_brand(self, brand: str) -> bool:
        wanted = brand.lower()
        return any(b.lower() == wanted for b in self.brands)

    def has_style_preference(self, style: str) -> bool:
        return style in self.style_preferences

    def is_price_in_range(self, price: float) -> bool:
        return self.price_range.contains(price)

    def match_score(self, product: ProductLike) -> float:
        """Normalized ``[0, 1]`` fit between these preferences and a product."""
        return match_score(self, product)

    def match_components(self, product: ProductLike) -> MatchComponents:
        return match_components(self, product)

    def summary(self) -> dict[str, Any]:
        return {
            "category_count": len(self.categories),
            "brand_count": len(self.brands),
            "style_count": len(self.style_preferences),
            "price_range": {"min": self.price_range.min, "max": self.price_range.max},
            "is_empty": not (self.categories or self.brands or self.style_preferences),
        }

    # ── Mutations ─────────────────────────────────────────────────────────────

    def add_category(self, category: str) -> bool:
        return self._add("categories", category, MAX_CATEGORIES)

    def remove_category(self, category: str) -> bool:
        return self._remove("categories", category)

    def add_brand(self, brand: str) -> bool:
        return self._add("brands", brand, MAX_BRANDS)

    def remove_brand(self, brand: str) -> bool:
        return self._remove("brands", brand)

    def add_style_preference(self, style: str) -> bool:
        return self._add("style_preferences", style, MAX_STYLE_PREFERENCES)

    def remove_style_preference(self, style: str) -> bool:
        return self._remove("style_preferences", style)

    def update_price_range(self, min_price: float, max_price: float) -> bool:
        """Replace the price range; returns ``False`` for an invalid range."""
        if price_range_errors(min_price, max_price):
            return False
        new_range = PriceRange(min=min_price, max=max_price)
        if new_range == self.price_range:
            return False
        self.price_range = new_range
        self._touch()
        return True

    def update_from(self, data: Mapping[str, Any]) -> bool:
        """Apply a partial update.

        Args:
            data: Any of ``categories``, ``brands``, ``style_preferences``,
                ``price_range`` (a ``PriceRange`` or ``{"min", "max"}`` mapping).

        Returns:
            ``True`` if any field changed.

        Raises:
            EntityValidationError: If ``data`` fails validation. No field is
                modified in that case.
        """
        raise_if_invalid(type(self).validation_errors(data))

        changes: dict[str, Any] = {}
        for field in ("categories", "brands", "style_preferences"):
            if field in data:
                new_value = _dedupe(tuple(data[field]))
                if new_value != getattr(self, field):
                    changes[field] = new_value
        if "price_range" in data:
            lo, hi = _range_bounds(data["price_range"])
            new_range = PriceRange(min=lo, max=hi)
            if new_range != self.price_range:
                changes["price_range"] = new_range

        for field, value in changes.items():
            setattr(self, field, value)
        if changes:
            self._touch()
        return bool(changes)

    def _add(self, field: str, value: str, limit: int) -> bool:
        current: tuple[str, ...] = getattr(self, field)
        if not isinstance(value, str) or not value.strip():
            return False
        if len(current) >= limit or value in current:
            return False
        setattr(self, field, current + (value,))
        self._touch()
        return True

    def _remove(self, field: str, value: str) -> bool:
        current: tuple[str, ...] = getattr(self, field)
        if value not in current:
            return False
        setattr(self, field, tuple(v for v in current if v != value))
        self._touch()
        return True

    def _touch(self) -> None:
        self.updated_at = utcnow()
