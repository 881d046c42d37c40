"""
Product catalog models.

``Product`` is owned by the catalog/persistence layer; the scoring engine only
reads it. It is frozen: price or availability changes arrive as a new
snapshot from the catalog.

``ProductFilters`` describes a candidate pre-filter. Every field is optional;
see ``shopping_assistant.scoring.product_filter`` for the matching rules.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shopping_assistant.models.validation import MAX_MONEY_VALUE, is_number
from shopping_assistant.scoring import product_filter
from shopping_assistant.utils.time_utils import ensure_utc, utcnow

MAX_NAME_LENGTH = 255
MAX_DESCRIPTION_LENGTH = 2000
MAX_LABEL_LENGTH = 100
MAX_IMAGE_URL_LENGTH = 500
MAX_RATING = 5.0


def _is_valid_url(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _label_errors(value: Any, label: str) -> list[str]:
    if not isinstance(value, str) or not value.strip():
        return [f"Product {label} is required"]
    if len(value) > MAX_LABEL_LENGTH:
        return [f"Product {label} is too long (maximum {MAX_LABEL_LENGTH} characters)"]
    return []


class Product(BaseModel):
    """A catalog product with the attributes the engine scores on.

    Attributes:
        id: Catalog PK.
        name: Display name (1–255 chars).
        description: Free-text description (max 2000 chars).
        price: Unit price, ``0 <= price <= 999,999.99``.
        category: Catalog category label, e.g. ``"Electronics"``.
        brand: Brand label, e.g. ``"Apple"``.
        image_url: Optional http(s) image URL.
        availability: ``True`` when the product can be ordered.
        style: Optional style label, e.g. ``"Modern"``.
        rating: Optional average rating, ``0–5``.
        created_at: UTC catalog insertion time.
        updated_at: UTC last catalog update time.
    """

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    description: str = ""
    price: float
    category: str
    brand: str
    image_url: Optional[str] = None
    availability: bool = True
    style: Optional[str] = None
    rating: Optional[float] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_product(self) -> "Product":
        errors = type(self).validation_errors(
            {
                "name": self.name,
                "description": self.description,
                "price": self.price,
                "category": self.category,
                "brand": self.brand,
                "image_url": self.image_url,
                "rating": self.rating,
            }
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @classmethod
    def validation_errors(cls, data: Mapping[str, Any]) -> list[str]:
        """Check a partial product mapping without raising."""
        errors: list[str] = []

        if "name" in data:
            name = data["name"]
            if not isinstance(name, str) or not name.strip():
                errors.append("Product name is required")
            elif len(name) > MAX_NAME_LENGTH:
                errors.append(
                    f"Product name is too long (maximum {MAX_NAME_LENGTH} characters)"
                )

        if "description" in data:
            description = data["description"]
            if not isinstance(description, str):
                errors.append("Product description must be a string")
            elif len(description) > MAX_DESCRIPTION_LENGTH:
                errors.append(
                    "Product description is too long "
                    f"(maximum {MAX_DESCRIPTION_LENGTH} characters)"
                )

        if "price" in data:
            price = data["price"]
            if not is_number(price):
                errors.append("Product price must be a valid number")
            elif price < 0:
                errors.append("Product price cannot be negative")
            elif price > MAX_MONEY_VALUE:
                errors.append("Product price is too high (maximum 999,999.99)")

        if "category" in data:
            errors += _label_errors(data["category"], "category")
        if "brand" in data:
            errors += _label_errors(data["brand"], "brand")

        image_url = data.get("image_url")
        if image_url is not None:
            if not isinstance(image_url, str):
                errors.append("Product image URL must be a string")
            elif len(image_url) > MAX_IMAGE_URL_LENGTH:
                errors.append(
                    f"Product image URL is too long (maximum {MAX_IMAGE_URL_LENGTH} characters)"
                )
            elif not _is_valid_url(image_url):
                errors.append("Product image URL must be a valid URL")

        if "availability" in data and not isinstance(data["availability"], bool):
            errors.append("Product availability must be a boolean")

        rating = data.get("rating")
        if rating is not None and (not is_number(rating) or not 0 <= rating <= MAX_RATING):
            errors.append(f"Product rating must be between 0 and {MAX_RATING:g}")

        return errors

    # ── Business logic ────────────────────────────────────────────────────────

    def matches_filters(self, filters: "ProductFilters") -> bool:
        return product_filter.matches(self, filters)

    def is_in_price_range(self, min_price: float, max_price: float) -> bool:
        return product_filter.is_in_price_range(self, min_price, max_price)

    def is_in_category(self, category: str) -> bool:
        return product_filter.is_in_category(self, category)

    def is_from_brand(self, brand: str) -> bool:
        return product_filter.is_from_brand(self, brand)

    def is_available(self) -> bool:
        return self.availability

    def searchable_text(self) -> str:
        return product_filter.searchable_text(self)

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "category": self.category,
            "brand": self.brand,
            "availability": self.availability,
            "has_image": bool(self.image_url),
        }


class ProductFilters(BaseModel):
    """Candidate pre-filter; every unset field is ignored.

    Attributes:
        category: Exact (case-sensitive) category.
        brand: Exact (case-sensitive) brand.
        min_price: Inclusive lower price bound.
        max_price: Inclusive upper price bound.
        min_rating: Minimum average rating; unrated products fail it.
        availability: Required availability flag.
        search_query: Case-insensitive free-text substring.
    """

    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    brand: Optional[str] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    min_rating: Optional[float] = None
    availability: Optional[bool] = None
    search_query: Optional[str] = None

    @model_validator(mode="after")
    def validate_price_bounds(self) -> "ProductFilters":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError(
                f"min_price ({self.min_price}) must be <= max_price ({self.max_price})."
            )
        return self
