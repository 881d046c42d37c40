"""
Shared pytest fixtures for the shopping assistant test suite.

Provides:
  - ``now``: A pinned UTC clock reading; every time-dependent call in the
    suite passes it explicitly.
  - Sample domain object factories for use in multiple test modules.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from shopping_assistant.models.interaction import Interaction
from shopping_assistant.models.preferences import PriceRange, UserPreferences
from shopping_assistant.models.product import Product
from shopping_assistant.models.recommendation import Recommendation
from shopping_assistant.models.user import User
from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType, RecommendationAlgorithm

NOW = datetime(2026, 3, 10, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def now() -> datetime:
    return NOW


# ── Sample domain object factories ────────────────────────────────────────────

@pytest.fixture
def sample_preferences() -> UserPreferences:
    """Electronics/Apple shopper with a 100–2000 budget and a Modern style."""
    return UserPreferences(
        user_id=1,
        categories=("Electronics",),
        brands=("Apple",),
        style_preferences=("Modern",),
        price_range=PriceRange(min=100, max=2000),
        created_at=NOW - timedelta(days=30),
        updated_at=NOW - timedelta(days=30),
    )


@pytest.fixture
def sample_product() -> Product:
    """A styleless product matching ``sample_preferences`` on every component."""
    return Product(
        id=10,
        name="MacBook Air",
        description="13-inch laptop",
        price=999.0,
        category="Electronics",
        brand="Apple",
        image_url="https://example.com/mba.png",
        rating=4.7,
        created_at=NOW - timedelta(days=90),
        updated_at=NOW - timedelta(days=1),
    )


@pytest.fixture
def sample_interaction() -> Interaction:
    return Interaction(
        id=1,
        user_id=1,
        product_id=10,
        interaction_type=InteractionType.LIKE,
        timestamp=NOW - timedelta(days=2),
        metadata={"source": "search"},
    )


@pytest.fixture
def sample_recommendation() -> Recommendation:
    """Created one hour before ``NOW`` with the default 24 h TTL."""
    return Recommendation.create(
        user_id=1,
        product_id=10,
        score=0.85,
        algorithm=RecommendationAlgorithm.CONTENT_BASED,
        now=NOW - timedelta(hours=1),
    )


@pytest.fixture
def sample_user(sample_preferences) -> User:
    return User(
        id=1,
        email="shopper@example.com",
        preferences=sample_preferences,
        created_at=NOW - timedelta(days=30),
        updated_at=NOW - timedelta(days=30),
    )


def make_product(product_id: int, **overrides) -> Product:
    """Build a valid product with sensible defaults."""
    fields = {
        "id": product_id,
        "name": f"Product {product_id}",
        "price": 500.0,
        "category": "Electronics",
        "brand": "Apple",
        "created_at": NOW - timedelta(days=10),
        "updated_at": NOW - timedelta(days=10),
    }
    fields.update(overrides)
    return Product(**fields)


def make_interaction(
    user_id: int,
    product_id: int,
    interaction_type: InteractionType,
    days_ago: float = 1,
    **metadata,
) -> Interaction:
    return Interaction(
        user_id=user_id,
        product_id=product_id,
        interaction_type=interaction_type,
        timestamp=NOW - timedelta(days=days_ago),
        metadata=metadata,
    )


@pytest.fixture
def product_factory():
    return make_product


@pytest.fixture
def interaction_factory():
    return make_interaction
