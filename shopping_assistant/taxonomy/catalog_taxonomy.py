"""
Closed vocabularies for the recommendation engine.

Three enums describe every scored pairing:
  - ``InteractionType``        : the *what*: which user action was observed?
  - ``RecommendationAlgorithm``: the *how*: which strategy produced the score?
  - ``ConfidenceLevel``        : the *how sure*: which score tier applies?

All are ``StrEnum`` so members compare equal to, and serialize as, their
plain string values (``"content-based"`` etc.).

Usage example::

    from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType

    kind = InteractionType("purchase")
    assert kind is InteractionType.PURCHASE

This module has NO imports from any other ``shopping_assistant`` package.
"""

from enum import StrEnum


class InteractionType(StrEnum):
    """Kind of user action recorded against a product."""

    VIEW = "view"
    """Product page or card was opened; weakest implicit signal."""

    LIKE = "like"
    """Explicit thumbs-up."""

    DISLIKE = "dislike"
    """Explicit thumbs-down; the only negative signal."""

    FAVORITE = "favorite"
    """Added to the user's favorites list."""

    RATING = "rating"
    """Star rating; the value lives in ``metadata["rating"]``."""

    PURCHASE = "purchase"
    """Completed order; the only conversion signal."""


class RecommendationAlgorithm(StrEnum):
    """Scoring strategy that produced a recommendation."""

    COLLABORATIVE = "collaborative"
    """Scored from interactions of users with similar preferences."""

    CONTENT_BASED = "content-based"
    """Scored from the user's stated preferences vs. product attributes."""

    HYBRID = "hybrid"
    """Weighted blend of collaborative, content-based and popularity scores."""

    POPULARITY = "popularity"
    """Scored from overall interaction volume on the product."""


class ConfidenceLevel(StrEnum):
    """Score tier used for explanations and monitoring."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
