"""
Interaction classification: polarity, weights, scores and recency for a
single user-product event.

Two numeric scales
------------------
weight (normalized blending, roughly -1..1):
    purchase  1.0   like      0.7   dislike  -0.5
    view      0.1   favorite  0.1   rating    0.1

score (coarse ranking / analytics):
    purchase  10    like      5     dislike  -2
    view      1     favorite  1     rating    1

Favorite and rating default to the same low positive signal as a view.
Callers that want them to count more pass an override table, for example
``EXTENDED_INTERACTION_WEIGHTS`` (favorite 0.9, rating 0.8) or the
``[scoring.interaction_weights]`` section of the config file.

Polarity
--------
positive   : like, purchase
negative   : dislike
neutral    : view
conversion : purchase
Favorite and rating belong to none of these groups.

Every lookup table is keyed by every ``InteractionType`` member.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Optional

from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType
from shopping_assistant.utils.time_utils import calendar_days_between, ensure_utc, resolve_now

DEFAULT_RECENT_WINDOW_DAYS = 30

INTERACTION_WEIGHTS: dict[InteractionType, float] = {
    InteractionType.PURCHASE: 1.0,
    InteractionType.LIKE:     0.7,
    InteractionType.DISLIKE: -0.5,
    InteractionType.VIEW:     0.1,
    InteractionType.FAVORITE: 0.1,
    InteractionType.RATING:   0.1,
}

INTERACTION_SCORES: dict[InteractionType, int] = {
    InteractionType.PURCHASE: 10,
    InteractionType.LIKE:      5,
    InteractionType.DISLIKE:  -2,
    InteractionType.VIEW:      1,
    InteractionType.FAVORITE:  1,
    InteractionType.RATING:    1,
}

EXTENDED_INTERACTION_WEIGHTS: dict[InteractionType, float] = {
    **INTERACTION_WEIGHTS,
    InteractionType.FAVORITE: 0.9,
    InteractionType.RATING:   0.8,
}

EXTENDED_INTERACTION_SCORES: dict[InteractionType, int] = {
    **INTERACTION_SCORES,
    InteractionType.FAVORITE: 8,
    InteractionType.RATING:   6,
}

POSITIVE_TYPES = frozenset({InteractionType.LIKE, InteractionType.PURCHASE})
NEGATIVE_TYPES = frozenset({InteractionType.DISLIKE})
NEUTRAL_TYPES = frozenset({InteractionType.VIEW})
CONVERSION_TYPES = frozenset({InteractionType.PURCHASE})


def is_positive(interaction_type: InteractionType) -> bool:
    return interaction_type in POSITIVE_TYPES


def is_negative(interaction_type: InteractionType) -> bool:
    return interaction_type in NEGATIVE_TYPES


def is_neutral(interaction_type: InteractionType) -> bool:
    return interaction_type in NEUTRAL_TYPES


def is_conversion(interaction_type: InteractionType) -> bool:
    return interaction_type in CONVERSION_TYPES


def interaction_weight(
    interaction_type: InteractionType,
    overrides: Optional[Mapping[str, float]] = None,
) -> float:
    """Return the blending weight for an interaction type.

    Args:
        interaction_type: The event kind.
        overrides: Optional per-type replacements keyed by type value
            (``"favorite"``) or member. Types not present fall back to
            ``INTERACTION_WEIGHTS``.

    Returns:
        Signed weight; negative only for dislikes under the default table.
    """
    if overrides and interaction_type.value in overrides:
        return float(overrides[interaction_type.value])
    return INTERACTION_WEIGHTS[interaction_type]


def interaction_score(
    interaction_type: InteractionType,
    overrides: Optional[Mapping[str, int]] = None,
) -> int:
    """Return the coarse ranking score for an interaction type."""
    if overrides and interaction_type.value in overrides:
        return int(overrides[interaction_type.value])
    return INTERACTION_SCORES[interaction_type]


def is_recent(
    timestamp: datetime,
    window_days: float = DEFAULT_RECENT_WINDOW_DAYS,
    now: Optional[datetime] = None,
) -> bool:
    """``True`` iff ``now - timestamp <= window_days`` days.

    Future timestamps are always recent.
    """
    return resolve_now(now) - ensure_utc(timestamp) <= timedelta(days=window_days)


def days_since(timestamp: datetime, now: Optional[datetime] = None) -> int:
    """Whole calendar days between ``timestamp`` and ``now``.

    The count is symmetric: a timestamp three days in the future also yields
    ``3``. Callers that need "not yet happened" semantics must compare the
    timestamps themselves.
    """
    return calendar_days_between(timestamp, resolve_now(now))
