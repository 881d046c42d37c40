"""
Statistics over interaction and recommendation populations.

All functions are pure reductions over in-memory snapshots: no hidden state,
safe to call repeatedly or concurrently. Results are frozen dataclasses with
``to_dict()`` for JSON serialization by the API layer.

Rate definitions
----------------
conversion_rate (interaction_stats) = purchases / total_interactions
conversion_rate (engagement)        = purchases / views
engagement_rate                     = (likes + purchases) / views

Every ratio is zero-guarded: an empty denominator yields ``0.0``, never an
exception or NaN.

Expiration buckets
------------------
``recommendation_stats`` classifies each record with its own
``is_expired`` / ``is_expiring_soon`` against one shared ``now``. The
buckets are mutually exclusive: ``active`` means neither expired nor
expiring soon.

``quality_stats`` takes the ``[recommendations]`` thresholds from config.
``merge_proposals`` collapses records several algorithms made for the same
(user, product), keeping the one with the highest algorithm-weighted score.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable, Optional

from shopping_assistant.scoring.confidence import (
    ALGORITHM_WEIGHTS,
    HIGH_QUALITY_THRESHOLD,
    LOW_QUALITY_THRESHOLD,
    tier_counts,
)
from shopping_assistant.taxonomy.catalog_taxonomy import (
    ConfidenceLevel,
    InteractionType,
    RecommendationAlgorithm,
)
from shopping_assistant.utils.time_utils import resolve_now

if TYPE_CHECKING:
    from shopping_assistant.models.interaction import Interaction
    from shopping_assistant.models.recommendation import Recommendation

DEFAULT_EXPIRING_SOON_HOURS = 24
DEFAULT_FRESH_MAX_AGE_HOURS = 24


def _safe_ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


@dataclass(frozen=True)
class InteractionStats:
    """Counts and rates over a set of interactions.

    Attributes:
        total_interactions:  Number of interactions.
        views / likes / dislikes / favorites / ratings / purchases:
                             Count per interaction type.
        unique_products:     Distinct product ids touched.
        active_days:         Distinct UTC calendar days with activity.
        conversion_rate:     purchases / total_interactions (0 when empty).
        last_interaction_at: Latest timestamp, ``None`` for empty input.
    """

    total_interactions:  int = 0
    views:               int = 0
    likes:               int = 0
    dislikes:            int = 0
    favorites:           int = 0
    ratings:             int = 0
    purchases:           int = 0
    unique_products:     int = 0
    active_days:         int = 0
    conversion_rate:     float = 0.0
    last_interaction_at: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class EngagementAnalytics:
    """Funnel metrics for one product or one user.

    Attributes:
        total_interactions: Interactions in scope.
        views / likes / dislikes / purchases: Count per type.
        conversion_rate:    purchases / views (0 when views == 0).
        engagement_rate:    (likes + purchases) / views (0 when views == 0).
    """

    total_interactions: int
    views:              int
    likes:              int
    dislikes:           int
    purchases:          int
    conversion_rate:    float
    engagement_rate:    float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ExpirationStats:
    expired:       int = 0
    expiring_soon: int = 0
    active:        int = 0


@dataclass(frozen=True)
class RecommendationStats:
    """Summary of a recommendation population.

    Attributes:
        total_recommendations:  Records in the population.
        average_score:          Arithmetic mean score (0 when empty).
        high_confidence_count:  Records with score >= 0.8.
        medium_confidence_count:Records with 0.5 <= score < 0.8.
        low_confidence_count:   Records with score < 0.5.
        algorithm_distribution: Count per algorithm value; every algorithm
                                key is present.
        expiration_stats:       Mutually exclusive expiry buckets.
    """

    total_recommendations:   int = 0
    average_score:           float = 0.0
    high_confidence_count:   int = 0
    medium_confidence_count: int = 0
    low_confidence_count:    int = 0
    algorithm_distribution:  dict[str, int] = field(
        default_factory=lambda: {a.value: 0 for a in RecommendationAlgorithm}
    )
    expiration_stats:        ExpirationStats = field(default_factory=ExpirationStats)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QualityStats:
    """Quality and freshness counts under configurable thresholds.

    Attributes:
        high_quality: Records with ``score >= high_threshold``.
        low_quality:  Records below ``low_threshold`` or already expired.
        fresh:        Records younger than ``fresh_max_age_hours``.
        retained:     Records surviving ``filter_by_quality`` at
                      ``low_threshold`` with expired records dropped.
    """

    high_quality: int = 0
    low_quality:  int = 0
    fresh:        int = 0
    retained:     int = 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ── Interaction reductions ────────────────────────────────────────────────────


def interaction_stats(interactions: Iterable["Interaction"]) -> InteractionStats:
    """Count interactions by type and summarize activity.

    Args:
        interactions: Any iterable of ``Interaction``.

    Returns:
        InteractionStats; all-zero with ``last_interaction_at=None`` for
        empty input.
    """
    interactions = list(interactions)
    if not interactions:
        return InteractionStats()

    by_type = Counter(i.interaction_type for i in interactions)
    total = len(interactions)
    purchases = by_type[InteractionType.PURCHASE]

    return InteractionStats(
        total_interactions=total,
        views=by_type[InteractionType.VIEW],
        likes=by_type[InteractionType.LIKE],
        dislikes=by_type[InteractionType.DISLIKE],
        favorites=by_type[InteractionType.FAVORITE],
        ratings=by_type[InteractionType.RATING],
        purchases=purchases,
        unique_products=len({i.product_id for i in interactions}),
        active_days=len({i.timestamp.date() for i in interactions}),
        conversion_rate=_safe_ratio(purchases, total),
        last_interaction_at=max(i.timestamp for i in interactions),
    )


def _engagement(interactions: list["Interaction"]) -> EngagementAnalytics:
    by_type = Counter(i.interaction_type for i in interactions)
    views = by_type[InteractionType.VIEW]
    likes = by_type[InteractionType.LIKE]
    purchases = by_type[InteractionType.PURCHASE]
    return EngagementAnalytics(
        total_interactions=len(interactions),
        views=views,
        likes=likes,
        dislikes=by_type[InteractionType.DISLIKE],
        purchases=purchases,
        conversion_rate=_safe_ratio(purchases, views),
        engagement_rate=_safe_ratio(likes + purchases, views),
    )


def product_analytics(
    interactions: Iterable["Interaction"],
    product_id: int,
) -> EngagementAnalytics:
    """Funnel metrics for one product across all users."""
    return _engagement([i for i in interactions if i.product_id == product_id])


def user_analytics(
    interactions: Iterable["Interaction"],
    user_id: int,
) -> EngagementAnalytics:
    """Funnel metrics for one user across all products."""
    return _engagement([i for i in interactions if i.user_id == user_id])


# ── Recommendation reductions ─────────────────────────────────────────────────


def recommendation_stats(
    recommendations: Iterable["Recommendation"],
    expiring_soon_hours: float = DEFAULT_EXPIRING_SOON_HOURS,
    now: Optional[datetime] = None,
) -> RecommendationStats:
    """Summarize score, confidence, algorithm and expiry distribution.

    Args:
        recommendations:     Population to summarize.
        expiring_soon_hours: Horizon for the ``expiring_soon`` bucket.
        now:                 Clock reading shared by every record; defaults
                             to the current UTC time.

    Returns:
        RecommendationStats; zeroed (with every algorithm key) when empty.
    """
    recommendations = list(recommendations)
    if not recommendations:
        return RecommendationStats()

    now = resolve_now(now)
    scores = [r.score for r in recommendations]
    tiers = tier_counts(scores)

    algorithms = {a.value: 0 for a in RecommendationAlgorithm}
    for rec in recommendations:
        algorithms[rec.algorithm.value] += 1

    expired = expiring_soon = active = 0
    for rec in recommendations:
        if rec.is_expired(now):
            expired += 1
        elif rec.is_expiring_soon(expiring_soon_hours, now):
            expiring_soon += 1
        else:
            active += 1

    return RecommendationStats(
        total_recommendations=len(recommendations),
        average_score=sum(scores) / len(scores),
        high_confidence_count=tiers[ConfidenceLevel.HIGH],
        medium_confidence_count=tiers[ConfidenceLevel.MEDIUM],
        low_confidence_count=tiers[ConfidenceLevel.LOW],
        algorithm_distribution=algorithms,
        expiration_stats=ExpirationStats(
            expired=expired, expiring_soon=expiring_soon, active=active
        ),
    )


def filter_by_quality(
    recommendations: Iterable["Recommendation"],
    min_score: float = LOW_QUALITY_THRESHOLD,
    exclude_expired: bool = False,
    now: Optional[datetime] = None,
) -> list["Recommendation"]:
    """Keep records with ``score >= min_score``, optionally dropping expired ones."""
    now = resolve_now(now)
    return [
        rec for rec in recommendations
        if rec.score >= min_score and not (exclude_expired and rec.is_expired(now))
    ]


def quality_stats(
    recommendations: Iterable["Recommendation"],
    high_threshold: float = HIGH_QUALITY_THRESHOLD,
    low_threshold: float = LOW_QUALITY_THRESHOLD,
    fresh_max_age_hours: float = DEFAULT_FRESH_MAX_AGE_HOURS,
    now: Optional[datetime] = None,
) -> QualityStats:
    """Count high/low quality and fresh records against one clock reading."""
    recommendations = list(recommendations)
    now = resolve_now(now)
    return QualityStats(
        high_quality=sum(r.is_high_quality(high_threshold) for r in recommendations),
        low_quality=sum(r.is_low_quality(low_threshold, now) for r in recommendations),
        fresh=sum(r.is_fresh(fresh_max_age_hours, now) for r in recommendations),
        retained=len(
            filter_by_quality(recommendations, low_threshold, exclude_expired=True, now=now)
        ),
    )


def merge_proposals(
    recommendations: Iterable["Recommendation"],
) -> list["Recommendation"]:
    """Keep one record per (user, product) when several algorithms propose it.

    The survivor maximizes ``score * ALGORITHM_WEIGHTS[algorithm]``; on a tie
    the earlier record wins. Survivors keep the position of the first
    proposal for their pair.
    """
    best: dict[tuple[int, int], "Recommendation"] = {}
    for rec in recommendations:
        key = (rec.user_id, rec.product_id)
        current = best.get(key)
        if current is None or _weighted(rec) > _weighted(current):
            best[key] = rec
    return list(best.values())


def _weighted(rec: "Recommendation") -> float:
    return rec.score * ALGORITHM_WEIGHTS[rec.algorithm]


def sort_by_score(
    recommendations: Iterable["Recommendation"],
    descending: bool = True,
) -> list["Recommendation"]:
    """Stable sort by score; equal scores keep their input order."""
    return sorted(recommendations, key=lambda r: r.score, reverse=descending)
