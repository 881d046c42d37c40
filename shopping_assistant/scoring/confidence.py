"""
Confidence tiering, quality thresholds and human-readable reasons for
recommendation scores.

Confidence tiers (partition of [0, 1])
--------------------------------------
    high   : score >= 0.8
    medium : 0.5 <= score < 0.8
    low    : score < 0.5

Quality thresholds (independent of the tiers)
---------------------------------------------
    high quality : score >= 0.7
    low quality  : score < 0.3   (expiry also makes a record low quality)

Reasons
-------
Each algorithm has a sentence template with an intensity adverb picked from
the confidence tier (high "strongly", medium "moderately", low "somewhat").
Scores below ``REASON_FLOOR`` (0.2) get a fixed "not recommended" sentence
instead; the confidence tier itself stays three-valued.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from shopping_assistant.taxonomy.catalog_taxonomy import ConfidenceLevel, RecommendationAlgorithm

if TYPE_CHECKING:
    from shopping_assistant.scoring.preference_matcher import MatchComponents

HIGH_CONFIDENCE_THRESHOLD = 0.8
MEDIUM_CONFIDENCE_THRESHOLD = 0.5

HIGH_QUALITY_THRESHOLD = 0.7
LOW_QUALITY_THRESHOLD = 0.3

REASON_FLOOR = 0.2

NOT_RECOMMENDED_REASON = "This product is not recommended for you"

# Relative importance of each algorithm when several propose the same product
# (see stats.merge_proposals)
ALGORITHM_WEIGHTS: dict[RecommendationAlgorithm, float] = {
    RecommendationAlgorithm.COLLABORATIVE: 0.4,
    RecommendationAlgorithm.CONTENT_BASED: 0.3,
    RecommendationAlgorithm.HYBRID:        0.2,
    RecommendationAlgorithm.POPULARITY:    0.1,
}

_INTENSITY: dict[ConfidenceLevel, str] = {
    ConfidenceLevel.HIGH:   "strongly",
    ConfidenceLevel.MEDIUM: "moderately",
    ConfidenceLevel.LOW:    "somewhat",
}

_REASON_TEMPLATES: dict[RecommendationAlgorithm, str] = {
    RecommendationAlgorithm.COLLABORATIVE:
        "Users with similar preferences {adverb} liked this product",
    RecommendationAlgorithm.CONTENT_BASED:
        "This product {adverb} matches your preferences",
    RecommendationAlgorithm.HYBRID:
        "Based on your preferences and similar users, "
        "this product {adverb} matches your interests",
    RecommendationAlgorithm.POPULARITY:
        "This product is {adverb} popular with other shoppers",
}


def confidence_level(score: float) -> ConfidenceLevel:
    """Map a score to its confidence tier (lower bounds inclusive)."""
    if score >= HIGH_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.HIGH
    if score >= MEDIUM_CONFIDENCE_THRESHOLD:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def intensity_adverb(level: ConfidenceLevel) -> str:
    return _INTENSITY[level]


def is_high_quality(score: float, threshold: float = HIGH_QUALITY_THRESHOLD) -> bool:
    return score >= threshold


def is_low_quality_score(score: float, threshold: float = LOW_QUALITY_THRESHOLD) -> bool:
    return score < threshold


def build_reason(
    algorithm: RecommendationAlgorithm,
    score: float,
    reason_floor: float = REASON_FLOOR,
) -> str:
    """Assemble the short explanation shown next to a recommendation.

    Args:
        algorithm:    Strategy that produced the score.
        score:        Recommendation score in ``[0, 1]``.
        reason_floor: Scores below this get ``NOT_RECOMMENDED_REASON``.

    Returns:
        Non-empty sentence, e.g.
        ``"This product strongly matches your preferences"``.
    """
    if score < reason_floor:
        return NOT_RECOMMENDED_REASON
    adverb = intensity_adverb(confidence_level(score))
    return _REASON_TEMPLATES[algorithm].format(adverb=adverb)


def content_reason(
    components: "MatchComponents",
    category: str,
    brand: str,
    score: float,
) -> str:
    """Detailed content-based explanation listing the matched dimensions.

    Returns e.g. ``"Recommended because it matches your Electronics
    preferences and is from your preferred brand Apple"``; when nothing but
    the style matched, falls back to ``"Recommended based on your preferences
    (10% match)"``.
    """
    parts: list[str] = []
    if components.category_hit:
        parts.append(f"matches your {category} preferences")
    if components.brand_hit:
        parts.append(f"is from your preferred brand {brand}")
    if components.price_hit:
        parts.append("is within your price range")
    if parts:
        return "Recommended because it " + " and ".join(parts)
    return f"Recommended based on your preferences ({score:.0%} match)"


def tier_counts(scores: list[float]) -> dict[ConfidenceLevel, int]:
    """Count scores per confidence tier; every tier key is present."""
    counts = {level: 0 for level in ConfidenceLevel}
    for s in scores:
        counts[confidence_level(s)] += 1
    return counts
