"""
Candidate ranker: scores catalog candidates for one user under one algorithm
and builds ``Recommendation`` records from the survivors.

Usage flow
----------
1. rank_candidates(preferences, products, algorithm, interactions, config)
   -> list[ScoredCandidate]  (filtered, scored, sorted, truncated)

2. build_recommendations(candidates, user_id, config)
   -> list[Recommendation]  (TTL from config, ready for persistence)

Signals (all in [0, 1])
-----------------------
content-based : preference match score (category/brand/price/style)
collaborative : clamp(sum(weight(i) * similarity(i)), 0, 1) over recent peer
                interactions with the product; ``similarity`` comes from the
                interaction's metadata and defaults to 1.0
popularity    : min(recent non-negative interactions / saturation, 1)
hybrid        : weighted blend of the three with ``hybrid_weights``

Exclusions
----------
- Products failing the optional ``ProductFilters``.
- Unavailable products.
- Products the user has disliked.
- Candidates whose score is below ``min_score`` (counted and logged).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from shopping_assistant.config import AppConfig
from shopping_assistant.models.interaction import Interaction
from shopping_assistant.models.preferences import UserPreferences
from shopping_assistant.models.product import Product, ProductFilters
from shopping_assistant.models.recommendation import Recommendation
from shopping_assistant.scoring.confidence import (
    NOT_RECOMMENDED_REASON,
    build_reason,
    content_reason,
)
from shopping_assistant.scoring.preference_matcher import MatchComponents, match_components
from shopping_assistant.scoring.product_filter import filter_products
from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType, RecommendationAlgorithm
from shopping_assistant.utils.time_utils import resolve_now

logger = logging.getLogger(__name__)

DEFAULT_SIMILARITY = 1.0


@dataclass
class ScoredCandidate:
    """A candidate product with its score breakdown.

    Attributes:
        product:    The scored catalog product.
        algorithm:  Strategy whose signal became ``score``.
        score:      Final score in ``[0, 1]``.
        signals:    Every per-algorithm signal, keyed by algorithm value.
        match:      Preference match breakdown (content dimensions).
        reason:     Human-readable explanation.
    """

    product:   Product
    algorithm: RecommendationAlgorithm
    score:     float
    signals:   dict[str, float]
    match:     MatchComponents
    reason:    str


def _clamp(value: float, lo: float = 0.0, hi: float = 1.0) -> float:
    return max(lo, min(hi, value))


def _similarity(interaction: Interaction) -> float:
    value = interaction.get_metadata_value("similarity", DEFAULT_SIMILARITY)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_SIMILARITY
    return float(value)


# ── Signals ───────────────────────────────────────────────────────────────────


def collaborative_signal(
    peer_interactions: Iterable[Interaction],
    product_id: int,
    weight_overrides: Optional[Mapping[str, float]] = None,
) -> float:
    """Similarity-weighted peer interaction signal for one product."""
    total = sum(
        i.weight(weight_overrides) * _similarity(i)
        for i in peer_interactions
        if i.product_id == product_id
    )
    return _clamp(round(total, 10))


def popularity_signal(
    interactions: Iterable[Interaction],
    product_id: int,
    saturation: int,
) -> float:
    """Saturating count of non-negative interactions with one product."""
    count = sum(
        1 for i in interactions
        if i.product_id == product_id and not i.is_negative()
    )
    return min(count / saturation, 1.0)


def hybrid_score(signals: Mapping[str, float], weights: Mapping[str, float]) -> float:
    """Blend per-algorithm signals; missing signals count as 0."""
    blended = sum(w * signals.get(name, 0.0) for name, w in weights.items())
    return _clamp(round(blended, 10))


def disliked_product_ids(interactions: Iterable[Interaction], user_id: int) -> set[int]:
    return {
        i.product_id for i in interactions
        if i.user_id == user_id and i.interaction_type == InteractionType.DISLIKE
    }


# ── Scoring ───────────────────────────────────────────────────────────────────


def score_candidate(
    preferences:       UserPreferences,
    product:           Product,
    algorithm:         RecommendationAlgorithm,
    peer_interactions: list[Interaction],
    config:            AppConfig,
) -> ScoredCandidate:
    """Compute every signal for ``product`` and pick the one ``algorithm`` uses.

    Args:
        preferences:       The target user's preferences.
        product:           Candidate product.
        algorithm:         Strategy to score with.
        peer_interactions: Recent interactions by other users.
        config:            Application config (weights, saturation, floors).

    Returns:
        ScoredCandidate; never filtered here.
    """
    scoring = config.scoring
    match = match_components(preferences, product)
    signals = {
        RecommendationAlgorithm.CONTENT_BASED.value: match.score,
        RecommendationAlgorithm.COLLABORATIVE.value: collaborative_signal(
            peer_interactions, product.id, scoring.interaction_weights
        ),
        RecommendationAlgorithm.POPULARITY.value: popularity_signal(
            peer_interactions, product.id, scoring.popularity_saturation
        ),
    }

    if algorithm == RecommendationAlgorithm.HYBRID:
        score = hybrid_score(signals, scoring.hybrid_weights)
    else:
        score = signals[algorithm.value]

    if algorithm == RecommendationAlgorithm.CONTENT_BASED:
        if score < scoring.reason_floor:
            reason = NOT_RECOMMENDED_REASON
        else:
            reason = content_reason(match, product.category, product.brand, score)
    else:
        reason = build_reason(algorithm, score, scoring.reason_floor)

    return ScoredCandidate(
        product=product,
        algorithm=algorithm,
        score=score,
        signals=signals,
        match=match,
        reason=reason,
    )


def rank_candidates(
    preferences:  UserPreferences,
    products:     Iterable[Product],
    algorithm:    RecommendationAlgorithm,
    interactions: Iterable[Interaction] = (),
    config:       Optional[AppConfig] = None,
    filters:      Optional[ProductFilters] = None,
    limit:        Optional[int] = None,
    now:          Optional[datetime] = None,
) -> list[ScoredCandidate]:
    """Filter, score and rank candidates for ``preferences.user_id``.

    Args:
        preferences:  Target user's preferences.
        products:     Candidate products (discovery happens upstream).
        algorithm:    Scoring strategy.
        interactions: Interactions from every user; the target user's own
                      dislikes exclude products, other users' recent
                      interactions feed the collaborative and popularity
                      signals.
        config:       Application config; defaults to ``AppConfig()``.
        filters:      Optional pre-filter.
        limit:        Max candidates returned; defaults to
                      ``config.scoring.default_limit``.
        now:          Clock reading for the recency window.

    Returns:
        Candidates sorted by score descending, ties broken by product id.

    Raises:
        ValueError: If ``limit`` is negative.
    """
    config = config or AppConfig()
    scoring = config.scoring
    limit = scoring.default_limit if limit is None else limit
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}.")
    now = resolve_now(now)
    user_id = preferences.user_id

    products = list(products)
    interactions = list(interactions)

    if filters is not None:
        products = filter_products(products, filters)

    disliked = disliked_product_ids(interactions, user_id)
    peers = [
        i for i in interactions
        if i.user_id != user_id and i.is_recent(scoring.recency_window_days, now)
    ]

    candidates: list[ScoredCandidate] = []
    n_rejected = 0
    n_excluded = 0
    for product in products:
        if not product.is_available() or product.id in disliked:
            n_excluded += 1
            continue
        candidate = score_candidate(preferences, product, algorithm, peers, config)
        logger.debug(
            "Candidate product=%d algorithm=%s score=%.4f",
            product.id, algorithm.value, candidate.score,
            extra={
                "user_id": user_id,
                "product_id": product.id,
                "algorithm": algorithm.value,
                "score": round(candidate.score, 4),
                "signals": candidate.signals,
            },
        )
        if candidate.score < scoring.min_score:
            n_rejected += 1
            continue
        candidates.append(candidate)

    candidates.sort(key=lambda c: (-c.score, c.product.id))

    logger.info(
        "Ranked %d candidates for user %d (%s): %d excluded, %d below min_score %.2f",
        len(candidates), user_id, algorithm.value, n_excluded, n_rejected, scoring.min_score,
    )
    return candidates[:limit]


def build_recommendations(
    candidates: Iterable[ScoredCandidate],
    user_id:    int,
    config:     Optional[AppConfig] = None,
    now:        Optional[datetime] = None,
) -> list[Recommendation]:
    """Convert ranked candidates into ``Recommendation`` records.

    Every record shares one ``created_at`` and expires after
    ``config.recommendations.default_ttl_hours``.
    """
    config = config or AppConfig()
    now = resolve_now(now)
    return [
        Recommendation.create(
            user_id=user_id,
            product_id=c.product.id,
            score=c.score,
            algorithm=c.algorithm,
            ttl_hours=config.recommendations.default_ttl_hours,
            now=now,
        )
        for c in candidates
    ]
