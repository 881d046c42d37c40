"""
Tests for shopping_assistant.scoring.stats.

What we test
------------
1. interaction_stats: per-type counts, unique products, active days,
   conversion rate, empty input.
2. product_analytics / user_analytics: funnel rates with zero-view guard.
3. recommendation_stats: average, tier counts, algorithm distribution with
   every key, mutually exclusive expiry buckets.
4. filter_by_quality and sort_by_score (stable).
5. quality_stats under default and custom thresholds.
6. merge_proposals: algorithm-weighted survivor, first-seen order.
7. to_dict serialization.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from shopping_assistant.models.recommendation import Recommendation
from shopping_assistant.scoring.stats import (
    QualityStats,
    filter_by_quality,
    interaction_stats,
    merge_proposals,
    product_analytics,
    quality_stats,
    recommendation_stats,
    sort_by_score,
    user_analytics,
)
from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType, RecommendationAlgorithm

V, L, D, F, R, P = (
    InteractionType.VIEW,
    InteractionType.LIKE,
    InteractionType.DISLIKE,
    InteractionType.FAVORITE,
    InteractionType.RATING,
    InteractionType.PURCHASE,
)


def _rec(now, product_id, score, algorithm="hybrid", created_hours_ago=1, ttl_hours=24):
    return Recommendation.create(
        user_id=1,
        product_id=product_id,
        score=score,
        algorithm=algorithm,
        ttl_hours=ttl_hours,
        now=now - timedelta(hours=created_hours_ago),
    )


class TestInteractionStats:
    def test_empty(self):
        stats = interaction_stats([])
        assert stats.total_interactions == 0
        assert stats.conversion_rate == 0.0
        assert stats.last_interaction_at is None

    def test_counts(self, interaction_factory, now):
        interactions = [
            interaction_factory(1, 1, V, days_ago=5),
            interaction_factory(1, 1, L, days_ago=5),
            interaction_factory(1, 2, F, days_ago=2),
            interaction_factory(1, 2, R, days_ago=2, rating=4),
            interaction_factory(1, 3, P, days_ago=1),
            interaction_factory(1, 3, D, days_ago=1),
        ]
        stats = interaction_stats(interactions)
        assert stats.total_interactions == 6
        assert (stats.views, stats.likes, stats.dislikes) == (1, 1, 1)
        assert (stats.favorites, stats.ratings, stats.purchases) == (1, 1, 1)
        assert stats.unique_products == 3
        assert stats.active_days == 3
        assert stats.conversion_rate == pytest.approx(1 / 6)
        assert stats.last_interaction_at == now - timedelta(days=1)

    def test_to_dict(self, interaction_factory):
        data = interaction_stats([interaction_factory(1, 1, V)]).to_dict()
        assert data["views"] == 1
        assert "last_interaction_at" in data


class TestEngagementAnalytics:
    def test_product_funnel(self, interaction_factory):
        interactions = [
            interaction_factory(1, 7, V),
            interaction_factory(2, 7, V),
            interaction_factory(3, 7, L),
            interaction_factory(4, 7, D),
            interaction_factory(5, 7, P),
            interaction_factory(5, 8, P),
        ]
        analytics = product_analytics(interactions, 7)
        assert analytics.total_interactions == 5
        assert analytics.views == 2
        assert analytics.likes == 1
        assert analytics.dislikes == 1
        assert analytics.purchases == 1
        assert analytics.conversion_rate == pytest.approx(0.5)
        assert analytics.engagement_rate == pytest.approx(1.0)

    def test_zero_views_gives_zero_rates(self, interaction_factory):
        analytics = product_analytics([interaction_factory(1, 7, P)], 7)
        assert analytics.purchases == 1
        assert analytics.conversion_rate == 0.0
        assert analytics.engagement_rate == 0.0

    def test_unknown_product(self, interaction_factory):
        analytics = product_analytics([interaction_factory(1, 7, V)], 99)
        assert analytics.total_interactions == 0
        assert analytics.conversion_rate == 0.0

    def test_user_scope(self, interaction_factory):
        interactions = [
            interaction_factory(1, 1, V),
            interaction_factory(1, 2, V),
            interaction_factory(1, 2, L),
            interaction_factory(2, 1, P),
        ]
        analytics = user_analytics(interactions, 1)
        assert analytics.total_interactions == 3
        assert analytics.engagement_rate == pytest.approx(0.5)
        assert analytics.to_dict()["views"] == 2


class TestRecommendationStats:
    def test_empty(self):
        stats = recommendation_stats([])
        assert stats.total_recommendations == 0
        assert stats.average_score == 0.0
        assert stats.algorithm_distribution == {a.value: 0 for a in RecommendationAlgorithm}
        assert stats.expiration_stats.active == 0

    def test_mixed_population(self, now):
        recs = [
            _rec(now, 1, 0.9),
            _rec(now, 2, 0.6, algorithm="popularity"),
            _rec(now, 3, 0.3, algorithm="collaborative"),
            _rec(now, 4, 0.8, created_hours_ago=48),  # expired
        ]
        stats = recommendation_stats(recs, now=now)
        assert stats.total_recommendations == 4
        assert stats.average_score == pytest.approx(0.65)
        assert stats.high_confidence_count == 2
        assert stats.medium_confidence_count == 1
        assert stats.low_confidence_count == 1
        assert stats.algorithm_distribution == {
            "collaborative": 1,
            "content-based": 0,
            "hybrid": 2,
            "popularity": 1,
        }
        assert stats.expiration_stats.expired == 1

    def test_expiry_buckets_are_exclusive(self, now):
        recs = [
            _rec(now, 1, 0.5, created_hours_ago=0, ttl_hours=72),   # active
            _rec(now, 2, 0.5, created_hours_ago=0, ttl_hours=12),   # expiring soon
            _rec(now, 3, 0.5, created_hours_ago=30, ttl_hours=24),  # expired
        ]
        buckets = recommendation_stats(recs, now=now).expiration_stats
        assert (buckets.active, buckets.expiring_soon, buckets.expired) == (1, 1, 1)
        assert buckets.active + buckets.expiring_soon + buckets.expired == len(recs)

    def test_custom_expiring_soon_horizon(self, now):
        recs = [_rec(now, 1, 0.5, created_hours_ago=0, ttl_hours=72)]
        buckets = recommendation_stats(recs, expiring_soon_hours=96, now=now).expiration_stats
        assert buckets.expiring_soon == 1

    def test_to_dict_nested(self, now):
        data = recommendation_stats([_rec(now, 1, 0.9)], now=now).to_dict()
        assert data["expiration_stats"] == {"expired": 0, "expiring_soon": 1, "active": 0}


class TestFilteringAndSorting:
    def test_filter_by_quality_default_keeps_expired(self, now):
        recs = [
            _rec(now, 1, 0.9, created_hours_ago=48),
            _rec(now, 2, 0.3),
            _rec(now, 3, 0.29),
        ]
        kept = filter_by_quality(recs, now=now)
        assert [r.product_id for r in kept] == [1, 2]

    def test_filter_by_quality_exclude_expired(self, now):
        recs = [_rec(now, 1, 0.9, created_hours_ago=48), _rec(now, 2, 0.9)]
        kept = filter_by_quality(recs, min_score=0.5, exclude_expired=True, now=now)
        assert [r.product_id for r in kept] == [2]

    def test_sort_descending_stable(self, now):
        recs = [_rec(now, 1, 0.5), _rec(now, 2, 0.9), _rec(now, 3, 0.5), _rec(now, 4, 0.1)]
        assert [r.product_id for r in sort_by_score(recs)] == [2, 1, 3, 4]

    def test_sort_ascending_stable(self, now):
        recs = [_rec(now, 1, 0.5), _rec(now, 2, 0.9), _rec(now, 3, 0.5)]
        assert [r.product_id for r in sort_by_score(recs, descending=False)] == [1, 3, 2]


class TestQualityStats:
    @pytest.fixture
    def recs(self, now):
        return [
            _rec(now, 1, 0.9, created_hours_ago=48),  # expired, stale
            _rec(now, 2, 0.5),
            _rec(now, 3, 0.2),
        ]

    def test_default_thresholds(self, recs, now):
        assert quality_stats(recs, now=now) == QualityStats(
            high_quality=1, low_quality=2, fresh=2, retained=1
        )

    def test_custom_thresholds(self, recs, now):
        stats = quality_stats(
            recs, high_threshold=0.5, low_threshold=0.1, fresh_max_age_hours=0.5, now=now
        )
        assert stats.to_dict() == {
            "high_quality": 2, "low_quality": 1, "fresh": 0, "retained": 2,
        }

    def test_empty(self):
        assert quality_stats([]) == QualityStats()


class TestMergeProposals:
    def test_weighted_algorithm_wins(self, now):
        collab = _rec(now, 1, 0.5, algorithm="collaborative")  # 0.5 * 0.4 = 0.20
        other = _rec(now, 2, 0.6)
        content = _rec(now, 1, 0.9, algorithm="content-based")  # 0.9 * 0.3 = 0.27
        merged = merge_proposals([collab, other, content])
        assert merged == [content, other]

    def test_higher_score_beats_heavier_algorithm(self, now):
        collab = _rec(now, 1, 0.2, algorithm="collaborative")
        popular = _rec(now, 1, 0.9, algorithm="popularity")
        assert merge_proposals([popular, collab]) == [popular]

    def test_tie_keeps_earlier_record(self, now):
        first = _rec(now, 1, 0.5)
        second = _rec(now, 1, 0.5)
        assert merge_proposals([first, second])[0] is first

    def test_users_kept_apart(self, now):
        mine = _rec(now, 1, 0.5)
        theirs = Recommendation.create(2, 1, 0.5, RecommendationAlgorithm.HYBRID, now=now)
        assert merge_proposals([mine, theirs]) == [mine, theirs]
