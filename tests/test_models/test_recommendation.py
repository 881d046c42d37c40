"""
Tests for Recommendation and RecommendationResult.

What we test
------------
1. Construction: score bounds, expiry after creation, create()/TTL.
2. Expiration: is_expired boundary, hours_until_expiration clamp,
   expiring-soon horizon, signed extend_expiration (never clamped),
   shortened records reloading through from_record.
3. Freshness: fractional age, strict max-age comparison.
4. Scoring semantics: confidence tiers, quality flags (expiry makes a record
   low quality but never affects high quality), reason text.
5. update_from: validation, no-op detection, unchanged state on failure.
"""

from __future__ import annotations

from datetime import timedelta

import pytest
from pydantic import ValidationError

from shopping_assistant.models.recommendation import Recommendation, RecommendationResult
from shopping_assistant.models.validation import EntityValidationError
from shopping_assistant.scoring.confidence import NOT_RECOMMENDED_REASON
from shopping_assistant.taxonomy.catalog_taxonomy import ConfidenceLevel, RecommendationAlgorithm


def _rec(now, score=0.5, created_hours_ago=1.0, ttl_hours=24.0,
         algorithm=RecommendationAlgorithm.HYBRID) -> Recommendation:
    created = now - timedelta(hours=created_hours_ago)
    return Recommendation(
        user_id=1,
        product_id=2,
        score=score,
        algorithm=algorithm,
        created_at=created,
        expires_at=created + timedelta(hours=ttl_hours),
    )


class TestConstruction:
    def test_create_sets_ttl(self, now):
        rec = Recommendation.create(1, 2, 0.7, RecommendationAlgorithm.POPULARITY, now=now)
        assert rec.created_at == now
        assert rec.expires_at == now + timedelta(hours=24)
        assert rec.id == 0

    def test_create_custom_ttl(self, now):
        rec = Recommendation.create(1, 2, 0.7, "collaborative", ttl_hours=6, now=now)
        assert rec.algorithm is RecommendationAlgorithm.COLLABORATIVE
        assert rec.hours_until_expiration(now) == pytest.approx(6.0)

    def test_default_expiration(self, now):
        assert Recommendation.default_expiration(now=now) == now + timedelta(hours=24)
        assert Recommendation.default_expiration(2, now) == now + timedelta(hours=2)

    @pytest.mark.parametrize("score", [0.0, 1.0])
    def test_score_bounds_inclusive(self, now, score):
        assert _rec(now, score=score).score == score

    @pytest.mark.parametrize("score", [-0.01, 1.01])
    def test_score_out_of_bounds_raises(self, now, score):
        with pytest.raises(ValidationError, match="Score must be between 0 and 1"):
            _rec(now, score=score)

    def test_expiry_not_after_creation_raises(self, now):
        with pytest.raises(ValidationError, match="Expires at must be after created at"):
            Recommendation(
                user_id=1, product_id=2, score=0.5, algorithm="hybrid",
                created_at=now, expires_at=now,
            )

    def test_unknown_algorithm_raises(self, now):
        with pytest.raises(ValidationError):
            _rec(now, algorithm="random")

    def test_validation_errors_lists_all(self, now):
        errors = Recommendation.validation_errors(
            {"score": "high", "algorithm": "random", "expires_at": now}
        )
        assert errors == [
            "Score must be a valid number",
            "Algorithm must be one of: collaborative, content-based, hybrid, popularity",
        ]

    def test_popularity_is_valid(self):
        assert Recommendation.validation_errors({"algorithm": "popularity"}) == []


class TestExpiration:
    def test_not_expired(self, sample_recommendation, now):
        assert not sample_recommendation.is_expired(now)
        assert sample_recommendation.hours_until_expiration(now) == pytest.approx(23.0)

    def test_expired_at_exact_boundary(self, sample_recommendation):
        assert sample_recommendation.is_expired(sample_recommendation.expires_at)

    def test_just_expired_scenario(self, now):
        rec = Recommendation(
            user_id=1, product_id=2, score=0.9, algorithm="hybrid",
            created_at=now - timedelta(hours=1),
            expires_at=now - timedelta(seconds=1),
        )
        assert rec.is_expired(now)
        assert rec.is_low_quality(now=now)
        assert rec.is_high_quality()
        assert rec.hours_until_expiration(now) == 0.0

    def test_hours_until_expiration_fractional(self, now):
        rec = _rec(now, created_hours_ago=0, ttl_hours=1.5)
        assert rec.hours_until_expiration(now) == pytest.approx(1.5)

    def test_expiring_soon(self, now):
        rec = _rec(now, created_hours_ago=0, ttl_hours=48)
        assert not rec.is_expiring_soon(24, now)
        assert rec.is_expiring_soon(48, now)
        assert rec.is_expiring_soon(24, now + timedelta(hours=30))

    def test_expired_is_not_expiring_soon(self, now):
        rec = _rec(now, created_hours_ago=30, ttl_hours=24)
        assert rec.is_expired(now)
        assert not rec.is_expiring_soon(24, now)

    def test_extend_expiration_forward(self, sample_recommendation):
        before = sample_recommendation.expires_at
        sample_recommendation.extend_expiration(12)
        assert sample_recommendation.expires_at == before + timedelta(hours=12)

    def test_negative_extension_not_clamped(self, sample_recommendation):
        before = sample_recommendation.expires_at
        sample_recommendation.extend_expiration(-12)
        assert sample_recommendation.expires_at == before - timedelta(hours=12)
        sample_recommendation.extend_expiration(-48)
        assert sample_recommendation.expires_at < sample_recommendation.created_at

    def test_shortened_record_reloads_from_dump(self, sample_recommendation, now):
        sample_recommendation.extend_expiration(-48)
        dumped = sample_recommendation.model_dump(mode="json")

        with pytest.raises(ValidationError, match="Expires at must be after created at"):
            Recommendation.model_validate(dumped)

        reloaded = Recommendation.from_record(dumped)
        assert reloaded == sample_recommendation
        assert reloaded.is_expired(now)

    def test_from_record_still_checks_fields(self, sample_recommendation):
        dumped = sample_recommendation.model_dump(mode="json")
        dumped["score"] = 1.5
        with pytest.raises(ValidationError, match="Score must be between 0 and 1"):
            Recommendation.from_record(dumped)

    def test_is_expired_monotonic(self, sample_recommendation, now):
        assert not sample_recommendation.is_expired(now)
        later = [now + timedelta(hours=h) for h in (22, 23, 24, 100)]
        flags = [sample_recommendation.is_expired(t) for t in later]
        assert flags == [False, True, True, True]


class TestFreshness:
    def test_age_in_hours(self, sample_recommendation, now):
        assert sample_recommendation.age_in_hours(now) == pytest.approx(1.0)

    def test_is_fresh_strict(self, now):
        rec = _rec(now, created_hours_ago=24, ttl_hours=48)
        assert not rec.is_fresh(24, now)
        assert rec.is_fresh(24.5, now)


class TestScoringSemantics:
    @pytest.mark.parametrize(
        "score, level",
        [
            (1.0, ConfidenceLevel.HIGH),
            (0.8, ConfidenceLevel.HIGH),
            (0.79, ConfidenceLevel.MEDIUM),
            (0.5, ConfidenceLevel.MEDIUM),
            (0.49, ConfidenceLevel.LOW),
            (0.0, ConfidenceLevel.LOW),
        ],
    )
    def test_confidence_tiers(self, now, score, level):
        assert _rec(now, score=score).confidence_level() is level

    def test_quality_thresholds(self, now):
        assert _rec(now, score=0.7).is_high_quality()
        assert not _rec(now, score=0.69).is_high_quality()
        assert _rec(now, score=0.29).is_low_quality(now=now)
        assert not _rec(now, score=0.3).is_low_quality(now=now)

    def test_reason_uses_intensity(self, now):
        rec = _rec(now, score=0.9, algorithm=RecommendationAlgorithm.CONTENT_BASED)
        assert rec.reason() == "This product strongly matches your preferences"

    def test_reason_below_floor(self, now):
        assert _rec(now, score=0.1).reason() == NOT_RECOMMENDED_REASON

    def test_result(self, sample_recommendation):
        result = sample_recommendation.result()
        assert isinstance(result, RecommendationResult)
        assert result.product_id == 10
        assert result.confidence is ConfidenceLevel.HIGH
        assert result.expires_at == sample_recommendation.expires_at
        assert "strongly" in result.reason


class TestUpdateFrom:
    def test_update_score(self, sample_recommendation):
        assert sample_recommendation.update_from({"score": 0.4}) is True
        assert sample_recommendation.score == 0.4

    def test_update_same_values_is_noop(self, sample_recommendation):
        assert sample_recommendation.update_from(
            {"score": 0.85, "expires_at": sample_recommendation.expires_at}
        ) is False

    def test_invalid_score_leaves_state(self, sample_recommendation):
        with pytest.raises(EntityValidationError, match="between 0 and 1"):
            sample_recommendation.update_from({"score": 1.5})
        assert sample_recommendation.score == 0.85

    def test_expiry_before_creation_rejected(self, sample_recommendation):
        before = sample_recommendation.expires_at
        with pytest.raises(EntityValidationError) as exc_info:
            sample_recommendation.update_from(
                {"score": 0.5,
                 "expires_at": sample_recommendation.created_at - timedelta(hours=1)}
            )
        assert exc_info.value.errors == ["Expires at must be after created at"]
        assert sample_recommendation.expires_at == before
        assert sample_recommendation.score == 0.85
