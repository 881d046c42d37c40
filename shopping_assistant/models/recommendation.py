"""
Recommendation models.

``Recommendation`` is one scored (user, product) pairing produced by a single
algorithm. It carries a bounded score in ``[0, 1]`` and a validity window
``[created_at, expires_at)``.

Lifecycle (time-driven, no stored state field)
----------------------------------------------
  Active       : not expired and more than the horizon away from expiry
  ExpiringSoon : not expired, ``hours_until_expiration() <= horizon``
  Expired      : ``now >= expires_at`` (terminal unless extended)

``extend_expiration(hours)`` shifts ``expires_at`` by a signed number of
hours. Negative deltas are allowed and are not clamped to ``created_at``;
administrative decay relies on pulling expiry earlier.

``RecommendationResult`` is the frozen, externally consumed shape returned by
``Recommendation.result()``.

Every time-dependent method takes an optional ``now`` (UTC) so callers can
evaluate a whole population against a single clock reading.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from shopping_assistant.models.validation import (
    is_number,
    is_positive_int,
    is_valid_datetime,
    raise_if_invalid,
)
from shopping_assistant.scoring import confidence
from shopping_assistant.taxonomy.catalog_taxonomy import ConfidenceLevel, RecommendationAlgorithm
from shopping_assistant.utils.time_utils import (
    add_hours,
    ensure_utc,
    hours_between,
    resolve_now,
    utcnow,
)

DEFAULT_TTL_HOURS = 24
DEFAULT_EXPIRING_SOON_HOURS = 24
DEFAULT_FRESH_MAX_AGE_HOURS = 24

VALID_ALGORITHMS = frozenset(a.value for a in RecommendationAlgorithm)

# Validation context for reloading persisted records; see Recommendation.from_record
STORED_RECORD_CONTEXT = {"stored_record": True}


class RecommendationResult(BaseModel):
    """API-facing view of a recommendation.

    Attributes:
        product_id: Recommended product.
        score: Score in ``[0, 1]``.
        algorithm: Producing strategy.
        confidence: Confidence tier derived from ``score``.
        reason: Human-readable explanation.
        expires_at: UTC expiry time.
    """

    model_config = ConfigDict(frozen=True)

    product_id: int
    score: float
    algorithm: RecommendationAlgorithm
    confidence: ConfidenceLevel
    reason: str
    expires_at: datetime


class Recommendation(BaseModel):
    """A scored product recommendation for one user.

    Attributes:
        id: Persistence PK; ``0`` before insertion.
        user_id: Recipient user (positive).
        product_id: Recommended product (positive).
        score: Bounded score, ``0 <= score <= 1``.
        algorithm: Producing strategy.
        created_at: UTC creation time.
        expires_at: UTC expiry time; after ``created_at`` at construction.
    """

    # Not frozen: score/expiry change through update_from() and extend_expiration()
    model_config = ConfigDict(frozen=False)

    id: int = 0
    user_id: int
    product_id: int
    score: float
    algorithm: RecommendationAlgorithm
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime

    @field_validator("created_at", "expires_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_recommendation(self, info: ValidationInfo) -> "Recommendation":
        checked: dict[str, Any] = {
            "user_id": self.user_id,
            "product_id": self.product_id,
            "score": self.score,
            "created_at": self.created_at,
            "expires_at": self.expires_at,
        }
        # Persisted records may carry an expiry pulled before created_at
        if info.context and info.context.get("stored_record"):
            del checked["created_at"]
        errors = type(self).validation_errors(checked)
        if errors:
            raise ValueError("; ".join(errors))
        return self

    # ── Construction / validation ─────────────────────────────────────────────

    @classmethod
    def validation_errors(cls, data: Mapping[str, Any]) -> list[str]:
        """Check a partial recommendation mapping without raising.

        ``expires_at`` is compared to ``created_at`` only when both are
        present in ``data``.
        """
        errors: list[str] = []
        if "user_id" in data and not is_positive_int(data["user_id"]):
            errors.append("User ID must be a positive number")
        if "product_id" in data and not is_positive_int(data["product_id"]):
            errors.append("Product ID must be a positive number")
        if "score" in data:
            score = data["score"]
            if not is_number(score):
                errors.append("Score must be a valid number")
            elif not 0.0 <= score <= 1.0:
                errors.append("Score must be between 0 and 1")
        if "algorithm" in data and str(data["algorithm"]) not in VALID_ALGORITHMS:
            errors.append(
                "Algorithm must be one of: "
                + ", ".join(a.value for a in RecommendationAlgorithm)
            )
        created_ok = "created_at" in data and is_valid_datetime(data["created_at"])
        if "created_at" in data and not created_ok:
            errors.append("Created at must be a valid date")
        if "expires_at" in data:
            expires_at = data["expires_at"]
            if not is_valid_datetime(expires_at):
                errors.append("Expires at must be a valid date")
            elif created_ok and ensure_utc(expires_at) <= ensure_utc(data["created_at"]):
                errors.append("Expires at must be after created at")
        return errors

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "Recommendation":
        """Rebuild a persisted record, e.g. the output of ``model_dump()``.

        Field checks still apply, but ``expires_at`` may precede
        ``created_at`` since ``extend_expiration`` can shorten a record past
        its creation time.

        Raises:
            pydantic.ValidationError: If any field is invalid.
        """
        return cls.model_validate(data, context=STORED_RECORD_CONTEXT)

    @classmethod
    def default_expiration(
        cls,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        now: Optional[datetime] = None,
    ) -> datetime:
        """Expiry time ``ttl_hours`` after ``now``."""
        return add_hours(resolve_now(now), ttl_hours)

    @classmethod
    def create(
        cls,
        user_id: int,
        product_id: int,
        score: float,
        algorithm: RecommendationAlgorithm,
        ttl_hours: float = DEFAULT_TTL_HOURS,
        now: Optional[datetime] = None,
    ) -> "Recommendation":
        """Build a fresh recommendation valid for ``ttl_hours`` from ``now``."""
        created_at = resolve_now(now)
        return cls(
            user_id=user_id,
            product_id=product_id,
            score=score,
            algorithm=algorithm,
            created_at=created_at,
            expires_at=add_hours(created_at, ttl_hours),
        )

    # ── Expiration ────────────────────────────────────────────────────────────

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return resolve_now(now) >= self.expires_at

    def hours_until_expiration(self, now: Optional[datetime] = None) -> float:
        """Hours left before expiry; ``0.0`` once expired, never negative."""
        return max(0.0, hours_between(resolve_now(now), self.expires_at))

    def is_expiring_soon(
        self,
        hours_threshold: float = DEFAULT_EXPIRING_SOON_HOURS,
        now: Optional[datetime] = None,
    ) -> bool:
        now = resolve_now(now)
        if self.is_expired(now):
            return False
        return self.hours_until_expiration(now) <= hours_threshold

    def extend_expiration(self, hours: float) -> None:
        """Shift ``expires_at`` by a signed number of hours (never clamped)."""
        self.expires_at = add_hours(self.expires_at, hours)

    # ── Freshness ─────────────────────────────────────────────────────────────

    def age_in_hours(self, now: Optional[datetime] = None) -> float:
        return hours_between(self.created_at, resolve_now(now))

    def is_fresh(
        self,
        max_age_hours: float = DEFAULT_FRESH_MAX_AGE_HOURS,
        now: Optional[datetime] = None,
    ) -> bool:
        return self.age_in_hours(now) < max_age_hours

    # ── Scoring semantics ─────────────────────────────────────────────────────

    def confidence_level(self) -> ConfidenceLevel:
        return confidence.confidence_level(self.score)

    def reason(self, reason_floor: float = confidence.REASON_FLOOR) -> str:
        return confidence.build_reason(self.algorithm, self.score, reason_floor)

    def is_high_quality(self, threshold: float = confidence.HIGH_QUALITY_THRESHOLD) -> bool:
        return confidence.is_high_quality(self.score, threshold)

    def is_low_quality(
        self,
        threshold: float = confidence.LOW_QUALITY_THRESHOLD,
        now: Optional[datetime] = None,
    ) -> bool:
        """Expired records are low quality regardless of their score."""
        return self.is_expired(now) or confidence.is_low_quality_score(self.score, threshold)

    def result(self, reason_floor: float = confidence.REASON_FLOOR) -> RecommendationResult:
        return RecommendationResult(
            product_id=self.product_id,
            score=self.score,
            algorithm=self.algorithm,
            confidence=self.confidence_level(),
            reason=self.reason(reason_floor),
            expires_at=self.expires_at,
        )

    # ── Updates ───────────────────────────────────────────────────────────────

    def update_from(self, data: Mapping[str, Any]) -> bool:
        """Apply a partial ``score`` / ``expires_at`` update.

        Returns:
            ``True`` if anything changed; ``False`` for a no-op update.

        Raises:
            EntityValidationError: If the new values are invalid (score outside
                ``[0, 1]``, expiry not after ``created_at``). Nothing is
                modified in that case.
        """
        checked = {k: data[k] for k in ("score", "expires_at") if k in data}
        if "expires_at" in checked:
            checked["created_at"] = self.created_at
        raise_if_invalid(type(self).validation_errors(checked))

        updated = False
        if "score" in data and float(data["score"]) != self.score:
            self.score = float(data["score"])
            updated = True
        if "expires_at" in data:
            new_expiry = ensure_utc(data["expires_at"])
            if new_expiry != self.expires_at:
                self.expires_at = new_expiry
                updated = True
        return updated
