"""
Interaction model: one observed user action on a product.

Interactions are records of fact: the ids, type and timestamp never change
after creation except through ``update_from``, which exists for corrections
(e.g. a mis-clicked like changed to a dislike). Metadata may be edited in
place via ``add_metadata`` / ``remove_metadata``.

Removing a favorite, rating or like is done by deleting the interaction in
the persistence layer, not by mutating it here.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shopping_assistant.models.validation import (
    is_positive_int,
    is_valid_datetime,
    raise_if_invalid,
)
from shopping_assistant.scoring import interaction_classifier as classifier
from shopping_assistant.taxonomy.catalog_taxonomy import InteractionType
from shopping_assistant.utils.time_utils import ensure_utc, utcnow

VALID_INTERACTION_TYPES = frozenset(t.value for t in InteractionType)


class Interaction(BaseModel):
    """A single user-product event.

    Attributes:
        id: Persistence PK; ``0`` before insertion.
        user_id: Acting user (positive).
        product_id: Target product (positive).
        interaction_type: Event kind.
        timestamp: UTC time the event was observed.
        metadata: Free-form key/value data (``source``, ``rating``, ...).
    """

    # Not frozen: metadata edits and corrections via update_from()
    model_config = ConfigDict(frozen=False)

    id: int = 0
    user_id: int
    product_id: int
    interaction_type: InteractionType
    timestamp: datetime = Field(default_factory=utcnow)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_interaction(self) -> "Interaction":
        errors = type(self).validation_errors(
            {"user_id": self.user_id, "product_id": self.product_id}
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @classmethod
    def validation_errors(cls, data: Mapping[str, Any]) -> list[str]:
        """Check a partial interaction mapping without raising."""
        errors: list[str] = []
        if "user_id" in data and not is_positive_int(data["user_id"]):
            errors.append("User ID must be a positive number")
        if "product_id" in data and not is_positive_int(data["product_id"]):
            errors.append("Product ID must be a positive number")
        if "interaction_type" in data and str(data["interaction_type"]) not in VALID_INTERACTION_TYPES:
            errors.append(
                "Interaction type must be one of: "
                + ", ".join(t.value for t in InteractionType)
            )
        if "timestamp" in data and not is_valid_datetime(data["timestamp"]):
            errors.append("Timestamp must be a valid date")
        if "metadata" in data and not isinstance(data["metadata"], Mapping):
            errors.append("Metadata must be an object")
        return errors

    # ── Classification ────────────────────────────────────────────────────────

    def is_positive(self) -> bool:
        return classifier.is_positive(self.interaction_type)

    def is_negative(self) -> bool:
        return classifier.is_negative(self.interaction_type)

    def is_neutral(self) -> bool:
        return classifier.is_neutral(self.interaction_type)

    def is_conversion(self) -> bool:
        return classifier.is_conversion(self.interaction_type)

    def weight(self, overrides: Optional[Mapping[str, float]] = None) -> float:
        """Normalized blending weight; see ``interaction_classifier``."""
        return classifier.interaction_weight(self.interaction_type, overrides)

    def score(self, overrides: Optional[Mapping[str, int]] = None) -> int:
        """Coarse ranking score; see ``interaction_classifier``."""
        return classifier.interaction_score(self.interaction_type, overrides)

    def is_recent(
        self,
        window_days: float = classifier.DEFAULT_RECENT_WINDOW_DAYS,
        now: Optional[datetime] = None,
    ) -> bool:
        return classifier.is_recent(self.timestamp, window_days, now)

    def days_since(self, now: Optional[datetime] = None) -> int:
        return classifier.days_since(self.timestamp, now)

    # ── Metadata ──────────────────────────────────────────────────────────────

    def source(self) -> str:
        return self.metadata.get("source") or "unknown"

    def has_metadata_key(self, key: str) -> bool:
        return key in self.metadata

    def get_metadata_value(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    def rating_value(self) -> Optional[float]:
        """Numeric ``metadata["rating"]``, or ``None`` if absent or malformed."""
        raw = self.metadata.get("rating")
        try:
            return float(raw) if raw is not None else None
        except (TypeError, ValueError):
            return None

    def add_metadata(self, key: str, value: Any) -> None:
        self.metadata[key] = value

    def remove_metadata(self, key: str) -> bool:
        if key in self.metadata:
            del self.metadata[key]
            return True
        return False

    # ── Corrections ───────────────────────────────────────────────────────────

    def update_from(self, data: Mapping[str, Any]) -> bool:
        """Apply a correction to ``interaction_type`` and/or ``metadata``.

        Returns:
            ``True`` if anything changed; ``False`` for a no-op update.

        Raises:
            EntityValidationError: If ``data`` fails validation; nothing is
                modified in that case.
        """
        raise_if_invalid(type(self).validation_errors(data))

        updated = False
        if "interaction_type" in data:
            new_type = InteractionType(str(data["interaction_type"]))
            if new_type != self.interaction_type:
                self.interaction_type = new_type
                updated = True
        if "metadata" in data:
            new_metadata = dict(data["metadata"])
            if new_metadata != self.metadata:
                self.metadata = new_metadata
                updated = True
        return updated
