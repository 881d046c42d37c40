"""
User model and profile view.

``User`` owns a ``UserPreferences`` instance; every preference operation
goes through it so the bounds and ``updated_at`` bookkeeping live in one
place. ``User.profile(interactions)`` builds the read-only ``UserProfile``
returned to account pages.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from shopping_assistant.models.preferences import UserPreferences
from shopping_assistant.scoring.preference_matcher import ProductLike
from shopping_assistant.scoring.stats import InteractionStats, interaction_stats
from shopping_assistant.utils.time_utils import ensure_utc, utcnow

if TYPE_CHECKING:
    from shopping_assistant.models.interaction import Interaction

_EMAIL_RE = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class UserProfile(BaseModel):
    """Account summary combining preferences and interaction statistics."""

    model_config = ConfigDict(frozen=True)

    id: int
    email: str
    preferences: UserPreferences
    interaction_stats: InteractionStats
    last_active_at: datetime
    created_at: datetime
    updated_at: datetime


class User(BaseModel):
    """A registered shopper.

    Attributes:
        id: Persistence PK.
        email: Login email address.
        password_hash: Opaque hash set by the auth layer; never scored on.
        preferences: Stated shopping preferences.
        created_at: UTC registration time.
        updated_at: UTC time of the last account change.
    """

    model_config = ConfigDict(frozen=False)

    id: int
    email: str
    password_hash: str = ""
    preferences: UserPreferences
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def validate_user(self) -> "User":
        errors = type(self).validation_errors({"email": self.email})
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @classmethod
    def validation_errors(cls, data: Mapping[str, Any]) -> list[str]:
        """Check a partial user mapping (including nested preferences)."""
        errors: list[str] = []
        if "email" in data:
            email = data["email"]
            if not isinstance(email, str) or not _EMAIL_RE.match(email):
                errors.append("Invalid email format")
        preferences = data.get("preferences")
        if isinstance(preferences, UserPreferences):
            preferences = preferences.model_dump()
        if isinstance(preferences, Mapping):
            errors += UserPreferences.validation_errors(preferences)
        return errors

    @classmethod
    def register(cls, user_id: int, email: str, **preference_fields: Any) -> "User":
        """Create a user with preferences built from ``preference_fields``.

        Omitted preference fields take the new-user defaults.
        """
        return cls(
            id=user_id,
            email=email,
            preferences=UserPreferences(user_id=user_id, **preference_fields),
        )

    def preference_score(self, product: ProductLike) -> float:
        return self.preferences.match_score(product)

    def update_preferences(self, data: Mapping[str, Any]) -> bool:
        """Apply a partial preference update; see ``UserPreferences.update_from``."""
        changed = self.preferences.update_from(data)
        if changed:
            self.updated_at = utcnow()
        return changed

    def last_active_at(self, interactions: Iterable["Interaction"]) -> datetime:
        """Latest own interaction time, or ``created_at`` when there is none."""
        own = [i.timestamp for i in interactions if i.user_id == self.id]
        return max(own) if own else self.created_at

    def profile(self, interactions: Iterable["Interaction"]) -> UserProfile:
        interactions = list(interactions)
        own = [i for i in interactions if i.user_id == self.id]
        return UserProfile(
            id=self.id,
            email=self.email,
            preferences=self.preferences,
            interaction_stats=interaction_stats(own),
            last_active_at=self.last_active_at(own),
            created_at=self.created_at,
            updated_at=self.updated_at,
        )
