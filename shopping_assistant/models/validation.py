"""
Shared validation helpers for entity models.

Every entity exposes a ``validation_errors(data)`` classmethod that checks a
partial field mapping and returns a list of human-readable strings rather
than raising. The helpers here keep the wording of those messages consistent.

``EntityValidationError`` is raised by mutating methods (``update_from`` etc.)
when a requested change fails validation; the entity keeps its prior state.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

MAX_MONEY_VALUE = 999_999.99


class EntityValidationError(ValueError):
    """A requested entity mutation failed validation.

    Attributes:
        errors: Human-readable validation messages, in check order.
    """

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


def raise_if_invalid(errors: list[str]) -> None:
    """Raise ``EntityValidationError`` when ``errors`` is non-empty."""
    if errors:
        raise EntityValidationError(errors)


def is_positive_int(value: Any) -> bool:
    # bool is an int subclass; True is not a valid id
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value == value  # NaN check


def is_valid_datetime(value: Any) -> bool:
    return isinstance(value, datetime)


def all_non_empty_strings(values: Iterable[Any]) -> bool:
    return all(isinstance(v, str) and v.strip() for v in values)
