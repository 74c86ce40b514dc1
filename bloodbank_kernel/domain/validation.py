"""
Boundary validation for inventory and donor inputs.

Every function here is pure and raises a ``ValidationError`` subclass.
Services call them before opening a transaction, so invalid input never
reaches the store.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from bloodbank_kernel.exceptions import (
    InvalidDateError,
    InvalidDonorDataError,
    InvalidVolumeError,
)

MAX_NAME_LENGTH = 255
MAX_PHONE_LENGTH = 50


def validate_volume_ml(value: object) -> int:
    """Volume must be a positive int (bools are rejected)."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidVolumeError(value)
    return value


def parse_date_value(field: str, value: object) -> date:
    """
    Parse a calendar date from a ``date`` or an ISO ``YYYY-MM-DD`` string.

    ``datetime`` values are rejected: expiry is a calendar date with no
    time-of-day component.
    """
    if isinstance(value, datetime):
        raise InvalidDateError(field, value, "expected a date, not a datetime")
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise InvalidDateError(field, value, "not an ISO date") from None
    raise InvalidDateError(field, value, "expected a date")


def validate_shelf_life(collection_date: date, expiry_date: date) -> None:
    """Expiry may not precede collection."""
    if expiry_date < collection_date:
        raise InvalidDateError(
            "expiry_date",
            expiry_date.isoformat(),
            f"precedes collection date {collection_date.isoformat()}",
        )


def validate_full_name(value: object) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidDonorDataError("full_name", value, "must be a non-empty string")
    name = value.strip()
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidDonorDataError("full_name", value, f"longer than {MAX_NAME_LENGTH}")
    return name


def validate_age(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidDonorDataError("age", value, "must be a positive integer")
    return value


def validate_weight_kg(value: object) -> Decimal:
    """Weight as a positive Decimal; accepts int, Decimal or numeric string."""
    if isinstance(value, (bool, float)):
        raise InvalidDonorDataError("weight_kg", value, "use Decimal or str, not float")
    try:
        weight = Decimal(str(value).strip()) if isinstance(value, str) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidDonorDataError("weight_kg", value, "not a number") from None
    if not weight.is_finite() or weight <= 0:
        raise InvalidDonorDataError("weight_kg", value, "must be positive")
    return weight


def validate_phone(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidDonorDataError("phone", value, "must be a string")
    phone = value.strip()
    if len(phone) > MAX_PHONE_LENGTH:
        raise InvalidDonorDataError("phone", value, f"longer than {MAX_PHONE_LENGTH}")
    return phone or None
