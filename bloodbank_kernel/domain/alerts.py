"""
Alerts -- scarcity and expiry warnings derived from inventory state.

Responsibility:
    Pure functions that turn stock counts and donation records into
    ``ScarcityAlert`` and ``ExpiryAlert`` values.  The AlertSelector feeds
    them from the database; tests feed them plain data.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  "Today" is always
    passed in; nothing here reads a clock.

Invariants enforced:
    - Severity is EXPIRED iff expiry_date < today (strict, calendar date).
    - Expiry alerts are ordered by expiry_date ascending; ties keep the
      input order.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum
from uuid import UUID

from bloodbank_kernel.domain.blood_types import CANONICAL_ORDER, BloodType
from bloodbank_kernel.domain.policy import check_non_negative
from bloodbank_kernel.exceptions import InvalidAlertParameterError


class ExpirySeverity(str, Enum):
    """How urgent an expiry alert is."""

    EXPIRED = "expired"
    EXPIRING_SOON = "expiring_soon"


@dataclass(frozen=True)
class ScarcityAlert:
    """A blood type whose stock fell below the low-stock threshold."""

    blood_type: BloodType
    unit_count: int
    threshold: int

    @property
    def shortfall(self) -> int:
        return self.threshold - self.unit_count


@dataclass(frozen=True)
class ExpiryCandidate:
    """The fields of a live donation that expiry scanning needs."""

    donation_id: UUID
    donor_id: UUID
    donor_name: str
    blood_type: BloodType
    volume_ml: int
    expiry_date: date


@dataclass(frozen=True)
class ExpiryAlert:
    """A live donation that has expired or expires within the window."""

    donation_id: UUID
    donor_id: UUID
    donor_name: str
    blood_type: BloodType
    volume_ml: int
    expiry_date: date
    severity: ExpirySeverity
    days_remaining: int

    @property
    def is_expired(self) -> bool:
        return self.severity is ExpirySeverity.EXPIRED


def classify_expiry(expiry_date: date, today: date) -> ExpirySeverity:
    """EXPIRED strictly before today; a unit expiring today is still usable."""
    if expiry_date < today:
        return ExpirySeverity.EXPIRED
    return ExpirySeverity.EXPIRING_SOON


def expiry_horizon(today: date, lookahead_days: int) -> date:
    """Last expiry date that still falls inside the alert window."""
    check_non_negative("lookahead_days", lookahead_days)
    try:
        return today + timedelta(days=lookahead_days)
    except OverflowError as exc:
        raise InvalidAlertParameterError(
            "lookahead_days", lookahead_days, reason="reaches past the last representable date"
        ) from exc


def scan_scarcity(
    levels: Mapping[BloodType, int],
    threshold: int,
) -> tuple[ScarcityAlert, ...]:
    """Alerts for every type with count < threshold, in canonical order."""
    check_non_negative("threshold", threshold)
    return tuple(
        ScarcityAlert(blood_type=bt, unit_count=levels[bt], threshold=threshold)
        for bt in CANONICAL_ORDER
        if bt in levels and levels[bt] < threshold
    )


def scan_expiry(
    candidates: Iterable[ExpiryCandidate],
    today: date,
    lookahead_days: int,
) -> tuple[ExpiryAlert, ...]:
    """Alerts for candidates expiring on or before today + lookahead."""
    horizon = expiry_horizon(today, lookahead_days)
    in_window = sorted(
        (c for c in candidates if c.expiry_date <= horizon),
        key=lambda c: c.expiry_date,
    )
    return tuple(
        ExpiryAlert(
            donation_id=c.donation_id,
            donor_id=c.donor_id,
            donor_name=c.donor_name,
            blood_type=c.blood_type,
            volume_ml=c.volume_ml,
            expiry_date=c.expiry_date,
            severity=classify_expiry(c.expiry_date, today),
            days_remaining=(c.expiry_date - today).days,
        )
        for c in in_window
    )
