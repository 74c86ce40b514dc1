"""
Result DTOs returned by kernel services and selectors.

Services never hand ORM instances to callers; every public method returns
one of these frozen dataclasses.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from bloodbank_kernel.domain.alerts import ExpiryAlert, ScarcityAlert
from bloodbank_kernel.domain.blood_types import BloodType, parse_blood_type


@dataclass(frozen=True)
class DonorInfo:
    """Immutable view of a donor."""

    id: UUID
    full_name: str
    age: int
    weight_kg: Decimal
    blood_type: BloodType
    phone: str | None

    @classmethod
    def from_model(cls, donor) -> DonorInfo:
        """Build from a ``Donor`` row (any object with the same attributes)."""
        return cls(
            id=donor.id,
            full_name=donor.full_name,
            age=donor.age,
            weight_kg=donor.weight_kg,
            blood_type=parse_blood_type(donor.blood_type),
            phone=donor.phone,
        )


@dataclass(frozen=True)
class DonationInfo:
    """Immutable view of a live donation record."""

    id: UUID
    donor_id: UUID
    blood_type: BloodType
    volume_ml: int
    collection_date: date
    expiry_date: date

    @classmethod
    def from_model(cls, donation) -> DonationInfo:
        return cls(
            id=donation.id,
            donor_id=donation.donor_id,
            blood_type=parse_blood_type(donation.blood_type),
            volume_ml=donation.volume_ml,
            collection_date=donation.collection_date,
            expiry_date=donation.expiry_date,
        )


@dataclass(frozen=True)
class DonationReceipt:
    """Outcome of a recorded donation."""

    donation_id: UUID
    donor_id: UUID
    blood_type: BloodType
    volume_ml: int
    collection_date: date
    expiry_date: date
    unit_count: int


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of a dispatched unit.

    ``donation_id`` and ``expiry_date`` are set only when the dispatch
    consumed a specific donation record.
    """

    blood_type: BloodType
    unit_count: int
    donation_id: UUID | None = None
    expiry_date: date | None = None

    @property
    def consumed_record(self) -> bool:
        return self.donation_id is not None


@dataclass(frozen=True)
class DisposalResult:
    """Outcome of a disposed or removed donation.

    ``decremented`` is False when the counter was already at zero and the
    decrement was skipped.
    """

    donation_id: UUID
    blood_type: BloodType
    expiry_date: date
    unit_count: int
    decremented: bool


@dataclass(frozen=True)
class StockLevelInfo:
    """Current count for one blood type."""

    blood_type: BloodType
    unit_count: int
    is_low: bool


@dataclass(frozen=True)
class StockReconciliation:
    """Counter vs ledger comparison for one blood type."""

    blood_type: BloodType
    unit_count: int
    live_donations: int

    @property
    def drift(self) -> int:
        """Units counted in stock with no live donation behind them."""
        return self.unit_count - self.live_donations

    @property
    def is_consistent(self) -> bool:
        return self.drift == 0


@dataclass(frozen=True)
class InventoryOverview:
    """Everything the inventory view shows, read in one session."""

    as_of: date
    stock_levels: tuple[StockLevelInfo, ...]
    scarcity_alerts: tuple[ScarcityAlert, ...]
    expiry_alerts: tuple[ExpiryAlert, ...]

    @property
    def total_units(self) -> int:
        return sum(level.unit_count for level in self.stock_levels)
