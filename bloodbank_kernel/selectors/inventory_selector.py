"""
Module: bloodbank_kernel.selectors.inventory_selector
Responsibility: Read stock counters and live donation records, and reconcile
    the two.
Architecture position: Kernel > Selectors.

Reconciliation:
    Under the counter-only dispatch policy a dispatch lowers the counter and
    leaves the record in place, so ``live_donations`` may exceed
    ``unit_count``.  Stock loaded before the ledger existed shows the
    opposite drift.  ``reconcile()`` reports both; it never corrects them.
"""

from uuid import UUID

from sqlalchemy import func, select

from bloodbank_kernel.domain.blood_types import CANONICAL_ORDER, BloodType, parse_blood_type
from bloodbank_kernel.domain.dtos import DonationInfo, StockLevelInfo, StockReconciliation
from bloodbank_kernel.domain.policy import DEFAULT_POLICY, InventoryPolicy
from bloodbank_kernel.exceptions import DonationNotFoundError, StockLevelMissingError
from bloodbank_kernel.models.donation import Donation
from bloodbank_kernel.models.stock import StockLevel
from bloodbank_kernel.selectors.base import BaseSelector


class InventorySelector(BaseSelector):
    """Stock levels and donation records, as DTOs."""

    def __init__(self, session, policy: InventoryPolicy | None = None):
        super().__init__(session)
        self._policy = policy or DEFAULT_POLICY

    def counts(self) -> dict[BloodType, int]:
        """Current count per blood type, all 8 present."""
        rows = self.session.execute(select(StockLevel.blood_type, StockLevel.unit_count)).all()
        found = {BloodType(code): count for code, count in rows}
        for blood_type in CANONICAL_ORDER:
            if blood_type not in found:
                raise StockLevelMissingError("read", blood_type.value)
        return found

    def stock_levels(self) -> tuple[StockLevelInfo, ...]:
        """All 8 counters in canonical order, flagged against the threshold."""
        counts = self.counts()
        threshold = self._policy.low_stock_threshold
        return tuple(
            StockLevelInfo(
                blood_type=bt,
                unit_count=counts[bt],
                is_low=counts[bt] < threshold,
            )
            for bt in CANONICAL_ORDER
        )

    def unit_count(self, blood_type: BloodType | str) -> int:
        parsed = parse_blood_type(blood_type)
        count = self.session.execute(
            select(StockLevel.unit_count).where(StockLevel.blood_type == parsed.value)
        ).scalar_one_or_none()
        if count is None:
            raise StockLevelMissingError("read", parsed.value)
        return count

    def get_donation(self, donation_id: UUID) -> DonationInfo:
        donation = self.session.get(Donation, donation_id, populate_existing=True)
        if donation is None:
            raise DonationNotFoundError(str(donation_id))
        return DonationInfo.from_model(donation)

    def list_donations(self, blood_type: BloodType | str | None = None) -> tuple[DonationInfo, ...]:
        """Live records ordered by expiry, optionally for one blood type."""
        stmt = select(Donation).order_by(
            Donation.expiry_date, Donation.collection_date, Donation.id
        )
        if blood_type is not None:
            stmt = stmt.where(Donation.blood_type == parse_blood_type(blood_type).value)
        donations = self.session.scalars(stmt.execution_options(populate_existing=True))
        return tuple(DonationInfo.from_model(d) for d in donations)

    def reconcile(self) -> tuple[StockReconciliation, ...]:
        """Counter vs live-record count for each blood type."""
        counts = self.counts()
        live = dict(
            self.session.execute(
                select(Donation.blood_type, func.count()).group_by(Donation.blood_type)
            ).all()
        )
        return tuple(
            StockReconciliation(
                blood_type=bt,
                unit_count=counts[bt],
                live_donations=live.get(bt.value, 0),
            )
            for bt in CANONICAL_ORDER
        )
