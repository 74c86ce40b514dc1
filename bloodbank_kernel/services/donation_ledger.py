"""
DonationLedger -- insert, lock and delete live donation records.

Responsibility:
    The only writer of the ``donations`` table.  InventoryService pairs
    every call here with a StockLedger counter move in the same
    transaction.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.

Invariants enforced:
    PAIRED_LEDGER_WRITES -- this class never touches stock_levels; the
        pairing is InventoryService's job.
    - Records are never updated after insert.

Failure modes:
    - IntegrityError on a dangling donor_id or a violated check
      constraint (flush).

Concurrency:
    ``lock_for_removal`` takes ``SELECT ... FOR UPDATE`` so two disposals
    of the same record serialize and the second one finds it gone.
    ``earliest_expiring`` adds SKIP LOCKED so a dispatch never waits on a
    record another transaction is disposing.  SQLite has no row locks;
    BEGIN IMMEDIATE serializes whole transactions instead.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bloodbank_kernel.domain.blood_types import BloodType
from bloodbank_kernel.logging_config import get_logger
from bloodbank_kernel.models.donation import Donation

logger = get_logger("services.donation_ledger")


class DonationLedger:
    """Row-level operations on ``donations``; flush only, never commit."""

    def __init__(self, session: Session):
        self._session = session

    def insert(
        self,
        donor_id: UUID,
        blood_type: BloodType,
        volume_ml: int,
        collection_date: date,
        expiry_date: date,
        actor_id: UUID,
    ) -> Donation:
        donation = Donation(
            donor_id=donor_id,
            blood_type=blood_type.value,
            volume_ml=volume_ml,
            collection_date=collection_date,
            expiry_date=expiry_date,
            created_by_id=actor_id,
        )
        self._session.add(donation)
        self._session.flush()
        return donation

    def lock_for_removal(self, donation_id: UUID) -> Donation | None:
        """Load and row-lock a donation; None if it does not exist."""
        return self._session.execute(
            select(Donation)
            .where(Donation.id == donation_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def earliest_expiring(self, blood_type: BloodType) -> Donation | None:
        """The live record of ``blood_type`` that expires first, row-locked."""
        return self._session.execute(
            select(Donation)
            .where(Donation.blood_type == blood_type.value)
            .order_by(Donation.expiry_date, Donation.collection_date, Donation.id)
            .limit(1)
            .with_for_update(skip_locked=True)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def delete(self, donation: Donation) -> None:
        self._session.delete(donation)
        self._session.flush()
        logger.debug(
            "donation_record_deleted",
            extra={"deleted_donation_id": str(donation.id)},
        )

    def count_for_donor(self, donor_id: UUID) -> int:
        return self._session.execute(
            select(func.count()).select_from(Donation).where(Donation.donor_id == donor_id)
        ).scalar_one()

