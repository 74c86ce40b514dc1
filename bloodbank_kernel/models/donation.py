"""
Module: bloodbank_kernel.models.donation
Responsibility: ORM persistence for donation records -- the Ledger Store.  Each
    live row is one physical unit on the shelf with its expiry date.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/ or domain/.

Invariants enforced:
    PAIRED_LEDGER_WRITES -- rows are inserted and deleted only by DonationLedger,
        inside InventoryService transactions that move the stock counter in the
        same direction.
    CANONICAL_BLOOD_TYPE -- ck_donation_blood_type.
    - volume_ml > 0 (ck_donation_volume_positive).
    - expiry_date >= collection_date (ck_donation_shelf_life).
    - Rows are never updated after insert.

Failure modes:
    - IntegrityError on a dangling donor_id (FK) or a violated check
      constraint.  The service validates first; the constraints are the
      last line.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from bloodbank_kernel.db.base import TrackedBase, UUIDString
from bloodbank_kernel.db.types import blood_type_check


class Donation(TrackedBase):
    """One donated unit, live until dispatched (FIFO policy) or disposed."""

    __tablename__ = "donations"

    __table_args__ = (
        CheckConstraint(blood_type_check("blood_type"), name="ck_donation_blood_type"),
        CheckConstraint("volume_ml > 0", name="ck_donation_volume_positive"),
        CheckConstraint("expiry_date >= collection_date", name="ck_donation_shelf_life"),
        # Query: expiry scan and earliest-expiry dispatch
        Index("idx_donation_type_expiry", "blood_type", "expiry_date"),
        Index("idx_donation_expiry", "expiry_date"),
        Index("idx_donation_donor", "donor_id"),
    )

    donor_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("donors.id"),
        nullable=False,
    )

    # Copied from the donor at donation time, never from the caller
    blood_type: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    volume_ml: Mapped[int] = mapped_column(
        nullable=False,
    )

    collection_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    expiry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<Donation {self.id}: {self.blood_type} {self.volume_ml}ml "
            f"expires {self.expiry_date}>"
        )
