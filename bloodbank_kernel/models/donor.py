"""
Module: bloodbank_kernel.models.donor
Responsibility: ORM persistence for donors.  The donor's stored blood type is the
    authority for every donation recorded against them.
Architecture position: Kernel > Models.  May import from db/ only.
    MUST NOT import from services/, selectors/ or domain/.

Invariants enforced:
    DONOR_TYPE_AUTHORITY -- blood_type here, not a form field, decides which
        stock counter a donation increments.
    CANONICAL_BLOOD_TYPE -- ck_donor_blood_type restricts the column.

Failure modes:
    - IntegrityError on a non-canonical blood type or non-positive age/weight
      (check constraints; the service validates first).
    - IntegrityError on DELETE while donations still reference the donor
      (FK; DonorService checks first and raises DonorReferencedError).
"""

from decimal import Decimal

from sqlalchemy import CheckConstraint, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from bloodbank_kernel.db.base import TrackedBase
from bloodbank_kernel.db.types import blood_type_check


class Donor(TrackedBase):
    """
    A person registered to donate blood.

    Non-goals:
        - Identity / clinical documents are kept by the file-storage
          collaborator and are not modelled here.
    """

    __tablename__ = "donors"

    __table_args__ = (
        CheckConstraint(blood_type_check("blood_type"), name="ck_donor_blood_type"),
        CheckConstraint("age > 0", name="ck_donor_age_positive"),
        CheckConstraint("weight_kg > 0", name="ck_donor_weight_positive"),
        Index("idx_donor_full_name", "full_name"),
        Index("idx_donor_blood_type", "blood_type"),
    )

    full_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    age: Mapped[int] = mapped_column(
        nullable=False,
    )

    weight_kg: Mapped[Decimal] = mapped_column(
        Numeric(5, 1),
        nullable=False,
    )

    # Current blood type; donations copy it at donation time
    blood_type: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
    )

    phone: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Donor {self.id}: {self.full_name} ({self.blood_type})>"
