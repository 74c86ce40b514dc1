"""
Module: bloodbank_kernel.models.stock
Responsibility: ORM persistence for the Stock Aggregate -- one authoritative unit
    counter per blood type.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    NON_NEGATIVE_STOCK -- ck_stock_unit_count_non_negative backs the
        conditional decrement in StockLedger.
    SEEDED_STOCK_ROWS -- blood_type is the primary key; the 8 rows are
        created by StockLedger.seed_levels() at schema setup only.

Failure modes:
    - IntegrityError if any UPDATE would take unit_count below zero.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bloodbank_kernel.db.base import Base
from bloodbank_kernel.db.types import blood_type_check


class StockLevel(Base):
    """Current number of units on the shelf for one blood type."""

    __tablename__ = "stock_levels"

    __table_args__ = (
        CheckConstraint(blood_type_check("blood_type"), name="ck_stock_blood_type"),
        CheckConstraint("unit_count >= 0", name="ck_stock_unit_count_non_negative"),
    )

    blood_type: Mapped[str] = mapped_column(
        String(3),
        primary_key=True,
    )

    unit_count: Mapped[int] = mapped_column(
        nullable=False,
        default=0,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StockLevel {self.blood_type}: {self.unit_count}>"
