"""
StockLedger -- the authoritative per-type unit counters.

Responsibility:
    Seeds the 8 stock rows and moves a counter up or down by exactly one
    unit with a single conditional UPDATE.  Never reads a count into
    Python, changes it and writes it back.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by InventoryService (inside its transaction) and by
    ``db.engine.create_tables`` (seeding).

Invariants enforced:
    NON_NEGATIVE_STOCK -- decrements carry ``unit_count > 0`` in their
        WHERE clause; a counter at zero is simply not matched.  The
        ck_stock_unit_count_non_negative constraint backs this up.
    SEEDED_STOCK_ROWS -- only ``seed_levels`` inserts rows; every other
        method treats a missing row as a fault.

Failure modes:
    - StockLevelMissingError if the row for a blood type is absent.
    - OperationalError (lock / busy timeout) propagates to the service,
      which wraps it in PersistenceError.

Concurrency:
    The conditional UPDATE takes the row lock (PostgreSQL) or runs under
    the connection's BEGIN IMMEDIATE write lock (SQLite), so two
    concurrent decrements at count 1 match one row between them.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from bloodbank_kernel.domain.blood_types import CANONICAL_ORDER, BloodType
from bloodbank_kernel.exceptions import StockLevelMissingError
from bloodbank_kernel.logging_config import get_logger
from bloodbank_kernel.models.stock import StockLevel

logger = get_logger("services.stock_ledger")


class StockLedger:
    """
    Atomic counter operations on ``stock_levels``.

    Non-goals:
        - Does NOT commit; the caller's transaction decides.
        - Does NOT authorize or validate; blood types arrive parsed.
    """

    def __init__(self, session: Session):
        self._session = session

    def seed_levels(self) -> int:
        """
        Insert a zero row for every blood type that has none.

        Returns:
            Number of rows created (0 when already seeded).
        """
        existing = set(self._session.scalars(select(StockLevel.blood_type)))
        created = 0
        for blood_type in CANONICAL_ORDER:
            if blood_type.value not in existing:
                self._session.add(StockLevel(blood_type=blood_type.value, unit_count=0))
                created += 1
        self._session.flush()
        return created

    def increment(self, blood_type: BloodType) -> int:
        """Add one unit; returns the new count."""
        result = self._session.execute(
            update(StockLevel)
            .where(StockLevel.blood_type == blood_type.value)
            .values(unit_count=StockLevel.unit_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StockLevelMissingError("increment", blood_type.value)
        return self.current_units(blood_type)

    def try_decrement(self, blood_type: BloodType) -> bool:
        """
        Remove one unit if any are left.

        Returns:
            True if the counter moved, False if it was already zero.
        """
        # INVARIANT: NON_NEGATIVE_STOCK -- test and set in one statement
        result = self._session.execute(
            update(StockLevel)
            .where(StockLevel.blood_type == blood_type.value)
            .where(StockLevel.unit_count > 0)
            .values(unit_count=StockLevel.unit_count - 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 1:
            return True
        if self._find_units(blood_type) is None:
            raise StockLevelMissingError("decrement", blood_type.value)
        return False

    def decrement_floored(self, blood_type: BloodType) -> bool:
        """Remove one unit, stopping at zero. Returns False when skipped."""
        decremented = self.try_decrement(blood_type)
        if not decremented:
            logger.warning(
                "stock_floor_reached",
                extra={"blood_type": blood_type.value},
            )
        return decremented

    def current_units(self, blood_type: BloodType) -> int:
        units = self._find_units(blood_type)
        if units is None:
            raise StockLevelMissingError("read", blood_type.value)
        return units

    def _find_units(self, blood_type: BloodType) -> int | None:
        return self._session.execute(
            select(StockLevel.unit_count).where(StockLevel.blood_type == blood_type.value)
        ).scalar_one_or_none()
