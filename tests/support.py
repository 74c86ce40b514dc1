"""Helpers shared by conftest and tests that manage their own sessions."""

from contextlib import contextmanager
from datetime import date
from typing import Generator

from sqlalchemy import delete, update
from sqlalchemy.orm import Session

from bloodbank_kernel.models.donation import Donation
from bloodbank_kernel.models.donor import Donor
from bloodbank_kernel.models.stock import StockLevel

# "Today" for every test that does not move the clock
TODAY = date(2024, 6, 10)


def reset_store(engine) -> None:
    """Delete donations and donors and zero every counter.

    Used by real-commit tests that cannot rely on rollback isolation.
    The 8 stock rows themselves are never deleted.
    """
    with engine.begin() as conn:
        conn.execute(delete(Donation))
        conn.execute(delete(Donor))
        conn.execute(update(StockLevel).values(unit_count=0))


@contextmanager
def isolated_session(engine) -> Generator[Session, None, None]:
    """Session inside an outer transaction that is always rolled back.

    Service commits release a SAVEPOINT, service rollbacks roll back to
    it; nothing ever reaches the database.
    """
    conn = engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    try:
        yield sess
    finally:
        try:
            sess.close()
        finally:
            try:
                trans.rollback()
            finally:
                conn.close()
