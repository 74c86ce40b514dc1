"""
BaseService -- abstract base for the kernel's mutating services.

Responsibility:
    Provides the common constructor and the one transaction wrapper every
    mutating operation goes through: bind the log context, authorize,
    run the work on the caller's session, commit or roll back, and log
    ``<operation>_started`` / ``_completed`` / ``_failed``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    InventoryService and DonorService extend this class.

Invariants enforced:
    ROLE_GATED_MUTATION -- ``_authorize`` runs before the session is
        touched, so a denied call never opens a transaction.
    - Transaction boundaries: with ``auto_commit=True`` (the default) the
      service commits on success and rolls back on any failure.  With
      ``auto_commit=False`` it only flushes; the caller (``session_scope``
      or a test harness) owns commit/rollback.

Failure modes:
    - SQLAlchemyError inside the work is rolled back and re-raised as
      PersistenceError, with the original chained as ``__cause__``.
    - BloodBankError inside the work (missing donor, empty stock, ...)
      is rolled back and re-raised unchanged.

Audit relevance:
    Every mutating call emits a started log and exactly one of completed
    or failed, all carrying the correlation_id, actor and operation.
"""

import time
from abc import ABC
from collections.abc import Callable
from dataclasses import asdict, is_dataclass
from typing import Any, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bloodbank_kernel.domain.clock import Clock, SystemClock
from bloodbank_kernel.domain.roles import Actor, Operation, require_authorized
from bloodbank_kernel.exceptions import AuthorizationError, BloodBankError, PersistenceError
from bloodbank_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.base")

T = TypeVar("T")


class BaseService(ABC):
    """
    Abstract base class for mutating kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller.  One public
        call is one unit of work on that session.

    Non-goals:
        - Does NOT create sessions or engines.
        - Does NOT retry failed transactions.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        """
        Initialize the service.

        Args:
            session: SQLAlchemy session for database operations.
            clock: Source of "today"; defaults to SystemClock.
            auto_commit: Commit on success / roll back on failure.
        """
        self.session = session
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit

    def _bind(self, actor: Actor, operation: Operation, **context: str | None):
        """Scope the log context to one operation by ``actor``."""
        return LogContext.bind(
            correlation_id=str(uuid4()),
            actor_id=str(actor.actor_id),
            actor_role=str(getattr(actor.role, "value", actor.role)),
            operation=operation.value,
            **context,
        )

    def _authorize(self, actor: Actor, operation: Operation) -> None:
        try:
            require_authorized(actor, operation)
        except AuthorizationError as exc:
            logger.warning(
                "authorization_denied",
                extra={"role": exc.role, "denied_operation": exc.operation},
            )
            raise

    def _in_transaction(
        self,
        operation: Operation,
        work: Callable[[], T],
        started_extra: dict[str, Any] | None = None,
        completed_extra: Callable[[T], dict[str, Any]] | None = None,
    ) -> T:
        """Run ``work`` as one transaction with started/completed/failed logs."""
        name = operation.value
        logger.info(f"{name}_started", extra=started_extra or {})
        t0 = time.monotonic()

        try:
            result = work()
            if self._auto_commit:
                self.session.commit()
            else:
                self.session.flush()
        except SQLAlchemyError as exc:
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            self._rollback()
            logger.error(
                f"{name}_failed",
                extra={"duration_ms": duration_ms, "error_code": PersistenceError.code},
                exc_info=True,
            )
            raise PersistenceError(name, f"{type(exc).__name__}: {exc}") from exc
        except BloodBankError as exc:
            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            self._rollback()
            logger.warning(
                f"{name}_failed",
                extra={"duration_ms": duration_ms, "error_code": exc.code},
            )
            raise

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info(
            f"{name}_completed",
            extra={"duration_ms": duration_ms, **(completed_extra or _result_fields)(result)},
        )
        return result

    def _rollback(self) -> None:
        if self._auto_commit:
            self.session.rollback()
            logger.info("transaction_rolled_back")


def _result_fields(result: object) -> dict[str, Any]:
    if is_dataclass(result) and not isinstance(result, type):
        return asdict(result)
    return {}


def coerce_uuid(value: UUID | str, not_found: Callable[[str], BloodBankError]) -> UUID:
    """Parse an id from a caller; a malformed id cannot name an existing row."""
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except ValueError:
        raise not_found(str(value)) from None
