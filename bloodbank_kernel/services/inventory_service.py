"""
InventoryService -- record, dispatch, dispose and remove blood units.

Responsibility:
    The inventory engine.  Each public method is one unit of work that
    keeps the donation ledger and the per-type stock counter moving
    together: a recorded donation is one new record and +1, a disposal is
    one deleted record and a floored -1, a dispatch is a conditional -1
    (plus, under the earliest-expiry policy, the deleted record it
    consumed).

Architecture position:
    Kernel > Services -- imperative shell.
    Callers: web handlers, scripts/inventory_cli.py, tests.
    Collaborators: StockLedger, DonationLedger, domain.roles,
    domain.validation.

Invariants enforced:
    ROLE_GATED_MUTATION  -- every method authorizes before any query.
    NON_NEGATIVE_STOCK   -- dispatch uses StockLedger.try_decrement;
                            disposal uses the floored decrement.
    PAIRED_LEDGER_WRITES -- record and counter change commit together or
                            not at all.
    DONOR_TYPE_AUTHORITY -- a donation always takes the donor's stored
                            blood type.

Failure modes:
    - AuthorizationError: role not allowed (nothing touched).
    - ValidationError subclasses: bad input (nothing touched).
    - DonorNotFoundError / DonationNotFoundError / BloodTypeMismatchError:
      rolled back.
    - InsufficientStockError: counter at zero, nothing written.
    - PersistenceError: store failure, rolled back.

Audit relevance:
    Logs ``<operation>_started`` / ``_completed`` / ``_failed`` with
    duration_ms, plus ``donation_recorded``, ``unit_dispatched``,
    ``donation_disposed``, ``stock_floor_reached`` and
    ``donation_blood_type_overridden``.
"""

from datetime import date
from uuid import UUID

from sqlalchemy.orm import Session

from bloodbank_kernel.domain.blood_types import BloodType, parse_blood_type
from bloodbank_kernel.domain.clock import Clock
from bloodbank_kernel.domain.dtos import DispatchResult, DisposalResult, DonationReceipt
from bloodbank_kernel.domain.policy import DEFAULT_POLICY, DispatchPolicy, InventoryPolicy
from bloodbank_kernel.domain.roles import Actor, Operation
from bloodbank_kernel.domain.validation import (
    parse_date_value,
    validate_shelf_life,
    validate_volume_ml,
)
from bloodbank_kernel.exceptions import (
    BloodTypeMismatchError,
    DonationNotFoundError,
    DonorNotFoundError,
    InsufficientStockError,
)
from bloodbank_kernel.logging_config import get_logger
from bloodbank_kernel.models.donor import Donor
from bloodbank_kernel.services.base import BaseService, coerce_uuid
from bloodbank_kernel.services.donation_ledger import DonationLedger
from bloodbank_kernel.services.stock_ledger import StockLedger

logger = get_logger("services.inventory")


class InventoryService(BaseService):
    """
    Mutating inventory operations.

    Contract:
        One instance per session.  With ``auto_commit=True`` each call
        commits on success and rolls back on failure; with
        ``auto_commit=False`` the caller's transaction decides.

    Guarantees:
        - Results are frozen DTOs, never ORM rows.
        - On any failure the store is as it was before the call
          (when auto_commit=True).

    Non-goals:
        - No retries; a PersistenceError is final for that call.
        - Does not decide which units are "expired"; AlertSelector does.

    Usage:
        service = InventoryService(session, clock=SystemClock())
        receipt = service.record_donation(actor, donor_id, 450, "2024-07-01")
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        policy: InventoryPolicy | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, clock=clock, auto_commit=auto_commit)
        self._policy = policy or DEFAULT_POLICY
        self._stock = StockLedger(session)
        self._donations = DonationLedger(session)

    @property
    def policy(self) -> InventoryPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # RecordDonation
    # ------------------------------------------------------------------

    def record_donation(
        self,
        actor: Actor,
        donor_id: UUID | str,
        volume_ml: int,
        expiry_date: date | str,
        blood_type: BloodType | str | None = None,
        collection_date: date | str | None = None,
    ) -> DonationReceipt:
        """
        Record a donated unit and add it to stock.

        Preconditions:
            - ``volume_ml`` is a positive int.
            - ``expiry_date`` (and ``collection_date`` if given) is a date
              or ISO string; expiry is not before collection.

        Postconditions:
            - One new donation row with the donor's blood type.
            - That type's counter is one higher.

        Args:
            actor: Authenticated caller (admin or medical-staff).
            donor_id: Donor the unit came from.
            volume_ml: Collected volume in ml.
            expiry_date: Last usable day of the unit.
            blood_type: Type the caller believes the unit is.  Checked
                for form only; the donor's stored type is used.
            collection_date: Defaults to the clock's today.

        Returns:
            DonationReceipt with the new stock count.

        Raises:
            AuthorizationError, ValidationError, DonorNotFoundError,
            PersistenceError.
        """
        operation = Operation.RECORD_DONATION
        with self._bind(actor, operation, donor_id=str(donor_id)):
            self._authorize(actor, operation)

            volume = validate_volume_ml(volume_ml)
            expiry = parse_date_value("expiry_date", expiry_date)
            collected = (
                parse_date_value("collection_date", collection_date)
                if collection_date is not None
                else self._clock.today()
            )
            validate_shelf_life(collected, expiry)
            requested_type = parse_blood_type(blood_type) if blood_type is not None else None
            donor_uuid = coerce_uuid(donor_id, DonorNotFoundError)

            return self._in_transaction(
                operation,
                lambda: self._do_record_donation(
                    actor, donor_uuid, volume, collected, expiry, requested_type
                ),
                started_extra={"volume_ml": volume, "expiry_date": expiry},
            )

    def _do_record_donation(
        self,
        actor: Actor,
        donor_id: UUID,
        volume_ml: int,
        collection_date: date,
        expiry_date: date,
        requested_type: BloodType | None,
    ) -> DonationReceipt:
        donor = self.session.get(Donor, donor_id, populate_existing=True)
        if donor is None:
            raise DonorNotFoundError(str(donor_id))

        # INVARIANT: DONOR_TYPE_AUTHORITY
        blood_type = parse_blood_type(donor.blood_type)
        if requested_type is not None and requested_type is not blood_type:
            logger.warning(
                "donation_blood_type_overridden",
                extra={
                    "requested_blood_type": requested_type.value,
                    "donor_blood_type": blood_type.value,
                },
            )

        donation = self._donations.insert(
            donor_id=donor_id,
            blood_type=blood_type,
            volume_ml=volume_ml,
            collection_date=collection_date,
            expiry_date=expiry_date,
            actor_id=actor.actor_id,
        )
        unit_count = self._stock.increment(blood_type)

        logger.info(
            "donation_recorded",
            extra={
                "recorded_donation_id": str(donation.id),
                "blood_type": blood_type.value,
                "unit_count": unit_count,
            },
        )
        return DonationReceipt(
            donation_id=donation.id,
            donor_id=donor_id,
            blood_type=blood_type,
            volume_ml=volume_ml,
            collection_date=collection_date,
            expiry_date=expiry_date,
            unit_count=unit_count,
        )

    # ------------------------------------------------------------------
    # DispatchUnit
    # ------------------------------------------------------------------

    def dispatch_unit(self, actor: Actor, blood_type: BloodType | str) -> DispatchResult:
        """
        Take one unit of ``blood_type`` out of stock.

        Under DispatchPolicy.EARLIEST_EXPIRY the live record that expires
        first is deleted as well; if the ledger has no record of that type
        only the counter moves.

        Raises:
            AuthorizationError, InvalidBloodTypeError,
            InsufficientStockError (count was 0, nothing written),
            PersistenceError.
        """
        operation = Operation.DISPATCH_UNIT
        with self._bind(actor, operation):
            self._authorize(actor, operation)
            parsed = parse_blood_type(blood_type)
            return self._in_transaction(
                operation,
                lambda: self._do_dispatch_unit(parsed),
                started_extra={
                    "blood_type": parsed.value,
                    "dispatch_policy": self._policy.dispatch_policy.value,
                },
            )

    def _do_dispatch_unit(self, blood_type: BloodType) -> DispatchResult:
        # INVARIANT: NON_NEGATIVE_STOCK
        if not self._stock.try_decrement(blood_type):
            raise InsufficientStockError(blood_type.value)

        consumed = None
        if self._policy.dispatch_policy is DispatchPolicy.EARLIEST_EXPIRY:
            consumed = self._donations.earliest_expiring(blood_type)
            if consumed is not None:
                self._donations.delete(consumed)
            else:
                logger.info(
                    "dispatch_without_ledger_record",
                    extra={"blood_type": blood_type.value},
                )

        unit_count = self._stock.current_units(blood_type)
        logger.info(
            "unit_dispatched",
            extra={"blood_type": blood_type.value, "unit_count": unit_count},
        )
        if consumed is None:
            return DispatchResult(blood_type=blood_type, unit_count=unit_count)
        return DispatchResult(
            blood_type=blood_type,
            unit_count=unit_count,
            donation_id=consumed.id,
            expiry_date=consumed.expiry_date,
        )

    # ------------------------------------------------------------------
    # DisposeExpired / RemoveDonation
    # ------------------------------------------------------------------

    def dispose_expired(
        self,
        actor: Actor,
        donation_id: UUID | str,
        blood_type: BloodType | str,
    ) -> DisposalResult:
        """
        Delete a donation record and take its unit out of stock.

        The expiry date is not re-checked.  The counter is decremented
        floored at zero; ``DisposalResult.decremented`` is False when it
        was already 0.

        Raises:
            AuthorizationError, InvalidBloodTypeError,
            DonationNotFoundError, BloodTypeMismatchError,
            PersistenceError.
        """
        operation = Operation.DISPOSE_EXPIRED
        with self._bind(actor, operation, donation_id=str(donation_id)):
            self._authorize(actor, operation)
            expected = parse_blood_type(blood_type)
            donation_uuid = coerce_uuid(donation_id, DonationNotFoundError)
            return self._in_transaction(
                operation,
                lambda: self._do_remove(donation_uuid, expected),
                started_extra={"blood_type": expected.value},
            )

    def remove_donation(self, actor: Actor, donation_id: UUID | str) -> DisposalResult:
        """Generic removal: as dispose_expired, type taken from the record."""
        operation = Operation.REMOVE_DONATION
        with self._bind(actor, operation, donation_id=str(donation_id)):
            self._authorize(actor, operation)
            donation_uuid = coerce_uuid(donation_id, DonationNotFoundError)
            return self._in_transaction(
                operation,
                lambda: self._do_remove(donation_uuid, None),
            )

    def _do_remove(self, donation_id: UUID, expected: BloodType | None) -> DisposalResult:
        donation = self._donations.lock_for_removal(donation_id)
        if donation is None:
            raise DonationNotFoundError(str(donation_id))

        actual = parse_blood_type(donation.blood_type)
        if expected is not None and actual is not expected:
            raise BloodTypeMismatchError(str(donation_id), expected.value, actual.value)

        expiry_date = donation.expiry_date
        self._donations.delete(donation)
        decremented = self._stock.decrement_floored(actual)
        unit_count = self._stock.current_units(actual)

        logger.info(
            "donation_disposed",
            extra={
                "blood_type": actual.value,
                "unit_count": unit_count,
                "decremented": decremented,
            },
        )
        return DisposalResult(
            donation_id=donation_id,
            blood_type=actual,
            expiry_date=expiry_date,
            unit_count=unit_count,
            decremented=decremented,
        )
