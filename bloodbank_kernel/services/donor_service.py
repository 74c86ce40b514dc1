"""
Service layer for Donor operations.

Manages the donor directory: registration, updates, removal and name
search.  Returns DonorInfo DTOs instead of ORM entities.

A donor's blood type is the authority for their future donations;
changing it never touches donations already recorded.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bloodbank_kernel.domain.blood_types import BloodType, parse_blood_type
from bloodbank_kernel.domain.clock import Clock
from bloodbank_kernel.domain.dtos import DonorInfo
from bloodbank_kernel.domain.roles import Actor, Operation
from bloodbank_kernel.domain.validation import (
    validate_age,
    validate_full_name,
    validate_phone,
    validate_weight_kg,
)
from bloodbank_kernel.exceptions import (
    DonorNotFoundError,
    DonorReferencedError,
    InvalidDonorDataError,
)
from bloodbank_kernel.logging_config import get_logger
from bloodbank_kernel.models.donor import Donor
from bloodbank_kernel.services.base import BaseService, coerce_uuid
from bloodbank_kernel.services.donation_ledger import DonationLedger

logger = get_logger("services.donor")

_UPDATABLE_FIELDS = frozenset({"full_name", "age", "weight_kg", "blood_type", "phone"})


def _donor_ref(info: DonorInfo | None) -> dict[str, Any]:
    return {"result_donor_id": str(info.id)} if info is not None else {}


def _escape_like(fragment: str) -> str:
    return fragment.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DonorService(BaseService):
    """
    Service for managing donors.

    Registration and updates are open to every authenticated role;
    removal is admin only and refused while live donations reference
    the donor.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        auto_commit: bool = True,
    ):
        super().__init__(session, clock=clock, auto_commit=auto_commit)
        self._donations = DonationLedger(session)

    def _get_by_id(self, donor_id: UUID | str) -> Donor:
        """Get donor by ID, raising if not found."""
        donor_uuid = coerce_uuid(donor_id, DonorNotFoundError)
        donor = self.session.get(Donor, donor_uuid, populate_existing=True)
        if donor is None:
            raise DonorNotFoundError(str(donor_uuid))
        return donor

    def register_donor(
        self,
        actor: Actor,
        full_name: str,
        age: int,
        weight_kg: Decimal | int | str,
        blood_type: BloodType | str,
        phone: str | None = None,
    ) -> DonorInfo:
        """
        Register a new donor.

        Args:
            actor: Authenticated caller (any role).
            full_name: Donor's full name.
            age: Age in whole years.
            weight_kg: Weight in kg (Decimal, int or numeric string).
            blood_type: One of the 8 canonical types.
            phone: Optional contact number.

        Returns:
            DonorInfo DTO for the created donor.

        Raises:
            AuthorizationError, InvalidDonorDataError, InvalidBloodTypeError.
        """
        operation = Operation.REGISTER_DONOR
        with self._bind(actor, operation):
            self._authorize(actor, operation)
            values = {
                "full_name": validate_full_name(full_name),
                "age": validate_age(age),
                "weight_kg": validate_weight_kg(weight_kg),
                "blood_type": parse_blood_type(blood_type).value,
                "phone": validate_phone(phone),
            }

            def work() -> DonorInfo:
                donor = Donor(
                    created_by_id=actor.actor_id,
                    created_at=self._clock.now(),
                    **values,
                )
                self.session.add(donor)
                self.session.flush()
                logger.info(
                    "donor_registered",
                    extra={"result_donor_id": str(donor.id), "blood_type": donor.blood_type},
                )
                return DonorInfo.from_model(donor)

            return self._in_transaction(
                operation,
                work,
                started_extra={"blood_type": values["blood_type"]},
                completed_extra=_donor_ref,
            )

    def update_donor(self, actor: Actor, donor_id: UUID | str, **fields: Any) -> DonorInfo:
        """
        Update donor attributes.

        Only ``full_name``, ``age``, ``weight_kg``, ``blood_type`` and
        ``phone`` may be given.  A new blood type applies to donations
        recorded from now on.

        Raises:
            AuthorizationError, InvalidDonorDataError, InvalidBloodTypeError,
            DonorNotFoundError.
        """
        operation = Operation.UPDATE_DONOR
        with self._bind(actor, operation, donor_id=str(donor_id)):
            self._authorize(actor, operation)
            changes = self._validate_changes(fields)

            def work() -> DonorInfo:
                donor = self._get_by_id(donor_id)
                previous_type = donor.blood_type
                for name, value in changes.items():
                    setattr(donor, name, value)
                donor.updated_by_id = actor.actor_id
                self.session.flush()
                if donor.blood_type != previous_type:
                    logger.info(
                        "donor_blood_type_changed",
                        extra={
                            "previous_blood_type": previous_type,
                            "blood_type": donor.blood_type,
                        },
                    )
                return DonorInfo.from_model(donor)

            return self._in_transaction(
                operation,
                work,
                started_extra={"fields": sorted(changes)},
                completed_extra=_donor_ref,
            )

    def remove_donor(self, actor: Actor, donor_id: UUID | str) -> None:
        """
        Delete a donor with no live donations.

        Raises:
            AuthorizationError: caller is not admin.
            DonorNotFoundError, DonorReferencedError.
        """
        operation = Operation.REMOVE_DONOR
        with self._bind(actor, operation, donor_id=str(donor_id)):
            self._authorize(actor, operation)

            def work() -> None:
                donor = self._get_by_id(donor_id)
                live = self._donations.count_for_donor(donor.id)
                if live:
                    raise DonorReferencedError(str(donor.id), live)
                self.session.delete(donor)
                self.session.flush()
                logger.info("donor_removed")

            self._in_transaction(operation, work)

    def get_donor(self, donor_id: UUID | str) -> DonorInfo:
        """
        Get donor by ID.

        Raises:
            DonorNotFoundError: If donor doesn't exist.
        """
        return DonorInfo.from_model(self._get_by_id(donor_id))

    def search_by_name(self, fragment: str, limit: int = 10) -> tuple[DonorInfo, ...]:
        """Case-insensitive substring search on full name, at most ``limit`` hits."""
        if not isinstance(fragment, str) or not fragment.strip():
            return ()
        pattern = f"%{_escape_like(fragment.strip().lower())}%"
        donors = self.session.scalars(
            select(Donor)
            .where(func.lower(Donor.full_name).like(pattern, escape="\\"))
            .order_by(Donor.full_name, Donor.id)
            .limit(limit)
        )
        return tuple(DonorInfo.from_model(d) for d in donors)

    def list_donors(self) -> tuple[DonorInfo, ...]:
        """All donors, newest first."""
        donors = self.session.scalars(
            select(Donor).order_by(Donor.created_at.desc(), Donor.id)
        )
        return tuple(DonorInfo.from_model(d) for d in donors)

    def _validate_changes(self, fields: dict[str, Any]) -> dict[str, Any]:
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            name = sorted(unknown)[0]
            raise InvalidDonorDataError(name, fields[name], "not an updatable field")

        changes: dict[str, Any] = {}
        if "full_name" in fields:
            changes["full_name"] = validate_full_name(fields["full_name"])
        if "age" in fields:
            changes["age"] = validate_age(fields["age"])
        if "weight_kg" in fields:
            changes["weight_kg"] = validate_weight_kg(fields["weight_kg"])
        if "blood_type" in fields:
            changes["blood_type"] = parse_blood_type(fields["blood_type"]).value
        if "phone" in fields:
            changes["phone"] = validate_phone(fields["phone"])
        return changes
