"""
Roles and authorization -- pure (role, operation) -> allow/deny.

Responsibility:
    Models the caller's role as a closed enum and decides, without any
    request object or database, whether that role may perform an
    operation.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Services call
    ``require_authorized`` before opening any transaction.

Invariants enforced:
    ROLE_GATED_MUTATION -- every mutating operation has an entry in
    ``PERMISSIONS``; an operation missing from the matrix is denied.

Failure modes:
    - AuthorizationError for a role outside the operation's allowed set,
      or for a role string that is not one of the three known roles
      (fail closed).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from bloodbank_kernel.exceptions import AuthorizationError


class ActorRole(str, Enum):
    """Roles supplied by the external authentication gate."""

    ADMIN = "admin"
    MEDICAL_STAFF = "medical-staff"
    REGULAR_STAFF = "regular-staff"


class Operation(str, Enum):
    """Operations subject to authorization."""

    RECORD_DONATION = "record_donation"
    DISPATCH_UNIT = "dispatch_unit"
    DISPOSE_EXPIRED = "dispose_expired"
    REMOVE_DONATION = "remove_donation"
    REGISTER_DONOR = "register_donor"
    UPDATE_DONOR = "update_donor"
    REMOVE_DONOR = "remove_donor"
    VIEW_INVENTORY = "view_inventory"


_CLINICAL = frozenset({ActorRole.ADMIN, ActorRole.MEDICAL_STAFF})
_EVERYONE = frozenset(ActorRole)

PERMISSIONS: dict[Operation, frozenset[ActorRole]] = {
    Operation.RECORD_DONATION: _CLINICAL,
    Operation.DISPATCH_UNIT: _CLINICAL,
    Operation.DISPOSE_EXPIRED: _CLINICAL,
    Operation.REMOVE_DONATION: _CLINICAL,
    Operation.REGISTER_DONOR: _EVERYONE,
    Operation.UPDATE_DONOR: _EVERYONE,
    Operation.REMOVE_DONOR: frozenset({ActorRole.ADMIN}),
    Operation.VIEW_INVENTORY: _EVERYONE,
}


def parse_role(value: ActorRole | str) -> ActorRole:
    """Parse a role string from the gate; unknown roles fail closed."""
    if isinstance(value, ActorRole):
        return value
    try:
        return ActorRole(value)
    except ValueError:
        raise AuthorizationError(str(value), "act with an unknown role") from None


def is_authorized(role: ActorRole, operation: Operation) -> bool:
    """Return True iff ``role`` may perform ``operation``."""
    return role in PERMISSIONS.get(operation, frozenset())


@dataclass(frozen=True)
class Actor:
    """The authenticated caller: who they are and what role they act under."""

    actor_id: UUID
    role: ActorRole

    @classmethod
    def from_gate(cls, actor_id: UUID, role: ActorRole | str) -> Actor:
        """Build an Actor from the gate's raw role string."""
        return cls(actor_id=actor_id, role=parse_role(role))


def require_authorized(actor: Actor, operation: Operation) -> None:
    """
    Raise unless ``actor`` may perform ``operation``.

    Raises:
        AuthorizationError: If the actor's role is not allowed.
    """
    role = parse_role(actor.role)
    if not is_authorized(role, operation):
        raise AuthorizationError(role.value, operation.value)
