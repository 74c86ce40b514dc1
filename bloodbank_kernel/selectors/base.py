"""
Module: bloodbank_kernel.selectors.base
Responsibility: Abstract base class for the read-only selectors.  Selectors are
    the query side of the kernel: stock levels, donation listings, alerts.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(), session.delete(),
      session.commit() or session.flush().
    - DTO return convention: selectors return frozen dataclasses, never ORM rows.
    - Session ownership: the caller owns the session and its transaction scope.

Failure modes:
    - StockLevelMissingError when a seeded stock row is absent.
    - InvalidAlertParameterError for a negative threshold or lookahead.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only
        queries, and return DTOs.  Results may be stale the moment they
        are returned; alerting tolerates that.
    """

    def __init__(self, session: Session):
        self.session = session
