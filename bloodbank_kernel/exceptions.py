"""
Typed Exception Hierarchy for the Blood Bank Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Inventory operations fail for a handful of distinct reasons, and the caller
(a web handler, the CLI, a test) has to react differently to each one:

  - bad input is the operator's problem, shown next to the form field
  - a dangling donor/donation reference usually means a stale page
  - a denied role is a permissions problem, never retried
  - empty stock is a business condition, not a fault
  - a store failure is an infrastructure fault, already rolled back

Every error therefore has:
  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        inventory.dispatch_unit(actor, "O-")
    except Exception as e:
        if "stock" in str(e):  # FRAGILE - message might change
            show_empty_shelf()

Example - RIGHT way:
    try:
        inventory.dispatch_unit(actor, "O-")
    except InsufficientStockError as e:
        show_empty_shelf(e.blood_type)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

All exceptions inherit from BloodBankError:

    BloodBankError (base)
    |
    +-- ValidationError
    |   +-- InvalidBloodTypeError
    |   +-- InvalidVolumeError
    |   +-- InvalidDateError
    |   +-- InvalidDonorDataError
    |   +-- InvalidAlertParameterError
    |
    +-- ReferentialError
    |   +-- DonorNotFoundError
    |   +-- DonationNotFoundError
    |   +-- BloodTypeMismatchError
    |   +-- DonorReferencedError
    |
    +-- AuthorizationError
    |
    +-- InsufficientStockError
    |
    +-- PersistenceError
        +-- StockLevelMissingError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | INVALID_BLOOD_TYPE          | Not one of the 8 ABO/Rh types
                | INVALID_VOLUME              | Volume not a positive integer (ml)
                | INVALID_DATE                | Unparseable date, expiry < collection
                | INVALID_DONOR_DATA          | Donor name/age/weight out of range
                | INVALID_ALERT_PARAMETER     | Negative threshold or lookahead
----------------|-----------------------------|-----------------------------------------
Referential     | DONOR_NOT_FOUND             | Donor ID doesn't exist
                | DONATION_NOT_FOUND          | Donation ID doesn't exist (or gone)
                | BLOOD_TYPE_MISMATCH         | Donation is not of the stated type
                | DONOR_REFERENCED            | Donor still has live donations
----------------|-----------------------------|-----------------------------------------
Authorization   | AUTHORIZATION_DENIED        | Role may not perform the operation
----------------|-----------------------------|-----------------------------------------
Stock           | INSUFFICIENT_STOCK          | Dispatch with unit_count == 0
----------------|-----------------------------|-----------------------------------------
Persistence     | PERSISTENCE_ERROR           | Store/commit failure (rolled back)
                | STOCK_LEVEL_MISSING         | Seeded stock row absent

===============================================================================
DESIGN DECISIONS
===============================================================================

1. WHY INHERIT FROM Exception (not ValueError, etc.)?
   Domain exceptions should be catchable as a group. Inheriting from
   built-in types mixes domain errors with programming errors.

2. WHY IS InsufficientStockError NOT UNDER PersistenceError?
   Empty stock is a business outcome. The store worked; nothing was
   written and nothing needed rolling back.

3. WHY WRAP SQLAlchemyError IN PersistenceError?
   Callers of the kernel should not import SQLAlchemy to handle failures.
   The original error is kept as ``__cause__`` for logs.

===============================================================================
"""


class BloodBankError(Exception):
    """
    Base exception for all blood bank kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "BLOODBANK_ERROR"


# Validation exceptions


class ValidationError(BloodBankError):
    """Malformed or out-of-range input, rejected before any transaction."""

    code: str = "VALIDATION_ERROR"


class InvalidBloodTypeError(ValidationError):
    """Blood type is not one of the 8 canonical ABO/Rh types."""

    code: str = "INVALID_BLOOD_TYPE"

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid blood type: {value!r}")


class InvalidVolumeError(ValidationError):
    """Donation volume is not a positive whole number of milliliters."""

    code: str = "INVALID_VOLUME"

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Volume must be a positive integer in ml, got {value!r}")


class InvalidDateError(ValidationError):
    """A date argument is unparseable or inconsistent with another date."""

    code: str = "INVALID_DATE"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


class InvalidDonorDataError(ValidationError):
    """Donor attribute failed validation."""

    code: str = "INVALID_DONOR_DATA"

    def __init__(self, field: str, value: object, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid donor {field} {value!r}: {reason}")


class InvalidAlertParameterError(ValidationError):
    """Alert threshold or lookahead is out of range."""

    code: str = "INVALID_ALERT_PARAMETER"

    def __init__(self, parameter: str, value: object, reason: str = "must be a non-negative integer"):
        self.parameter = parameter
        self.value = value
        self.reason = reason
        super().__init__(f"{parameter} {reason}, got {value!r}")


# Referential exceptions


class ReferentialError(BloodBankError):
    """A foreign reference does not resolve to the expected record."""

    code: str = "REFERENTIAL_ERROR"


class DonorNotFoundError(ReferentialError):
    """Donor with given ID was not found."""

    code: str = "DONOR_NOT_FOUND"

    def __init__(self, donor_id: str):
        self.donor_id = donor_id
        super().__init__(f"Donor not found: {donor_id}")


class DonationNotFoundError(ReferentialError):
    """Donation with given ID was not found (never existed or already removed)."""

    code: str = "DONATION_NOT_FOUND"

    def __init__(self, donation_id: str):
        self.donation_id = donation_id
        super().__init__(f"Donation not found: {donation_id}")


class BloodTypeMismatchError(ReferentialError):
    """Donation exists but belongs to a different blood type than stated."""

    code: str = "BLOOD_TYPE_MISMATCH"

    def __init__(self, donation_id: str, expected: str, actual: str):
        self.donation_id = donation_id
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Donation {donation_id} is {actual}, not {expected}"
        )


class DonorReferencedError(ReferentialError):
    """Donor cannot be removed while live donations reference it."""

    code: str = "DONOR_REFERENCED"

    def __init__(self, donor_id: str, donation_count: int):
        self.donor_id = donor_id
        self.donation_count = donation_count
        super().__init__(
            f"Donor {donor_id} is referenced by {donation_count} live donation(s)"
        )


# Authorization


class AuthorizationError(BloodBankError):
    """Caller's role may not perform the requested operation."""

    code: str = "AUTHORIZATION_DENIED"

    def __init__(self, role: str, operation: str):
        self.role = role
        self.operation = operation
        super().__init__(f"Role {role!r} is not allowed to {operation}")


# Stock


class InsufficientStockError(BloodBankError):
    """
    No units left to dispatch.

    Business-rule violation, not a system fault: nothing was written.
    """

    code: str = "INSUFFICIENT_STOCK"

    def __init__(self, blood_type: str):
        self.blood_type = blood_type
        super().__init__(f"No {blood_type} units in stock")


# Persistence


class PersistenceError(BloodBankError):
    """
    Transaction or commit failure.

    Always raised after the transaction's partial writes were rolled back.
    """

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} failed in the store: {detail}")


class StockLevelMissingError(PersistenceError):
    """The pre-seeded stock row for a blood type is missing."""

    code: str = "STOCK_LEVEL_MISSING"

    def __init__(self, operation: str, blood_type: str):
        self.blood_type = blood_type
        super().__init__(operation, f"stock level row for {blood_type} is missing")
