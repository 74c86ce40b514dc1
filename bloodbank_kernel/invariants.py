"""
Kernel Invariants Contract.

These invariants are structural law. They are hardcoded in the inventory
service, the stock/donation ledgers and the database check constraints.
No configuration value or dispatch policy may override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across InventoryService, StockLedger,
DonationLedger, the ORM models and domain.roles.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel.

    Each value names one structural guarantee that the kernel provides
    unconditionally. Configuration may influence *which* record a dispatch
    consumes, but never *whether* these rules apply.
    """

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """unit_count >= 0 for every blood type at all times. Enforced by the
    conditional decrement in StockLedger and a DB check constraint."""

    PAIRED_LEDGER_WRITES = "paired_ledger_writes"
    """Every donation insert is paired with a +1 and every donation delete
    with a floored -1, inside one transaction. Enforced by
    InventoryService."""

    CANONICAL_BLOOD_TYPE = "canonical_blood_type"
    """Every stored blood type is one of the 8 ABO/Rh types. Enforced by
    domain.blood_types parsing and DB check constraints."""

    SEEDED_STOCK_ROWS = "seeded_stock_rows"
    """Exactly one stock row per blood type exists, created at schema
    setup and never created or deleted at runtime."""

    DONOR_TYPE_AUTHORITY = "donor_type_authority"
    """A donation's blood type is the donor's stored type at donation time,
    never a caller-supplied value."""

    ROLE_GATED_MUTATION = "role_gated_mutation"
    """Mutations are authorized before any transaction starts. Enforced by
    domain.roles.require_authorized."""


# All invariants as a frozenset for programmatic checks.
ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)

# The kernel package may not import from these packages.
# This is enforced by tests/architecture/test_kernel_boundary.py.
FORBIDDEN_KERNEL_IMPORTS: tuple[str, ...] = (
    "bloodbank_config",
    "scripts",
)
