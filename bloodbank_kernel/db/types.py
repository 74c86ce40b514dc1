"""
Module: bloodbank_kernel.db.types
Responsibility: The CHECK-constraint fragment shared by every table that stores
    a blood type, so all three spell the canonical codes identically.
Architecture position: Kernel > DB.  May be imported by models/.  MUST NOT
    import from services/, selectors/ or domain/ (the blood type codes are
    repeated here as plain strings for that reason; a test keeps the two
    lists in sync).
"""

BLOOD_TYPE_CODES: tuple[str, ...] = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


def blood_type_check(column: str) -> str:
    """SQL expression restricting ``column`` to the canonical codes."""
    codes = ", ".join(f"'{code}'" for code in BLOOD_TYPE_CODES)
    return f"{column} IN ({codes})"
