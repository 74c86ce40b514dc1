"""
Blood types -- the closed set of ABO/Rh groups the bank stocks.

Responsibility:
    Defines ``BloodType`` and the single sanctioned parser for turning
    external strings into it.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.

Invariants enforced:
    CANONICAL_BLOOD_TYPE -- ``parse_blood_type`` is the only way external
    strings become blood types; anything outside the 8 groups is rejected.
"""

from enum import Enum

from bloodbank_kernel.exceptions import InvalidBloodTypeError


class BloodType(str, Enum):
    """The 8 canonical ABO/Rh blood types.

    Declaration order is the canonical display order used by selectors.
    """

    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    O_POS = "O+"
    O_NEG = "O-"

    def __str__(self) -> str:
        return self.value


CANONICAL_ORDER: tuple[BloodType, ...] = tuple(BloodType)

BLOOD_TYPE_CODES: tuple[str, ...] = tuple(bt.value for bt in BloodType)


def parse_blood_type(value: "BloodType | str") -> BloodType:
    """
    Parse a blood type code.

    Accepts a ``BloodType`` or a string such as ``"o-"`` or ``" AB+ "``
    (case and surrounding whitespace are normalized).

    Raises:
        InvalidBloodTypeError: If the value is not one of the 8 types.
    """
    if isinstance(value, BloodType):
        return value
    if not isinstance(value, str):
        raise InvalidBloodTypeError(repr(value))
    try:
        return BloodType(value.strip().upper())
    except ValueError:
        raise InvalidBloodTypeError(value) from None
