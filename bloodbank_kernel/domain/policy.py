"""
InventoryPolicy -- tunable knobs of the inventory kernel.

The kernel never reads configuration files.  ``bloodbank_config`` builds an
``InventoryPolicy`` and hands it to services and selectors; when none is
given, ``DEFAULT_POLICY`` applies.
"""

from dataclasses import dataclass
from enum import Enum

from bloodbank_kernel.exceptions import InvalidAlertParameterError


class DispatchPolicy(str, Enum):
    """Which physical unit a dispatch consumes.

    COUNTER_ONLY decrements the stock counter and leaves the donation
    ledger untouched.  EARLIEST_EXPIRY also deletes the live donation of
    that type that expires first.
    """

    COUNTER_ONLY = "counter_only"
    EARLIEST_EXPIRY = "earliest_expiry"


@dataclass(frozen=True)
class InventoryPolicy:
    """Alert thresholds and dispatch behaviour."""

    low_stock_threshold: int = 5
    expiry_lookahead_days: int = 7
    dispatch_policy: DispatchPolicy = DispatchPolicy.COUNTER_ONLY

    def __post_init__(self) -> None:
        check_non_negative("low_stock_threshold", self.low_stock_threshold)
        check_non_negative("expiry_lookahead_days", self.expiry_lookahead_days)
        if not isinstance(self.dispatch_policy, DispatchPolicy):
            object.__setattr__(self, "dispatch_policy", DispatchPolicy(self.dispatch_policy))


def check_non_negative(name: str, value: object) -> int:
    """Return ``value`` if it is a non-negative int, else raise."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAlertParameterError(name, value)
    return value


DEFAULT_POLICY = InventoryPolicy()
