"""Pure domain layer: value objects, authorization and alert rules (no I/O)."""

from bloodbank_kernel.domain.alerts import (
    ExpiryAlert,
    ExpirySeverity,
    ScarcityAlert,
    classify_expiry,
    scan_expiry,
    scan_scarcity,
)
from bloodbank_kernel.domain.blood_types import BloodType, parse_blood_type
from bloodbank_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from bloodbank_kernel.domain.policy import DEFAULT_POLICY, DispatchPolicy, InventoryPolicy
from bloodbank_kernel.domain.roles import Actor, ActorRole, Operation, is_authorized

__all__ = [
    "Actor",
    "ActorRole",
    "BloodType",
    "Clock",
    "DEFAULT_POLICY",
    "DeterministicClock",
    "DispatchPolicy",
    "ExpiryAlert",
    "ExpirySeverity",
    "InventoryPolicy",
    "Operation",
    "ScarcityAlert",
    "SystemClock",
    "classify_expiry",
    "is_authorized",
    "parse_blood_type",
    "scan_expiry",
    "scan_scarcity",
]
