"""Database layer - engine, base classes, types."""

from bloodbank_kernel.db.base import UUID, Base, TrackedBase, UUIDBase, UUIDString
from bloodbank_kernel.db.engine import (
    create_engine_from_url,
    create_session_factory,
    create_tables,
    drop_tables,
    session_scope,
)
from bloodbank_kernel.db.types import BLOOD_TYPE_CODES, blood_type_check

__all__ = [
    "create_engine_from_url",
    "create_session_factory",
    "create_tables",
    "drop_tables",
    "session_scope",
    "Base",
    "TrackedBase",
    "UUIDBase",
    "UUIDString",
    "UUID",
    "BLOOD_TYPE_CODES",
    "blood_type_check",
]
