"""
Configuration Loader (``bloodbank_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
dataclasses of ``bloodbank_config.schema``.  Runtime callers go through
``bloodbank_config.get_active_config()``, which also applies environment
overrides.

Invariants enforced
-------------------
* Parse errors raise ``ValueError`` with the offending key in the
  message; values of the wrong type are never coerced silently.
* ``database.url`` is required.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Wrong types or out-of-range values  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from bloodbank_config.schema import (
    LOG_LEVELS,
    BloodBankConfig,
    DatabaseConfig,
    InventoryConfig,
    LoggingConfig,
)
from bloodbank_kernel.domain.policy import DispatchPolicy


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping, got {type(data).__name__}")
    return data


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ValueError(f"{name}: expected a mapping, got {section!r}")
    return section


def _int(section: str, data: dict[str, Any], key: str, default: int, minimum: int = 0) -> int:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ValueError(f"{section}.{key} must be an integer >= {minimum}, got {value!r}")
    return value


def _number(section: str, data: dict[str, Any], key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ValueError(f"{section}.{key} must be a non-negative number, got {value!r}")
    return float(value)


def _bool(section: str, data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"{section}.{key} must be true or false, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    url = data.get("url")
    if not isinstance(url, str) or not url.strip():
        raise ValueError(f"database.url must be a non-empty string, got {url!r}")
    return DatabaseConfig(
        url=url.strip(),
        echo=_bool("database", data, "echo", False),
        pool_size=_int("database", data, "pool_size", 20, minimum=1),
        max_overflow=_int("database", data, "max_overflow", 10),
        pool_timeout=_int("database", data, "pool_timeout", 30),
        pool_recycle=_int("database", data, "pool_recycle", 1800),
        sqlite_busy_timeout=_number("database", data, "sqlite_busy_timeout", 30.0),
    )


def parse_dispatch_policy(value: Any) -> DispatchPolicy:
    try:
        return DispatchPolicy(value)
    except ValueError:
        allowed = ", ".join(p.value for p in DispatchPolicy)
        raise ValueError(
            f"inventory.dispatch_policy must be one of {allowed}, got {value!r}"
        ) from None


def parse_inventory(data: dict[str, Any]) -> InventoryConfig:
    return InventoryConfig(
        low_stock_threshold=_int("inventory", data, "low_stock_threshold", 5),
        expiry_lookahead_days=_int("inventory", data, "expiry_lookahead_days", 7),
        dispatch_policy=parse_dispatch_policy(
            data.get("dispatch_policy", DispatchPolicy.COUNTER_ONLY.value)
        ),
    )


def parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {', '.join(LOG_LEVELS)}, got {value!r}")
    return level


def parse_config(data: dict[str, Any], source: str = "<dict>") -> BloodBankConfig:
    """
    Parse a full configuration mapping.

    Raises:
        ValueError: if any section is malformed.
    """
    return BloodBankConfig(
        database=parse_database(_section(data, "database")),
        inventory=parse_inventory(_section(data, "inventory")),
        logging=LoggingConfig(
            level=parse_log_level(_section(data, "logging").get("level", "INFO"))
        ),
        source=source,
        checksum=compute_checksum(data),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; identical input, identical hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
