"""
BloodBankConfig schema.

Frozen dataclasses the loader parses YAML into.  ``inventory_policy()`` is
the bridge to the kernel: the kernel only ever sees an ``InventoryPolicy``
and never imports this package.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from bloodbank_kernel.domain.policy import DispatchPolicy, InventoryPolicy

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings, passed to ``create_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    sqlite_busy_timeout: float = 30.0

    def engine_kwargs(self) -> dict[str, object]:
        return {
            "echo": self.echo,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
            "sqlite_busy_timeout": self.sqlite_busy_timeout,
        }


@dataclass(frozen=True)
class InventoryConfig:
    low_stock_threshold: int = 5
    expiry_lookahead_days: int = 7
    dispatch_policy: DispatchPolicy = DispatchPolicy.COUNTER_ONLY


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"

    @property
    def level_number(self) -> int:
        return logging.getLevelName(self.level)


@dataclass(frozen=True)
class BloodBankConfig:
    """The whole runtime configuration, plus where it came from."""

    database: DatabaseConfig
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: str = "<defaults>"
    checksum: str = ""

    def inventory_policy(self) -> InventoryPolicy:
        """Bridge to the kernel's policy object."""
        return InventoryPolicy(
            low_stock_threshold=self.inventory.low_stock_threshold,
            expiry_lookahead_days=self.inventory.expiry_lookahead_days,
            dispatch_policy=self.inventory.dispatch_policy,
        )
