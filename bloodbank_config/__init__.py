"""
bloodbank_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Loads ``defaults.yaml`` (or a given file),
    applies environment overrides and returns a frozen
    ``BloodBankConfig``.

Architecture position:
    Configuration -- sits above ``bloodbank_kernel``.  The kernel MUST
    NEVER import from ``bloodbank_config``; ``BloodBankConfig.inventory_policy()``
    translates configuration into the kernel's ``InventoryPolicy``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` -- a value is missing, of the wrong type or out of range.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``bloodbank_config_loaded`` log entry with the source file, checksum
    and applied overrides.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from bloodbank_config.loader import load_yaml_file, parse_config, parse_log_level
from bloodbank_config.schema import BloodBankConfig, DatabaseConfig, InventoryConfig, LoggingConfig
from bloodbank_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

ENV_DATABASE_URL = "BLOODBANK_DATABASE_URL"
ENV_LOG_LEVEL = "BLOODBANK_LOG_LEVEL"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> BloodBankConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to the packaged
            ``defaults.yaml``.
        environ: Environment to read overrides from.  Defaults to
            ``os.environ``.

    Returns:
        Validated, frozen BloodBankConfig.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ValueError: If validation fails.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH
    env = os.environ if environ is None else environ

    data = load_yaml_file(path)

    overrides: list[str] = []
    database_url = env.get(ENV_DATABASE_URL)
    if database_url:
        data = {**data, "database": {**(data.get("database") or {}), "url": database_url}}
        overrides.append(ENV_DATABASE_URL)
    log_level = env.get(ENV_LOG_LEVEL)
    if log_level:
        data = {**data, "logging": {**(data.get("logging") or {}), "level": parse_log_level(log_level)}}
        overrides.append(ENV_LOG_LEVEL)

    config = parse_config(data, source=str(path))

    _logger.info(
        "bloodbank_config_loaded",
        extra={
            "source": config.source,
            "checksum": config.checksum,
            "overrides": overrides,
            "dispatch_policy": config.inventory.dispatch_policy.value,
            "low_stock_threshold": config.inventory.low_stock_threshold,
            "expiry_lookahead_days": config.inventory.expiry_lookahead_days,
        },
    )
    return config


__all__ = [
    "BloodBankConfig",
    "DatabaseConfig",
    "DEFAULT_CONFIG_PATH",
    "InventoryConfig",
    "LoggingConfig",
    "get_active_config",
]
