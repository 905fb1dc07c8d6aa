"""
YAML loading and validation for ``ReconciliationConfig``.

Failure modes:
    - Missing file           -> ``FileNotFoundError`` propagates.
    - Malformed YAML         -> ``yaml.YAMLError`` propagates.
    - Unknown key / bad value -> ``ConfigurationError``.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Mapping

import yaml

from recon_kernel.exceptions import ConfigurationError
from recon_ledger.environment import LedgerEnvironment

from recon_config.schema import ReconciliationConfig

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML mapping; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _non_negative_int(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(key, f"expected an integer, got {value!r}")
    if value < 0:
        raise ConfigurationError(key, f"must be non-negative, got {value}")
    return value


def _positive_int(key: str, value: Any) -> int:
    value = _non_negative_int(key, value)
    if value == 0:
        raise ConfigurationError(key, "must be positive, got 0")
    return value


def _positive_number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(key, f"expected a number, got {value!r}")
    if value <= 0:
        raise ConfigurationError(key, f"must be positive, got {value}")
    return float(value)


def _decimal(key: str, value: Any) -> Decimal:
    # Floats would carry binary rounding into reserve arithmetic.
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConfigurationError(key, f"expected a decimal string, got {value!r}")
    try:
        result = Decimal(str(value))
    except InvalidOperation as exc:
        raise ConfigurationError(key, f"not a decimal: {value!r}") from exc
    if not result.is_finite():
        raise ConfigurationError(key, f"must be finite, got {value!r}")
    return result


def _environment(key: str, value: Any) -> LedgerEnvironment:
    try:
        return LedgerEnvironment(str(value).lower())
    except ValueError as exc:
        choices = ", ".join(e.value for e in LedgerEnvironment)
        raise ConfigurationError(key, f"expected one of {choices}, got {value!r}") from exc


def _log_level(key: str, value: Any) -> str:
    level = str(value).upper()
    if level not in _LOG_LEVELS:
        raise ConfigurationError(key, f"unknown log level {value!r}")
    return level


def _database_url(key: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise ConfigurationError(key, "expected a non-empty database URL")
    return value


_PARSERS = {
    "max_age_seconds": _non_negative_int,
    "batch_limit": _non_negative_int,
    "inter_call_delay_ms": _non_negative_int,
    "ledger_environment": _environment,
    "recheck_interval_seconds": _non_negative_int,
    "request_timeout_seconds": _positive_number,
    "low_balance_threshold": _decimal,
    "database_url": _database_url,
    "poll_interval_seconds": _positive_int,
    "log_level": _log_level,
}


def parse_config(data: Mapping[str, Any]) -> ReconciliationConfig:
    """Build a ``ReconciliationConfig`` from a raw mapping.

    Keys absent from ``data`` keep their defaults.
    """
    unknown = sorted(set(data) - ReconciliationConfig.field_names())
    if unknown:
        raise ConfigurationError(unknown[0], "unknown configuration key")

    values = {key: _PARSERS[key](key, value) for key, value in data.items()}
    return ReconciliationConfig(**values)
