"""
recon_config -- the single way to obtain reconciliation settings.

Resolution order (later wins):
    1. ``defaults.yaml`` shipped with this package.
    2. The YAML file passed as ``path``.
    3. ``overrides`` (typically command-line flags).

Failure modes:
    - ``ConfigurationError`` -- unknown key or invalid value.
    - ``FileNotFoundError`` / ``yaml.YAMLError`` -- unreadable file.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from recon_kernel.logging_config import get_logger

from recon_config.loader import load_yaml_file, parse_config
from recon_config.schema import ReconciliationConfig

logger = get_logger("config")

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_config(
    path: Path | str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> ReconciliationConfig:
    """Load the active configuration."""
    data = load_yaml_file(DEFAULTS_PATH)
    if path is not None:
        data.update(load_yaml_file(Path(path)))
    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})

    config = parse_config(data)
    logger.debug(
        "config_loaded",
        extra={
            "source": str(path) if path is not None else "defaults",
            "ledger_environment": config.ledger_environment.value,
            "max_age_seconds": config.max_age_seconds,
            "batch_limit": config.batch_limit,
        },
    )
    return config


__all__ = ["DEFAULTS_PATH", "ReconciliationConfig", "load_config", "parse_config"]
