"""
Typed configuration for the reconciliation engine.

Every field has a default; ``ReconciliationConfig()`` is a complete,
runnable configuration for the test network.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal

from recon_ledger.environment import LedgerEnvironment, LedgerSettings


@dataclass(frozen=True)
class ReconciliationConfig:
    max_age_seconds: int = 3600
    batch_limit: int = 50
    inter_call_delay_ms: int = 200
    ledger_environment: LedgerEnvironment = LedgerEnvironment.TESTNET
    recheck_interval_seconds: int = 0
    request_timeout_seconds: float = 10.0
    low_balance_threshold: Decimal = Decimal("1")
    database_url: str = "sqlite:///ledger_recon.db"
    poll_interval_seconds: int = 300
    log_level: str = "INFO"

    @classmethod
    def field_names(cls) -> frozenset[str]:
        return frozenset(f.name for f in fields(cls))

    def ledger_settings(self) -> LedgerSettings:
        """Explicit ledger settings for ``HorizonLedgerClient``."""
        return LedgerSettings(
            environment=self.ledger_environment,
            timeout_seconds=self.request_timeout_seconds,
        )
