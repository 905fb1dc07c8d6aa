"""
Ledger network environments and client settings.

The network is always chosen explicitly through ``LedgerSettings``; the
client never reads a global testnet/mainnet flag.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class LedgerEnvironment(str, Enum):
    """Ledger network the engine talks to."""

    TESTNET = "testnet"
    PUBLIC = "public"

    @property
    def horizon_url(self) -> str:
        return _HORIZON_URLS[self]

    @property
    def friendbot_url(self) -> str | None:
        """Test-account funding endpoint; only the test network has one."""
        return _FRIENDBOT_URLS.get(self)


_HORIZON_URLS = {
    LedgerEnvironment.TESTNET: "https://horizon-testnet.stellar.org",
    LedgerEnvironment.PUBLIC: "https://horizon.stellar.org",
}

_FRIENDBOT_URLS = {
    LedgerEnvironment.TESTNET: "https://friendbot.stellar.org",
}


@dataclass(frozen=True)
class LedgerSettings:
    """Explicit construction parameters for a ledger client."""

    environment: LedgerEnvironment = LedgerEnvironment.TESTNET
    timeout_seconds: float = 10.0
    base_url: str | None = None  # Overrides the environment's Horizon URL

    def __post_init__(self) -> None:
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )

    @property
    def horizon_url(self) -> str:
        return (self.base_url or self.environment.horizon_url).rstrip("/")
