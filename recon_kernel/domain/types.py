"""
recon_kernel.domain.types -- Pure frozen dataclasses for reconciliation.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples /
mappings for collections, so values can be passed between the ledger
client, the resolver and the store without defensive copies.

Invariants enforced:
    - TransactionStatus is monotonic: PENDING is the only non-terminal
      status and terminal statuses are absorbing (``is_terminal``).
    - AccountSnapshot balances are keyed by a hashable Asset variant, so
      asset keys are unique by construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Mapping


# =============================================================================
# Status enums
# =============================================================================


class TransactionStatus(str, Enum):
    """Local finality status of a submitted transaction."""

    PENDING = "pending"  # Submitted, ledger has not given a final answer
    CONFIRMED = "confirmed"  # Ledger reports success
    FAILED = "failed"  # Ledger reports failure
    EXPIRED = "expired"  # Never seen on the ledger within the expiry window

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class LedgerOutcome(str, Enum):
    """Ledger answer for a transaction lookup."""

    SUCCESS = "success"
    FAILED = "failed"
    NOT_FOUND = "not_found"


# =============================================================================
# Transaction DTOs
# =============================================================================


@dataclass(frozen=True)
class TransactionRecord:
    """Immutable snapshot of a locally tracked transaction."""

    tx_hash: str
    status: TransactionStatus
    created_at: datetime
    last_checked_at: datetime | None = None
    previous_status: TransactionStatus | None = None
    ledger_sequence: int | None = None
    fee_charged: int | None = None
    status_detail: str | None = None


@dataclass(frozen=True)
class StatusHistoryEntry:
    """One applied status transition."""

    tx_hash: str
    status: TransactionStatus
    occurred_at: datetime
    details: str | None = None


@dataclass(frozen=True)
class LedgerTransactionResult:
    """Ledger answer for ``fetch_transaction``.

    Detail fields are only populated when the ledger knows the
    transaction (outcome SUCCESS or FAILED).
    """

    tx_hash: str
    outcome: LedgerOutcome
    ledger_sequence: int | None = None
    fee_charged: int | None = None
    source_account: str | None = None
    memo: str | None = None
    memo_type: str | None = None
    operation_count: int | None = None
    created_at: str | None = None  # Ledger close time as reported, ISO-8601

    @classmethod
    def not_found(cls, tx_hash: str) -> LedgerTransactionResult:
        return cls(tx_hash=tx_hash, outcome=LedgerOutcome.NOT_FOUND)


# =============================================================================
# Account DTOs
# =============================================================================


@dataclass(frozen=True)
class NativeAsset:
    """The ledger's native asset (XLM on Stellar)."""

    def __str__(self) -> str:
        return "native"


@dataclass(frozen=True)
class IssuedAsset:
    """An asset issued by a ledger account, identified by code + issuer."""

    code: str
    issuer: str

    def __str__(self) -> str:
        return f"{self.code}:{self.issuer}"


@dataclass(frozen=True)
class PoolShareAsset:
    """Shares in a liquidity pool, identified by the pool id."""

    pool_id: str

    def __str__(self) -> str:
        return f"pool:{self.pool_id}"


Asset = NativeAsset | IssuedAsset | PoolShareAsset

NATIVE = NativeAsset()


@dataclass(frozen=True)
class AccountSnapshot:
    """Ephemeral view of a ledger account, fetched fresh per check."""

    public_key: str
    sequence_number: int
    subentry_count: int
    balances: Mapping[Asset, Decimal] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.subentry_count < 0:
            raise ValueError(
                f"subentry_count must be non-negative, got {self.subentry_count}"
            )
        object.__setattr__(self, "balances", MappingProxyType(dict(self.balances)))
