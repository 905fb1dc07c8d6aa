"""
recon_kernel.domain -- Pure types and decisions for reconciliation.

ZERO I/O (apart from SystemClock).
"""

from recon_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from recon_kernel.domain.liquidity import LiquidityReport, compute_liquidity
from recon_kernel.domain.status_resolver import Resolution, resolve
from recon_kernel.domain.types import (
    AccountSnapshot,
    IssuedAsset,
    LedgerOutcome,
    LedgerTransactionResult,
    NativeAsset,
    PoolShareAsset,
    StatusHistoryEntry,
    TransactionRecord,
    TransactionStatus,
)

__all__ = [
    "AccountSnapshot",
    "Clock",
    "DeterministicClock",
    "IssuedAsset",
    "LedgerOutcome",
    "LedgerTransactionResult",
    "LiquidityReport",
    "NativeAsset",
    "PoolShareAsset",
    "Resolution",
    "StatusHistoryEntry",
    "SystemClock",
    "TransactionRecord",
    "TransactionStatus",
    "compute_liquidity",
    "resolve",
]
