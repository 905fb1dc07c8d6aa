"""
AccountLiquidityCalculator -- reserve accounting over an AccountSnapshot.

Contract:
    An account must hold a base reserve plus one entry reserve per
    subentry (trustline, offer, signer, data entry).  What is left of the
    native balance is spendable.

        minimum_balance   = base_reserve + subentry_count * entry_reserve
        available_balance = native_balance - minimum_balance
        low_balance       = available_balance < threshold

Invariants enforced:
    - Exact Decimal arithmetic throughout.  Float inputs are rejected so a
      reserve boundary (e.g. exactly 2.5) can not be missed by a rounding
      error.
    - Pure: no I/O, deterministic for a given snapshot and parameters.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from recon_kernel.domain.types import (
    AccountSnapshot,
    Asset,
    IssuedAsset,
    NativeAsset,
    PoolShareAsset,
)

BASE_RESERVE = Decimal("1.0")
ENTRY_RESERVE = Decimal("0.5")
LOW_BALANCE_THRESHOLD = Decimal("1.0")


@dataclass(frozen=True)
class LiquidityReport:
    """Reserve and spendable-balance breakdown for one account."""

    public_key: str
    sequence_number: int
    subentry_count: int
    native_balance: Decimal
    minimum_balance: Decimal
    available_balance: Decimal
    low_balance_warning: bool
    issued_balances: tuple[tuple[IssuedAsset, Decimal], ...] = ()
    pool_share_balances: tuple[tuple[PoolShareAsset, Decimal], ...] = ()


def _require_decimal(name: str, value: Decimal) -> Decimal:
    if not isinstance(value, Decimal):
        raise TypeError(f"{name} must be a Decimal, got {type(value).__name__}")
    return value


def minimum_balance(
    subentry_count: int,
    base_reserve: Decimal = BASE_RESERVE,
    entry_reserve: Decimal = ENTRY_RESERVE,
) -> Decimal:
    """Reserve an account with ``subentry_count`` subentries must hold."""
    if subentry_count < 0:
        raise ValueError(f"subentry_count must be non-negative, got {subentry_count}")
    _require_decimal("base_reserve", base_reserve)
    _require_decimal("entry_reserve", entry_reserve)
    return base_reserve + subentry_count * entry_reserve


def native_balance(balances: Mapping[Asset, Decimal]) -> Decimal:
    """Native-asset balance, or zero when the account holds none."""
    total = Decimal("0")
    for asset, amount in balances.items():
        match asset:
            case NativeAsset():
                total = _require_decimal("balance", amount)
            case IssuedAsset() | PoolShareAsset():
                continue
    return total


def compute_liquidity(
    snapshot: AccountSnapshot,
    *,
    base_reserve: Decimal = BASE_RESERVE,
    entry_reserve: Decimal = ENTRY_RESERVE,
    low_balance_threshold: Decimal = LOW_BALANCE_THRESHOLD,
) -> LiquidityReport:
    """Derive the liquidity report for ``snapshot``."""
    _require_decimal("low_balance_threshold", low_balance_threshold)

    minimum = minimum_balance(snapshot.subentry_count, base_reserve, entry_reserve)
    native = native_balance(snapshot.balances)
    available = native - minimum

    issued: list[tuple[IssuedAsset, Decimal]] = []
    pool_shares: list[tuple[PoolShareAsset, Decimal]] = []
    for asset, amount in snapshot.balances.items():
        match asset:
            case IssuedAsset():
                issued.append((asset, _require_decimal("balance", amount)))
            case PoolShareAsset():
                pool_shares.append((asset, _require_decimal("balance", amount)))
            case NativeAsset():
                pass
    issued.sort(key=lambda pair: (pair[0].code, pair[0].issuer))
    pool_shares.sort(key=lambda pair: pair[0].pool_id)

    return LiquidityReport(
        public_key=snapshot.public_key,
        sequence_number=snapshot.sequence_number,
        subentry_count=snapshot.subentry_count,
        native_balance=native,
        minimum_balance=minimum,
        available_balance=available,
        low_balance_warning=available < low_balance_threshold,
        issued_balances=tuple(issued),
        pool_share_balances=tuple(pool_shares),
    )


def describe_liquidity(report: LiquidityReport, native_code: str = "XLM") -> list[str]:
    """Human-readable lines for a wallet diagnostic."""
    lines = [
        f"Public key: {report.public_key}",
        f"Sequence number: {report.sequence_number}",
        f"Number of entries: {report.subentry_count}",
        f"{native_code}: {report.native_balance}",
    ]
    for asset, amount in report.issued_balances:
        lines.append(f"{asset.code} ({asset.issuer}): {amount}")
    for asset, amount in report.pool_share_balances:
        lines.append(f"Liquidity pool {asset.pool_id}: {amount}")
    lines.append(f"Required minimum balance: {report.minimum_balance} {native_code}")
    lines.append(
        f"Available balance (for transactions): {report.available_balance} {native_code}"
    )
    if report.low_balance_warning:
        lines.append("WARNING: Low available balance may cause transaction failures")
    return lines
