"""
StatusResolver -- pure status-transition decision.

Contract:
    ``resolve()`` maps a local record, a ledger outcome and the record's
    age to the next status plus a changed / unchanged verdict.  ZERO I/O;
    the reconciler owns queries and writes.

Rules, in priority order:
    1. Terminal record          -> same status, unchanged.
    2. Ledger SUCCESS           -> CONFIRMED.
    3. Ledger FAILED            -> FAILED, always a transition.
    4. NOT_FOUND, age >= max    -> EXPIRED.
    5. NOT_FOUND, age <  max    -> PENDING, unchanged.

Transient ledger errors are never passed here.  They leave the record
untouched for the next pass.
"""

from __future__ import annotations

from dataclasses import dataclass

from recon_kernel.domain.types import (
    LedgerOutcome,
    LedgerTransactionResult,
    TransactionRecord,
    TransactionStatus,
)


@dataclass(frozen=True)
class Resolution:
    """Result of ``resolve()``."""

    next_status: TransactionStatus
    changed: bool
    detail: str | None = None


def resolve(
    current: TransactionRecord,
    ledger_outcome: LedgerOutcome,
    age_seconds: int,
    max_age_seconds: int,
) -> Resolution:
    """Decide the next status for ``current`` given the ledger's answer."""
    if current.status.is_terminal:
        return Resolution(next_status=current.status, changed=False)

    match ledger_outcome:
        case LedgerOutcome.SUCCESS:
            return Resolution(
                next_status=TransactionStatus.CONFIRMED,
                changed=current.status != TransactionStatus.CONFIRMED,
                detail="Transaction confirmed on ledger",
            )
        case LedgerOutcome.FAILED:
            return Resolution(
                next_status=TransactionStatus.FAILED,
                changed=True,
                detail="Transaction failed on ledger",
            )
        case LedgerOutcome.NOT_FOUND if age_seconds >= max_age_seconds:
            return Resolution(
                next_status=TransactionStatus.EXPIRED,
                changed=True,
                detail=f"Transaction expired after {max_age_seconds} seconds",
            )
        case LedgerOutcome.NOT_FOUND:
            return Resolution(next_status=TransactionStatus.PENDING, changed=False)

    raise ValueError(f"Unknown ledger outcome: {ledger_outcome!r}")


def resolve_result(
    current: TransactionRecord,
    result: LedgerTransactionResult,
    age_seconds: int,
    max_age_seconds: int,
) -> Resolution:
    """``resolve()`` over a full ledger result, adding the ledger number to the detail."""
    resolution = resolve(current, result.outcome, age_seconds, max_age_seconds)
    if (
        resolution.changed
        and resolution.next_status == TransactionStatus.CONFIRMED
        and result.ledger_sequence is not None
    ):
        return Resolution(
            next_status=resolution.next_status,
            changed=True,
            detail=f"Transaction confirmed in ledger {result.ledger_sequence}",
        )
    return resolution
