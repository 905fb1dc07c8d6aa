"""
recon_batch.domain.types -- Pure frozen dataclasses for reconciliation runs.

ZERO I/O.  A run returns a ``RunSummary`` value; there are no
module-level counters.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from recon_kernel.domain.types import TransactionStatus


class ItemDisposition(str, Enum):
    """What a single reconciliation check did to its record."""

    UPDATED = "updated"  # Status transition written
    UNCHANGED = "unchanged"  # Ledger answer changed nothing; last_checked_at stamped
    FAILED = "failed"  # Ledger call failed or record vanished; record untouched
    CONFLICT = "conflict"  # Another writer moved the record first


@dataclass(frozen=True)
class ItemCheckResult:
    """Immutable result of checking one pending transaction."""

    tx_hash: str
    disposition: ItemDisposition
    previous_status: TransactionStatus
    new_status: TransactionStatus | None = None
    detail: str | None = None
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class RunSummary:
    """Aggregate result of ``ReconciliationScheduler.run_once()``.

    ``conflicts`` are lost conditional writes; they are neither
    ``updated`` nor ``failed``.
    """

    run_id: str
    updated: int = 0
    unchanged: int = 0
    failed: int = 0
    conflicts: int = 0
    cancelled: bool = False
    item_results: tuple[ItemCheckResult, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def processed(self) -> int:
        return self.updated + self.unchanged + self.failed + self.conflicts

    def summary_line(self) -> str:
        line = f"{self.updated} updated, {self.unchanged} unchanged, {self.failed} failed"
        if self.conflicts:
            line += f", {self.conflicts} already handled"
        if self.cancelled:
            line += " (cancelled)"
        return line
