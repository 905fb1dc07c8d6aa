"""
ReconciliationScheduler -- one idempotent reconciliation pass.

Contract:
    ``run_once()`` selects up to ``batch_limit`` pending records, asks the
    ledger about each in turn, resolves the next status and writes it
    with a conditional update.  Returns a ``RunSummary``.

Architecture: recon_batch/services.  Depends on the ``TransactionStore``
    and ``LedgerClient`` protocols; pure decisions come from
    recon_kernel.domain.status_resolver.

Invariants enforced:
    - Items are processed strictly sequentially, one ledger call at a time,
      with a rate-limit wait after every item.
    - A failing item never aborts the batch.  Ledger errors leave the
      record untouched for the next pass.
    - Each item's writes are committed as one unit before the next item
      starts, so cancellation between items never leaves a partial write.
    - A lost conditional write is counted in ``conflicts``, never in
      ``failed``.
    - Only ``StoreUnavailableError`` ends a run early; it propagates.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

import threading
import time
from uuid import uuid4

from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.domain.status_resolver import resolve_result
from recon_kernel.domain.types import TransactionRecord
from recon_kernel.exceptions import (
    LedgerError,
    StoreUnavailableError,
    TransactionNotFoundError,
)
from recon_kernel.logging_config import LogContext, get_logger
from recon_kernel.services.transaction_store import TransactionStore, UpdateResult
from recon_ledger.client import LedgerClient

from recon_batch.domain.types import ItemCheckResult, ItemDisposition, RunSummary
from recon_batch.services.rate_limit import NoDelayRateLimiter, RateLimiter

logger = get_logger("batch.reconciler")


class ReconciliationScheduler:
    """Runs reconciliation passes over the pending transactions.

    Non-goals:
        - Does NOT trigger itself periodically; see ``ReconciliationPoller``.
        - Does NOT lock against overlapping runs.  Overlap is made safe by
          the store's conditional ``update()``.
    """

    def __init__(
        self,
        store: TransactionStore,
        ledger_client: LedgerClient,
        clock: Clock | None = None,
        rate_limiter: RateLimiter | None = None,
        recheck_interval_seconds: int = 0,
    ):
        self._store = store
        self._ledger = ledger_client
        self._clock = clock or SystemClock()
        self._rate_limiter = rate_limiter or NoDelayRateLimiter()
        self._recheck_interval = recheck_interval_seconds

    def run_once(
        self,
        max_age_seconds: int,
        batch_limit: int,
        cancel_event: threading.Event | None = None,
    ) -> RunSummary:
        """Reconcile up to ``batch_limit`` pending transactions.

        Args:
            max_age_seconds: Records at least this old that the ledger has
                never seen are expired.
            batch_limit: Maximum number of records checked this pass.
            cancel_event: Checked before each item; once set, the run
                stops and returns what it has done so far.

        Raises:
            StoreUnavailableError: The store went away; nothing after the
                last committed item was written.
        """
        if max_age_seconds < 0:
            raise ValueError(f"max_age_seconds must be non-negative, got {max_age_seconds}")
        if batch_limit < 0:
            raise ValueError(f"batch_limit must be non-negative, got {batch_limit}")

        run_id = str(uuid4())
        start_time = time.monotonic()
        started_at = self._clock.now()

        with LogContext.bind(run_id=run_id):
            logger.info(
                "reconciliation_run_started",
                extra={
                    "max_age_seconds": max_age_seconds,
                    "batch_limit": batch_limit,
                    "recheck_interval_seconds": self._recheck_interval,
                },
            )

            try:
                records = self._store.get_pending(
                    self._recheck_interval, batch_limit, started_at,
                )
            except StoreUnavailableError:
                logger.exception("reconciliation_run_aborted", extra={"stage": "get_pending"})
                raise

            results: list[ItemCheckResult] = []
            cancelled = False

            for record in records:
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    logger.info(
                        "reconciliation_run_cancelled",
                        extra={"remaining": len(records) - len(results)},
                    )
                    break

                try:
                    results.append(self._check_item(record, max_age_seconds))
                except StoreUnavailableError:
                    logger.exception(
                        "reconciliation_run_aborted",
                        extra={"stage": "item", "failed_tx_hash": record.tx_hash},
                    )
                    raise

                self._rate_limiter.wait()

            counts = {disposition: 0 for disposition in ItemDisposition}
            for result in results:
                counts[result.disposition] += 1

            summary = RunSummary(
                run_id=run_id,
                updated=counts[ItemDisposition.UPDATED],
                unchanged=counts[ItemDisposition.UNCHANGED],
                failed=counts[ItemDisposition.FAILED],
                conflicts=counts[ItemDisposition.CONFLICT],
                cancelled=cancelled,
                item_results=tuple(results),
                started_at=started_at,
                completed_at=self._clock.now(),
                duration_ms=int((time.monotonic() - start_time) * 1000),
            )

            logger.info(
                "reconciliation_run_completed",
                extra={
                    "selected": len(records),
                    "updated": summary.updated,
                    "unchanged": summary.unchanged,
                    "failed": summary.failed,
                    "conflicts": summary.conflicts,
                    "cancelled": summary.cancelled,
                    "duration_ms": summary.duration_ms,
                },
            )

        return summary

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _check_item(self, record: TransactionRecord, max_age_seconds: int) -> ItemCheckResult:
        """Check one record.  Emits exactly one log line."""
        item_start = time.monotonic()

        with LogContext.bind(tx_hash=record.tx_hash):
            try:
                ledger_result = self._ledger.fetch_transaction(record.tx_hash)
            except LedgerError as exc:
                return self._failed(record, exc.code, str(exc), item_start)
            except Exception as exc:
                return self._failed(record, "UNHANDLED_EXCEPTION", str(exc), item_start)

            checked_at = self._clock.now()
            age_seconds = self._clock.seconds_since(record.created_at)
            resolution = resolve_result(record, ledger_result, age_seconds, max_age_seconds)

            try:
                if resolution.changed:
                    outcome = self._store.update(
                        record.tx_hash,
                        record.status,
                        resolution.next_status,
                        checked_at,
                        detail=resolution.detail,
                        ledger_sequence=ledger_result.ledger_sequence,
                        fee_charged=ledger_result.fee_charged,
                    )
                else:
                    outcome = (
                        UpdateResult.APPLIED
                        if self._store.touch(record.tx_hash, checked_at)
                        else UpdateResult.NOT_FOUND
                    )
                self._store.commit()
            except StoreUnavailableError:
                raise
            except Exception as exc:
                # Integrity or data errors stay scoped to this item.
                self._store.rollback()
                return self._failed(record, "STORE_WRITE_FAILED", str(exc), item_start)

            if outcome is UpdateResult.NOT_FOUND:
                return self._failed(
                    record,
                    TransactionNotFoundError.code,
                    f"Transaction not found: {record.tx_hash}",
                    item_start,
                )

            if outcome is UpdateResult.CONFLICT:
                disposition = ItemDisposition.CONFLICT
            elif resolution.changed:
                disposition = ItemDisposition.UPDATED
            else:
                disposition = ItemDisposition.UNCHANGED

            result = ItemCheckResult(
                tx_hash=record.tx_hash,
                disposition=disposition,
                previous_status=record.status,
                new_status=resolution.next_status,
                detail=resolution.detail,
                duration_ms=int((time.monotonic() - item_start) * 1000),
            )

            logger.info(
                "transaction_checked",
                extra={
                    "ledger_outcome": ledger_result.outcome.value,
                    "age_seconds": age_seconds,
                    "disposition": disposition.value,
                    "previous_status": record.status.value,
                    "new_status": resolution.next_status.value,
                },
            )
            return result

    def _failed(
        self,
        record: TransactionRecord,
        error_code: str,
        error_message: str,
        item_start: float,
    ) -> ItemCheckResult:
        logger.warning(
            "transaction_check_failed",
            extra={"error_code": error_code, "error_message": error_message},
        )
        return ItemCheckResult(
            tx_hash=record.tx_hash,
            disposition=ItemDisposition.FAILED,
            previous_status=record.status,
            error_code=error_code,
            error_message=error_message,
            duration_ms=int((time.monotonic() - item_start) * 1000),
        )
