"""
ReconciliationPoller -- in-process periodic trigger for ``run_once()``.

Contract:
    Every ``poll_interval_seconds`` opens a session, builds a store and a
    ``ReconciliationScheduler`` and runs one pass.  ``stop()`` doubles as
    the run's cancel signal, so a long batch stops at the next item
    boundary.

Invariants enforced:
    - One pass at a time per poller.
    - A failed pass is logged and the loop keeps going; the store may be
      back on the next tick.
"""

from __future__ import annotations

import threading
from typing import Callable

from sqlalchemy.orm import Session

from recon_kernel.domain.clock import Clock, SystemClock
from recon_kernel.logging_config import get_logger
from recon_kernel.services.transaction_store import SqlTransactionStore
from recon_ledger.client import LedgerClient

from recon_batch.domain.types import RunSummary
from recon_batch.services.rate_limit import RateLimiter
from recon_batch.services.reconciler import ReconciliationScheduler

logger = get_logger("batch.poller")


class ReconciliationPoller:
    """Background polling loop around ``ReconciliationScheduler``.

    Non-goals:
        - NOT a distributed scheduler; two pollers against one database
          rely on conditional writes, not on locking.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        ledger_client: LedgerClient,
        max_age_seconds: int,
        batch_limit: int,
        clock: Clock | None = None,
        rate_limiter: RateLimiter | None = None,
        recheck_interval_seconds: int = 0,
        poll_interval_seconds: float = 300,
    ):
        if poll_interval_seconds <= 0:
            raise ValueError(
                f"poll_interval_seconds must be positive, got {poll_interval_seconds}"
            )
        self._session_factory = session_factory
        self._ledger = ledger_client
        self._max_age_seconds = max_age_seconds
        self._batch_limit = batch_limit
        self._clock = clock or SystemClock()
        self._rate_limiter = rate_limiter
        self._recheck_interval = recheck_interval_seconds
        self._poll_interval = poll_interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_summary: RunSummary | None = None

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def tick(self) -> RunSummary | None:
        """Run one reconciliation pass (public for testing).

        Returns the pass summary, or None if the pass failed.
        """
        session = self._session_factory()
        try:
            scheduler = ReconciliationScheduler(
                store=SqlTransactionStore(session),
                ledger_client=self._ledger,
                clock=self._clock,
                rate_limiter=self._rate_limiter,
                recheck_interval_seconds=self._recheck_interval,
            )
            summary = scheduler.run_once(
                self._max_age_seconds,
                self._batch_limit,
                cancel_event=self._stop_event,
            )
            self._last_summary = summary
            return summary
        except Exception:
            session.rollback()
            logger.exception("poller_tick_failed")
            return None
        finally:
            session.close()

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="reconciliation-poller",
            daemon=True,
        )
        self._thread.start()
        logger.info("poller_started", extra={"poll_interval": self._poll_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the current item to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("poller_stopped")

    def wait(self) -> None:
        """Block until the loop exits."""
        if self._thread is not None:
            self._thread.join()

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def last_summary(self) -> RunSummary | None:
        return self._last_summary

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(timeout=self._poll_interval)
