"""
recon_batch -- reconciliation runs over pending ledger transactions.

    from recon_batch import ReconciliationScheduler

    summary = ReconciliationScheduler(store, client).run_once(3600, 50)
    print(summary.summary_line())
"""

from recon_batch.domain.types import ItemCheckResult, ItemDisposition, RunSummary
from recon_batch.services.poller import ReconciliationPoller
from recon_batch.services.rate_limit import FixedDelayRateLimiter, RateLimiter
from recon_batch.services.reconciler import ReconciliationScheduler

__all__ = [
    "FixedDelayRateLimiter",
    "ItemCheckResult",
    "ItemDisposition",
    "RateLimiter",
    "ReconciliationPoller",
    "ReconciliationScheduler",
    "RunSummary",
]
