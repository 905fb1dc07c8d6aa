"""Reconciliation run services."""

from recon_batch.services.poller import ReconciliationPoller
from recon_batch.services.rate_limit import (
    FixedDelayRateLimiter,
    NoDelayRateLimiter,
    RateLimiter,
)
from recon_batch.services.reconciler import ReconciliationScheduler

__all__ = [
    "FixedDelayRateLimiter",
    "NoDelayRateLimiter",
    "RateLimiter",
    "ReconciliationPoller",
    "ReconciliationScheduler",
]
