"""Pure run-level types for the reconciliation batch."""

from recon_batch.domain.types import ItemCheckResult, ItemDisposition, RunSummary

__all__ = ["ItemCheckResult", "ItemDisposition", "RunSummary"]
