"""
recon_kernel.models -- ORM models for transaction persistence.

Imports from recon_kernel.db.base only.
"""

from recon_kernel.models.transaction import (
    LedgerTransactionModel,
    TransactionStatusHistoryModel,
)

__all__ = [
    "LedgerTransactionModel",
    "TransactionStatusHistoryModel",
]
