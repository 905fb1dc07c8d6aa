"""recon_kernel.services -- imperative shell over the pure domain."""

from recon_kernel.services.transaction_store import (
    SqlTransactionStore,
    TransactionStore,
    UpdateResult,
)

__all__ = [
    "SqlTransactionStore",
    "TransactionStore",
    "UpdateResult",
]
