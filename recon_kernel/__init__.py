"""
Reconciliation Kernel

Local record of ledger-submitted payment transactions, kept consistent
with ledger truth:
- Monotonic status lifecycle (pending -> confirmed / failed / expired)
- Conditional, idempotent status writes
- Reserve-aware account liquidity
- Structured logging and typed errors
"""

__version__ = "0.1.0"
