"""
recon_ledger -- I/O boundary to the external ledger.

Nothing in recon_kernel imports from recon_ledger; the ledger package
produces kernel DTOs and raises kernel exceptions.
"""

from recon_ledger.client import HorizonLedgerClient, LedgerClient
from recon_ledger.environment import LedgerEnvironment, LedgerSettings

__all__ = [
    "HorizonLedgerClient",
    "LedgerClient",
    "LedgerEnvironment",
    "LedgerSettings",
]
