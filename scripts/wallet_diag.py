#!/usr/bin/env python3
"""
Wallet diagnostic: balances, reserve, spendable amount and recent
transactions for one account.

An account that does not exist on the ledger has never been funded; on
the test network it can be funded with scripts/fund_test_account.py.

Usage:
    python3 scripts/wallet_diag.py GABC...XYZ
    python3 scripts/wallet_diag.py GABC...XYZ --network public --transactions 10
"""

import argparse
import sys

from recon_config import load_config
from recon_kernel.domain.liquidity import compute_liquidity, describe_liquidity
from recon_kernel.domain.types import LedgerOutcome, LedgerTransactionResult
from recon_kernel.exceptions import (
    ConfigurationError,
    LedgerAccountNotFoundError,
    LedgerError,
)
from recon_kernel.logging_config import LogContext, configure_logging
from recon_ledger.client import HorizonLedgerClient


def _describe_transaction(result: LedgerTransactionResult) -> list[str]:
    lines = [
        f"  Hash: {result.tx_hash}",
        f"    Created: {result.created_at or 'unknown'}",
        f"    Successful: {result.outcome == LedgerOutcome.SUCCESS}",
    ]
    if result.memo_type and result.memo_type != "none":
        lines.append(f"    Memo ({result.memo_type}): {result.memo}")
    return lines


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Ledger wallet diagnostic")
    parser.add_argument("public_key", help="Account public key")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--network", dest="ledger_environment",
                        choices=["testnet", "public"], help="Ledger network")
    parser.add_argument("--transactions", type=int, default=5,
                        help="Number of recent transactions to list")
    args = parser.parse_args(argv)

    if args.transactions <= 0:
        parser.error("--transactions must be positive")

    try:
        config = load_config(
            args.config, overrides={"ledger_environment": args.ledger_environment},
        )
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level)
    settings = config.ledger_settings()

    print(f"Network: {settings.environment.value} ({settings.horizon_url})")

    with LogContext.bind(public_key=args.public_key), HorizonLedgerClient(settings) as client:
        try:
            snapshot = client.fetch_account(args.public_key)
            recent = client.fetch_account_transactions(args.public_key, limit=args.transactions)
        except LedgerAccountNotFoundError:
            print("Account does not exist on the ledger and needs funding.")
            if settings.environment.friendbot_url:
                print(f"Fund it with: python3 scripts/fund_test_account.py {args.public_key}")
            return 1
        except LedgerError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    report = compute_liquidity(snapshot, low_balance_threshold=config.low_balance_threshold)
    for line in describe_liquidity(report):
        print(line)

    print("Recent transactions:")
    if not recent:
        print("  (none)")
    for result in recent:
        for line in _describe_transaction(result):
            print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
