#!/usr/bin/env python3
"""
Create and fund an account on the test network via friendbot.

Refuses to run against the public network.

Usage:
    python3 scripts/fund_test_account.py GABC...XYZ
"""

import argparse
import sys

from recon_config import load_config
from recon_kernel.exceptions import ConfigurationError, LedgerError
from recon_kernel.logging_config import configure_logging
from recon_ledger.client import HorizonLedgerClient


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Fund a test-network account")
    parser.add_argument("public_key", help="Account public key")
    parser.add_argument("--config", help="YAML configuration file")
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level)

    with HorizonLedgerClient(config.ledger_settings()) as client:
        try:
            funded = client.fund_test_account(args.public_key)
        except LedgerError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    if not funded:
        print(f"Friendbot did not fund {args.public_key} (already funded?)")
        return 1
    print(f"Funded {args.public_key}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
