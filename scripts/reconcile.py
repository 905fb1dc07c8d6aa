#!/usr/bin/env python3
"""
Reconcile pending ledger transactions against the ledger.

Runs one pass: selects up to ``batch_limit`` pending transactions (oldest
first), asks the ledger about each and records confirmations, failures
and expirations.  Prints "N updated, N unchanged, N failed".

Exit status is 0 whatever happens to individual transactions; it is 1
only when the transaction store can not be reached.

Usage:
    python3 scripts/reconcile.py
    python3 scripts/reconcile.py --config recon.yaml --batch-limit 20
    python3 scripts/reconcile.py --init-db --db-url sqlite:///ledger_recon.db
    python3 scripts/reconcile.py --watch        # every poll_interval_seconds
"""

import argparse
import sys

from sqlalchemy.exc import InterfaceError, OperationalError

from recon_batch.services.poller import ReconciliationPoller
from recon_batch.services.rate_limit import FixedDelayRateLimiter
from recon_batch.services.reconciler import ReconciliationScheduler
from recon_config import load_config
from recon_kernel.db.engine import (
    create_tables,
    get_session,
    get_session_factory,
    init_engine_from_url,
)
from recon_kernel.exceptions import ConfigurationError, StoreUnavailableError
from recon_kernel.logging_config import configure_logging
from recon_kernel.services.transaction_store import SqlTransactionStore
from recon_ledger.client import HorizonLedgerClient


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile pending ledger transactions")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--db-url", dest="database_url", help="Database URL")
    parser.add_argument("--max-age", dest="max_age_seconds", type=int,
                        help="Expire never-seen transactions older than this (seconds)")
    parser.add_argument("--batch-limit", type=int, help="Transactions checked per pass")
    parser.add_argument("--delay-ms", dest="inter_call_delay_ms", type=int,
                        help="Pause after each ledger call")
    parser.add_argument("--network", dest="ledger_environment",
                        choices=["testnet", "public"], help="Ledger network")
    parser.add_argument("--init-db", action="store_true",
                        help="Create tables before running")
    parser.add_argument("--watch", action="store_true",
                        help="Keep running, one pass every poll_interval_seconds")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = load_config(
            args.config,
            overrides={
                "database_url": args.database_url,
                "max_age_seconds": args.max_age_seconds,
                "batch_limit": args.batch_limit,
                "inter_call_delay_ms": args.inter_call_delay_ms,
                "ledger_environment": args.ledger_environment,
            },
        )
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    configure_logging(level=config.log_level)
    init_engine_from_url(config.database_url)

    if args.init_db:
        try:
            create_tables()
        except (OperationalError, InterfaceError) as exc:
            print(f"ERROR: transaction store unavailable: {exc}", file=sys.stderr)
            return 1

    rate_limiter = FixedDelayRateLimiter(config.inter_call_delay_ms)

    with HorizonLedgerClient(config.ledger_settings()) as client:
        if args.watch:
            poller = ReconciliationPoller(
                session_factory=get_session_factory(),
                ledger_client=client,
                max_age_seconds=config.max_age_seconds,
                batch_limit=config.batch_limit,
                rate_limiter=rate_limiter,
                recheck_interval_seconds=config.recheck_interval_seconds,
                poll_interval_seconds=config.poll_interval_seconds,
            )
            poller.start()
            try:
                poller.wait()
            except KeyboardInterrupt:
                poller.stop()
            return 0

        session = get_session()
        try:
            scheduler = ReconciliationScheduler(
                store=SqlTransactionStore(session),
                ledger_client=client,
                rate_limiter=rate_limiter,
                recheck_interval_seconds=config.recheck_interval_seconds,
            )
            summary = scheduler.run_once(config.max_age_seconds, config.batch_limit)
        except StoreUnavailableError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1
        finally:
            session.close()

    print(summary.summary_line())
    return 0


if __name__ == "__main__":
    sys.exit(main())
