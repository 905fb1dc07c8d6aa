"""
Pytest fixtures for the reconciliation test suite.

Provides:
- Structured-log capture
- SQLite database sessions (in-memory by default, file-backed for
  tests that need more than one connection)
- A deterministic clock and a scripted ledger client
"""

import json
import logging
from datetime import datetime, timedelta, timezone
from io import StringIO
from typing import Callable

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

import recon_kernel.models  # noqa: F401  (registers tables)
from recon_kernel.db.base import Base
from recon_kernel.domain.clock import DeterministicClock
from recon_kernel.domain.types import LedgerOutcome, LedgerTransactionResult
from recon_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from recon_kernel.services.transaction_store import SqlTransactionStore

NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture recon_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "transaction_checked" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("recon_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Time
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(NOW)


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
def engine():
    eng = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine) -> Session:
    factory = sessionmaker(bind=engine, expire_on_commit=False)
    sess = factory()
    yield sess
    sess.close()


@pytest.fixture
def store(session) -> SqlTransactionStore:
    return SqlTransactionStore(session)


@pytest.fixture
def file_session_factory(tmp_path) -> Callable[[], Session]:
    """Session factory over a SQLite file, shared across connections and threads."""
    eng = create_engine(f"sqlite:///{tmp_path / 'recon.db'}")
    Base.metadata.create_all(eng)
    factory = sessionmaker(bind=eng, expire_on_commit=False)
    yield factory
    eng.dispose()


@pytest.fixture
def add_pending(store, clock):
    """Insert a PENDING record ``age_seconds`` old (relative to the clock) and commit."""

    def _add(tx_hash: str, age_seconds: int = 10):
        record = store.add_pending(tx_hash, clock.now() - timedelta(seconds=age_seconds))
        store.commit()
        return record

    return _add


# =============================================================================
# Ledger doubles
# =============================================================================


class ScriptedLedgerClient:
    """LedgerClient double: per-hash outcomes or exceptions, records every call."""

    def __init__(self, answers: dict | None = None):
        self.answers = dict(answers or {})
        self.calls: list[str] = []

    def fetch_transaction(self, tx_hash: str) -> LedgerTransactionResult:
        self.calls.append(tx_hash)
        answer = self.answers.get(tx_hash, LedgerOutcome.NOT_FOUND)
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, LedgerTransactionResult):
            return answer
        return LedgerTransactionResult(tx_hash=tx_hash, outcome=answer)

    def fetch_account(self, public_key: str):
        raise NotImplementedError


@pytest.fixture
def ledger() -> ScriptedLedgerClient:
    return ScriptedLedgerClient()


@pytest.fixture
def ledger_factory() -> type[ScriptedLedgerClient]:
    return ScriptedLedgerClient
