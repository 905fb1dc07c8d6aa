"""
Tests for the command-line entry points in scripts/.

The scripts are loaded from their file paths; ledger access is replaced
with in-process fakes so nothing touches the network.
"""

import importlib.util
from decimal import Decimal
from pathlib import Path

import pytest

from recon_kernel.db.engine import reset_engine
from recon_kernel.domain.types import (
    NATIVE,
    AccountSnapshot,
    LedgerOutcome,
    LedgerTransactionResult,
)
from recon_kernel.exceptions import LedgerAccountNotFoundError

SCRIPTS = Path(__file__).resolve().parents[2] / "scripts"


def _load(name: str):
    spec = importlib.util.spec_from_file_location(f"script_{name}", SCRIPTS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture(autouse=True)
def _reset_engine():
    yield
    reset_engine()


class FakeHorizon:
    snapshot: AccountSnapshot | None = None
    transactions: tuple[LedgerTransactionResult, ...] = ()
    requested_limits: tuple[int, ...] = ()

    def __init__(self, settings):
        self.settings = settings

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return None

    def fetch_account(self, public_key):
        if self.snapshot is None:
            raise LedgerAccountNotFoundError(public_key)
        return self.snapshot

    def fetch_account_transactions(self, public_key, limit=5):
        type(self).requested_limits += (limit,)
        return self.transactions

    def fund_test_account(self, public_key):
        return True


class TestReconcile:
    def test_empty_database_run(self, tmp_path, capsys):
        reconcile = _load("reconcile")
        url = f"sqlite:///{tmp_path / 'cli.db'}"

        assert reconcile.main(["--db-url", url, "--init-db", "--delay-ms", "0"]) == 0
        assert capsys.readouterr().out.strip() == "0 updated, 0 unchanged, 0 failed"

    def test_unreachable_store_exits_1(self, tmp_path, capsys):
        reconcile = _load("reconcile")
        url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'cli.db'}"

        assert reconcile.main(["--db-url", url]) == 1
        assert "unavailable" in capsys.readouterr().err

    def test_bad_config_exits_2(self, tmp_path):
        reconcile = _load("reconcile")
        config = tmp_path / "bad.yaml"
        config.write_text("batch_size: 3\n")
        assert reconcile.main(["--config", str(config)]) == 2


class TestWalletDiag:
    def test_report(self, monkeypatch, capsys):
        wallet_diag = _load("wallet_diag")

        class Funded(FakeHorizon):
            snapshot = AccountSnapshot(
                public_key="GKEY", sequence_number=9, subentry_count=3,
                balances={NATIVE: Decimal("2.0")},
            )

        monkeypatch.setattr(wallet_diag, "HorizonLedgerClient", Funded)

        assert wallet_diag.main(["GKEY"]) == 0
        out = capsys.readouterr().out
        assert "Required minimum balance: 2.5 XLM" in out
        assert "WARNING: Low available balance may cause transaction failures" in out

    def test_unfunded_account(self, monkeypatch, capsys):
        wallet_diag = _load("wallet_diag")
        monkeypatch.setattr(wallet_diag, "HorizonLedgerClient", FakeHorizon)

        assert wallet_diag.main(["GKEY"]) == 1
        out = capsys.readouterr().out
        assert "needs funding" in out
        assert "fund_test_account.py GKEY" in out

    def test_recent_transactions(self, monkeypatch, capsys):
        wallet_diag = _load("wallet_diag")

        class WithHistory(FakeHorizon):
            snapshot = AccountSnapshot(
                public_key="GKEY", sequence_number=9, subentry_count=0,
                balances={NATIVE: Decimal("50")},
            )
            transactions = (
                LedgerTransactionResult(
                    tx_hash="bbb", outcome=LedgerOutcome.SUCCESS, ledger_sequence=20,
                    memo="rent", memo_type="text", created_at="2024-01-01T11:59:00Z",
                ),
                LedgerTransactionResult(
                    tx_hash="aaa", outcome=LedgerOutcome.FAILED, ledger_sequence=19,
                    memo_type="none", created_at="2024-01-01T11:58:00Z",
                ),
            )

        monkeypatch.setattr(wallet_diag, "HorizonLedgerClient", WithHistory)

        assert wallet_diag.main(["GKEY", "--transactions", "2"]) == 0
        out = capsys.readouterr().out
        assert WithHistory.requested_limits == (2,)
        assert "Recent transactions:" in out
        assert out.index("Hash: bbb") < out.index("Hash: aaa")
        assert "Created: 2024-01-01T11:59:00Z" in out
        assert "Successful: False" in out
        assert "Memo (text): rent" in out
        assert out.count("Memo (") == 1

    def test_bad_config_exits_2(self, tmp_path):
        wallet_diag = _load("wallet_diag")
        config = tmp_path / "bad.yaml"
        config.write_text("poll_interval_seconds: 0\n")
        assert wallet_diag.main(["GKEY", "--config", str(config)]) == 2


class TestFundTestAccount:
    def test_funded(self, monkeypatch, capsys):
        fund = _load("fund_test_account")
        monkeypatch.setattr(fund, "HorizonLedgerClient", FakeHorizon)

        assert fund.main(["GKEY"]) == 0
        assert "Funded GKEY" in capsys.readouterr().out

    def test_bad_config_exits_2(self, tmp_path, capsys):
        fund = _load("fund_test_account")
        config = tmp_path / "bad.yaml"
        config.write_text("batch_size: 3\n")

        assert fund.main(["GKEY", "--config", str(config)]) == 2
        assert "ERROR" in capsys.readouterr().err
