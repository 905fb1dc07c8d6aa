"""
Tests for recon_kernel.services.transaction_store.SqlTransactionStore.

Uses in-memory SQLite with the real ORM models.
"""

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from recon_kernel.domain.types import TransactionStatus
from recon_kernel.exceptions import (
    InvalidStatusTransitionError,
    StoreUnavailableError,
    TransactionNotFoundError,
)
from recon_kernel.services.transaction_store import SqlTransactionStore, UpdateResult


class TestGetPending:
    def test_oldest_first(self, store, add_pending, clock):
        add_pending("young", age_seconds=10)
        add_pending("old", age_seconds=5000)
        add_pending("middle", age_seconds=100)

        records = store.get_pending(0, 10, clock.now())
        assert [r.tx_hash for r in records] == ["old", "middle", "young"]

    def test_never_exceeds_limit(self, store, add_pending, clock):
        for i in range(5):
            add_pending(f"tx-{i}", age_seconds=i)
        assert len(store.get_pending(0, 3, clock.now())) == 3
        assert store.get_pending(0, 0, clock.now()) == ()

    def test_only_pending_returned(self, store, add_pending, clock):
        add_pending("done")
        add_pending("waiting")
        store.update("done", TransactionStatus.PENDING, TransactionStatus.CONFIRMED, clock.now())
        store.commit()

        records = store.get_pending(0, 10, clock.now())
        assert [r.tx_hash for r in records] == ["waiting"]
        assert all(r.status == TransactionStatus.PENDING for r in records)

    def test_old_records_are_not_filtered(self, store, add_pending, clock):
        """Expiry is the resolver's decision, not the query's."""
        add_pending("ancient", age_seconds=100_000)
        assert [r.tx_hash for r in store.get_pending(3600, 10, clock.now())] == ["ancient"]

    def test_recheck_interval_skips_recently_checked(self, store, add_pending, clock):
        add_pending("checked")
        add_pending("unchecked")
        store.touch("checked", clock.now() - timedelta(seconds=30))
        store.commit()

        records = store.get_pending(60, 10, clock.now())
        assert [r.tx_hash for r in records] == ["unchecked"]

        later = clock.now() + timedelta(seconds=60)
        assert {r.tx_hash for r in store.get_pending(60, 10, later)} == {"checked", "unchecked"}

    def test_negative_arguments_rejected(self, store, clock):
        with pytest.raises(ValueError):
            store.get_pending(0, -1, clock.now())
        with pytest.raises(ValueError):
            store.get_pending(-5, 10, clock.now())


class TestUpdate:
    def test_applied(self, store, add_pending, clock):
        add_pending("abc")
        result = store.update(
            "abc",
            TransactionStatus.PENDING,
            TransactionStatus.CONFIRMED,
            clock.now(),
            detail="Transaction confirmed on ledger",
            ledger_sequence=77,
            fee_charged=100,
        )
        store.commit()

        assert result is UpdateResult.APPLIED
        record = store.get("abc")
        assert record.status == TransactionStatus.CONFIRMED
        assert record.previous_status == TransactionStatus.PENDING
        assert record.last_checked_at == clock.now()
        assert record.ledger_sequence == 77
        assert record.fee_charged == 100

    def test_conflict_when_status_moved(self, store, add_pending, clock):
        add_pending("abc")
        store.update("abc", TransactionStatus.PENDING, TransactionStatus.CONFIRMED, clock.now())

        second = store.update("abc", TransactionStatus.PENDING, TransactionStatus.FAILED, clock.now())
        assert second is UpdateResult.CONFLICT
        assert store.get("abc").status == TransactionStatus.CONFIRMED

    def test_not_found(self, store, clock):
        result = store.update("missing", TransactionStatus.PENDING, TransactionStatus.FAILED, clock.now())
        assert result is UpdateResult.NOT_FOUND

    def test_terminal_expected_status_rejected(self, store, clock):
        with pytest.raises(InvalidStatusTransitionError):
            store.update("abc", TransactionStatus.CONFIRMED, TransactionStatus.FAILED, clock.now())

    def test_no_op_transition_rejected(self, store, clock):
        with pytest.raises(InvalidStatusTransitionError):
            store.update("abc", TransactionStatus.PENDING, TransactionStatus.PENDING, clock.now())

    def test_history_appended(self, store, add_pending, clock):
        add_pending("abc", age_seconds=100)
        store.update(
            "abc", TransactionStatus.PENDING, TransactionStatus.EXPIRED, clock.now(),
            detail="Transaction expired after 60 seconds",
        )
        store.commit()

        history = store.history("abc")
        assert [h.status for h in history] == [TransactionStatus.PENDING, TransactionStatus.EXPIRED]
        assert history[0].details == "Transaction created"
        assert history[1].details == "Transaction expired after 60 seconds"


class TestTouchAndQueries:
    def test_touch(self, store, add_pending, clock):
        add_pending("abc")
        assert store.touch("abc", clock.now()) is True
        store.commit()
        record = store.get("abc")
        assert record.last_checked_at == clock.now()
        assert record.status == TransactionStatus.PENDING

    def test_touch_missing(self, store, clock):
        assert store.touch("missing", clock.now()) is False

    def test_add_pending_idempotent(self, store, add_pending, clock):
        first = add_pending("abc", age_seconds=100)
        again = store.add_pending("abc", clock.now())
        assert again.created_at == first.created_at
        assert len(store.history("abc")) == 1

    def test_get_missing_raises(self, store):
        with pytest.raises(TransactionNotFoundError):
            store.get("missing")

    def test_count_by_status(self, store, add_pending, clock):
        add_pending("a")
        add_pending("b")
        store.update("a", TransactionStatus.PENDING, TransactionStatus.FAILED, clock.now())
        counts = store.count_by_status()
        assert counts[TransactionStatus.PENDING] == 1
        assert counts[TransactionStatus.FAILED] == 1
        assert counts[TransactionStatus.EXPIRED] == 0


class TestStoreUnavailable:
    def test_operational_error_wrapped(self, clock):
        session = MagicMock()
        session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("connection refused"))
        store = SqlTransactionStore(session)

        with pytest.raises(StoreUnavailableError) as exc_info:
            store.get_pending(0, 10, clock.now())
        assert exc_info.value.operation == "get_pending"
        assert "connection refused" in exc_info.value.reason
