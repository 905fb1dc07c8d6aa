"""
TransactionStore -- persistence contract consumed by the reconciler.

Contract:
    - ``get_pending()``  selects the next batch of PENDING records, oldest
      first.
    - ``update()``       conditional status write; succeeds only while the
      stored status still equals the caller's expected previous status.
    - ``touch()``        stamps ``last_checked_at`` without a status change.
    - ``commit()`` / ``rollback()`` end the current unit of work.
    - ``add_pending()``, ``get()``, ``history()``, ``count_by_status()`` for
      the submission path, tooling and tests.

Eligibility vs expiry:
    ``get_pending()`` takes an *eligibility* window
    (``recheck_interval_seconds``): records checked more recently than
    that are skipped this cycle, never-checked records are always
    eligible.  It never filters on record age.  Expiry (record older
    than ``max_age_seconds``) is decided by the status resolver alone.

Non-goals:
    - Never commits on its own -- the reconciler calls ``commit()`` once per
      item so each item's writes land as one unit.

Failure modes:
    - ``StoreUnavailableError`` wraps database connectivity failures
      (OperationalError / InterfaceError).  Everything else propagates.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterator, Protocol

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import Session

from recon_kernel.domain.types import (
    StatusHistoryEntry,
    TransactionRecord,
    TransactionStatus,
)
from recon_kernel.exceptions import (
    InvalidStatusTransitionError,
    StoreUnavailableError,
    TransactionNotFoundError,
)
from recon_kernel.logging_config import get_logger
from recon_kernel.models.transaction import (
    LedgerTransactionModel,
    TransactionStatusHistoryModel,
)

logger = get_logger("services.transaction_store")


class UpdateResult(str, Enum):
    """Outcome of a conditional status write."""

    APPLIED = "applied"  # Row matched the expected status and was written
    CONFLICT = "conflict"  # Stored status moved on; another writer got there first
    NOT_FOUND = "not_found"  # No record for this tx hash


class TransactionStore(Protocol):
    """Narrow store contract the reconciler depends on."""

    def get_pending(
        self,
        recheck_interval_seconds: int,
        limit: int,
        now: datetime,
    ) -> tuple[TransactionRecord, ...]: ...

    def update(
        self,
        tx_hash: str,
        expected_previous_status: TransactionStatus,
        new_status: TransactionStatus,
        checked_at: datetime,
        detail: str | None = None,
        ledger_sequence: int | None = None,
        fee_charged: int | None = None,
    ) -> UpdateResult: ...

    def touch(self, tx_hash: str, checked_at: datetime) -> bool: ...

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except (OperationalError, InterfaceError) as exc:
        raise StoreUnavailableError(operation, str(exc.orig or exc)) from exc


class SqlTransactionStore:
    """SQLAlchemy implementation of ``TransactionStore``."""

    def __init__(self, session: Session):
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    # -------------------------------------------------------------------------
    # Reconciliation contract
    # -------------------------------------------------------------------------

    def get_pending(
        self,
        recheck_interval_seconds: int,
        limit: int,
        now: datetime,
    ) -> tuple[TransactionRecord, ...]:
        """Up to ``limit`` PENDING records, oldest ``created_at`` first."""
        if limit < 0:
            raise ValueError(f"limit must be non-negative, got {limit}")
        if recheck_interval_seconds < 0:
            raise ValueError(
                f"recheck_interval_seconds must be non-negative, got {recheck_interval_seconds}"
            )
        if limit == 0:
            return ()

        stmt = select(LedgerTransactionModel).where(
            LedgerTransactionModel.status == TransactionStatus.PENDING.value,
        )
        if recheck_interval_seconds > 0:
            cutoff = now - timedelta(seconds=recheck_interval_seconds)
            stmt = stmt.where(
                or_(
                    LedgerTransactionModel.last_checked_at.is_(None),
                    LedgerTransactionModel.last_checked_at <= cutoff,
                )
            )
        stmt = stmt.order_by(
            LedgerTransactionModel.created_at.asc(),
            LedgerTransactionModel.tx_hash.asc(),
        ).limit(limit)

        with _store_errors("get_pending"):
            models = self._session.execute(stmt).scalars().all()
        return tuple(m.to_dto() for m in models)

    def update(
        self,
        tx_hash: str,
        expected_previous_status: TransactionStatus,
        new_status: TransactionStatus,
        checked_at: datetime,
        detail: str | None = None,
        ledger_sequence: int | None = None,
        fee_charged: int | None = None,
    ) -> UpdateResult:
        """Conditionally move ``tx_hash`` from the expected status to ``new_status``.

        Raises:
            InvalidStatusTransitionError: if ``expected_previous_status`` is
                terminal, or the write would not change the status.
        """
        if expected_previous_status.is_terminal or new_status == expected_previous_status:
            raise InvalidStatusTransitionError(
                tx_hash, expected_previous_status.value, new_status.value,
            )

        values: dict = {
            "status": new_status.value,
            "previous_status": expected_previous_status.value,
            "last_checked_at": checked_at,
            "status_detail": detail,
        }
        if ledger_sequence is not None:
            values["ledger_sequence"] = ledger_sequence
        if fee_charged is not None:
            values["fee_charged"] = fee_charged

        stmt = (
            update(LedgerTransactionModel)
            .where(
                LedgerTransactionModel.tx_hash == tx_hash,
                LedgerTransactionModel.status == expected_previous_status.value,
            )
            .values(**values)
        )

        with _store_errors("update"):
            result = self._session.execute(stmt)
            if result.rowcount == 1:
                self._session.add(
                    TransactionStatusHistoryModel(
                        tx_hash=tx_hash,
                        status=new_status.value,
                        occurred_at=checked_at,
                        details=detail,
                    )
                )
                self._session.flush()
                return UpdateResult.APPLIED

            stored = self._session.execute(
                select(LedgerTransactionModel.status).where(
                    LedgerTransactionModel.tx_hash == tx_hash,
                )
            ).scalar_one_or_none()

        if stored is None:
            return UpdateResult.NOT_FOUND

        logger.debug(
            "status_write_conflict",
            extra={
                "tx_hash": tx_hash,
                "expected_status": expected_previous_status.value,
                "stored_status": stored,
                "requested_status": new_status.value,
            },
        )
        return UpdateResult.CONFLICT

    def touch(self, tx_hash: str, checked_at: datetime) -> bool:
        """Stamp ``last_checked_at``.  Returns False if the record is gone."""
        stmt = (
            update(LedgerTransactionModel)
            .where(LedgerTransactionModel.tx_hash == tx_hash)
            .values(last_checked_at=checked_at)
        )
        with _store_errors("touch"):
            result = self._session.execute(stmt)
            self._session.flush()
        return result.rowcount == 1

    def commit(self) -> None:
        with _store_errors("commit"):
            self._session.commit()

    def rollback(self) -> None:
        with _store_errors("rollback"):
            self._session.rollback()

    # -------------------------------------------------------------------------
    # Submission path and queries
    # -------------------------------------------------------------------------

    def add_pending(self, tx_hash: str, created_at: datetime) -> TransactionRecord:
        """Record a newly submitted transaction as PENDING.

        Re-submitting a known hash returns the existing record unchanged.
        """
        with _store_errors("add_pending"):
            existing = self._session.execute(
                select(LedgerTransactionModel).where(
                    LedgerTransactionModel.tx_hash == tx_hash,
                )
            ).scalar_one_or_none()
            if existing is not None:
                return existing.to_dto()

            model = LedgerTransactionModel.from_dto(
                TransactionRecord(
                    tx_hash=tx_hash,
                    status=TransactionStatus.PENDING,
                    created_at=created_at,
                )
            )
            self._session.add(model)
            self._session.add(
                TransactionStatusHistoryModel(
                    tx_hash=tx_hash,
                    status=TransactionStatus.PENDING.value,
                    occurred_at=created_at,
                    details="Transaction created",
                )
            )
            self._session.flush()

        logger.info("transaction_recorded", extra={"tx_hash": tx_hash})
        return model.to_dto()

    def get(self, tx_hash: str) -> TransactionRecord:
        """Raises TransactionNotFoundError if ``tx_hash`` is unknown."""
        with _store_errors("get"):
            model = self._session.execute(
                select(LedgerTransactionModel)
                .where(LedgerTransactionModel.tx_hash == tx_hash)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        if model is None:
            raise TransactionNotFoundError(tx_hash)
        return model.to_dto()

    def history(self, tx_hash: str) -> tuple[StatusHistoryEntry, ...]:
        with _store_errors("history"):
            models = self._session.execute(
                select(TransactionStatusHistoryModel)
                .where(TransactionStatusHistoryModel.tx_hash == tx_hash)
                .order_by(TransactionStatusHistoryModel.occurred_at)
            ).scalars().all()
        return tuple(m.to_dto() for m in models)

    def count_by_status(self) -> dict[TransactionStatus, int]:
        """Record counts per status; statuses with no records report 0."""
        with _store_errors("count_by_status"):
            rows = self._session.execute(
                select(LedgerTransactionModel.status, func.count())
                .group_by(LedgerTransactionModel.status)
            ).all()
        counts = {status: 0 for status in TransactionStatus}
        for status, count in rows:
            counts[TransactionStatus(status)] = count
        return counts
