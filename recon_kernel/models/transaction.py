"""
ORM models for tracked ledger transactions.

Contract:
    LedgerTransactionModel holds one row per submitted transaction;
    TransactionStatusHistoryModel appends one row per applied status
    transition.  Each has ``to_dto()`` (and the transaction model
    ``from_dto()``) round-trip methods.

Invariants enforced:
    - ``tx_hash`` is UNIQUE.
    - Status only moves out of PENDING; the transaction store writes it
      with a conditional UPDATE keyed on the expected previous status.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from recon_kernel.db.base import Base, TimestampedBase

if TYPE_CHECKING:
    from recon_kernel.domain.types import StatusHistoryEntry, TransactionRecord


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite drops tzinfo on the way back out
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class LedgerTransactionModel(TimestampedBase):
    """Persistent record of a transaction submitted to the ledger."""

    __tablename__ = "ledger_transactions"

    __table_args__ = (
        Index("ix_ledger_transactions_status_created", "status", "created_at"),
        Index("ix_ledger_transactions_last_checked", "last_checked_at"),
    )

    tx_hash: Mapped[str] = mapped_column(String(128), nullable=False, unique=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    previous_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    last_checked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    ledger_sequence: Mapped[int | None] = mapped_column(nullable=True)
    fee_charged: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status_detail: Mapped[str | None] = mapped_column(Text, nullable=True)

    history: Mapped[list["TransactionStatusHistoryModel"]] = relationship(
        "TransactionStatusHistoryModel",
        back_populates="transaction",
        order_by="TransactionStatusHistoryModel.occurred_at",
    )

    def to_dto(self) -> TransactionRecord:
        from recon_kernel.domain.types import TransactionRecord, TransactionStatus

        return TransactionRecord(
            tx_hash=self.tx_hash,
            status=TransactionStatus(self.status),
            created_at=_as_utc(self.created_at),
            last_checked_at=_as_utc(self.last_checked_at),
            previous_status=(
                TransactionStatus(self.previous_status)
                if self.previous_status
                else None
            ),
            ledger_sequence=self.ledger_sequence,
            fee_charged=self.fee_charged,
            status_detail=self.status_detail,
        )

    @classmethod
    def from_dto(cls, dto: TransactionRecord) -> LedgerTransactionModel:
        return cls(
            tx_hash=dto.tx_hash,
            status=dto.status.value,
            previous_status=dto.previous_status.value if dto.previous_status else None,
            created_at=dto.created_at,
            last_checked_at=dto.last_checked_at,
            ledger_sequence=dto.ledger_sequence,
            fee_charged=dto.fee_charged,
            status_detail=dto.status_detail,
        )


class TransactionStatusHistoryModel(Base):
    """Append-only status transition log for a transaction."""

    __tablename__ = "ledger_transaction_status_history"

    __table_args__ = (
        Index("ix_status_history_tx_hash", "tx_hash"),
    )

    tx_hash: Mapped[str] = mapped_column(
        String(128),
        ForeignKey("ledger_transactions.tx_hash", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    transaction: Mapped["LedgerTransactionModel"] = relationship(
        "LedgerTransactionModel",
        back_populates="history",
        foreign_keys=[tx_hash],
    )

    def to_dto(self) -> StatusHistoryEntry:
        from recon_kernel.domain.types import StatusHistoryEntry, TransactionStatus

        return StatusHistoryEntry(
            tx_hash=self.tx_hash,
            status=TransactionStatus(self.status),
            occurred_at=_as_utc(self.occurred_at),
            details=self.details,
        )
