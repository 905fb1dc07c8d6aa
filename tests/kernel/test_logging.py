"""Tests for recon_kernel.logging_config structured output."""

import json
import logging
from decimal import Decimal
from io import StringIO

import pytest

from recon_kernel.domain.types import TransactionStatus
from recon_kernel.exceptions import TransientLedgerError
from recon_kernel.logging_config import LogContext, StructuredFormatter, get_logger


def test_logger_namespace():
    assert get_logger("batch.reconciler").name == "recon_kernel.batch.reconciler"


def test_extra_fields_and_context(captured_logs):
    logger = get_logger("test")
    with LogContext.bind(run_id="run-1", tx_hash="abc"):
        logger.info(
            "transaction_checked",
            extra={"status": TransactionStatus.CONFIRMED, "fee": Decimal("0.00001")},
        )

    record = [r for r in captured_logs() if r["message"] == "transaction_checked"][-1]
    assert record["run_id"] == "run-1"
    assert record["tx_hash"] == "abc"
    assert record["status"] == "confirmed"
    assert record["fee"] == "0.00001"
    assert record["level"] == "INFO"


def test_bind_restores_previous_values():
    with LogContext.bind(run_id="outer"):
        with LogContext.bind(run_id="inner", tx_hash="abc"):
            assert LogContext.get_all() == {"run_id": "inner", "tx_hash": "abc"}
        assert LogContext.get_all() == {"run_id": "outer"}
    assert LogContext.get_all() == {}


def test_bind_rejects_unknown_field():
    with pytest.raises(KeyError):
        with LogContext.bind(account="x"):
            pass


@pytest.mark.parametrize("field", ["correlation_id", "actor_id"])
def test_only_reconciliation_fields_are_bindable(field):
    with pytest.raises(KeyError, match=field):
        LogContext.bind(**{field: "x"})


def test_exception_fields_are_structured():
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("recon_kernel.test.exc")
    logger.addHandler(handler)
    try:
        try:
            raise TransientLedgerError("transaction abc", "timed out")
        except TransientLedgerError:
            logger.error("ledger_query_failed", exc_info=True)
    finally:
        logger.removeHandler(handler)

    payload = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert payload["exc_type"] == "TransientLedgerError"
    assert payload["exc_code"] == "TRANSIENT_NETWORK_ERROR"
    assert payload["exc_resource"] == "transaction abc"
    assert "traceback" in payload
