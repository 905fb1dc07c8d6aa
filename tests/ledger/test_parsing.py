"""Tests for recon_ledger.parsing -- malformed bodies and asset variants."""

from decimal import Decimal

import pytest

from recon_kernel.domain.types import NATIVE, IssuedAsset, LedgerOutcome, PoolShareAsset
from recon_kernel.exceptions import MalformedLedgerResponseError
from recon_ledger.parsing import (
    parse_account,
    parse_balance,
    parse_transaction,
    parse_transaction_page,
)


class TestParseTransaction:
    def test_operation_count_from_operations(self):
        result = parse_transaction("tx", {"successful": True, "operations": [{}, {}]})
        assert result.outcome == LedgerOutcome.SUCCESS
        assert result.operation_count == 2

    @pytest.mark.parametrize("body", [[], "text", None])
    def test_non_object_body(self, body):
        with pytest.raises(MalformedLedgerResponseError):
            parse_transaction("tx", body)

    def test_string_successful_rejected(self):
        with pytest.raises(MalformedLedgerResponseError):
            parse_transaction("tx", {"successful": "true"})

    def test_non_integer_ledger_rejected(self):
        with pytest.raises(MalformedLedgerResponseError, match="ledger"):
            parse_transaction("tx", {"successful": True, "ledger": "abc"})


class TestParseBalance:
    def test_native(self):
        assert parse_balance({"asset_type": "native", "balance": "10.5"}, "r") == (NATIVE, Decimal("10.5"))

    @pytest.mark.parametrize("asset_type", ["credit_alphanum4", "credit_alphanum12", "issued"])
    def test_issued_variants(self, asset_type):
        asset, amount = parse_balance(
            {"asset_type": asset_type, "asset_code": "EURT", "asset_issuer": "GI", "balance": "1"}, "r",
        )
        assert asset == IssuedAsset("EURT", "GI")
        assert amount == Decimal("1")

    def test_issued_without_issuer(self):
        with pytest.raises(MalformedLedgerResponseError, match="asset_issuer"):
            parse_balance({"asset_type": "issued", "asset_code": "EURT", "balance": "1"}, "r")

    def test_pool_shares(self):
        asset, amount = parse_balance(
            {"asset_type": "liquidity_pool_shares", "liquidity_pool_id": "abc", "balance": "5.0000000"}, "r",
        )
        assert asset == PoolShareAsset("abc")
        assert amount == Decimal("5.0000000")

    def test_pool_shares_without_pool_id(self):
        with pytest.raises(MalformedLedgerResponseError, match="liquidity_pool_id"):
            parse_balance({"asset_type": "liquidity_pool_shares", "balance": "1"}, "r")

    def test_unknown_asset_type(self):
        with pytest.raises(MalformedLedgerResponseError, match="unsupported asset_type"):
            parse_balance({"asset_type": "contract_token", "balance": "1"}, "r")

    @pytest.mark.parametrize("raw", [1.5, "abc", "NaN", "Infinity"])
    def test_bad_amounts(self, raw):
        with pytest.raises(MalformedLedgerResponseError):
            parse_balance({"asset_type": "native", "balance": raw}, "r")


class TestParseAccount:
    def test_duplicate_asset_rejected(self):
        body = {
            "sequence": 1,
            "subentry_count": 0,
            "balances": [
                {"asset_type": "native", "balance": "1"},
                {"asset_type": "native", "balance": "2"},
            ],
        }
        with pytest.raises(MalformedLedgerResponseError, match="duplicate"):
            parse_account("G", body)

    def test_missing_sequence(self):
        with pytest.raises(MalformedLedgerResponseError, match="sequence"):
            parse_account("G", {"subentry_count": 0, "balances": []})

    def test_negative_subentries(self):
        with pytest.raises(MalformedLedgerResponseError):
            parse_account("G", {"sequence": 1, "subentry_count": -1, "balances": []})

    def test_empty_balances(self):
        snapshot = parse_account("G", {"sequence": 7, "subentry_count": 0, "balances": []})
        assert snapshot.public_key == "G"
        assert dict(snapshot.balances) == {}

    def test_pool_shares_alongside_native(self):
        body = {
            "sequence": "123",
            "subentry_count": 2,
            "balances": [
                {"asset_type": "liquidity_pool_shares", "liquidity_pool_id": "abc", "balance": "5.0000000"},
                {"asset_type": "native", "balance": "10.0000000"},
            ],
        }
        snapshot = parse_account("GABC", body)
        assert snapshot.balances[NATIVE] == Decimal("10")
        assert snapshot.balances[PoolShareAsset("abc")] == Decimal("5")


class TestParseTransactionPage:
    def test_records_in_response_order(self):
        body = {
            "_embedded": {
                "records": [
                    {"hash": "h2", "successful": True, "ledger": 9, "created_at": "2024-01-02T00:00:00Z"},
                    {"hash": "h1", "successful": False, "memo_type": "none"},
                ]
            }
        }
        page = parse_transaction_page("G", body)
        assert [r.tx_hash for r in page] == ["h2", "h1"]
        assert page[0].created_at == "2024-01-02T00:00:00Z"
        assert page[1].outcome == LedgerOutcome.FAILED

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"_embedded": []},
            {"_embedded": {"records": {}}},
            {"_embedded": {"records": [{"successful": True}]}},
        ],
    )
    def test_malformed_pages(self, body):
        with pytest.raises(MalformedLedgerResponseError):
            parse_transaction_page("G", body)
