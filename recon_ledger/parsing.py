"""
Horizon response parsing.

Turns decoded JSON bodies into domain DTOs.  Any shape mismatch raises
``MalformedLedgerResponseError`` naming the resource, so the reconciler
can count the item as failed and leave the record untouched.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from recon_kernel.domain.types import (
    NATIVE,
    AccountSnapshot,
    Asset,
    IssuedAsset,
    LedgerOutcome,
    LedgerTransactionResult,
    PoolShareAsset,
)
from recon_kernel.exceptions import MalformedLedgerResponseError

_ISSUED_ASSET_TYPES = frozenset({"credit_alphanum4", "credit_alphanum12", "issued"})
_POOL_SHARE_ASSET_TYPE = "liquidity_pool_shares"


def _require(body: dict[str, Any], key: str, resource: str) -> Any:
    if key not in body:
        raise MalformedLedgerResponseError(resource, f"missing field {key!r}")
    return body[key]


def _optional_int(body: dict[str, Any], key: str, resource: str) -> int | None:
    value = body.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise MalformedLedgerResponseError(
            resource, f"field {key!r} is not an integer: {value!r}"
        ) from None


def parse_transaction(tx_hash: str, body: Any) -> LedgerTransactionResult:
    """Parse a ``GET /transactions/{hash}`` body."""
    resource = f"transaction {tx_hash}"
    if not isinstance(body, dict):
        raise MalformedLedgerResponseError(resource, "body is not a JSON object")

    successful = _require(body, "successful", resource)
    if not isinstance(successful, bool):
        raise MalformedLedgerResponseError(
            resource, f"field 'successful' is not a boolean: {successful!r}"
        )

    operation_count = _optional_int(body, "operation_count", resource)
    if operation_count is None and isinstance(body.get("operations"), list):
        operation_count = len(body["operations"])

    return LedgerTransactionResult(
        tx_hash=tx_hash,
        outcome=LedgerOutcome.SUCCESS if successful else LedgerOutcome.FAILED,
        ledger_sequence=_optional_int(body, "ledger", resource),
        fee_charged=_optional_int(body, "fee_charged", resource),
        source_account=body.get("source_account"),
        memo=body.get("memo"),
        memo_type=body.get("memo_type"),
        operation_count=operation_count,
        created_at=body.get("created_at"),
    )


def parse_balance(entry: Any, resource: str) -> tuple[Asset, Decimal]:
    """Parse one entry of an account's ``balances`` array."""
    if not isinstance(entry, dict):
        raise MalformedLedgerResponseError(resource, "balance entry is not an object")

    asset_type = _require(entry, "asset_type", resource)
    raw_amount = _require(entry, "balance", resource)

    if asset_type == "native":
        asset: Asset = NATIVE
    elif asset_type in _ISSUED_ASSET_TYPES:
        asset = IssuedAsset(
            code=_require(entry, "asset_code", resource),
            issuer=_require(entry, "asset_issuer", resource),
        )
    elif asset_type == _POOL_SHARE_ASSET_TYPE:
        asset = PoolShareAsset(pool_id=_require(entry, "liquidity_pool_id", resource))
    else:
        raise MalformedLedgerResponseError(
            resource, f"unsupported asset_type {asset_type!r}"
        )

    # Amounts arrive as decimal strings; never go through float.
    if not isinstance(raw_amount, str):
        raise MalformedLedgerResponseError(
            resource, f"balance for {asset} is not a decimal string: {raw_amount!r}"
        )
    try:
        amount = Decimal(raw_amount)
    except InvalidOperation:
        raise MalformedLedgerResponseError(
            resource, f"balance for {asset} is not a decimal: {raw_amount!r}"
        ) from None
    if not amount.is_finite():
        raise MalformedLedgerResponseError(
            resource, f"balance for {asset} is not finite: {raw_amount!r}"
        )
    return asset, amount


def parse_account(public_key: str, body: Any) -> AccountSnapshot:
    """Parse a ``GET /accounts/{id}`` body."""
    resource = f"account {public_key}"
    if not isinstance(body, dict):
        raise MalformedLedgerResponseError(resource, "body is not a JSON object")

    sequence = _optional_int(body, "sequence", resource)
    if sequence is None:
        raise MalformedLedgerResponseError(resource, "missing field 'sequence'")
    subentry_count = _optional_int(body, "subentry_count", resource)
    if subentry_count is None:
        raise MalformedLedgerResponseError(resource, "missing field 'subentry_count'")
    if subentry_count < 0:
        raise MalformedLedgerResponseError(
            resource, f"subentry_count is negative: {subentry_count}"
        )

    raw_balances = _require(body, "balances", resource)
    if not isinstance(raw_balances, list):
        raise MalformedLedgerResponseError(resource, "balances is not a list")

    balances: dict[Asset, Decimal] = {}
    for entry in raw_balances:
        asset, amount = parse_balance(entry, resource)
        if asset in balances:
            raise MalformedLedgerResponseError(resource, f"duplicate balance for {asset}")
        balances[asset] = amount

    return AccountSnapshot(
        public_key=body.get("account_id", public_key),
        sequence_number=sequence,
        subentry_count=subentry_count,
        balances=balances,
    )


def parse_transaction_page(public_key: str, body: Any) -> tuple[LedgerTransactionResult, ...]:
    """Parse a ``GET /accounts/{id}/transactions`` page, in response order."""
    resource = f"transactions for account {public_key}"
    if not isinstance(body, dict):
        raise MalformedLedgerResponseError(resource, "body is not a JSON object")

    embedded = _require(body, "_embedded", resource)
    if not isinstance(embedded, dict):
        raise MalformedLedgerResponseError(resource, "_embedded is not an object")
    records = _require(embedded, "records", resource)
    if not isinstance(records, list):
        raise MalformedLedgerResponseError(resource, "records is not a list")

    results = []
    for record in records:
        if not isinstance(record, dict):
            raise MalformedLedgerResponseError(resource, "record is not an object")
        tx_hash = _require(record, "hash", resource)
        results.append(parse_transaction(tx_hash, record))
    return tuple(results)
