"""
LedgerClient -- read-only capability over the external ledger.

Contract:
    ``fetch_transaction()`` and ``fetch_account()`` are the only calls the
    reconciliation loop makes.  ``fund_test_account()`` exists for
    provisioning tooling on the test network and is never called by the
    reconciler.  ``fetch_account_transactions()`` backs the wallet
    diagnostic.

Failure modes:
    - TransientLedgerError: timeout, connection failure, HTTP 429 / 5xx,
      or any other unexpected status.  Says nothing about ledger truth.
    - MalformedLedgerResponseError: 200 response whose body can not be
      decoded or parsed.
    - LedgerAccountNotFoundError: account lookup returned 404.
    - LedgerEnvironmentError: friendbot requested on a network without one.

Every request carries a bounded ``httpx.Timeout``; no call blocks
indefinitely.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

import httpx

from recon_kernel.domain.types import AccountSnapshot, LedgerTransactionResult
from recon_kernel.exceptions import (
    LedgerAccountNotFoundError,
    LedgerEnvironmentError,
    MalformedLedgerResponseError,
    TransientLedgerError,
)
from recon_kernel.logging_config import get_logger
from recon_ledger.environment import LedgerSettings
from recon_ledger.parsing import parse_account, parse_transaction, parse_transaction_page

logger = get_logger("ledger.client")


@runtime_checkable
class LedgerClient(Protocol):
    """Capability set the reconciler and liquidity diagnostics depend on."""

    def fetch_transaction(self, tx_hash: str) -> LedgerTransactionResult: ...

    def fetch_account(self, public_key: str) -> AccountSnapshot: ...


class HorizonLedgerClient:
    """``LedgerClient`` backed by a Horizon REST endpoint.

    Usage:
        settings = LedgerSettings(environment=LedgerEnvironment.TESTNET)
        with HorizonLedgerClient(settings) as client:
            result = client.fetch_transaction(tx_hash)
    """

    def __init__(
        self,
        settings: LedgerSettings,
        http_client: httpx.Client | None = None,
    ):
        self._settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.Client(
            timeout=httpx.Timeout(settings.timeout_seconds),
            headers={"Accept": "application/json"},
        )

    @property
    def settings(self) -> LedgerSettings:
        return self._settings

    # -------------------------------------------------------------------------
    # Reconciliation queries
    # -------------------------------------------------------------------------

    def fetch_transaction(self, tx_hash: str) -> LedgerTransactionResult:
        resource = f"transaction {tx_hash}"
        response = self._get(f"{self._settings.horizon_url}/transactions/{tx_hash}", resource)

        if response.status_code == 404:
            logger.debug("ledger_transaction_not_found", extra={"tx_hash": tx_hash})
            return LedgerTransactionResult.not_found(tx_hash)

        self._raise_for_status(response, resource)
        return parse_transaction(tx_hash, self._json(response, resource))

    def fetch_account(self, public_key: str) -> AccountSnapshot:
        resource = f"account {public_key}"
        response = self._get(f"{self._settings.horizon_url}/accounts/{public_key}", resource)

        if response.status_code == 404:
            raise LedgerAccountNotFoundError(public_key)

        self._raise_for_status(response, resource)
        return parse_account(public_key, self._json(response, resource))

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def fetch_account_transactions(
        self, public_key: str, limit: int = 5,
    ) -> tuple[LedgerTransactionResult, ...]:
        """Most recent transactions for ``public_key``, newest first."""
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")

        resource = f"transactions for account {public_key}"
        response = self._get(
            f"{self._settings.horizon_url}/accounts/{public_key}/transactions",
            resource,
            params={"order": "desc", "limit": str(limit)},
        )

        if response.status_code == 404:
            raise LedgerAccountNotFoundError(public_key)

        self._raise_for_status(response, resource)
        return parse_transaction_page(public_key, self._json(response, resource))

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    def fund_test_account(self, public_key: str) -> bool:
        """Ask the test network's friendbot to create and fund ``public_key``.

        Returns False when friendbot refuses (e.g. the account already
        exists); transport failures raise TransientLedgerError.
        """
        friendbot_url = self._settings.environment.friendbot_url
        if friendbot_url is None:
            raise LedgerEnvironmentError(
                self._settings.environment.value, "fund_test_account",
            )

        resource = f"friendbot {public_key}"
        response = self._get(friendbot_url, resource, params={"addr": public_key})
        if response.status_code == 429 or response.status_code >= 500:
            self._raise_for_status(response, resource)

        funded = response.status_code == 200
        logger.info(
            "test_account_funding",
            extra={
                "public_key": public_key,
                "funded": funded,
                "status_code": response.status_code,
            },
        )
        return funded

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HorizonLedgerClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _get(
        self,
        url: str,
        resource: str,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            return self._client.get(url, params=params)
        except httpx.TimeoutException as exc:
            raise TransientLedgerError(resource, f"timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise TransientLedgerError(resource, f"request failed: {exc}") from exc

    @staticmethod
    def _raise_for_status(response: httpx.Response, resource: str) -> None:
        if response.status_code == 200:
            return
        if response.status_code == 429:
            reason = "rate limited by ledger"
        else:
            reason = f"unexpected status {response.status_code}"
        raise TransientLedgerError(resource, reason, status_code=response.status_code)

    @staticmethod
    def _json(response: httpx.Response, resource: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedLedgerResponseError(resource, f"invalid JSON: {exc}") from exc
