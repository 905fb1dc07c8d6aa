"""
Typed exception hierarchy for the reconciliation engine.

Every error has a typed class, a ``code`` class attribute (machine
readable, stable across message rewording) and carries its context as
attributes rather than only inside the message.

    ReconciliationError (base)
    |
    +-- LedgerError
    |   +-- TransientLedgerError
    |   +-- MalformedLedgerResponseError
    |   +-- LedgerAccountNotFoundError
    |   +-- LedgerEnvironmentError
    |
    +-- StoreError
    |   +-- StoreUnavailableError
    |   +-- TransactionNotFoundError
    |   +-- InvalidStatusTransitionError
    |
    +-- ConfigurationError

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Ledger          | TRANSIENT_NETWORK_ERROR     | Timeout, connection error, 429 / 5xx
                | MALFORMED_RESPONSE          | Ledger body does not match expected shape
                | LEDGER_ACCOUNT_NOT_FOUND    | Account lookup returned 404
                | LEDGER_ENVIRONMENT_ERROR    | Operation unsupported on this network
----------------|-----------------------------|-----------------------------------------
Store           | STORE_UNAVAILABLE           | Database unreachable (aborts a run)
                | TRANSACTION_NOT_FOUND       | No local record for tx hash
                | INVALID_STATUS_TRANSITION   | Write would leave a terminal status
----------------|-----------------------------|-----------------------------------------
Config          | CONFIGURATION_ERROR         | Unknown key or invalid value

HANDLING PATTERNS

1. Per-item ledger errors are isolated by the reconciler:

    try:
        result = client.fetch_transaction(tx_hash)
    except LedgerError as e:
        failed += 1
        logger.warning("ledger_query_failed", extra={"code": e.code})

2. Only the store going away ends a run:

    try:
        summary = reconciler.run_once(3600, 50)
    except StoreUnavailableError:
        sys.exit(1)

A ledger NOT_FOUND answer is a valid outcome, not an error, and a lost
conditional write is reported as ``UpdateResult.CONFLICT``.
"""


class ReconciliationError(Exception):
    """Base exception for all reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


# Ledger-side exceptions


class LedgerError(ReconciliationError):
    """Base exception for errors talking to the external ledger."""

    code: str = "LEDGER_ERROR"


class TransientLedgerError(LedgerError):
    """
    Network failure, timeout, or throttling response.

    Carries no information about ledger truth; the record is retried on
    the next pass.
    """

    code: str = "TRANSIENT_NETWORK_ERROR"

    def __init__(self, resource: str, reason: str, status_code: int | None = None):
        self.resource = resource
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Ledger request for {resource} failed: {reason}")


class MalformedLedgerResponseError(LedgerError):
    """Ledger answered but the body can not be parsed into the expected shape."""

    code: str = "MALFORMED_RESPONSE"

    def __init__(self, resource: str, reason: str):
        self.resource = resource
        self.reason = reason
        super().__init__(f"Malformed ledger response for {resource}: {reason}")


class LedgerAccountNotFoundError(LedgerError):
    """Account does not exist on the ledger (never funded)."""

    code: str = "LEDGER_ACCOUNT_NOT_FOUND"

    def __init__(self, public_key: str):
        self.public_key = public_key
        super().__init__(f"Ledger account not found: {public_key}")


class LedgerEnvironmentError(LedgerError):
    """Operation is not available on the configured ledger network."""

    code: str = "LEDGER_ENVIRONMENT_ERROR"

    def __init__(self, environment: str, operation: str):
        self.environment = environment
        self.operation = operation
        super().__init__(f"{operation} is not available on {environment}")


# Store-side exceptions


class StoreError(ReconciliationError):
    """Base exception for transaction store errors."""

    code: str = "STORE_ERROR"


class StoreUnavailableError(StoreError):
    """
    Transaction store is unreachable.

    Fatal to the whole run: the reconciler stops immediately and the
    caller sees a failed invocation.
    """

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Transaction store unavailable during {operation}: {reason}")


class TransactionNotFoundError(StoreError):
    """No local record exists for the given transaction hash."""

    code: str = "TRANSACTION_NOT_FOUND"

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction not found: {tx_hash}")


class InvalidStatusTransitionError(StoreError):
    """Requested write would move a record out of a terminal status."""

    code: str = "INVALID_STATUS_TRANSITION"

    def __init__(self, tx_hash: str, from_status: str, to_status: str):
        self.tx_hash = tx_hash
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid status transition for {tx_hash}: {from_status} -> {to_status}"
        )


# Configuration


class ConfigurationError(ReconciliationError):
    """Configuration file or override is invalid."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Invalid configuration for {key!r}: {reason}")
