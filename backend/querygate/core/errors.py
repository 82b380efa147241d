"""
Error taxonomy for the query gateway.

Driver exceptions are translated into these types before they leave the
executor; API exception handlers turn them into ``{"error": ...}`` bodies.
"""


class GatewayError(Exception):
    """Base class for every error the gateway surfaces to callers."""

    status_code: int = 500
    retryable: bool = False
    default_message = "Database operation failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict[str, object]:
        return {"error": self.message}


class PoolExhausted(GatewayError):
    """No connection became free within the acquire timeout."""

    retryable = True
    default_message = "Connection pool exhausted"


class PoolClosed(GatewayError):
    default_message = "Connection pool is closed"


class ConnectionLost(GatewayError):
    """The connection failed mid-operation and was discarded.

    The message is fixed so host names and credentials from driver errors
    never reach a response body.
    """

    retryable = True
    default_message = "Database connection lost"


class ValidationError(GatewayError):
    status_code = 400
    default_message = "Invalid input"


class QueryError(GatewayError):
    default_message = "Query failed"


class QueryTimeout(QueryError):
    default_message = "Query exceeded its time limit"


class QueryCancelled(QueryError):
    default_message = "Query was cancelled"


class TransactionFailed(GatewayError):
    """A transaction was rolled back; wraps the error that caused it."""

    default_message = "Transaction failed and was rolled back"

    def __init__(self, cause: GatewayError | None = None, *, affected: int = 0) -> None:
        self.cause = cause
        self.affected = affected
        message = self.default_message
        if cause is not None:
            message = f"{message}: {cause.message}"
        super().__init__(message)
        self.retryable = bool(cause is not None and cause.retryable)

    def to_payload(self) -> dict[str, object]:
        return {"error": self.message, "affectedRows": self.affected}


class ConcurrencyLimited(GatewayError):
    """The client already has the maximum number of requests in flight."""

    status_code = 429
    retryable = True
    default_message = "Too many concurrent requests"


class LeaseReleased(RuntimeError):
    """A lease was used after it had been returned to its pool."""
