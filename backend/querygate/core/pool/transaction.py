"""
Transactions on a single leased connection.

State machine: idle -> began -> {committed, rolled_back}. Exactly one of
commit or rollback happens; a Transaction never outlives its Lease.
"""

import logging
from collections.abc import Sequence
from typing import Any

from querygate.core.errors import GatewayError, TransactionFailed
from querygate.models import TransactionState

from .connect import begin, classify_error
from .executor import Params, QueryResult, execute
from .lease import Lease
from .manager import ConnectionPool

_log = logging.getLogger(__name__)


class Transaction:
    """Explicit transaction bound to one Lease.

    As a context manager it commits on a clean exit and rolls back on any
    error, re-raising it as TransactionFailed.
    """

    def __init__(self, lease: Lease, *, timeout: float | None = None) -> None:
        self._lease = lease
        self._timeout = timeout
        self.state = TransactionState.IDLE
        self.statements = 0

    def begin(self) -> "Transaction":
        if self.state != TransactionState.IDLE:
            raise RuntimeError(f"cannot begin a transaction in state {self.state.value}")
        try:
            begin(self._lease.connection, self._lease.product_type)
        except Exception as e:
            err = classify_error(e)
            self._lease.mark_broken("begin failed")
            self.state = TransactionState.ROLLED_BACK
            raise TransactionFailed(err) from e
        self.state = TransactionState.BEGAN
        return self

    def execute(self, sql: str, params: Params = None) -> QueryResult:
        if self.state != TransactionState.BEGAN:
            raise RuntimeError(f"cannot execute in transaction state {self.state.value}")
        result = execute(self._lease, sql, params, self._timeout)
        self.statements += 1
        return result

    def commit(self) -> None:
        if self.state != TransactionState.BEGAN:
            raise RuntimeError(f"cannot commit in transaction state {self.state.value}")
        try:
            self._lease.connection.commit()
        except Exception as e:
            err = classify_error(e)
            self.rollback()
            raise TransactionFailed(err) from e
        self.state = TransactionState.COMMITTED
        _log.debug(
            "Transaction committed",
            extra={"pool": self._lease.pool_name, "statements": self.statements},
        )

    def rollback(self) -> None:
        if self.state != TransactionState.BEGAN:
            return
        try:
            self._lease.connection.rollback()
        except Exception:
            # Connection left in an unknown transaction state: never reuse it.
            self._lease.mark_broken("rollback failed")
            _log.warning("Rollback failed", extra={"pool": self._lease.pool_name}, exc_info=True)
        self.state = TransactionState.ROLLED_BACK
        _log.info(
            "Transaction rolled back",
            extra={"pool": self._lease.pool_name, "statements": self.statements},
        )

    def __enter__(self) -> "Transaction":
        if self.state == TransactionState.IDLE:
            self.begin()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc is None:
            if self.state == TransactionState.BEGAN:
                self.commit()
            return
        self.rollback()
        if not isinstance(exc, Exception):
            self._lease.mark_broken(f"interrupted by {exc_type.__name__}")
            return
        if isinstance(exc, TransactionFailed):
            return
        cause = exc if isinstance(exc, GatewayError) else classify_error(exc)
        raise TransactionFailed(cause) from exc


def run_transaction(
    pool: ConnectionPool,
    steps: Sequence[tuple[str, Params]],
    *,
    acquire_timeout: float,
    timeout: float | None = None,
) -> list[QueryResult]:
    """Run *steps* in order inside one transaction on one leased connection."""
    with pool.lease(acquire_timeout) as lease:
        with Transaction(lease, timeout=timeout) as tx:
            return [tx.execute(sql, params) for sql, params in steps]
