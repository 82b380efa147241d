"""
DB connection helpers for the pooled services.

Uses psycopg (PostgreSQL) or pymysql (MySQL) based on product_type. Both
drivers accept ``%(name)s`` placeholders, so catalog statements bind
parameters the same way on either product.
"""

import logging
import math
from collections.abc import Callable
from typing import Any

import psycopg
import pymysql
from psycopg import errors as pg_errors

from querygate.core.config import Settings
from querygate.core.errors import (
    ConnectionLost,
    GatewayError,
    QueryError,
    QueryTimeout,
)
from querygate.models import ProductTypeEnum

_log = logging.getLogger(__name__)

# pymysql error codes that mean the session is gone.
_MYSQL_CONNECTION_ERRORS = frozenset({2003, 2006, 2013, 2014, 2045, 2055})
# ER_QUERY_TIMEOUT: max_execution_time exceeded.
_MYSQL_QUERY_TIMEOUT = 3024

# Extra time pymysql waits on the socket beyond the statement timeout.
_READ_TIMEOUT_GRACE_SEC = 5


def connect(settings: Settings, *, connect_timeout: float | None = None) -> Any:
    """Open one connection to the configured database.

    *connect_timeout* lowers DB_CONNECT_TIMEOUT for this connection only;
    both drivers take whole seconds.

    Raises ConnectionLost when the server cannot be reached; the driver
    error is chained but its message (host, user) is not surfaced.
    """
    pt = settings.DB_PRODUCT_TYPE
    timeout = settings.DB_CONNECT_TIMEOUT
    if connect_timeout is not None:
        timeout = max(1, min(timeout, math.ceil(connect_timeout)))
    try:
        if pt == ProductTypeEnum.POSTGRES:
            options = f"-c search_path={settings.DB_SCHEMA},public" if settings.DB_SCHEMA else None
            return psycopg.connect(
                host=settings.DB_HOST,
                port=settings.db_port,
                dbname=settings.DB_NAME,
                user=settings.DB_USER,
                password=settings.DB_PASSWORD,
                connect_timeout=timeout,
                options=options,
            )
        if pt == ProductTypeEnum.MYSQL:
            return pymysql.connect(
                host=settings.DB_HOST,
                port=settings.db_port,
                database=settings.DB_NAME,
                user=settings.DB_USER,
                password=settings.DB_PASSWORD,
                connect_timeout=timeout,
                read_timeout=int(settings.REQUEST_TIMEOUT_SEC) + _READ_TIMEOUT_GRACE_SEC,
                autocommit=False,
            )
    except (psycopg.Error, pymysql.MySQLError) as e:
        _log.warning("Connect to %s failed: %s", pt.value, type(e).__name__)
        raise ConnectionLost() from e
    raise ValueError(f"Unsupported product_type: {pt}")


def connector(settings: Settings) -> Callable[..., Any]:
    """Bind settings into a connection factory for ConnectionPool."""

    def _connect(connect_timeout: float | None = None) -> Any:
        return connect(settings, connect_timeout=connect_timeout)

    return _connect


def is_broken(conn: Any) -> bool:
    """True when the driver reports the session unusable."""
    if isinstance(conn, psycopg.Connection):
        return bool(conn.broken or conn.closed)
    if isinstance(conn, pymysql.connections.Connection):
        return not conn.open
    return bool(getattr(conn, "closed", False))


def classify_error(exc: BaseException) -> GatewayError:
    """Translate a driver exception into the gateway taxonomy."""
    if isinstance(exc, GatewayError):
        return exc
    if isinstance(exc, pg_errors.QueryCanceled):
        return QueryTimeout()
    if isinstance(exc, psycopg.OperationalError | psycopg.InterfaceError):
        return ConnectionLost()
    if isinstance(exc, psycopg.Error):
        return QueryError(_first_line(exc))
    if isinstance(exc, pymysql.err.OperationalError):
        code = exc.args[0] if exc.args else None
        if code == _MYSQL_QUERY_TIMEOUT:
            return QueryTimeout()
        if code in _MYSQL_CONNECTION_ERRORS:
            return ConnectionLost()
        return QueryError(_first_line(exc))
    if isinstance(exc, pymysql.err.InterfaceError):
        return ConnectionLost()
    if isinstance(exc, pymysql.MySQLError):
        return QueryError(_first_line(exc))
    if isinstance(exc, TimeoutError | OSError):
        return ConnectionLost()
    return QueryError(_first_line(exc))


def _first_line(exc: BaseException) -> str:
    if isinstance(exc, pymysql.MySQLError) and len(exc.args) >= 2:
        msg = str(exc.args[1])
    else:
        msg = str(exc)
    msg = msg.strip().splitlines()[0] if msg.strip() else type(exc).__name__
    return f"Query failed: {msg}"


def set_statement_timeout(
    conn: Any, product_type: ProductTypeEnum, timeout_sec: float | None, *, select: bool
) -> bool:
    """Apply a server-side statement timeout. Returns True if one was set."""
    if timeout_sec is None or timeout_sec <= 0:
        return False
    timeout_ms = int(timeout_sec * 1000)
    if product_type == ProductTypeEnum.POSTGRES:
        with conn.cursor() as cur:
            cur.execute("SELECT set_config('statement_timeout', %s, false)", (str(timeout_ms),))
        return True
    if product_type == ProductTypeEnum.MYSQL and select:
        # max_execution_time only applies to SELECT; DML relies on read_timeout.
        with conn.cursor() as cur:
            cur.execute("SET SESSION max_execution_time = %s", (timeout_ms,))
        return True
    return False


def reset_statement_timeout(conn: Any, product_type: ProductTypeEnum) -> None:
    with conn.cursor() as cur:
        if product_type == ProductTypeEnum.POSTGRES:
            cur.execute("SELECT set_config('statement_timeout', '0', false)")
        elif product_type == ProductTypeEnum.MYSQL:
            cur.execute("SET SESSION max_execution_time = 0")


def begin(conn: Any, product_type: ProductTypeEnum) -> None:
    """Start an explicit transaction on a clean connection."""
    conn.rollback()
    if product_type == ProductTypeEnum.MYSQL:
        conn.begin()
    # psycopg opens the transaction implicitly on the first statement.


def cancel(conn: Any, product_type: ProductTypeEnum) -> bool:
    """Ask the server to cancel the running statement.

    Returns False when the driver offers no cancel API; the caller must
    then treat the connection as being in an unknown state.
    """
    if product_type == ProductTypeEnum.POSTGRES:
        try:
            conn.cancel()
            return True
        except psycopg.Error:
            _log.warning("Cancel request failed", exc_info=True)
            return False
    return False


def close_quiet(conn: Any) -> None:
    try:
        conn.close()
    except Exception:
        _log.debug("Ignoring error while closing connection", exc_info=True)
