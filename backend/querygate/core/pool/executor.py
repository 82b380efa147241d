"""
Run one bound statement on a leased connection.

- execute(lease, sql, params, timeout) -> QueryResult(rows, rowcount)
- query(pool, sql, params) -> list[dict] with scoped acquire/release

Driver errors are classified into the gateway taxonomy here; nothing raised
past this module is a raw driver exception.
"""

import logging
import re
import time
from collections.abc import Mapping, Sequence
from typing import Any, NamedTuple

from querygate.core.errors import ConnectionLost, QueryCancelled

from .connect import classify_error, is_broken, reset_statement_timeout, set_statement_timeout
from .lease import Lease
from .manager import ConnectionPool

_log = logging.getLogger(__name__)

Params = Mapping[str, Any] | Sequence[Any] | None


class QueryResult(NamedTuple):
    rows: list[dict[str, Any]]
    rowcount: int


def _is_select_like(sql: str) -> bool:
    """True if the statement is SELECT or WITH (CTE); otherwise DML (INSERT/UPDATE/DELETE etc)."""
    s = re.sub(r"^[\s;(]+", "", sql)
    first = s.split(None, 1)[0].upper() if s else ""
    return first in ("SELECT", "WITH")


def cursor_to_dicts(cursor: Any) -> list[dict[str, Any]]:
    """Convert cursor result to list of dicts. Works for both psycopg and pymysql."""
    desc = cursor.description
    if not desc:
        return []
    names = [d[0] for d in desc]
    return [dict(zip(names, row, strict=True)) for row in cursor.fetchall()]


def execute(
    lease: Lease,
    sql: str,
    params: Params = None,
    timeout: float | None = None,
) -> QueryResult:
    """
    Execute one statement with bound *params* and return its rows and rowcount.

    - timeout: seconds, enforced server-side (statement_timeout /
      max_execution_time) and reset afterwards.
    - On ConnectionLost the lease is marked broken so the pool discards it.
    """
    conn = lease.connection
    if lease.cancelled:
        raise QueryCancelled()
    select = _is_select_like(sql)
    started = time.monotonic()
    timeout_set = False
    cur = None
    try:
        timeout_set = set_statement_timeout(conn, lease.product_type, timeout, select=select)
        cur = conn.cursor()
        if params is not None:
            cur.execute(sql, params)
        else:
            cur.execute(sql)
        rows = cursor_to_dicts(cur) if cur.description else []
        rowcount = cur.rowcount if cur.rowcount is not None and cur.rowcount >= 0 else len(rows)
    except Exception as e:
        err = classify_error(e)
        if lease.cancelled:
            err = QueryCancelled()
        if isinstance(err, ConnectionLost) or is_broken(conn):
            lease.mark_broken(type(e).__name__)
        _log.warning(
            "Statement failed",
            extra={
                "pool": lease.pool_name,
                "error_type": type(err).__name__,
                "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        raise err from e
    finally:
        if cur is not None:
            try:
                cur.close()
            except Exception:
                _log.debug("Cursor close failed", exc_info=True)
        if timeout_set and not lease.broken:
            try:
                reset_statement_timeout(conn, lease.product_type)
            except Exception:
                # Aborted transaction; the rollback on release reverts the setting.
                _log.debug("Statement timeout reset failed", exc_info=True)
    if lease.cancelled:
        raise QueryCancelled()
    _log.debug(
        "Statement executed",
        extra={
            "pool": lease.pool_name,
            "rowcount": rowcount,
            "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
        },
    )
    return QueryResult(rows, rowcount)


def query(
    pool: ConnectionPool,
    sql: str,
    params: Params = None,
    *,
    acquire_timeout: float,
    timeout: float | None = None,
) -> list[dict[str, Any]]:
    """Acquire, run one read statement, release. Returns the rows."""
    with pool.lease(acquire_timeout) as lease:
        return execute(lease, sql, params, timeout).rows
