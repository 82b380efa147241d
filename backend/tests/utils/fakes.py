"""In-memory DB-API doubles used in place of psycopg / pymysql connections."""

import threading
import time
from collections.abc import Callable
from typing import Any


class FakeResult:
    def __init__(
        self,
        columns: list[str] | None = None,
        rows: list[tuple] | None = None,
        rowcount: int | None = None,
    ) -> None:
        self.columns = columns or []
        self.rows = rows or []
        self.rowcount = rowcount if rowcount is not None else len(self.rows)


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self._conn = conn
        self.description: list[tuple] | None = None
        self.rowcount = -1
        self._rows: list[tuple] = []
        self.closed = False

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def execute(self, sql: str, params: Any = None) -> None:
        if self._conn.closed:
            raise OSError("connection is closed")
        result = self._conn.db.run(self._conn, sql, params)
        self.description = [(c, None) for c in result.columns] or None
        self._rows = list(result.rows)
        self.rowcount = result.rowcount

    def fetchall(self) -> list[tuple]:
        rows, self._rows = self._rows, []
        return rows

    def fetchone(self) -> tuple | None:
        return self._rows.pop(0) if self._rows else None

    def close(self) -> None:
        self.closed = True


class FakeConnection:
    def __init__(self, db: "FakeDatabase", ident: int) -> None:
        self.db = db
        self.ident = ident
        self.closed = False
        self.commits = 0
        self.rollbacks = 0
        self.cancels = 0
        self.begins = 0

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def begin(self) -> None:
        self.begins += 1

    def commit(self) -> None:
        if self.closed:
            raise OSError("connection is closed")
        if self.db.fail_commit:
            raise RuntimeError("commit failed")
        self.commits += 1
        self.db.commits += 1

    def rollback(self) -> None:
        if self.closed:
            raise OSError("connection is closed")
        self.rollbacks += 1

    def cancel(self) -> None:
        self.cancels += 1

    def close(self) -> None:
        self.closed = True


Handler = Callable[[str, Any], FakeResult]


class FakeDatabase:
    """Connection factory plus canned results keyed by SQL fragment.

    ``on(fragment, result_or_exception)`` registers what a statement
    containing *fragment* returns; the first matching fragment wins.
    ``SELECT 1`` always answers unless overridden.
    """

    def __init__(self) -> None:
        self.connections: list[FakeConnection] = []
        self.executed: list[tuple[str, Any]] = []
        self.commits = 0
        self.fail_commit = False
        self.connect_error: BaseException | None = None
        self.connect_delay = 0.0
        self.connect_timeouts: list[float | None] = []
        self._handlers: list[tuple[str, FakeResult | BaseException | Handler]] = []
        self._lock = threading.Lock()

    def connect(self, connect_timeout: float | None = None) -> FakeConnection:
        self.connect_timeouts.append(connect_timeout)
        if self.connect_delay:
            time.sleep(self.connect_delay)
        if self.connect_error is not None:
            raise self.connect_error
        with self._lock:
            conn = FakeConnection(self, len(self.connections))
            self.connections.append(conn)
        return conn

    def on(self, fragment: str, outcome: FakeResult | BaseException | Handler) -> None:
        self._handlers.append((fragment, outcome))

    @property
    def statements(self) -> list[tuple[str, Any]]:
        """Executed statements without the session timeout bookkeeping."""
        return [
            (sql, params)
            for sql, params in self.executed
            if "statement_timeout" not in sql and "max_execution_time" not in sql
        ]

    @property
    def open_connections(self) -> list[FakeConnection]:
        return [c for c in self.connections if not c.closed]

    def run(self, conn: FakeConnection, sql: str, params: Any) -> FakeResult:
        with self._lock:
            self.executed.append((sql, params))
        for fragment, outcome in self._handlers:
            if fragment in sql:
                if isinstance(outcome, BaseException):
                    raise outcome
                if isinstance(outcome, FakeResult):
                    return outcome
                return outcome(sql, params)
        if sql.strip() == "SELECT 1":
            return FakeResult(["?column?"], [(1,)])
        return FakeResult(rowcount=0)
