"""
Bounded connection pools, one per service.

Each ConnectionPool keeps an idle free-list and a count of leased
connections under a single Condition, health-checks idle connections on
checkout, evicts connections past max-age, and reaps idle connections above
the minimum after the idle timeout.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, NamedTuple

from querygate.core.config import Settings
from querygate.core.errors import ConnectionLost, PoolClosed, PoolExhausted
from querygate.models import ProductTypeEnum

from .connect import close_quiet, connector, is_broken
from .lease import Lease

_log = logging.getLogger(__name__)


class _PoolEntry(NamedTuple):
    conn: Any
    created_at: float  # time.monotonic() when the connection was opened
    last_used: float  # time.monotonic() when last returned to pool


class PoolStats(NamedTuple):
    name: str
    max_size: int
    in_use: int
    idle: int
    waiting: int

    @property
    def utilization(self) -> float:
        return self.in_use / self.max_size if self.max_size else 0.0


class ConnectionPool:
    """Bounded pool of DB-API connections.

    ``in_use + idle`` never exceeds ``max_size``. ``in_use`` counts leased
    connections plus slots reserved while a connection is being opened or
    validated, so I/O happens outside the lock without overshooting the bound.
    """

    def __init__(
        self,
        name: str,
        connect_fn: Callable[..., Any],
        *,
        product_type: ProductTypeEnum = ProductTypeEnum.POSTGRES,
        max_size: int = 10,
        min_idle: int = 0,
        idle_timeout: float = 30.0,
        max_age: float = 600.0,
        ping_after_idle: float = 30.0,
    ) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        if not 0 <= min_idle <= max_size:
            raise ValueError("min_idle must be between 0 and max_size")
        self.name = name
        self.product_type = product_type
        self.max_size = max_size
        self.min_idle = min_idle
        self.idle_timeout = idle_timeout
        self.max_age = max_age
        self.ping_after_idle = ping_after_idle
        self._connect = connect_fn
        self._idle: list[_PoolEntry] = []
        self._in_use = 0
        self._waiting = 0
        self._closed = False
        self._cond = threading.Condition(threading.Lock())
        self._reaper: threading.Thread | None = None
        self._stop = threading.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self, *, reap_interval: float | None = None) -> None:
        """Pre-open min_idle connections and start the idle reaper."""
        with self._cond:
            if self._closed:
                raise PoolClosed()
            if self._reaper is not None:
                return
            missing = self.min_idle - len(self._idle) - self._in_use
            self._in_use += max(missing, 0)
        opened = 0
        for _ in range(max(missing, 0)):
            try:
                conn = self._connect()
            except ConnectionLost:
                _log.warning("Could not pre-open connection", extra={"pool": self.name})
                self._free_slot()
                continue
            now = time.monotonic()
            self._put_idle(_PoolEntry(conn, now, now))
            opened += 1
        interval = reap_interval or max(self.idle_timeout / 2, 1.0)
        self._reaper = threading.Thread(
            target=self._reap_loop,
            args=(interval,),
            name=f"pool-reaper-{self.name}",
            daemon=True,
        )
        self._reaper.start()
        _log.info("Pool opened", extra={"pool": self.name, "opened": opened})

    def close(self) -> None:
        """Close idle connections and reject new acquires. Idempotent."""
        with self._cond:
            if self._closed:
                return
            self._closed = True
            entries, self._idle = self._idle, []
            self._cond.notify_all()
        self._stop.set()
        for e in entries:
            close_quiet(e.conn)
        if self._reaper is not None and self._reaper is not threading.current_thread():
            self._reaper.join(timeout=1.0)
        _log.info("Pool closed", extra={"pool": self.name, "closed_idle": len(entries)})

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------
    # Acquire / release
    # ------------------------------------------------------------------

    def acquire(self, timeout: float, *, connect_timeout: float | None = None) -> Lease:
        """Lease a healthy connection, waiting up to *timeout* seconds.

        *connect_timeout* caps the time spent opening a new connection, for
        callers that must not wait the driver's full connect timeout.

        Raises PoolExhausted on timeout, PoolClosed after close(), and
        ConnectionLost if a replacement connection cannot be opened.
        """
        deadline = time.monotonic() + max(timeout, 0.0)
        while True:
            entry = self._reserve(deadline, timeout)
            if entry is not None:
                if self._usable(entry):
                    return Lease(self, entry._replace(last_used=time.monotonic()))
                close_quiet(entry.conn)
                self._free_slot()
                continue
            try:
                conn = self._open_connection(connect_timeout)
            except BaseException:
                self._free_slot()
                raise
            now = time.monotonic()
            return Lease(self, _PoolEntry(conn, now, now))

    @contextmanager
    def lease(
        self, timeout: float, *, connect_timeout: float | None = None
    ) -> Iterator[Lease]:
        """Scoped acquire: the lease is released on every exit path."""
        lease = self.acquire(timeout, connect_timeout=connect_timeout)
        try:
            yield lease
        except ConnectionLost:
            lease.mark_broken("connection lost")
            raise
        except BaseException as e:
            if not isinstance(e, Exception):
                lease.mark_broken(f"interrupted by {type(e).__name__}")
            raise
        finally:
            lease.release()

    def release(self, lease: Lease) -> None:
        lease.release()

    def _open_connection(self, connect_timeout: float | None) -> Any:
        if connect_timeout is None:
            return self._connect()
        return self._connect(connect_timeout=connect_timeout)

    def _reserve(self, deadline: float, timeout: float) -> _PoolEntry | None:
        """Take a slot under the lock. Returns an idle entry, or None to open new."""
        with self._cond:
            while True:
                if self._closed:
                    raise PoolClosed()
                if self._idle:
                    self._in_use += 1
                    return self._idle.pop()
                if self._in_use < self.max_size:
                    self._in_use += 1
                    return None
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    _log.warning(
                        "Pool exhausted",
                        extra={"pool": self.name, "timeout": timeout, "in_use": self._in_use},
                    )
                    raise PoolExhausted(
                        f"No connection available in pool {self.name!r} within {timeout:g}s"
                    )
                self._waiting += 1
                try:
                    self._cond.wait(remaining)
                finally:
                    self._waiting -= 1

    def _usable(self, entry: _PoolEntry) -> bool:
        now = time.monotonic()
        if now - entry.created_at > self.max_age:
            return False
        if is_broken(entry.conn):
            return False
        if now - entry.last_used >= self.ping_after_idle and not self._is_alive(entry.conn):
            _log.info("Discarding dead idle connection", extra={"pool": self.name})
            return False
        return True

    def _return(self, entry: _PoolEntry, broken_reason: str | None) -> None:
        """Called by Lease.release exactly once per lease."""
        reusable = broken_reason is None and not self._closed and not is_broken(entry.conn)
        if reusable:
            try:
                entry.conn.rollback()
            except Exception:
                _log.info("Rollback on release failed", extra={"pool": self.name})
                reusable = False
        if reusable and time.monotonic() - entry.created_at > self.max_age:
            reusable = False
        if not reusable:
            close_quiet(entry.conn)
            self._free_slot()
            return
        with self._cond:
            self._in_use -= 1
            if self._closed:
                conn = entry.conn
            else:
                self._idle.append(entry._replace(last_used=time.monotonic()))
                conn = None
            self._cond.notify()
        if conn is not None:
            close_quiet(conn)

    def _free_slot(self) -> None:
        with self._cond:
            self._in_use -= 1
            self._cond.notify()

    def _put_idle(self, entry: _PoolEntry) -> None:
        with self._cond:
            self._in_use -= 1
            if not self._closed:
                self._idle.append(entry)
                self._cond.notify()
                return
        close_quiet(entry.conn)

    # ------------------------------------------------------------------
    # Idle reaping
    # ------------------------------------------------------------------

    def reap_idle(self) -> int:
        """Close idle connections past idle_timeout (above min_idle) or max_age."""
        now = time.monotonic()
        doomed: list[_PoolEntry] = []
        with self._cond:
            keep: list[_PoolEntry] = []
            # Oldest-returned first, so the most recently used survive.
            for e in sorted(self._idle, key=lambda x: x.last_used):
                if now - e.created_at > self.max_age:
                    doomed.append(e)
                elif (
                    now - e.last_used > self.idle_timeout
                    and len(self._idle) - len(doomed) > self.min_idle
                ):
                    doomed.append(e)
                else:
                    keep.append(e)
            self._idle = keep
        for e in doomed:
            close_quiet(e.conn)
        if doomed:
            _log.debug("Reaped idle connections", extra={"pool": self.name, "count": len(doomed)})
        return len(doomed)

    def _reap_loop(self, interval: float) -> None:
        while not self._stop.wait(interval):
            try:
                self.reap_idle()
            except Exception:
                _log.exception("Idle reaper failed", extra={"pool": self.name})

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def stats(self) -> PoolStats:
        with self._cond:
            return PoolStats(
                name=self.name,
                max_size=self.max_size,
                in_use=self._in_use,
                idle=len(self._idle),
                waiting=self._waiting,
            )

    @staticmethod
    def _is_alive(conn: Any) -> bool:
        """Lightweight ping: attempt a no-op query to detect broken connections."""
        try:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            cur.fetchone()
            cur.close()
            conn.rollback()
            return True
        except Exception:
            return False


class PoolManager:
    """Mapping of pool identity (service name) to ConnectionPool.

    Created once at application startup and passed to request handlers;
    pools are opened lazily on first use.
    """

    def __init__(
        self, settings: Settings, *, connect_fn: Callable[..., Any] | None = None
    ) -> None:
        self._settings = settings
        self._connect_fn = connect_fn
        self._pools: dict[str, ConnectionPool] = {}
        self._lock = threading.Lock()
        self._closed = False

    def get(self, name: str) -> ConnectionPool:
        with self._lock:
            if self._closed:
                raise PoolClosed()
            pool = self._pools.get(name)
        if pool is not None:
            return pool
        # Opening connects to the database; other services keep their lookups.
        created = self._create(name)
        with self._lock:
            pool = None if self._closed else self._pools.setdefault(name, created)
        if pool is not created:
            created.close()
            if pool is None:
                raise PoolClosed()
        return pool

    def _create(self, name: str) -> ConnectionPool:
        s = self._settings
        pool = ConnectionPool(
            name,
            self._connect_fn or connector(s),
            product_type=s.DB_PRODUCT_TYPE,
            max_size=s.DB_POOL_MAX_SIZE,
            min_idle=s.DB_POOL_MIN_SIZE,
            idle_timeout=s.DB_POOL_IDLE_TIMEOUT_SEC,
            max_age=s.DB_POOL_MAX_AGE_SEC,
            ping_after_idle=s.DB_POOL_PING_AFTER_IDLE_SEC,
        )
        pool.open()
        return pool

    def names(self) -> list[str]:
        with self._lock:
            return list(self._pools)

    def dispose(self, name: str | None = None) -> None:
        """Close pools. ``None`` = close all pools and the manager itself."""
        with self._lock:
            if name is not None:
                pools = [p for p in [self._pools.pop(name, None)] if p is not None]
            else:
                pools = list(self._pools.values())
                self._pools.clear()
                self._closed = True
        for p in pools:
            p.close()

    def stats(self) -> list[PoolStats]:
        with self._lock:
            pools = list(self._pools.values())
        return [p.stats() for p in pools]
