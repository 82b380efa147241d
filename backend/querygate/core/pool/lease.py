"""
Lease: temporary exclusive use of one pooled connection.
"""

import logging
import threading
from typing import TYPE_CHECKING, Any

from querygate.core.errors import LeaseReleased
from querygate.models import ProductTypeEnum

from .connect import cancel as cancel_statement

if TYPE_CHECKING:
    from .manager import ConnectionPool, _PoolEntry

_log = logging.getLogger(__name__)


class Lease:
    """Handle returned by ConnectionPool.acquire.

    Released exactly once; a second release is a no-op and any access to
    the connection afterwards raises LeaseReleased.
    """

    __slots__ = ("_pool", "_entry", "_lock", "_released", "_broken_reason", "_cancelled")

    def __init__(self, pool: "ConnectionPool", entry: "_PoolEntry") -> None:
        self._pool = pool
        self._entry = entry
        self._lock = threading.Lock()
        self._released = False
        self._broken_reason: str | None = None
        self._cancelled = False

    @property
    def pool_name(self) -> str:
        return self._pool.name

    @property
    def product_type(self) -> ProductTypeEnum:
        return self._pool.product_type

    @property
    def connection(self) -> Any:
        if self._released:
            raise LeaseReleased(f"lease on pool {self._pool.name!r} was already released")
        return self._entry.conn

    @property
    def released(self) -> bool:
        return self._released

    @property
    def broken(self) -> bool:
        return self._broken_reason is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def mark_broken(self, reason: str) -> None:
        """Discard the connection on release instead of reusing it."""
        if self._broken_reason is None:
            self._broken_reason = reason
            _log.info(
                "Connection marked broken",
                extra={"pool": self._pool.name, "reason": reason},
            )

    def cancel(self) -> None:
        """Cancel the statement running on this lease, from any thread.

        Holds the release lock for the whole request, so the connection cannot
        be handed to another lease while the cancel is on its way.
        """
        with self._lock:
            if self._released:
                return
            self._cancelled = True
            if not cancel_statement(self._entry.conn, self.product_type):
                self.mark_broken("cancel not confirmed")

    def release(self) -> None:
        with self._lock:
            if self._released:
                _log.warning("Lease released twice", extra={"pool": self._pool.name})
                return
            self._released = True
        self._pool._return(self._entry, self._broken_reason)

    def __enter__(self) -> "Lease":
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        if exc_type is not None and not issubclass(exc_type, Exception):
            self.mark_broken(f"interrupted by {exc_type.__name__}")
        self.release()

    def __repr__(self) -> str:
        state = "released" if self._released else "active"
        return f"<Lease pool={self._pool.name!r} {state}>"
