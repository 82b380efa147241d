"""
Connection health checks for the service pools.

A probe leases a connection with a short timeout, runs SELECT 1 and
releases it straight away. Connecting is bounded by the same timeout, and a
check the caller stopped waiting for gives its slot back without running the
query. Probes never raise; they report a HealthStatus.
"""

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import datetime, timezone

from querygate.core.errors import GatewayError
from querygate.models import HealthState

from .executor import execute
from .lease import Lease
from .manager import ConnectionPool

_log = logging.getLogger(__name__)

MAX_PROBE_TIMEOUT_SEC = 2.0
_PROBE_GRACE_SEC = 0.1

_probe_executor = ThreadPoolExecutor(max_workers=16, thread_name_prefix="health-probe")

_SEVERITY = {HealthState.OK: 0, HealthState.DEGRADED: 1, HealthState.UNAVAILABLE: 2}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class HealthStatus:
    state: HealthState
    checked_at: datetime = field(default_factory=_utc_now)
    detail: str | None = None

    @property
    def db_connected(self) -> bool:
        return self.state != HealthState.UNAVAILABLE


class _HealthCheck:
    """One SELECT 1 run on the probe executor.

    Once abandoned it no longer runs the query: a connection it still obtains
    is marked broken and released, and a query already running is discarded
    with its connection when it returns.
    """

    def __init__(self, pool: ConnectionPool, timeout: float) -> None:
        self.pool = pool
        self.timeout = timeout
        self._lock = threading.Lock()
        self._abandoned = False
        self._lease: Lease | None = None

    def run(self) -> None:
        lease = self.pool.acquire(self.timeout, connect_timeout=self.timeout)
        try:
            with self._lock:
                if self._abandoned:
                    lease.mark_broken("health check abandoned")
                    return
                self._lease = lease
            execute(lease, "SELECT 1", timeout=self.timeout)
        finally:
            lease.release()

    def abandon(self) -> None:
        with self._lock:
            self._abandoned = True
            lease = self._lease
        if lease is not None:
            lease.mark_broken("health check abandoned")


class HealthMonitor:
    """Probe one pool on demand or periodically."""

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        probe_timeout: float = MAX_PROBE_TIMEOUT_SEC,
        degraded_utilization: float | None = None,
    ) -> None:
        self.pool = pool
        self.probe_timeout = min(probe_timeout, MAX_PROBE_TIMEOUT_SEC)
        self.degraded_utilization = degraded_utilization
        self._last: HealthStatus | None = None
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()
        # A timed-out check that has not finished yet; at most one per pool.
        self._abandoned: Future | None = None

    @property
    def last(self) -> HealthStatus | None:
        return self._last

    def check(self) -> HealthStatus:
        """Run SELECT 1 on a fresh lease. Returns ok, degraded or unavailable."""
        utilization = self.pool.stats().utilization
        with self._lock:
            stale = self._abandoned is not None and not self._abandoned.done()
        if stale:
            status = HealthStatus(HealthState.UNAVAILABLE, detail="previous check still running")
            self._record(status)
            return status
        check = _HealthCheck(self.pool, self.probe_timeout)
        future = _probe_executor.submit(check.run)
        try:
            future.result(timeout=self.probe_timeout + _PROBE_GRACE_SEC)
        except FutureTimeoutError:
            check.abandon()
            with self._lock:
                self._abandoned = future
            status = HealthStatus(HealthState.UNAVAILABLE, detail="probe timed out")
        except GatewayError as e:
            status = HealthStatus(HealthState.UNAVAILABLE, detail=type(e).__name__)
        except Exception:
            _log.exception("Health probe crashed", extra={"pool": self.pool.name})
            status = HealthStatus(HealthState.UNAVAILABLE, detail="probe error")
        else:
            if (
                self.degraded_utilization is not None
                and utilization >= self.degraded_utilization
            ):
                status = HealthStatus(
                    HealthState.DEGRADED, detail=f"pool utilization {utilization:.0%}"
                )
            else:
                status = HealthStatus(HealthState.OK)
        self._record(status)
        return status

    def _record(self, status: HealthStatus) -> None:
        previous = self._last
        self._last = status
        if previous is None or previous.state != status.state:
            level = logging.INFO if status.state == HealthState.OK else logging.WARNING
            _log.log(
                level,
                "Pool health changed",
                extra={
                    "pool": self.pool.name,
                    "state": status.state.value,
                    "detail": status.detail,
                },
            )

    def start(self, interval: float) -> None:
        """Probe every *interval* seconds on a daemon thread."""
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            args=(interval,),
            name=f"health-{self.pool.name}",
            daemon=True,
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=MAX_PROBE_TIMEOUT_SEC * 2)
            self._thread = None

    def _run(self, interval: float) -> None:
        while not self._stop.wait(interval):
            self.check()


def check_all(monitors: Iterable[HealthMonitor]) -> HealthStatus:
    """Worst state across *monitors*; ok when there is nothing to check."""
    monitors = list(monitors)
    worst = HealthStatus(HealthState.OK)
    if not monitors:
        return worst
    # Probe all pools at once so the total wait stays near one probe timeout.
    with ThreadPoolExecutor(max_workers=len(monitors), thread_name_prefix="health-all") as pool:
        results = list(pool.map(lambda m: m.check(), monitors))
    for m, status in zip(monitors, results, strict=True):
        if _SEVERITY[status.state] > _SEVERITY[worst.state]:
            worst = HealthStatus(status.state, detail=f"{m.pool.name}: {status.detail}")
    return worst
