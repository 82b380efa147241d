from collections.abc import Callable, Generator, Mapping, Sequence
from typing import Annotated, Any

from fastapi import Depends, Query, Request

from querygate.core.concurrent import acquire_concurrent_slot, release_concurrent_slot
from querygate.core.config import Settings, settings
from querygate.core.errors import ConcurrencyLimited
from querygate.core.pool import ConnectionPool, HealthMonitor, PoolManager, query
from querygate.models import ProductTypeEnum, ServiceEnum
from querygate.sql import MAX_ROWS, Statement, get_sql
from querygate.workflows import Timeouts


def get_settings() -> Settings:
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_pools(request: Request) -> PoolManager:
    """The PoolManager created at startup and stored on the application."""
    return request.app.state.pools


PoolsDep = Annotated[PoolManager, Depends(get_pools)]


def get_monitors(request: Request, pools: PoolsDep, cfg: SettingsDep) -> list[HealthMonitor]:
    """One HealthMonitor per mounted service pool, created on first use."""
    monitors: dict[str, HealthMonitor] = request.app.state.monitors
    out = []
    for service in enabled_services(cfg):
        m = monitors.get(service.value)
        if m is None:
            m = HealthMonitor(
                pools.get(service.value),
                probe_timeout=cfg.HEALTH_PROBE_TIMEOUT_SEC,
                degraded_utilization=cfg.HEALTH_DEGRADED_UTILIZATION,
            )
            monitors[service.value] = m
        out.append(m)
    return out


MonitorsDep = Annotated[list[HealthMonitor], Depends(get_monitors)]


def enabled_services(cfg: Settings) -> list[ServiceEnum]:
    return [ServiceEnum(s) for s in cfg.SERVICES]


class ServiceDB:
    """One service's pool plus the configured timeouts."""

    def __init__(self, pool: ConnectionPool, cfg: Settings) -> None:
        self.pool = pool
        self.product_type: ProductTypeEnum = pool.product_type
        self.timeouts = Timeouts(
            acquire=cfg.DB_POOL_ACQUIRE_TIMEOUT_SEC,
            statement=cfg.REQUEST_TIMEOUT_SEC,
        )

    def fetch(
        self, statement: Statement, params: Mapping[str, Any] | Sequence[Any] | None = None
    ) -> list[dict[str, Any]]:
        return query(
            self.pool,
            get_sql(statement, self.product_type),
            params,
            acquire_timeout=self.timeouts.acquire,
            timeout=self.timeouts.statement,
        )


def service_db(service: ServiceEnum) -> Callable[..., ServiceDB]:
    """Dependency factory: ServiceDB bound to *service*'s pool."""

    def _dependency(pools: PoolsDep, cfg: SettingsDep) -> ServiceDB:
        return ServiceDB(pools.get(service.value), cfg)

    return _dependency


def concurrency_slot(request: Request) -> Generator[None, None, None]:
    """Hold one in-flight slot for the calling client for the whole request."""
    client_key = request.client.host if request.client else ""
    if not acquire_concurrent_slot(client_key):
        raise ConcurrencyLimited()
    try:
        yield
    finally:
        release_concurrent_slot(client_key)


Limit = Annotated[int, Query(ge=1, le=MAX_ROWS)]
Offset = Annotated[int, Query(ge=0)]
