from datetime import timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from querygate.api.deps import MonitorsDep, PoolsDep
from querygate.core.pool import check_all
from querygate.models import HealthState
from querygate.schemas import PoolStatsOut

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=None)
def health(monitors: MonitorsDep) -> JSONResponse:
    """
    Readiness probe: SELECT 1 on every mounted service pool.

    200 when all pools answer (``degraded`` when a pool is above the
    configured utilisation threshold); 503 when any pool is unavailable.
    """
    status = check_all(monitors)
    unavailable = status.state == HealthState.UNAVAILABLE
    return JSONResponse(
        status_code=503 if unavailable else 200,
        content={
            "status": status.state.value,
            "dbConnected": status.db_connected,
            "timestamp": status.checked_at.astimezone(timezone.utc).isoformat(),
        },
    )


@router.get("/pools")
def pool_stats(pools: PoolsDep) -> list[PoolStatsOut]:
    """Current size of every pool opened so far."""
    return [PoolStatsOut(**s._asdict()) for s in pools.stats()]
