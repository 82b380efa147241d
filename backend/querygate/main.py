import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI, Request, Response
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from starlette.middleware.cors import CORSMiddleware

from querygate.api.deps import enabled_services
from querygate.api.main import api_router
from querygate.core.config import settings
from querygate.core.errors import GatewayError
from querygate.core.pool import HealthMonitor, PoolManager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
_log = logging.getLogger(__name__)


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}"


if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)


def _open_pools(pools: PoolManager) -> dict[str, HealthMonitor]:
    monitors: dict[str, HealthMonitor] = {}
    for service in enabled_services(settings):
        pool = pools.get(service.value)
        monitors[service.value] = HealthMonitor(
            pool,
            probe_timeout=settings.HEALTH_PROBE_TIMEOUT_SEC,
            degraded_utilization=settings.HEALTH_DEGRADED_UTILIZATION,
        )
    return monitors


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open one pool per mounted service on startup; close them all on shutdown."""
    pools = PoolManager(settings)
    monitors = await run_in_threadpool(_open_pools, pools)
    app.state.pools = pools
    app.state.monitors = monitors
    if settings.HEALTH_CHECK_INTERVAL_SEC > 0:
        for m in monitors.values():
            m.start(settings.HEALTH_CHECK_INTERVAL_SEC)
    _log.info("Gateway started", extra={"services": list(monitors)})
    try:
        yield
    finally:
        for m in monitors.values():
            m.stop()
        await run_in_threadpool(pools.dispose)
        _log.info("Gateway stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    generate_unique_id_function=custom_generate_unique_id,
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Exception handlers: every failure becomes {"error": "..."}
# ---------------------------------------------------------------------------


@app.exception_handler(GatewayError)
async def gateway_exception_handler(request: Request, exc: GatewayError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return 400 with a readable message instead of raw Pydantic errors."""
    messages = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", []) if part != "body")
        msg = err.get("msg", "Invalid value")
        messages.append(f"{loc}: {msg}" if loc else msg)
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log and return 500 with a safe message."""
    _log.exception("Unhandled exception on %s %s", request.method, request.url.path)
    message = "Internal server error"
    if settings.ENVIRONMENT == "local":
        message = f"Internal server error: {exc}"
    return JSONResponse(status_code=500, content={"error": message})


@app.middleware("http")
async def log_requests(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    service = request.url.path.strip("/").split("/", 1)[0] or "-"
    _log.info(
        "%s %s %s",
        request.method,
        request.url.path,
        response.status_code,
        extra={
            "service": service,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 1),
        },
    )
    return response


# Set all CORS enabled origins
if settings.all_cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.all_cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router)
