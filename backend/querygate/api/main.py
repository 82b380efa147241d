from fastapi import APIRouter

from querygate.api.routes import admin, health, hr, payroll, performance, reports
from querygate.core.config import settings
from querygate.models import ServiceEnum

_SERVICE_ROUTERS = {
    ServiceEnum.HR: hr.router,
    ServiceEnum.PAYROLL: payroll.router,
    ServiceEnum.PERFORMANCE: performance.router,
    ServiceEnum.ADMIN: admin.router,
    ServiceEnum.REPORTS: reports.router,
}

api_router = APIRouter()
api_router.include_router(health.router)

# Each deployment mounts only the services listed in SERVICES.
for _service in settings.SERVICES:
    api_router.include_router(_SERVICE_ROUTERS[ServiceEnum(_service)])
