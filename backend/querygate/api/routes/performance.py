from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from querygate.api.deps import Limit, ServiceDB, concurrency_slot, service_db
from querygate.api.responses import ok
from querygate.models import ServiceEnum
from querygate.sql import statements

router = APIRouter(
    prefix="/perf", tags=["performance"], dependencies=[Depends(concurrency_slot)]
)

PerfDB = Annotated[ServiceDB, Depends(service_db(ServiceEnum.PERFORMANCE))]


@router.get("/employees/career_progression", response_model=None)
def career_progression(
    db: PerfDB, emp_no: Annotated[int, Query(ge=1)] = 10001
) -> dict[str, Any]:
    """Titles held by one employee with the salary at the start of each."""
    return ok(db.fetch(statements.PERF_CAREER_PROGRESSION, {"emp_no": emp_no}))


@router.get("/employees/top_performers", response_model=None)
def top_performers(db: PerfDB, limit: Limit = 10) -> dict[str, Any]:
    return ok(db.fetch(statements.PERF_TOP_PERFORMERS, {"limit": limit}))


@router.get("/departments/tenure", response_model=None)
def department_tenure(db: PerfDB) -> dict[str, Any]:
    return ok(db.fetch(statements.PERF_DEPARTMENT_TENURE))
