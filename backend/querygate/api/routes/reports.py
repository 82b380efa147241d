from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from querygate.api.deps import Limit, ServiceDB, concurrency_slot, service_db
from querygate.api.responses import ok
from querygate.models import ServiceEnum
from querygate.sql import statements

router = APIRouter(
    prefix="/reports", tags=["reports"], dependencies=[Depends(concurrency_slot)]
)

ReportsDB = Annotated[ServiceDB, Depends(service_db(ServiceEnum.REPORTS))]


@router.get("/departments/average_salary", response_model=None)
def average_salary(db: ReportsDB) -> dict[str, Any]:
    return ok(db.fetch(statements.REPORTS_DEPARTMENT_AVERAGE_SALARY))


@router.get("/employees/long_tenure", response_model=None)
def long_tenure(
    db: ReportsDB, years: Annotated[int, Query(ge=1, le=80)] = 30, limit: Limit = 100
) -> dict[str, Any]:
    """Current employees hired at least *years* ago."""
    return ok(db.fetch(statements.REPORTS_LONG_TENURE, {"years": years, "limit": limit}))


@router.get("/salaries/highest_by_dept", response_model=None)
def highest_by_dept(db: ReportsDB) -> dict[str, Any]:
    return ok(db.fetch(statements.REPORTS_HIGHEST_BY_DEPT))
