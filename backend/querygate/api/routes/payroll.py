"""
Payroll system: salary lookups, earnings reports and department adjustments.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from querygate.api.deps import Limit, ServiceDB, concurrency_slot, service_db
from querygate.api.responses import ok, success
from querygate.core.errors import ValidationError
from querygate.models import ServiceEnum
from querygate.schemas import BulkAdjustmentIn, MutationOut, SalaryAdjustIn
from querygate.sql import statements
from querygate.workflows import adjust_department_salaries

router = APIRouter(
    prefix="/payroll", tags=["payroll"], dependencies=[Depends(concurrency_slot)]
)

PayrollDB = Annotated[ServiceDB, Depends(service_db(ServiceEnum.PAYROLL))]


@router.get("/salaries/by_employee", response_model=None)
def salaries_by_employee(
    db: PayrollDB, emp_no: Annotated[int, Query(ge=1)] = 10001
) -> dict[str, Any]:
    """Salary history of one employee, newest first."""
    return ok(db.fetch(statements.PAYROLL_SALARIES_BY_EMPLOYEE, {"emp_no": emp_no}))


@router.get("/salaries/by_range", response_model=None)
def salaries_by_range(
    db: PayrollDB,
    min_salary: Annotated[int, Query(ge=0)] = 50000,
    max_salary: Annotated[int, Query(ge=0)] = 70000,
    limit: Limit = 100,
) -> dict[str, Any]:
    if min_salary > max_salary:
        raise ValidationError("min_salary must not exceed max_salary")
    rows = db.fetch(
        statements.PAYROLL_SALARIES_BY_RANGE,
        {"min_salary": min_salary, "max_salary": max_salary, "limit": limit},
    )
    return ok(rows)


@router.get("/reports/highest_earners", response_model=None)
def highest_earners(db: PayrollDB, limit: Limit = 10) -> dict[str, Any]:
    return ok(db.fetch(statements.PAYROLL_HIGHEST_EARNERS, {"limit": limit}))


@router.get("/departments/avg_salary", response_model=None)
def department_avg_salary(db: PayrollDB) -> dict[str, Any]:
    return ok(db.fetch(statements.PAYROLL_DEPARTMENT_AVG_SALARY))


@router.put("/salaries/adjust")
def adjust_salaries(db: PayrollDB, body: SalaryAdjustIn) -> MutationOut:
    """Apply a percentage raise (or cut) to a department's current salaries."""
    result = adjust_department_salaries(
        db.pool, db.product_type, body.department, body.percent, timeouts=db.timeouts
    )
    return success(f"Successfully adjusted salaries for {result.affected} employees")


@router.post("/bulk-adjustment")
def bulk_adjustment(db: PayrollDB, body: BulkAdjustmentIn) -> MutationOut:
    department = str(body.department_id) if body.department_id is not None else None
    result = adjust_department_salaries(
        db.pool, db.product_type, department, body.adjustment_percent, timeouts=db.timeouts
    )
    return success(f"Successfully adjusted salaries for {result.affected} employees")
