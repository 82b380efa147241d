"""
HR portal: employee search, listing, transfers and salary updates.
"""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query

from querygate.api.deps import Limit, Offset, ServiceDB, concurrency_slot, service_db
from querygate.api.responses import ok, success
from querygate.models import ServiceEnum
from querygate.schemas import MutationOut, SalaryUpdateIn, TransferIn
from querygate.sql import statements
from querygate.workflows import transfer_department, update_employee_salary

router = APIRouter(prefix="/hr", tags=["hr"], dependencies=[Depends(concurrency_slot)])

HrDB = Annotated[ServiceDB, Depends(service_db(ServiceEnum.HR))]


@router.get("/employees/search", response_model=None)
def search_employees(
    db: HrDB, hire_date: date = date(1990, 1, 15), limit: Limit = 100
) -> dict[str, Any]:
    """Employees hired on *hire_date* with their current title, salary and department."""
    rows = db.fetch(
        statements.HR_SEARCH_BY_HIRE_DATE, {"hire_date": hire_date, "limit": limit}
    )
    return ok(rows)


@router.get("/employees/search_by_name_or_dept", response_model=None)
def search_by_name_or_dept(
    db: HrDB,
    name: Annotated[str, Query(min_length=1, max_length=64)] = "Geo",
    dept_no: str = "d005",
    limit: Limit = 100,
) -> dict[str, Any]:
    rows = db.fetch(
        statements.HR_SEARCH_BY_NAME_OR_DEPT,
        {"name": f"%{name}%", "dept_no": dept_no, "limit": limit},
    )
    return ok(rows)


@router.get("/employees/list", response_model=None)
def list_employees(db: HrDB, limit: Limit = 100, offset: Offset = 0) -> dict[str, Any]:
    rows = db.fetch(statements.HR_LIST_EMPLOYEES, {"limit": limit, "offset": offset})
    return ok(rows)


@router.post("/employees/transfer")
def transfer_employees(db: HrDB, body: TransferIn) -> MutationOut:
    """Move up to ``limit`` employees from one department to another."""
    result = transfer_department(
        db.pool,
        db.product_type,
        body.source_dept,
        body.target_dept,
        limit=body.limit,
        timeouts=db.timeouts,
    )
    return success(f"Successfully transferred {result.affected} employees")


@router.put("/employees/update_salary")
def update_salary(db: HrDB, body: SalaryUpdateIn) -> MutationOut:
    update_employee_salary(
        db.pool, db.product_type, body.emp_no, body.salary, timeouts=db.timeouts
    )
    return success(f"Salary updated for employee {body.emp_no}")
