"""
Admin console: department overview, employee details and bulk changes.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Path

from querygate.api.deps import ServiceDB, concurrency_slot, service_db
from querygate.api.responses import ok, success
from querygate.models import ServiceEnum
from querygate.schemas import BulkDepartmentTransferIn, MutationOut, TitleUpdateIn
from querygate.sql import statements
from querygate.workflows import promote_titles, transfer_department

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(concurrency_slot)])

AdminDB = Annotated[ServiceDB, Depends(service_db(ServiceEnum.ADMIN))]


def _dept(value: str | int | None) -> str | None:
    return str(value) if value is not None else None


@router.get("/departments/details", response_model=None)
def department_details(db: AdminDB) -> dict[str, Any]:
    return ok(db.fetch(statements.ADMIN_DEPARTMENT_DETAILS))


@router.get("/employees/details/{emp_no}", response_model=None)
def employee_details(db: AdminDB, emp_no: Annotated[int, Path(ge=1)]) -> dict[str, Any]:
    return ok(db.fetch(statements.ADMIN_EMPLOYEE_DETAILS, {"emp_no": emp_no}))


@router.put("/employees/bulk_title_update")
def bulk_title_update(db: AdminDB, body: TitleUpdateIn) -> MutationOut:
    result = promote_titles(
        db.pool,
        db.product_type,
        body.department,
        body.from_title,
        body.to_title,
        timeouts=db.timeouts,
    )
    return success(f"Successfully updated titles for {result.affected} employees")


@router.post("/bulk-department-transfer")
def bulk_department_transfer(db: AdminDB, body: BulkDepartmentTransferIn) -> MutationOut:
    """Move current members of ``sourceDeptId`` into ``targetDeptId``."""
    result = transfer_department(
        db.pool,
        db.product_type,
        _dept(body.source_dept_id),
        _dept(body.target_dept_id),
        limit=body.limit,
        timeouts=db.timeouts,
    )
    return success(f"Successfully transferred {result.affected} employees")
