"""
Request and response bodies for the service endpoints.

Mutation bodies keep their fields optional so that missing values reach the
workflow validators and come back as 400 ``{"error": ...}`` responses.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import Field, SQLModel


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TransferIn(SQLModel):
    source_dept: str | None = None
    target_dept: str | None = None
    limit: int = 100


class BulkDepartmentTransferIn(SQLModel):
    """Admin console body; department ids may be numeric or codes like ``d005``."""

    source_dept_id: str | int | None = Field(default=None, alias="sourceDeptId")
    target_dept_id: str | int | None = Field(default=None, alias="targetDeptId")
    limit: int = 100


class SalaryUpdateIn(SQLModel):
    emp_no: int | None = None
    salary: int | None = None


class SalaryAdjustIn(SQLModel):
    department: str | None = None
    percent: Decimal | None = None


class BulkAdjustmentIn(SQLModel):
    """Payroll bulk adjustment body (camelCase, as sent by the payroll UI)."""

    department_id: str | int | None = Field(default=None, alias="departmentId")
    adjustment_percent: Decimal | None = Field(default=None, alias="adjustmentPercent")


class TitleUpdateIn(SQLModel):
    department: str | None = None
    from_title: str | None = None
    to_title: str | None = None


class MutationOut(SQLModel):
    status: str = "success"
    message: str
    timestamp: datetime = Field(default_factory=_utc_now)


class PoolStatsOut(SQLModel):
    name: str
    max_size: int
    in_use: int
    idle: int
    waiting: int
