"""
Department transfer and bulk adjustment workflows.

Inputs are validated before a connection is leased. Each workflow then runs
a fixed, short list of set-based statements in one transaction on one
connection; none of them loops over rows.
"""

import logging
from decimal import Decimal
from typing import NamedTuple

from querygate.core.errors import TransactionFailed, ValidationError
from querygate.core.pool import ConnectionPool, run_transaction
from querygate.models import ProductTypeEnum
from querygate.sql import Plan, get_steps, statements

_log = logging.getLogger(__name__)

MAX_TRANSFER_BATCH = 1000


class WorkflowResult(NamedTuple):
    affected: int


class Timeouts(NamedTuple):
    acquire: float
    statement: float | None


def _require(value: object, name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{name} is required")


def _run(
    workflow: str,
    pool: ConnectionPool,
    product_type: ProductTypeEnum,
    plan: Plan,
    params: dict[str, object],
    timeouts: Timeouts,
) -> WorkflowResult:
    """Run the steps of *plan* in one transaction; counted steps make up the result."""
    steps = get_steps(plan, product_type)
    bound = [(step.sql, params) for step in steps]
    try:
        results = run_transaction(
            pool, bound, acquire_timeout=timeouts.acquire, timeout=timeouts.statement
        )
    except TransactionFailed:
        _log.warning("Workflow rolled back", extra={"workflow": workflow, "pool": pool.name})
        raise
    affected = sum(result.rowcount for step, result in zip(steps, results) if step.counted)
    _log.info(
        "Workflow committed",
        extra={"workflow": workflow, "pool": pool.name, "affected": affected},
    )
    return WorkflowResult(affected)


def transfer_department(
    pool: ConnectionPool,
    product_type: ProductTypeEnum,
    source: str | None,
    target: str | None,
    *,
    limit: int = 100,
    timeouts: Timeouts,
) -> WorkflowResult:
    """Move up to *limit* current members of *source* into *target*.

    Closes their current assignment and opens one in the target department.
    Returns the number of employees moved.
    """
    _require(source, "source department")
    _require(target, "target department")
    if source == target:
        raise ValidationError("Source and target departments must be different")
    if not 1 <= limit <= MAX_TRANSFER_BATCH:
        raise ValidationError(f"limit must be between 1 and {MAX_TRANSFER_BATCH}")
    params = {"source": source, "target": target, "limit": limit}
    return _run(
        "transfer_department",
        pool,
        product_type,
        statements.TRANSFER_DEPARTMENT,
        params,
        timeouts,
    )


def adjust_department_salaries(
    pool: ConnectionPool,
    product_type: ProductTypeEnum,
    department: str | None,
    percent: Decimal | float | None,
    *,
    timeouts: Timeouts,
) -> WorkflowResult:
    """Apply a percentage change to every current salary in *department*."""
    _require(department, "department")
    _require(percent, "adjustment percent")
    percent = Decimal(str(percent))
    if percent == 0 or not Decimal(-50) < percent <= Decimal(100):
        raise ValidationError("adjustment percent must be non-zero, above -50 and at most 100")
    params = {"department": department, "percent": percent}
    return _run(
        "adjust_department_salaries",
        pool,
        product_type,
        statements.ADJUST_DEPARTMENT_SALARIES,
        params,
        timeouts,
    )


def update_employee_salary(
    pool: ConnectionPool,
    product_type: ProductTypeEnum,
    emp_no: int | None,
    amount: int | None,
    *,
    timeouts: Timeouts,
) -> WorkflowResult:
    """Set the current salary of *emp_no* to *amount*.

    Older current rows are closed and a row starting today is opened; a row
    that already starts today is changed in place.
    """
    _require(emp_no, "emp_no")
    _require(amount, "salary")
    if amount is not None and amount <= 0:
        raise ValidationError("salary must be positive")
    params = {"emp_no": emp_no, "amount": amount}
    return _run(
        "update_employee_salary",
        pool,
        product_type,
        statements.UPDATE_EMPLOYEE_SALARY,
        params,
        timeouts,
    )


def promote_titles(
    pool: ConnectionPool,
    product_type: ProductTypeEnum,
    department: str | None,
    from_title: str | None,
    to_title: str | None,
    *,
    timeouts: Timeouts,
) -> WorkflowResult:
    """Replace *from_title* with *to_title* for current members of *department*."""
    _require(department, "department")
    _require(from_title, "from_title")
    _require(to_title, "to_title")
    if from_title == to_title:
        raise ValidationError("from_title and to_title must be different")
    params = {"department": department, "from_title": from_title, "to_title": to_title}
    return _run(
        "promote_titles",
        pool,
        product_type,
        statements.PROMOTE_TITLES,
        params,
        timeouts,
    )
