"""
Transactional mutations shared by the service routers.
"""

from .transfer import (
    MAX_TRANSFER_BATCH,
    Timeouts,
    WorkflowResult,
    adjust_department_salaries,
    promote_titles,
    transfer_department,
    update_employee_salary,
)

__all__ = [
    "MAX_TRANSFER_BATCH",
    "Timeouts",
    "WorkflowResult",
    "adjust_department_salaries",
    "promote_titles",
    "transfer_department",
    "update_employee_salary",
]
