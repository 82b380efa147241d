"""
Workflow statements against real servers.

Each test seeds two employees in a scratch department and removes them
afterwards. Skipped unless POSTGRES_SERVER or MYSQL_HOST is set.
"""

from collections.abc import Callable, Generator
from typing import Any, NamedTuple

import pytest

from querygate.core.config import Settings
from querygate.core.pool import ConnectionPool, connector, query, run_transaction
from querygate.models import ProductTypeEnum
from querygate.workflows import (
    Timeouts,
    adjust_department_salaries,
    transfer_department,
    update_employee_salary,
)
from tests.utils.servers import mysql_settings, pg_settings, requires_mysql, requires_postgres

TIMEOUTS = Timeouts(acquire=5.0, statement=10.0)
FIRST, SECOND = 990001, 990002
SOURCE, TARGET_A, TARGET_B = "x901", "x902", "x903"


class Dialect(NamedTuple):
    settings: Callable[[], Settings]
    seed_departments: str
    seed_employee: list[str]
    cleanup: list[str]
    current_departments: str
    current_salaries: str
    opened_today: str


POSTGRES = Dialect(
    settings=pg_settings,
    seed_departments="""
        INSERT INTO department (id, dept_name) VALUES
            ('x901', 'Gateway test source'),
            ('x902', 'Gateway test target A'),
            ('x903', 'Gateway test target B')
    """,
    seed_employee=[
        "INSERT INTO employee (id, birth_date, first_name, last_name, gender, hire_date)"
        " VALUES (%(id)s, '1970-01-01', 'Test', 'Employee', 'M', '2000-01-01')",
        "INSERT INTO department_employee (employee_id, department_id, from_date, to_date)"
        " VALUES (%(id)s, 'x901', '2000-01-01', '9999-01-01')",
        "INSERT INTO salary (employee_id, amount, from_date, to_date)"
        " VALUES (%(id)s, 50000, '2000-01-01', '9999-01-01')",
    ],
    cleanup=[
        "DELETE FROM salary WHERE employee_id IN (990001, 990002)",
        "DELETE FROM title WHERE employee_id IN (990001, 990002)",
        "DELETE FROM department_employee WHERE employee_id IN (990001, 990002)",
        "DELETE FROM employee WHERE id IN (990001, 990002)",
        "DELETE FROM department WHERE id IN ('x901', 'x902', 'x903')",
    ],
    current_departments="""
        SELECT department_id AS dept_no FROM department_employee
        WHERE employee_id = %(id)s AND to_date = '9999-01-01'
        ORDER BY department_id
    """,
    current_salaries="""
        SELECT amount AS salary FROM salary
        WHERE employee_id = %(id)s AND to_date = '9999-01-01'
    """,
    opened_today="""
        SELECT COUNT(*) AS n FROM department_employee
        WHERE department_id = %(dept)s AND from_date = CURRENT_DATE
    """,
)

MYSQL = Dialect(
    settings=mysql_settings,
    seed_departments="""
        INSERT INTO departments (dept_no, dept_name) VALUES
            ('x901', 'Gateway test source'),
            ('x902', 'Gateway test target A'),
            ('x903', 'Gateway test target B')
    """,
    seed_employee=[
        "INSERT INTO employees (emp_no, birth_date, first_name, last_name, gender, hire_date)"
        " VALUES (%(id)s, '1970-01-01', 'Test', 'Employee', 'M', '2000-01-01')",
        "INSERT INTO dept_emp (emp_no, dept_no, from_date, to_date)"
        " VALUES (%(id)s, 'x901', '2000-01-01', '9999-01-01')",
        "INSERT INTO salaries (emp_no, salary, from_date, to_date)"
        " VALUES (%(id)s, 50000, '2000-01-01', '9999-01-01')",
    ],
    cleanup=[
        "DELETE FROM salaries WHERE emp_no IN (990001, 990002)",
        "DELETE FROM titles WHERE emp_no IN (990001, 990002)",
        "DELETE FROM dept_emp WHERE emp_no IN (990001, 990002)",
        "DELETE FROM employees WHERE emp_no IN (990001, 990002)",
        "DELETE FROM departments WHERE dept_no IN ('x901', 'x902', 'x903')",
    ],
    current_departments="""
        SELECT dept_no FROM dept_emp
        WHERE emp_no = %(id)s AND to_date = '9999-01-01'
        ORDER BY dept_no
    """,
    current_salaries="""
        SELECT salary FROM salaries
        WHERE emp_no = %(id)s AND to_date = '9999-01-01'
    """,
    opened_today="""
        SELECT COUNT(*) AS n FROM dept_emp
        WHERE dept_no = %(dept)s AND from_date = CURDATE()
    """,
)


class Database(NamedTuple):
    pool: ConnectionPool
    product_type: ProductTypeEnum
    dialect: Dialect

    def rows(self, sql: str, **params: Any) -> list[dict[str, Any]]:
        return query(self.pool, sql, params, acquire_timeout=5.0, timeout=10.0)

    def departments(self, emp_no: int) -> list[str]:
        rows = self.rows(self.dialect.current_departments, id=emp_no)
        return [r["dept_no"].strip() for r in rows]

    def salaries(self, emp_no: int) -> list[int]:
        return [int(r["salary"]) for r in self.rows(self.dialect.current_salaries, id=emp_no)]

    def opened_today(self, dept_no: str) -> int:
        return int(self.rows(self.dialect.opened_today, dept=dept_no)[0]["n"])


@pytest.fixture(
    params=[
        pytest.param(POSTGRES, id="postgres", marks=requires_postgres),
        pytest.param(MYSQL, id="mysql", marks=requires_mysql),
    ]
)
def db(request: pytest.FixtureRequest) -> Generator[Database, None, None]:
    dialect: Dialect = request.param
    s = dialect.settings()
    pool = ConnectionPool(
        "itest-workflows", connector(s), product_type=s.DB_PRODUCT_TYPE, max_size=2
    )
    pool.open()
    cleanup = [(sql, None) for sql in dialect.cleanup]
    seed = [(dialect.seed_departments, None)] + [
        (sql, {"id": emp_no}) for emp_no in (FIRST, SECOND) for sql in dialect.seed_employee
    ]
    try:
        run_transaction(pool, cleanup, acquire_timeout=5.0, timeout=10.0)
        run_transaction(pool, seed, acquire_timeout=5.0, timeout=10.0)
        yield Database(pool, s.DB_PRODUCT_TYPE, dialect)
    finally:
        run_transaction(pool, cleanup, acquire_timeout=5.0, timeout=10.0)
        pool.close()


def test_two_transfers_on_one_day_move_each_employee_once(db: Database) -> None:
    first = transfer_department(
        db.pool, db.product_type, SOURCE, TARGET_A, limit=1, timeouts=TIMEOUTS
    )
    second = transfer_department(
        db.pool, db.product_type, SOURCE, TARGET_B, limit=10, timeouts=TIMEOUTS
    )
    assert first.affected == 1
    assert second.affected == 1
    assert db.departments(FIRST) == [TARGET_A]
    assert db.departments(SECOND) == [TARGET_B]
    assert db.opened_today(TARGET_A) == 1
    assert db.opened_today(TARGET_B) == 1


def test_transfer_count_matches_inserted_rows(db: Database) -> None:
    result = transfer_department(
        db.pool, db.product_type, SOURCE, TARGET_A, limit=10, timeouts=TIMEOUTS
    )
    assert result.affected == 2
    assert db.opened_today(TARGET_A) == result.affected
    repeated = transfer_department(
        db.pool, db.product_type, SOURCE, TARGET_A, limit=10, timeouts=TIMEOUTS
    )
    assert repeated.affected == 0
    assert db.opened_today(TARGET_A) == 2


def test_salary_updated_twice_on_one_day(db: Database) -> None:
    assert update_employee_salary(
        db.pool, db.product_type, FIRST, 60000, timeouts=TIMEOUTS
    ).affected == 1
    assert update_employee_salary(
        db.pool, db.product_type, FIRST, 61000, timeouts=TIMEOUTS
    ).affected == 1
    assert db.salaries(FIRST) == [61000]


def test_department_adjustment_after_same_day_salary_change(db: Database) -> None:
    update_employee_salary(db.pool, db.product_type, FIRST, 60000, timeouts=TIMEOUTS)
    result = adjust_department_salaries(db.pool, db.product_type, SOURCE, 10, timeouts=TIMEOUTS)
    assert result.affected == 2
    assert db.salaries(FIRST) == [66000]
    assert db.salaries(SECOND) == [55000]
    again = adjust_department_salaries(db.pool, db.product_type, SOURCE, 10, timeouts=TIMEOUTS)
    assert again.affected == 2
    assert db.salaries(FIRST) == [72600]
    assert db.salaries(SECOND) == [60500]
