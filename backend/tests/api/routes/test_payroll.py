"""Tests for the /payroll routes."""

from decimal import Decimal

from fastapi.testclient import TestClient

from tests.utils.fakes import FakeDatabase, FakeResult


def test_salaries_by_employee(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on(
        "s.employee_id = %(emp_no)s",
        FakeResult(["emp_no", "salary"], [(10001, 88958), (10001, 85097)]),
    )
    r = client.get("/payroll/salaries/by_employee", params={"emp_no": 10001})
    assert r.status_code == 200
    assert [row["salary"] for row in r.json()["data"]] == [88958, 85097]
    assert fake_db.statements[-1][1] == {"emp_no": 10001}


def test_salaries_by_range_rejects_inverted_bounds(client: TestClient) -> None:
    r = client.get(
        "/payroll/salaries/by_range", params={"min_salary": 90000, "max_salary": 10000}
    )
    assert r.status_code == 400
    assert r.json() == {"error": "min_salary must not exceed max_salary"}


def test_department_avg_salary_serializes_decimals(
    client: TestClient, fake_db: FakeDatabase
) -> None:
    fake_db.on(
        "AVG(s.amount)",
        FakeResult(
            ["dept_no", "dept_name", "avg_salary", "employees"],
            [("d005", "Development", Decimal("59478.90"), 61386)],
        ),
    )
    r = client.get("/payroll/departments/avg_salary")
    assert r.status_code == 200
    row = r.json()["data"][0]
    assert row["dept_no"] == "d005"
    assert row["avg_salary"] == 59478.9


def test_query_error_is_500(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("ORDER BY s.amount DESC", RuntimeError("relation \"salary\" does not exist"))
    r = client.get("/payroll/reports/highest_earners")
    assert r.status_code == 500
    assert r.json()["error"].startswith("Query failed:")


def test_adjust_salaries(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("INSERT INTO salary", FakeResult(rowcount=12))
    r = client.put("/payroll/salaries/adjust", json={"department": "d005", "percent": 3.5})
    assert r.status_code == 200
    assert r.json()["message"] == "Successfully adjusted salaries for 12 employees"
    assert fake_db.statements[-1][1]["percent"] == Decimal("3.5")


def test_adjust_salaries_rejects_zero(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.put("/payroll/salaries/adjust", json={"department": "d005", "percent": 0})
    assert r.status_code == 400
    assert fake_db.statements == []


def test_bulk_adjustment_camel_case_body(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("INSERT INTO salary", FakeResult(rowcount=4))
    r = client.post(
        "/payroll/bulk-adjustment", json={"departmentId": 5, "adjustmentPercent": 10}
    )
    assert r.status_code == 200
    assert r.json()["status"] == "success"
    assert fake_db.statements[-1][1]["department"] == "5"


def test_bulk_adjustment_requires_department(client: TestClient) -> None:
    r = client.post("/payroll/bulk-adjustment", json={"adjustmentPercent": 10})
    assert r.status_code == 400
    assert r.json() == {"error": "department is required"}
