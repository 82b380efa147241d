"""Tests for the /hr routes."""

from datetime import date
from unittest.mock import patch

from fastapi.testclient import TestClient

from querygate.core.errors import PoolExhausted
from tests.utils.fakes import FakeDatabase, FakeResult


def test_search_employees_binds_hire_date(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on(
        "e.hire_date = %(hire_date)s",
        FakeResult(
            ["emp_no", "first_name", "last_name", "hire_date"],
            [(10001, "Georgi", "Facello", date(1990, 1, 15))],
        ),
    )
    r = client.get("/hr/employees/search", params={"hire_date": "1990-01-15", "limit": 5})
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["data"] == [
        {"emp_no": 10001, "first_name": "Georgi", "last_name": "Facello", "hire_date": "1990-01-15"}
    ]
    _, params = fake_db.statements[-1]
    assert params == {"hire_date": date(1990, 1, 15), "limit": 5}


def test_search_by_name_wraps_pattern(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.get(
        "/hr/employees/search_by_name_or_dept", params={"name": "Geo", "dept_no": "d005"}
    )
    assert r.status_code == 200
    assert r.json()["data"] == []
    _, params = fake_db.statements[-1]
    assert params["name"] == "%Geo%"
    assert params["dept_no"] == "d005"


def test_list_employees_rejects_out_of_range_limit(client: TestClient) -> None:
    r = client.get("/hr/employees/list", params={"limit": 5000})
    assert r.status_code == 400
    assert "limit" in r.json()["error"]


def test_list_employees_pagination(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.get("/hr/employees/list", params={"limit": 20, "offset": 40})
    assert r.status_code == 200
    assert fake_db.statements[-1][1] == {"limit": 20, "offset": 40}


def test_pool_exhausted_returns_500(client: TestClient) -> None:
    with patch("querygate.api.deps.query", side_effect=PoolExhausted()):
        r = client.get("/hr/employees/list")
    assert r.status_code == 500
    assert r.json() == {"error": "Connection pool exhausted"}


def test_transfer(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("UPDATE department_employee", FakeResult(rowcount=3))
    fake_db.on("INSERT INTO department_employee", FakeResult(rowcount=3))
    r = client.post(
        "/hr/employees/transfer",
        json={"source_dept": "d001", "target_dept": "d002", "limit": 3},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["message"] == "Successfully transferred 3 employees"
    assert "timestamp" in body
    assert fake_db.commits == 1


def test_transfer_same_department_is_400(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.post(
        "/hr/employees/transfer", json={"source_dept": "d001", "target_dept": "d001"}
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Source and target departments must be different"}
    assert fake_db.statements == []


def test_transfer_failure_reports_rollback(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("INSERT INTO department_employee", RuntimeError("deadlock detected"))
    r = client.post(
        "/hr/employees/transfer", json={"source_dept": "d001", "target_dept": "d002"}
    )
    assert r.status_code == 500
    body = r.json()
    assert body["error"].startswith("Transaction failed and was rolled back")
    assert body["affectedRows"] == 0
    assert fake_db.commits == 0


def test_update_salary(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on("INSERT INTO salary", FakeResult(rowcount=1))
    r = client.put("/hr/employees/update_salary", json={"emp_no": 10001, "salary": 70000})
    assert r.status_code == 200
    assert r.json()["message"] == "Salary updated for employee 10001"


def test_update_salary_missing_fields(client: TestClient) -> None:
    r = client.put("/hr/employees/update_salary", json={"emp_no": 10001})
    assert r.status_code == 400
    assert r.json() == {"error": "salary is required"}
