"""Tests for the /perf and /reports routes."""

from datetime import date
from decimal import Decimal

from fastapi.testclient import TestClient

from tests.utils.fakes import FakeDatabase, FakeResult


def test_career_progression(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on(
        "starting_salary",
        FakeResult(
            ["emp_no", "title", "from_date", "starting_salary"],
            [(10001, "Senior Engineer", date(1986, 6, 26), 60117)],
        ),
    )
    r = client.get("/perf/employees/career_progression", params={"emp_no": 10001})
    assert r.status_code == 200
    assert r.json()["data"][0]["from_date"] == "1986-06-26"


def test_top_performers_limit(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.get("/perf/employees/top_performers", params={"limit": 3})
    assert r.status_code == 200
    assert fake_db.statements[-1][1] == {"limit": 3}


def test_department_tenure(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on(
        "avg_tenure_years",
        FakeResult(["dept_no", "avg_tenure_years"], [("d001", Decimal("33.5"))]),
    )
    r = client.get("/perf/departments/tenure")
    assert r.status_code == 200
    assert r.json()["data"] == [{"dept_no": "d001", "avg_tenure_years": 33.5}]


def test_reports_average_salary(client: TestClient) -> None:
    r = client.get("/reports/departments/average_salary")
    assert r.status_code == 200
    assert r.json() == {"status": "ok", "data": []}


def test_long_tenure_params(client: TestClient, fake_db: FakeDatabase) -> None:
    r = client.get("/reports/employees/long_tenure", params={"years": 25, "limit": 10})
    assert r.status_code == 200
    assert fake_db.statements[-1][1] == {"years": 25, "limit": 10}


def test_long_tenure_rejects_bad_years(client: TestClient) -> None:
    r = client.get("/reports/employees/long_tenure", params={"years": 0})
    assert r.status_code == 400


def test_highest_by_dept(client: TestClient, fake_db: FakeDatabase) -> None:
    fake_db.on(
        "ROW_NUMBER()",
        FakeResult(["dept_no", "emp_no", "salary"], [("d001", 466852, 145128)]),
    )
    r = client.get("/reports/salaries/highest_by_dept")
    assert r.status_code == 200
    assert r.json()["data"][0]["emp_no"] == 466852
