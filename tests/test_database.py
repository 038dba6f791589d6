"""Tests for the SQLAlchemy database unit of work."""

from decimal import Decimal

import pytest

from siteledger.domain.errors import StoreError


def test_unit_of_work_commits(temp_db):
    with temp_db.unit_of_work():
        project_id = temp_db.create_project("Tower A")
        temp_db.adjust_project_balance(project_id, Decimal("10"))

    assert temp_db.get_project(project_id).balance == Decimal("10")


def test_unit_of_work_rolls_back_on_error(temp_db):
    with pytest.raises(RuntimeError):
        with temp_db.unit_of_work():
            temp_db.create_project("Tower A")
            raise RuntimeError("boom")

    assert temp_db.list_projects() == []


def test_nested_unit_rolls_back_with_outer(temp_db):
    with pytest.raises(RuntimeError):
        with temp_db.unit_of_work():
            temp_db.create_project("Tower A")
            with temp_db.unit_of_work():
                temp_db.create_project("Tower B")
            raise RuntimeError("boom")

    assert temp_db.list_projects() == []


def test_constraint_violation_is_store_error(temp_db):
    temp_db.create_project("Tower A")

    with pytest.raises(StoreError):
        temp_db.create_project("Tower A")

    # The session is usable after the failed write
    assert [p.name for p in temp_db.list_projects()] == ["Tower A"]


def test_attendance_round_trip(temp_db):
    from datetime import datetime

    from siteledger.domain.entities import DailyDay, DailyStatus

    project_id = temp_db.create_project("Tower A")
    employee_id = temp_db.create_employee(
        project_id=project_id,
        name="Bashir",
        type="Daily",
        monthly_salary=Decimal("0"),
        daily_rate=Decimal("1000"),
        created_at=datetime(2026, 1, 1),
    )
    days = [
        DailyDay(day=2, status=DailyStatus.PRESENT, hours_worked=Decimal("8"), overtime_hours=Decimal("1")),
        DailyDay(day=3, status=DailyStatus.ABSENT),
    ]

    temp_db.save_attendance(employee_id, "2026-04", daily_days=days)
    temp_db.save_attendance(employee_id, "2026-04", daily_days=days[:1])

    attendance = temp_db.get_attendance(employee_id, "2026-04")
    assert [d.day for d in attendance.daily_days] == [2]
    assert temp_db.list_attendance_months(employee_id) == ["2026-04"]
