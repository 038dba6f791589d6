"""Tests for the payroll service."""

from datetime import date
from decimal import Decimal

import pytest

from siteledger.domain.entities import (
    DailyDay,
    FixedDay,
    FixedStatus,
    PaymentStatus,
)
from siteledger.domain.errors import InvariantViolationError, ValidationError


def _unpaid(*days):
    return [FixedDay(day=d, status=FixedStatus.UNPAID_LEAVE) for d in days]


class TestAttendance:
    """Tests for put_attendance and attendance reads."""

    def test_empty_month(self, payroll_service, fixed_employee):
        attendance = payroll_service.get_attendance(fixed_employee.id, "2026-04")

        assert attendance.fixed_days == ()
        assert attendance.daily_days == ()

    def test_fixed_attendance_lowers_payable(self, payroll_service, fixed_employee):
        payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(3, 4, 5))

        snapshot = payroll_service.get_snapshot(fixed_employee.id, "2026-04")
        assert snapshot.payable == Decimal("27000")
        summary = payroll_service.attendance_summary(fixed_employee.id, "2026-04")
        assert summary.unpaid_leave == 3
        assert summary.present == 27

    def test_resave_replaces_days(self, payroll_service, fixed_employee):
        payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(3, 4, 5))
        payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(5))

        attendance = payroll_service.get_attendance(fixed_employee.id, "2026-04")
        assert [d.day for d in attendance.fixed_days] == [5]
        assert payroll_service.get_snapshot(fixed_employee.id, "2026-04").payable == Decimal("29000")

    def test_attendance_below_paid_rejected(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("30000"), "Salary"
        )

        with pytest.raises(InvariantViolationError, match="already been paid") as exc:
            payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(3, 4, 5))

        assert exc.value.max_allowed == Decimal("27000")
        assert payroll_service.get_attendance(fixed_employee.id, "2026-04").fixed_days == ()

    def test_daily_attendance(self, payroll_service, daily_employee):
        day = DailyDay(day=1, status="present", hours_worked=Decimal("4"), overtime_hours=Decimal("2"))

        payroll_service.put_attendance(daily_employee.id, "2026-04", daily_days=[day])

        snapshot = payroll_service.get_snapshot(daily_employee.id, "2026-04")
        assert snapshot.payable == Decimal("750")
        assert snapshot.status == PaymentStatus.DUE
        stored = payroll_service.get_attendance(daily_employee.id, "2026-04").daily_days
        assert stored[0].hours_worked == Decimal("4")

    def test_daily_hours_over_eight_rejected(self, payroll_service, daily_employee):
        day = DailyDay(day=1, status="present", hours_worked=Decimal("9"))
        with pytest.raises(ValidationError, match="between 0 and 8"):
            payroll_service.put_attendance(daily_employee.id, "2026-04", daily_days=[day])

    def test_wrong_kind_of_days(self, payroll_service, fixed_employee, daily_employee):
        with pytest.raises(ValidationError):
            payroll_service.put_attendance(
                fixed_employee.id, "2026-04", daily_days=[DailyDay(day=1, status="present")]
            )
        with pytest.raises(ValidationError):
            payroll_service.put_attendance(daily_employee.id, "2026-04", fixed_days=_unpaid(1))

    def test_day_outside_month(self, payroll_service, fixed_employee):
        with pytest.raises(ValidationError, match="outside 2026-04"):
            payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(31))

    def test_duplicate_day(self, payroll_service, fixed_employee):
        with pytest.raises(ValidationError, match="more than once"):
            payroll_service.put_attendance(fixed_employee.id, "2026-04", fixed_days=_unpaid(2, 2))

    def test_unknown_status(self, payroll_service, fixed_employee):
        with pytest.raises(ValidationError, match="Invalid attendance status"):
            payroll_service.put_attendance(
                fixed_employee.id, "2026-04", fixed_days=[FixedDay(day=1, status="holiday")]
            )

    def test_month_before_first_month(self, payroll_service, fixed_employee):
        with pytest.raises(ValidationError, match="No payroll data before 2026-01"):
            payroll_service.put_attendance(fixed_employee.id, "2025-12", fixed_days=_unpaid(1))
        assert payroll_service.get_snapshot(fixed_employee.id, "2025-12") is None
        assert payroll_service.attendance_summary(fixed_employee.id, "2025-12") is None


class TestEmployeePayments:
    """Tests for employee payment guards."""

    def test_exceeding_payable(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 15), Decimal("20000"), "Advance"
        )

        with pytest.raises(InvariantViolationError, match="Maximum allowed: 10,000") as exc:
            payroll_service.create_payment(
                fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("15000"), "Salary"
            )

        assert exc.value.max_allowed == Decimal("10000")

    def test_exact_settlement_is_paid(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 15), Decimal("20000"), "Advance"
        )
        payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("10000"), "Salary"
        )

        snapshot = payroll_service.get_snapshot(fixed_employee.id, "2026-04")
        assert snapshot.remaining == Decimal("0")
        assert snapshot.status == PaymentStatus.PAID

    def test_late_settlement(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 5, 5), Decimal("30000"), "Salary"
        )

        assert payroll_service.get_snapshot(fixed_employee.id, "2026-04").status == PaymentStatus.LATE

    def test_no_dues_before_first_month(self, payroll_service, fixed_employee):
        with pytest.raises(InvariantViolationError, match="No dues for this month") as exc:
            payroll_service.create_payment(
                fixed_employee.id, "2025-12", date(2025, 12, 30), Decimal("100"), "Salary"
            )

        assert exc.value.max_allowed == Decimal("0")

    def test_no_dues_without_attendance_for_daily(self, payroll_service, daily_employee):
        with pytest.raises(InvariantViolationError, match="No dues for this month"):
            payroll_service.create_payment(
                daily_employee.id, "2026-04", date(2026, 4, 30), Decimal("100"), "Wage"
            )

    def test_settlement_type_must_match_employee(self, payroll_service, fixed_employee):
        with pytest.raises(ValidationError, match="not valid for Fixed employees"):
            payroll_service.create_payment(
                fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("100"), "Wage"
            )

    def test_edit_same_month_excludes_own_amount(self, payroll_service, fixed_employee):
        payment = payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("25000"), "Salary"
        )

        updated = payroll_service.update_payment(payment.id, amount=Decimal("30000"))
        assert updated.amount == Decimal("30000")

        with pytest.raises(InvariantViolationError) as exc:
            payroll_service.update_payment(payment.id, amount=Decimal("30001"))
        assert exc.value.max_allowed == Decimal("30000")

    def test_move_payment_to_another_month(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-05", date(2026, 5, 10), Decimal("10000"), "Advance"
        )
        payment = payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("25000"), "Salary"
        )

        with pytest.raises(InvariantViolationError, match="the new month") as exc:
            payroll_service.update_payment(payment.id, month="2026-05")
        assert exc.value.max_allowed == Decimal("20000")

        moved = payroll_service.update_payment(payment.id, month="2026-05", amount=Decimal("20000"))

        assert moved.month == "2026-05"
        assert payroll_service.get_snapshot(fixed_employee.id, "2026-04").paid == Decimal("0")
        assert payroll_service.get_snapshot(fixed_employee.id, "2026-05").paid == Decimal("30000")

    def test_delete_payment(self, payroll_service, fixed_employee):
        payment = payroll_service.create_payment(
            fixed_employee.id, "2026-04", date(2026, 4, 30), Decimal("1000"), "Advance"
        )

        payroll_service.delete_payment(payment.id)

        assert payroll_service.get_snapshot(fixed_employee.id, "2026-04").paid == Decimal("0")

    def test_list_payments_newest_first(self, payroll_service, fixed_employee):
        for month, day in (("2026-02", date(2026, 2, 28)), ("2026-03", date(2026, 3, 31)), ("2026-04", date(2026, 4, 30))):
            payroll_service.create_payment(fixed_employee.id, month, day, Decimal("1000"), "Advance")

        page = payroll_service.list_payments(fixed_employee.id, page=1, page_size=2)

        assert page.total == 3
        assert [p.month for p in page.rows] == ["2026-04", "2026-03"]
        assert payroll_service.list_payments(fixed_employee.id, month="2026-03").total == 1


class TestEmployeeTotals:
    """Tests for get_employee_totals."""

    def test_due_accumulates_through_current_month(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-01", date(2026, 1, 31), Decimal("10000"), "Advance"
        )

        totals = payroll_service.get_employee_totals(fixed_employee.id, today=date(2026, 2, 15))

        assert totals.total_paid == Decimal("10000")
        assert totals.total_due == Decimal("50000")

    def test_future_months_are_not_due(self, payroll_service, fixed_employee):
        payroll_service.create_payment(
            fixed_employee.id, "2026-03", date(2026, 3, 1), Decimal("5000"), "Advance"
        )

        totals = payroll_service.get_employee_totals(fixed_employee.id, today=date(2026, 1, 20))

        assert totals.total_paid == Decimal("5000")
        assert totals.total_due == Decimal("30000")
