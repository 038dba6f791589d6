"""Payroll arithmetic for one employee month.

Pure functions over entities: no store access. ``PayrollService`` loads
the inputs and applies the write guards built on these functions.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence, Union

from siteledger.domain.entities import (
    Attendance,
    DailyAttendanceSummary,
    DailyDay,
    DailyStatus,
    Employee,
    EmployeePayment,
    EmployeePaymentType,
    EmployeeType,
    FixedAttendanceSummary,
    FixedDay,
    FixedStatus,
    PaymentStatus,
    PayrollSnapshot,
)
from siteledger.domain.money import ZERO, days_in_month, month_end, round_amount

FULL_DAY_HOURS = Decimal("8")


def fixed_day_statuses(month: str, fixed_days: Iterable[FixedDay]) -> dict[int, FixedStatus]:
    """Status of every day of the month; unmarked days are present."""
    marked = {d.day: d.status for d in fixed_days}
    return {
        day: marked.get(day, FixedStatus.PRESENT)
        for day in range(1, days_in_month(month) + 1)
    }


def daily_day_records(month: str, daily_days: Iterable[DailyDay]) -> dict[int, Optional[DailyDay]]:
    """Record of every day of the month; unmarked days carry None (not worked)."""
    marked = {d.day: d for d in daily_days}
    return {day: marked.get(day) for day in range(1, days_in_month(month) + 1)}


def _present_days(month: str, daily_days: Iterable[DailyDay]) -> list[DailyDay]:
    return [
        record
        for record in daily_day_records(month, daily_days).values()
        if record is not None and record.status == DailyStatus.PRESENT
    ]


def worked_days(month: str, daily_days: Iterable[DailyDay]) -> Decimal:
    """Sum of paid-day fractions; hours are clamped to 0..8."""
    total = ZERO
    for record in _present_days(month, daily_days):
        hours = min(max(record.hours_worked, ZERO), FULL_DAY_HOURS)
        total += hours / FULL_DAY_HOURS
    return total


def overtime_hours(month: str, daily_days: Iterable[DailyDay]) -> Decimal:
    """Overtime hours summed over present days."""
    return sum(
        (record.overtime_hours for record in _present_days(month, daily_days)),
        ZERO,
    )


def compute_payable(
    employee: Employee,
    month: str,
    fixed_days: Sequence[FixedDay] = (),
    daily_days: Sequence[DailyDay] = (),
) -> Decimal:
    """Amount payable for the month under the given attendance.

    Fixed: monthly salary less a pro-rata deduction for unpaid leave.
    Daily: clamped worked-day fractions at the daily rate plus overtime at
    one eighth of the daily rate per hour.
    """
    if employee.type == EmployeeType.FIXED:
        base_salary = employee.monthly_salary
        statuses = fixed_day_statuses(month, fixed_days)
        unpaid_leaves = sum(1 for s in statuses.values() if s == FixedStatus.UNPAID_LEAVE)
        deduction = round_amount(base_salary / days_in_month(month) * unpaid_leaves)
        return max(base_salary - deduction, ZERO)

    daily_rate = employee.daily_rate
    overtime_rate = daily_rate / FULL_DAY_HOURS
    wage = round_amount(worked_days(month, daily_days) * daily_rate)
    overtime_pay = round_amount(overtime_hours(month, daily_days) * overtime_rate)
    return wage + overtime_pay


def payable_for_attendance(employee: Employee, month: str, attendance: Optional[Attendance]) -> Decimal:
    """compute_payable for a stored (possibly missing) attendance record."""
    if attendance is None:
        return compute_payable(employee, month)
    return compute_payable(employee, month, attendance.fixed_days, attendance.daily_days)


def counted_payments(employee: Employee, payments: Iterable[EmployeePayment]) -> list[EmployeePayment]:
    """Payments that count toward a month: advances and the settlement type."""
    counted_types = {EmployeePaymentType.ADVANCE, employee.settlement_type}
    return [p for p in payments if p.type in counted_types]


def compute_paid(employee: Employee, payments: Iterable[EmployeePayment]) -> Decimal:
    """Total counted payments of one month."""
    return sum((p.amount for p in counted_payments(employee, payments)), ZERO)


def settlement_date(employee: Employee, payments: Iterable[EmployeePayment]) -> Optional[date]:
    """Date of the latest non-advance payment, or None."""
    dates = [
        p.date
        for p in counted_payments(employee, payments)
        if p.type != EmployeePaymentType.ADVANCE
    ]
    return max(dates) if dates else None


def payment_status(
    payable: Decimal,
    paid: Decimal,
    remaining: Decimal,
    settled_on: Optional[date],
    period_end: date,
) -> PaymentStatus:
    """Classify a month as Paid, Late, Partial or Due."""
    if payable <= ZERO:
        return PaymentStatus.PAID
    if remaining <= ZERO:
        if settled_on is not None and settled_on > period_end:
            return PaymentStatus.LATE
        return PaymentStatus.PAID
    if paid > ZERO:
        return PaymentStatus.PARTIAL
    return PaymentStatus.DUE


def is_eligible_month(employee: Employee, month: str) -> bool:
    """False for months before the employee existed."""
    return month >= employee.first_month


def build_snapshot(
    employee: Employee,
    month: str,
    attendance: Optional[Attendance],
    payments: Iterable[EmployeePayment],
) -> Optional[PayrollSnapshot]:
    """Snapshot for one month, or None when the month has no data.

    Args:
        employee: Employee entity
        month: Month (YYYY-MM)
        attendance: Attendance for the month, if any was recorded
        payments: Payments tagged to the month

    Returns:
        PayrollSnapshot, or None if the month is before the employee's first month
    """
    if not is_eligible_month(employee, month):
        return None
    payments = list(payments)
    payable = payable_for_attendance(employee, month, attendance)
    paid = compute_paid(employee, payments)
    remaining = max(payable - paid, ZERO)
    status = payment_status(
        payable, paid, remaining, settlement_date(employee, payments), month_end(month)
    )
    return PayrollSnapshot(
        month=month, payable=payable, paid=paid, remaining=remaining, status=status
    )


def summarize_attendance(
    employee: Employee, month: str, attendance: Optional[Attendance]
) -> Union[FixedAttendanceSummary, DailyAttendanceSummary]:
    """Day counts (Fixed) or worked days and overtime (Daily) for a month."""
    if employee.type == EmployeeType.FIXED:
        statuses = fixed_day_statuses(month, attendance.fixed_days if attendance else ())
        counts = {status: 0 for status in FixedStatus}
        for status in statuses.values():
            counts[status] += 1
        return FixedAttendanceSummary(
            present=counts[FixedStatus.PRESENT],
            absent=counts[FixedStatus.ABSENT],
            paid_leave=counts[FixedStatus.PAID_LEAVE] + counts[FixedStatus.LEAVE],
            unpaid_leave=counts[FixedStatus.UNPAID_LEAVE],
        )

    daily_days = attendance.daily_days if attendance else ()
    return DailyAttendanceSummary(
        worked_days=worked_days(month, daily_days),
        overtime_hours=overtime_hours(month, daily_days),
    )
