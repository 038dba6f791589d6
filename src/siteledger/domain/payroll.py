"""Payroll service: attendance, employee payments and monthly snapshots.

Snapshots are never stored. Every read recomputes them from attendance and
payments with the functions in ``payroll_calc``; every write is checked
against the payable those functions derive.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Sequence, Union

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import (
    Actor,
    Attendance,
    AuditAction,
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
    Page,
    PaymentMethod,
    PayrollSnapshot,
)
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    exceeds_payable,
    format_amount,
    not_found,
)
from siteledger.domain.money import (
    ZERO,
    days_in_month,
    month_of,
    months_between,
    optional_text,
    parse_month,
    require_positive,
    to_amount,
)
from siteledger.domain.parsing import page_bounds, parse_payment_method
from siteledger.domain.payroll_calc import (
    FULL_DAY_HOURS,
    build_snapshot,
    compute_paid,
    is_eligible_month,
    payable_for_attendance,
    summarize_attendance,
)

logger = logging.getLogger(__name__)

PAYMENT_MODULE = "employee_payments"
ATTENDANCE_MODULE = "employee_attendance"


@dataclass(frozen=True)
class EmployeeTotals:
    """Lifetime paid and currently due amounts for one employee."""

    total_paid: Decimal
    total_due: Decimal


class PayrollService:
    """Service for employee attendance, payments and payroll snapshots."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize payroll service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _require_employee(self, employee_id: int) -> Employee:
        employee = self.db.get_employee(employee_id)
        if employee is None:
            raise NotFoundError(not_found("Employee", employee_id))
        ensure_project_access(self.actor, employee.project_id)
        return employee

    def _require_payment(self, payment_id: int) -> EmployeePayment:
        payment = self.db.get_employee_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Payment", payment_id))
        return payment

    def _month_payments(self, employee_id: int, month: str) -> list[EmployeePayment]:
        rows, _ = self.db.list_employee_payments(employee_id, month=month)
        return rows

    def _month_paid(self, employee: Employee, month: str) -> Decimal:
        return compute_paid(employee, self._month_payments(employee.id, month))

    def _month_payable(self, employee: Employee, month: str) -> Decimal:
        if not is_eligible_month(employee, month):
            return ZERO
        return payable_for_attendance(employee, month, self.db.get_attendance(employee.id, month))

    @staticmethod
    def _payment_type(employee: Employee, value) -> EmployeePaymentType:
        try:
            payment_type = EmployeePaymentType(value)
        except ValueError as e:
            raise ValidationError("Invalid payment type. Expected Advance, Salary or Wage") from e
        if payment_type not in (EmployeePaymentType.ADVANCE, employee.settlement_type):
            raise ValidationError(
                f"{payment_type.value} payments are not valid for {employee.type.value} employees. "
                f"Use Advance or {employee.settlement_type.value}."
            )
        return payment_type

    # Attendance
    def get_attendance(self, employee_id: int, month: str) -> Attendance:
        """Stored attendance for a month, empty when nothing is marked."""
        month = parse_month(month)
        self._require_employee(employee_id)
        attendance = self.db.get_attendance(employee_id, month)
        if attendance is None:
            return Attendance(employee_id=employee_id, month=month)
        return attendance

    def put_attendance(
        self,
        employee_id: int,
        month: str,
        fixed_days: Optional[Sequence[FixedDay]] = None,
        daily_days: Optional[Sequence[DailyDay]] = None,
    ) -> Attendance:
        """Replace an employee month's marked days.

        The payable under the proposed attendance is computed first; if the
        month has already been paid more than that, the change is rejected.
        A None sequence keeps the stored days of that kind.

        Args:
            employee_id: Employee ID
            month: Month (YYYY-MM)
            fixed_days: Marked days for a Fixed employee
            daily_days: Marked days for a Daily employee

        Returns:
            The stored attendance

        Raises:
            ValidationError: If a day is out of range, duplicated or of the
                wrong kind for the employee, or the month is before the
                employee's first month
            InvariantViolationError: If the new payable would fall below what
                has already been paid
        """
        month = parse_month(month)
        fixed_days = self._check_fixed_days(month, fixed_days)
        daily_days = self._check_daily_days(month, daily_days)

        with self.db.unit_of_work():
            employee = self._require_employee(employee_id)
            if not is_eligible_month(employee, month):
                raise ValidationError(
                    f"No payroll data before {employee.first_month}; attendance for {month} cannot be recorded."
                )
            if employee.type == EmployeeType.FIXED and daily_days:
                raise ValidationError("Fixed employees take present/absent/leave days, not hours")
            if employee.type == EmployeeType.DAILY and fixed_days:
                raise ValidationError("Daily employees need hours worked per day")

            existing = self.db.get_attendance(employee_id, month)
            stored_fixed = existing.fixed_days if existing else ()
            stored_daily = existing.daily_days if existing else ()
            proposed = Attendance(
                employee_id=employee_id,
                month=month,
                fixed_days=tuple(fixed_days) if fixed_days is not None else stored_fixed,
                daily_days=tuple(daily_days) if daily_days is not None else stored_daily,
            )
            new_payable = payable_for_attendance(employee, month, proposed)
            paid = self._month_paid(employee, month)
            if paid > new_payable:
                logger.debug(
                    "attendance rejected employee_id=%s month=%s paid=%s new_payable=%s",
                    employee_id,
                    month,
                    paid,
                    new_payable,
                )
                raise InvariantViolationError(
                    f"Cannot save attendance: salary for {month} has already been paid "
                    f"({format_amount(paid)}). This change would reduce Total Payable to "
                    f"{format_amount(new_payable)}, which would be less than Paid. Please record "
                    "an adjustment (e.g. refund or correction) before changing attendance.",
                    max_allowed=new_payable,
                )
            self.db.save_attendance(employee_id, month, fixed_days=fixed_days, daily_days=daily_days)

        logger.info("attendance saved employee_id=%s month=%s payable=%s", employee_id, month, new_payable)
        self.audit.record(
            AuditAction.UPDATE if existing else AuditAction.CREATE,
            ATTENDANCE_MODULE,
            employee_id,
            f"Saved attendance for {employee.name} ({month})",
            old_value=existing,
            new_value=proposed,
        )
        return self.db.get_attendance(employee_id, month)

    @staticmethod
    def _check_days(month: str, days: Sequence) -> None:
        last_day = days_in_month(month)
        seen = set()
        for record in days:
            if not 1 <= record.day <= last_day:
                raise ValidationError(f"Day {record.day} is outside {month}")
            if record.day in seen:
                raise ValidationError(f"Day {record.day} is marked more than once")
            seen.add(record.day)

    def _check_fixed_days(self, month: str, days: Optional[Sequence[FixedDay]]) -> Optional[list[FixedDay]]:
        if days is None:
            return None
        try:
            checked = [FixedDay(day=d.day, status=FixedStatus(d.status)) for d in days]
        except ValueError as e:
            raise ValidationError(f"Invalid attendance status: {e}") from e
        self._check_days(month, checked)
        return checked

    def _check_daily_days(self, month: str, days: Optional[Sequence[DailyDay]]) -> Optional[list[DailyDay]]:
        if days is None:
            return None
        checked = []
        for d in days:
            hours = to_amount(d.hours_worked)
            overtime = to_amount(d.overtime_hours)
            if not ZERO <= hours <= FULL_DAY_HOURS:
                raise ValidationError(f"Hours worked on day {d.day} must be between 0 and 8")
            if overtime < ZERO:
                raise ValidationError(f"Overtime hours on day {d.day} cannot be negative")
            try:
                status = DailyStatus(d.status)
            except ValueError as e:
                raise ValidationError(f"Invalid attendance status: {e}") from e
            checked.append(
                DailyDay(
                    day=d.day,
                    status=status,
                    hours_worked=hours,
                    overtime_hours=overtime,
                    notes=optional_text(d.notes),
                )
            )
        self._check_days(month, checked)
        return checked

    def attendance_summary(
        self, employee_id: int, month: str
    ) -> Optional[Union[FixedAttendanceSummary, DailyAttendanceSummary]]:
        """Day counts (Fixed) or worked days and overtime (Daily).

        Returns None for months before the employee's first month.
        """
        month = parse_month(month)
        employee = self._require_employee(employee_id)
        if not is_eligible_month(employee, month):
            return None
        return summarize_attendance(employee, month, self.db.get_attendance(employee_id, month))

    # Snapshots
    def get_snapshot(self, employee_id: int, month: str) -> Optional[PayrollSnapshot]:
        """Payable, paid, remaining and status for one month.

        Returns None (no data) for months before the employee's first month.
        """
        month = parse_month(month)
        employee = self._require_employee(employee_id)
        if not is_eligible_month(employee, month):
            return None
        return build_snapshot(
            employee,
            month,
            self.db.get_attendance(employee_id, month),
            self._month_payments(employee_id, month),
        )

    def get_employee_totals(self, employee_id: int, today: Optional[date] = None) -> EmployeeTotals:
        """Total paid across all payments and total still due.

        Due sums the remaining amount of every month from the employee's
        first month through the current month.

        Args:
            employee_id: Employee ID
            today: Reference date for the current month (defaults to today)
        """
        employee = self._require_employee(employee_id)
        current_month = month_of(today or date.today())
        payments, _ = self.db.list_employee_payments(employee_id)
        total_paid = sum((p.amount for p in payments), ZERO)

        months = set(months_between(employee.first_month, current_month))
        months.update(p.month for p in payments)
        months.update(self.db.list_attendance_months(employee_id))
        total_due = ZERO
        for month in sorted(months):
            if not employee.first_month <= month <= current_month:
                continue
            snapshot = build_snapshot(
                employee,
                month,
                self.db.get_attendance(employee_id, month),
                [p for p in payments if p.month == month],
            )
            total_due += snapshot.remaining
        return EmployeeTotals(total_paid=total_paid, total_due=total_due)

    # Payments
    def create_payment(
        self,
        employee_id: int,
        month: str,
        date: date,
        amount: Decimal,
        type: str,
        payment_method: str = PaymentMethod.CASH.value,
        remarks: Optional[str] = None,
    ) -> EmployeePayment:
        """Record a payment against an employee month.

        Args:
            employee_id: Employee ID
            month: Month (YYYY-MM) the payment settles
            date: Payment date
            amount: Amount, greater than zero
            type: Advance, or the employee's settlement type (Salary/Wage)
            payment_method: Cash, Bank or Online
            remarks: Optional remarks

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the employee does not exist
            InvariantViolationError: If the month has no dues or the payment
                would take paid above payable
        """
        month = parse_month(month)
        if date is None:
            raise ValidationError("Month and date are required")
        amount = require_positive(amount)
        method = parse_payment_method(payment_method)

        with self.db.unit_of_work():
            employee = self._require_employee(employee_id)
            payment_type = self._payment_type(employee, type)
            self._check_add(employee, month, amount)
            payment_id = self.db.create_employee_payment(
                employee_id=employee_id,
                month=month,
                date=date,
                amount=amount,
                type=payment_type.value,
                payment_method=method.value,
                remarks=optional_text(remarks),
            )

        logger.info(
            "employee payment created id=%s employee_id=%s month=%s amount=%s type=%s",
            payment_id,
            employee_id,
            month,
            amount,
            payment_type.value,
        )
        self.audit.record(
            AuditAction.CREATE,
            PAYMENT_MODULE,
            payment_id,
            f"Recorded {payment_type.value} payment: {employee.name} {format_amount(amount)} for {month}",
            new_value={"amount": amount, "month": month, "type": payment_type.value, "date": date},
        )
        return self.db.get_employee_payment(payment_id)

    def _check_add(self, employee: Employee, month: str, amount: Decimal) -> None:
        payable = self._month_payable(employee, month)
        if payable <= ZERO:
            raise InvariantViolationError(
                "No dues for this month. The employee did not exist or has no payable amount "
                "for the selected month.",
                max_allowed=ZERO,
            )
        current_paid = self._month_paid(employee, month)
        if current_paid + amount > payable:
            max_allowed = max(payable - current_paid, ZERO)
            logger.debug(
                "employee payment rejected employee_id=%s month=%s amount=%s max=%s",
                employee.id,
                month,
                amount,
                max_allowed,
            )
            raise InvariantViolationError(exceeds_payable(payable, max_allowed), max_allowed=max_allowed)

    def _check_edit(self, employee: Employee, payment: EmployeePayment, new_month: str, new_amount: Decimal) -> None:
        if new_month == payment.month:
            payable = self._month_payable(employee, new_month)
            paid_without = self._month_paid(employee, new_month) - payment.amount
            if paid_without + new_amount > payable:
                max_allowed = max(payable - paid_without, ZERO)
                raise InvariantViolationError(exceeds_payable(payable, max_allowed), max_allowed=max_allowed)
            return

        payable_old = self._month_payable(employee, payment.month)
        paid_old_after = self._month_paid(employee, payment.month) - payment.amount
        if paid_old_after > payable_old:
            raise InvariantViolationError(
                "After moving this payment, total paid for the original month would exceed payable."
            )
        payable_new = self._month_payable(employee, new_month)
        paid_new = self._month_paid(employee, new_month)
        if paid_new + new_amount > payable_new:
            max_allowed = max(payable_new - paid_new, ZERO)
            raise InvariantViolationError(
                exceeds_payable(payable_new, max_allowed, scope="the new month"), max_allowed=max_allowed
            )

    def update_payment(
        self,
        payment_id: int,
        month: Optional[str] = None,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        type: Optional[str] = None,
        payment_method: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> EmployeePayment:
        """Edit an employee payment, possibly moving it to another month.

        Same month: re-validated without the payment's own prior amount.
        Moved: the origin and destination months are each validated.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the payment does not exist
            InvariantViolationError: If either month would be overpaid
        """
        new_month = parse_month(month) if month is not None else None
        new_amount = require_positive(amount) if amount is not None else None
        method = parse_payment_method(payment_method) if payment_method is not None else None

        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            employee = self._require_employee(existing.employee_id)
            new_month = new_month or existing.month
            if new_amount is None:
                new_amount = existing.amount
            payment_type = self._payment_type(employee, type) if type is not None else existing.type
            self._check_edit(employee, existing, new_month, new_amount)

            fields = {"month": new_month, "amount": new_amount, "type": payment_type.value}
            if date is not None:
                fields["date"] = date
            if method is not None:
                fields["payment_method"] = method.value
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_employee_payment(payment_id, **fields)

        logger.info(
            "employee payment updated id=%s month=%s->%s amount=%s->%s",
            payment_id,
            existing.month,
            new_month,
            existing.amount,
            new_amount,
        )
        self.audit.record(
            AuditAction.UPDATE,
            PAYMENT_MODULE,
            payment_id,
            f"Updated payment: {employee.name} {format_amount(new_amount)} for {new_month}",
            old_value={"amount": existing.amount, "month": existing.month, "type": existing.type.value},
            new_value={"amount": new_amount, "month": new_month, "type": payment_type.value},
        )
        return self.db.get_employee_payment(payment_id)

    def delete_payment(self, payment_id: int) -> None:
        """Delete an employee payment. Always allowed."""
        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            employee = self._require_employee(existing.employee_id)
            self.db.delete_employee_payment(payment_id)

        logger.info("employee payment deleted id=%s employee_id=%s", payment_id, existing.employee_id)
        self.audit.record(
            AuditAction.DELETE,
            PAYMENT_MODULE,
            payment_id,
            f"Deleted payment: {employee.name} {format_amount(existing.amount)} for {existing.month}",
            old_value={"amount": existing.amount, "month": existing.month, "type": existing.type.value},
        )

    def list_payments(
        self,
        employee_id: int,
        month: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Page:
        """Payments of an employee, newest first, paginated."""
        self._require_employee(employee_id)
        month = parse_month(month) if month is not None else None
        offset, limit = page_bounds(page, page_size)
        rows, total = self.db.list_employee_payments(employee_id, month=month, offset=offset, limit=limit)
        return Page(rows=tuple(rows), total=total)
