"""Employee, attendance and payroll commands."""

from decimal import Decimal, InvalidOperation

import click

from siteledger.cli.error_handling import handle_domain_error
from siteledger.cli.params import amount_option, date_option, get_actor, month_option
from siteledger.domain.directory import DirectoryService
from siteledger.domain.entities import DailyAttendanceSummary, DailyDay, EmployeeType, FixedDay
from siteledger.domain.errors import StoreError
from siteledger.domain.payroll import PayrollService


def parse_day_mark(value: str, employee_type: EmployeeType):
    """Parse one ``--day`` mark.

    Fixed employees use ``DAY=STATUS`` (``5=unpaid_leave``); daily employees
    use ``DAY=STATUS[:HOURS[:OVERTIME]]`` (``5=present:4:2``).

    Raises:
        ValueError: If the mark cannot be parsed
    """
    day_text, sep, rest = value.partition("=")
    if not sep or not rest:
        raise ValueError(f"Invalid day mark '{value}'. Expected DAY=STATUS")
    try:
        day = int(day_text)
    except ValueError as e:
        raise ValueError(f"Invalid day '{day_text}'") from e

    if employee_type == EmployeeType.FIXED:
        return FixedDay(day=day, status=rest.strip().lower())

    parts = rest.split(":")
    if len(parts) > 3:
        raise ValueError(f"Invalid day mark '{value}'. Expected DAY=STATUS:HOURS:OVERTIME")
    status = parts[0].strip().lower()
    try:
        hours = Decimal(parts[1]) if len(parts) > 1 else Decimal("8" if status == "present" else "0")
        overtime = Decimal(parts[2]) if len(parts) > 2 else Decimal("0")
    except InvalidOperation as e:
        raise ValueError(f"Invalid hours in '{value}'") from e
    return DailyDay(day=day, status=status, hours_worked=hours, overtime_hours=overtime)


@click.group()
def employee_group():
    """Manage employees."""
    pass


@employee_group.command("create")
@click.argument("project_id", type=int)
@click.argument("name")
@click.option(
    "--type",
    "employee_type",
    type=click.Choice(["Fixed", "Daily"]),
    required=True,
    help="Fixed monthly salary or daily wage",
)
@click.option("--salary", help="Monthly salary (Fixed)")
@click.option("--rate", help="Daily rate (Daily)")
@click.pass_context
def create_employee(
    ctx,
    project_id: int,
    name: str,
    employee_type: str,
    salary: str | None,
    rate: str | None,
):
    """Create an employee.

    Examples:
        siteledger employee create 1 "Aslam" --type Fixed --salary 30,000
        siteledger employee create 1 "Bashir" --type Daily --rate 1,000
    """
    monthly_salary = amount_option(ctx, salary, label="salary")
    daily_rate = amount_option(ctx, rate, label="daily rate")
    service = DirectoryService(ctx.obj["db"], get_actor(ctx))

    try:
        employee = service.create_employee(
            project_id,
            name,
            employee_type,
            monthly_salary=monthly_salary or Decimal("0"),
            daily_rate=daily_rate or Decimal("0"),
        )
        click.echo(f"Created employee '{employee.name}' (ID: {employee.id})")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@employee_group.command("totals")
@click.argument("employee_id", type=int)
@click.pass_context
def show_totals(ctx, employee_id: int):
    """Show total paid and total due for an employee."""
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        totals = service.get_employee_totals(employee_id)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Total paid: {totals.total_paid:,.2f}")
    click.echo(f"Total due:  {totals.total_due:,.2f}")


@click.group()
def payroll_group():
    """Attendance, payments and monthly payroll snapshots."""
    pass


@payroll_group.command("attendance")
@click.argument("employee_id", type=int)
@click.argument("month")
@click.option("--day", "marks", multiple=True, help="Day mark, e.g. 5=unpaid_leave or 5=present:4:2")
@click.pass_context
def set_attendance(ctx, employee_id: int, month: str, marks: tuple[str, ...]):
    """Replace the marked days of an employee month.

    Unmarked days of a Fixed employee count as present; unmarked days of a
    Daily employee count as not worked.

    Examples:
        siteledger payroll attendance 3 2026-05 --day 4=unpaid_leave --day 5=paid_leave
        siteledger payroll attendance 7 2026-05 --day 1=present:8:2 --day 2=present:4
    """
    parsed_month = month_option(ctx, month)
    directory = DirectoryService(ctx.obj["db"], get_actor(ctx))
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        employee = directory.get_employee(employee_id)
        days = [parse_day_mark(mark, employee.type) for mark in marks]
        if employee.type == EmployeeType.FIXED:
            service.put_attendance(employee_id, parsed_month, fixed_days=days)
        else:
            service.put_attendance(employee_id, parsed_month, daily_days=days)
        click.echo(f"Saved attendance for {employee.name} ({parsed_month}): {len(days)} marked days")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@payroll_group.command("snapshot")
@click.argument("employee_id", type=int)
@click.argument("month", default="this month")
@click.pass_context
def show_snapshot(ctx, employee_id: int, month: str):
    """Show payable, paid, remaining and status for a month."""
    parsed_month = month_option(ctx, month)
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        snapshot = service.get_snapshot(employee_id, parsed_month)
        summary = service.attendance_summary(employee_id, parsed_month)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if snapshot is None:
        click.echo(f"No payroll data for {parsed_month}.")
        return

    if isinstance(summary, DailyAttendanceSummary):
        click.echo(f"Worked days: {summary.worked_days} | Overtime hours: {summary.overtime_hours}")
    else:
        click.echo(
            f"Present: {summary.present} | Absent: {summary.absent} | "
            f"Paid leave: {summary.paid_leave} | Unpaid leave: {summary.unpaid_leave}"
        )
    click.echo(f"Payable:   {snapshot.payable:,.2f}")
    click.echo(f"Paid:      {snapshot.paid:,.2f}")
    click.echo(f"Remaining: {snapshot.remaining:,.2f}")
    click.echo(f"Status:    {snapshot.status.value}")


@payroll_group.command("pay")
@click.argument("employee_id", type=int)
@click.argument("month")
@click.argument("amount")
@click.option(
    "--type",
    "payment_type",
    type=click.Choice(["Advance", "Salary", "Wage"]),
    required=True,
    help="Advance, or Salary/Wage to settle the month",
)
@click.option("--date", "date_str", default="today", show_default=True, help="Payment date")
@click.option("--method", "payment_method", default="Cash", show_default=True, help="Cash, Bank or Online")
@click.option("--remarks", help="Remarks")
@click.pass_context
def pay_employee(
    ctx,
    employee_id: int,
    month: str,
    amount: str,
    payment_type: str,
    date_str: str,
    payment_method: str,
    remarks: str | None,
):
    """Record a payment against an employee month.

    Examples:
        siteledger payroll pay 3 2026-05 27,000 --type Salary
    """
    parsed_month = month_option(ctx, month)
    parsed_amount = amount_option(ctx, amount)
    paid_on = date_option(ctx, date_str)
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        payment = service.create_payment(
            employee_id,
            parsed_month,
            paid_on,
            parsed_amount,
            payment_type,
            payment_method=payment_method,
            remarks=remarks,
        )
        click.echo(f"Created employee payment {payment.id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@payroll_group.command("payment-update")
@click.argument("payment_id", type=int)
@click.option("--month", help="Move the payment to this month")
@click.option("--amount", help="New amount")
@click.option("--type", "payment_type", type=click.Choice(["Advance", "Salary", "Wage"]), help="New type")
@click.option("--date", "date_str", help="New date")
@click.option("--method", "payment_method", help="New payment method")
@click.option("--remarks", help="New remarks")
@click.pass_context
def update_payment(
    ctx,
    payment_id: int,
    month: str | None,
    amount: str | None,
    payment_type: str | None,
    date_str: str | None,
    payment_method: str | None,
    remarks: str | None,
):
    """Update an employee payment."""
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        service.update_payment(
            payment_id,
            month=month_option(ctx, month),
            date=date_option(ctx, date_str),
            amount=amount_option(ctx, amount),
            type=payment_type,
            payment_method=payment_method,
            remarks=remarks,
        )
        click.echo(f"Updated employee payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@payroll_group.command("payment-delete")
@click.argument("payment_id", type=int)
@click.pass_context
def delete_payment(ctx, payment_id: int):
    """Delete an employee payment."""
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        service.delete_payment(payment_id)
        click.echo(f"Deleted employee payment {payment_id}")
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)


@payroll_group.command("payments")
@click.argument("employee_id", type=int)
@click.option("--month", help="Only payments for this month")
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--page-size", type=int, help="Rows per page")
@click.pass_context
def list_payments(ctx, employee_id: int, month: str | None, page: int, page_size: int | None):
    """List an employee's payments, newest first."""
    parsed_month = month_option(ctx, month)
    service = PayrollService(ctx.obj["db"], get_actor(ctx))

    try:
        result = service.list_payments(employee_id, month=parsed_month, page=page, page_size=page_size)
    except (ValueError, StoreError) as e:
        handle_domain_error(ctx, e)
        return

    if not result.rows:
        click.echo("No payments found.")
        return

    for payment in result.rows:
        click.echo(
            f"ID: {payment.id:4d} | {payment.month} | {payment.date} | {payment.type.value:8s} | "
            f"{payment.amount:>12,.2f} | {payment.payment_method.value}"
        )
    click.echo(f"\n{len(result.rows)} of {result.total} payments")


def register_commands(cli):
    """Register employee and payroll commands with main CLI."""
    cli.add_command(employee_group, name="employee")
    cli.add_command(payroll_group, name="payroll")
