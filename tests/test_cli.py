"""Tests for the command line interface."""

import re
from decimal import Decimal

import pytest

from siteledger.cli.commands.payroll import parse_day_mark
from siteledger.cli.main import cli
from siteledger.domain.entities import DailyDay, EmployeeType, FixedDay


@pytest.fixture
def invoke(cli_runner, temp_db):
    """Invoke the CLI against the temporary database."""

    def run(*args, role=None, project=None):
        options = ["--db-path", temp_db.database_path]
        if role is not None:
            options += ["--role", role]
        if project is not None:
            options += ["--project", str(project)]
        return cli_runner.invoke(cli, options + list(args))

    return run


def _created_id(output: str) -> str:
    match = re.search(r"ID: (\d+)\)", output)
    assert match, output
    return match.group(1)


def test_help_does_not_need_database(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "txn" in result.output
    assert "payroll" in result.output


def test_project_create_and_list(invoke):
    result = invoke("project", "create", "Tower A")
    assert result.exit_code == 0
    assert "Created project 'Tower A'" in result.output

    result = invoke("project", "list")
    assert result.exit_code == 0
    assert "Tower A" in result.output


def test_project_duplicate(invoke):
    invoke("project", "create", "Tower A")

    result = invoke("project", "create", "Tower A")

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_bank_flow(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)
    result = invoke("account", "create", "Operations", "--bank", "HBL", "--opening-balance", "100,000")
    assert result.exit_code == 0
    account_id = _created_id(result.output)

    result = invoke(
        "txn", "add", account_id, "--type", "outflow", "--amount", "30,000",
        "--source", "Operations", "--destination", "Tower A", "--project", project_id,
        "--date", "2026-04-10",
    )
    assert result.exit_code == 0, result.output

    result = invoke("account", "show", account_id)
    assert "Current balance: 70,000.00" in result.output

    result = invoke("project", "list")
    assert "Balance: 30,000.00" in result.output

    result = invoke("txn", "list")
    assert "1 of 1 transactions" in result.output


def test_overdraw_reports_maximum(invoke):
    account_id = _created_id(invoke("account", "create", "Operations", "--opening-balance", "500").output)

    result = invoke(
        "txn", "add", account_id, "--type", "outflow", "--amount", "600",
        "--source", "Operations", "--destination", "Supplier",
    )

    assert result.exit_code == 1
    assert "Insufficient bank balance" in result.output
    assert "Maximum allowed: 500" in result.output


def test_invalid_amount(invoke):
    account_id = _created_id(invoke("account", "create", "Operations").output)

    result = invoke(
        "txn", "add", account_id, "--type", "inflow", "--amount", "lots",
        "--source", "Owner", "--destination", "Operations",
    )

    assert result.exit_code == 1
    assert "Invalid amount" in result.output


def test_site_manager_cannot_create_accounts(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)

    result = invoke("account", "create", "Operations", role="site_manager", project=project_id)

    assert result.exit_code == 1
    assert "requires admin access" in result.output


def test_vendor_flow(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)
    vendor_id = _created_id(invoke("vendor", "create", project_id, "Cement Traders").output)
    item_id = _created_id(invoke("item", "create", project_id, "Cement", "--unit", "bag").output)

    result = invoke(
        "vendor", "purchase", item_id, vendor_id, "--quantity", "10", "--unit-price", "100",
        "--paid", "400", "--date", "2026-04-01",
    )
    assert result.exit_code == 0, result.output

    result = invoke("vendor", "pay", vendor_id, "700", "--date", "2026-04-02")
    assert result.exit_code == 1
    assert "overpay the vendor" in result.output
    assert "Maximum allowed: 600" in result.output

    result = invoke("vendor", "pay", vendor_id, "600", "--date", "2026-04-02")
    assert result.exit_code == 0

    result = invoke("vendor", "ledger", vendor_id)
    assert "Remaining:    0.00" in result.output

    result = invoke("item", "consume", item_id, "4")
    assert result.exit_code == 0
    assert "Consumed 4 bag of 'Cement'" in result.output


def test_contractor_flow(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)
    contractor_id = _created_id(invoke("contractor", "create", project_id, "Steel Fixers").output)

    assert invoke("contractor", "entry", contractor_id, "100", "--date", "2026-04-01").exit_code == 0
    assert invoke("contractor", "entry", contractor_id, "50", "--date", "2026-04-10").exit_code == 0
    assert invoke("contractor", "pay", contractor_id, "120", "--date", "2026-04-12").exit_code == 0

    result = invoke("contractor", "ledger", project_id, "--month", "2026-04")
    assert result.exit_code == 0
    assert "Total amount: 150.00" in result.output
    assert "Total paid:   120.00" in result.output

    result = invoke("contractor", "pay", contractor_id, "40")
    assert result.exit_code == 1
    assert "Maximum allowed: 30" in result.output



def test_machine_flow(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)
    result = invoke("machine", "create", project_id, "Excavator", "--rate", "1,500", "--ownership", "Rented")
    assert result.exit_code == 0, result.output
    machine_id = _created_id(result.output)

    result = invoke("machine", "entry", machine_id, "2.5", "--date", "2026-04-01", "--used-by", "Crew A")
    assert result.exit_code == 0, result.output
    assert "costing 3,750.00" in result.output
    assert invoke("machine", "pay", machine_id, "3,000", "--date", "2026-04-02").exit_code == 0

    result = invoke("machine", "totals", machine_id)
    assert "Total hours: 2.50" in result.output
    assert "Remaining:   750.00" in result.output

    result = invoke("machine", "pay", machine_id, "1,000")
    assert result.exit_code == 1
    assert "overpay the machine" in result.output
    assert "Maximum allowed: 750" in result.output

    result = invoke("machine", "ledger", machine_id)
    assert result.exit_code == 0
    assert "paid 3,000.00 | due 750.00" in result.output

    result = invoke("machine", "list", "--project", project_id)
    assert "Rented" in result.output


def test_project_adjustments(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)

    result = invoke("project", "adjust", project_id, "5,000", "--date", "2026-04-01", "--remarks", "Opening funds")
    assert result.exit_code == 0, result.output
    assert invoke("project", "adjust", project_id, "1,200", "--subtract", "--date", "2026-04-02").exit_code == 0

    result = invoke("project", "adjust", project_id, "4,000", "--subtract")
    assert result.exit_code == 1
    assert "would become negative" in result.output

    result = invoke("project", "ledger", project_id)
    assert result.exit_code == 0
    assert "Adjustment | Opening funds | 5,000.00" in result.output
    assert "-1,200.00" in result.output
    assert "Balance: 3,800.00" in result.output

    result = invoke("project", "adjust-delete", project_id, "1")
    assert result.exit_code == 1
    assert "Cannot delete" in result.output

    assert invoke("project", "adjust-delete", project_id, "2").exit_code == 0
    assert "Balance: 5,000.00" in invoke("project", "ledger", project_id).output

def test_payroll_flow(invoke):
    project_id = _created_id(invoke("project", "create", "Tower A").output)
    result = invoke("employee", "create", project_id, "Aslam", "--type", "Fixed", "--salary", "30,000")
    assert result.exit_code == 0, result.output
    employee_id = _created_id(result.output)

    result = invoke("payroll", "attendance", employee_id, "this month", "--day", "1=unpaid_leave")
    assert result.exit_code == 0, result.output

    result = invoke("payroll", "snapshot", employee_id)
    assert "Unpaid leave: 1" in result.output
    assert "Status:    Due" in result.output

    result = invoke("payroll", "pay", employee_id, "this month", "1,000", "--type", "Advance")
    assert result.exit_code == 0, result.output

    result = invoke("payroll", "payments", employee_id)
    assert "Advance" in result.output

    result = invoke("payroll", "pay", employee_id, "this month", "100", "--type", "Wage")
    assert result.exit_code == 1
    assert "not valid for Fixed employees" in result.output


def test_audit_list(invoke):
    invoke("account", "create", "Operations", "--opening-balance", "10")

    result = invoke("audit", "list", "--module", "bank_accounts")

    assert result.exit_code == 0
    assert "cli (admin)" in result.output
    assert "Created bank account Operations" in result.output


class TestParseDayMark:
    """Tests for parse_day_mark."""

    def test_fixed(self):
        assert parse_day_mark("5=Unpaid_Leave", EmployeeType.FIXED) == FixedDay(day=5, status="unpaid_leave")

    def test_daily_with_hours(self):
        mark = parse_day_mark("5=present:4:2", EmployeeType.DAILY)
        assert mark == DailyDay(
            day=5, status="present", hours_worked=Decimal("4"), overtime_hours=Decimal("2")
        )

    def test_daily_present_defaults_to_full_day(self):
        assert parse_day_mark("5=present", EmployeeType.DAILY).hours_worked == Decimal("8")

    @pytest.mark.parametrize("mark", ["5", "x=present", "5=present:a", "5=present:1:2:3"])
    def test_invalid(self, mark):
        with pytest.raises(ValueError):
            parse_day_mark(mark, EmployeeType.DAILY)
