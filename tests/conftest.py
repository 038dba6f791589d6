"""Shared pytest fixtures for siteledger tests."""

import logging
import os
import tempfile
from datetime import datetime
from decimal import Decimal

import pytest

from siteledger.database.factories import create_sqlite_database
from siteledger.domain.account import BankAccountService
from siteledger.domain.audit import AuditService
from siteledger.domain.access import SYSTEM_ACTOR
from siteledger.domain.bank_transaction import BankTransactionService
from siteledger.domain.contractor_ledger import ContractorLedgerService
from siteledger.domain.directory import DirectoryService
from siteledger.domain.machine_ledger import MachineLedgerService
from siteledger.domain.payroll import PayrollService
from siteledger.domain.project_ledger import ProjectLedgerService
from siteledger.domain.stock import StockService
from siteledger.domain.vendor_ledger import VendorLedgerService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI installs so they never outlive a test."""
    yield
    logger = logging.getLogger("siteledger")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def directory_service(temp_db):
    """Create a DirectoryService with a temporary database."""
    return DirectoryService(temp_db)


@pytest.fixture
def account_service(temp_db):
    """Create a BankAccountService with a temporary database."""
    return BankAccountService(temp_db)


@pytest.fixture
def bank_service(temp_db):
    """Create a BankTransactionService with a temporary database."""
    return BankTransactionService(temp_db)


@pytest.fixture
def vendor_service(temp_db):
    """Create a VendorLedgerService with a temporary database."""
    return VendorLedgerService(temp_db)


@pytest.fixture
def stock_service(temp_db):
    """Create a StockService with a temporary database."""
    return StockService(temp_db)


@pytest.fixture
def contractor_service(temp_db):
    """Create a ContractorLedgerService with a temporary database."""
    return ContractorLedgerService(temp_db)


@pytest.fixture
def machine_service(temp_db):
    """Create a MachineLedgerService with a temporary database."""
    return MachineLedgerService(temp_db)


@pytest.fixture
def project_ledger_service(temp_db):
    """Create a ProjectLedgerService with a temporary database."""
    return ProjectLedgerService(temp_db)


@pytest.fixture
def payroll_service(temp_db):
    """Create a PayrollService with a temporary database."""
    return PayrollService(temp_db)


@pytest.fixture
def audit_service(temp_db):
    """Create an AuditService with a temporary database."""
    return AuditService(temp_db, SYSTEM_ACTOR)


@pytest.fixture
def sample_project(directory_service):
    """Create a sample project for testing."""
    return directory_service.create_project("Tower A")


@pytest.fixture
def other_project(directory_service):
    """Create a second project for scoping tests."""
    return directory_service.create_project("Tower B")


@pytest.fixture
def sample_account(account_service):
    """Create a bank account with an opening balance of 100,000."""
    return account_service.create_account(
        name="Operations", bank_name="HBL", opening_balance=Decimal("100000")
    )


@pytest.fixture
def sample_vendor(directory_service, sample_project):
    """Create a vendor in the sample project."""
    return directory_service.create_vendor(sample_project.id, "Cement Traders")


@pytest.fixture
def sample_item(directory_service, sample_project):
    """Create a stock item in the sample project."""
    return directory_service.create_stock_item(sample_project.id, "Cement", "bag")


@pytest.fixture
def sample_contractor(directory_service, sample_project):
    """Create a contractor in the sample project."""
    return directory_service.create_contractor(sample_project.id, "Steel Fixers")


@pytest.fixture
def sample_machine(directory_service, sample_project):
    """Company owned excavator at 1,500/hour in the sample project."""
    return directory_service.create_machine(sample_project.id, "Excavator", Decimal("1500"))


@pytest.fixture
def fixed_employee(directory_service, sample_project):
    """Fixed salary employee (30,000/month) whose first month is 2026-01."""
    return directory_service.create_employee(
        sample_project.id,
        "Aslam",
        "Fixed",
        monthly_salary=Decimal("30000"),
        created_at=datetime(2026, 1, 10, 9, 0),
    )


@pytest.fixture
def daily_employee(directory_service, sample_project):
    """Daily wage employee (1,000/day) whose first month is 2026-01."""
    return directory_service.create_employee(
        sample_project.id,
        "Bashir",
        "Daily",
        daily_rate=Decimal("1000"),
        created_at=datetime(2026, 1, 10, 9, 0),
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
