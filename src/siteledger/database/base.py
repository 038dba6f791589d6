"""Abstract database interface."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Optional, Any, Sequence
from datetime import date, datetime
from decimal import Decimal

# Entities only; the domain services import this module
from siteledger.domain.entities import (
    Allocation,
    Attendance,
    AuditRecord,
    BankAccount,
    BankTransaction,
    Contractor,
    ContractorEntry,
    ContractorPayment,
    DailyDay,
    Employee,
    EmployeePayment,
    FixedDay,
    Machine,
    MachineEntry,
    MachinePayment,
    Project,
    ProjectAdjustment,
    PurchaseEntry,
    StockItem,
    Vendor,
    VendorPayment,
)


class Database(ABC):
    """Abstract database interface for siteledger."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group writes into one atomic commit.

        Writes inside the block are visible to reads in the same block and
        are committed together when it exits normally. Any exception rolls
        every write back; store failures are re-raised as StoreError.
        Nested blocks join the outermost one.
        """
        pass

    # Project operations
    @abstractmethod
    def create_project(self, name: str) -> int:
        """Create a project. Returns project ID."""
        pass

    @abstractmethod
    def get_project(self, project_id: int) -> Optional[Project]:
        """Get project by ID."""
        pass

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """List all projects."""
        pass

    @abstractmethod
    def adjust_project_balance(self, project_id: int, delta: Decimal) -> None:
        """Add delta to a project's balance."""
        pass

    # Project adjustment operations
    @abstractmethod
    def create_project_adjustment(
        self, project_id: int, date: date, amount: Decimal, remarks: Optional[str] = None
    ) -> int:
        """Create a manual project balance adjustment. Returns adjustment ID."""
        pass

    @abstractmethod
    def get_project_adjustment(self, adjustment_id: int) -> Optional[ProjectAdjustment]:
        """Get project adjustment by ID."""
        pass

    @abstractmethod
    def update_project_adjustment(self, adjustment_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a project adjustment."""
        pass

    @abstractmethod
    def delete_project_adjustment(self, adjustment_id: int) -> None:
        """Delete a project adjustment."""
        pass

    @abstractmethod
    def list_project_adjustments(self, project_id: int) -> list[ProjectAdjustment]:
        """List a project's adjustments newest first."""
        pass

    # Bank account operations
    @abstractmethod
    def create_bank_account(self, name: str, bank_name: str, opening_balance: Decimal) -> int:
        """Create a bank account. Returns account ID."""
        pass

    @abstractmethod
    def get_bank_account(self, account_id: int) -> Optional[BankAccount]:
        """Get bank account by ID."""
        pass

    @abstractmethod
    def get_bank_account_by_name(self, name: str) -> Optional[BankAccount]:
        """Get bank account by name."""
        pass

    @abstractmethod
    def list_bank_accounts(self) -> list[BankAccount]:
        """List all bank accounts."""
        pass

    @abstractmethod
    def adjust_bank_account(
        self,
        account_id: int,
        balance_delta: Decimal,
        inflow_delta: Decimal = Decimal("0"),
        outflow_delta: Decimal = Decimal("0"),
    ) -> None:
        """Add deltas to an account's running totals."""
        pass

    # Bank transaction operations
    @abstractmethod
    def create_bank_transaction(
        self,
        account_id: int,
        date: date,
        type: str,
        amount: Decimal,
        source: str,
        destination: str,
        mode: str,
        project_id: Optional[int] = None,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> int:
        """Create a bank transaction. Returns transaction ID."""
        pass

    @abstractmethod
    def get_bank_transaction(self, transaction_id: int) -> Optional[BankTransaction]:
        """Get bank transaction by ID, with account and project names."""
        pass

    @abstractmethod
    def update_bank_transaction(self, transaction_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a bank transaction."""
        pass

    @abstractmethod
    def delete_bank_transaction(self, transaction_id: int) -> None:
        """Delete a bank transaction."""
        pass

    @abstractmethod
    def list_bank_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        project_id: Optional[int] = None,
        search: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[list[BankTransaction], int]:
        """List bank transactions newest first. Returns (rows, total count)."""
        pass

    # Vendor operations
    @abstractmethod
    def create_vendor(self, project_id: int, name: str) -> int:
        """Create a vendor. Returns vendor ID."""
        pass

    @abstractmethod
    def get_vendor(self, vendor_id: int) -> Optional[Vendor]:
        """Get vendor by ID."""
        pass

    @abstractmethod
    def adjust_vendor_totals(
        self, vendor_id: int, billed_delta: Decimal, paid_delta: Decimal, remaining_delta: Decimal
    ) -> None:
        """Add deltas to a vendor's billing totals."""
        pass

    # Stock item operations
    @abstractmethod
    def create_stock_item(self, project_id: int, name: str, unit: str) -> int:
        """Create a stock item. Returns item ID."""
        pass

    @abstractmethod
    def get_stock_item(self, item_id: int) -> Optional[StockItem]:
        """Get stock item by ID."""
        pass

    @abstractmethod
    def adjust_stock(self, item_id: int, stock_delta: Decimal, purchased_delta: Decimal = Decimal("0")) -> None:
        """Add deltas to an item's current stock and purchased total."""
        pass

    # Purchase entry operations
    @abstractmethod
    def create_purchase_entry(
        self,
        project_id: int,
        item_id: int,
        vendor_id: int,
        date: date,
        quantity: Decimal,
        unit_price: Decimal,
        total_price: Decimal,
        paid_amount: Decimal,
        remaining: Decimal,
        payment_method: str,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> int:
        """Create a purchase entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_purchase_entry(self, entry_id: int) -> Optional[PurchaseEntry]:
        """Get purchase entry by ID."""
        pass

    @abstractmethod
    def update_purchase_entry(self, entry_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a purchase entry."""
        pass

    @abstractmethod
    def delete_purchase_entry(self, entry_id: int) -> None:
        """Delete a purchase entry."""
        pass

    @abstractmethod
    def list_purchase_entries(
        self, vendor_id: Optional[int] = None, item_id: Optional[int] = None
    ) -> list[PurchaseEntry]:
        """List purchase entries in insertion order."""
        pass

    # Vendor payment operations
    @abstractmethod
    def create_vendor_payment(
        self,
        vendor_id: int,
        date: date,
        amount: Decimal,
        payment_method: str,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> int:
        """Create a vendor payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_vendor_payment(self, payment_id: int) -> Optional[VendorPayment]:
        """Get vendor payment by ID."""
        pass

    @abstractmethod
    def update_vendor_payment(self, payment_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a vendor payment."""
        pass

    @abstractmethod
    def delete_vendor_payment(self, payment_id: int) -> None:
        """Delete a vendor payment."""
        pass

    @abstractmethod
    def list_vendor_payments(self, vendor_id: int) -> list[VendorPayment]:
        """List a vendor's payments in insertion order."""
        pass

    # Contractor operations
    @abstractmethod
    def create_contractor(self, project_id: int, name: str) -> int:
        """Create a contractor. Returns contractor ID."""
        pass

    @abstractmethod
    def get_contractor(self, contractor_id: int) -> Optional[Contractor]:
        """Get contractor by ID."""
        pass

    @abstractmethod
    def list_contractors(self, project_id: Optional[int] = None) -> list[Contractor]:
        """List contractors, optionally filtered by project."""
        pass

    @abstractmethod
    def create_contractor_entry(
        self,
        contractor_id: int,
        project_id: int,
        date: date,
        amount: Decimal,
        remarks: Optional[str] = None,
    ) -> int:
        """Create a contractor entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_contractor_entry(self, entry_id: int) -> Optional[ContractorEntry]:
        """Get contractor entry by ID."""
        pass

    @abstractmethod
    def update_contractor_entry(self, entry_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a contractor entry."""
        pass

    @abstractmethod
    def delete_contractor_entry(self, entry_id: int) -> None:
        """Delete a contractor entry."""
        pass

    @abstractmethod
    def list_contractor_entries(
        self,
        contractor_ids: Optional[Sequence[int]] = None,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ContractorEntry]:
        """List contractor entries ordered by (date, id)."""
        pass

    @abstractmethod
    def create_contractor_payment(
        self,
        contractor_id: int,
        date: date,
        amount: Decimal,
        payment_method: str,
        reference_id: Optional[str] = None,
    ) -> int:
        """Create a contractor payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_contractor_payment(self, payment_id: int) -> Optional[ContractorPayment]:
        """Get contractor payment by ID."""
        pass

    @abstractmethod
    def update_contractor_payment(self, payment_id: int, **fields: Any) -> None:
        """Overwrite the given columns of a contractor payment."""
        pass

    @abstractmethod
    def delete_contractor_payment(self, payment_id: int) -> None:
        """Delete a contractor payment."""
        pass

    @abstractmethod
    def list_contractor_payments(
        self,
        contractor_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[ContractorPayment]:
        """List contractor payments ordered by (date, id)."""
        pass

    # Allocation operations
    @abstractmethod
    def replace_allocations(self, contractor_id: int, allocations: Sequence[Allocation]) -> None:
        """Delete every allocation row of a contractor and insert the given ones."""
        pass

    @abstractmethod
    def list_allocations(
        self, contractor_id: Optional[int] = None, entry_ids: Optional[Sequence[int]] = None
    ) -> list[Allocation]:
        """List allocation rows in insertion order."""
        pass

    # Machine operations
    @abstractmethod
    def create_machine(self, project_id: int, name: str, ownership: str, hourly_rate: Decimal) -> int:
        """Create a machine. Returns machine ID."""
        pass

    @abstractmethod
    def get_machine(self, machine_id: int) -> Optional[Machine]:
        """Get machine by ID."""
        pass

    @abstractmethod
    def list_machines(self, project_id: Optional[int] = None) -> list[Machine]:
        """List machines, optionally filtered by project."""
        pass

    @abstractmethod
    def create_machine_entry(
        self,
        machine_id: int,
        project_id: int,
        date: date,
        hours_worked: Decimal,
        total_cost: Decimal,
        used_by: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> int:
        """Create a machine hours entry. Returns entry ID."""
        pass

    @abstractmethod
    def get_machine_entry(self, entry_id: int) -> Optional[MachineEntry]:
        """Get machine entry by ID."""
        pass

    @abstractmethod
    def delete_machine_entry(self, entry_id: int) -> None:
        """Delete a machine entry."""
        pass

    @abstractmethod
    def list_machine_entries(self, machine_id: int) -> list[MachineEntry]:
        """List a machine's entries ordered by (date, id)."""
        pass

    @abstractmethod
    def create_machine_payment(
        self,
        machine_id: int,
        date: date,
        amount: Decimal,
        payment_method: str,
        reference_id: Optional[str] = None,
    ) -> int:
        """Create a machine payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_machine_payment(self, payment_id: int) -> Optional[MachinePayment]:
        """Get machine payment by ID."""
        pass

    @abstractmethod
    def delete_machine_payment(self, payment_id: int) -> None:
        """Delete a machine payment."""
        pass

    @abstractmethod
    def list_machine_payments(self, machine_id: int) -> list[MachinePayment]:
        """List a machine's payments ordered by (date, id)."""
        pass

    @abstractmethod
    def replace_machine_allocations(self, machine_id: int, allocations: Sequence[Allocation]) -> None:
        """Delete every allocation row of a machine and insert the given ones."""
        pass

    @abstractmethod
    def list_machine_allocations(
        self, machine_id: Optional[int] = None, entry_ids: Optional[Sequence[int]] = None
    ) -> list[Allocation]:
        """List machine allocation rows in insertion order."""
        pass

    # Employee operations
    @abstractmethod
    def create_employee(
        self,
        project_id: int,
        name: str,
        type: str,
        monthly_salary: Decimal,
        daily_rate: Decimal,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create an employee. Returns employee ID."""
        pass

    @abstractmethod
    def get_employee(self, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        pass

    @abstractmethod
    def get_attendance(self, employee_id: int, month: str) -> Optional[Attendance]:
        """Get attendance for an employee month."""
        pass

    @abstractmethod
    def save_attendance(
        self,
        employee_id: int,
        month: str,
        fixed_days: Optional[Sequence[FixedDay]] = None,
        daily_days: Optional[Sequence[DailyDay]] = None,
    ) -> None:
        """Create or replace an employee month's attendance.

        A None sequence leaves that kind of day untouched.
        """
        pass

    @abstractmethod
    def list_attendance_months(self, employee_id: int) -> list[str]:
        """Months that have an attendance record."""
        pass

    @abstractmethod
    def create_employee_payment(
        self,
        employee_id: int,
        month: str,
        date: date,
        amount: Decimal,
        type: str,
        payment_method: str,
        remarks: Optional[str] = None,
    ) -> int:
        """Create an employee payment. Returns payment ID."""
        pass

    @abstractmethod
    def get_employee_payment(self, payment_id: int) -> Optional[EmployeePayment]:
        """Get employee payment by ID."""
        pass

    @abstractmethod
    def update_employee_payment(self, payment_id: int, **fields: Any) -> None:
        """Overwrite the given columns of an employee payment."""
        pass

    @abstractmethod
    def delete_employee_payment(self, payment_id: int) -> None:
        """Delete an employee payment."""
        pass

    @abstractmethod
    def list_employee_payments(
        self,
        employee_id: int,
        month: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
    ) -> tuple[list[EmployeePayment], int]:
        """List payments newest first. Returns (rows, total count)."""
        pass

    # Audit operations
    @abstractmethod
    def create_audit_record(
        self,
        actor_id: str,
        actor_role: str,
        action: str,
        module: str,
        entity_id: Optional[str],
        description: str,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
    ) -> int:
        """Persist an audit record. Returns record ID."""
        pass

    @abstractmethod
    def list_audit_records(
        self, module: Optional[str] = None, entity_id: Optional[str] = None
    ) -> list[AuditRecord]:
        """List audit records oldest first."""
        pass
