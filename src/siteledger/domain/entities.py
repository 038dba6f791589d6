"""Domain model entities for siteledger.

These are pure data classes representing business concepts, independent of
database schema. Services and pure ledger functions only ever see these
types; the database layer maps its ORM rows onto them.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionType(str, Enum):
    """Direction of a bank transaction."""

    INFLOW = "inflow"
    OUTFLOW = "outflow"


class PaymentMethod(str, Enum):
    """How money changed hands."""

    CASH = "Cash"
    BANK = "Bank"
    ONLINE = "Online"


class EmployeeType(str, Enum):
    """Fixed salary or daily wage employee."""

    FIXED = "Fixed"
    DAILY = "Daily"


class EmployeePaymentType(str, Enum):
    """Employee payment type."""

    ADVANCE = "Advance"
    SALARY = "Salary"
    WAGE = "Wage"


class FixedStatus(str, Enum):
    """Attendance status for a fixed salary employee day."""

    PRESENT = "present"
    ABSENT = "absent"
    PAID_LEAVE = "paid_leave"
    UNPAID_LEAVE = "unpaid_leave"
    # Older records used a single "leave" status, which is paid.
    LEAVE = "leave"


class DailyStatus(str, Enum):
    """Attendance status for a daily wage employee day."""

    PRESENT = "present"
    ABSENT = "absent"
    LEAVE = "leave"


class PaymentStatus(str, Enum):
    """Derived settlement state of one employee month."""

    PAID = "Paid"
    LATE = "Late"
    PARTIAL = "Partial"
    DUE = "Due"


class MachineOwnership(str, Enum):
    """Whether a machine belongs to the company or is hired."""

    COMPANY_OWNED = "Company Owned"
    RENTED = "Rented"


class AuditAction(str, Enum):
    """Kind of audited mutation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of a ledger operation."""

    id: str
    email: str
    role: str
    assigned_project_id: Optional[int] = None


@dataclass(frozen=True)
class Project:
    """Construction project."""

    id: int
    name: str
    balance: Decimal
    created_at: datetime


@dataclass(frozen=True)
class ProjectAdjustment:
    """Manual change to a project's balance; positive adds, negative subtracts."""

    id: int
    project_id: int
    date: date
    amount: Decimal
    remarks: Optional[str] = None


@dataclass(frozen=True)
class BankAccount:
    """Bank account with running totals."""

    id: int
    name: str
    bank_name: str
    opening_balance: Decimal
    current_balance: Decimal
    total_inflow: Decimal
    total_outflow: Decimal
    created_at: datetime


@dataclass(frozen=True)
class BankTransaction:
    """Bank transaction with denormalized account/project names."""

    id: int
    account_id: int
    date: date
    type: TransactionType
    amount: Decimal
    source: str
    destination: str
    mode: PaymentMethod
    project_id: Optional[int] = None
    reference_id: Optional[str] = None
    remarks: Optional[str] = None
    account_name: Optional[str] = None
    project_name: Optional[str] = None


@dataclass(frozen=True)
class Vendor:
    """Vendor with denormalized billing totals."""

    id: int
    project_id: int
    name: str
    total_billed: Decimal
    total_paid: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class StockItem:
    """Consumable stock item."""

    id: int
    project_id: int
    name: str
    unit: str
    current_stock: Decimal
    total_purchased: Decimal


@dataclass(frozen=True)
class PurchaseEntry:
    """Vendor ledger line for one purchase of a stock item."""

    id: int
    project_id: int
    item_id: int
    vendor_id: int
    date: date
    quantity: Decimal
    unit_price: Decimal
    total_price: Decimal
    paid_amount: Decimal
    remaining: Decimal
    payment_method: PaymentMethod
    reference_id: Optional[str] = None
    remarks: Optional[str] = None
    vendor_name: Optional[str] = None
    item_name: Optional[str] = None


@dataclass(frozen=True)
class VendorPayment:
    """Standalone payment to a vendor."""

    id: int
    vendor_id: int
    date: date
    amount: Decimal
    payment_method: PaymentMethod
    reference_id: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class Contractor:
    """Contractor working on one project."""

    id: int
    project_id: int
    name: str


@dataclass(frozen=True)
class ContractorEntry:
    """Amount owed to a contractor for work done."""

    id: int
    contractor_id: int
    project_id: int
    date: date
    amount: Decimal
    remarks: Optional[str] = None


@dataclass(frozen=True)
class ContractorPayment:
    """Payment made to a contractor."""

    id: int
    contractor_id: int
    date: date
    amount: Decimal
    payment_method: PaymentMethod
    reference_id: Optional[str] = None


@dataclass(frozen=True)
class Allocation:
    """Portion of a contractor or machine entry settled by a payment."""

    entry_id: int
    payment_id: Optional[int]
    amount: Decimal


@dataclass(frozen=True)
class Machine:
    """Machine billed by the hour on one project."""

    id: int
    project_id: int
    name: str
    ownership: MachineOwnership
    hourly_rate: Decimal


@dataclass(frozen=True)
class MachineEntry:
    """Hours a machine worked and what they cost."""

    id: int
    machine_id: int
    project_id: int
    date: date
    hours_worked: Decimal
    total_cost: Decimal
    used_by: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class MachinePayment:
    """Payment made against a machine's hours."""

    id: int
    machine_id: int
    date: date
    amount: Decimal
    payment_method: PaymentMethod
    reference_id: Optional[str] = None


@dataclass(frozen=True)
class Employee:
    """Employee paid either a monthly salary or a daily rate."""

    id: int
    project_id: int
    name: str
    type: EmployeeType
    monthly_salary: Decimal
    daily_rate: Decimal
    created_at: datetime

    @property
    def first_month(self) -> str:
        """First month (YYYY-MM) with payroll data."""
        return self.created_at.strftime("%Y-%m")

    @property
    def settlement_type(self) -> EmployeePaymentType:
        """Payment type that settles a month for this employee."""
        if self.type == EmployeeType.FIXED:
            return EmployeePaymentType.SALARY
        return EmployeePaymentType.WAGE


@dataclass(frozen=True)
class FixedDay:
    """Marked day for a fixed salary employee."""

    day: int
    status: FixedStatus


@dataclass(frozen=True)
class DailyDay:
    """Marked day for a daily wage employee."""

    day: int
    status: DailyStatus
    hours_worked: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    notes: Optional[str] = None


@dataclass(frozen=True)
class Attendance:
    """Sparse attendance for one employee month."""

    employee_id: int
    month: str
    fixed_days: tuple[FixedDay, ...] = ()
    daily_days: tuple[DailyDay, ...] = ()


@dataclass(frozen=True)
class EmployeePayment:
    """Payment made to an employee for a month."""

    id: int
    employee_id: int
    month: str
    date: date
    amount: Decimal
    type: EmployeePaymentType
    payment_method: PaymentMethod
    remarks: Optional[str] = None


@dataclass(frozen=True)
class PayrollSnapshot:
    """Derived payable/paid/remaining/status for one employee month."""

    month: str
    payable: Decimal
    paid: Decimal
    remaining: Decimal
    status: PaymentStatus


@dataclass(frozen=True)
class FixedAttendanceSummary:
    """Day counts for a fixed salary employee month."""

    present: int
    absent: int
    paid_leave: int
    unpaid_leave: int


@dataclass(frozen=True)
class DailyAttendanceSummary:
    """Worked days and overtime for a daily wage employee month."""

    worked_days: Decimal
    overtime_hours: Decimal


@dataclass(frozen=True)
class AuditRecord:
    """One entry of the audit trail."""

    id: int
    actor_id: str
    actor_role: str
    action: AuditAction
    module: str
    entity_id: Optional[str]
    description: str
    old_value: Optional[str]
    new_value: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class Page:
    """A page of rows plus the unpaginated row count."""

    rows: tuple = field(default_factory=tuple)
    total: int = 0
