"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the ledger services never
touch ORM rows directly.
"""

from decimal import Decimal
from typing import Union

from siteledger.domain import entities as domain
from siteledger.database.models import (
    Project as ORMProject,
    BankAccount as ORMBankAccount,
    BankTransaction as ORMBankTransaction,
    Vendor as ORMVendor,
    StockItem as ORMStockItem,
    PurchaseEntry as ORMPurchaseEntry,
    VendorPayment as ORMVendorPayment,
    Contractor as ORMContractor,
    ContractorEntry as ORMContractorEntry,
    ContractorPayment as ORMContractorPayment,
    ContractorAllocation as ORMContractorAllocation,
    Machine as ORMMachine,
    MachineEntry as ORMMachineEntry,
    MachinePayment as ORMMachinePayment,
    MachineAllocation as ORMMachineAllocation,
    ProjectAdjustment as ORMProjectAdjustment,
    Employee as ORMEmployee,
    AttendanceRecord as ORMAttendanceRecord,
    EmployeePayment as ORMEmployeePayment,
    AuditLog as ORMAuditLog,
)


def _decimal(value) -> Decimal:
    # SQLite hands back floats for unscaled numerics
    if value is None:
        return Decimal("0")
    return value if isinstance(value, Decimal) else Decimal(str(value))


def project_to_domain(orm_project: ORMProject) -> domain.Project:
    """Convert SQLAlchemy Project model to domain Project entity."""
    return domain.Project(
        id=orm_project.id,
        name=orm_project.name,
        balance=_decimal(orm_project.balance),
        created_at=orm_project.created_at,
    )


def project_adjustment_to_domain(orm_adjustment: ORMProjectAdjustment) -> domain.ProjectAdjustment:
    """Convert SQLAlchemy ProjectAdjustment model to domain ProjectAdjustment entity."""
    return domain.ProjectAdjustment(
        id=orm_adjustment.id,
        project_id=orm_adjustment.project_id,
        date=orm_adjustment.date,
        amount=_decimal(orm_adjustment.amount),
        remarks=orm_adjustment.remarks,
    )


def bank_account_to_domain(orm_account: ORMBankAccount) -> domain.BankAccount:
    """Convert SQLAlchemy BankAccount model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        opening_balance=_decimal(orm_account.opening_balance),
        current_balance=_decimal(orm_account.current_balance),
        total_inflow=_decimal(orm_account.total_inflow),
        total_outflow=_decimal(orm_account.total_outflow),
        created_at=orm_account.created_at,
    )


def bank_transaction_to_domain(orm_txn: ORMBankTransaction) -> domain.BankTransaction:
    """Convert SQLAlchemy BankTransaction model to domain BankTransaction entity.

    Account and project names are denormalized from the relationships.
    """
    return domain.BankTransaction(
        id=orm_txn.id,
        account_id=orm_txn.account_id,
        date=orm_txn.date,
        type=domain.TransactionType(orm_txn.type),
        amount=_decimal(orm_txn.amount),
        source=orm_txn.source,
        destination=orm_txn.destination,
        mode=domain.PaymentMethod(orm_txn.mode),
        project_id=orm_txn.project_id,
        reference_id=orm_txn.reference_id,
        remarks=orm_txn.remarks,
        account_name=orm_txn.account.name if orm_txn.account is not None else None,
        project_name=orm_txn.project.name if orm_txn.project is not None else None,
    )


def vendor_to_domain(orm_vendor: ORMVendor) -> domain.Vendor:
    """Convert SQLAlchemy Vendor model to domain Vendor entity."""
    return domain.Vendor(
        id=orm_vendor.id,
        project_id=orm_vendor.project_id,
        name=orm_vendor.name,
        total_billed=_decimal(orm_vendor.total_billed),
        total_paid=_decimal(orm_vendor.total_paid),
        remaining=_decimal(orm_vendor.remaining),
    )


def stock_item_to_domain(orm_item: ORMStockItem) -> domain.StockItem:
    """Convert SQLAlchemy StockItem model to domain StockItem entity."""
    return domain.StockItem(
        id=orm_item.id,
        project_id=orm_item.project_id,
        name=orm_item.name,
        unit=orm_item.unit,
        current_stock=_decimal(orm_item.current_stock),
        total_purchased=_decimal(orm_item.total_purchased),
    )


def purchase_entry_to_domain(orm_entry: ORMPurchaseEntry) -> domain.PurchaseEntry:
    """Convert SQLAlchemy PurchaseEntry model to domain PurchaseEntry entity."""
    return domain.PurchaseEntry(
        id=orm_entry.id,
        project_id=orm_entry.project_id,
        item_id=orm_entry.item_id,
        vendor_id=orm_entry.vendor_id,
        date=orm_entry.date,
        quantity=_decimal(orm_entry.quantity),
        unit_price=_decimal(orm_entry.unit_price),
        total_price=_decimal(orm_entry.total_price),
        paid_amount=_decimal(orm_entry.paid_amount),
        remaining=_decimal(orm_entry.remaining),
        payment_method=domain.PaymentMethod(orm_entry.payment_method),
        reference_id=orm_entry.reference_id,
        remarks=orm_entry.remarks,
        vendor_name=orm_entry.vendor.name if orm_entry.vendor is not None else None,
        item_name=orm_entry.item.name if orm_entry.item is not None else None,
    )


def vendor_payment_to_domain(orm_payment: ORMVendorPayment) -> domain.VendorPayment:
    """Convert SQLAlchemy VendorPayment model to domain VendorPayment entity."""
    return domain.VendorPayment(
        id=orm_payment.id,
        vendor_id=orm_payment.vendor_id,
        date=orm_payment.date,
        amount=_decimal(orm_payment.amount),
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        reference_id=orm_payment.reference_id,
        remarks=orm_payment.remarks,
    )


def contractor_to_domain(orm_contractor: ORMContractor) -> domain.Contractor:
    """Convert SQLAlchemy Contractor model to domain Contractor entity."""
    return domain.Contractor(
        id=orm_contractor.id,
        project_id=orm_contractor.project_id,
        name=orm_contractor.name,
    )


def contractor_entry_to_domain(orm_entry: ORMContractorEntry) -> domain.ContractorEntry:
    """Convert SQLAlchemy ContractorEntry model to domain ContractorEntry entity."""
    return domain.ContractorEntry(
        id=orm_entry.id,
        contractor_id=orm_entry.contractor_id,
        project_id=orm_entry.project_id,
        date=orm_entry.date,
        amount=_decimal(orm_entry.amount),
        remarks=orm_entry.remarks,
    )


def contractor_payment_to_domain(orm_payment: ORMContractorPayment) -> domain.ContractorPayment:
    """Convert SQLAlchemy ContractorPayment model to domain ContractorPayment entity."""
    return domain.ContractorPayment(
        id=orm_payment.id,
        contractor_id=orm_payment.contractor_id,
        date=orm_payment.date,
        amount=_decimal(orm_payment.amount),
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        reference_id=orm_payment.reference_id,
    )


def allocation_to_domain(
    orm_allocation: Union[ORMContractorAllocation, ORMMachineAllocation],
) -> domain.Allocation:
    """Convert a contractor or machine allocation row to a domain Allocation entity."""
    return domain.Allocation(
        entry_id=orm_allocation.entry_id,
        payment_id=orm_allocation.payment_id,
        amount=_decimal(orm_allocation.amount),
    )


def machine_to_domain(orm_machine: ORMMachine) -> domain.Machine:
    """Convert SQLAlchemy Machine model to domain Machine entity."""
    return domain.Machine(
        id=orm_machine.id,
        project_id=orm_machine.project_id,
        name=orm_machine.name,
        ownership=domain.MachineOwnership(orm_machine.ownership),
        hourly_rate=_decimal(orm_machine.hourly_rate),
    )


def machine_entry_to_domain(orm_entry: ORMMachineEntry) -> domain.MachineEntry:
    """Convert SQLAlchemy MachineEntry model to domain MachineEntry entity."""
    return domain.MachineEntry(
        id=orm_entry.id,
        machine_id=orm_entry.machine_id,
        project_id=orm_entry.project_id,
        date=orm_entry.date,
        hours_worked=_decimal(orm_entry.hours_worked),
        total_cost=_decimal(orm_entry.total_cost),
        used_by=orm_entry.used_by,
        remarks=orm_entry.remarks,
    )


def machine_payment_to_domain(orm_payment: ORMMachinePayment) -> domain.MachinePayment:
    """Convert SQLAlchemy MachinePayment model to domain MachinePayment entity."""
    return domain.MachinePayment(
        id=orm_payment.id,
        machine_id=orm_payment.machine_id,
        date=orm_payment.date,
        amount=_decimal(orm_payment.amount),
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        reference_id=orm_payment.reference_id,
    )


def employee_to_domain(orm_employee: ORMEmployee) -> domain.Employee:
    """Convert SQLAlchemy Employee model to domain Employee entity."""
    return domain.Employee(
        id=orm_employee.id,
        project_id=orm_employee.project_id,
        name=orm_employee.name,
        type=domain.EmployeeType(orm_employee.type),
        monthly_salary=_decimal(orm_employee.monthly_salary),
        daily_rate=_decimal(orm_employee.daily_rate),
        created_at=orm_employee.created_at,
    )


def attendance_to_domain(orm_record: ORMAttendanceRecord) -> domain.Attendance:
    """Convert SQLAlchemy AttendanceRecord (with its days) to domain Attendance.

    Days with hour columns set are daily wage days; the rest are fixed
    salary days.
    """
    fixed_days = []
    daily_days = []
    for day in orm_record.days:
        if day.hours_worked is None:
            fixed_days.append(domain.FixedDay(day=day.day, status=domain.FixedStatus(day.status)))
        else:
            daily_days.append(
                domain.DailyDay(
                    day=day.day,
                    status=domain.DailyStatus(day.status),
                    hours_worked=_decimal(day.hours_worked),
                    overtime_hours=_decimal(day.overtime_hours),
                    notes=day.notes,
                )
            )
    return domain.Attendance(
        employee_id=orm_record.employee_id,
        month=orm_record.month,
        fixed_days=tuple(fixed_days),
        daily_days=tuple(daily_days),
    )


def employee_payment_to_domain(orm_payment: ORMEmployeePayment) -> domain.EmployeePayment:
    """Convert SQLAlchemy EmployeePayment model to domain EmployeePayment entity."""
    return domain.EmployeePayment(
        id=orm_payment.id,
        employee_id=orm_payment.employee_id,
        month=orm_payment.month,
        date=orm_payment.date,
        amount=_decimal(orm_payment.amount),
        type=domain.EmployeePaymentType(orm_payment.type),
        payment_method=domain.PaymentMethod(orm_payment.payment_method),
        remarks=orm_payment.remarks,
    )


def audit_record_to_domain(orm_log: ORMAuditLog) -> domain.AuditRecord:
    """Convert SQLAlchemy AuditLog model to domain AuditRecord entity."""
    return domain.AuditRecord(
        id=orm_log.id,
        actor_id=orm_log.actor_id,
        actor_role=orm_log.actor_role,
        action=domain.AuditAction(orm_log.action),
        module=orm_log.module,
        entity_id=orm_log.entity_id,
        description=orm_log.description,
        old_value=orm_log.old_value,
        new_value=orm_log.new_value,
        created_at=orm_log.created_at,
    )
