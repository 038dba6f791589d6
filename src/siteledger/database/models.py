"""SQLAlchemy models for siteledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()

Money = Numeric(14, 2)


def _now() -> datetime:
    return datetime.now(UTC)


class Project(Base):
    """Construction project model."""

    __tablename__ = "projects"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    balance = Column(Money, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class ProjectAdjustment(Base):
    """Manual project balance adjustment model."""

    __tablename__ = "project_adjustments"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    remarks = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


class BankAccount(Base):
    """Bank account model with running totals."""

    __tablename__ = "bank_accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    opening_balance = Column(Money, default=0, nullable=False)
    current_balance = Column(Money, default=0, nullable=False)
    total_inflow = Column(Money, default=0, nullable=False)
    total_outflow = Column(Money, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    transactions = relationship("BankTransaction", back_populates="account")


class BankTransaction(Base):
    """Bank transaction model."""

    __tablename__ = "bank_transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("bank_accounts.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=True)
    date = Column(Date, nullable=False)
    type = Column(String, nullable=False)
    amount = Column(Money, nullable=False)
    source = Column(String, nullable=False)
    destination = Column(String, nullable=False)
    mode = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)
    remarks = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    account = relationship("BankAccount", back_populates="transactions")
    project = relationship("Project")


class Vendor(Base):
    """Vendor model with denormalized billing totals."""

    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    total_billed = Column(Money, default=0, nullable=False)
    total_paid = Column(Money, default=0, nullable=False)
    remaining = Column(Money, default=0, nullable=False)

    # Relationships
    entries = relationship("PurchaseEntry", back_populates="vendor")
    payments = relationship("VendorPayment", back_populates="vendor")


class StockItem(Base):
    """Consumable stock item model."""

    __tablename__ = "stock_items"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    unit = Column(String, nullable=False)
    current_stock = Column(Numeric(14, 3), default=0, nullable=False)
    total_purchased = Column(Numeric(14, 3), default=0, nullable=False)


class PurchaseEntry(Base):
    """Vendor ledger line model."""

    __tablename__ = "purchase_entries"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    item_id = Column(Integer, ForeignKey("stock_items.id"), nullable=False)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    date = Column(Date, nullable=False)
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_price = Column(Money, nullable=False)
    total_price = Column(Money, nullable=False)
    paid_amount = Column(Money, nullable=False)
    remaining = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)
    remarks = Column(String, nullable=True)

    # Relationships
    vendor = relationship("Vendor", back_populates="entries")
    item = relationship("StockItem")


class VendorPayment(Base):
    """Standalone vendor payment model."""

    __tablename__ = "vendor_payments"

    id = Column(Integer, primary_key=True)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)
    remarks = Column(String, nullable=True)

    # Relationships
    vendor = relationship("Vendor", back_populates="payments")


class Contractor(Base):
    """Contractor model."""

    __tablename__ = "contractors"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)


class ContractorEntry(Base):
    """Contractor work entry model."""

    __tablename__ = "contractor_entries"

    id = Column(Integer, primary_key=True)
    contractor_id = Column(Integer, ForeignKey("contractors.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    remarks = Column(String, nullable=True)


class ContractorPayment(Base):
    """Contractor payment model."""

    __tablename__ = "contractor_payments"

    id = Column(Integer, primary_key=True)
    contractor_id = Column(Integer, ForeignKey("contractors.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)


class ContractorAllocation(Base):
    """Materialized allocation of a contractor payment to an entry."""

    __tablename__ = "contractor_allocations"

    id = Column(Integer, primary_key=True)
    contractor_id = Column(Integer, ForeignKey("contractors.id"), nullable=False)
    entry_id = Column(Integer, ForeignKey("contractor_entries.id"), nullable=False)
    payment_id = Column(Integer, ForeignKey("contractor_payments.id"), nullable=True)
    amount = Column(Money, nullable=False)


class Machine(Base):
    """Machine model."""

    __tablename__ = "machines"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    ownership = Column(String, nullable=False)
    hourly_rate = Column(Money, nullable=False)


class MachineEntry(Base):
    """Machine hours entry model."""

    __tablename__ = "machine_entries"

    id = Column(Integer, primary_key=True)
    machine_id = Column(Integer, ForeignKey("machines.id"), nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    date = Column(Date, nullable=False)
    hours_worked = Column(Numeric(10, 2), nullable=False)
    total_cost = Column(Money, nullable=False)
    used_by = Column(String, nullable=True)
    remarks = Column(String, nullable=True)


class MachinePayment(Base):
    """Machine payment model."""

    __tablename__ = "machine_payments"

    id = Column(Integer, primary_key=True)
    machine_id = Column(Integer, ForeignKey("machines.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    payment_method = Column(String, nullable=False)
    reference_id = Column(String, nullable=True)


class MachineAllocation(Base):
    """Materialized allocation of a machine payment to an hours entry."""

    __tablename__ = "machine_allocations"

    id = Column(Integer, primary_key=True)
    machine_id = Column(Integer, ForeignKey("machines.id"), nullable=False)
    entry_id = Column(Integer, ForeignKey("machine_entries.id"), nullable=False)
    payment_id = Column(Integer, ForeignKey("machine_payments.id"), nullable=False)
    amount = Column(Money, nullable=False)


class Employee(Base):
    """Employee model."""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False)
    name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    monthly_salary = Column(Money, default=0, nullable=False)
    daily_rate = Column(Money, default=0, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)


class AttendanceRecord(Base):
    """Attendance for one employee month."""

    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    month = Column(String(7), nullable=False)

    __table_args__ = (UniqueConstraint("employee_id", "month", name="uq_employee_month"),)

    # Relationships
    days = relationship(
        "AttendanceDay",
        back_populates="record",
        cascade="all, delete-orphan",
        order_by="AttendanceDay.day",
    )


class AttendanceDay(Base):
    """One marked day of an attendance record."""

    __tablename__ = "attendance_days"

    id = Column(Integer, primary_key=True)
    record_id = Column(Integer, ForeignKey("attendance_records.id"), nullable=False)
    day = Column(Integer, nullable=False)
    status = Column(String, nullable=False)
    # Null for fixed salary days
    hours_worked = Column(Numeric(5, 2), nullable=True)
    overtime_hours = Column(Numeric(5, 2), nullable=True)
    notes = Column(String, nullable=True)

    __table_args__ = (UniqueConstraint("record_id", "day", name="uq_record_day"),)

    # Relationships
    record = relationship("AttendanceRecord", back_populates="days")


class EmployeePayment(Base):
    """Employee payment model."""

    __tablename__ = "employee_payments"

    id = Column(Integer, primary_key=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    month = Column(String(7), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(Money, nullable=False)
    type = Column(String, nullable=False)
    payment_method = Column(String, nullable=False)
    remarks = Column(String, nullable=True)


class AuditLog(Base):
    """Audit trail model."""

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    actor_id = Column(String, nullable=False)
    actor_role = Column(String, nullable=False)
    action = Column(String, nullable=False)
    module = Column(String, nullable=False)
    entity_id = Column(String, nullable=True)
    description = Column(String, nullable=False)
    old_value = Column(Text, nullable=True)
    new_value = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
