"""Machinery ledger: hours billed per machine and the payments against them.

Works like the contractor ledger. Every entry or payment mutation rebuilds
the machine's stored allocations inside the same unit of work, so the paid
amount of each hours entry is a stable, queryable fact.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from operator import attrgetter
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.allocation import build_allocations, paid_by_entry
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import (
    Actor,
    Allocation,
    AuditAction,
    Machine,
    MachineEntry,
    MachinePayment,
    PaymentMethod,
)
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    format_amount,
    not_found,
    overpay,
)
from siteledger.domain.money import ZERO, optional_text, require_positive, to_amount
from siteledger.domain.parsing import page_bounds, parse_payment_method

logger = logging.getLogger(__name__)

ENTRY_MODULE = "machinery_ledger"
PAYMENT_MODULE = "machinery_payments"

_entry_cost = attrgetter("total_cost")


@dataclass(frozen=True)
class MachineTotals:
    """Hours, cost, payments and remaining dues of one machine."""

    total_hours: Decimal
    total_cost: Decimal
    total_paid: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class MachineLedgerRow:
    """One hours entry or payment line of a machine ledger.

    ``amount`` is the entry's cost or the payment's amount. ``paid`` and
    ``remaining`` are only set on entry rows.
    """

    kind: str  # "entry" or "payment"
    id: int
    date: date
    amount: Decimal
    hours_worked: Optional[Decimal] = None
    used_by: Optional[str] = None
    paid: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    remarks: Optional[str] = None
    reference_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


@dataclass(frozen=True)
class MachineLedger:
    """A page of machine ledger rows plus the machine's totals."""

    rows: tuple[MachineLedgerRow, ...]
    total: int
    total_hours: Decimal
    total_cost: Decimal
    total_paid: Decimal
    remaining: Decimal


class MachineLedgerService:
    """Service for machine hours entries, payments and their allocations."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize machine ledger service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _require_machine(self, machine_id: int) -> Machine:
        machine = self.db.get_machine(machine_id)
        if machine is None:
            raise NotFoundError(not_found("Machine", machine_id))
        ensure_project_access(self.actor, machine.project_id)
        return machine

    def _require_entry(self, entry_id: int) -> MachineEntry:
        entry = self.db.get_machine_entry(entry_id)
        if entry is None:
            raise NotFoundError(not_found("Entry", entry_id))
        ensure_project_access(self.actor, entry.project_id)
        return entry

    def _require_payment(self, payment_id: int) -> MachinePayment:
        payment = self.db.get_machine_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Payment", payment_id))
        self._require_machine(payment.machine_id)
        return payment

    def rebuild_allocations(self, machine_id: int) -> list[Allocation]:
        """Replace every allocation row of a machine with a fresh oldest-first run.

        Returns:
            The allocation rows now stored
        """
        with self.db.unit_of_work():
            entries = self.db.list_machine_entries(machine_id)
            payments = self.db.list_machine_payments(machine_id)
            allocations = build_allocations(entries, payments, due=_entry_cost)
            self.db.replace_machine_allocations(machine_id, allocations)
        logger.debug(
            "allocations rebuilt machine_id=%s entries=%s payments=%s rows=%s",
            machine_id,
            len(entries),
            len(payments),
            len(allocations),
        )
        return allocations

    def get_machine_totals(self, machine_id: int) -> MachineTotals:
        """Total hours, cost, payments and remaining dues for a machine."""
        self._require_machine(machine_id)
        entries = self.db.list_machine_entries(machine_id)
        payments = self.db.list_machine_payments(machine_id)
        total_cost = sum((e.total_cost for e in entries), ZERO)
        total_paid = sum((p.amount for p in payments), ZERO)
        return MachineTotals(
            total_hours=sum((e.hours_worked for e in entries), ZERO),
            total_cost=total_cost,
            total_paid=total_paid,
            remaining=max(total_cost - total_paid, ZERO),
        )

    def get_entry_paid(self, entry_id: int) -> Decimal:
        """Amount of one hours entry settled by payments, from the stored allocations."""
        self._require_entry(entry_id)
        return sum((a.amount for a in self.db.list_machine_allocations(entry_ids=[entry_id])), ZERO)

    # Entries
    def create_entry(
        self,
        machine_id: int,
        date: date,
        hours_worked: Decimal,
        used_by: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> MachineEntry:
        """Record hours a machine worked, costed at its current hourly rate.

        The cost is fixed when the entry is created; later rate changes do
        not reprice it.

        Raises:
            ValidationError: If the date is missing or the hours are not positive
            NotFoundError: If the machine does not exist
        """
        if date is None:
            raise ValidationError("Date is required")
        hours = require_positive(hours_worked, "Hours worked")

        with self.db.unit_of_work():
            machine = self._require_machine(machine_id)
            total_cost = to_amount(hours * machine.hourly_rate)
            entry_id = self.db.create_machine_entry(
                machine_id=machine_id,
                project_id=machine.project_id,
                date=date,
                hours_worked=hours,
                total_cost=total_cost,
                used_by=optional_text(used_by),
                remarks=optional_text(remarks),
            )
            self.rebuild_allocations(machine_id)

        logger.info("machine entry created id=%s machine_id=%s cost=%s", entry_id, machine_id, total_cost)
        self.audit.record(
            AuditAction.CREATE,
            ENTRY_MODULE,
            entry_id,
            f"Machine ledger entry: {machine.name} {hours} hrs",
            new_value={"hours_worked": hours, "total_cost": total_cost, "date": date},
        )
        return self.db.get_machine_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        """Delete an hours entry and rebuild allocations.

        Raises:
            InvariantViolationError: If the machine's payments would exceed
                its remaining cost without this entry
        """
        with self.db.unit_of_work():
            existing = self._require_entry(entry_id)
            machine = self._require_machine(existing.machine_id)
            totals = self.get_machine_totals(existing.machine_id)
            cost_after_delete = totals.total_cost - existing.total_cost
            if totals.total_paid > cost_after_delete:
                logger.debug(
                    "machine entry delete rejected id=%s paid=%s cost_after=%s",
                    entry_id,
                    totals.total_paid,
                    cost_after_delete,
                )
                raise InvariantViolationError(
                    "Cannot delete this entry: it would result in overpayment (total paid "
                    f"{format_amount(totals.total_paid)} would exceed remaining cost "
                    f"{format_amount(cost_after_delete)}). Remove or reduce payments first."
                )
            self.db.delete_machine_entry(entry_id)
            self.rebuild_allocations(existing.machine_id)

        logger.info("machine entry deleted id=%s machine_id=%s", entry_id, existing.machine_id)
        self.audit.record(
            AuditAction.DELETE,
            ENTRY_MODULE,
            entry_id,
            f"Deleted machine ledger entry: {machine.name} {existing.hours_worked} hrs, "
            f"{format_amount(existing.total_cost)}",
            old_value={"total_cost": existing.total_cost, "date": existing.date},
        )

    # Payments
    def create_payment(
        self,
        machine_id: int,
        date: date,
        amount: Decimal,
        payment_method: str = PaymentMethod.CASH.value,
        reference_id: Optional[str] = None,
    ) -> MachinePayment:
        """Record a payment against a machine and rebuild allocations.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the machine does not exist
            InvariantViolationError: If the amount exceeds the remaining dues
        """
        if date is None:
            raise ValidationError("Date is required")
        amount = require_positive(amount)
        method = parse_payment_method(payment_method)

        with self.db.unit_of_work():
            machine = self._require_machine(machine_id)
            totals = self.get_machine_totals(machine_id)
            if amount > totals.remaining:
                logger.debug(
                    "machine payment rejected machine_id=%s amount=%s remaining=%s",
                    machine_id,
                    amount,
                    totals.remaining,
                )
                raise InvariantViolationError(
                    overpay("machine", totals.remaining), max_allowed=totals.remaining
                )
            payment_id = self.db.create_machine_payment(
                machine_id=machine_id,
                date=date,
                amount=amount,
                payment_method=method.value,
                reference_id=optional_text(reference_id),
            )
            self.rebuild_allocations(machine_id)

        logger.info("machine payment created id=%s machine_id=%s amount=%s", payment_id, machine_id, amount)
        self.audit.record(
            AuditAction.CREATE,
            PAYMENT_MODULE,
            payment_id,
            f"Machine payment: {machine.name} {format_amount(amount)}",
            new_value={"amount": amount, "machine_id": machine_id, "date": date},
        )
        return self.db.get_machine_payment(payment_id)

    def delete_payment(self, payment_id: int) -> None:
        """Delete a machine payment and rebuild allocations. Always allowed."""
        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            machine = self._require_machine(existing.machine_id)
            self.db.delete_machine_payment(payment_id)
            self.rebuild_allocations(existing.machine_id)

        logger.info("machine payment deleted id=%s machine_id=%s", payment_id, existing.machine_id)
        self.audit.record(
            AuditAction.DELETE,
            PAYMENT_MODULE,
            payment_id,
            f"Deleted machine payment: {machine.name} {format_amount(existing.amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
        )

    def get_machine_ledger(
        self, machine_id: int, page: int = 1, page_size: Optional[int] = None
    ) -> MachineLedger:
        """Hours entries and payments of one machine as separate rows.

        Rows are newest first; on the same date entries come before
        payments. Each entry row carries its allocated paid amount.

        Args:
            machine_id: Machine ID
            page: 1-based page number
            page_size: Rows per page (default 12, at most 100)
        """
        totals = self.get_machine_totals(machine_id)
        entries = self.db.list_machine_entries(machine_id)
        payments = self.db.list_machine_payments(machine_id)
        paid = paid_by_entry(self.db.list_machine_allocations(machine_id=machine_id))

        rows = [
            MachineLedgerRow(
                kind="entry",
                id=e.id,
                date=e.date,
                amount=e.total_cost,
                hours_worked=e.hours_worked,
                used_by=e.used_by,
                paid=paid.get(e.id, ZERO),
                remaining=max(e.total_cost - paid.get(e.id, ZERO), ZERO),
                remarks=e.remarks,
            )
            for e in entries
        ]
        rows.extend(
            MachineLedgerRow(
                kind="payment",
                id=p.id,
                date=p.date,
                amount=p.amount,
                reference_id=p.reference_id,
                payment_method=p.payment_method,
            )
            for p in payments
        )
        rows.sort(key=lambda r: (r.date, r.kind == "entry", r.id), reverse=True)

        offset, limit = page_bounds(page, page_size)
        return MachineLedger(
            rows=tuple(rows[offset : offset + limit]),
            total=len(rows),
            total_hours=totals.total_hours,
            total_cost=totals.total_cost,
            total_paid=totals.total_paid,
            remaining=totals.remaining,
        )
