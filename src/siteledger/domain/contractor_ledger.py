"""Contractor ledger with materialized payment allocations.

Allocation rows are rebuilt from scratch, inside the same unit of work as
the change, after every entry or payment mutation of a contractor.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.allocation import build_allocations
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import (
    Actor,
    Allocation,
    AuditAction,
    Contractor,
    ContractorEntry,
    ContractorPayment,
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
from siteledger.domain.money import (
    ZERO,
    month_end,
    month_start,
    optional_text,
    parse_month,
    require_positive,
)
from siteledger.domain.parsing import page_bounds, parse_payment_method

logger = logging.getLogger(__name__)

ENTRY_MODULE = "contractor_entries"
PAYMENT_MODULE = "contractor_payments"


@dataclass(frozen=True)
class ContractorTotals:
    """Amount owed, paid and still due to one contractor."""

    total_amount: Decimal
    total_paid: Decimal
    remaining: Decimal


@dataclass(frozen=True)
class ContractorLedgerRow:
    """One entry or payment line of a contractor ledger."""

    kind: str  # "entry" or "payment"
    id: int
    contractor_id: int
    contractor_name: Optional[str]
    date: date
    amount: Decimal
    remarks: Optional[str] = None
    reference_id: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None


@dataclass(frozen=True)
class ContractorLedger:
    """A page of contractor ledger rows for one month plus totals."""

    rows: tuple[ContractorLedgerRow, ...]
    total_amount: Decimal
    total_paid: Decimal
    remaining: Decimal
    total: int


class ContractorLedgerService:
    """Service for contractor entries, payments and their allocations."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize contractor ledger service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _require_contractor(self, contractor_id: int) -> Contractor:
        contractor = self.db.get_contractor(contractor_id)
        if contractor is None:
            raise NotFoundError(not_found("Contractor", contractor_id))
        ensure_project_access(self.actor, contractor.project_id)
        return contractor

    def _require_entry(self, entry_id: int) -> ContractorEntry:
        entry = self.db.get_contractor_entry(entry_id)
        if entry is None:
            raise NotFoundError(not_found("Entry", entry_id))
        ensure_project_access(self.actor, entry.project_id)
        return entry

    def _require_payment(self, payment_id: int) -> ContractorPayment:
        payment = self.db.get_contractor_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Payment", payment_id))
        self._require_contractor(payment.contractor_id)
        return payment

    def rebuild_allocations(self, contractor_id: int) -> list[Allocation]:
        """Replace every allocation row of a contractor with a fresh FIFO run.

        Joins the caller's unit of work when there is one, so the rows are
        rewritten from the same entries and payments the caller just wrote.

        Returns:
            The allocation rows now stored
        """
        with self.db.unit_of_work():
            entries = self.db.list_contractor_entries(contractor_ids=[contractor_id])
            payments = self.db.list_contractor_payments(contractor_ids=[contractor_id])
            allocations = build_allocations(entries, payments)
            self.db.replace_allocations(contractor_id, allocations)
        logger.debug(
            "allocations rebuilt contractor_id=%s entries=%s payments=%s rows=%s",
            contractor_id,
            len(entries),
            len(payments),
            len(allocations),
        )
        return allocations

    def get_contractor_totals(self, contractor_id: int) -> ContractorTotals:
        """Total entries, total payments and remaining due for a contractor."""
        self._require_contractor(contractor_id)
        entries = self.db.list_contractor_entries(contractor_ids=[contractor_id])
        payments = self.db.list_contractor_payments(contractor_ids=[contractor_id])
        total_amount = sum((e.amount for e in entries), ZERO)
        total_paid = sum((p.amount for p in payments), ZERO)
        return ContractorTotals(
            total_amount=total_amount,
            total_paid=total_paid,
            remaining=max(total_amount - total_paid, ZERO),
        )

    def get_entry_paid(self, entry_id: int) -> Decimal:
        """Amount of one entry settled by payments, from the stored allocations."""
        self._require_entry(entry_id)
        return sum((a.amount for a in self.db.list_allocations(entry_ids=[entry_id])), ZERO)

    def _allocated_total(self, contractor_id: int) -> Decimal:
        return sum((a.amount for a in self.db.list_allocations(contractor_id=contractor_id)), ZERO)

    # Entries
    def create_entry(
        self,
        contractor_id: int,
        date: date,
        amount: Decimal,
        remarks: Optional[str] = None,
        project_id: Optional[int] = None,
    ) -> ContractorEntry:
        """Record work owed to a contractor and rebuild its allocations.

        Args:
            contractor_id: Contractor ID
            date: Entry date
            amount: Amount owed, greater than zero
            remarks: Optional remarks
            project_id: If given, must be the contractor's project

        Raises:
            ValidationError: If a field is invalid or the project does not match
            NotFoundError: If the contractor does not exist
        """
        if date is None:
            raise ValidationError("Date is required")
        amount = require_positive(amount)

        with self.db.unit_of_work():
            contractor = self._require_contractor(contractor_id)
            if project_id is not None and project_id != contractor.project_id:
                raise ValidationError("Contractor does not belong to this project")
            entry_id = self.db.create_contractor_entry(
                contractor_id=contractor_id,
                project_id=contractor.project_id,
                date=date,
                amount=amount,
                remarks=optional_text(remarks),
            )
            self.rebuild_allocations(contractor_id)

        logger.info("contractor entry created id=%s contractor_id=%s amount=%s", entry_id, contractor_id, amount)
        self.audit.record(
            AuditAction.CREATE,
            ENTRY_MODULE,
            entry_id,
            f"Added contractor entry: {contractor.name} {format_amount(amount)}",
            new_value={"amount": amount, "contractor_id": contractor_id, "date": date},
        )
        return self.db.get_contractor_entry(entry_id)

    def update_entry(
        self,
        entry_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        remarks: Optional[str] = None,
    ) -> ContractorEntry:
        """Edit a contractor entry and rebuild allocations.

        Raises:
            InvariantViolationError: If the new amount would leave the
                contractor's payments exceeding its total entries
        """
        new_amount = require_positive(amount) if amount is not None else None

        with self.db.unit_of_work():
            existing = self._require_entry(entry_id)
            contractor = self._require_contractor(existing.contractor_id)
            if new_amount is None:
                new_amount = existing.amount
            totals = self.get_contractor_totals(existing.contractor_id)
            new_total = totals.total_amount - existing.amount + new_amount
            if new_total < totals.total_paid:
                min_allowed = totals.total_paid - (totals.total_amount - existing.amount)
                logger.debug(
                    "contractor entry update rejected id=%s amount=%s paid=%s",
                    entry_id,
                    new_amount,
                    totals.total_paid,
                )
                raise InvariantViolationError(
                    "This update would overpay the contractor. Entry amount must be at least "
                    f"{format_amount(min_allowed)}."
                )

            fields = {"amount": new_amount}
            if date is not None:
                fields["date"] = date
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_contractor_entry(entry_id, **fields)
            self.rebuild_allocations(existing.contractor_id)

        logger.info("contractor entry updated id=%s amount=%s->%s", entry_id, existing.amount, new_amount)
        self.audit.record(
            AuditAction.UPDATE,
            ENTRY_MODULE,
            entry_id,
            f"Updated contractor entry: {contractor.name} {format_amount(new_amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
            new_value={"amount": new_amount, "date": date or existing.date},
        )
        return self.db.get_contractor_entry(entry_id)

    def delete_entry(self, entry_id: int) -> None:
        """Delete a contractor entry and rebuild allocations.

        Raises:
            InvariantViolationError: If the contractor's allocated payments
                exceed what would still be owed without this entry
        """
        with self.db.unit_of_work():
            existing = self._require_entry(entry_id)
            contractor = self._require_contractor(existing.contractor_id)
            totals = self.get_contractor_totals(existing.contractor_id)
            allocated = self._allocated_total(existing.contractor_id)
            if allocated > totals.total_amount - existing.amount:
                logger.debug(
                    "contractor entry delete rejected id=%s allocated=%s total=%s amount=%s",
                    entry_id,
                    allocated,
                    totals.total_amount,
                    existing.amount,
                )
                raise InvariantViolationError(
                    "This update would overpay the contractor. Cannot delete this entry; remaining "
                    f"balance ({format_amount(totals.remaining)}) is less than entry amount "
                    f"({format_amount(existing.amount)})."
                )
            self.db.delete_contractor_entry(entry_id)
            self.rebuild_allocations(existing.contractor_id)

        logger.info("contractor entry deleted id=%s contractor_id=%s", entry_id, existing.contractor_id)
        self.audit.record(
            AuditAction.DELETE,
            ENTRY_MODULE,
            entry_id,
            f"Deleted contractor entry: {contractor.name} {format_amount(existing.amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
        )

    # Payments
    def create_payment(
        self,
        contractor_id: int,
        date: date,
        amount: Decimal,
        payment_method: str = PaymentMethod.CASH.value,
        reference_id: Optional[str] = None,
    ) -> ContractorPayment:
        """Record a payment to a contractor and rebuild allocations.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the contractor does not exist
            InvariantViolationError: If the amount exceeds what is still owed
        """
        if date is None:
            raise ValidationError("Date is required")
        amount = require_positive(amount)
        method = parse_payment_method(payment_method)

        with self.db.unit_of_work():
            contractor = self._require_contractor(contractor_id)
            totals = self.get_contractor_totals(contractor_id)
            if amount > totals.remaining:
                logger.debug(
                    "contractor payment rejected contractor_id=%s amount=%s remaining=%s",
                    contractor_id,
                    amount,
                    totals.remaining,
                )
                raise InvariantViolationError(
                    overpay("contractor", totals.remaining), max_allowed=totals.remaining
                )
            payment_id = self.db.create_contractor_payment(
                contractor_id=contractor_id,
                date=date,
                amount=amount,
                payment_method=method.value,
                reference_id=optional_text(reference_id),
            )
            self.rebuild_allocations(contractor_id)

        logger.info(
            "contractor payment created id=%s contractor_id=%s amount=%s", payment_id, contractor_id, amount
        )
        self.audit.record(
            AuditAction.CREATE,
            PAYMENT_MODULE,
            payment_id,
            f"Recorded payment: {contractor.name} {format_amount(amount)}",
            new_value={"amount": amount, "contractor_id": contractor_id, "date": date},
        )
        return self.db.get_contractor_payment(payment_id)

    def update_payment(
        self,
        payment_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
        reference_id: Optional[str] = None,
    ) -> ContractorPayment:
        """Edit a contractor payment and rebuild allocations.

        The new amount may not exceed what is owed plus the payment's own
        prior amount.
        """
        new_amount = require_positive(amount) if amount is not None else None
        method = parse_payment_method(payment_method) if payment_method is not None else None

        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            contractor = self._require_contractor(existing.contractor_id)
            if new_amount is None:
                new_amount = existing.amount
            totals = self.get_contractor_totals(existing.contractor_id)
            max_allowed = totals.total_amount - (totals.total_paid - existing.amount)
            if new_amount > max_allowed:
                raise InvariantViolationError(
                    overpay("contractor", max_allowed), max_allowed=max(max_allowed, ZERO)
                )

            fields = {"amount": new_amount}
            if date is not None:
                fields["date"] = date
            if method is not None:
                fields["payment_method"] = method.value
            if reference_id is not None:
                fields["reference_id"] = optional_text(reference_id)
            self.db.update_contractor_payment(payment_id, **fields)
            self.rebuild_allocations(existing.contractor_id)

        logger.info("contractor payment updated id=%s amount=%s->%s", payment_id, existing.amount, new_amount)
        self.audit.record(
            AuditAction.UPDATE,
            PAYMENT_MODULE,
            payment_id,
            f"Updated contractor payment: {contractor.name} {format_amount(new_amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
            new_value={"amount": new_amount, "date": date or existing.date},
        )
        return self.db.get_contractor_payment(payment_id)

    def delete_payment(self, payment_id: int) -> None:
        """Delete a contractor payment and rebuild allocations. Always allowed."""
        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            contractor = self._require_contractor(existing.contractor_id)
            self.db.delete_contractor_payment(payment_id)
            self.rebuild_allocations(existing.contractor_id)

        logger.info("contractor payment deleted id=%s contractor_id=%s", payment_id, existing.contractor_id)
        self.audit.record(
            AuditAction.DELETE,
            PAYMENT_MODULE,
            payment_id,
            f"Deleted contractor payment: {contractor.name} {format_amount(existing.amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
        )

    def get_contractor_ledger(
        self,
        project_id: int,
        month: str,
        contractor_id: Optional[int] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> ContractorLedger:
        """Entries and payments of a project's contractors for one month.

        Args:
            project_id: Project ID
            month: Month (YYYY-MM)
            contractor_id: Optional single contractor filter
            page: 1-based page number
            page_size: Rows per page (default 12, at most 100)

        Returns:
            ContractorLedger page, newest rows first. ``total_paid`` is the
            allocated amount of the month's entries.
        """
        month = parse_month(month)
        if self.db.get_project(project_id) is None:
            raise NotFoundError(not_found("Project", project_id))
        ensure_project_access(self.actor, project_id)

        contractors = {c.id: c for c in self.db.list_contractors(project_id)}
        if contractor_id is not None:
            if contractor_id not in contractors:
                raise NotFoundError(not_found("Contractor", contractor_id))
            contractor_ids = [contractor_id]
        else:
            contractor_ids = list(contractors)

        start, end = month_start(month), month_end(month)
        entries = self.db.list_contractor_entries(
            contractor_ids=contractor_ids, project_id=project_id, start_date=start, end_date=end
        )
        payments = self.db.list_contractor_payments(
            contractor_ids=contractor_ids, start_date=start, end_date=end
        )

        rows = [
            ContractorLedgerRow(
                kind="entry",
                id=e.id,
                contractor_id=e.contractor_id,
                contractor_name=contractors[e.contractor_id].name,
                date=e.date,
                amount=e.amount,
                remarks=e.remarks,
            )
            for e in entries
        ]
        rows.extend(
            ContractorLedgerRow(
                kind="payment",
                id=p.id,
                contractor_id=p.contractor_id,
                contractor_name=contractors[p.contractor_id].name,
                date=p.date,
                amount=p.amount,
                reference_id=p.reference_id,
                payment_method=p.payment_method,
            )
            for p in payments
        )
        rows.sort(key=lambda r: r.date, reverse=True)

        total_amount = sum((e.amount for e in entries), ZERO)
        total_paid = ZERO
        if entries:
            allocations = self.db.list_allocations(entry_ids=[e.id for e in entries])
            total_paid = sum((a.amount for a in allocations), ZERO)

        offset, limit = page_bounds(page, page_size)
        return ContractorLedger(
            rows=tuple(rows[offset : offset + limit]),
            total_amount=total_amount,
            total_paid=total_paid,
            remaining=max(total_amount - total_paid, ZERO),
            total=len(rows),
        )
