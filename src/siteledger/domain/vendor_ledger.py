"""Vendor purchase ledger.

Purchase entries and standalone vendor payments each move the vendor's
denormalized billing totals (and, for purchases, the item's stock) inside
one unit of work. Per-entry paid/remaining shown to callers comes from the
FIFO resolver, not from the stored ``paid_amount``.
"""

import dataclasses
import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import (
    Actor,
    AuditAction,
    PaymentMethod,
    PurchaseEntry,
    StockItem,
    Vendor,
    VendorPayment,
)
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    format_amount,
    not_found,
    overpay,
)
from siteledger.domain.fifo import allocate_fifo
from siteledger.domain.money import (
    ZERO,
    optional_text,
    require_non_negative,
    require_positive,
    to_amount,
)
from siteledger.domain.parsing import page_bounds, parse_payment_method

logger = logging.getLogger(__name__)

ENTRY_MODULE = "item_ledger"
PAYMENT_MODULE = "vendor_payments"


@dataclass(frozen=True)
class VendorLedgerRow:
    """One purchase or payment line of a vendor ledger."""

    kind: str  # "purchase" or "payment"
    id: int
    date: date
    payment_method: PaymentMethod
    item_name: Optional[str] = None
    quantity: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    paid_amount: Optional[Decimal] = None
    remaining: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    reference_id: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class VendorLedger:
    """A page of vendor ledger rows plus the vendor's totals."""

    rows: tuple[VendorLedgerRow, ...]
    total_billed: Decimal
    total_paid: Decimal
    remaining: Decimal
    total: int


class VendorLedgerService:
    """Service for vendor purchases and payments."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize vendor ledger service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _require_vendor(self, vendor_id: int) -> Vendor:
        vendor = self.db.get_vendor(vendor_id)
        if vendor is None:
            raise NotFoundError(not_found("Vendor", vendor_id))
        ensure_project_access(self.actor, vendor.project_id)
        return vendor

    def _require_item(self, item_id: int) -> StockItem:
        item = self.db.get_stock_item(item_id)
        if item is None:
            raise NotFoundError(not_found("Item", item_id))
        ensure_project_access(self.actor, item.project_id)
        return item

    def _require_entry(self, entry_id: int) -> PurchaseEntry:
        entry = self.db.get_purchase_entry(entry_id)
        if entry is None:
            raise NotFoundError(not_found("Ledger entry", entry_id))
        ensure_project_access(self.actor, entry.project_id)
        return entry

    def _require_payment(self, payment_id: int) -> VendorPayment:
        payment = self.db.get_vendor_payment(payment_id)
        if payment is None:
            raise NotFoundError(not_found("Payment", payment_id))
        self._require_vendor(payment.vendor_id)
        return payment

    def _vendor_in_project(self, vendor_id: int, project_id: int) -> Vendor:
        vendor = self._require_vendor(vendor_id)
        if vendor.project_id != project_id:
            raise ValidationError("Vendor not found or does not belong to this project")
        return vendor

    def _ensure_vendor_not_overpaid(self, vendor_id: int) -> None:
        vendor = self.db.get_vendor(vendor_id)
        if vendor.remaining < ZERO:
            logger.debug("vendor overpay rejected vendor_id=%s remaining=%s", vendor_id, vendor.remaining)
            raise InvariantViolationError(
                f"This change would overpay vendor {vendor.name}: recorded payments exceed the amount billed."
            )

    def _with_fifo(self, entry: PurchaseEntry) -> PurchaseEntry:
        """Entry with paid/remaining replaced by its FIFO allocation."""
        allocation = self.resolve_allocation(entry.vendor_id).get(entry.id)
        if allocation is None:
            return entry
        return dataclasses.replace(
            entry,
            paid_amount=allocation.allocated_paid,
            remaining=allocation.allocated_remaining,
        )

    def resolve_allocation(self, vendor_id: int):
        """FIFO allocation of a vendor's payments over its purchase entries."""
        return allocate_fifo(
            self.db.list_purchase_entries(vendor_id=vendor_id),
            self.db.list_vendor_payments(vendor_id),
        )

    # Purchase entries
    def create_entry(
        self,
        item_id: int,
        vendor_id: int,
        date: date,
        quantity: Decimal,
        unit_price: Decimal,
        paid_amount: Decimal = ZERO,
        payment_method: str = PaymentMethod.CASH.value,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> PurchaseEntry:
        """Record a purchase of a stock item from a vendor.

        Adds the quantity to the item's stock and the price to the vendor's
        billed, paid and remaining totals in one unit of work.

        Args:
            item_id: Stock item ID
            vendor_id: Vendor ID (must supply the item's project)
            date: Purchase date
            quantity: Quantity bought, at least 1
            unit_price: Price per unit, not negative
            paid_amount: Amount paid on the spot, at most the total price
            payment_method: Cash, Bank or Online
            reference_id: Optional external reference
            remarks: Optional remarks

        Returns:
            The entry with FIFO-consistent paid and remaining amounts

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the item or vendor does not exist
        """
        if date is None:
            raise ValidationError("Date is required")
        quantity, unit_price, total_price, paid_amount = self._price_fields(
            quantity, unit_price, paid_amount
        )
        method = parse_payment_method(payment_method)
        remaining = total_price - paid_amount

        with self.db.unit_of_work():
            item = self._require_item(item_id)
            self._vendor_in_project(vendor_id, item.project_id)
            entry_id = self.db.create_purchase_entry(
                project_id=item.project_id,
                item_id=item_id,
                vendor_id=vendor_id,
                date=date,
                quantity=quantity,
                unit_price=unit_price,
                total_price=total_price,
                paid_amount=paid_amount,
                remaining=remaining,
                payment_method=method.value,
                reference_id=optional_text(reference_id),
                remarks=optional_text(remarks),
            )
            self.db.adjust_stock(item_id, stock_delta=quantity, purchased_delta=quantity)
            self.db.adjust_vendor_totals(
                vendor_id, billed_delta=total_price, paid_delta=paid_amount, remaining_delta=remaining
            )

        logger.info(
            "purchase entry created id=%s vendor_id=%s item_id=%s total=%s paid=%s",
            entry_id,
            vendor_id,
            item_id,
            total_price,
            paid_amount,
        )
        self.audit.record(
            AuditAction.CREATE,
            ENTRY_MODULE,
            entry_id,
            f"Added ledger entry: {item.name} qty {quantity} @ {unit_price}",
            new_value={
                "quantity": quantity,
                "total_price": total_price,
                "paid_amount": paid_amount,
                "remaining": remaining,
            },
        )
        return self._with_fifo(self.db.get_purchase_entry(entry_id))

    @staticmethod
    def _price_fields(quantity, unit_price, paid_amount) -> tuple[Decimal, Decimal, Decimal, Decimal]:
        quantity = to_amount(quantity)
        if quantity < 1:
            raise ValidationError("Quantity must be at least 1")
        unit_price = require_non_negative(unit_price, "Unit price")
        paid_amount = require_non_negative(paid_amount, "Paid amount")
        total_price = to_amount(quantity * unit_price)
        if paid_amount > total_price:
            raise ValidationError("Paid amount cannot exceed total price")
        return quantity, unit_price, total_price, paid_amount

    def update_entry(
        self,
        entry_id: int,
        vendor_id: Optional[int] = None,
        date: Optional[date] = None,
        quantity: Optional[Decimal] = None,
        unit_price: Optional[Decimal] = None,
        paid_amount: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> PurchaseEntry:
        """Edit a purchase entry by reversing its old deltas and applying new ones.

        Raising the paid amount may not exceed the old paid amount plus the
        vendor's remaining balance. The item's stock and every affected
        vendor's remaining balance must stay non-negative.

        Returns:
            The entry with FIFO-consistent paid and remaining amounts

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the entry or new vendor does not exist
            InvariantViolationError: If the edit would overpay a vendor or make
                stock negative
        """
        method = parse_payment_method(payment_method) if payment_method is not None else None

        with self.db.unit_of_work():
            existing = self._require_entry(entry_id)
            new_quantity, new_unit_price, new_total, new_paid = self._price_fields(
                quantity if quantity is not None else existing.quantity,
                unit_price if unit_price is not None else existing.unit_price,
                paid_amount if paid_amount is not None else existing.paid_amount,
            )
            new_remaining = new_total - new_paid
            new_vendor_id = vendor_id if vendor_id is not None else existing.vendor_id
            old_vendor = self._require_vendor(existing.vendor_id)
            if new_vendor_id != existing.vendor_id:
                self._vendor_in_project(new_vendor_id, existing.project_id)

            # The cap follows the vendor the entry ends up with
            cap_vendor = old_vendor
            if new_vendor_id != existing.vendor_id:
                cap_vendor = self._require_vendor(new_vendor_id)
            if new_paid > existing.paid_amount:
                max_allowed = existing.paid_amount + cap_vendor.remaining
                if new_paid > max_allowed:
                    logger.debug(
                        "entry paid raise rejected id=%s paid=%s max=%s", entry_id, new_paid, max_allowed
                    )
                    raise InvariantViolationError(
                        "Paid amount cannot exceed total price and must not overpay the vendor. "
                        f"Maximum allowed for this entry is {format_amount(max_allowed)} "
                        f"(current paid {format_amount(existing.paid_amount)} + vendor remaining "
                        f"{format_amount(cap_vendor.remaining)})",
                        max_allowed=max_allowed,
                    )

            item = self._require_item(existing.item_id)
            if item.current_stock - existing.quantity + new_quantity < ZERO:
                raise InvariantViolationError(
                    "Cannot reduce quantity: stock already consumed would make current stock negative."
                )

            self.db.adjust_stock(
                existing.item_id,
                stock_delta=new_quantity - existing.quantity,
                purchased_delta=new_quantity - existing.quantity,
            )
            self.db.adjust_vendor_totals(
                existing.vendor_id,
                billed_delta=-existing.total_price,
                paid_delta=-existing.paid_amount,
                remaining_delta=-existing.remaining,
            )
            self.db.adjust_vendor_totals(
                new_vendor_id, billed_delta=new_total, paid_delta=new_paid, remaining_delta=new_remaining
            )
            self._ensure_vendor_not_overpaid(existing.vendor_id)
            self._ensure_vendor_not_overpaid(new_vendor_id)

            fields = {
                "vendor_id": new_vendor_id,
                "quantity": new_quantity,
                "unit_price": new_unit_price,
                "total_price": new_total,
                "paid_amount": new_paid,
                "remaining": new_remaining,
            }
            if date is not None:
                fields["date"] = date
            if method is not None:
                fields["payment_method"] = method.value
            if reference_id is not None:
                fields["reference_id"] = optional_text(reference_id)
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_purchase_entry(entry_id, **fields)

        logger.info(
            "purchase entry updated id=%s total=%s->%s paid=%s->%s vendor_id=%s->%s",
            entry_id,
            existing.total_price,
            new_total,
            existing.paid_amount,
            new_paid,
            existing.vendor_id,
            new_vendor_id,
        )
        self.audit.record(
            AuditAction.UPDATE,
            ENTRY_MODULE,
            entry_id,
            f"Updated ledger entry: {item.name}",
            old_value={
                "quantity": existing.quantity,
                "total_price": existing.total_price,
                "paid_amount": existing.paid_amount,
            },
            new_value={"quantity": new_quantity, "total_price": new_total, "paid_amount": new_paid},
        )
        return self._with_fifo(self.db.get_purchase_entry(entry_id))

    def delete_entry(self, entry_id: int) -> None:
        """Delete a purchase entry and reverse its stock and vendor deltas.

        Raises:
            NotFoundError: If the entry does not exist
            InvariantViolationError: If the purchased stock has already been
                consumed, or the vendor would be left overpaid
        """
        with self.db.unit_of_work():
            existing = self._require_entry(entry_id)
            item = self._require_item(existing.item_id)
            if item.current_stock - existing.quantity < ZERO:
                logger.debug(
                    "entry delete rejected id=%s stock=%s quantity=%s",
                    entry_id,
                    item.current_stock,
                    existing.quantity,
                )
                raise InvariantViolationError(
                    "Cannot delete: current stock would become negative (stock already consumed)."
                )
            self.db.adjust_stock(
                existing.item_id, stock_delta=-existing.quantity, purchased_delta=-existing.quantity
            )
            self.db.adjust_vendor_totals(
                existing.vendor_id,
                billed_delta=-existing.total_price,
                paid_delta=-existing.paid_amount,
                remaining_delta=-existing.remaining,
            )
            self._ensure_vendor_not_overpaid(existing.vendor_id)
            self.db.delete_purchase_entry(entry_id)

        logger.info("purchase entry deleted id=%s vendor_id=%s", entry_id, existing.vendor_id)
        self.audit.record(
            AuditAction.DELETE,
            ENTRY_MODULE,
            entry_id,
            f"Deleted ledger entry: {item.name} qty {existing.quantity}",
            old_value={
                "quantity": existing.quantity,
                "total_price": existing.total_price,
                "paid_amount": existing.paid_amount,
            },
        )

    def get_entry(self, entry_id: int) -> PurchaseEntry:
        """Get a purchase entry with FIFO-consistent paid and remaining amounts."""
        return self._with_fifo(self._require_entry(entry_id))

    # Standalone payments
    def create_payment(
        self,
        vendor_id: int,
        date: date,
        amount: Decimal,
        payment_method: str = PaymentMethod.CASH.value,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> VendorPayment:
        """Record a payment to a vendor not tied to a single purchase.

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the vendor does not exist
            InvariantViolationError: If the amount exceeds the vendor's remaining balance
        """
        if date is None:
            raise ValidationError("Date is required")
        amount = require_positive(amount)
        method = parse_payment_method(payment_method)

        with self.db.unit_of_work():
            vendor = self._require_vendor(vendor_id)
            if amount > vendor.remaining:
                logger.debug(
                    "vendor payment rejected vendor_id=%s amount=%s remaining=%s",
                    vendor_id,
                    amount,
                    vendor.remaining,
                )
                raise InvariantViolationError(
                    overpay("vendor", vendor.remaining), max_allowed=max(vendor.remaining, ZERO)
                )
            payment_id = self.db.create_vendor_payment(
                vendor_id=vendor_id,
                date=date,
                amount=amount,
                payment_method=method.value,
                reference_id=optional_text(reference_id),
                remarks=optional_text(remarks),
            )
            self.db.adjust_vendor_totals(
                vendor_id, billed_delta=ZERO, paid_delta=amount, remaining_delta=-amount
            )

        logger.info("vendor payment created id=%s vendor_id=%s amount=%s", payment_id, vendor_id, amount)
        self.audit.record(
            AuditAction.CREATE,
            PAYMENT_MODULE,
            payment_id,
            f"Recorded payment: {vendor.name} {format_amount(amount)}",
            new_value={"amount": amount, "vendor_id": vendor_id, "date": date},
        )
        return self.db.get_vendor_payment(payment_id)

    def update_payment(
        self,
        payment_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        payment_method: Optional[str] = None,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> VendorPayment:
        """Edit a vendor payment.

        The new amount may not exceed the vendor's remaining balance plus
        the payment's own prior amount.
        """
        new_amount = require_positive(amount) if amount is not None else None
        method = parse_payment_method(payment_method) if payment_method is not None else None

        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            vendor = self._require_vendor(existing.vendor_id)
            if new_amount is None:
                new_amount = existing.amount
            max_allowed = vendor.remaining + existing.amount
            if new_amount > max_allowed:
                raise InvariantViolationError(overpay("vendor", max_allowed), max_allowed=max_allowed)

            fields = {"amount": new_amount}
            if date is not None:
                fields["date"] = date
            if method is not None:
                fields["payment_method"] = method.value
            if reference_id is not None:
                fields["reference_id"] = optional_text(reference_id)
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_vendor_payment(payment_id, **fields)
            delta = new_amount - existing.amount
            self.db.adjust_vendor_totals(
                existing.vendor_id, billed_delta=ZERO, paid_delta=delta, remaining_delta=-delta
            )

        logger.info("vendor payment updated id=%s amount=%s->%s", payment_id, existing.amount, new_amount)
        self.audit.record(
            AuditAction.UPDATE,
            PAYMENT_MODULE,
            payment_id,
            f"Updated payment: {vendor.name} {format_amount(new_amount)}",
            old_value={"amount": existing.amount, "date": existing.date},
            new_value={"amount": new_amount, "date": date or existing.date},
        )
        return self.db.get_vendor_payment(payment_id)

    def delete_payment(self, payment_id: int) -> None:
        """Delete a vendor payment. Always allowed: it only raises what is owed."""
        with self.db.unit_of_work():
            existing = self._require_payment(payment_id)
            self.db.adjust_vendor_totals(
                existing.vendor_id,
                billed_delta=ZERO,
                paid_delta=-existing.amount,
                remaining_delta=existing.amount,
            )
            self.db.delete_vendor_payment(payment_id)

        logger.info("vendor payment deleted id=%s vendor_id=%s", payment_id, existing.vendor_id)
        self.audit.record(
            AuditAction.DELETE,
            PAYMENT_MODULE,
            payment_id,
            f"Deleted payment: {format_amount(existing.amount)}",
            old_value={"amount": existing.amount, "vendor_id": existing.vendor_id},
        )

    def get_vendor_ledger(self, vendor_id: int, page: int = 1, page_size: Optional[int] = None) -> VendorLedger:
        """Purchases and payments of a vendor, newest first, with totals.

        Purchase rows carry FIFO-allocated paid and remaining amounts.

        Args:
            vendor_id: Vendor ID
            page: 1-based page number
            page_size: Rows per page (default 12, at most 100)

        Returns:
            VendorLedger page
        """
        self._require_vendor(vendor_id)
        entries = self.db.list_purchase_entries(vendor_id=vendor_id)
        payments = self.db.list_vendor_payments(vendor_id)
        allocation = allocate_fifo(entries, payments)

        rows = [
            VendorLedgerRow(
                kind="purchase",
                id=e.id,
                date=e.date,
                payment_method=e.payment_method,
                item_name=e.item_name,
                quantity=e.quantity,
                total_price=e.total_price,
                paid_amount=allocation[e.id].allocated_paid,
                remaining=allocation[e.id].allocated_remaining,
                reference_id=e.reference_id,
                remarks=e.remarks,
            )
            for e in entries
        ]
        rows.extend(
            VendorLedgerRow(
                kind="payment",
                id=p.id,
                date=p.date,
                payment_method=p.payment_method,
                amount=p.amount,
                reference_id=p.reference_id,
                remarks=p.remarks,
            )
            for p in payments
        )
        rows.sort(key=lambda r: r.date, reverse=True)

        total_billed = sum((e.total_price for e in entries), ZERO)
        total_paid = sum((e.paid_amount for e in entries), ZERO) + sum((p.amount for p in payments), ZERO)
        offset, limit = page_bounds(page, page_size)
        return VendorLedger(
            rows=tuple(rows[offset : offset + limit]),
            total_billed=total_billed,
            total_paid=total_paid,
            remaining=max(total_billed - total_paid, ZERO),
            total=len(rows),
        )
