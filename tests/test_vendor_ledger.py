"""Tests for vendor purchases, payments and stock."""

from datetime import date
from decimal import Decimal

import pytest

from siteledger.domain.errors import InvariantViolationError, NotFoundError, ValidationError


def _purchase(service, item, vendor, quantity, unit_price, paid="0", day=date(2026, 4, 1)):
    return service.create_entry(
        item_id=item.id,
        vendor_id=vendor.id,
        date=day,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
        paid_amount=Decimal(paid),
    )


class TestPurchaseEntries:
    """Tests for purchase entries."""

    def test_create_updates_stock_and_vendor(
        self, vendor_service, directory_service, sample_item, sample_vendor
    ):
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100", paid="400")

        assert entry.total_price == Decimal("1000")
        assert entry.remaining == Decimal("600")
        assert entry.item_name == "Cement"
        item = directory_service.get_stock_item(sample_item.id)
        assert item.current_stock == Decimal("10")
        assert item.total_purchased == Decimal("10")
        vendor = directory_service.get_vendor(sample_vendor.id)
        assert vendor.total_billed == Decimal("1000")
        assert vendor.total_paid == Decimal("400")
        assert vendor.remaining == Decimal("600")

    def test_paid_cannot_exceed_total(self, vendor_service, sample_item, sample_vendor):
        with pytest.raises(ValidationError, match="cannot exceed total price"):
            _purchase(vendor_service, sample_item, sample_vendor, "2", "100", paid="201")

    def test_quantity_at_least_one(self, vendor_service, sample_item, sample_vendor):
        with pytest.raises(ValidationError, match="at least 1"):
            _purchase(vendor_service, sample_item, sample_vendor, "0.5", "100")

    def test_vendor_from_other_project(
        self, vendor_service, directory_service, sample_item, other_project
    ):
        outsider = directory_service.create_vendor(other_project.id, "Far Away Bricks")
        with pytest.raises(ValidationError, match="does not belong to this project"):
            _purchase(vendor_service, sample_item, outsider, "1", "100")

    def test_update_reverses_and_reapplies(
        self, vendor_service, directory_service, sample_item, sample_vendor
    ):
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100", paid="400")

        updated = vendor_service.update_entry(entry.id, quantity=Decimal("12"), paid_amount=Decimal("500"))

        assert updated.total_price == Decimal("1200")
        assert directory_service.get_stock_item(sample_item.id).current_stock == Decimal("12")
        vendor = directory_service.get_vendor(sample_vendor.id)
        assert vendor.total_billed == Decimal("1200")
        assert vendor.total_paid == Decimal("500")
        assert vendor.remaining == Decimal("700")

    def test_update_moves_entry_to_another_vendor(
        self, vendor_service, directory_service, sample_project, sample_item, sample_vendor
    ):
        other_vendor = directory_service.create_vendor(sample_project.id, "Second Supplier")
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100")

        vendor_service.update_entry(entry.id, vendor_id=other_vendor.id)

        assert directory_service.get_vendor(sample_vendor.id).total_billed == Decimal("0")
        assert directory_service.get_vendor(other_vendor.id).remaining == Decimal("1000")

    def test_paid_raise_limited_by_vendor_remaining(
        self, vendor_service, sample_item, sample_vendor
    ):
        first = _purchase(vendor_service, sample_item, sample_vendor, "1", "100", paid="50")
        _purchase(vendor_service, sample_item, sample_vendor, "1", "100", day=date(2026, 4, 2))
        vendor_service.create_payment(sample_vendor.id, date(2026, 4, 3), Decimal("120"))

        # vendor remaining is 30, so the first entry may go up to 50 + 30
        with pytest.raises(InvariantViolationError) as exc:
            vendor_service.update_entry(first.id, paid_amount=Decimal("90"))
        assert exc.value.max_allowed == Decimal("80")

        vendor_service.update_entry(first.id, paid_amount=Decimal("80"))

    def test_paid_raise_on_move_limited_by_target_vendor(
        self, vendor_service, directory_service, sample_project, sample_item, sample_vendor
    ):
        target = directory_service.create_vendor(sample_project.id, "Second Supplier")
        entry = _purchase(vendor_service, sample_item, sample_vendor, "1", "100")
        _purchase(vendor_service, sample_item, target, "1", "50", day=date(2026, 4, 2))

        # target remaining is 50, the current vendor's remaining (100) does not apply
        with pytest.raises(InvariantViolationError) as exc:
            vendor_service.update_entry(entry.id, vendor_id=target.id, paid_amount=Decimal("80"))
        assert exc.value.max_allowed == Decimal("50")

        vendor_service.update_entry(entry.id, vendor_id=target.id, paid_amount=Decimal("50"))
        assert directory_service.get_vendor(target.id).remaining == Decimal("100")

    def test_cannot_delete_consumed_stock(
        self, vendor_service, stock_service, directory_service, sample_item, sample_vendor
    ):
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100")
        stock_service.consume(sample_item.id, Decimal("8"))

        with pytest.raises(InvariantViolationError, match="stock already consumed"):
            vendor_service.delete_entry(entry.id)
        with pytest.raises(InvariantViolationError, match="stock negative"):
            vendor_service.update_entry(entry.id, quantity=Decimal("5"))

        assert directory_service.get_stock_item(sample_item.id).current_stock == Decimal("2")

    def test_delete_reverses_deltas(self, vendor_service, directory_service, sample_item, sample_vendor):
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100", paid="100")

        vendor_service.delete_entry(entry.id)

        assert directory_service.get_stock_item(sample_item.id).current_stock == Decimal("0")
        vendor = directory_service.get_vendor(sample_vendor.id)
        assert vendor.total_billed == Decimal("0")
        assert vendor.remaining == Decimal("0")
        with pytest.raises(NotFoundError):
            vendor_service.get_entry(entry.id)

    def test_delete_that_would_overpay_vendor(self, vendor_service, sample_item, sample_vendor):
        entry = _purchase(vendor_service, sample_item, sample_vendor, "10", "100")
        vendor_service.create_payment(sample_vendor.id, date(2026, 4, 5), Decimal("500"))

        with pytest.raises(InvariantViolationError, match="overpay"):
            vendor_service.delete_entry(entry.id)


class TestVendorPayments:
    """Tests for standalone vendor payments."""

    def test_overpay_rejected_with_max_allowed(self, vendor_service, sample_item, sample_vendor):
        _purchase(vendor_service, sample_item, sample_vendor, "10", "100", paid="400")

        with pytest.raises(InvariantViolationError, match="overpay the vendor") as exc:
            vendor_service.create_payment(sample_vendor.id, date(2026, 4, 5), Decimal("700"))

        assert exc.value.max_allowed == Decimal("600")

    def test_payment_settles_entries_fifo(self, vendor_service, sample_item, sample_vendor):
        first = _purchase(vendor_service, sample_item, sample_vendor, "10", "100", day=date(2026, 4, 1))
        second = _purchase(vendor_service, sample_item, sample_vendor, "5", "100", day=date(2026, 4, 2))

        vendor_service.create_payment(sample_vendor.id, date(2026, 4, 5), Decimal("1200"))

        first = vendor_service.get_entry(first.id)
        second = vendor_service.get_entry(second.id)
        assert (first.paid_amount, first.remaining) == (Decimal("1000"), Decimal("0"))
        assert (second.paid_amount, second.remaining) == (Decimal("200"), Decimal("300"))

    def test_update_payment_limit(self, vendor_service, directory_service, sample_item, sample_vendor):
        _purchase(vendor_service, sample_item, sample_vendor, "10", "100")
        payment = vendor_service.create_payment(sample_vendor.id, date(2026, 4, 5), Decimal("300"))

        with pytest.raises(InvariantViolationError) as exc:
            vendor_service.update_payment(payment.id, amount=Decimal("1001"))
        assert exc.value.max_allowed == Decimal("1000")

        vendor_service.update_payment(payment.id, amount=Decimal("1000"))
        assert directory_service.get_vendor(sample_vendor.id).remaining == Decimal("0")

    def test_delete_payment_restores_remaining(
        self, vendor_service, directory_service, sample_item, sample_vendor
    ):
        _purchase(vendor_service, sample_item, sample_vendor, "10", "100")
        payment = vendor_service.create_payment(sample_vendor.id, date(2026, 4, 5), Decimal("300"))

        vendor_service.delete_payment(payment.id)

        vendor = directory_service.get_vendor(sample_vendor.id)
        assert vendor.total_paid == Decimal("0")
        assert vendor.remaining == Decimal("1000")


class TestVendorLedger:
    """Tests for get_vendor_ledger."""

    def test_rows_and_totals(self, vendor_service, sample_item, sample_vendor):
        _purchase(vendor_service, sample_item, sample_vendor, "10", "100", paid="100", day=date(2026, 4, 1))
        vendor_service.create_payment(sample_vendor.id, date(2026, 4, 3), Decimal("200"))

        ledger = vendor_service.get_vendor_ledger(sample_vendor.id)

        assert ledger.total == 2
        assert [row.kind for row in ledger.rows] == ["payment", "purchase"]
        purchase = ledger.rows[1]
        assert purchase.paid_amount == Decimal("300")
        assert purchase.remaining == Decimal("700")
        assert ledger.total_billed == Decimal("1000")
        assert ledger.total_paid == Decimal("300")
        assert ledger.remaining == Decimal("700")


class TestStock:
    """Tests for stock consumption."""

    def test_consume_more_than_available(self, vendor_service, stock_service, sample_item, sample_vendor):
        _purchase(vendor_service, sample_item, sample_vendor, "3", "100")

        with pytest.raises(InvariantViolationError, match="Insufficient stock") as exc:
            stock_service.consume(sample_item.id, Decimal("4"))

        assert exc.value.max_allowed == Decimal("3")
