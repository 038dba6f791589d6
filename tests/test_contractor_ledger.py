"""Tests for contractor entries, payments and allocations."""

from datetime import date
from decimal import Decimal

import pytest

from siteledger.domain.contractor_ledger import ContractorLedgerService
from siteledger.domain.entities import Actor
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ScopeViolationError,
    ValidationError,
)


@pytest.fixture
def funded_contractor(contractor_service, sample_contractor):
    """Contractor with entries of 100 (Apr 1) and 50 (Apr 10) and a 120 payment."""
    first = contractor_service.create_entry(sample_contractor.id, date(2026, 4, 1), Decimal("100"))
    second = contractor_service.create_entry(sample_contractor.id, date(2026, 4, 10), Decimal("50"))
    payment = contractor_service.create_payment(sample_contractor.id, date(2026, 4, 12), Decimal("120"))
    return first, second, payment


class TestAllocations:
    """Tests for allocation maintenance."""

    def test_payment_allocated_oldest_first(self, contractor_service, funded_contractor):
        first, second, _ = funded_contractor

        assert contractor_service.get_entry_paid(first.id) == Decimal("100")
        assert contractor_service.get_entry_paid(second.id) == Decimal("20")

    def test_rebuild_is_idempotent(self, temp_db, contractor_service, sample_contractor, funded_contractor):
        before = temp_db.list_allocations(contractor_id=sample_contractor.id)

        contractor_service.rebuild_allocations(sample_contractor.id)
        contractor_service.rebuild_allocations(sample_contractor.id)

        after = temp_db.list_allocations(contractor_id=sample_contractor.id)
        key = [(a.entry_id, a.payment_id, a.amount) for a in before]
        assert [(a.entry_id, a.payment_id, a.amount) for a in after] == key

    def test_backdated_entry_takes_allocation_first(
        self, contractor_service, sample_contractor, funded_contractor
    ):
        first, second, _ = funded_contractor
        early = contractor_service.create_entry(sample_contractor.id, date(2026, 3, 20), Decimal("40"))

        assert contractor_service.get_entry_paid(early.id) == Decimal("40")
        assert contractor_service.get_entry_paid(first.id) == Decimal("80")
        assert contractor_service.get_entry_paid(second.id) == Decimal("0")

    def test_delete_payment_clears_allocations(
        self, temp_db, contractor_service, sample_contractor, funded_contractor
    ):
        _, _, payment = funded_contractor

        contractor_service.delete_payment(payment.id)

        assert temp_db.list_allocations(contractor_id=sample_contractor.id) == []
        totals = contractor_service.get_contractor_totals(sample_contractor.id)
        assert totals.remaining == Decimal("150")


class TestContractorGuards:
    """Tests for overpay guards."""

    def test_payment_over_remaining(self, contractor_service, sample_contractor, funded_contractor):
        with pytest.raises(InvariantViolationError, match="overpay the contractor") as exc:
            contractor_service.create_payment(sample_contractor.id, date(2026, 4, 20), Decimal("40"))

        assert exc.value.max_allowed == Decimal("30")

    def test_payment_with_nothing_owed(self, contractor_service, sample_contractor):
        with pytest.raises(InvariantViolationError) as exc:
            contractor_service.create_payment(sample_contractor.id, date(2026, 4, 20), Decimal("1"))

        assert exc.value.max_allowed == Decimal("0")

    def test_update_payment_limit(self, contractor_service, funded_contractor):
        _, _, payment = funded_contractor

        with pytest.raises(InvariantViolationError) as exc:
            contractor_service.update_payment(payment.id, amount=Decimal("151"))
        assert exc.value.max_allowed == Decimal("150")

        contractor_service.update_payment(payment.id, amount=Decimal("150"))

    def test_delete_entry_needed_by_payments(self, contractor_service, funded_contractor):
        first, second, _ = funded_contractor

        with pytest.raises(InvariantViolationError, match="Cannot delete this entry"):
            contractor_service.delete_entry(second.id)
        with pytest.raises(InvariantViolationError):
            contractor_service.delete_entry(first.id)

    def test_delete_unpaid_entry(self, contractor_service, sample_contractor):
        first = contractor_service.create_entry(sample_contractor.id, date(2026, 4, 1), Decimal("100"))
        second = contractor_service.create_entry(sample_contractor.id, date(2026, 4, 10), Decimal("50"))
        contractor_service.create_payment(sample_contractor.id, date(2026, 4, 12), Decimal("60"))

        contractor_service.delete_entry(second.id)

        assert contractor_service.get_entry_paid(first.id) == Decimal("60")
        with pytest.raises(NotFoundError):
            contractor_service.get_entry_paid(second.id)

    def test_update_entry_below_paid(self, contractor_service, funded_contractor):
        _, second, _ = funded_contractor

        with pytest.raises(InvariantViolationError, match="at least 20"):
            contractor_service.update_entry(second.id, amount=Decimal("10"))

        contractor_service.update_entry(second.id, amount=Decimal("20"))
        assert contractor_service.get_entry_paid(second.id) == Decimal("20")

    def test_entry_project_must_match(self, contractor_service, sample_contractor, other_project):
        with pytest.raises(ValidationError, match="does not belong"):
            contractor_service.create_entry(
                sample_contractor.id, date(2026, 4, 1), Decimal("10"), project_id=other_project.id
            )


class TestContractorLedger:
    """Tests for get_contractor_ledger and totals."""

    def test_month_view(self, contractor_service, sample_project, sample_contractor, funded_contractor):
        contractor_service.create_entry(sample_contractor.id, date(2026, 5, 2), Decimal("70"))

        ledger = contractor_service.get_contractor_ledger(sample_project.id, "2026-04")

        assert ledger.total == 3
        assert [row.kind for row in ledger.rows] == ["payment", "entry", "entry"]
        assert ledger.rows[0].contractor_name == "Steel Fixers"
        assert ledger.total_amount == Decimal("150")
        assert ledger.total_paid == Decimal("120")
        assert ledger.remaining == Decimal("30")

        may = contractor_service.get_contractor_ledger(sample_project.id, "2026-05")
        assert may.total_amount == Decimal("70")
        assert may.total_paid == Decimal("0")

    def test_totals(self, contractor_service, sample_contractor, funded_contractor):
        totals = contractor_service.get_contractor_totals(sample_contractor.id)

        assert totals.total_amount == Decimal("150")
        assert totals.total_paid == Decimal("120")
        assert totals.remaining == Decimal("30")

    def test_unknown_contractor_filter(self, contractor_service, sample_project):
        with pytest.raises(NotFoundError):
            contractor_service.get_contractor_ledger(sample_project.id, "2026-04", contractor_id=99)

    def test_invalid_month(self, contractor_service, sample_project):
        with pytest.raises(ValidationError, match="YYYY-MM"):
            contractor_service.get_contractor_ledger(sample_project.id, "2026-13")

    def test_site_manager_scope(self, temp_db, sample_project, other_project, funded_contractor):
        own = ContractorLedgerService(
            temp_db, Actor(id="sm", email="sm@site", role="site_manager", assigned_project_id=sample_project.id)
        )
        outsider = ContractorLedgerService(
            temp_db, Actor(id="sm2", email="sm2@site", role="site_manager", assigned_project_id=other_project.id)
        )

        assert own.get_contractor_ledger(sample_project.id, "2026-04").total == 3
        with pytest.raises(ScopeViolationError):
            outsider.get_contractor_ledger(sample_project.id, "2026-04")
