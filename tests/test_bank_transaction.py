"""Tests for the bank transaction service."""

from datetime import date
from decimal import Decimal

import pytest

from siteledger.domain.bank_transaction import BankTransactionService
from siteledger.domain.entities import Actor
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ScopeViolationError,
    ValidationError,
)


def _outflow(service, account, amount, project=None, day=date(2026, 4, 10), **kwargs):
    return service.create_transaction(
        account_id=account.id,
        date=day,
        type="outflow",
        amount=Decimal(amount),
        source="Operations",
        destination=project.name if project else "Supplier",
        project_id=project.id if project else None,
        **kwargs,
    )


def _inflow(service, account, amount, day=date(2026, 4, 1), **kwargs):
    return service.create_transaction(
        account_id=account.id,
        date=day,
        type="inflow",
        amount=Decimal(amount),
        source="Owner",
        destination="Operations",
        **kwargs,
    )


class TestCreateTransaction:
    """Tests for create_transaction."""

    def test_inflow_raises_balance(self, bank_service, account_service, sample_account):
        txn = _inflow(bank_service, sample_account, "50000")

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("150000")
        assert account.total_inflow == Decimal("50000")
        assert txn.account_name == "Operations"

    def test_outflow_funds_project(
        self, bank_service, account_service, directory_service, sample_account, sample_project
    ):
        txn = _outflow(bank_service, sample_account, "30000", project=sample_project)

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("70000")
        assert account.total_outflow == Decimal("30000")
        assert directory_service.get_project(sample_project.id).balance == Decimal("30000")
        assert txn.project_name == "Tower A"

    def test_outflow_cannot_overdraw(self, bank_service, account_service, sample_account):
        with pytest.raises(InvariantViolationError, match="Insufficient bank balance") as exc:
            _outflow(bank_service, sample_account, "100000.01")

        assert exc.value.max_allowed == Decimal("100000")
        assert account_service.get_account(sample_account.id).current_balance == Decimal("100000")

    def test_outflow_can_empty_the_account(self, bank_service, account_service, sample_account):
        _outflow(bank_service, sample_account, "100000")
        assert account_service.get_account(sample_account.id).current_balance == Decimal("0")

    def test_project_on_inflow_rejected(self, bank_service, sample_account, sample_project):
        with pytest.raises(ValidationError, match="only be set for outflow"):
            _inflow(bank_service, sample_account, "100", project_id=sample_project.id)

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_amount_must_be_positive(self, bank_service, sample_account, amount):
        with pytest.raises(ValidationError, match="greater than zero"):
            _inflow(bank_service, sample_account, amount)

    def test_source_required(self, bank_service, sample_account):
        with pytest.raises(ValidationError, match="Source is required"):
            bank_service.create_transaction(
                account_id=sample_account.id,
                date=date(2026, 4, 1),
                type="inflow",
                amount=Decimal("10"),
                source="  ",
                destination="Operations",
            )

    def test_unknown_type_rejected(self, bank_service, sample_account):
        with pytest.raises(ValidationError, match="inflow or outflow"):
            bank_service.create_transaction(
                account_id=sample_account.id,
                date=date(2026, 4, 1),
                type="transfer",
                amount=Decimal("10"),
                source="A",
                destination="B",
            )

    def test_unknown_account(self, bank_service):
        with pytest.raises(NotFoundError):
            bank_service.create_transaction(
                account_id=999,
                date=date(2026, 4, 1),
                type="inflow",
                amount=Decimal("10"),
                source="A",
                destination="B",
            )

    def test_unknown_project_rolls_back(self, bank_service, account_service, sample_account):
        with pytest.raises(NotFoundError):
            bank_service.create_transaction(
                account_id=sample_account.id,
                date=date(2026, 4, 1),
                type="outflow",
                amount=Decimal("100"),
                source="Operations",
                destination="Nowhere",
                project_id=999,
            )
        assert account_service.get_account(sample_account.id).current_balance == Decimal("100000")

    def test_site_manager_forbidden(self, temp_db, sample_account, sample_project):
        manager = Actor(id="sm", email="sm@site", role="site_manager", assigned_project_id=sample_project.id)
        service = BankTransactionService(temp_db, manager)

        with pytest.raises(ScopeViolationError, match="requires admin access"):
            _inflow(service, sample_account, "100")


class TestUpdateTransaction:
    """Tests for update_transaction."""

    def test_outflow_amount_change(
        self, bank_service, account_service, directory_service, sample_account, sample_project
    ):
        txn = _outflow(bank_service, sample_account, "30000", project=sample_project)

        bank_service.update_transaction(txn.id, amount=Decimal("40000"))

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("60000")
        assert account.total_outflow == Decimal("40000")
        assert directory_service.get_project(sample_project.id).balance == Decimal("40000")

    def test_move_outflow_between_projects(
        self, bank_service, directory_service, sample_account, sample_project, other_project
    ):
        txn = _outflow(bank_service, sample_account, "30000", project=sample_project)

        updated = bank_service.update_transaction(txn.id, project_id=other_project.id)

        assert updated.project_id == other_project.id
        assert directory_service.get_project(sample_project.id).balance == Decimal("0")
        assert directory_service.get_project(other_project.id).balance == Decimal("30000")

    def test_clear_project(self, bank_service, directory_service, sample_account, sample_project):
        txn = _outflow(bank_service, sample_account, "30000", project=sample_project)

        updated = bank_service.update_transaction(txn.id, clear_project=True)

        assert updated.project_id is None
        assert directory_service.get_project(sample_project.id).balance == Decimal("0")

    def test_update_limited_by_balance_after_reversal(
        self, bank_service, account_service, sample_account
    ):
        txn = _outflow(bank_service, sample_account, "30000")

        with pytest.raises(InvariantViolationError) as exc:
            bank_service.update_transaction(txn.id, amount=Decimal("100001"))

        assert exc.value.max_allowed == Decimal("100000")
        # The reversal inside the failed update was rolled back
        assert account_service.get_account(sample_account.id).current_balance == Decimal("70000")
        assert bank_service.get_transaction(txn.id).amount == Decimal("30000")

    def test_inflow_reduction_cannot_overdraw(self, temp_db, bank_service, account_service):
        empty = account_service.create_account("Petty Cash", "Cash")
        txn = _inflow(bank_service, empty, "1000")
        _outflow(bank_service, empty, "800")

        with pytest.raises(InvariantViolationError, match="bank balance negative"):
            bank_service.update_transaction(txn.id, amount=Decimal("500"))

        bank_service.update_transaction(txn.id, amount=Decimal("800"))
        assert account_service.get_account(empty.id).current_balance == Decimal("0")

    def test_project_and_clear_project_conflict(self, bank_service, sample_account, sample_project):
        txn = _outflow(bank_service, sample_account, "10", project=sample_project)
        with pytest.raises(ValidationError):
            bank_service.update_transaction(txn.id, project_id=sample_project.id, clear_project=True)

    def test_text_fields(self, bank_service, sample_account):
        txn = _inflow(bank_service, sample_account, "10", remarks="first")

        updated = bank_service.update_transaction(
            txn.id, source="Client", reference_id="CHQ-1", remarks="  ", mode="Online"
        )

        assert updated.source == "Client"
        assert updated.reference_id == "CHQ-1"
        assert updated.remarks is None
        assert updated.mode.value == "Online"


class TestDeleteTransaction:
    """Tests for delete_transaction."""

    def test_create_then_delete_restores_state(
        self, bank_service, account_service, directory_service, audit_service, sample_account, sample_project
    ):
        txn = _outflow(bank_service, sample_account, "25000", project=sample_project)

        bank_service.delete_transaction(txn.id)

        account = account_service.get_account(sample_account.id)
        assert account.current_balance == Decimal("100000")
        assert account.total_outflow == Decimal("0")
        assert directory_service.get_project(sample_project.id).balance == Decimal("0")
        with pytest.raises(NotFoundError):
            bank_service.get_transaction(txn.id)

        records = audit_service.list_records(module="bank_transactions", entity_id=txn.id)
        assert [r.action.value for r in records] == ["create", "delete"]

    def test_inflow_delete_blocked_when_spent(self, bank_service, account_service):
        empty = account_service.create_account("Petty Cash", "Cash")
        txn = _inflow(bank_service, empty, "1000")
        _outflow(bank_service, empty, "800")

        with pytest.raises(InvariantViolationError, match="Cannot delete"):
            bank_service.delete_transaction(txn.id)

        assert account_service.get_account(empty.id).current_balance == Decimal("200")

    def test_delete_unknown(self, bank_service):
        with pytest.raises(NotFoundError, match="Transaction 42 not found"):
            bank_service.delete_transaction(42)


class TestListTransactions:
    """Tests for list_transactions."""

    def test_newest_first_with_total(self, bank_service, sample_account):
        for day in range(1, 6):
            _inflow(bank_service, sample_account, "10", day=date(2026, 4, day))

        page = bank_service.list_transactions(page=1, page_size=2)

        assert page.total == 5
        assert [t.date.day for t in page.rows] == [5, 4]

    def test_second_page(self, bank_service, sample_account):
        for day in range(1, 6):
            _inflow(bank_service, sample_account, "10", day=date(2026, 4, day))

        page = bank_service.list_transactions(page=3, page_size=2)

        assert [t.date.day for t in page.rows] == [1]

    def test_search_and_date_filters(self, bank_service, sample_account):
        _inflow(bank_service, sample_account, "10", day=date(2026, 3, 31), reference_id="INV-77")
        _inflow(bank_service, sample_account, "20", day=date(2026, 4, 2), remarks="invoice 77 balance")
        _inflow(bank_service, sample_account, "30", day=date(2026, 4, 3))

        assert bank_service.list_transactions(search="77").total == 2
        april = bank_service.list_transactions(
            search="77", start_date=date(2026, 4, 1), end_date=date(2026, 4, 30)
        )
        assert [t.amount for t in april.rows] == [Decimal("20")]
