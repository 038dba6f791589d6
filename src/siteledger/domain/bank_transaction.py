"""Bank transaction coordinator.

Every create, update and delete moves one bank account and, for outflows
tagged to a project, that project's balance. All balance writes of one
operation share a unit of work: they commit together or not at all.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_unrestricted
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import (
    Actor,
    AuditAction,
    BankTransaction as BankTransactionEntity,
    Page,
    PaymentMethod,
    TransactionType,
)
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    insufficient_balance,
    not_found,
)
from siteledger.domain.money import ZERO, optional_text, require_positive, require_text
from siteledger.domain.parsing import page_bounds, parse_payment_method, parse_transaction_type

logger = logging.getLogger(__name__)

MODULE = "bank_transactions"


class BankTransactionService:
    """Service for applying, editing and reversing bank transactions."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize bank transaction service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _apply_effect(
        self,
        account_id: int,
        txn_type: TransactionType,
        amount: Decimal,
        project_id: Optional[int],
        sign: int = 1,
    ) -> None:
        """Apply (sign=1) or exactly reverse (sign=-1) a transaction's effect."""
        delta = amount * sign
        if txn_type == TransactionType.INFLOW:
            self.db.adjust_bank_account(account_id, balance_delta=delta, inflow_delta=delta)
            return
        self.db.adjust_bank_account(account_id, balance_delta=-delta, outflow_delta=delta)
        if project_id is not None:
            self.db.adjust_project_balance(project_id, delta)

    def _require_account(self, account_id: int):
        account = self.db.get_bank_account(account_id)
        if account is None:
            raise NotFoundError(not_found("Bank account", account_id))
        return account

    def _require_project(self, project_id: int):
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(not_found("Project", project_id))
        return project

    def _require_transaction(self, transaction_id: int) -> BankTransactionEntity:
        txn = self.db.get_bank_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(not_found("Transaction", transaction_id))
        return txn

    def create_transaction(
        self,
        account_id: int,
        date: date,
        type: str,
        amount: Decimal,
        source: str,
        destination: str,
        mode: str = PaymentMethod.BANK.value,
        project_id: Optional[int] = None,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
    ) -> BankTransactionEntity:
        """Record a transaction and apply it to the account (and project).

        Args:
            account_id: Bank account ID
            date: Transaction date
            type: "inflow" or "outflow"
            amount: Amount, must be greater than zero
            source: Where the money came from
            destination: Where the money went
            mode: Cash, Bank or Online
            project_id: Project funded by an outflow
            reference_id: Optional external reference
            remarks: Optional remarks

        Returns:
            The created transaction with account and project names

        Raises:
            ValidationError: If a field is invalid or a project is set on an inflow
            NotFoundError: If the account or project does not exist
            InvariantViolationError: If an outflow exceeds the account balance
        """
        ensure_unrestricted(self.actor, "bank transactions")
        txn_type = parse_transaction_type(type)
        method = parse_payment_method(mode)
        amount = require_positive(amount)
        if date is None:
            raise ValidationError("Date is required")
        source = require_text(source, "Source")
        destination = require_text(destination, "Destination")
        if project_id is not None and txn_type != TransactionType.OUTFLOW:
            raise ValidationError("Project can only be set for outflow transactions")

        with self.db.unit_of_work():
            account = self._require_account(account_id)
            if txn_type == TransactionType.OUTFLOW and account.current_balance < amount:
                logger.debug(
                    "outflow rejected account_id=%s balance=%s amount=%s",
                    account_id,
                    account.current_balance,
                    amount,
                )
                raise InvariantViolationError(insufficient_balance("create"), max_allowed=account.current_balance)
            if project_id is not None:
                self._require_project(project_id)

            transaction_id = self.db.create_bank_transaction(
                account_id=account_id,
                date=date,
                type=txn_type.value,
                amount=amount,
                source=source,
                destination=destination,
                mode=method.value,
                project_id=project_id,
                reference_id=optional_text(reference_id),
                remarks=optional_text(remarks),
            )
            self._apply_effect(account_id, txn_type, amount, project_id)

        created = self.db.get_bank_transaction(transaction_id)
        logger.info(
            "bank transaction created id=%s type=%s amount=%s account_id=%s project_id=%s",
            transaction_id,
            txn_type.value,
            amount,
            account_id,
            project_id,
        )
        self.audit.record(
            AuditAction.CREATE,
            MODULE,
            transaction_id,
            f"{txn_type.value}: {amount} from {source} to {destination}",
            new_value={
                "type": txn_type.value,
                "amount": amount,
                "account_id": account_id,
                "project_id": project_id,
            },
        )
        return created

    def update_transaction(
        self,
        transaction_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        source: Optional[str] = None,
        destination: Optional[str] = None,
        mode: Optional[str] = None,
        project_id: Optional[int] = None,
        reference_id: Optional[str] = None,
        remarks: Optional[str] = None,
        clear_project: bool = False,
    ) -> BankTransactionEntity:
        """Edit a transaction by reversing its effect and re-applying it.

        The new amount and project are validated against the account and
        project state after the old effect has been reversed. The type is
        fixed at creation.

        Args:
            transaction_id: Transaction ID to update
            date: Optional new date
            amount: Optional new amount
            source: Optional new source
            destination: Optional new destination
            mode: Optional new mode
            project_id: Optional new project (outflows only)
            reference_id: Optional new reference
            remarks: Optional new remarks
            clear_project: If True, untag the transaction from its project

        Returns:
            The updated transaction

        Raises:
            ValidationError: If a field is invalid
            NotFoundError: If the transaction or new project does not exist
            InvariantViolationError: If the edit would make a balance negative
        """
        ensure_unrestricted(self.actor, "bank transactions")
        if clear_project and project_id is not None:
            raise ValidationError("Cannot set both project_id and clear_project")
        new_amount = require_positive(amount) if amount is not None else None
        new_mode = parse_payment_method(mode) if mode is not None else None

        with self.db.unit_of_work():
            existing = self._require_transaction(transaction_id)
            txn_type = existing.type
            if project_id is not None and txn_type != TransactionType.OUTFLOW:
                raise ValidationError("Project can only be set for outflow transactions")
            if new_amount is None:
                new_amount = existing.amount
            if clear_project:
                new_project_id = None
            elif project_id is not None:
                new_project_id = project_id
            else:
                new_project_id = existing.project_id

            self._apply_effect(
                existing.account_id, txn_type, existing.amount, existing.project_id, sign=-1
            )

            account = self._require_account(existing.account_id)
            if txn_type == TransactionType.OUTFLOW:
                if account.current_balance < new_amount:
                    logger.debug(
                        "outflow update rejected id=%s balance=%s amount=%s",
                        transaction_id,
                        account.current_balance,
                        new_amount,
                    )
                    raise InvariantViolationError(
                        insufficient_balance("update"), max_allowed=account.current_balance
                    )
                if new_project_id is not None:
                    self._require_project(new_project_id)
            elif account.current_balance + new_amount < ZERO:
                raise InvariantViolationError(
                    "Cannot update: reversing this inflow would make bank balance negative."
                )
            if existing.project_id is not None:
                kept = new_amount if new_project_id == existing.project_id else ZERO
                if self._require_project(existing.project_id).balance + kept < ZERO:
                    raise InvariantViolationError(
                        "Cannot update: reversing this outflow would make project balance negative."
                    )

            fields = {"amount": new_amount, "project_id": new_project_id}
            if date is not None:
                fields["date"] = date
            if source is not None:
                fields["source"] = require_text(source, "Source")
            if destination is not None:
                fields["destination"] = require_text(destination, "Destination")
            if new_mode is not None:
                fields["mode"] = new_mode.value
            if reference_id is not None:
                fields["reference_id"] = optional_text(reference_id)
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_bank_transaction(transaction_id, **fields)

            self._apply_effect(existing.account_id, txn_type, new_amount, new_project_id)

        updated = self.db.get_bank_transaction(transaction_id)
        logger.info(
            "bank transaction updated id=%s amount=%s->%s project_id=%s->%s",
            transaction_id,
            existing.amount,
            new_amount,
            existing.project_id,
            new_project_id,
        )
        self.audit.record(
            AuditAction.UPDATE,
            MODULE,
            transaction_id,
            f"Updated {txn_type.value} transaction: {new_amount}",
            old_value={
                "amount": existing.amount,
                "source": existing.source,
                "destination": existing.destination,
                "project_id": existing.project_id,
            },
            new_value={
                "amount": updated.amount,
                "source": updated.source,
                "destination": updated.destination,
                "project_id": updated.project_id,
            },
        )
        return updated

    def delete_transaction(self, transaction_id: int) -> None:
        """Reverse a transaction's effect and remove it.

        Raises:
            NotFoundError: If the transaction does not exist
            InvariantViolationError: If reversing an inflow would overdraw the
                account, or reversing an outflow would make its project's
                balance negative
        """
        ensure_unrestricted(self.actor, "bank transactions")
        with self.db.unit_of_work():
            existing = self._require_transaction(transaction_id)
            if existing.type == TransactionType.INFLOW:
                account = self._require_account(existing.account_id)
                if account.current_balance < existing.amount:
                    logger.debug(
                        "inflow delete rejected id=%s balance=%s amount=%s",
                        transaction_id,
                        account.current_balance,
                        existing.amount,
                    )
                    raise InvariantViolationError(
                        "Cannot delete: reversing this inflow would make bank balance negative."
                    )
            elif existing.project_id is not None:
                project = self._require_project(existing.project_id)
                if project.balance < existing.amount:
                    logger.debug(
                        "outflow delete rejected id=%s project_balance=%s amount=%s",
                        transaction_id,
                        project.balance,
                        existing.amount,
                    )
                    raise InvariantViolationError(
                        "Cannot delete: reversing this outflow would make project balance negative."
                    )

            self._apply_effect(
                existing.account_id, existing.type, existing.amount, existing.project_id, sign=-1
            )
            self.db.delete_bank_transaction(transaction_id)

        logger.info(
            "bank transaction deleted id=%s type=%s amount=%s",
            transaction_id,
            existing.type.value,
            existing.amount,
        )
        self.audit.record(
            AuditAction.DELETE,
            MODULE,
            transaction_id,
            f"Deleted {existing.type.value} transaction: {existing.amount} from "
            f"{existing.source} to {existing.destination}",
            old_value={"type": existing.type.value, "amount": existing.amount},
        )

    def get_transaction(self, transaction_id: int) -> BankTransactionEntity:
        """Get a transaction with its account and project names.

        Raises:
            NotFoundError: If the transaction does not exist
        """
        return self._require_transaction(transaction_id)

    def list_transactions(
        self,
        account_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        search: Optional[str] = None,
        page: int = 1,
        page_size: Optional[int] = None,
    ) -> Page:
        """List transactions newest first.

        Args:
            account_id: Optional account filter
            start_date: Optional inclusive start date
            end_date: Optional inclusive end date
            search: Optional text matched against source, destination,
                reference and remarks
            page: 1-based page number
            page_size: Rows per page (default 12, at most 100)

        Returns:
            Page of transactions and the total match count
        """
        offset, limit = page_bounds(page, page_size)
        rows, total = self.db.list_bank_transactions(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            search=optional_text(search),
            offset=offset,
            limit=limit,
        )
        return Page(rows=tuple(rows), total=total)
