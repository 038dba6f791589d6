"""Bank account domain service."""

import logging
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_unrestricted
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import Actor, AuditAction, BankAccount as BankAccountEntity
from siteledger.domain.errors import NotFoundError, ValidationError, not_found
from siteledger.domain.money import ZERO, require_non_negative, require_text

logger = logging.getLogger(__name__)

MODULE = "bank_accounts"


class BankAccountService:
    """Service for managing bank accounts."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize bank account service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def create_account(self, name: str, bank_name: str, opening_balance: Decimal = ZERO) -> BankAccountEntity:
        """Create a new bank account.

        The current balance starts at the opening balance.

        Args:
            name: Account name
            bank_name: Bank name
            opening_balance: Opening balance, must not be negative

        Returns:
            The created account

        Raises:
            ValidationError: If a field is missing, the balance is negative or
                the name already exists
            ScopeViolationError: If the actor is a site manager
        """
        ensure_unrestricted(self.actor, "bank account management")
        name = require_text(name, "Account name")
        bank_name = require_text(bank_name, "Bank name")
        opening_balance = require_non_negative(opening_balance, "Opening balance")

        if self.db.get_bank_account_by_name(name) is not None:
            raise ValidationError(f"Account with name '{name}' already exists")

        account_id = self.db.create_bank_account(
            name=name, bank_name=bank_name, opening_balance=opening_balance
        )
        account = self.db.get_bank_account(account_id)
        logger.info("bank account created id=%s name=%s opening=%s", account_id, name, opening_balance)
        self.audit.record(
            AuditAction.CREATE,
            MODULE,
            account_id,
            f"Created bank account {name} ({bank_name})",
            new_value=account,
        )
        return account

    def get_account(self, account_id: int) -> BankAccountEntity:
        """Get bank account by ID.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self.db.get_bank_account(account_id)
        if account is None:
            raise NotFoundError(not_found("Bank account", account_id))
        return account

    def list_accounts(self) -> list[BankAccountEntity]:
        """List all bank accounts."""
        return self.db.list_bank_accounts()
