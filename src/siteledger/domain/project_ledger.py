"""Project ledger: bank outflows funding a project plus manual adjustments.

Adjustments move ``project.balance`` directly. Like the bank coordinator,
an edit reverses the old amount and applies the new one inside a single
unit of work, and no create, edit or delete may leave the balance negative.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import Actor, AuditAction, Project, ProjectAdjustment
from siteledger.domain.errors import (
    InvariantViolationError,
    NotFoundError,
    ValidationError,
    format_amount,
    not_found,
)
from siteledger.domain.money import ZERO, optional_text, to_amount
from siteledger.domain.parsing import page_bounds

logger = logging.getLogger(__name__)

MODULE = "project_ledger"

BANK_OUTFLOW = "bank_outflow"
MANUAL_ADJUSTMENT = "manual_adjustment"


@dataclass(frozen=True)
class ProjectLedgerRow:
    """One funding line of a project ledger.

    ``source`` is the bank account name and ``destination`` the payee of a
    bank outflow; adjustments carry only an amount and remarks.
    """

    kind: str  # BANK_OUTFLOW or MANUAL_ADJUSTMENT
    id: int
    date: date
    amount: Decimal
    source: Optional[str] = None
    destination: Optional[str] = None
    reference_id: Optional[str] = None
    remarks: Optional[str] = None


@dataclass(frozen=True)
class ProjectLedger:
    """A page of project ledger rows plus the project's current balance."""

    rows: tuple[ProjectLedgerRow, ...]
    total: int
    balance: Decimal
    project_name: str


def _require_non_zero(value) -> Decimal:
    amount = to_amount(value)
    if amount == ZERO:
        raise ValidationError("Amount must be non-zero (positive to add, negative to subtract)")
    return amount


class ProjectLedgerService:
    """Service for manual project balance adjustments and the project ledger."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize project ledger service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def _require_project(self, project_id: int) -> Project:
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(not_found("Project", project_id))
        ensure_project_access(self.actor, project_id)
        return project

    def _require_adjustment(self, project_id: int, adjustment_id: int) -> ProjectAdjustment:
        adjustment = self.db.get_project_adjustment(adjustment_id)
        if adjustment is None or adjustment.project_id != project_id:
            raise NotFoundError(not_found("Adjustment", adjustment_id))
        return adjustment

    def create_adjustment(
        self,
        project_id: int,
        date: date,
        amount: Decimal,
        remarks: Optional[str] = None,
    ) -> ProjectAdjustment:
        """Add (positive amount) or subtract (negative amount) project balance.

        Raises:
            ValidationError: If the date is missing or the amount is zero
            NotFoundError: If the project does not exist
            InvariantViolationError: If the balance would become negative
        """
        if date is None:
            raise ValidationError("Date is required")
        amount = _require_non_zero(amount)

        with self.db.unit_of_work():
            project = self._require_project(project_id)
            if project.balance + amount < ZERO:
                logger.debug(
                    "adjustment rejected project_id=%s balance=%s amount=%s",
                    project_id,
                    project.balance,
                    amount,
                )
                raise InvariantViolationError(
                    "Cannot add adjustment: project balance would become negative. "
                    f"Current balance: {format_amount(project.balance)}"
                )
            adjustment_id = self.db.create_project_adjustment(
                project_id=project_id, date=date, amount=amount, remarks=optional_text(remarks)
            )
            self.db.adjust_project_balance(project_id, amount)

        logger.info("project adjustment created id=%s project_id=%s amount=%s", adjustment_id, project_id, amount)
        self.audit.record(
            AuditAction.CREATE,
            MODULE,
            adjustment_id,
            f"Manual balance adjustment for {project.name}: {'+' if amount > ZERO else ''}{format_amount(amount)}",
            new_value={"project_id": project_id, "amount": amount, "date": date},
        )
        return self.db.get_project_adjustment(adjustment_id)

    def update_adjustment(
        self,
        project_id: int,
        adjustment_id: int,
        date: Optional[date] = None,
        amount: Optional[Decimal] = None,
        remarks: Optional[str] = None,
    ) -> ProjectAdjustment:
        """Edit an adjustment by reversing its old amount and applying the new one.

        Raises:
            NotFoundError: If the project or adjustment does not exist
            InvariantViolationError: If the balance would become negative
        """
        new_amount = _require_non_zero(amount) if amount is not None else None

        with self.db.unit_of_work():
            project = self._require_project(project_id)
            existing = self._require_adjustment(project_id, adjustment_id)
            if new_amount is None:
                new_amount = existing.amount

            # Reverse first, then apply; the check sees the reversed balance
            self.db.adjust_project_balance(project_id, -existing.amount)
            reversed_balance = self.db.get_project(project_id).balance
            if reversed_balance + new_amount < ZERO:
                logger.debug(
                    "adjustment update rejected id=%s reversed_balance=%s amount=%s",
                    adjustment_id,
                    reversed_balance,
                    new_amount,
                )
                raise InvariantViolationError(
                    "Cannot update adjustment: project balance would become negative."
                )

            fields = {"amount": new_amount}
            if date is not None:
                fields["date"] = date
            if remarks is not None:
                fields["remarks"] = optional_text(remarks)
            self.db.update_project_adjustment(adjustment_id, **fields)
            self.db.adjust_project_balance(project_id, new_amount)

        logger.info("project adjustment updated id=%s amount=%s->%s", adjustment_id, existing.amount, new_amount)
        self.audit.record(
            AuditAction.UPDATE,
            MODULE,
            adjustment_id,
            f"Updated manual balance adjustment for {project.name}: "
            f"{format_amount(existing.amount)} -> {format_amount(new_amount)}",
            old_value={"amount": existing.amount},
            new_value={"amount": new_amount},
        )
        return self.db.get_project_adjustment(adjustment_id)

    def delete_adjustment(self, project_id: int, adjustment_id: int) -> None:
        """Delete an adjustment, reversing its effect on the project balance.

        Raises:
            InvariantViolationError: If reversing it would make the balance negative
        """
        with self.db.unit_of_work():
            project = self._require_project(project_id)
            existing = self._require_adjustment(project_id, adjustment_id)
            if project.balance - existing.amount < ZERO:
                logger.debug(
                    "adjustment delete rejected id=%s balance=%s amount=%s",
                    adjustment_id,
                    project.balance,
                    existing.amount,
                )
                raise InvariantViolationError(
                    "Cannot delete: reversing this adjustment would make project balance negative."
                )
            self.db.delete_project_adjustment(adjustment_id)
            self.db.adjust_project_balance(project_id, -existing.amount)

        logger.info("project adjustment deleted id=%s project_id=%s", adjustment_id, project_id)
        self.audit.record(
            AuditAction.DELETE,
            MODULE,
            adjustment_id,
            f"Deleted manual balance adjustment for {project.name}: {format_amount(existing.amount)}",
            old_value={"amount": existing.amount},
        )

    def get_project_ledger(
        self, project_id: int, page: int = 1, page_size: Optional[int] = None
    ) -> ProjectLedger:
        """Bank outflows tagged to a project and its manual adjustments.

        Rows are newest first; on the same date bank outflows come before
        adjustments.

        Args:
            project_id: Project ID
            page: 1-based page number
            page_size: Rows per page (default 12, at most 100)

        Raises:
            NotFoundError: If the project does not exist
            ScopeViolationError: If a site manager asks for another project
        """
        project = self._require_project(project_id)
        outflows, _ = self.db.list_bank_transactions(project_id=project_id)
        adjustments = self.db.list_project_adjustments(project_id)

        rows = [
            ProjectLedgerRow(
                kind=BANK_OUTFLOW,
                id=t.id,
                date=t.date,
                amount=t.amount,
                source=t.account_name,
                destination=t.destination,
                reference_id=t.reference_id,
                remarks=t.remarks,
            )
            for t in outflows
        ]
        rows.extend(
            ProjectLedgerRow(
                kind=MANUAL_ADJUSTMENT,
                id=a.id,
                date=a.date,
                amount=a.amount,
                remarks=a.remarks,
            )
            for a in adjustments
        )
        # Stable sort keeps each source's own newest-first order within a date
        rows.sort(key=lambda r: (r.date, r.kind == BANK_OUTFLOW), reverse=True)

        offset, limit = page_bounds(page, page_size)
        return ProjectLedger(
            rows=tuple(rows[offset : offset + limit]),
            total=len(rows),
            balance=project.balance,
            project_name=project.name,
        )
