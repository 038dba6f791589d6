"""Directory service: the records the ledgers operate on."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import (
    SITE_MANAGER,
    SYSTEM_ACTOR,
    ensure_project_access,
    ensure_unrestricted,
)
from siteledger.domain.entities import (
    Actor,
    Contractor,
    Employee,
    EmployeeType,
    Machine,
    MachineOwnership,
    Project,
    StockItem,
    Vendor,
)
from siteledger.domain.errors import NotFoundError, ValidationError, not_found
from siteledger.domain.money import ZERO, require_non_negative, require_positive, require_text

logger = logging.getLogger(__name__)


class DirectoryService:
    """Service for creating and looking up the records the ledgers post against."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize directory service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR

    def _require_project(self, project_id: int) -> Project:
        project = self.db.get_project(project_id)
        if project is None:
            raise NotFoundError(not_found("Project", project_id))
        ensure_project_access(self.actor, project_id)
        return project

    def create_project(self, name: str) -> Project:
        """Create a project with a zero balance.

        Raises:
            ValidationError: If the name is blank or already used
            ScopeViolationError: If the actor is a site manager
        """
        ensure_unrestricted(self.actor, "project creation")
        name = require_text(name, "Project name")
        if any(p.name == name for p in self.db.list_projects()):
            raise ValidationError(f"Project with name '{name}' already exists")
        project_id = self.db.create_project(name)
        logger.info("project created id=%s name=%s", project_id, name)
        return self.db.get_project(project_id)

    def get_project(self, project_id: int) -> Project:
        """Get project by ID."""
        return self._require_project(project_id)

    def list_projects(self) -> list[Project]:
        """List projects visible to the actor."""
        projects = self.db.list_projects()
        if self.actor.role == SITE_MANAGER:
            return [p for p in projects if p.id == self.actor.assigned_project_id]
        return projects

    def create_vendor(self, project_id: int, name: str) -> Vendor:
        """Create a vendor supplying a project."""
        self._require_project(project_id)
        vendor_id = self.db.create_vendor(project_id, require_text(name, "Vendor name"))
        logger.info("vendor created id=%s project_id=%s", vendor_id, project_id)
        return self.db.get_vendor(vendor_id)

    def get_vendor(self, vendor_id: int) -> Vendor:
        """Get vendor by ID."""
        vendor = self.db.get_vendor(vendor_id)
        if vendor is None:
            raise NotFoundError(not_found("Vendor", vendor_id))
        ensure_project_access(self.actor, vendor.project_id)
        return vendor

    def create_stock_item(self, project_id: int, name: str, unit: str) -> StockItem:
        """Create a consumable stock item with zero stock."""
        self._require_project(project_id)
        item_id = self.db.create_stock_item(
            project_id, require_text(name, "Item name"), require_text(unit, "Unit")
        )
        logger.info("stock item created id=%s project_id=%s", item_id, project_id)
        return self.db.get_stock_item(item_id)

    def get_stock_item(self, item_id: int) -> StockItem:
        """Get stock item by ID."""
        item = self.db.get_stock_item(item_id)
        if item is None:
            raise NotFoundError(not_found("Stock item", item_id))
        ensure_project_access(self.actor, item.project_id)
        return item

    def create_contractor(self, project_id: int, name: str) -> Contractor:
        """Create a contractor working on a project."""
        self._require_project(project_id)
        contractor_id = self.db.create_contractor(project_id, require_text(name, "Contractor name"))
        logger.info("contractor created id=%s project_id=%s", contractor_id, project_id)
        return self.db.get_contractor(contractor_id)

    def get_contractor(self, contractor_id: int) -> Contractor:
        """Get contractor by ID."""
        contractor = self.db.get_contractor(contractor_id)
        if contractor is None:
            raise NotFoundError(not_found("Contractor", contractor_id))
        ensure_project_access(self.actor, contractor.project_id)
        return contractor

    def list_contractors(self, project_id: Optional[int] = None) -> list[Contractor]:
        """List contractors, restricted to the assigned project for site managers."""
        if self.actor.role == SITE_MANAGER:
            project_id = self.actor.assigned_project_id
        return self.db.list_contractors(project_id)

    def create_machine(
        self,
        project_id: int,
        name: str,
        hourly_rate: Decimal,
        ownership: str = MachineOwnership.COMPANY_OWNED.value,
    ) -> Machine:
        """Create a machine billed at an hourly rate.

        Raises:
            ValidationError: If the name is blank, the rate negative or the
                ownership unknown
        """
        self._require_project(project_id)
        name = require_text(name, "Machine name")
        hourly_rate = require_non_negative(hourly_rate, "Hourly rate")
        try:
            machine_ownership = MachineOwnership(ownership)
        except ValueError as e:
            raise ValidationError("Ownership must be Company Owned or Rented") from e
        machine_id = self.db.create_machine(project_id, name, machine_ownership.value, hourly_rate)
        logger.info("machine created id=%s project_id=%s rate=%s", machine_id, project_id, hourly_rate)
        return self.db.get_machine(machine_id)

    def get_machine(self, machine_id: int) -> Machine:
        """Get machine by ID."""
        machine = self.db.get_machine(machine_id)
        if machine is None:
            raise NotFoundError(not_found("Machine", machine_id))
        ensure_project_access(self.actor, machine.project_id)
        return machine

    def list_machines(self, project_id: Optional[int] = None) -> list[Machine]:
        """List machines, restricted to the assigned project for site managers."""
        if self.actor.role == SITE_MANAGER:
            project_id = self.actor.assigned_project_id
        return self.db.list_machines(project_id)

    def create_employee(
        self,
        project_id: int,
        name: str,
        type: str,
        monthly_salary: Decimal = ZERO,
        daily_rate: Decimal = ZERO,
        created_at: Optional[datetime] = None,
    ) -> Employee:
        """Create an employee.

        Fixed employees need a monthly salary, daily employees a daily rate.
        ``created_at`` sets the first month with payroll data.

        Raises:
            ValidationError: If the type or pay rate is invalid
        """
        self._require_project(project_id)
        name = require_text(name, "Employee name")
        try:
            employee_type = EmployeeType(type)
        except ValueError as e:
            raise ValidationError("Type must be Fixed or Daily") from e

        if employee_type == EmployeeType.FIXED:
            monthly_salary = require_positive(monthly_salary, "Monthly salary")
            daily_rate = ZERO
        else:
            daily_rate = require_positive(daily_rate, "Daily rate")
            monthly_salary = ZERO

        employee_id = self.db.create_employee(
            project_id=project_id,
            name=name,
            type=employee_type.value,
            monthly_salary=monthly_salary,
            daily_rate=daily_rate,
            created_at=created_at,
        )
        logger.info(
            "employee created id=%s project_id=%s type=%s", employee_id, project_id, employee_type.value
        )
        return self.db.get_employee(employee_id)

    def get_employee(self, employee_id: int) -> Employee:
        """Get employee by ID."""
        employee = self.db.get_employee(employee_id)
        if employee is None:
            raise NotFoundError(not_found("Employee", employee_id))
        ensure_project_access(self.actor, employee.project_id)
        return employee
