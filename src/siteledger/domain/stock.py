"""Stock consumption service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from siteledger.database.base import Database
from siteledger.domain.access import SYSTEM_ACTOR, ensure_project_access
from siteledger.domain.audit import AuditService
from siteledger.domain.entities import Actor, AuditAction, StockItem
from siteledger.domain.errors import InvariantViolationError, NotFoundError, not_found
from siteledger.domain.money import optional_text, require_positive

logger = logging.getLogger(__name__)

MODULE = "stock_consumption"


class StockService:
    """Service for consuming purchased stock."""

    def __init__(self, db: Database, actor: Optional[Actor] = None):
        """Initialize stock service.

        Args:
            db: Database instance
            actor: Caller performing the operations (defaults to the system actor)
        """
        self.db = db
        self.actor = actor or SYSTEM_ACTOR
        self.audit = AuditService(db, self.actor)

    def consume(
        self,
        item_id: int,
        quantity: Decimal,
        date: Optional[date] = None,
        remarks: Optional[str] = None,
    ) -> StockItem:
        """Take quantity out of an item's current stock.

        Raises:
            ValidationError: If quantity is not positive
            NotFoundError: If the item does not exist
            InvariantViolationError: If there is not enough stock
        """
        quantity = require_positive(quantity, "Quantity")
        with self.db.unit_of_work():
            item = self.db.get_stock_item(item_id)
            if item is None:
                raise NotFoundError(not_found("Item", item_id))
            ensure_project_access(self.actor, item.project_id)
            if quantity > item.current_stock:
                raise InvariantViolationError(
                    f"Insufficient stock for {item.name}: available {item.current_stock} {item.unit}",
                    max_allowed=item.current_stock,
                )
            self.db.adjust_stock(item_id, stock_delta=-quantity)

        logger.info("stock consumed item_id=%s quantity=%s", item_id, quantity)
        self.audit.record(
            AuditAction.CREATE,
            MODULE,
            item_id,
            f"Consumed {quantity} {item.unit} of {item.name}",
            new_value={"quantity": quantity, "date": date, "remarks": optional_text(remarks)},
        )
        return self.db.get_stock_item(item_id)
