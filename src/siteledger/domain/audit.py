"""Best-effort audit trail."""

import dataclasses
import json
import logging
from typing import Any, Optional

from siteledger.database.base import Database
from siteledger.domain.entities import Actor, AuditAction, AuditRecord

logger = logging.getLogger(__name__)


def _to_json(value: Any) -> Optional[str]:
    if value is None:
        return None
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = dataclasses.asdict(value)
    return json.dumps(value, default=str, sort_keys=True)


class AuditService:
    """Service for writing and reading audit records."""

    def __init__(self, db: Database, actor: Actor):
        """Initialize audit service.

        Args:
            db: Database instance
            actor: Actor recorded on every audit record
        """
        self.db = db
        self.actor = actor

    def record(
        self,
        action: AuditAction,
        module: str,
        entity_id: Optional[int],
        description: str,
        old_value: Any = None,
        new_value: Any = None,
    ) -> None:
        """Write one audit record.

        Must be called after the audited change has committed. A failure is
        logged and never propagated, so it cannot undo the change.
        """
        try:
            self.db.create_audit_record(
                actor_id=self.actor.id,
                actor_role=self.actor.role,
                action=action.value,
                module=module,
                entity_id=str(entity_id) if entity_id is not None else None,
                description=description,
                old_value=_to_json(old_value),
                new_value=_to_json(new_value),
            )
        except Exception:
            logger.warning(
                "audit write failed action=%s module=%s entity_id=%s",
                action.value,
                module,
                entity_id,
                exc_info=True,
            )

    def list_records(
        self, module: Optional[str] = None, entity_id: Optional[int] = None
    ) -> list[AuditRecord]:
        """List audit records, oldest first.

        Args:
            module: Optional module name filter (e.g. "bank_transactions")
            entity_id: Optional entity ID filter

        Returns:
            List of audit records
        """
        return self.db.list_audit_records(
            module=module, entity_id=str(entity_id) if entity_id is not None else None
        )
