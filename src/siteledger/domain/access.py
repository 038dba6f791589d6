"""Actor roles and project scoping."""

from typing import Optional

from siteledger.domain.entities import Actor
from siteledger.domain.errors import ScopeViolationError

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
SITE_MANAGER = "site_manager"

ROLES = (SUPER_ADMIN, ADMIN, SITE_MANAGER)

# Used when a service is built without an authenticated caller (scripts, tests)
SYSTEM_ACTOR = Actor(id="system", email="system@localhost", role=ADMIN)


def ensure_project_access(actor: Actor, project_id: Optional[int]) -> None:
    """Raise ScopeViolationError if actor may not touch project_id.

    Site managers are bound to their assigned project. Other roles are
    unrestricted.
    """
    if actor.role != SITE_MANAGER:
        return
    if actor.assigned_project_id is None:
        raise ScopeViolationError("Site Manager must be assigned to a project")
    if project_id != actor.assigned_project_id:
        raise ScopeViolationError(
            f"Site Manager {actor.id} is not assigned to project {project_id}"
        )


def ensure_unrestricted(actor: Actor, what: str) -> None:
    """Raise ScopeViolationError unless actor is an admin or super admin."""
    if actor.role == SITE_MANAGER:
        raise ScopeViolationError(f"Forbidden: {what} requires admin access")
