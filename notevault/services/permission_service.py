"""Permission service for role checks and visibility scoping.

This service implements the 3-role permission model (user/manager/admin).
It centralizes permission checks to ensure consistent enforcement across
the notes, versions, users and approval endpoints.

Permission Model:
- User: can view, search, trash and recover their own notes and folders
- Manager: can additionally see everyone's content, update/rename notes and
  folders, restore note revisions, manage users, create versions and migrate content
- Admin: everything, including creating/deleting notes and folders, deleting
  users, updating/deleting versions and reviewing registrations

Policy Mode:
- enforced: a denied check raises PermissionDenied
- permissive: a denied check is logged and allowed (local development only).
  The mode comes from settings.policy_mode, never from the environment name.
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from ..config import settings
from .errors import PermissionDenied

logger = logging.getLogger(__name__)


class Role(str, enum.Enum):
    """Account roles."""

    USER = "user"
    MANAGER = "manager"
    ADMIN = "admin"


class PolicyMode(str, enum.Enum):
    """How denied checks are handled."""

    ENFORCED = "enforced"
    PERMISSIVE = "permissive"


class VisibilityScope(str, enum.Enum):
    """Which rows a role may see: only its own, or everyone's."""

    OWN = "own"
    ALL = "all"


class Action(str, enum.Enum):
    """Actions gated by the role policy."""

    CREATE_NOTE = "create note"
    CREATE_FOLDER = "create folder"
    DELETE_NOTE = "delete note"
    DELETE_FOLDER = "delete folder"
    UPDATE_NOTE = "update note"
    UPDATE_FOLDER = "update folder"
    RESTORE_NOTE_REVISION = "restore note revision"
    VIEW_CONTENT = "view content"
    SEARCH_CONTENT = "search content"
    VIEW_TRASH = "view trash"
    TRASH_CONTENT = "move to trash"
    RECOVER_CONTENT = "recover from trash"
    EMPTY_TRASH = "empty trash"
    VIEW_ALL_CONTENT = "view all users' content"
    MANAGE_USERS = "manage users"
    DELETE_USER = "delete user"
    VIEW_VERSIONS = "view versions"
    CREATE_VERSION = "create version"
    UPDATE_VERSION = "update version"
    DELETE_VERSION = "delete version"
    MIGRATE_CONTENT = "migrate content"
    REVIEW_REGISTRATIONS = "review registrations"


@dataclass(frozen=True)
class Caller:
    """The authenticated user a service call acts for."""

    user_id: UUID
    role: str


_ALL_ROLES = frozenset({Role.USER, Role.MANAGER, Role.ADMIN})
_MANAGER_OR_ADMIN = frozenset({Role.MANAGER, Role.ADMIN})
_ADMIN_ONLY = frozenset({Role.ADMIN})

ALLOWED_ROLES: dict[Action, frozenset[Role]] = {
    Action.CREATE_NOTE: _ADMIN_ONLY,
    Action.CREATE_FOLDER: _ADMIN_ONLY,
    Action.DELETE_NOTE: _ADMIN_ONLY,
    Action.DELETE_FOLDER: _ADMIN_ONLY,
    Action.UPDATE_NOTE: _MANAGER_OR_ADMIN,
    Action.UPDATE_FOLDER: _MANAGER_OR_ADMIN,
    Action.RESTORE_NOTE_REVISION: _MANAGER_OR_ADMIN,
    Action.VIEW_CONTENT: _ALL_ROLES,
    Action.SEARCH_CONTENT: _ALL_ROLES,
    Action.VIEW_TRASH: _ALL_ROLES,
    Action.TRASH_CONTENT: _ALL_ROLES,
    Action.RECOVER_CONTENT: _ALL_ROLES,
    Action.EMPTY_TRASH: _ALL_ROLES,
    Action.VIEW_ALL_CONTENT: _MANAGER_OR_ADMIN,
    Action.MANAGE_USERS: _MANAGER_OR_ADMIN,
    Action.DELETE_USER: _ADMIN_ONLY,
    Action.VIEW_VERSIONS: _ALL_ROLES,
    Action.CREATE_VERSION: _MANAGER_OR_ADMIN,
    Action.UPDATE_VERSION: _ADMIN_ONLY,
    Action.DELETE_VERSION: _ADMIN_ONLY,
    Action.MIGRATE_CONTENT: _MANAGER_OR_ADMIN,
    Action.REVIEW_REGISTRATIONS: _ADMIN_ONLY,
}


def _as_role(role: Optional[str]) -> Optional[Role]:
    """Parse a role string; unknown or missing roles map to None."""
    try:
        return Role(role)
    except ValueError:
        return None


def can_perform(role: Optional[str], action: Action) -> bool:
    """
    Check the static action table.

    Args:
        role: The caller's role string
        action: The action being attempted

    Returns:
        True if the role is listed for the action. Unknown roles get nothing.
    """
    parsed = _as_role(role)
    if parsed is None:
        return False
    return parsed in ALLOWED_ROLES[action]


def visibility_scope(role: Optional[str]) -> VisibilityScope:
    """Managers and admins see all users' rows; everyone else only their own."""
    if can_perform(role, Action.VIEW_ALL_CONTENT):
        return VisibilityScope.ALL
    return VisibilityScope.OWN


class PermissionService:
    """
    Service class for role policy checks.

    Holds only the configured PolicyMode; the decision table itself is
    static, so the service is safe to share across requests.
    """

    def __init__(self, mode: PolicyMode = PolicyMode.ENFORCED):
        """
        Initialize the PermissionService.

        Args:
            mode: Whether denied checks raise (enforced) or are logged and allowed (permissive)
        """
        self.mode = mode

    def can_perform(self, role: Optional[str], action: Action) -> bool:
        """Check an action without raising (ignores the policy mode)."""
        return can_perform(role, action)

    def visibility_scope(self, role: Optional[str]) -> VisibilityScope:
        """Return the row visibility for a role."""
        return visibility_scope(role)

    def owner_filter(self, caller: Caller) -> Optional[UUID]:
        """Owner id to filter rows by, or None when the caller sees all rows."""
        if visibility_scope(caller.role) == VisibilityScope.ALL:
            return None
        return caller.user_id

    def require(self, role: Optional[str], action: Action) -> None:
        """
        Assert that the role may perform the action.

        Args:
            role: The caller's role string
            action: The action being attempted

        Raises:
            PermissionDenied: If the role is not allowed and the mode is enforced
        """
        if can_perform(role, action):
            return

        if self.mode == PolicyMode.PERMISSIVE:
            logger.warning(
                f"Permissive policy: allowing '{action.value}' for role '{role}'"
            )
            return

        allowed = ", ".join(sorted(r.value for r in ALLOWED_ROLES[action]))
        raise PermissionDenied(
            action.value,
            role,
            message=(
                f"Access denied: {action.value} requires one of the following roles: "
                f"{allowed}. Your role: {role}"
            ),
        )


def get_permission_service() -> PermissionService:
    """
    Factory function to create a PermissionService from settings.

    Returns:
        PermissionService configured with settings.policy_mode
    """
    return PermissionService(PolicyMode(settings.policy_mode))
