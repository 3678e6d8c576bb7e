"""Domain error types raised by the service layer.

Services raise these instead of HTTPException so that they stay usable
outside a request (scripts, tests). notevault.main maps each type to an
HTTP status with a single exception handler.

Invariants:
    - All errors inherit from NotevaultError
    - `code` is stable and machine readable
    - Messages tell the caller what to do next where there is something to do
"""

from typing import Any, Dict, Optional


class NotevaultError(Exception):
    """Base exception for all domain errors.

    Attributes:
        message: Human readable error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "NOTEVAULT_ERROR"
        self.details = details or {}


class PermissionDenied(NotevaultError):
    """The caller's role does not allow the action."""

    status_code = 403

    def __init__(self, action: str, role: Optional[str], message: Optional[str] = None) -> None:
        super().__init__(
            message or f"Access denied: {action} is not allowed for role '{role}'",
            code="PERMISSION_DENIED",
            details={"action": action, "role": role},
        )
        self.action = action
        self.role = role


class InvalidArgument(NotevaultError):
    """Malformed or contradictory input (bad UUID, same source/target, ...)."""

    status_code = 400

    def __init__(self, message: str, field_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="INVALID_ARGUMENT",
            details={"field": field_name} if field_name else None,
        )
        self.field_name = field_name


class NotFound(NotevaultError):
    """The id does not resolve within the caller's visibility scope."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any = None, message: Optional[str] = None) -> None:
        super().__init__(
            message or f"{entity} with ID {entity_id} not found",
            code="NOT_FOUND",
            details={"entity": entity, "id": str(entity_id) if entity_id is not None else None},
        )
        self.entity = entity
        self.entity_id = entity_id


class InvalidState(NotevaultError):
    """The item is not in a state that allows the transition."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message, code="INVALID_STATE")


class Conflict(NotevaultError):
    """A concurrent change won the race, or a unique value is already taken."""

    status_code = 409

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFLICT")


class SchemaUnavailable(NotevaultError):
    """The database has not been migrated for this feature and there is no safe fallback."""

    status_code = 400

    def __init__(self, feature: str) -> None:
        super().__init__(
            f"{feature} functionality not available. Database migration required.",
            code="SCHEMA_UNAVAILABLE",
            details={"feature": feature},
        )
        self.feature = feature
