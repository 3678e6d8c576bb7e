"""Business logic services.

Only the leaf modules (errors, role policy, schema capabilities) are
re-exported here; repositories import them, so pulling the request-scoped
services in at package import time would create an import cycle. Import
those from their modules (e.g. `from notevault.services.lifecycle_service
import ContentLifecycleService`).
"""

from .errors import (
    Conflict,
    InvalidArgument,
    InvalidState,
    NotevaultError,
    NotFound,
    PermissionDenied,
    SchemaUnavailable,
)
from .permission_service import (
    Action,
    Caller,
    PermissionService,
    PolicyMode,
    Role,
    VisibilityScope,
    get_permission_service,
)
from .schema_capabilities import (
    SchemaCapabilities,
    detect_schema_capabilities,
    get_schema_capabilities,
)

__all__ = [
    # Errors
    "Conflict",
    "InvalidArgument",
    "InvalidState",
    "NotevaultError",
    "NotFound",
    "PermissionDenied",
    "SchemaUnavailable",
    # Permission service
    "Action",
    "Caller",
    "PermissionService",
    "PolicyMode",
    "Role",
    "VisibilityScope",
    "get_permission_service",
    # Schema capabilities
    "SchemaCapabilities",
    "detect_schema_capabilities",
    "get_schema_capabilities",
]
