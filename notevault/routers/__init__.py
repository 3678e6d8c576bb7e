"""API routers package.

This package contains all FastAPI routers for the application.
Each router handles a specific domain of the API.
"""

from .admin import router as admin_router
from .auth import router as auth_router
from .notes import router as notes_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "auth_router",
    "notes_router",
    "users_router",
]
