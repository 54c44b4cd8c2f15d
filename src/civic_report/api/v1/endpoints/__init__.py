"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .issues import router as issues_router
from .system import router as system_router

__all__ = [
    "admin_router",
    "issues_router",
    "system_router",
]
