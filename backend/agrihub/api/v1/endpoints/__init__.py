"""
Convenience exports for API v1 endpoint routers.

This allows ``from agrihub.api.v1.endpoints import auth_router`` style imports
used by the aggregate router module.
"""

from .health import router as health_router
from .auth import router as auth_router
from .users import router as users_router
from .upload import router as upload_router

__all__ = [
    "health_router",
    "auth_router",
    "users_router",
    "upload_router",
]
