"""
API v1 router - aggregates all endpoint routers.
"""

from fastapi import APIRouter

from agrihub.api.v1.endpoints import (
    auth_router,
    health_router,
    upload_router,
    users_router,
)

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(users_router, prefix="/admin/users", tags=["users"])
api_router.include_router(upload_router, prefix="/admin/upload", tags=["upload"])
