"""
FastAPI dependencies for authentication and service construction.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.core.config import settings
from agrihub.core.database import get_db
from agrihub.core.exceptions import AuthorizationError
from agrihub.core.repository import RecordStore
from agrihub.models.auth import UserRole
from agrihub.schemas.auth import SessionUser
from agrihub.services.auth import AuthService
from agrihub.services.product_import import ProductImportService

# Bearer header is accepted as an alternative to the auth cookie.
security_scheme = HTTPBearer(auto_error=False)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """AuthService bound to the request's database session."""
    return AuthService(db)


def get_import_service(db: AsyncSession = Depends(get_db)) -> ProductImportService:
    """ProductImportService bound to the request's database session."""
    return ProductImportService(RecordStore(db))


def session_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security_scheme),
) -> Optional[str]:
    """Token from the auth cookie, else from an Authorization: Bearer header."""
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


async def get_current_user(
    token: Optional[str] = Depends(session_token),
    auth: AuthService = Depends(get_auth_service),
) -> SessionUser:
    """
    Dependency resolving the request's session token to a live identity.

    Raises:
        HTTPException: 401 if the token is missing, invalid or revoked
    """
    identity = await auth.validate_session(token) if token else None
    if identity is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


def require_role(*allowed_roles: UserRole):
    """
    Dependency factory for role-based access control.

    Example:
        @router.get("/admin-only")
        async def admin_endpoint(user: SessionUser = Depends(require_role(UserRole.ADMIN))):
            ...
    """

    async def role_checker(user: SessionUser = Depends(get_current_user)) -> SessionUser:
        try:
            return AuthService.require_role(user, allowed_roles)
        except AuthorizationError:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Forbidden",
            )

    return role_checker
