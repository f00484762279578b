"""
Authentication endpoints for login, logout and the current user.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.api.deps import get_auth_service, get_current_user
from agrihub.core.config import settings
from agrihub.core.database import get_db
from agrihub.core.logging import client_ip
from agrihub.core.rate_limiter import limiter
from agrihub.schemas.auth import (
    LoginRequest,
    PasswordChangeRequest,
    SessionUser,
    UserPublic,
)
from agrihub.services.audit import AuditAction, record_audit_event
from agrihub.services.auth import AuthService

router = APIRouter()


def _set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=token,
        max_age=60 * 60 * 24 * settings.SESSION_TTL_DAYS,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
        path="/",
    )


def _delete_auth_cookie(response: Response) -> None:
    response.delete_cookie(key=settings.AUTH_COOKIE_NAME, path="/")


@router.post("/login", response_model=UserPublic)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    response: Response,
    credentials: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Authenticate a user and set the session cookie.

    Unknown email, inactive account and wrong password all return the same 401.
    """
    ip_address = client_ip(request)
    user_agent = request.headers.get("user-agent", "unknown")

    result = await auth.login(credentials.email, credentials.password, ip_address, user_agent)
    if result is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    _set_auth_cookie(response, result.token)
    await record_audit_event(
        db,
        AuditAction.LOGIN,
        entity_type="session",
        user_id=result.user.id,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return result.user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    response: Response,
    current_user: SessionUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """Revoke the current session and clear the cookie."""
    await auth.logout(current_user)
    _delete_auth_cookie(response)
    await record_audit_event(
        db, AuditAction.LOGOUT, entity_type="session", user_id=current_user.id
    )


@router.get("/me", response_model=SessionUser)
async def get_current_user_info(current_user: SessionUser = Depends(get_current_user)):
    """Return the identity bound to the presented session."""
    return current_user


@router.post("/password", status_code=status.HTTP_204_NO_CONTENT)
async def change_password(
    payload: PasswordChangeRequest,
    response: Response,
    current_user: SessionUser = Depends(get_current_user),
    auth: AuthService = Depends(get_auth_service),
    db: AsyncSession = Depends(get_db),
):
    """
    Change the current user's password.

    Every session of the user, including this one, is revoked.
    """
    if not await auth.verify_user_password(current_user.id, payload.current_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    await auth.change_password(current_user.id, payload.new_password)
    _delete_auth_cookie(response)
    await record_audit_event(
        db,
        AuditAction.PASSWORD_CHANGE,
        entity_type="user",
        entity_id=current_user.id,
        user_id=current_user.id,
    )
