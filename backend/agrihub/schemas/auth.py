"""
Pydantic schemas for authentication, sessions and user management.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Optional
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from agrihub.models.auth import UserRole


def _check_email_format(value: str) -> str:
    # Validate only; the address is matched and stored exactly as typed.
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(str(exc)) from exc
    return value


EmailAddress = Annotated[str, AfterValidator(_check_email_format)]


class UserPublic(BaseModel):
    """User fields that are safe to hand to clients (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str
    role: str
    is_active: bool
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SessionUser(BaseModel):
    """Identity granted to a request that presented a live session token."""

    id: UUID
    email: str
    full_name: str
    role: str
    is_active: bool
    created_at: Optional[datetime] = None
    session_id: UUID


class LoginResult(BaseModel):
    """Successful login: the public user and the raw token, handed out once."""

    user: UserPublic
    token: str


# Request/Response Models
class LoginRequest(BaseModel):
    """Login credentials."""

    email: EmailAddress
    password: str = Field(..., min_length=1)


class PasswordChangeRequest(BaseModel):
    """Password change for the current user."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class UserCreate(BaseModel):
    """User creation request (super admin only)."""

    email: EmailAddress
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRole = UserRole.ADMIN


class UserUpdate(BaseModel):
    """User update request (super admin only)."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(None, min_length=8)
