"""
Password hashing and session token utilities using JWT.
"""

import hashlib
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Optional
from uuid import UUID

import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from agrihub.core.config import settings

# Password hashing
pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS,
)

# JWT configuration
ALGORITHM = "HS256"
SESSION_TOKEN_EXPIRE_DAYS = settings.SESSION_TTL_DAYS


class TokenPayload(BaseModel):
    """JWT session token payload structure."""

    user_id: UUID
    email: str
    role: str
    session_id: UUID
    exp: datetime


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


@lru_cache(maxsize=1)
def dummy_password_hash() -> str:
    """Hash checked when no user matches, so both failure paths cost the same."""
    return pwd_context.hash("agrihub-dummy-password")


def hash_token(token: str) -> str:
    """One-way hash of a full session token, as stored in the sessions table."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_session_token(
    user_id: UUID,
    email: str,
    role: str,
    session_id: UUID,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a signed session token bound to a server-side session.

    Args:
        user_id: Owning user id
        email: User email at issuance
        role: User role at issuance
        session_id: Id of the session row this token is bound to
        expires_delta: Optional custom validity window

    Returns:
        Encoded JWT token string
    """
    now = datetime.now(timezone.utc)
    if expires_delta is None:
        expires_delta = timedelta(days=SESSION_TOKEN_EXPIRE_DAYS)

    to_encode = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "sid": str(session_id),
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Optional[TokenPayload]:
    """
    Verify the signature and expiry of a session token.

    Returns:
        Decoded payload, or None if the token is forged, expired or malformed
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError:
        return None

    try:
        return TokenPayload(
            user_id=payload.get("sub"),
            email=payload.get("email"),
            role=payload.get("role"),
            session_id=payload.get("sid"),
            exp=payload.get("exp"),
        )
    except ValidationError:
        return None
