"""
Session/auth manager.

A login issues a signed token and a server-side session row holding only the
token's hash. A token is honoured only while both agree: the signature and
embedded expiry must verify, and a matching, unexpired session row owned by an
active user must still exist. Deleting the row revokes the token immediately.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
from uuid import UUID, uuid4

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from agrihub.core.exceptions import AuthorizationError
from agrihub.core.metrics import record_login_attempt
from agrihub.core.repository import RecordStore
from agrihub.core.security import (
    SESSION_TOKEN_EXPIRE_DAYS,
    create_session_token,
    decode_session_token,
    dummy_password_hash,
    hash_password,
    hash_token,
    verify_password,
)
from agrihub.models.auth import User, UserRole, UserSession
from agrihub.schemas.auth import LoginResult, SessionUser, UserPublic

logger = logging.getLogger(__name__)


def _check_password(password: str, password_hash: Optional[str]) -> bool:
    # Unknown users still pay for one bcrypt comparison.
    if password_hash is None:
        verify_password(password, dummy_password_hash())
        return False
    return verify_password(password, password_hash)


class AuthService:
    """Issues, validates and revokes login sessions."""

    def __init__(self, db: AsyncSession, store: Optional[RecordStore] = None):
        self.db = db
        self.store = store or RecordStore(db)

    async def login(
        self,
        email: str,
        password: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[LoginResult]:
        """
        Authenticate an active user and open a new session.

        Returns:
            LoginResult with the raw token, or None for any credential failure.
            Unknown email, inactive user and wrong password are not distinguished.
        """
        stmt = select(User).where(User.email == email, User.is_active.is_(True))
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()

        password_hash = user.password_hash if user is not None else None
        if not await run_in_threadpool(_check_password, password, password_hash):
            logger.warning("Login failed: invalid credentials")
            record_login_attempt("failure")
            return None

        # Committed together with the session row.
        user.last_login_at = datetime.now(timezone.utc)
        token = await self.create_session(user, ip_address, user_agent)
        record_login_attempt("success")
        logger.info("User logged in: %s", user.id)
        return LoginResult(user=UserPublic.model_validate(user), token=token)

    async def create_session(
        self,
        user: User,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> str:
        """Mint a session id, sign a token for it and persist the token hash."""
        session_id = uuid4()
        ttl = timedelta(days=SESSION_TOKEN_EXPIRE_DAYS)
        expires_at = datetime.now(timezone.utc) + ttl

        token = create_session_token(
            user_id=user.id,
            email=user.email,
            role=user.role,
            session_id=session_id,
            expires_delta=ttl,
        )
        await self.store.insert(
            UserSession,
            {
                "id": session_id,
                "user_id": user.id,
                "token_hash": hash_token(token),
                "ip_address": ip_address,
                "user_agent": user_agent,
                "expires_at": expires_at,
            },
        )
        return token

    async def validate_session(self, token: str) -> Optional[SessionUser]:
        """
        Resolve a token to a live identity.

        The signature is checked first, so forged or expired tokens never reach
        the database.
        """
        payload = decode_session_token(token)
        if payload is None:
            return None

        stmt = (
            select(UserSession, User)
            .join(User, UserSession.user_id == User.id)
            .where(
                UserSession.id == payload.session_id,
                UserSession.token_hash == hash_token(token),
                UserSession.expires_at > datetime.now(timezone.utc),
            )
        )
        result = await self.db.execute(stmt)
        row = result.first()
        if row is None:
            return None

        session, user = row
        if not user.is_active:
            return None

        return SessionUser(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            session_id=session.id,
        )

    async def logout(self, identity: SessionUser) -> None:
        """Revoke the identity's session. Idempotent."""
        await self.db.execute(
            delete(UserSession).where(UserSession.id == identity.session_id)
        )
        await self.db.commit()
        logger.info("Session %s closed for user %s", identity.session_id, identity.id)

    async def change_password(self, user_id: UUID, new_password: str) -> None:
        """Store a new password hash and revoke every session of the user."""
        password_hash = await run_in_threadpool(hash_password, new_password)
        await self.db.execute(
            update(User).where(User.id == user_id).values(password_hash=password_hash)
        )
        await self.db.execute(delete(UserSession).where(UserSession.user_id == user_id))
        await self.db.commit()
        logger.info("Password changed for user %s; all sessions revoked", user_id)

    async def verify_user_password(self, user_id: UUID, password: str) -> bool:
        """Check ``password`` against the stored hash of ``user_id``."""
        result = await self.db.execute(select(User.password_hash).where(User.id == user_id))
        password_hash = result.scalar_one_or_none()
        return await run_in_threadpool(_check_password, password, password_hash)

    async def revoke_user_sessions(self, user_id: UUID) -> int:
        """Delete every session owned by ``user_id``."""
        result = await self.db.execute(
            delete(UserSession).where(UserSession.user_id == user_id)
        )
        await self.db.commit()
        return result.rowcount or 0

    async def purge_expired_sessions(self) -> int:
        """Delete session rows whose expiry has passed."""
        result = await self.db.execute(
            delete(UserSession).where(UserSession.expires_at <= datetime.now(timezone.utc))
        )
        await self.db.commit()
        return result.rowcount or 0

    async def create_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role: UserRole | str = UserRole.ADMIN,
    ) -> User:
        """
        Create a user with a hashed password.

        Raises:
            sqlalchemy.exc.IntegrityError: email already registered
        """
        password_hash = await run_in_threadpool(hash_password, password)
        return await self.store.insert(
            User,
            {
                "email": email,
                "password_hash": password_hash,
                "full_name": full_name,
                "role": UserRole(role).value,
            },
        )

    @staticmethod
    def require_role(
        identity: SessionUser, allowed_roles: Iterable[UserRole | str]
    ) -> SessionUser:
        """
        Return ``identity`` if its role is one of ``allowed_roles``.

        Raises:
            AuthorizationError: role not permitted
        """
        allowed = [UserRole(role) for role in allowed_roles]
        if identity.role not in [role.value for role in allowed]:
            raise AuthorizationError(identity.role, allowed)
        return identity
