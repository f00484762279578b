"""
Tests for session tokens, the session/auth manager and role checks.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import jwt
import pytest
from sqlalchemy import select, text, update
from sqlalchemy.exc import DBAPIError

from agrihub.core.config import settings
from agrihub.core.exceptions import AuthorizationError
from agrihub.core.security import (
    ALGORITHM,
    create_session_token,
    decode_session_token,
    hash_password,
    hash_token,
    verify_password,
)
from agrihub.models import User, UserRole, UserSession
from agrihub.schemas.auth import SessionUser
from agrihub.services.auth import AuthService

from tests.conftest import DEFAULT_PASSWORD


class TestPasswordHashing:
    """Test password hashing and verification."""

    def test_hash_password_creates_hash(self):
        password = "secure_password123"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")

    def test_verify_password_succeeds_with_correct_password(self):
        hashed = hash_password("secure_password123")

        assert verify_password("secure_password123", hashed)

    def test_verify_password_fails_with_incorrect_password(self):
        hashed = hash_password("secure_password123")

        assert not verify_password("wrong_password", hashed)


class TestSessionTokens:
    """Test session token signing and verification."""

    def test_token_embeds_identity_and_session(self):
        user_id, session_id = uuid4(), uuid4()
        token = create_session_token(user_id, "a@agrihub.in", "admin", session_id)

        decoded = jwt.decode(token, options={"verify_signature": False})
        assert decoded["sub"] == str(user_id)
        assert decoded["email"] == "a@agrihub.in"
        assert decoded["role"] == "admin"
        assert decoded["sid"] == str(session_id)

    def test_token_expires_in_seven_days(self):
        token = create_session_token(uuid4(), "a@agrihub.in", "admin", uuid4())

        decoded = jwt.decode(token, options={"verify_signature": False})
        exp = datetime.fromtimestamp(decoded["exp"], tz=timezone.utc)
        now = datetime.now(timezone.utc)
        assert timedelta(days=6, hours=23) < (exp - now) < timedelta(days=7, hours=1)

    def test_decode_round_trips_payload(self):
        user_id, session_id = uuid4(), uuid4()
        token = create_session_token(user_id, "a@agrihub.in", "editor", session_id)

        payload = decode_session_token(token)

        assert payload is not None
        assert payload.user_id == user_id
        assert payload.session_id == session_id
        assert payload.role == "editor"

    def test_decode_rejects_expired_token(self):
        token = create_session_token(
            uuid4(), "a@agrihub.in", "admin", uuid4(), expires_delta=timedelta(hours=-1)
        )

        assert decode_session_token(token) is None

    def test_decode_rejects_wrong_secret(self):
        forged = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": "a@agrihub.in",
                "role": "super_admin",
                "sid": str(uuid4()),
                "exp": datetime.now(timezone.utc) + timedelta(days=1),
            },
            "wrong_secret_key",
            algorithm=ALGORITHM,
        )

        assert decode_session_token(forged) is None

    def test_decode_rejects_garbage_and_missing_claims(self):
        assert decode_session_token("invalid.jwt.token") is None
        assert decode_session_token("") is None

        no_sid = jwt.encode(
            {"sub": str(uuid4()), "exp": datetime.now(timezone.utc) + timedelta(days=1)},
            settings.SECRET_KEY,
            algorithm=ALGORITHM,
        )
        assert decode_session_token(no_sid) is None

    def test_hash_token_is_stable_sha256(self):
        assert hash_token("abc") == hash_token("abc")
        assert len(hash_token("abc")) == 64
        assert hash_token("abc") != hash_token("abd")


class TestLogin:
    """Login issues a token bound to a stored session."""

    @pytest.mark.asyncio
    async def test_login_returns_user_and_token(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in")

        result = await AuthService(db_session).login(
            "grower@agrihub.in", DEFAULT_PASSWORD, "10.0.0.1", "pytest"
        )

        assert result is not None
        assert result.user.id == user.id
        assert "password_hash" not in result.user.model_dump()
        assert result.user.last_login_at is not None

    @pytest.mark.asyncio
    async def test_login_stores_only_token_hash(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")

        result = await AuthService(db_session).login(
            "grower@agrihub.in", DEFAULT_PASSWORD, "10.0.0.1", "pytest"
        )

        payload = decode_session_token(result.token)
        session = await db_session.get(UserSession, payload.session_id)
        assert session is not None
        assert session.token_hash == hash_token(result.token)
        assert session.token_hash != result.token
        assert session.ip_address == "10.0.0.1"
        assert session.user_agent == "pytest"

    @pytest.mark.asyncio
    async def test_unknown_email_and_wrong_password_fail_identically(
        self, db_session, make_user
    ):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)

        unknown = await auth.login("nobody@agrihub.in", DEFAULT_PASSWORD)
        wrong = await auth.login("grower@agrihub.in", "not-the-password")

        assert unknown is None
        assert wrong is None
        assert unknown == wrong

    @pytest.mark.asyncio
    async def test_inactive_user_cannot_login(self, db_session, make_user):
        user = await make_user(email="retired@agrihub.in")
        user.is_active = False
        await db_session.commit()

        assert await AuthService(db_session).login("retired@agrihub.in", DEFAULT_PASSWORD) is None

    @pytest.mark.asyncio
    async def test_email_match_is_exact(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")

        assert await AuthService(db_session).login("Grower@agrihub.in", DEFAULT_PASSWORD) is None

    @pytest.mark.asyncio
    async def test_concurrent_sessions_are_allowed(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)

        first = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        second = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)

        assert await auth.validate_session(first.token) is not None
        assert await auth.validate_session(second.token) is not None

    @pytest.mark.asyncio
    async def test_failed_session_insert_leaves_last_login_unset(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in")
        user_id = user.id
        await db_session.execute(
            text(
                "CREATE TRIGGER sessions_offline BEFORE INSERT ON sessions "
                "BEGIN SELECT RAISE(ABORT, 'sessions offline'); END"
            )
        )
        await db_session.commit()

        with pytest.raises(DBAPIError):
            await AuthService(db_session).login("grower@agrihub.in", DEFAULT_PASSWORD)

        stored = await db_session.scalar(select(User.last_login_at).where(User.id == user_id))
        assert stored is None


class TestValidateSession:
    """Both the signature and the session row must agree."""

    @pytest.mark.asyncio
    async def test_validate_after_login_returns_bound_identity(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in", role=UserRole.EDITOR)
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)

        identity = await auth.validate_session(result.token)

        assert identity is not None
        assert identity.id == user.id
        assert identity.role == "editor"
        assert identity.session_id == decode_session_token(result.token).session_id

    @pytest.mark.asyncio
    async def test_forged_token_rejected_without_database(self):
        db = MagicMock()
        db.execute = AsyncMock(side_effect=AssertionError("database must not be queried"))
        forged = jwt.encode(
            {
                "sub": str(uuid4()),
                "email": "x@agrihub.in",
                "role": "super_admin",
                "sid": str(uuid4()),
                "exp": datetime.now(timezone.utc) + timedelta(days=1),
            },
            "attacker-secret",
            algorithm=ALGORITHM,
        )

        assert await AuthService(db).validate_session(forged) is None
        db.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_session_row_revokes_signed_token(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        session_id = decode_session_token(result.token).session_id

        deleted = await auth.store.delete_by_id(UserSession, session_id)

        assert deleted is True
        assert decode_session_token(result.token) is not None
        assert await auth.validate_session(result.token) is None

    @pytest.mark.asyncio
    async def test_expired_session_row_is_rejected(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        session_id = decode_session_token(result.token).session_id

        await db_session.execute(
            update(UserSession)
            .where(UserSession.id == session_id)
            .values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await db_session.commit()

        assert await auth.validate_session(result.token) is None

    @pytest.mark.asyncio
    async def test_token_for_same_session_with_other_payload_is_rejected(
        self, db_session, make_user
    ):
        user = await make_user(email="grower@agrihub.in", role=UserRole.VIEWER)
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        session_id = decode_session_token(result.token).session_id

        escalated = create_session_token(user.id, user.email, "super_admin", session_id)

        assert await auth.validate_session(escalated) is None
        assert await auth.validate_session(result.token) is not None

    @pytest.mark.asyncio
    async def test_deactivated_user_session_is_rejected(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)

        user.is_active = False
        await db_session.commit()

        assert await auth.validate_session(result.token) is None


class TestRevocation:
    """Logout and password changes end sessions immediately."""

    @pytest.mark.asyncio
    async def test_logout_invalidates_token(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        identity = await auth.validate_session(result.token)

        await auth.logout(identity)

        assert await auth.validate_session(result.token) is None

    @pytest.mark.asyncio
    async def test_logout_is_idempotent(self, db_session, make_user):
        await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        result = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        identity = await auth.validate_session(result.token)

        await auth.logout(identity)
        await auth.logout(identity)

        assert await auth.validate_session(result.token) is None

    @pytest.mark.asyncio
    async def test_change_password_revokes_every_session(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in")
        other = await make_user(email="other@agrihub.in")
        auth = AuthService(db_session)
        first = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        second = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        bystander = await auth.login("other@agrihub.in", DEFAULT_PASSWORD)

        await auth.change_password(user.id, "a-brand-new-password")

        assert await auth.validate_session(first.token) is None
        assert await auth.validate_session(second.token) is None
        assert (await auth.validate_session(bystander.token)).id == other.id
        assert await auth.login("grower@agrihub.in", DEFAULT_PASSWORD) is None
        assert await auth.login("grower@agrihub.in", "a-brand-new-password") is not None

    @pytest.mark.asyncio
    async def test_purge_expired_sessions_keeps_live_ones(self, db_session, make_user):
        user = await make_user(email="grower@agrihub.in")
        auth = AuthService(db_session)
        live = await auth.login("grower@agrihub.in", DEFAULT_PASSWORD)
        await auth.store.insert(
            UserSession,
            {
                "id": uuid4(),
                "user_id": user.id,
                "token_hash": hash_token("stale"),
                "expires_at": datetime.now(timezone.utc) - timedelta(days=1),
            },
        )

        removed = await auth.purge_expired_sessions()

        assert removed == 1
        remaining = (await db_session.execute(select(UserSession))).scalars().all()
        assert len(remaining) == 1
        assert await auth.validate_session(live.token) is not None


class TestRoleBasedAccessControl:
    """Test role checks and the role ordering."""

    @staticmethod
    def _identity(role: str) -> SessionUser:
        return SessionUser(
            id=uuid4(),
            email=f"{role}@agrihub.in",
            full_name=role,
            role=role,
            is_active=True,
            session_id=uuid4(),
        )

    def test_require_role_allows_listed_role(self):
        identity = self._identity("admin")

        assert AuthService.require_role(identity, [UserRole.ADMIN]) is identity

    def test_require_role_accepts_plain_strings(self):
        identity = self._identity("editor")

        assert AuthService.require_role(identity, ["admin", "editor"]) is identity

    def test_require_role_denies_unlisted_role(self):
        with pytest.raises(AuthorizationError) as exc:
            AuthService.require_role(self._identity("viewer"), [UserRole.ADMIN])

        assert exc.value.role == "viewer"
        assert exc.value.allowed_roles == ["admin"]

    def test_at_least_follows_privilege_order(self):
        assert UserRole.at_least(UserRole.SUPER_ADMIN) == [UserRole.SUPER_ADMIN]
        assert UserRole.at_least("admin") == [UserRole.SUPER_ADMIN, UserRole.ADMIN]
        assert UserRole.at_least(UserRole.VIEWER) == list(UserRole)

    def test_role_values(self):
        assert UserRole.values() == ["super_admin", "admin", "editor", "viewer"]


@pytest.mark.asyncio
async def test_create_user_hashes_password(db_session):
    user = await AuthService(db_session).create_user(
        "new@agrihub.in", "plain-password", "New User", "viewer"
    )

    stored = (await db_session.execute(select(User).where(User.id == user.id))).scalar_one()
    assert stored.password_hash != "plain-password"
    assert verify_password("plain-password", stored.password_hash)
    assert stored.role == "viewer"
    assert stored.is_active is True
