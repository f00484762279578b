"""
Pytest configuration and fixtures.
"""
from typing import AsyncGenerator, Awaitable, Callable, Dict

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from agrihub.core.config import settings
from agrihub.core.database import Database
from agrihub.models import User, UserRole
from agrihub.services.auth import AuthService

DEFAULT_PASSWORD = "correct-horse-battery"


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[Database, None]:
    """In-memory SQLite database shared by every session of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db = Database("sqlite+aiosqlite://", engine=engine)
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """AsyncSession against the in-memory database."""
    async with database.session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    """Factory creating users through AuthService.create_user."""
    counter = {"n": 0}

    async def _make_user(
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        role: UserRole = UserRole.ADMIN,
        full_name: str = "Test User",
    ) -> User:
        counter["n"] += 1
        email = email or f"user{counter['n']}@agrihub.in"
        return await AuthService(db_session).create_user(email, password, full_name, role)

    return _make_user


@pytest_asyncio.fixture
async def api_client(database: Database) -> AsyncGenerator[AsyncClient, None]:
    """HTTPX AsyncClient configured against the FastAPI app with test overrides."""
    from agrihub.main import app
    from agrihub.core.rate_limiter import limiter

    limiter.reset()
    app.state.database = database

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client
    finally:
        del app.state.database
        limiter.reset()


@pytest_asyncio.fixture
async def login(api_client: AsyncClient) -> Callable[..., Awaitable[Dict[str, str]]]:
    """Log in through the API and return an Authorization header for the session.

    The cookie jar is cleared afterwards so that each call acts only through
    the header it returned.
    """

    async def _login(email: str, password: str = DEFAULT_PASSWORD) -> Dict[str, str]:
        response = await api_client.post(
            "/api/v1/auth/login", json={"email": email, "password": password}
        )
        assert response.status_code == 200, response.text
        token = response.cookies[settings.AUTH_COOKIE_NAME]
        api_client.cookies.clear()
        return {"Authorization": f"Bearer {token}"}

    return _login
