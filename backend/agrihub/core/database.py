"""
Database configuration and session management.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool

Base = declarative_base()


class Database:
    """Owns the async engine and session factory for the process lifetime."""

    def __init__(
        self,
        url: str,
        *,
        echo: bool = False,
        pool_size: Optional[int] = None,
        pool_timeout: Optional[int] = None,
        engine: Optional[AsyncEngine] = None,
    ):
        if engine is None:
            options = {"echo": echo, "pool_pre_ping": True}
            if url.startswith("postgresql"):
                if pool_size:
                    options["pool_size"] = pool_size
                if pool_timeout:
                    options["pool_timeout"] = pool_timeout
            elif url.startswith("sqlite"):
                options.pop("pool_pre_ping")
                options["poolclass"] = NullPool
            engine = create_async_engine(url, **options)

        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )

    def session(self) -> AsyncSession:
        """Open a new AsyncSession bound to this engine."""
        return self.session_factory()

    async def create_all(self) -> None:
        """Create all tables known to the ORM metadata."""
        # Ensure models are imported so metadata is populated.
        import agrihub.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Drain the connection pool."""
        await self.engine.dispose()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
