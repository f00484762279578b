"""Periodic sweep of expired login sessions."""

import asyncio
import logging

from agrihub.core.database import Database
from agrihub.services.auth import AuthService

logger = logging.getLogger(__name__)


async def run_session_cleanup(database: Database) -> int:
    """Delete expired session rows once; returns how many were removed."""
    async with database.session() as db:
        removed = await AuthService(db).purge_expired_sessions()
    if removed:
        logger.info("Purged %s expired session(s)", removed)
    return removed


async def session_cleanup_loop(database: Database, interval_seconds: int) -> None:
    """Run the sweep every ``interval_seconds`` until cancelled."""
    while True:
        try:
            await run_session_cleanup(database)
        except Exception as exc:
            logger.error("Session cleanup failed: %s", exc)
        await asyncio.sleep(interval_seconds)
