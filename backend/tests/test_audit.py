"""Tests for the audit trail writer."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import select

from agrihub.models import AuditLog
from agrihub.services.audit import AuditAction, record_audit_event


@pytest.mark.asyncio
async def test_event_is_persisted(db_session, make_user):
    user = await make_user()

    await record_audit_event(
        db_session,
        AuditAction.USER_UPDATE,
        entity_type="user",
        entity_id=user.id,
        old_values={"role": "viewer"},
        new_values={"role": "editor"},
        user_id=user.id,
        ip_address="10.0.0.7",
    )

    entry = (await db_session.execute(select(AuditLog))).scalar_one()
    assert entry.action == "USER_UPDATE"
    assert entry.entity_id == user.id
    assert entry.new_values == {"role": "editor"}
    assert entry.ip_address == "10.0.0.7"


@pytest.mark.asyncio
async def test_write_failure_is_swallowed():
    db = MagicMock()
    db.commit = AsyncMock(side_effect=RuntimeError("audit table locked"))
    db.rollback = AsyncMock()

    await record_audit_event(db, AuditAction.LOGIN, entity_type="session")

    db.add.assert_called_once()
    db.rollback.assert_awaited_once()
