"""
Best-effort audit trail writer.
"""

import enum
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.models import AuditLog

logger = logging.getLogger(__name__)


class AuditAction(str, enum.Enum):
    """Administrative actions recorded in the audit trail."""

    LOGIN = "LOGIN"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    PRODUCT_BULK_UPLOAD = "PRODUCT_BULK_UPLOAD"
    USER_CREATE = "USER_CREATE"
    USER_UPDATE = "USER_UPDATE"


async def record_audit_event(
    db: AsyncSession,
    action: AuditAction | str,
    entity_type: str,
    entity_id: Optional[UUID] = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
    user_id: Optional[UUID] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> None:
    """
    Insert an audit log entry.

    Never raises: a failed write is rolled back and logged so the triggering
    operation is unaffected.
    """
    try:
        db.add(
            AuditLog(
                action=getattr(action, "value", action),
                entity_type=entity_type,
                entity_id=entity_id,
                old_values=old_values,
                new_values=new_values,
                user_id=user_id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
        await db.commit()
    except Exception as exc:
        logger.error("Failed to create audit log for %s: %s", action, exc)
        try:
            await db.rollback()
        except Exception:  # pragma: no cover - connection already gone
            logger.exception("Rollback after audit failure also failed")
