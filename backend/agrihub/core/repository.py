"""
Generic keyed-record store used by the import engine and handlers.

Every call is its own transaction; there is no multi-record unit of work.
"""

import logging
from typing import Any, Dict, FrozenSet, Mapping, Optional, Type, TypeVar
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.core.exceptions import UnknownFieldError
from agrihub.models import AuditLog, Product, UploadHistory, User, UserSession

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT")

# Columns a caller may set on insert. Server-managed columns such as
# timestamps and view counters are not listed.
INSERTABLE_FIELDS: Dict[type, FrozenSet[str]] = {
    Product: frozenset(
        {
            "company_name",
            "product_name",
            "brand_name",
            "product_description",
            "product_type",
            "sub_type",
            "applied_seasons",
            "suitable_crops",
            "benefits",
            "dosage",
            "application_method",
            "pack_sizes",
            "price_range",
            "available_states",
            "organic_certified",
            "iso_certified",
            "govt_approved",
            "product_image_url",
            "source_url",
            "notes",
            "is_active",
            "custom_fields",
            "created_by",
            "updated_by",
        }
    ),
    UploadHistory: frozenset(
        {
            "user_id",
            "filename",
            "file_type",
            "total_rows",
            "successful_rows",
            "failed_rows",
            "error_log",
        }
    ),
    User: frozenset({"email", "password_hash", "full_name", "role", "is_active"}),
    UserSession: frozenset(
        {"id", "user_id", "token_hash", "ip_address", "user_agent", "expires_at"}
    ),
    AuditLog: frozenset(
        {
            "user_id",
            "action",
            "entity_type",
            "entity_id",
            "old_values",
            "new_values",
            "ip_address",
            "user_agent",
        }
    ),
}


class RecordStore:
    """Thin insert/find/delete facade over an AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def check_fields(model: type, fields: Mapping[str, Any]) -> None:
        """Raise UnknownFieldError if ``fields`` strays outside the allow-list."""
        allowed = INSERTABLE_FIELDS.get(model)
        if allowed is None:
            raise UnknownFieldError(model.__tablename__, fields.keys())
        unknown = set(fields) - allowed
        if unknown:
            raise UnknownFieldError(model.__tablename__, unknown)

    async def insert(self, model: Type[ModelT], fields: Mapping[str, Any]) -> ModelT:
        """
        Insert and commit one record.

        Raises:
            UnknownFieldError: ``fields`` names a column that is not insertable
            sqlalchemy.exc.SQLAlchemyError: the database rejected the row
        """
        self.check_fields(model, fields)
        record = model(**fields)
        self.db.add(record)
        try:
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        await self.db.refresh(record)
        return record

    async def find_one(self, model: Type[ModelT], **criteria: Any) -> Optional[ModelT]:
        """Return the first record whose columns equal ``criteria``."""
        stmt = select(model).filter_by(**criteria).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_by_id(self, model: type, record_id: UUID) -> bool:
        """Delete a record by primary key; returns False if nothing matched."""
        stmt = delete(model).where(model.id == record_id)
        result = await self.db.execute(stmt)
        await self.db.commit()
        deleted = bool(result.rowcount)
        if not deleted:
            logger.debug("No %s row with id %s to delete", model.__tablename__, record_id)
        return deleted
