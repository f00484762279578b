"""Pydantic schemas for bulk product imports."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RowError(BaseModel):
    """A failure attributable to one input row (1-based, header is row 1)."""

    row: int
    message: str


class ImportResult(BaseModel):
    """Aggregate outcome of one import run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_rows: int = 0
    successful_rows: int = 0
    failed_rows: int = 0
    errors: List[RowError] = Field(default_factory=list)

    def truncated(self, limit: int) -> "ImportResult":
        """Copy of this result listing at most ``limit`` row errors."""
        return self.model_copy(update={"errors": self.errors[:limit]})


class UploadHistoryResponse(BaseModel):
    """Upload history entry as listed to admins."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    filename: str
    file_type: str
    total_rows: int
    successful_rows: int
    failed_rows: int
    error_log: Optional[List[RowError]] = None
    created_at: datetime
