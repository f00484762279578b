"""
Bulk product import.

Coordinates tabular parsing, per-row mapping/validation and per-row inserts,
then records an UploadHistory entry. Rows are independent: a row that fails
validation or persistence is reported and the run moves on. Only a file that
cannot be parsed at all is rejected as a whole.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union
from uuid import UUID

from sqlalchemy.exc import DBAPIError

from agrihub.core.metrics import record_import_rows
from agrihub.core.repository import RecordStore
from agrihub.models import Product, UploadHistory
from agrihub.schemas.imports import ImportResult, RowError
from agrihub.services.tabular import Row, normalize_file_type, parse_rows

logger = logging.getLogger(__name__)

# Normalized header -> canonical product field.
FIELD_ALIASES: Dict[str, str] = {
    "company_name": "company_name",
    "company": "company_name",
    "product_name": "product_name",
    "product": "product_name",
    "brand_name": "brand_name",
    "brand": "brand_name",
    "product_description": "product_description",
    "description": "product_description",
    "product_type": "product_type",
    "type": "product_type",
    "sub_type": "sub_type",
    "subtype": "sub_type",
    "applied_seasons": "applied_seasons",
    "seasons": "applied_seasons",
    "suitable_crops": "suitable_crops",
    "crops": "suitable_crops",
    "benefits": "benefits",
    "dosage": "dosage",
    "application_method": "application_method",
    "pack_sizes": "pack_sizes",
    "price_range": "price_range",
    "available_states": "available_states",
    "states": "available_states",
    "organic_certified": "organic_certified",
    "organic": "organic_certified",
    "iso_certified": "iso_certified",
    "iso": "iso_certified",
    "govt_approved": "govt_approved",
    "government_approved": "govt_approved",
    "product_image_url": "product_image_url",
    "image_url": "product_image_url",
    "source_url": "source_url",
    "notes": "notes",
}

REQUIRED_FIELDS = ("company_name", "product_name")
ARRAY_FIELDS = ("applied_seasons", "suitable_crops", "pack_sizes", "available_states")
BOOLEAN_FIELDS = ("organic_certified", "iso_certified", "govt_approved")
TRUTHY_VALUES = frozenset({"true", "yes", "1", "y"})

_WHITESPACE = re.compile(r"\s+")
_LIST_SEPARATORS = re.compile(r"[,;|]")


class RowValidationError(ValueError):
    """Raised when a single row cannot become a product."""


def normalize_header(header: str) -> str:
    """Lowercase, trim and collapse inner whitespace runs to underscores."""
    return _WHITESPACE.sub("_", header.lower().strip())


def parse_array_field(value: Optional[str]) -> List[str]:
    """Split on comma, semicolon or pipe; trim pieces and drop empty ones."""
    if not value:
        return []
    return [piece.strip() for piece in _LIST_SEPARATORS.split(value) if piece.strip()]


def parse_boolean_field(value: Optional[str]) -> bool:
    """Permissive coercion: only true/yes/1/y (any case) count as True."""
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY_VALUES


def map_row(raw: Row) -> Dict[str, Any]:
    """
    Map one raw row to canonical product fields.

    Unknown columns are dropped. When two headers alias the same field the
    right-most column wins.

    Raises:
        RowValidationError: company_name or product_name missing or empty
    """
    mapped: Dict[str, Any] = {}
    for key, value in raw.items():
        field = FIELD_ALIASES.get(normalize_header(key))
        if field:
            mapped[field] = value

    missing = [field for field in REQUIRED_FIELDS if not mapped.get(field)]
    if missing:
        raise RowValidationError(f"Missing required field(s): {', '.join(missing)}")

    for field in ARRAY_FIELDS:
        if isinstance(mapped.get(field), str):
            mapped[field] = parse_array_field(mapped[field])

    for field in BOOLEAN_FIELDS:
        mapped[field] = parse_boolean_field(mapped.get(field))

    return mapped


class ProductImportService:
    """Turns an uploaded table into products plus a per-row error report."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def import_file(
        self,
        content: Union[bytes, str],
        *,
        filename: str,
        file_type: str,
        user_id: UUID,
    ) -> ImportResult:
        """
        Import every row of ``content`` as a product owned by ``user_id``.

        Raises:
            UnsupportedFileTypeError: ``file_type`` is not csv or xlsx
            ImportParseError: the file is structurally unreadable; nothing is
                stored and no history is written
            Exception: writing the UploadHistory record failed
        """
        file_type = normalize_file_type(file_type)
        rows = parse_rows(content, file_type)

        result = await self.import_rows(rows, user_id=user_id)

        await self.store.insert(
            UploadHistory,
            {
                "user_id": user_id,
                "filename": filename,
                "file_type": file_type,
                "total_rows": result.total_rows,
                "successful_rows": result.successful_rows,
                "failed_rows": result.failed_rows,
                "error_log": [error.model_dump() for error in result.errors] or None,
            },
        )

        record_import_rows("success", result.successful_rows)
        record_import_rows("failure", result.failed_rows)
        logger.info(
            "Import of %s finished total=%s successful=%s failed=%s",
            filename,
            result.total_rows,
            result.successful_rows,
            result.failed_rows,
        )
        return result

    async def import_rows(self, rows: List[Row], *, user_id: UUID) -> ImportResult:
        """Process already-parsed rows one at a time, in order."""
        errors: List[RowError] = []
        successful = 0

        for index, raw in enumerate(rows):
            row_number = index + 2  # header is line 1
            ok, message = await self._import_row(raw, user_id)
            if ok:
                successful += 1
            else:
                logger.debug("Import row %s failed: %s", row_number, message)
                errors.append(RowError(row=row_number, message=message))

        return ImportResult(
            total_rows=len(rows),
            successful_rows=successful,
            failed_rows=len(errors),
            errors=errors,
        )

    async def _import_row(self, raw: Row, user_id: UUID) -> Tuple[bool, str]:
        try:
            fields = map_row(raw)
            fields["created_by"] = user_id
            fields["updated_by"] = user_id
            await self.store.insert(Product, fields)
        except DBAPIError as exc:
            # Driver message only; the statement and bound parameters stay out of the report.
            return False, str(exc.orig) or "Unknown error"
        except Exception as exc:
            return False, str(exc) or "Unknown error"
        return True, ""
