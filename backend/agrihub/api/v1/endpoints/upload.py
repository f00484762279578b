"""
Bulk product upload endpoints.
"""

from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from agrihub.api.deps import get_import_service, require_role
from agrihub.core.config import settings
from agrihub.core.database import get_db
from agrihub.core.exceptions import ImportParseError, UnsupportedFileTypeError
from agrihub.models import UploadHistory
from agrihub.models.auth import UserRole
from agrihub.schemas.auth import SessionUser
from agrihub.schemas.imports import ImportResult, UploadHistoryResponse
from agrihub.services.audit import AuditAction, record_audit_event
from agrihub.services.product_import import ProductImportService

router = APIRouter()


@router.post("", response_model=ImportResult)
async def upload_products(
    file: UploadFile = File(...),
    importer: ProductImportService = Depends(get_import_service),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(require_role(*UserRole.at_least(UserRole.ADMIN))),
):
    """
    Import products from a CSV or XLSX file.

    Bad rows are reported individually and do not stop the run. The response
    lists at most ``IMPORT_ERROR_DISPLAY_LIMIT`` row errors; the upload history
    keeps them all.
    """
    filename = file.filename or ""
    extension = filename.rsplit(".", 1)[-1] if "." in filename else ""
    content = await file.read()

    try:
        result = await importer.import_file(
            content,
            filename=filename,
            file_type=extension,
            user_id=current_user.id,
        )
    except UnsupportedFileTypeError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    except ImportParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "File could not be parsed", "errors": exc.errors},
        )

    await record_audit_event(
        db,
        AuditAction.PRODUCT_BULK_UPLOAD,
        entity_type="upload",
        new_values={
            "filename": filename,
            "total": result.total_rows,
            "successful": result.successful_rows,
            "failed": result.failed_rows,
        },
        user_id=current_user.id,
    )
    return result.truncated(settings.IMPORT_ERROR_DISPLAY_LIMIT)


@router.get("/history", response_model=List[UploadHistoryResponse])
async def list_upload_history(
    limit: int = Query(50, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: SessionUser = Depends(require_role(*UserRole.at_least(UserRole.ADMIN))),
):
    """Recent bulk uploads, newest first."""
    stmt = select(UploadHistory).order_by(UploadHistory.created_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())
