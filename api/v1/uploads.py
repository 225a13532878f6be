"""Two-phase upload endpoints for document request submissions."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    get_audit_sink,
    get_current_user,
    get_db,
    get_object_storage,
    get_request_meta,
)
from api.errors import InternalError
from models.upload import (
    UploadCompleteRequest,
    UploadCompleteResponse,
    UploadInitRequest,
    UploadInitResponse,
)
from models.user import User
from services import uploads_service
from services.audit import AuditSink, RequestMeta
from services.storage import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/document-requests/{requirement_id}/uploads/init",
    response_model=UploadInitResponse,
)
async def init_upload_endpoint(
    requirement_id: UUID,
    payload: UploadInitRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """
    Phase 1: get one signed upload URL per file.

    The client PUTs each file to its ``upload_url`` and then calls
    ``/uploads/complete`` with the returned storage paths and version number.
    """
    try:
        return await uploads_service.init_upload(
            db,
            storage,
            caller=current_user,
            requirement_id=requirement_id,
            files=payload.files,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception(
            "Upload init failed (requirement=%s caller=%s)", requirement_id, current_user.id
        )
        raise InternalError("Failed to prepare upload")


@router.post(
    "/document-requests/{requirement_id}/uploads/complete",
    response_model=UploadCompleteResponse,
)
async def complete_upload_endpoint(
    requirement_id: UUID,
    payload: UploadCompleteRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Phase 2: record the uploaded files as a new version and submit for review."""
    try:
        return await uploads_service.complete_upload(
            db,
            audit,
            caller=current_user,
            requirement_id=requirement_id,
            version_number=payload.version_number,
            files=payload.files,
            batch_id=payload.batch_id,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception(
            "Upload completion failed (requirement=%s caller=%s)", requirement_id, current_user.id
        )
        raise InternalError("Failed to record upload")
