"""Document request endpoints: listing, creation, template attachments and review."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import (
    get_audit_sink,
    get_current_user,
    get_db,
    get_object_storage,
    get_request_meta,
)
from api.errors import InternalError
from models.document_requirement import (
    DocumentRequirementCreate,
    DocumentRequirementResponse,
    DocumentRequirementWithFiles,
    ReviewRequest,
)
from models.upload import (
    AttachmentInitRequest,
    AttachmentInitResponse,
    SignedDownloadRequest,
    SignedDownloadResponse,
)
from models.user import User
from services import document_requests_service, review_service, uploads_service
from services.audit import AuditSink, RequestMeta
from services.storage import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/projects/{project_id}/document-requests",
    response_model=List[DocumentRequirementWithFiles],
)
async def list_document_requests_endpoint(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List a project's document requests with their submission history."""
    try:
        return await document_requests_service.list_document_requests(
            db,
            caller=current_user,
            project_id=project_id,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to list document requests of project %s", project_id)
        raise InternalError("Failed to fetch document requests")


@router.post(
    "/projects/{project_id}/document-requests",
    response_model=DocumentRequirementResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_document_request_endpoint(
    project_id: UUID,
    payload: DocumentRequirementCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Create a document request (admins and project consultants)."""
    try:
        return await document_requests_service.create_document_request(
            db,
            audit,
            caller=current_user,
            project_id=project_id,
            payload=payload,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Failed to create document request in project %s", project_id)
        raise InternalError("Failed to create document request")


@router.post(
    "/projects/{project_id}/document-requests/attachment/init",
    response_model=AttachmentInitResponse,
)
async def init_attachment_upload_endpoint(
    project_id: UUID,
    payload: AttachmentInitRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Get an upload placement for a template file to attach to a new request."""
    try:
        return await uploads_service.init_attachment_upload(
            db,
            storage,
            caller=current_user,
            project_id=project_id,
            name=payload.name,
            content_type=payload.content_type,
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to prepare attachment upload in project %s", project_id)
        raise InternalError("Failed to prepare upload")


@router.post(
    "/document-requests/{requirement_id}/attachment/signed-download",
    response_model=SignedDownloadResponse,
)
async def sign_attachment_download_endpoint(
    requirement_id: UUID,
    payload: SignedDownloadRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Get a short-lived download URL for a request's template attachment."""
    try:
        url, expires_in = await uploads_service.sign_attachment_download(
            db,
            storage,
            caller=current_user,
            requirement_id=requirement_id,
            expires_in=payload.expires_in if payload else None,
        )
        return SignedDownloadResponse(url=url, expires_in=expires_in)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to sign attachment of document request %s", requirement_id)
        raise InternalError("Failed to create download link")


@router.post(
    "/document-requests/{requirement_id}/review",
    response_model=DocumentRequirementResponse,
)
async def review_document_request_endpoint(
    requirement_id: UUID,
    payload: ReviewRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Approve or reject the current submission (a note is required to reject)."""
    try:
        return await review_service.decide(
            db,
            audit,
            caller=current_user,
            requirement_id=requirement_id,
            action=payload.action,
            note=payload.note,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception(
            "Failed to review document request %s (caller=%s)", requirement_id, current_user.id
        )
        raise InternalError("Failed to review document request")
