"""Submitted file download endpoint."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_current_user, get_db, get_object_storage
from api.errors import InternalError
from models.upload import SignedDownloadRequest, SignedDownloadResponse
from models.user import User
from services import uploads_service
from services.storage import ObjectStorage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/files/{file_id}/signed-download", response_model=SignedDownloadResponse)
async def sign_file_download_endpoint(
    file_id: UUID,
    payload: SignedDownloadRequest | None = None,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    storage: ObjectStorage = Depends(get_object_storage),
):
    """Get a short-lived download URL for a submitted file."""
    try:
        url, expires_in = await uploads_service.sign_file_download(
            db,
            storage,
            caller=current_user,
            file_id=file_id,
            expires_in=payload.expires_in if payload else None,
        )
        return SignedDownloadResponse(url=url, expires_in=expires_in)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to sign download of file %s", file_id)
        raise InternalError("Failed to create download link")
