"""Project team (roster) endpoints."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_audit_sink, get_current_user, get_db, get_request_meta
from api.errors import InternalError
from models.project_member import ProjectMemberCreate, ProjectMemberResponse
from models.user import User
from services.audit import AuditSink, RequestMeta
from services.project_members_service import add_member, list_members, remove_member

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/projects/{project_id}/members", response_model=List[ProjectMemberResponse])
async def list_members_endpoint(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List the consultants on a project's team."""
    try:
        return await list_members(db, caller=current_user, project_id=project_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to list members of project %s", project_id)
        raise InternalError("Failed to fetch project members")


@router.post(
    "/projects/{project_id}/members",
    response_model=ProjectMemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_member_endpoint(
    project_id: UUID,
    payload: ProjectMemberCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Add a consultant to a project's team (admins only)."""
    try:
        return await add_member(
            db,
            audit,
            caller=current_user,
            project_id=project_id,
            consultant_id=payload.consultant_id,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Failed to add member to project %s", project_id)
        raise InternalError("Failed to add project member")


@router.delete(
    "/projects/{project_id}/members/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def remove_member_endpoint(
    project_id: UUID,
    member_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Remove a consultant from a project's team (admins only)."""
    try:
        await remove_member(
            db,
            audit,
            caller=current_user,
            project_id=project_id,
            member_id=member_id,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Failed to remove member %s from project %s", member_id, project_id)
        raise InternalError("Failed to remove project member")
