"""Project endpoints, scoped by the caller's role and project membership."""

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import get_audit_sink, get_current_user, get_db, get_request_meta
from api.errors import InternalError
from models.project import ProjectCreate, ProjectResponse
from models.user import User
from services.audit import AuditSink, RequestMeta
from services.projects_service import create_project, get_project, list_projects

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/projects", response_model=List[ProjectResponse])
async def list_projects_endpoint(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    List projects visible to the caller.

    Admins see every project, clients the ones they own, consultants the ones
    whose team they are on.
    """
    try:
        return await list_projects(db, caller=current_user)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to list projects for %s", current_user.id)
        raise InternalError("Failed to fetch projects")


@router.get("/projects/{project_id}", response_model=ProjectResponse)
async def get_project_endpoint(
    project_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Get a specific project by ID.

    Raises:
        404 if the project does not exist, 403 if the caller has no access.
    """
    try:
        return await get_project(db, caller=current_user, project_id=project_id)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Failed to fetch project %s", project_id)
        raise InternalError("Failed to fetch project")


@router.post("/projects", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project_endpoint(
    project_data: ProjectCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Create a project for a client (admins and consultants)."""
    try:
        return await create_project(
            db,
            audit,
            caller=current_user,
            payload=project_data,
            request_meta=meta,
        )
    except HTTPException:
        raise
    except Exception:
        await db.rollback()
        logger.exception("Failed to create project (caller=%s)", current_user.id)
        raise InternalError("Failed to create project")
