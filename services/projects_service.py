"""Service layer for Project business logic."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.project import Project, ProjectCreate
from models.project_member import ProjectMember
from models.user import Role, User
from repos import project_members_repo, projects_repo, users_repo
from services.audit import AuditEvent, AuditSink, RequestMeta
from services.project_access import (
    evaluate_project_access,
    list_visible_projects,
    require_global_role,
)

logger = logging.getLogger(__name__)


async def list_projects(session: AsyncSession, *, caller: User) -> list[Project]:
    """
    List the projects visible to the caller.

    Returns:
        List of projects, newest first
    """
    return await list_visible_projects(session, caller_id=caller.id)


async def get_project(session: AsyncSession, *, caller: User, project_id: UUID) -> Project:
    """
    Get a project by ID.

    Raises:
        NotFound: Project does not exist
        Forbidden: Caller has no access
    """
    await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    return await projects_repo.get_by_id(session, project_id=project_id)


async def create_project(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    payload: ProjectCreate,
    request_meta: RequestMeta | None = None,
) -> Project:
    """
    Create a new project for a client.

    A consultant creating a project is put on its roster so it keeps access.

    Args:
        session: Database session
        audit: Audit sink
        caller: Admin or consultant
        payload: Project creation data
        request_meta: Client network details for the audit record

    Returns:
        Created project

    Raises:
        Forbidden: Caller is a client
        ValidationError: client_id does not reference a client user
    """
    role = await require_global_role(
        session,
        caller_id=caller.id,
        allowed=(Role.ADMIN, Role.CONSULTANT),
    )

    client = await users_repo.get_by_id(session, user_id=payload.client_id)
    if client is None or client.role != Role.CLIENT.value:
        raise ValidationError("client_id must reference a client user")

    project = Project(
        title=payload.title,
        client_id=payload.client_id,
        status=payload.status.value,
        created_by=caller.id,
    )
    created_project = await projects_repo.create(session, project)

    if role is Role.CONSULTANT:
        await project_members_repo.create(
            session,
            ProjectMember(project_id=created_project.id, consultant_id=caller.id),
        )

    await session.commit()
    await session.refresh(created_project)
    logger.info("Project %s created by %s", created_project.id, caller.id)

    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.CREATE,
            entity_type=AuditEntity.PROJECT,
            entity_id=created_project.id,
            entity_name=created_project.title,
            new_values={
                "title": created_project.title,
                "client_id": created_project.client_id,
                "status": created_project.status,
            },
            description=f"Created project '{created_project.title}'",
            meta=request_meta or RequestMeta(),
        )
    )
    return created_project
