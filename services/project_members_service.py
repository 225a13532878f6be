"""Service layer for project rosters (consultant memberships).

The roster is the authorization fact consulted for consultants; changes take
effect on the caller's next request.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Conflict, NotFound, ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.project_member import ProjectMember
from models.user import Role, User
from repos import project_members_repo, users_repo
from services.audit import AuditEvent, AuditSink, RequestMeta
from services.project_access import evaluate_project_access

logger = logging.getLogger(__name__)


async def list_members(
    session: AsyncSession,
    *,
    caller: User,
    project_id: UUID,
) -> list[ProjectMember]:
    """List the roster of a project (any caller with access)."""
    await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    return await project_members_repo.list_by_project(session, project_id=project_id)


async def add_member(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    project_id: UUID,
    consultant_id: UUID,
    request_meta: RequestMeta | None = None,
) -> ProjectMember:
    """
    Put a consultant on a project's roster.

    Raises:
        Forbidden: Caller is not an admin
        NotFound: Project or consultant missing
        ValidationError: User is not a consultant
        Conflict: Consultant is already on the roster
    """
    grant = await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    grant.require_admin()

    consultant = await users_repo.get_by_id(session, user_id=consultant_id)
    if consultant is None:
        raise NotFound("Consultant not found")
    if consultant.role != Role.CONSULTANT.value:
        raise ValidationError("Only consultants can be added to a project team")

    if await project_members_repo.exists(
        session,
        project_id=project_id,
        consultant_id=consultant_id,
    ):
        raise Conflict("Consultant is already a member of this project")

    try:
        member = await project_members_repo.create(
            session,
            ProjectMember(project_id=project_id, consultant_id=consultant_id),
        )
        await session.commit()
    except IntegrityError:
        # Lost a race with a concurrent add of the same consultant
        await session.rollback()
        raise Conflict("Consultant is already a member of this project")

    logger.info("Consultant %s added to project %s", consultant_id, project_id)
    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.CREATE,
            entity_type=AuditEntity.TEAM_MEMBER,
            entity_id=member.id,
            entity_name=consultant.full_name or consultant.email,
            new_values={"project_id": project_id, "consultant_id": consultant_id},
            description=f"Added {consultant.email} to project team",
            meta=request_meta or RequestMeta(),
        )
    )
    return await project_members_repo.get_by_id(session, member_id=member.id)


async def remove_member(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    project_id: UUID,
    member_id: UUID,
    request_meta: RequestMeta | None = None,
) -> None:
    """
    Take a consultant off a project's roster.

    Raises:
        Forbidden: Caller is not an admin
        NotFound: Project missing, or the membership is not part of it
    """
    grant = await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    grant.require_admin()

    member = await project_members_repo.get_by_id(session, member_id=member_id)
    if member is None or member.project_id != project_id:
        raise NotFound("Project member not found")

    consultant_id = member.consultant_id
    await project_members_repo.delete(session, member)
    await session.commit()
    logger.info("Consultant %s removed from project %s", consultant_id, project_id)

    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.DELETE,
            entity_type=AuditEntity.TEAM_MEMBER,
            entity_id=member_id,
            old_values={"project_id": project_id, "consultant_id": consultant_id},
            description="Removed consultant from project team",
            meta=request_meta or RequestMeta(),
        )
    )
