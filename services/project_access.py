"""Project access evaluation - the single multi-tenant isolation chokepoint.

Rules:
- admin: any project
- client: only projects it owns (projects.client_id)
- consultant: only projects whose roster (project_members) lists it

This is the only module that branches on ``Role``. Everything downstream gets
an ``AccessGrant`` for one project and asks it for capabilities. Grants are
built per request and never cached, since ownership and rosters change.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Forbidden, InternalError, NotFound, RoleLookupFailed
from models.user import Role
from repos import project_members_repo, projects_repo, users_repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessGrant:
    """Capability token: ``caller_id`` may act on ``project_id`` as ``tier``."""

    project_id: UUID
    caller_id: UUID
    tier: Role

    @property
    def is_admin(self) -> bool:
        return self.tier is Role.ADMIN

    @property
    def can_edit(self) -> bool:
        """May create/edit structural content (requirements, reviews)."""
        return self.tier in (Role.ADMIN, Role.CONSULTANT)

    @property
    def can_delete(self) -> bool:
        """May delete structural content or users."""
        return self.tier is Role.ADMIN

    def require_editor(self) -> "AccessGrant":
        if not self.can_edit:
            raise Forbidden()
        return self

    def require_admin(self) -> "AccessGrant":
        if not self.can_delete:
            raise Forbidden()
        return self


async def resolve_role(session: AsyncSession, *, caller_id: UUID) -> Role | None:
    """
    Look up the caller's global role.

    Returns:
        Role, or None when the stored role is not one of the known values

    Raises:
        RoleLookupFailed: If the lookup errors or the profile does not exist
    """
    try:
        raw_role = await users_repo.get_role(session, user_id=caller_id)
    except SQLAlchemyError:
        logger.exception("Role lookup failed for caller %s", caller_id)
        raise RoleLookupFailed()

    if not raw_role:
        logger.error("No profile role for caller %s", caller_id)
        raise RoleLookupFailed()

    try:
        return Role(raw_role)
    except ValueError:
        return None


async def evaluate_project_access(
    session: AsyncSession,
    *,
    project_id: UUID,
    caller_id: UUID,
    must_exist: bool = True,
) -> AccessGrant:
    """
    Decide whether ``caller_id`` may act on ``project_id``.

    Args:
        session: Database session
        project_id: Project the operation targets
        caller_id: Authenticated caller
        must_exist: For admins, also verify that the project exists. Callers
            that derived ``project_id`` from a loaded row pass False.

    Returns:
        AccessGrant for the project

    Raises:
        RoleLookupFailed: Role could not be resolved (500)
        NotFound: Project does not exist (404)
        Forbidden: Caller lacks access (403)
        InternalError: Ownership or membership lookup failed (500)
    """
    role = await resolve_role(session, caller_id=caller_id)

    try:
        if role is Role.ADMIN:
            if must_exist and await projects_repo.get_client_id(session, project_id=project_id) is None:
                raise NotFound("Project not found")
            return AccessGrant(project_id=project_id, caller_id=caller_id, tier=Role.ADMIN)

        client_id = await projects_repo.get_client_id(session, project_id=project_id)
        if client_id is None:
            raise NotFound("Project not found")

        if role is Role.CLIENT:
            if client_id != caller_id:
                logger.info("Client %s denied access to project %s", caller_id, project_id)
                raise Forbidden()
            return AccessGrant(project_id=project_id, caller_id=caller_id, tier=Role.CLIENT)

        if role is Role.CONSULTANT:
            is_member = await project_members_repo.exists(
                session,
                project_id=project_id,
                consultant_id=caller_id,
            )
            if not is_member:
                logger.info("Consultant %s denied access to project %s", caller_id, project_id)
                raise Forbidden()
            return AccessGrant(project_id=project_id, caller_id=caller_id, tier=Role.CONSULTANT)
    except SQLAlchemyError:
        logger.exception(
            "Project access lookup failed (project=%s caller=%s)", project_id, caller_id
        )
        raise InternalError("Failed to verify project access")

    logger.warning("Caller %s has unsupported role; denied project %s", caller_id, project_id)
    raise Forbidden()


async def require_global_role(
    session: AsyncSession,
    *,
    caller_id: UUID,
    allowed: tuple[Role, ...],
) -> Role:
    """
    Gate operations that are not scoped to an existing project
    (e.g. creating one).

    Raises:
        RoleLookupFailed: Role could not be resolved
        Forbidden: Caller's role is not in ``allowed``
    """
    role = await resolve_role(session, caller_id=caller_id)
    if role is None or role not in allowed:
        raise Forbidden()
    return role


async def list_visible_projects(session: AsyncSession, *, caller_id: UUID) -> list:
    """
    Projects the caller may see: all for admins, owned ones for clients,
    rostered ones for consultants.
    """
    role = await resolve_role(session, caller_id=caller_id)
    if role is Role.ADMIN:
        return await projects_repo.list_all(session)
    if role is Role.CLIENT:
        return await projects_repo.list_for_client(session, client_id=caller_id)
    if role is Role.CONSULTANT:
        return await projects_repo.list_for_consultant(session, consultant_id=caller_id)
    return []
