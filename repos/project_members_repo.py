"""Repository for ProjectMember database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.project_member import ProjectMember


async def exists(
    session: AsyncSession,
    *,
    project_id: UUID,
    consultant_id: UUID,
) -> bool:
    """
    Check whether a consultant is on a project's roster.

    Args:
        session: Database session
        project_id: Project ID
        consultant_id: Consultant user ID

    Returns:
        True if a membership row exists
    """
    query = select(ProjectMember.id).where(
        ProjectMember.project_id == project_id,
        ProjectMember.consultant_id == consultant_id,
    )
    result = await session.execute(query)
    return result.first() is not None


async def get_by_id(
    session: AsyncSession,
    *,
    member_id: UUID,
) -> ProjectMember | None:
    """Get a membership row (with consultant profile) by ID."""
    query = (
        select(ProjectMember)
        .options(selectinload(ProjectMember.consultant))
        .where(ProjectMember.id == member_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_by_project(
    session: AsyncSession,
    *,
    project_id: UUID,
) -> list[ProjectMember]:
    """
    List the roster of a project, oldest first.

    Args:
        session: Database session
        project_id: Project ID

    Returns:
        List of ProjectMember rows with consultant profiles loaded
    """
    query = (
        select(ProjectMember)
        .options(selectinload(ProjectMember.consultant))
        .where(ProjectMember.project_id == project_id)
        .order_by(ProjectMember.created_at.asc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def create(session: AsyncSession, member: ProjectMember) -> ProjectMember:
    """Create a membership row."""
    session.add(member)
    await session.flush()
    return member


async def delete(session: AsyncSession, member: ProjectMember) -> None:
    """Hard delete a membership row; access is revoked on the next request."""
    await session.delete(member)
    await session.flush()
