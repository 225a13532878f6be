"""Repository for Project database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.project import Project
from models.project_member import ProjectMember


async def get_by_id(
    session: AsyncSession,
    *,
    project_id: UUID,
) -> Project | None:
    """
    Get a project by ID.

    Args:
        session: Database session
        project_id: Project ID to fetch

    Returns:
        Project if found, None otherwise
    """
    result = await session.execute(select(Project).where(Project.id == project_id))
    return result.scalar_one_or_none()


async def get_client_id(session: AsyncSession, *, project_id: UUID) -> UUID | None:
    """
    Get only the owning client id of a project.

    Returns:
        client_id, or None when the project does not exist
    """
    result = await session.execute(select(Project.client_id).where(Project.id == project_id))
    return result.scalar_one_or_none()


async def list_all(session: AsyncSession) -> list[Project]:
    """List every project, newest first."""
    result = await session.execute(select(Project).order_by(Project.created_at.desc()))
    return list(result.scalars().all())


async def list_for_client(session: AsyncSession, *, client_id: UUID) -> list[Project]:
    """List projects owned by a client, newest first."""
    query = (
        select(Project)
        .where(Project.client_id == client_id)
        .order_by(Project.created_at.desc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def list_for_consultant(session: AsyncSession, *, consultant_id: UUID) -> list[Project]:
    """List projects whose roster contains the consultant, newest first."""
    query = (
        select(Project)
        .join(ProjectMember, ProjectMember.project_id == Project.id)
        .where(ProjectMember.consultant_id == consultant_id)
        .order_by(Project.created_at.desc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def create(session: AsyncSession, project: Project) -> Project:
    """
    Create a new project.

    Args:
        session: Database session
        project: Project instance to create

    Returns:
        Created project
    """
    session.add(project)
    await session.flush()
    await session.refresh(project)
    return project
