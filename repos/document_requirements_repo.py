"""Repository for DocumentRequirement database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models.document_requirement import DocumentRequirement


async def get_by_id(
    session: AsyncSession,
    *,
    requirement_id: UUID,
) -> DocumentRequirement | None:
    """
    Get a document requirement by ID.

    Args:
        session: Database session
        requirement_id: Requirement ID to fetch

    Returns:
        DocumentRequirement if found, None otherwise
    """
    query = select(DocumentRequirement).where(DocumentRequirement.id == requirement_id)
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def list_by_project_with_files(
    session: AsyncSession,
    *,
    project_id: UUID,
) -> list[DocumentRequirement]:
    """
    List requirements of a project (newest first) with their files loaded.

    Args:
        session: Database session
        project_id: Project ID to filter by

    Returns:
        List of DocumentRequirement with ``files`` populated
    """
    query = (
        select(DocumentRequirement)
        .options(selectinload(DocumentRequirement.files))
        .where(DocumentRequirement.project_id == project_id)
        .order_by(DocumentRequirement.created_at.desc())
        .execution_options(populate_existing=True)
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def create(
    session: AsyncSession,
    requirement: DocumentRequirement,
) -> DocumentRequirement:
    """Create a new document requirement."""
    session.add(requirement)
    await session.flush()
    await session.refresh(requirement)
    return requirement


async def save(
    session: AsyncSession,
    requirement: DocumentRequirement,
) -> DocumentRequirement:
    """Flush pending changes of a requirement."""
    session.add(requirement)
    await session.flush()
    return requirement
