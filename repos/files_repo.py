"""Repository for FileVersion database operations (append-only history)."""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from models.document_requirement import DocumentRequirement
from models.file_version import FileVersion


async def get_max_version_number(
    session: AsyncSession,
    *,
    requirement_id: UUID,
) -> int:
    """
    Highest version_number recorded for a requirement.

    Args:
        session: Database session
        requirement_id: Requirement ID

    Returns:
        Highest version_number, or 0 when nothing was submitted yet
    """
    query = select(func.max(FileVersion.version_number)).where(
        FileVersion.requirement_id == requirement_id
    )
    result = await session.execute(query)
    return result.scalar_one_or_none() or 0


async def get_latest(
    session: AsyncSession,
    *,
    requirement_id: UUID,
) -> FileVersion | None:
    """
    Most recently created file of a requirement.

    Ordered by creation time, not version_number: a batch holds several rows
    with the same version_number.
    """
    query = (
        select(FileVersion)
        .where(FileVersion.requirement_id == requirement_id)
        .order_by(FileVersion.created_at.desc(), FileVersion.version_number.desc())
        .limit(1)
    )
    result = await session.execute(query)
    return result.scalar_one_or_none()


async def get_with_project_id(
    session: AsyncSession,
    *,
    file_id: UUID,
) -> tuple[FileVersion, UUID] | None:
    """
    Load a file together with the project id of its parent requirement.

    Returns:
        (FileVersion, project_id) if found, None otherwise
    """
    query = (
        select(FileVersion, DocumentRequirement.project_id)
        .join(DocumentRequirement, DocumentRequirement.id == FileVersion.requirement_id)
        .where(FileVersion.id == file_id)
    )
    result = await session.execute(query)
    row = result.first()
    if row is None:
        return None
    return row[0], row[1]


async def list_by_requirement(
    session: AsyncSession,
    *,
    requirement_id: UUID,
) -> list[FileVersion]:
    """List every file of a requirement, newest submission first."""
    query = (
        select(FileVersion)
        .where(FileVersion.requirement_id == requirement_id)
        .order_by(FileVersion.version_number.desc(), FileVersion.created_at.desc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())


async def bulk_create(
    session: AsyncSession,
    files: list[FileVersion],
) -> list[FileVersion]:
    """
    Insert a batch of file rows.

    Args:
        session: Database session
        files: FileVersion instances sharing one version_number

    Returns:
        The inserted rows
    """
    session.add_all(files)
    await session.flush()
    return files


async def save(session: AsyncSession, file: FileVersion) -> FileVersion:
    """Flush pending changes of a file row."""
    session.add(file)
    await session.flush()
    return file
