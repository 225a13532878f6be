"""Repository for AuditLog database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.audit_log import AuditLog


async def create(session: AsyncSession, entry: AuditLog) -> AuditLog:
    """Insert an audit record."""
    session.add(entry)
    await session.flush()
    return entry


async def list_for_entity(
    session: AsyncSession,
    *,
    entity_type: str,
    entity_id: UUID,
) -> list[AuditLog]:
    """List audit records of one entity, newest first."""
    query = (
        select(AuditLog)
        .where(
            AuditLog.entity_type == entity_type,
            AuditLog.entity_id == entity_id,
        )
        .order_by(AuditLog.created_at.desc())
    )
    result = await session.execute(query)
    return list(result.scalars().all())
