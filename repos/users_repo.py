"""Repository for User (profile) database operations."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models.user import User


async def get_by_id(session: AsyncSession, *, user_id: UUID) -> User | None:
    """
    Get a user by ID.

    Args:
        session: Database session
        user_id: User ID to fetch

    Returns:
        User if found, None otherwise
    """
    result = await session.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_by_email(session: AsyncSession, *, email: str) -> User | None:
    """Get a user by email (case-insensitive, emails are stored lower-cased)."""
    result = await session.execute(select(User).where(User.email == email.lower()))
    return result.scalar_one_or_none()


async def get_role(session: AsyncSession, *, user_id: UUID) -> str | None:
    """
    Read only the global role of a user.

    Returns:
        Role string, or None when the profile does not exist
    """
    result = await session.execute(select(User.role).where(User.id == user_id))
    return result.scalar_one_or_none()


async def create(session: AsyncSession, user: User) -> User:
    """Create a new user."""
    session.add(user)
    await session.flush()
    await session.refresh(user)
    return user
