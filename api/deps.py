"""FastAPI dependencies for authentication, database, storage and auditing."""

from functools import lru_cache
from uuid import UUID

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Unauthenticated
from auth.jwt import decode_token
from db import AsyncSessionLocal
from db import get_db as get_db_session
from models.user import User
from repos import users_repo
from services.audit import AuditSink, DatabaseAuditSink, RequestMeta
from services.storage import ObjectStorage, create_object_storage

# HTTP Bearer token security scheme; a missing header is answered with our own 401
security = HTTPBearer(auto_error=False)


async def get_db() -> AsyncSession:
    """
    Dependency to get database session.
    Reuses the get_db function from db.py.
    """
    async for session in get_db_session():
        yield session


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency to get the current authenticated user from JWT token.

    FastAPI caches dependencies per request, so the token is decoded and the
    profile loaded at most once per request.

    Args:
        credentials: HTTP Bearer token from Authorization header
        db: Database session

    Returns:
        User: The authenticated user

    Raises:
        Unauthenticated: Missing/invalid/expired token, or unknown/inactive user
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    try:
        token_payload = decode_token(credentials.credentials)
        user_id = UUID(token_payload.sub)
    except (JWTError, ValueError):
        raise Unauthenticated("Invalid or expired token")

    user = await users_repo.get_by_id(db, user_id=user_id)
    if user is None or not user.is_active:
        raise Unauthenticated("Invalid or expired token")

    return user


@lru_cache
def _object_storage() -> ObjectStorage:
    return create_object_storage()


def get_object_storage() -> ObjectStorage:
    """Dependency returning the process-wide object storage adapter."""
    return _object_storage()


def get_audit_sink() -> AuditSink:
    """Dependency returning the database-backed audit sink."""
    return DatabaseAuditSink(AsyncSessionLocal)


def get_request_meta(request: Request) -> RequestMeta:
    """Dependency extracting client IP and user agent for audit records."""
    return RequestMeta.from_request(request)
