"""Authentication endpoints: dev login and session audit."""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

import config
from api.deps import get_audit_sink, get_current_user, get_db, get_request_meta
from api.errors import InternalError, Unauthenticated
from auth.jwt import create_access_token
from models.audit_log import AuditAction, AuditEntity
from models.user import User
from repos import users_repo
from services.audit import AuditEvent, AuditSink, RequestMeta

logger = logging.getLogger(__name__)

router = APIRouter()


class DevLoginRequest(BaseModel):
    """Request schema for dev login."""

    email: EmailStr


class DevLoginResponse(BaseModel):
    """Response schema for dev login."""

    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str


class SessionAuditRequest(BaseModel):
    action: Literal["login", "logout"]


@router.post("/auth/dev-login", response_model=DevLoginResponse)
async def dev_login(
    request: DevLoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    DEV-ONLY endpoint returning a JWT for an existing, active profile.

    Profiles are provisioned by the identity provider; this endpoint never
    creates one.
    """
    if config.settings.APP_ENV == "production":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Dev login is not available in production",
        )

    user = await users_repo.get_by_email(db, email=request.email)
    if user is None or not user.is_active:
        raise Unauthenticated("Unknown or inactive user")

    token = create_access_token(user.id, email=user.email)
    return DevLoginResponse(access_token=token, user_id=str(user.id), role=user.role)


@router.post("/auth/audit", status_code=status.HTTP_204_NO_CONTENT)
async def session_audit(
    payload: SessionAuditRequest,
    current_user: User = Depends(get_current_user),
    audit: AuditSink = Depends(get_audit_sink),
    meta: RequestMeta = Depends(get_request_meta),
):
    """Record a login or logout of the caller."""
    action = AuditAction(payload.action)
    try:
        await audit.record(
            AuditEvent(
                actor_id=current_user.id,
                action_type=action,
                entity_type=AuditEntity.USER,
                entity_id=current_user.id,
                entity_name=current_user.email,
                description=f"User {action.value}",
                meta=meta,
            )
        )
    except Exception:
        logger.exception("Session audit failed for user %s", current_user.id)
        raise InternalError("Failed to record session event")
