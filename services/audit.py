"""Audit sink: fire-and-forget recording of create/update/delete/login/logout events.

Every mutating service receives an ``AuditSink``. Recording never raises;
a failing sink is logged and otherwise ignored so the triggering operation
always completes.
"""

import logging
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from models.audit_log import AuditAction, AuditEntity, AuditLog
from repos import audit_logs_repo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestMeta:
    """Client network details attached to audit records."""

    ip_address: str = "unknown"
    user_agent: str = "unknown"

    @classmethod
    def from_request(cls, request: Request) -> "RequestMeta":
        """
        Extract client IP and user agent.

        The first hop of X-Forwarded-For wins, then X-Real-IP, then the peer
        address of the connection.
        """
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded and forwarded.split(",")[0].strip():
            ip = forwarded.split(",")[0].strip()
        elif request.headers.get("x-real-ip"):
            ip = request.headers["x-real-ip"]
        elif request.client is not None:
            ip = request.client.host
        else:
            ip = "unknown"
        return cls(ip_address=ip, user_agent=request.headers.get("user-agent") or "unknown")


@dataclass
class AuditEvent:
    """One audited action."""

    actor_id: UUID | None
    action_type: AuditAction
    entity_type: AuditEntity
    entity_id: UUID | None
    description: str
    entity_name: str | None = None
    old_values: dict[str, Any] | None = None
    new_values: dict[str, Any] | None = None
    meta: RequestMeta = field(default_factory=RequestMeta)


class AuditSink:
    """Interface for audit event consumers."""

    async def record(self, event: AuditEvent) -> None:
        raise NotImplementedError


class NullAuditSink(AuditSink):
    """Discards every event."""

    async def record(self, event: AuditEvent) -> None:
        return None


class InMemoryAuditSink(AuditSink):
    """Keeps events in a list; used by tests and local tooling."""

    def __init__(self) -> None:
        self.events: list[AuditEvent] = []

    async def record(self, event: AuditEvent) -> None:
        self.events.append(event)


class DatabaseAuditSink(AuditSink):
    """Writes ``audit_logs`` rows through a dedicated session.

    A separate session keeps audit writes out of the caller's transaction, so
    an audit failure cannot roll back the operation being audited.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def record(self, event: AuditEvent) -> None:
        try:
            async with self._session_factory() as session:
                await audit_logs_repo.create(
                    session,
                    AuditLog(
                        user_id=event.actor_id,
                        action_type=event.action_type.value,
                        entity_type=event.entity_type.value,
                        entity_id=event.entity_id,
                        entity_name=event.entity_name,
                        old_values=_jsonable(event.old_values),
                        new_values=_jsonable(event.new_values),
                        description=event.description,
                        ip_address=event.meta.ip_address,
                        user_agent=event.meta.user_agent,
                    ),
                )
                await session.commit()
        except Exception:
            logger.exception(
                "Audit log write failed (action=%s entity=%s id=%s)",
                event.action_type.value,
                event.entity_type.value,
                event.entity_id,
            )


def _jsonable(values: dict[str, Any] | None) -> dict[str, Any] | None:
    """Stringify UUIDs/datetimes so snapshots fit a JSON column."""
    if values is None:
        return None
    out = {}
    for key, value in values.items():
        if isinstance(value, (list, tuple)):
            out[key] = [v if isinstance(v, (str, int, float, bool)) or v is None else str(v) for v in value]
        elif isinstance(value, (str, int, float, bool)) or value is None:
            out[key] = value
        else:
            out[key] = str(value)
    return out
