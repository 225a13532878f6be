"""AuditLog model - append-only record of user actions."""

import enum
from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, DateTime, String, Text, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from db import Base, utcnow


class AuditAction(str, enum.Enum):
    """Kinds of audited actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"


class AuditEntity(str, enum.Enum):
    """Entity types an audit record may refer to."""

    PROJECT = "project"
    DOCUMENT = "document"
    USER = "user"
    FILE = "file"
    TEAM_MEMBER = "team_member"


JSONVariant = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base):
    """AuditLog ORM model.

    Actor and entity ids are plain columns (no foreign keys) so records outlive
    the rows they describe.
    """

    __tablename__ = "audit_logs"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    user_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    entity_id: Mapped[UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True, index=True)
    entity_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    old_values: Mapped[dict | None] = mapped_column(JSONVariant, nullable=True)
    new_values: Mapped[dict | None] = mapped_column(JSONVariant, nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

