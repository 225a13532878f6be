"""Project model - a client's regulatory/grant engagement."""

import enum
from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base, utcnow


class ProjectStatus(str, enum.Enum):
    """Project lifecycle status."""

    CONTRACTING = "contracting"
    IMPLEMENTATION = "implementation"
    MONITORING = "monitoring"


class Project(Base):
    """Project ORM model - owned by exactly one client user."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    client_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=ProjectStatus.CONTRACTING.value,
    )  # contracting|implementation|monitoring
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        onupdate=utcnow,
    )

    __table_args__ = (
        {"comment": "Client-owned projects; consultants reach them via project_members"},
    )


# Pydantic schemas
class ProjectCreate(BaseModel):
    """Schema for creating a project."""

    title: str
    client_id: UUID
    status: ProjectStatus = ProjectStatus.CONTRACTING

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("title must not be empty")
        return value


class ProjectResponse(BaseModel):
    """Schema for project response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    client_id: UUID
    status: str
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None
