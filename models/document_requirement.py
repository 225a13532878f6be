"""DocumentRequirement model - "this project needs document X"."""

import enum
from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base, utcnow
from models.file_version import FileVersion, FileVersionResponse


class RequirementStatus(str, enum.Enum):
    """Review state of a document requirement."""

    PENDING = "pending"
    REVIEW = "review"
    APPROVED = "approved"
    REJECTED = "rejected"


class DocumentRequirement(Base):
    """DocumentRequirement ORM model.

    Owned by a project and never re-parented. After creation only ``status``
    and the ``files`` collection change; files are append-only.
    """

    __tablename__ = "document_requirements"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    project_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Activities live in the template/phase subsystem; kept as a plain reference
    activity_id: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        nullable=True,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_mandatory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    attachment_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    deadline_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=RequirementStatus.PENDING.value,
    )  # pending|review|approved|rejected
    created_by: Mapped[UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
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

    files: Mapped[list[FileVersion]] = relationship(
        FileVersion,
        lazy="raise",
        order_by=(FileVersion.version_number.desc(), FileVersion.created_at.desc()),
    )

    __table_args__ = (
        Index("ix_document_requirements_project_created", "project_id", "created_at"),
        {"comment": "Document obligations attached to a project"},
    )


# Pydantic schemas
class DocumentRequirementCreate(BaseModel):
    """Schema for creating a document requirement.

    Note: project_id comes from the URL, status always starts as pending.
    """

    name: str
    description: str | None = None
    activity_id: UUID | None = None
    is_mandatory: bool = False
    attachment_path: str | None = None
    deadline_at: datetime | None = None

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Name is required")
        return value

    @field_validator("description", "attachment_path")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class DocumentRequirementResponse(BaseModel):
    """Schema for document requirement response (without files)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    activity_id: UUID | None = None
    name: str
    description: str | None = None
    is_mandatory: bool
    attachment_path: str | None = None
    deadline_at: datetime | None = None
    status: str
    created_by: UUID | None = None
    created_at: datetime
    updated_at: datetime | None = None


class DocumentRequirementWithFiles(DocumentRequirementResponse):
    """Requirement together with its full submission history."""

    files: list[FileVersionResponse] = []


class ReviewAction(str, enum.Enum):
    APPROVE = "approve"
    REJECT = "reject"


class ReviewRequest(BaseModel):
    """Approve/reject decision; ``note`` is required to reject."""

    action: str
    note: str | None = None
