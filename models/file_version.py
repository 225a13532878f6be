"""FileVersion model - one submitted file of a requirement."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from db import Base, utcnow


class FileVersion(Base):
    """FileVersion ORM model.

    ``version_number`` labels a submission event, so every file of one batch
    shares it. Rows are append-only; only ``comment`` on the most recently
    created row is written by a review decision.
    """

    __tablename__ = "files"

    id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid4,
        index=True,
    )
    requirement_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("document_requirements.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    storage_path: Mapped[str] = mapped_column(Text, nullable=False)
    original_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_by: Mapped[UUID | None] = mapped_column(
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

    __table_args__ = (
        Index("ix_files_requirement_version", "requirement_id", "version_number"),
        Index("ix_files_requirement_created", "requirement_id", "created_at"),
        {"comment": "Append-only submission history of document requirements"},
    )


# Pydantic schemas
class FileVersionResponse(BaseModel):
    """Schema for file version response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    requirement_id: UUID
    storage_path: str
    original_name: str | None = None
    version_number: int
    comment: str | None = None
    uploaded_by: UUID | None = None
    created_at: datetime
