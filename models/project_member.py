"""ProjectMember model - consultant roster of a project."""

from datetime import datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict
from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db import Base, utcnow
from models.user import User, UserSummary


class ProjectMember(Base):
    """ProjectMember ORM model - links a consultant to a project.

    A consultant may act on a project only while a row exists here.
    """

    __tablename__ = "project_members"

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
    consultant_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role_in_project: Mapped[str] = mapped_column(String(50), nullable=False, default="member")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    consultant: Mapped[User] = relationship(User, lazy="raise")

    __table_args__ = (
        UniqueConstraint("project_id", "consultant_id", name="uq_project_member"),
    )


# Pydantic schemas
class ProjectMemberCreate(BaseModel):
    """Schema for adding a consultant to a project."""

    consultant_id: UUID


class ProjectMemberResponse(BaseModel):
    """Schema for project member response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    project_id: UUID
    consultant_id: UUID
    role_in_project: str
    created_at: datetime
    consultant: UserSummary | None = None
