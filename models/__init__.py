"""Database models."""

from db import Base

# Import all models so Alembic can detect them
from models.user import User
from models.project import Project
from models.project_member import ProjectMember
from models.file_version import FileVersion
from models.document_requirement import DocumentRequirement
from models.audit_log import AuditLog

__all__ = [
    "Base",
    "User",
    "Project",
    "ProjectMember",
    "FileVersion",
    "DocumentRequirement",
    "AuditLog",
]
