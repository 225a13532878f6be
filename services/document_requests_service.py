"""Service layer for document requirements (creation, listing, lookup)."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import NotFound, ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.document_requirement import (
    DocumentRequirement,
    DocumentRequirementCreate,
    RequirementStatus,
)
from models.user import User
from repos import document_requirements_repo
from services.audit import AuditEvent, AuditSink, RequestMeta
from services.project_access import AccessGrant, evaluate_project_access

logger = logging.getLogger(__name__)


async def get_requirement_for_caller(
    session: AsyncSession,
    *,
    caller: User,
    requirement_id: UUID,
) -> tuple[DocumentRequirement, AccessGrant]:
    """
    Load a requirement and evaluate the caller's access to its project.

    Returns:
        (requirement, grant)

    Raises:
        NotFound: Requirement (or its project) does not exist
        Forbidden: Caller may not act on the owning project
    """
    requirement = await document_requirements_repo.get_by_id(
        session,
        requirement_id=requirement_id,
    )
    if requirement is None:
        raise NotFound("Document request not found")

    grant = await evaluate_project_access(
        session,
        project_id=requirement.project_id,
        caller_id=caller.id,
        must_exist=False,
    )
    return requirement, grant


async def list_document_requests(
    session: AsyncSession,
    *,
    caller: User,
    project_id: UUID,
) -> list[DocumentRequirement]:
    """
    List a project's requirements with their submission history.

    Requirements are newest first; each ``files`` list is ordered by
    version_number desc, then created_at desc.
    """
    await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    return await document_requirements_repo.list_by_project_with_files(
        session,
        project_id=project_id,
    )


async def create_document_request(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    project_id: UUID,
    payload: DocumentRequirementCreate,
    request_meta: RequestMeta | None = None,
) -> DocumentRequirement:
    """
    Create a requirement in ``pending`` state.

    Args:
        session: Database session
        audit: Audit sink
        caller: Authenticated user
        project_id: Owning project (from the URL)
        payload: Requirement data
        request_meta: Client network details for the audit record

    Returns:
        Created requirement

    Raises:
        Forbidden: Caller is not an editor of the project
        ValidationError: Attachment path does not belong to the project
    """
    grant = await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    grant.require_editor()

    if payload.attachment_path is not None:
        prefix = f"projects/{project_id}/templates/"
        if not payload.attachment_path.startswith(prefix) or ".." in payload.attachment_path.split("/"):
            raise ValidationError("Attachment must be uploaded to this project's templates")

    requirement = DocumentRequirement(
        project_id=project_id,
        activity_id=payload.activity_id,
        name=payload.name,
        description=payload.description,
        is_mandatory=payload.is_mandatory,
        attachment_path=payload.attachment_path,
        deadline_at=payload.deadline_at,
        status=RequirementStatus.PENDING.value,
        created_by=caller.id,
    )
    requirement = await document_requirements_repo.create(session, requirement)
    await session.commit()
    logger.info("Document request %s created in project %s", requirement.id, project_id)

    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.CREATE,
            entity_type=AuditEntity.DOCUMENT,
            entity_id=requirement.id,
            entity_name=requirement.name,
            new_values={
                "project_id": project_id,
                "name": requirement.name,
                "is_mandatory": requirement.is_mandatory,
                "status": requirement.status,
            },
            description=f"Created document request '{requirement.name}'",
            meta=request_meta or RequestMeta(),
        )
    )
    return requirement
