"""Service layer for reviewing submitted documents (approve/reject)."""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.document_requirement import DocumentRequirement, RequirementStatus, ReviewAction
from models.user import User
from repos import document_requirements_repo, files_repo
from services.audit import AuditEvent, AuditSink, RequestMeta
from services.document_requests_service import get_requirement_for_caller
from services.requirement_state import RequirementEvent, transition

logger = logging.getLogger(__name__)

_EVENTS = {
    ReviewAction.APPROVE: RequirementEvent.APPROVE,
    ReviewAction.REJECT: RequirementEvent.REJECT,
}


def parse_decision(action: str, note: str | None) -> tuple[ReviewAction, str | None]:
    """
    Validate a decision payload.

    Returns:
        (action, trimmed note or None)

    Raises:
        ValidationError: Unknown action, or reject without a note
    """
    try:
        parsed = ReviewAction(action)
    except ValueError:
        raise ValidationError("action must be 'approve' or 'reject'")
    cleaned = note.strip() if note else ""
    if parsed is ReviewAction.REJECT and not cleaned:
        raise ValidationError("A note is required to reject a submission")
    return parsed, cleaned or None


async def decide(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    requirement_id: UUID,
    action: str,
    note: str | None = None,
    request_meta: RequestMeta | None = None,
) -> DocumentRequirement:
    """
    Approve or reject the current submission of a requirement.

    A reject note is written to the comment of the most recently created file.
    Approve notes go to the audit record only. Approving an approved
    requirement changes nothing.

    Args:
        session: Database session
        audit: Audit sink
        caller: Authenticated reviewer
        requirement_id: Requirement under review
        action: "approve" or "reject"
        note: Reviewer note (required to reject)
        request_meta: Client network details for the audit record

    Returns:
        The requirement after the decision

    Raises:
        ValidationError: Bad payload or invalid transition
        NotFound: Requirement missing
        Forbidden: Caller is not an editor of the project
    """
    review_action, cleaned_note = parse_decision(action, note)

    requirement, grant = await get_requirement_for_caller(
        session,
        caller=caller,
        requirement_id=requirement_id,
    )
    grant.require_editor()

    old_status = requirement.status
    if review_action is ReviewAction.APPROVE and old_status == RequirementStatus.APPROVED.value:
        return requirement

    new_status = transition(old_status, _EVENTS[review_action])

    commented_file_id = None
    if review_action is ReviewAction.REJECT:
        latest = await files_repo.get_latest(session, requirement_id=requirement.id)
        if latest is None:
            logger.warning("Rejecting requirement %s with no submitted files", requirement.id)
        else:
            latest.comment = cleaned_note
            await files_repo.save(session, latest)
            commented_file_id = latest.id

    requirement.status = new_status.value
    await document_requirements_repo.save(session, requirement)
    await session.commit()
    logger.info(
        "Requirement %s %s by %s (%s -> %s)",
        requirement.id,
        review_action.value,
        caller.id,
        old_status,
        new_status.value,
    )

    new_values = {"status": new_status.value, "note": cleaned_note}
    if commented_file_id is not None:
        new_values["file_id"] = commented_file_id
    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.UPDATE,
            entity_type=AuditEntity.DOCUMENT,
            entity_id=requirement.id,
            entity_name=requirement.name,
            old_values={"status": old_status},
            new_values=new_values,
            description=(
                f"Approved document request '{requirement.name}'"
                if review_action is ReviewAction.APPROVE
                else f"Rejected document request '{requirement.name}'"
            ),
            meta=request_meta or RequestMeta(),
        )
    )
    return requirement
