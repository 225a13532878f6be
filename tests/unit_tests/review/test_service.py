"""Unit tests for the review service (approve/reject decisions)."""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Forbidden, NotFound, ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.document_requirement import RequirementStatus
from models.upload import UploadedFile, UploadFileDescriptor
from repos import files_repo
from services.review_service import decide, parse_decision
from services.uploads_service import complete_upload, init_upload


async def _submit(session, storage, audit_sink, caller, requirement, *names):
    init = await init_upload(
        session,
        storage,
        caller=caller,
        requirement_id=requirement.id,
        files=[UploadFileDescriptor(name=name, size=10) for name in names],
    )
    await complete_upload(
        session,
        audit_sink,
        caller=caller,
        requirement_id=requirement.id,
        version_number=init.version_number,
        files=[
            UploadedFile(storage_path=p.storage_path, original_name=name)
            for p, name in zip(init.placements, names)
        ],
    )
    return init.version_number


@pytest.mark.asyncio
async def test_full_review_lifecycle(
    db_session: AsyncSession, storage, audit_sink, admin_user, client_user, requirement
):
    """Scenarios A-D: submit, reject with note, resubmit two files, approve twice."""
    assert await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf") == 1
    assert requirement.status == RequirementStatus.REVIEW.value

    rejected = await decide(
        db_session,
        audit_sink,
        caller=admin_user,
        requirement_id=requirement.id,
        action="reject",
        note="missing signature",
    )
    assert rejected.status == RequirementStatus.REJECTED.value
    latest = await files_repo.get_latest(db_session, requirement_id=requirement.id)
    assert latest.comment == "missing signature"

    version = await _submit(
        db_session, storage, audit_sink, client_user, requirement, "v2a.pdf", "v2b.pdf"
    )
    assert version == 2
    assert requirement.status == RequirementStatus.REVIEW.value

    approved = await decide(
        db_session, audit_sink, caller=admin_user, requirement_id=requirement.id, action="approve"
    )
    assert approved.status == RequirementStatus.APPROVED.value

    events_before = len(audit_sink.events)
    again = await decide(
        db_session, audit_sink, caller=admin_user, requirement_id=requirement.id, action="approve"
    )
    assert again.status == RequirementStatus.APPROVED.value
    assert len(audit_sink.events) == events_before


@pytest.mark.asyncio
async def test_reject_writes_only_the_latest_file(
    db_session: AsyncSession, storage, audit_sink, consultant_user, client_user, requirement
):
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf")
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v2a.pdf", "v2b.pdf")

    await decide(
        db_session,
        audit_sink,
        caller=consultant_user,
        requirement_id=requirement.id,
        action="reject",
        note="  wrong fiscal year  ",
    )

    files = await files_repo.list_by_requirement(db_session, requirement_id=requirement.id)
    commented = [f for f in files if f.comment is not None]
    assert len(commented) == 1
    assert commented[0].version_number == 2
    assert commented[0].comment == "wrong fiscal year"


@pytest.mark.asyncio
async def test_second_reject_overwrites_comment(
    db_session: AsyncSession, storage, audit_sink, admin_user, client_user, requirement
):
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf")
    for note in ("first note", "second note"):
        result = await decide(
            db_session,
            audit_sink,
            caller=admin_user,
            requirement_id=requirement.id,
            action="reject",
            note=note,
        )
        assert result.status == RequirementStatus.REJECTED.value

    latest = await files_repo.get_latest(db_session, requirement_id=requirement.id)
    assert latest.comment == "second note"


@pytest.mark.asyncio
@pytest.mark.parametrize("note", [None, "", "   "])
async def test_reject_without_note_changes_nothing(
    db_session: AsyncSession, storage, audit_sink, admin_user, client_user, requirement, note
):
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf")
    events_before = len(audit_sink.events)

    with pytest.raises(ValidationError):
        await decide(
            db_session,
            audit_sink,
            caller=admin_user,
            requirement_id=requirement.id,
            action="reject",
            note=note,
        )

    assert requirement.status == RequirementStatus.REVIEW.value
    latest = await files_repo.get_latest(db_session, requirement_id=requirement.id)
    assert latest.comment is None
    assert len(audit_sink.events) == events_before


@pytest.mark.asyncio
async def test_approve_note_goes_to_audit_only(
    db_session: AsyncSession, storage, audit_sink, admin_user, client_user, requirement
):
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf")

    await decide(
        db_session,
        audit_sink,
        caller=admin_user,
        requirement_id=requirement.id,
        action="approve",
        note="looks good",
    )

    latest = await files_repo.get_latest(db_session, requirement_id=requirement.id)
    assert latest.comment is None
    event = audit_sink.events[-1]
    assert event.action_type is AuditAction.UPDATE
    assert event.entity_type is AuditEntity.DOCUMENT
    assert event.old_values == {"status": "review"}
    assert event.new_values["status"] == "approved"
    assert event.new_values["note"] == "looks good"


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["pending", "rejected"])
async def test_approve_requires_review_state(
    db_session: AsyncSession, audit_sink, admin_user, requirement, status
):
    requirement.status = status
    await db_session.commit()

    with pytest.raises(ValidationError):
        await decide(
            db_session, audit_sink, caller=admin_user, requirement_id=requirement.id, action="approve"
        )


@pytest.mark.asyncio
async def test_reject_of_pending_is_invalid(db_session: AsyncSession, audit_sink, admin_user, requirement):
    with pytest.raises(ValidationError):
        await decide(
            db_session,
            audit_sink,
            caller=admin_user,
            requirement_id=requirement.id,
            action="reject",
            note="nothing to reject",
        )


@pytest.mark.asyncio
async def test_clients_and_outsiders_cannot_review(
    db_session: AsyncSession,
    storage,
    audit_sink,
    client_user,
    outside_consultant,
    requirement,
):
    await _submit(db_session, storage, audit_sink, client_user, requirement, "v1.pdf")
    for caller in (client_user, outside_consultant):
        with pytest.raises(Forbidden):
            await decide(
                db_session,
                audit_sink,
                caller=caller,
                requirement_id=requirement.id,
                action="approve",
            )
    assert requirement.status == RequirementStatus.REVIEW.value


@pytest.mark.asyncio
async def test_missing_requirement_is_not_found(db_session: AsyncSession, audit_sink, admin_user):
    with pytest.raises(NotFound):
        await decide(
            db_session, audit_sink, caller=admin_user, requirement_id=uuid4(), action="approve"
        )


def test_parse_decision():
    assert parse_decision("approve", None)[1] is None
    assert parse_decision("reject", " x ")[1] == "x"
    with pytest.raises(ValidationError):
        parse_decision("escalate", "note")
