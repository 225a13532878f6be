"""Service layer for the two-phase upload protocol and signed downloads.

Phase 1 (``init_upload``) hands out one presigned PUT per file under
``projects/{project}/document-requests/{requirement}/v{n}/``. The client writes
the bytes straight to the bucket. Phase 2 (``complete_upload``) records the
batch as one new version and moves the requirement to ``review``.

Access is evaluated independently in both phases; Phase 2 never relies on
what Phase 1 decided.
"""

import logging
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

import config
from api.errors import InternalError, NotFound, ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.file_version import FileVersion
from models.upload import (
    AttachmentInitResponse,
    UploadCompleteResponse,
    UploadedFile,
    UploadFileDescriptor,
    UploadInitResponse,
    UploadPlacement,
)
from models.user import User
from repos import document_requirements_repo, files_repo
from services.audit import AuditEvent, AuditSink, RequestMeta
from services.document_requests_service import get_requirement_for_caller
from services.project_access import evaluate_project_access
from services.requirement_state import RequirementEvent, transition
from services.storage import (
    ObjectStorage,
    StorageError,
    build_submission_key,
    build_template_key,
    is_key_within,
    safe_relative_path,
    submission_prefix,
)

logger = logging.getLogger(__name__)


def _validate_batch_size(count: int) -> None:
    limit = config.settings.MAX_UPLOAD_FILES
    if count < 1:
        raise ValidationError("At least one file is required")
    if count > limit:
        raise ValidationError(f"At most {limit} files per upload")


def validate_init_batch(files: list[UploadFileDescriptor]) -> None:
    """
    Check a Phase-1 batch before touching any store.

    Raises:
        ValidationError: Empty/oversized batch, blank name or bad size
    """
    _validate_batch_size(len(files))
    max_size = config.settings.MAX_UPLOAD_FILE_SIZE
    for index, descriptor in enumerate(files):
        if not descriptor.name or not descriptor.name.strip():
            raise ValidationError(f"File {index} has no name")
        if descriptor.size < 0:
            raise ValidationError(f"File {index} has a negative size")
        if descriptor.size > max_size:
            raise ValidationError(
                f"File '{descriptor.name}' exceeds the {max_size} byte limit"
            )


def validate_complete_batch(version_number: int, files: list[UploadedFile]) -> None:
    """
    Check a Phase-2 payload before touching any store.

    Raises:
        ValidationError: Bad version number, empty/oversized batch, blank fields
            or a storage path listed twice
    """
    if isinstance(version_number, bool) or not isinstance(version_number, int) or version_number < 1:
        raise ValidationError("version_number must be a positive integer")
    _validate_batch_size(len(files))
    for index, uploaded in enumerate(files):
        if not uploaded.storage_path or not uploaded.storage_path.strip():
            raise ValidationError(f"File {index} has no storage_path")
        if not uploaded.original_name or not uploaded.original_name.strip():
            raise ValidationError(f"File {index} has no original_name")
    if len({uploaded.storage_path for uploaded in files}) != len(files):
        raise ValidationError("Each storage_path may be listed only once")


def clamp_expiry(expires_in: int | None) -> int:
    """Download URL lifetime: default when unset, clamped to [1, max]."""
    settings = config.settings
    if expires_in is None:
        return settings.DOWNLOAD_URL_EXPIRES_SECONDS
    return max(1, min(expires_in, settings.MAX_DOWNLOAD_URL_EXPIRES_SECONDS))


async def init_upload(
    session: AsyncSession,
    storage: ObjectStorage,
    *,
    caller: User,
    requirement_id: UUID,
    files: list[UploadFileDescriptor],
) -> UploadInitResponse:
    """
    Phase 1: issue upload placements for a batch.

    The version number is read-max-then-add-one and is not reserved: two
    concurrent calls may be handed the same number.

    Args:
        session: Database session
        storage: Object storage adapter
        caller: Authenticated user
        requirement_id: Target requirement
        files: Descriptors of the files to upload

    Returns:
        UploadInitResponse with one placement per descriptor, in request order

    Raises:
        ValidationError: Invalid batch or approved requirement
        NotFound: Requirement missing
        Forbidden: No access to the owning project
        InternalError: Signing failed
    """
    validate_init_batch(files)

    requirement, _grant = await get_requirement_for_caller(
        session,
        caller=caller,
        requirement_id=requirement_id,
    )
    # Only checked here; Phase 2 applies the move
    transition(requirement.status, RequirementEvent.SUBMIT)

    version_number = await files_repo.get_max_version_number(
        session,
        requirement_id=requirement.id,
    ) + 1
    expires_in = config.settings.UPLOAD_URL_EXPIRES_SECONDS

    placements = []
    issued_paths = set()
    try:
        for index, descriptor in enumerate(files):
            storage_path = build_submission_key(
                project_id=requirement.project_id,
                requirement_id=requirement.id,
                version_number=version_number,
                filename=descriptor.name,
                relative_path=descriptor.relative_path,
            )
            if storage_path in issued_paths:
                raise ValidationError("Two files of one batch map to the same storage path")
            issued_paths.add(storage_path)
            signed = storage.create_signed_upload(
                storage_path,
                expires_in=expires_in,
                content_type=descriptor.content_type,
            )
            placements.append(
                UploadPlacement(
                    client_file_id=index,
                    storage_path=signed.storage_path,
                    upload_url=signed.url,
                    method=signed.method,
                    headers=signed.headers,
                    relative_path=safe_relative_path(descriptor.relative_path),
                )
            )
    except StorageError:
        logger.exception(
            "Failed to sign upload placements (requirement=%s project=%s caller=%s)",
            requirement.id,
            requirement.project_id,
            caller.id,
        )
        raise InternalError("Failed to prepare upload")

    return UploadInitResponse(
        batch_id=uuid4(),
        version_number=version_number,
        expires_in=expires_in,
        placements=placements,
    )


async def complete_upload(
    session: AsyncSession,
    audit: AuditSink,
    *,
    caller: User,
    requirement_id: UUID,
    version_number: int,
    files: list[UploadedFile],
    batch_id: UUID | None = None,
    request_meta: RequestMeta | None = None,
) -> UploadCompleteResponse:
    """
    Phase 2: record an uploaded batch as one version.

    Object existence is not verified.

    Args:
        session: Database session
        audit: Audit sink
        caller: Authenticated user
        requirement_id: Target requirement
        version_number: Version handed out by Phase 1
        files: Files the client wrote
        batch_id: Batch id from Phase 1, echoed into the audit record
        request_meta: Client network details for the audit record

    Returns:
        UploadCompleteResponse with the requirement's new status

    Raises:
        ValidationError: Invalid payload, foreign storage path, stale version
            or approved requirement
        NotFound: Requirement missing
        Forbidden: No access to the owning project
    """
    validate_complete_batch(version_number, files)

    requirement, _grant = await get_requirement_for_caller(
        session,
        caller=caller,
        requirement_id=requirement_id,
    )

    prefix = submission_prefix(requirement.project_id, requirement.id, version_number)
    for uploaded in files:
        if not is_key_within(uploaded.storage_path, prefix):
            logger.warning(
                "Rejected storage path %r outside %r (caller=%s)",
                uploaded.storage_path,
                prefix,
                caller.id,
            )
            raise ValidationError("Storage path does not belong to this submission")

    current_max = await files_repo.get_max_version_number(session, requirement_id=requirement.id)
    if version_number < current_max:
        raise ValidationError(
            f"Version {version_number} is stale; latest submission is version {current_max}"
        )
    if version_number > current_max + 1:
        raise ValidationError(f"Version {version_number} was not issued for this requirement")

    recorded = {
        row.storage_path
        for row in await files_repo.list_by_requirement(session, requirement_id=requirement.id)
    }
    if any(uploaded.storage_path in recorded for uploaded in files):
        raise ValidationError("File already recorded for this requirement")

    old_status = requirement.status
    new_status = transition(old_status, RequirementEvent.SUBMIT)

    rows = [
        FileVersion(
            requirement_id=requirement.id,
            storage_path=uploaded.storage_path,
            original_name=uploaded.original_name.strip(),
            version_number=version_number,
            uploaded_by=caller.id,
        )
        for uploaded in files
    ]
    await files_repo.bulk_create(session, rows)

    requirement.status = new_status.value
    await document_requirements_repo.save(session, requirement)
    await session.commit()
    logger.info(
        "Recorded %d file(s) as version %d of requirement %s",
        len(rows),
        version_number,
        requirement.id,
    )

    await audit.record(
        AuditEvent(
            actor_id=caller.id,
            action_type=AuditAction.CREATE,
            entity_type=AuditEntity.FILE,
            entity_id=requirement.id,
            entity_name=requirement.name,
            old_values={"status": old_status},
            new_values={
                "status": new_status.value,
                "version_number": version_number,
                "file_count": len(rows),
                "filenames": [row.original_name for row in rows],
                "batch_id": batch_id,
            },
            description=f"Uploaded {len(rows)} file(s) as version {version_number}",
            meta=request_meta or RequestMeta(),
        )
    )

    return UploadCompleteResponse(
        requirement_id=requirement.id,
        status=new_status.value,
        version_number=version_number,
        file_count=len(rows),
    )


async def sign_file_download(
    session: AsyncSession,
    storage: ObjectStorage,
    *,
    caller: User,
    file_id: UUID,
    expires_in: int | None = None,
) -> tuple[str, int]:
    """
    Presign a GET for a submitted file.

    Returns:
        (url, expires_in)

    Raises:
        NotFound: File missing
        Forbidden: No access to the owning project
        InternalError: Signing failed
    """
    found = await files_repo.get_with_project_id(session, file_id=file_id)
    if found is None:
        raise NotFound("File not found")
    file, project_id = found

    await evaluate_project_access(
        session,
        project_id=project_id,
        caller_id=caller.id,
        must_exist=False,
    )

    lifetime = clamp_expiry(expires_in)
    try:
        url = storage.create_signed_download(
            file.storage_path,
            expires_in=lifetime,
            download_name=file.original_name,
        )
    except StorageError:
        logger.exception("Failed to sign download of file %s (caller=%s)", file.id, caller.id)
        raise InternalError("Failed to create download link")
    return url, lifetime


async def sign_attachment_download(
    session: AsyncSession,
    storage: ObjectStorage,
    *,
    caller: User,
    requirement_id: UUID,
    expires_in: int | None = None,
) -> tuple[str, int]:
    """
    Presign a GET for a requirement's template attachment.

    Raises:
        NotFound: Requirement missing or it has no attachment
        Forbidden: No access to the owning project
        InternalError: Signing failed
    """
    requirement, _grant = await get_requirement_for_caller(
        session,
        caller=caller,
        requirement_id=requirement_id,
    )
    if not requirement.attachment_path:
        raise NotFound("Document request has no attachment")

    lifetime = clamp_expiry(expires_in)
    try:
        url = storage.create_signed_download(requirement.attachment_path, expires_in=lifetime)
    except StorageError:
        logger.exception(
            "Failed to sign attachment download (requirement=%s caller=%s)",
            requirement.id,
            caller.id,
        )
        raise InternalError("Failed to create download link")
    return url, lifetime


async def init_attachment_upload(
    session: AsyncSession,
    storage: ObjectStorage,
    *,
    caller: User,
    project_id: UUID,
    name: str,
    content_type: str | None = None,
) -> AttachmentInitResponse:
    """
    Presign a PUT for a reviewer-provided template file.

    The returned ``storage_path`` is what the client later sends as
    ``attachment_path`` when creating the requirement.

    Raises:
        ValidationError: Blank name
        Forbidden: Caller is not an editor of the project
        InternalError: Signing failed
    """
    if not name or not name.strip():
        raise ValidationError("Attachment name is required")

    grant = await evaluate_project_access(session, project_id=project_id, caller_id=caller.id)
    grant.require_editor()

    expires_in = config.settings.UPLOAD_URL_EXPIRES_SECONDS
    storage_path = build_template_key(project_id=project_id, filename=name)
    try:
        signed = storage.create_signed_upload(
            storage_path,
            expires_in=expires_in,
            content_type=content_type,
        )
    except StorageError:
        logger.exception("Failed to sign attachment upload (project=%s)", project_id)
        raise InternalError("Failed to prepare upload")

    return AttachmentInitResponse(
        storage_path=signed.storage_path,
        upload_url=signed.url,
        method=signed.method,
        headers=signed.headers,
        expires_in=expires_in,
    )
