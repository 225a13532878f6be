"""Request/response schemas of the two-phase upload protocol and signed downloads.

Upload placements are ephemeral and have no table.
"""

from uuid import UUID

from pydantic import BaseModel, StrictInt


class UploadFileDescriptor(BaseModel):
    """One file the client intends to upload."""

    name: str
    size: int
    content_type: str | None = None
    relative_path: str | None = None


class UploadInitRequest(BaseModel):
    files: list[UploadFileDescriptor]


class UploadPlacement(BaseModel):
    """Where and how the client writes one file."""

    client_file_id: int
    storage_path: str
    upload_url: str
    method: str = "PUT"
    headers: dict[str, str] = {}
    relative_path: str | None = None


class UploadInitResponse(BaseModel):
    batch_id: UUID
    version_number: int
    expires_in: int
    placements: list[UploadPlacement]


class UploadedFile(BaseModel):
    """A file the client reports as written to storage."""

    storage_path: str
    original_name: str


class UploadCompleteRequest(BaseModel):
    version_number: StrictInt
    files: list[UploadedFile]
    batch_id: UUID | None = None


class UploadCompleteResponse(BaseModel):
    requirement_id: UUID
    status: str
    version_number: int
    file_count: int


class SignedDownloadRequest(BaseModel):
    expires_in: int | None = None


class SignedDownloadResponse(BaseModel):
    url: str
    expires_in: int


class AttachmentInitRequest(BaseModel):
    name: str
    content_type: str | None = None


class AttachmentInitResponse(BaseModel):
    storage_path: str
    upload_url: str
    method: str = "PUT"
    headers: dict[str, str] = {}
    expires_in: int
