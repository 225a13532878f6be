"""Object storage adapter: presigned S3 URLs and storage key layout.

The application never moves file bytes itself. Clients write and read objects
directly with short-lived presigned URLs issued here.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, UTC
from uuid import UUID, uuid4

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

import config

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^\w.\- ()]")


class StorageError(Exception):
    """Signing or object-store request failed."""


@dataclass(frozen=True)
class SignedUpload:
    """A presigned write target for one object key."""

    storage_path: str
    url: str
    method: str = "PUT"
    headers: dict[str, str] = field(default_factory=dict)
    expires_in: int = 0


class ObjectStorage:
    """S3-compatible bucket accessed through presigned URLs."""

    def __init__(self, *, bucket: str, client) -> None:
        self.bucket = bucket
        self._client = client

    def create_signed_upload(
        self,
        storage_path: str,
        *,
        expires_in: int,
        content_type: str | None = None,
    ) -> SignedUpload:
        """
        Presign a write-once PUT for ``storage_path``.

        The URL is signed with ``If-None-Match: *``, so the bucket refuses any
        write once an object exists under the key.

        Args:
            storage_path: Object key inside the bucket
            expires_in: URL lifetime in seconds
            content_type: Optional Content-Type the client must send

        Returns:
            SignedUpload with the URL and headers the client must use

        Raises:
            StorageError: If signing fails
        """
        params = {"Bucket": self.bucket, "Key": storage_path, "IfNoneMatch": "*"}
        headers = {"If-None-Match": "*"}
        if content_type:
            params["ContentType"] = content_type
            headers["Content-Type"] = content_type
        try:
            url = self._client.generate_presigned_url(
                "put_object",
                Params=params,
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign upload for {storage_path}") from e
        return SignedUpload(
            storage_path=storage_path,
            url=url,
            headers=headers,
            expires_in=expires_in,
        )

    def create_signed_download(
        self,
        storage_path: str,
        *,
        expires_in: int,
        download_name: str | None = None,
    ) -> str:
        """
        Presign a GET for ``storage_path`` served as an attachment.

        Raises:
            StorageError: If signing fails
        """
        params = {"Bucket": self.bucket, "Key": storage_path}
        filename = download_name or storage_path.rsplit("/", 1)[-1]
        params["ResponseContentDisposition"] = f'attachment; filename="{safe_segment(filename)}"'
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params=params,
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"Failed to sign download for {storage_path}") from e


def create_object_storage() -> ObjectStorage:
    """Build the bucket adapter from settings."""
    settings = config.settings
    session = boto3.session.Session(
        aws_access_key_id=settings.STORAGE_ACCESS_KEY or None,
        aws_secret_access_key=settings.STORAGE_SECRET_KEY or None,
        region_name=settings.STORAGE_REGION or None,
    )
    client = session.client(
        "s3",
        endpoint_url=settings.STORAGE_ENDPOINT_URL or None,
        config=BotoConfig(
            signature_version="s3v4",
            s3={"addressing_style": "path" if settings.STORAGE_FORCE_PATH_STYLE else "auto"},
        ),
    )
    logger.info("Object storage configured for bucket %s", settings.STORAGE_BUCKET)
    return ObjectStorage(bucket=settings.STORAGE_BUCKET, client=client)


# --- Storage key layout ---


def safe_segment(value: str) -> str:
    """Replace every character outside ``[\\w.\\- ()]`` with ``_``."""
    cleaned = _UNSAFE_CHARS.sub("_", value.strip())
    if cleaned in ("", ".", ".."):
        return "_"
    return cleaned


def safe_relative_path(value: str | None) -> str | None:
    """
    Normalize a client-supplied relative path (folder uploads).

    Backslashes become slashes, empty/``.``/``..`` segments are dropped and each
    remaining segment is sanitized, so the result can never climb out of the
    directory it is appended to.

    Returns:
        Sanitized path, or None if nothing usable remains
    """
    if not value:
        return None
    parts = [
        segment
        for segment in value.replace("\\", "/").split("/")
        if segment and segment not in (".", "..")
    ]
    if not parts:
        return None
    return "/".join(safe_segment(segment) for segment in parts)


def submission_prefix(project_id: UUID, requirement_id: UUID, version_number: int) -> str:
    """Key prefix shared by every file of one submission."""
    return f"projects/{project_id}/document-requests/{requirement_id}/v{version_number}/"


def build_submission_key(
    *,
    project_id: UUID,
    requirement_id: UUID,
    version_number: int,
    filename: str,
    relative_path: str | None = None,
) -> str:
    """
    Storage key for one submitted file.

    Every key gets its own random directory, so placements never collide,
    even for two submissions handed the same version number. A sanitized
    relative path keeps the folder structure of a folder upload below it.
    """
    name = safe_relative_path(relative_path) or safe_segment(filename)
    return f"{submission_prefix(project_id, requirement_id, version_number)}{uuid4()}/{name}"


def build_template_key(*, project_id: UUID, filename: str) -> str:
    """Storage key for a reviewer-provided template attachment."""
    stamp = int(datetime.now(UTC).timestamp() * 1000)
    return f"projects/{project_id}/templates/{stamp}_{safe_segment(filename)}"


def is_key_within(storage_path: str, prefix: str) -> bool:
    """True if ``storage_path`` is a traversal-free key below ``prefix``."""
    if not storage_path.startswith(prefix) or storage_path == prefix:
        return False
    remainder = storage_path[len(prefix):]
    return all(segment not in ("", ".", "..") for segment in remainder.split("/"))
