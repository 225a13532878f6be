"""Endpoint tests for document requests, uploads, reviews and downloads."""

import pytest
from fastapi import status

from models.audit_log import AuditAction


async def _upload(client, headers, requirement_id, names):
    init = await client.post(
        f"/api/v1/document-requests/{requirement_id}/uploads/init",
        headers=headers,
        json={"files": [{"name": name, "size": 100, "content_type": "application/pdf"} for name in names]},
    )
    assert init.status_code == status.HTTP_200_OK, init.text
    body = init.json()
    complete = await client.post(
        f"/api/v1/document-requests/{requirement_id}/uploads/complete",
        headers=headers,
        json={
            "version_number": body["version_number"],
            "batch_id": body["batch_id"],
            "files": [
                {"storage_path": p["storage_path"], "original_name": name}
                for p, name in zip(body["placements"], names)
            ],
        },
    )
    return body, complete


@pytest.mark.asyncio
async def test_submission_and_review_round_trip(
    client, auth_headers, audit_sink, admin_user, consultant_user, client_user, project
):
    consultant = auth_headers(consultant_user)
    owner = auth_headers(client_user)
    admin = auth_headers(admin_user)

    created = await client.post(
        f"/api/v1/projects/{project.id}/document-requests",
        headers=consultant,
        json={"name": "Annual report", "is_mandatory": True},
    )
    assert created.status_code == status.HTTP_201_CREATED, created.text
    requirement_id = created.json()["id"]
    assert created.json()["status"] == "pending"

    init, complete = await _upload(client, owner, requirement_id, ["report.pdf"])
    assert init["version_number"] == 1
    assert init["placements"][0]["upload_url"].startswith("https://storage.test/")
    assert complete.status_code == status.HTTP_200_OK, complete.text
    assert complete.json() == {
        "requirement_id": requirement_id,
        "status": "review",
        "version_number": 1,
        "file_count": 1,
    }

    rejected = await client.post(
        f"/api/v1/document-requests/{requirement_id}/review",
        headers=admin,
        json={"action": "reject", "note": "missing signature"},
    )
    assert rejected.status_code == status.HTTP_200_OK, rejected.text
    assert rejected.json()["status"] == "rejected"

    init, complete = await _upload(client, owner, requirement_id, ["a.pdf", "b.pdf"])
    assert init["version_number"] == 2
    assert complete.json()["status"] == "review"

    approved = await client.post(
        f"/api/v1/document-requests/{requirement_id}/review",
        headers=admin,
        json={"action": "approve"},
    )
    assert approved.json()["status"] == "approved"

    listed = await client.get(f"/api/v1/projects/{project.id}/document-requests", headers=owner)
    assert listed.status_code == status.HTTP_200_OK
    [requirement] = listed.json()
    assert requirement["status"] == "approved"
    assert [f["version_number"] for f in requirement["files"]] == [2, 2, 1]
    assert requirement["files"][-1]["comment"] == "missing signature"

    file_id = requirement["files"][0]["id"]
    download = await client.post(
        f"/api/v1/files/{file_id}/signed-download",
        headers=owner,
        json={"expires_in": 60},
    )
    assert download.status_code == status.HTTP_200_OK
    assert download.json()["expires_in"] == 60
    assert "op=get_object" in download.json()["url"]

    actions = [e.action_type for e in audit_sink.events]
    assert actions.count(AuditAction.UPDATE) == 2
    assert actions.count(AuditAction.CREATE) == 3


@pytest.mark.asyncio
async def test_reject_without_note_is_400(
    client, auth_headers, admin_user, client_user, requirement
):
    _, complete = await _upload(client, auth_headers(client_user), requirement.id, ["a.pdf"])
    assert complete.status_code == status.HTTP_200_OK

    response = await client.post(
        f"/api/v1/document-requests/{requirement.id}/review",
        headers=auth_headers(admin_user),
        json={"action": "reject", "note": "  "},
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert requirement.status == "review"


@pytest.mark.asyncio
async def test_client_cannot_review_or_create(client, auth_headers, client_user, project, requirement):
    headers = auth_headers(client_user)

    created = await client.post(
        f"/api/v1/projects/{project.id}/document-requests",
        headers=headers,
        json={"name": "Self-assigned"},
    )
    assert created.status_code == status.HTTP_403_FORBIDDEN

    reviewed = await client.post(
        f"/api/v1/document-requests/{requirement.id}/review",
        headers=headers,
        json={"action": "approve"},
    )
    assert reviewed.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
async def test_malformed_payloads_are_400(client, auth_headers, client_user, requirement):
    headers = auth_headers(client_user)

    missing_files = await client.post(
        f"/api/v1/document-requests/{requirement.id}/uploads/init",
        headers=headers,
        json={},
    )
    assert missing_files.status_code == status.HTTP_400_BAD_REQUEST

    empty_batch = await client.post(
        f"/api/v1/document-requests/{requirement.id}/uploads/init",
        headers=headers,
        json={"files": []},
    )
    assert empty_batch.status_code == status.HTTP_400_BAD_REQUEST

    foreign_path = await client.post(
        f"/api/v1/document-requests/{requirement.id}/uploads/complete",
        headers=headers,
        json={"version_number": 1, "files": [{"storage_path": "elsewhere/a.pdf", "original_name": "a.pdf"}]},
    )
    assert foreign_path.status_code == status.HTTP_400_BAD_REQUEST

    prefix = f"projects/{requirement.project_id}/document-requests/{requirement.id}/v1/"
    for loose_version in ("1", 1.0, True, 0):
        response = await client.post(
            f"/api/v1/document-requests/{requirement.id}/uploads/complete",
            headers=headers,
            json={
                "version_number": loose_version,
                "files": [{"storage_path": prefix + "a.pdf", "original_name": "a.pdf"}],
            },
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST, loose_version
    assert requirement.status == "pending"


@pytest.mark.asyncio
async def test_attachment_upload_and_download(
    client, auth_headers, consultant_user, client_user, project
):
    consultant = auth_headers(consultant_user)

    placement = await client.post(
        f"/api/v1/projects/{project.id}/document-requests/attachment/init",
        headers=consultant,
        json={"name": "template.docx"},
    )
    assert placement.status_code == status.HTTP_200_OK, placement.text
    storage_path = placement.json()["storage_path"]

    created = await client.post(
        f"/api/v1/projects/{project.id}/document-requests",
        headers=consultant,
        json={"name": "Signed template", "attachment_path": storage_path},
    )
    assert created.status_code == status.HTTP_201_CREATED
    requirement_id = created.json()["id"]

    download = await client.post(
        f"/api/v1/document-requests/{requirement_id}/attachment/signed-download",
        headers=auth_headers(client_user),
    )
    assert download.status_code == status.HTTP_200_OK
    assert storage_path in download.json()["url"]


@pytest.mark.asyncio
async def test_unknown_requirement_is_404(client, auth_headers, admin_user):
    response = await client.post(
        "/api/v1/document-requests/00000000-0000-0000-0000-000000000000/uploads/init",
        headers=auth_headers(admin_user),
        json={"files": [{"name": "a.pdf", "size": 1}]},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
