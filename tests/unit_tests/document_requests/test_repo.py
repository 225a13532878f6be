"""Unit tests for the document requirement and file repositories."""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.file_version import FileVersion
from repos import document_requirements_repo, files_repo


def _file(requirement, version, name="f.pdf"):
    return FileVersion(
        requirement_id=requirement.id,
        storage_path=f"projects/{requirement.project_id}/document-requests/{requirement.id}/v{version}/{name}",
        original_name=name,
        version_number=version,
    )


@pytest.mark.asyncio
async def test_max_version_is_zero_without_files(db_session: AsyncSession, requirement):
    assert await files_repo.get_max_version_number(db_session, requirement_id=requirement.id) == 0
    assert await files_repo.get_latest(db_session, requirement_id=requirement.id) is None


@pytest.mark.asyncio
async def test_bulk_create_and_max_version(db_session: AsyncSession, requirement):
    await files_repo.bulk_create(db_session, [_file(requirement, 1)])
    await files_repo.bulk_create(db_session, [_file(requirement, 2, "a.pdf"), _file(requirement, 2, "b.pdf")])
    await db_session.commit()

    assert await files_repo.get_max_version_number(db_session, requirement_id=requirement.id) == 2
    latest = await files_repo.get_latest(db_session, requirement_id=requirement.id)
    assert latest.version_number == 2


@pytest.mark.asyncio
async def test_get_with_project_id(db_session: AsyncSession, requirement):
    [created] = await files_repo.bulk_create(db_session, [_file(requirement, 1)])
    await db_session.commit()

    file, project_id = await files_repo.get_with_project_id(db_session, file_id=created.id)
    assert file.id == created.id
    assert project_id == requirement.project_id
    assert await files_repo.get_with_project_id(db_session, file_id=uuid4()) is None


@pytest.mark.asyncio
async def test_requirement_get_by_id(db_session: AsyncSession, requirement):
    found = await document_requirements_repo.get_by_id(db_session, requirement_id=requirement.id)
    assert found.name == "Balance sheet"
    assert await document_requirements_repo.get_by_id(db_session, requirement_id=uuid4()) is None


@pytest.mark.asyncio
async def test_list_by_project_loads_files(db_session: AsyncSession, requirement, project):
    await files_repo.bulk_create(db_session, [_file(requirement, 1)])
    await db_session.commit()

    listed = await document_requirements_repo.list_by_project_with_files(
        db_session, project_id=project.id
    )
    assert len(listed) == 1
    assert [f.original_name for f in listed[0].files] == ["f.pdf"]
    assert await document_requirements_repo.list_by_project_with_files(
        db_session, project_id=uuid4()
    ) == []
