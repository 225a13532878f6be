"""Unit tests for projects service layer.

These tests verify role scoping of listing and creation.
"""

from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from api.errors import Forbidden, NotFound, ValidationError
from models.audit_log import AuditAction, AuditEntity
from models.project import ProjectCreate, ProjectStatus
from repos import project_members_repo
from services.projects_service import create_project, get_project, list_projects


@pytest.mark.asyncio
async def test_admin_creates_project_for_client(
    db_session: AsyncSession, audit_sink, admin_user, client_user
):
    project = await create_project(
        db_session,
        audit_sink,
        caller=admin_user,
        payload=ProjectCreate(title="  Funding 2026 ", client_id=client_user.id),
    )

    assert project.title == "Funding 2026"
    assert project.client_id == client_user.id
    assert project.status == ProjectStatus.CONTRACTING.value
    assert project.created_by == admin_user.id
    assert await project_members_repo.list_by_project(db_session, project_id=project.id) == []

    event = audit_sink.events[-1]
    assert event.action_type is AuditAction.CREATE
    assert event.entity_type is AuditEntity.PROJECT
    assert event.entity_id == project.id


@pytest.mark.asyncio
async def test_consultant_creator_joins_the_team(
    db_session: AsyncSession, audit_sink, outside_consultant, client_user
):
    project = await create_project(
        db_session,
        audit_sink,
        caller=outside_consultant,
        payload=ProjectCreate(title="Consulting", client_id=client_user.id),
    )

    assert await project_members_repo.exists(
        db_session, project_id=project.id, consultant_id=outside_consultant.id
    )
    fetched = await get_project(db_session, caller=outside_consultant, project_id=project.id)
    assert fetched.id == project.id


@pytest.mark.asyncio
async def test_clients_cannot_create_projects(db_session: AsyncSession, audit_sink, client_user):
    with pytest.raises(Forbidden):
        await create_project(
            db_session,
            audit_sink,
            caller=client_user,
            payload=ProjectCreate(title="Mine", client_id=client_user.id),
        )


@pytest.mark.asyncio
async def test_project_owner_must_be_a_client(
    db_session: AsyncSession, audit_sink, admin_user, consultant_user
):
    for client_id in (consultant_user.id, uuid4()):
        with pytest.raises(ValidationError):
            await create_project(
                db_session,
                audit_sink,
                caller=admin_user,
                payload=ProjectCreate(title="Bad owner", client_id=client_id),
            )


@pytest.mark.asyncio
async def test_get_project_scoping(
    db_session: AsyncSession, project, client_user, other_client, admin_user
):
    assert (await get_project(db_session, caller=client_user, project_id=project.id)).id == project.id
    assert (await get_project(db_session, caller=admin_user, project_id=project.id)).id == project.id
    with pytest.raises(Forbidden):
        await get_project(db_session, caller=other_client, project_id=project.id)
    with pytest.raises(NotFound):
        await get_project(db_session, caller=admin_user, project_id=uuid4())


@pytest.mark.asyncio
async def test_list_projects_for_client(db_session: AsyncSession, project, client_user, other_client):
    assert [p.id for p in await list_projects(db_session, caller=client_user)] == [project.id]
    assert await list_projects(db_session, caller=other_client) == []
