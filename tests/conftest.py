"""Pytest configuration and fixtures."""

import os

# Must be set before config/db are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import models  # noqa: F401
from auth.jwt import create_access_token
from db import Base
from main import app
from models.document_requirement import DocumentRequirement
from models.project import Project
from models.project_member import ProjectMember
from models.user import Role, User
from repos import users_repo
from services.audit import InMemoryAuditSink
from services.storage import ObjectStorage

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


def _make_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        return create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(TEST_DATABASE_URL, echo=False)


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """Fresh schema per test."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory):
    """Create a test database session."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def audit_sink():
    return InMemoryAuditSink()


def _fake_presign(operation, Params, ExpiresIn, HttpMethod=None):
    return f"https://storage.test/{Params['Bucket']}/{Params['Key']}?op={operation}&expires={ExpiresIn}"


@pytest.fixture
def s3_client():
    """boto3 S3 client double; only presigning is ever called."""
    client = MagicMock()
    client.generate_presigned_url.side_effect = _fake_presign
    return client


@pytest.fixture
def storage(s3_client):
    return ObjectStorage(bucket="test-bucket", client=s3_client)


@pytest_asyncio.fixture
async def client(db_session, storage, audit_sink):
    """HTTP client against the app with DB, storage and audit sink overridden."""
    from api.deps import get_audit_sink, get_db, get_object_storage

    async def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_object_storage] = lambda: storage
    app.dependency_overrides[get_audit_sink] = lambda: audit_sink
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    app.dependency_overrides.clear()


async def create_user(session: AsyncSession, role: Role, name: str) -> User:
    user = User(
        id=uuid4(),
        email=f"{name}-{uuid4().hex[:8]}@example.com",
        full_name=name.replace("-", " ").title(),
        role=role.value,
        is_active=True,
    )
    await users_repo.create(session, user)
    await session.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session):
    return await create_user(db_session, Role.ADMIN, "admin")


@pytest_asyncio.fixture
async def consultant_user(db_session):
    """Consultant on the team of ``project``."""
    return await create_user(db_session, Role.CONSULTANT, "consultant")


@pytest_asyncio.fixture
async def outside_consultant(db_session):
    """Consultant not on any team."""
    return await create_user(db_session, Role.CONSULTANT, "outside-consultant")


@pytest_asyncio.fixture
async def client_user(db_session):
    """Client owning ``project``."""
    return await create_user(db_session, Role.CLIENT, "client")


@pytest_asyncio.fixture
async def other_client(db_session):
    return await create_user(db_session, Role.CLIENT, "other-client")


@pytest_asyncio.fixture
async def project(db_session, client_user, consultant_user, admin_user):
    """Project owned by ``client_user`` with ``consultant_user`` on its team."""
    project = Project(
        id=uuid4(),
        title="Grant Application 2026",
        client_id=client_user.id,
        created_by=admin_user.id,
    )
    db_session.add(project)
    await db_session.flush()
    db_session.add(ProjectMember(project_id=project.id, consultant_id=consultant_user.id))
    await db_session.commit()
    return project


@pytest_asyncio.fixture
async def requirement(db_session, project, consultant_user):
    """Pending document requirement of ``project``."""
    requirement = DocumentRequirement(
        id=uuid4(),
        project_id=project.id,
        name="Balance sheet",
        description="Last two fiscal years",
        is_mandatory=True,
        created_by=consultant_user.id,
    )
    db_session.add(requirement)
    await db_session.commit()
    return requirement


def _auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user.id, email=user.email)}"}


@pytest.fixture
def auth_headers():
    """Build an Authorization header carrying a fresh token for a user."""
    return _auth_headers


@pytest.fixture
def make_user(db_session):
    """Create and commit a user with the given role."""

    async def _make_user(role: Role, name: str = "user") -> User:
        return await create_user(db_session, role, name)

    return _make_user
