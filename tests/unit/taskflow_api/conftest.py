"""
Fixtures for the TaskFlow API unit tests.

The env vars are set before anything from taskflow_api is imported, as the settings are read at import time.
Each test gets its own in-memory SQLite db.
"""

import os

os.environ["TASKFLOW_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["PASSWORD_HASH_ROUNDS"] = "4"
os.environ["FRONTEND_URL"] = "http://frontend.test"
os.environ["GOOGLE_CLIENT_ID"] = "test-google-client-id"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-google-client-secret"
os.environ.pop("DEMO_USER_EMAIL", None)
os.environ.pop("DEMO_USER_PASSWORD", None)

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import event  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from taskflow_api.crud.users import create_user  # noqa: E402
from taskflow_api.db import get_db  # noqa: E402
from taskflow_api.models import Base, ProjectDB, TaskDB, TaskPriority, UserDB  # noqa: E402
from taskflow_api.schemas.users import UserCreate  # noqa: E402
from taskflow_api.security import create_access_token  # noqa: E402
from taskflow_api.taskflow_api import app  # noqa: E402

DEFAULT_PASSWORD = "password123"


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    """Factory for users registered with email + password."""

    async def _make_user(email: str = "alice@example.com", password: str = DEFAULT_PASSWORD, name: str | None = None):
        return await create_user(db=db_session, user_data=UserCreate(email=email, password=password, name=name))

    return _make_user


@pytest.fixture
def make_project(db_session):
    async def _make_project(owner: UserDB, name: str = "Work", color: str = "#3B82F6", created_at=None):
        project = ProjectDB(name=name, color=color, owner_id=owner.id)
        if created_at is not None:
            project.created_at = created_at
        db_session.add(project)
        await db_session.commit()
        await db_session.refresh(project)
        return project

    return _make_project


@pytest.fixture
def make_task(db_session):
    """
    Factory for tasks, inserted directly so any state (e.g. already in the trash) can be set up.

    created_at defaults to a fixed time so orderings in tests do not depend on insert speed.
    """

    async def _make_task(
        owner: UserDB,
        title: str = "A task",
        description: str | None = None,
        due_date: datetime | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        is_complete: bool = False,
        is_deleted: bool = False,
        project: ProjectDB | None = None,
        created_at: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc),
    ):
        task = TaskDB(
            title=title,
            description=description,
            due_date=due_date,
            priority=priority,
            is_complete=is_complete,
            is_deleted=is_deleted,
            deleted_at=datetime.now(timezone.utc) if is_deleted else None,
            project_id=project.id if project else None,
            owner_id=owner.id,
            created_at=created_at,
        )
        db_session.add(task)
        await db_session.commit()
        await db_session.refresh(task)
        return task

    return _make_task


@pytest.fixture
def auth_headers():
    """Bearer auth headers for a user, as the frontend would send after login."""

    def _auth_headers(user: UserDB) -> dict[str, str]:
        token_data = create_access_token(user_id=user.id, email=user.email)
        return {"Authorization": f"Bearer {token_data.token}"}

    return _auth_headers


@pytest.fixture
async def client(db_session):
    """Client for the API, every request uses the test's db session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client
    app.dependency_overrides.clear()
