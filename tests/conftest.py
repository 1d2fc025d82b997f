"""Pytest configuration and shared fixtures"""

import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SMTP_HOST", "")

from datetime import date, timedelta
from typing import AsyncGenerator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

from backoffice.main import app
from backoffice.database import Base, get_db
from backoffice.models import (
    Attendance,
    AttendanceType,
    Client,
    Project,
    ProjectStatus,
    User,
    UserRole,
)
from backoffice.services.auth_service import AuthService
from backoffice.services.notification_service import get_notification_service
from backoffice.services.s3_service import get_s3_service


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create an in-memory test database engine"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for testing"""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


async def make_user(
    db_session: AsyncSession,
    email: str,
    first_name: str,
    role: UserRole,
    salary=None,
) -> User:
    """Insert a user; the password hash is a placeholder since tests use tokens"""
    user = User(
        email=email,
        password_hash="not-a-real-hash",
        phone_numbers=["+971500000000"],
        first_name=first_name,
        last_name="Tester",
        role=role.value,
        salary=salary,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", "Alice", UserRole.ADMIN)


@pytest_asyncio.fixture
async def engineer_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "engineer@example.com", "Eve", UserRole.ENGINEER)


@pytest_asyncio.fixture
async def finance_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "finance@example.com", "Fiona", UserRole.FINANCE)


@pytest_asyncio.fixture
async def workers(db_session: AsyncSession) -> list[User]:
    """Two workers with daily salaries 100 and 50"""
    return [
        await make_user(db_session, "worker1@example.com", "Walter", UserRole.WORKER, salary=100),
        await make_user(db_session, "worker2@example.com", "Wendy", UserRole.WORKER, salary=50),
    ]


@pytest_asyncio.fixture
async def driver_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "driver@example.com", "Dan", UserRole.DRIVER, salary=30)


@pytest_asyncio.fixture
async def sample_client(db_session: AsyncSession, admin_user: User) -> Client:
    """Create a sample client for testing"""
    client = Client(
        client_name="Marina Towers LLC",
        client_address="Dubai Marina, Dubai",
        pincode="123456",
        mobile_number="+971501234567",
        email="facilities@marinatowers.example.com",
        trn_number="100200300400500",
        created_by_id=admin_user.id,
    )
    db_session.add(client)
    await db_session.commit()
    await db_session.refresh(client)
    return client


async def make_project(
    db_session: AsyncSession,
    client: Client,
    creator: User,
    status: ProjectStatus = ProjectStatus.DRAFT,
    number: str = "PRJ-202401-0001",
    name: str = "Lobby Refurbishment",
) -> Project:
    project = Project(
        project_number=number,
        name=name,
        description="Repaint lobby and replace light fittings",
        client_id=client.id,
        location="Dubai Marina",
        building="Tower B",
        apartment_number="Lobby",
        status=status.value,
        progress=0,
        created_by_id=creator.id,
    )
    db_session.add(project)
    await db_session.commit()
    await db_session.refresh(project)
    return project


@pytest_asyncio.fixture
async def sample_project(db_session: AsyncSession, sample_client: Client, admin_user: User) -> Project:
    """Create a draft project for testing"""
    return await make_project(db_session, sample_client, admin_user)


@pytest_asyncio.fixture
async def staffed_project(
    db_session: AsyncSession,
    sample_client: Client,
    admin_user: User,
    workers: list[User],
    driver_user: User,
) -> Project:
    """A project in team_assigned with both workers and the driver"""
    project = await make_project(
        db_session, sample_client, admin_user,
        status=ProjectStatus.TEAM_ASSIGNED, number="PRJ-202401-0002", name="Chiller Overhaul",
    )
    project.assigned_workers = list(workers)
    project.assigned_driver_id = driver_user.id
    await db_session.commit()
    await db_session.refresh(project)
    return project


async def add_attendance(
    db_session: AsyncSession,
    project: Project,
    user: User,
    day: date,
    marked_by: User,
    present: bool = True,
) -> Attendance:
    row = Attendance(
        project_id=project.id,
        user_id=user.id,
        date=day,
        present=present,
        marked_by_id=marked_by.id,
        type=AttendanceType.PROJECT.value,
    )
    db_session.add(row)
    await db_session.commit()
    return row


@pytest.fixture
def base_day() -> date:
    return date(2024, 1, 8)


@pytest.fixture
def days(base_day: date):
    """Consecutive calendar days starting at base_day"""
    return lambda n: [base_day + timedelta(days=i) for i in range(n)]


def auth_headers_for(user: User) -> dict:
    token = AuthService.issue_token(user)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)


@pytest.fixture
def mock_storage():
    """Object storage double returning predictable keys"""
    storage = MagicMock()
    storage.upload_file_async = AsyncMock(
        side_effect=lambda data, folder, filename, *args, **kwargs: {
            "url": f"https://bucket.example.com/{folder}/{filename}",
            "key": f"{folder}/{filename}",
        }
    )
    storage.delete_object_async = AsyncMock(return_value=True)
    return storage


@pytest.fixture
def mock_notifications():
    notifications = MagicMock()
    notifications.send = AsyncMock(return_value=True)
    return notifications


@pytest_asyncio.fixture
async def async_client(db_session: AsyncSession, mock_storage, mock_notifications):
    """Create async test client with database, storage and email overrides"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_s3_service] = lambda: mock_storage
    app.dependency_overrides[get_notification_service] = lambda: mock_notifications

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
