"""
Pytest configuration and fixtures for Taskgraph tests.
"""

import os
import uuid

# Settings and the engine are built at import time; point them at SQLite first
os.environ.setdefault("TASKGRAPH_DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("TASKGRAPH_NOTIFICATIONS_ENABLED", "false")

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlmodel import SQLModel

from app.main import app
from app.database import get_session
from app.models import Project, Task
from app.services.dependency_service import DependencyService, ProjectLockRegistry


def tid(name: str) -> uuid.UUID:
    """Deterministic task id; ids sort in the same order as their names."""
    return uuid.UUID(int=ord(name))


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """Create a test database engine backed by a temporary SQLite file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskgraph.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine):
    return async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


@pytest_asyncio.fixture(scope="function")
async def test_session(session_maker):
    """Create a test database session."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def locks():
    return ProjectLockRegistry()


@pytest.fixture
def service(test_session, locks) -> DependencyService:
    return DependencyService.from_session(test_session, locks=locks)


@pytest_asyncio.fixture
async def project(test_session) -> Project:
    project = Project(name="Website launch")
    test_session.add(project)
    await test_session.commit()
    return project


@pytest.fixture
def make_tasks(test_session, project):
    """
    Factory for tasks of the project fixture.

    make_tasks(A=2, B=3) creates tasks "A" and "B" with ids tid("A"), tid("B")
    and the given estimated durations in hours.
    """
    async def _make(project_id: uuid.UUID | None = None, **durations) -> dict[str, Task]:
        tasks = {
            name: Task(
                id=tid(name),
                title=name,
                estimated_duration_hours=hours,
                project_id=project_id or project.id,
            )
            for name, hours in durations.items()
        }
        test_session.add_all(tasks.values())
        await test_session.commit()
        return tasks

    return _make


@pytest_asyncio.fixture(scope="function")
async def client(session_maker):
    """Create an async test client with test database."""
    async def override_get_session():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
