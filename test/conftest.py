"""
Pytest configuration and fixtures for Task Query API tests
"""

import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

# Configure the application before anything imports the settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import NullPool, StaticPool  # noqa: E402

import taskapi.database as database_module  # noqa: E402
from taskapi.database import Base  # noqa: E402
from taskapi.models.task import Task, TaskSeverity, TaskStatus  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def client(tmp_path, monkeypatch):
    """
    Create a test client backed by a fresh SQLite file per test.

    NullPool opens a new connection for every session so nothing is shared
    with the event loop the client runs the application on.
    """
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}", poolclass=NullPool)
    monkeypatch.setattr(database_module, "engine", test_engine)
    monkeypatch.setattr(
        database_module,
        "AsyncSessionLocal",
        async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False),
    )

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def db_session():
    """Provide a session on an in-memory database with the schema created."""
    test_engine = create_async_engine("sqlite+aiosqlite:///:memory:", poolclass=StaticPool)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session

    await test_engine.dispose()


@pytest.fixture
def sample_tasks() -> list[Task]:
    """Unsaved tasks in insertion order, with ties on status and severity."""
    return [
        Task(id="t1", title="Zeta", description="last letter", assigned_to="bob",
             status=TaskStatus.TODO, severity=TaskSeverity.LOW),
        Task(id="t2", title="Alpha", description="first letter", assigned_to="alice",
             status=TaskStatus.DONE, severity=TaskSeverity.HIGH),
        Task(id="t3", title="Mu", description=None, assigned_to="bob",
             status=TaskStatus.IN_PROGRESS, severity=TaskSeverity.LOW),
        Task(id="t4", title="Alpha", description="duplicate title", assigned_to=None,
             status=TaskStatus.TODO, severity=TaskSeverity.CRITICAL),
    ]


@pytest.fixture
def seeded_client(client):
    """Test client with four tasks created through the bulk endpoint."""
    payload = [
        {"id": "t1", "title": "Zeta", "description": "last letter", "assigned_to": "bob",
         "status": "TODO", "severity": "LOW"},
        {"id": "t2", "title": "Alpha", "description": "first letter", "assigned_to": "alice",
         "status": "DONE", "severity": "HIGH"},
        {"id": "t3", "title": "Mu", "assigned_to": "bob",
         "status": "IN_PROGRESS", "severity": "LOW"},
        {"id": "t4", "title": "Alpha", "description": "duplicate title",
         "status": "TODO", "severity": "CRITICAL"},
    ]
    response = client.post("/api/tasks", json=payload, headers={"X-Action": "bulk"})
    assert response.status_code == 204
    return client
