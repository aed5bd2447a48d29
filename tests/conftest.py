"""Pytest configuration and fixtures for testing.

This module provides shared fixtures backed by an in-memory SQLite database
for fast and isolated test execution.
"""

import json

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from planner_transfer.api.app import app
from planner_transfer.store import SqlAlchemyStore, get_store
from planner_transfer.services.sample_data import generate_sample_bundle
import planner_transfer.database


@pytest.fixture(scope="function")
def db_engine():
    """Create an in-memory SQLite engine with every planner table.

    Yields:
        SQLAlchemy Engine instance configured for in-memory SQLite.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )

    planner_transfer.database.init_db(engine)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    """Session factory bound to the test engine."""
    return sessionmaker(
        bind=db_engine,
        autoflush=False,
        expire_on_commit=False
    )


@pytest.fixture(scope="function")
def db_session(session_factory):
    """Create a database session for testing.

    Yields:
        SQLAlchemy Session instance for direct database assertions.
    """
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def store(session_factory):
    """SqlAlchemyStore over the in-memory test database."""
    return SqlAlchemyStore(session_factory)


@pytest.fixture(scope="function")
def client(store):
    """Create a FastAPI test client with the store dependency overridden.

    Yields:
        TestClient instance configured with the test store.
    """
    app.dependency_overrides[get_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def clean_db_state():
    """Reset the module-level database state before and after each test."""
    planner_transfer.database._reset_db_state()

    yield

    planner_transfer.database._reset_db_state()


@pytest.fixture
def sample_bundle():
    """A small, deterministic canonical bundle."""
    return generate_sample_bundle(
        task_count=20,
        project_count=3,
        category_count=4,
        plan_count=3,
        journal_weeks=2,
        seed=42,
    )


@pytest.fixture
def sample_bundle_json(sample_bundle):
    return json.dumps(sample_bundle)


def _make_task(task_id, **overrides):
    """A fully populated canonical task record."""
    task = {
        "id": task_id,
        "title": f"Task {task_id}",
        "description": "",
        "completed": False,
        "archived": False,
        "dueDate": None,
        "projectId": None,
        "categoryIds": [],
        "parentTaskId": None,
        "subtasks": [],
        "priority": None,
        "energyLevel": None,
        "size": None,
        "estimatedMinutes": None,
        "createdAt": "2024-01-15T10:30:00.000Z",
        "updatedAt": "2024-01-15T10:30:00.000Z",
    }
    task.update(overrides)
    return task


def _make_work_schedule(schedule_id="schedule-1", shift_count=3):
    """A canonical work schedule record with ``shift_count`` shifts."""
    return {
        "id": schedule_id,
        "name": "My Work Schedule",
        "shifts": [
            {
                "id": f"shift-{i}",
                "date": f"2024-03-{i + 1:02d}",
                "startTime": "07:00",
                "endTime": "19:00",
                "color": "#4F46E5",
                "notes": f"Shift {i} {{cover}} [ward B]",
            }
            for i in range(shift_count)
        ],
        "createdAt": "2024-03-01T08:00:00.000Z",
        "updatedAt": "2024-03-01T08:00:00.000Z",
    }


@pytest.fixture
def make_task():
    """Factory for canonical task records."""
    return _make_task


@pytest.fixture
def make_work_schedule():
    """Factory for canonical work schedule records."""
    return _make_work_schedule
