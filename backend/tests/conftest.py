"""
Postbox Backend — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── mock_db_session: AsyncMock session for service unit tests
    ├── make_message / make_user: unsaved ORM instances with sane defaults
    ├── database: real Database on in-memory SQLite, tables created
    ├── seeded: one user owning one message (saved)
    └── test_client: HTTPX AsyncClient wired to an app using `database`
"""

import os
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

# Override settings BEFORE any postbox imports so the module-level app
# never points at a real PostgreSQL server
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from postbox.config import Settings
from postbox.database import Database
from postbox.main import create_app
from postbox.models.message import Message
from postbox.models.user import User
from postbox.services.user_service import UserService


SAMPLE_PASSWORD = "mypassword"


def scalar_result(value):
    """A mocked Result whose scalar_one_or_none() returns `value`."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


def scalars_result(values):
    """A mocked Result whose scalars().all() returns `values`."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = list(values)
    return result


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        mock_db_session.execute.return_value = scalar_result(message)
        result = await message_service.get_message(mock_db_session, message.id)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.refresh = AsyncMock()
    session.delete = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_user():
    def _make_user(username="myuser", messages=None):
        return User(
            id=uuid.uuid4(),
            username=username,
            password_hash="not-a-real-hash",
            messages=list(messages or []),
            created_at=datetime.now(timezone.utc),
        )
    return _make_user


@pytest.fixture
def make_message():
    def _make_message(title="test message", body="test body", author_id=None):
        now = datetime.now(timezone.utc)
        return Message(
            id=uuid.uuid4(),
            title=title,
            body=body,
            author_id=author_id,
            created_at=now,
            updated_at=now,
        )
    return _make_message


@pytest.fixture
def test_settings():
    return Settings(database_url="sqlite+aiosqlite:///:memory:", log_level="WARNING")


@pytest_asyncio.fixture
async def database(test_settings):
    """
    A fresh in-memory SQLite database per test.

    StaticPool keeps one connection open, so every session in the test
    sees the same in-memory database.
    """
    db = Database(test_settings)
    await db.create_all()
    yield db
    await db.dispose()


@pytest_asyncio.fixture
async def seeded(database):
    """
    One user ('myuser') owning one message ('test message' / 'test body'),
    with the message id already in the user's list.

    Returns:
        dict with `user_id` and `message_id`
    """
    hasher = UserService()
    async with database.session() as db:
        user = User(
            id=uuid.uuid4(),
            username="myuser",
            password_hash=hasher.hash_password(SAMPLE_PASSWORD),
            messages=[],
        )
        db.add(user)
        await db.flush()

        message = Message(
            id=uuid.uuid4(),
            title="test message",
            body="test body",
            author_id=user.id,
        )
        db.add(message)
        await db.flush()

        user.messages = [str(message.id)]

    return {"user_id": user.id, "message_id": message.id}


@pytest_asyncio.fixture
async def test_client(test_settings, database):
    """
    HTTPX AsyncClient talking to a fresh app bound to `database`.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    app = create_app(test_settings, database=database)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
