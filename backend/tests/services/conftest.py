"""Service test fixtures — async DB + FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite file in WAL mode; each session holds its
      own connection, so two sessions are two real transactions
    - get_db dependency overridden to use test DB session
    - db_manager patched so readiness checks hit the test engine
    - Notifications captured by a recording dispatcher, never delivered

Design Decisions:
    - SQLite file: no external dependency; the partial unique
      indexes are created through sqlite_where so the single-manager backstop
      is exercised here too
    - One engine, many sessions: concurrent-writer scenarios open a second
      session from test_session_factory; a writer blocked on another
      transaction waits in the driver thread (busy timeout), not the event loop
"""

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from collab.api.deps import get_notifier
from collab.db.base import Base
from collab.infrastructure.database import get_db, DatabaseSessionManager
import collab.infrastructure.database as db_module
from collab.main import app
from collab.services.user_directory import UserDirectory


class RecordingDispatcher:
    """NotificationDispatcher that remembers every call."""

    def __init__(self):
        self.sent: list[dict] = []
        self.fail_for: set = set()

    async def notify(self, user_id, title, body, link):
        if user_id in self.fail_for:
            raise RuntimeError("delivery failed")
        self.sent.append(
            {"user_id": user_id, "title": title, "body": body, "link": link},
        )


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'collab.db'}",
        echo=False,
        connect_args={"timeout": 10},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _wal_mode(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()


@pytest.fixture
async def client(test_engine, test_session_factory, dispatcher):
    """FastAPI test client with DB and notifier dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: dispatcher

    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def make_user(test_db):
    """Factory: create a user through UserDirectory and return it."""
    counter = {"n": 0}

    async def _make(role: str | None = None, email: str | None = None):
        counter["n"] += 1
        email = email or f"user{counter['n']}@example.com"
        return await UserDirectory(test_db).create_user(
            email, f"User {counter['n']}", role,
        )

    return _make


@pytest.fixture
async def users(make_user):
    """Ids of seven users, users[1]..users[7]; users[0] is None so indexes match U1..U7.

    Ids rather than ORM rows: a rolled-back transaction expires loaded rows.
    """
    return [None] + [(await make_user()).id for _ in range(7)]
