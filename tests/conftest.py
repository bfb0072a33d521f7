"""
Shared test fixtures — async DB, event store, FastAPI test client.
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import portfolio_api.models  # noqa: F401  (registers tables on Base.metadata)
from portfolio_api.database import Base, get_db
from portfolio_api.main import app
from portfolio_api.routes import get_event_store
from portfolio_api.schemas.analytics import AnalyticsEventRecord
from portfolio_api.services.event_store import SqlEventStore
from portfolio_api.services.visitor import MemoryVisitorStorage


# ── Test Database (SQLite in-memory) ────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

NOW = datetime(2024, 1, 20, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def event_store(session_factory):
    return SqlEventStore(session_factory)


@pytest_asyncio.fixture()
async def client(session_factory, event_store):
    """FastAPI test client with test DB and event store injected."""

    async def _override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_event_store] = lambda: event_store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# ── Visitor storage ─────────────────────────────────────

@pytest.fixture
def browser():
    """A fresh simulated browser with empty local storage."""
    return MemoryVisitorStorage()


# ── Event factory ───────────────────────────────────────

def make_event(
    event_type: str = "page_view",
    visitor_id: str | None = "v1",
    project_id: str | None = None,
    created_at: datetime | str | None = None,
    profile_id: str = "profile-1",
) -> AnalyticsEventRecord:
    """Build a stored-looking event. ``created_at`` may be a 'YYYY-MM-DD' string."""
    if created_at is None:
        created_at = NOW - timedelta(hours=1)
    elif isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at).replace(hour=12, tzinfo=timezone.utc)
    return AnalyticsEventRecord(
        id=str(uuid.uuid4()),
        profile_id=profile_id,
        project_id=project_id,
        event_type=event_type,
        visitor_id=visitor_id,
        created_at=created_at,
    )


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def now():
    return NOW


SAMPLE_PROFILE = {
    "username": "ada_l",
    "full_name": "Ada Lovelace",
    "headline": "Analytical engine programmer",
    "bio": "Notes on the engine.",
    "profession": "Engineer",
    "location": "London",
    "avatar_url": "https://example.com/ada.png",
}


@pytest.fixture
def sample_profile():
    return dict(SAMPLE_PROFILE)
