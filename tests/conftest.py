"""Shared test fixtures."""

import datetime as dt

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from staffdesk.api.app import app
from staffdesk.api.deps import get_db
from staffdesk.logs.cache import get_log_cache
from staffdesk.logs.records import LogMetadata, TokenUsage, UsageLogRecord
from staffdesk.models.base import Base

NOW = dt.datetime(2026, 3, 15, 12, 0, 0)


def make_record(**overrides) -> UsageLogRecord:
    """Build a usage log record with sensible defaults; keyword arguments override fields."""
    tokens = overrides.pop("tokens", 150)
    feature = overrides.pop("feature", None)
    data = {
        "id": "log-1",
        "user_id": "user-1",
        "created_at": NOW,
        "model_id": "gpt-4o",
        "provider": "openai",
        "request_type": "text_generation",
        "success": True,
        "prompt": "Summarize the quarterly report",
        "response": "The quarter went well.",
        "usage": TokenUsage(input_tokens=tokens - tokens // 3, output_tokens=tokens // 3, total_tokens=tokens),
        "cost": 0.01,
        "latency_ms": 500,
        "finish_reason": "stop",
        "metadata": LogMetadata(feature=feature),
    }
    data.update(overrides)
    return UsageLogRecord(**data)


@pytest.fixture(autouse=True)
def _clear_log_cache():
    """The query cache is process-wide; keep tests independent."""
    get_log_cache().invalidate()
    yield
    get_log_cache().invalidate()


@pytest.fixture
async def test_engine():
    """Create an async SQLite in-memory engine for tests."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the test engine."""
    return async_sessionmaker(test_engine, expire_on_commit=False)


@pytest.fixture
async def db_session(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def api_client(test_engine, test_session_factory):
    """Async HTTP client hitting the FastAPI app with test DB."""

    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def employee(test_session_factory):
    """An active employee hired before the current year."""
    from staffdesk.employees.operations import create_employee

    async with test_session_factory() as session:
        return await create_employee(
            session,
            {
                "name": "Anna Schmidt",
                "email": "anna@example.com",
                "department": "Sales",
                "position": "Account Manager",
                "hire_date": dt.date(2020, 4, 1),
                "office_location": "Berlin",
                "office_country": "Germany",
                "office_country_code": "DE",
            },
            operator="admin",
        )
