"""
Pytest configuration and fixtures.

Every test gets its own SQLite database file, so committed data never leaks
between tests.
"""
import os

# Must be set before app.config / app.database are imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_health_signals.db")
os.environ.setdefault("DEBUG", "false")

from collections.abc import AsyncGenerator
from datetime import date, timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.api.deps import get_db
from app.database import Base, build_engine, build_session_maker
from app.main import app
from app.models import DailyMetrics, User
from app.services.analytics_config import AnalyticsConfig, set_analytics_config
from app.services.orchestrator import RefreshOrchestrator


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker:
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def orchestrator(session_factory) -> AsyncGenerator[RefreshOrchestrator, None]:
    orchestrator = RefreshOrchestrator(session_factory, timeout_seconds=5.0)
    yield orchestrator
    await orchestrator.shutdown()


@pytest_asyncio.fixture
async def client(session_factory, orchestrator) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.state.orchestrator = orchestrator

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def default_analytics_config():
    """Reset the global analytics config around every test."""
    set_analytics_config(AnalyticsConfig())
    yield
    set_analytics_config(AnalyticsConfig())


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Create a test user."""
    user = User(
        email="test@example.com",
        timezone="UTC",
        device_sources=[],
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


async def add_daily_metrics(
    db: AsyncSession,
    user_id: int,
    end: date,
    series: dict[str, list],
) -> None:
    """Insert one DailyMetrics row per day ending on `end`.

    `series` maps column name to values, oldest first; None skips the field.
    """
    days = max(len(values) for values in series.values())
    start = end - timedelta(days=days - 1)
    for i in range(days):
        row = DailyMetrics(user_id=user_id, date=start + timedelta(days=i), data_sources=["test"])
        for column, values in series.items():
            if i < len(values) and values[i] is not None:
                setattr(row, column, values[i])
        db.add(row)
    await db.commit()


def alternating_signal(days: int) -> list[int]:
    """+1, +1, -1, -1 repeating."""
    return [(1, 1, -1, -1)[t % 4] for t in range(days)]


def steps_then_sleep_series(days: int = 20) -> dict[str, list]:
    """
    High-step days are followed by shorter sleep the next night.

    Over 20 days this gives a lag-1 r of about -0.57 and nothing significant
    at lag 0 or 2.
    """
    p = alternating_signal(days)
    steps = [9000 + 1500 * p[t] for t in range(days)]
    sleep = [420]
    for s in range(1, days):
        noise = 40 if s % 2 == 0 else -40
        sleep.append(420 - 30 * p[s - 1] + noise)
    return {"steps": steps, "sleep_duration_minutes": sleep}
