"""Shared test fixtures. Runs against in-memory SQLite; no PostgreSQL or Redis needed."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Keep a developer .env from pointing the suite at a real database
os.environ.setdefault("PQ_ENVIRONMENT", "test")
os.environ.setdefault("PQ_LOG_FORMAT", "console")

from playquest.auth.jwt import create_access_token  # noqa: E402
from playquest.config import get_settings  # noqa: E402
from playquest.database import get_session  # noqa: E402
from playquest.db.models import Achievement, Base, Challenge, Game, Reward  # noqa: E402
from playquest.main import create_app  # noqa: E402

USER_ID = "0b7a4f5e-0000-4000-8000-000000000001"
OTHER_USER_ID = "0b7a4f5e-0000-4000-8000-000000000002"


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Session factory bound to a fresh in-memory database with all tables."""
    get_settings.cache_clear()
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    """A direct database session for service-level tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def redis_mock() -> AsyncMock:
    """Stand-in Redis client; only ``publish`` is used by the services."""
    mock = AsyncMock()
    mock.publish = AsyncMock(return_value=1)
    return mock


@pytest_asyncio.fixture
async def catalog(db_session: AsyncSession) -> dict[str, int]:
    """A small catalog: one game, one reward, achievements and challenges. Returns ids by slug."""
    game = Game(slug="math-missions", name="Math Missions", subject="mathematics",
                difficulty_level=1, playcoins_reward=20, xp_reward=40)
    reward = Reward(slug="geometry-box", name="Geometry Box", description="Compass and ruler",
                    category="study", playcoins_cost=50, stock_quantity=2)
    first_game = Achievement(slug="first_game", name="First Steps", requirement_type="games_completed",
                             requirement_value=1, xp_reward=25, playcoins_reward=10, sort_order=1)
    level_2 = Achievement(slug="level_2", name="Level Two", requirement_type="level_reached",
                          requirement_value=2, xp_reward=0, playcoins_reward=5, sort_order=2)
    streak_3 = Achievement(slug="streak_3", name="On a Roll", requirement_type="streak_days",
                           requirement_value=3, xp_reward=30, playcoins_reward=15, sort_order=3)
    daily = Challenge(slug="daily_play_2", cadence="daily", title="Double Play",
                      challenge_type="games_completed", requirement_value=2,
                      playcoins_reward=10, xp_reward=20)
    weekly = Challenge(slug="weekly_quiz", cadence="weekly", title="Quiz Week",
                       challenge_type="quiz_correct", requirement_value=5,
                       playcoins_reward=30, xp_reward=60)
    db_session.add_all([game, reward, first_game, level_2, streak_3, daily, weekly])
    await db_session.commit()
    return {
        "game": game.id,
        "reward": reward.id,
        "first_game": first_game.id,
        "level_2": level_2.id,
        "streak_3": streak_3.id,
        "daily": daily.id,
        "weekly": weekly.id,
    }


@pytest_asyncio.fixture
async def client(session_factory: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the session dependency bound to the test database."""
    app = create_app()

    async def _override_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = _override_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def auth_headers(user_id: str = USER_ID, role: str = "authenticated") -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth_headers()


@pytest.fixture
def service_headers() -> dict[str, str]:
    return auth_headers("edge-caller", "service_role")
