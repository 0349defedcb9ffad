"""Shared test fixtures for all test groups."""

import os
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from gridiron.db.base import Base, build_engine, build_session_factory
from gridiron.db.models import Athlete
from gridiron.onboarding.finalizer import InMemoryOnboardingFinalizer
from gridiron.onboarding.notifications import RecordingNotificationSink
from gridiron.onboarding.store import InMemoryProgressStore


class FakeClock:
    """Deterministic wall clock; each call advances by ``step``."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)):
        self.now = start or datetime(2025, 3, 1, 12, 0, tzinfo=UTC)
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def progress_store():
    """Fresh InMemoryProgressStore with happy_path scenario (default)."""
    return InMemoryProgressStore(scenario="happy_path")


@pytest.fixture
def progress_store_failing_save():
    return InMemoryProgressStore(scenario="save_failure")


@pytest.fixture
def progress_store_failing_load():
    return InMemoryProgressStore(scenario="load_failure")


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
def finalizer():
    return InMemoryOnboardingFinalizer(scenario="happy_path")


@pytest.fixture
def complete_form_data():
    """Form data that satisfies every required field of every section."""
    return {
        "personalInfo": {
            "firstName": "Jordan",
            "lastName": "Reyes",
            "dateOfBirth": "2008-04-12",
            "school": "Lincoln High",
            "graduationYear": 2026,
        },
        "footballInfo": {"position": "QB", "yearsPlayed": 4, "teamLevel": "varsity"},
        "athleticMetrics": {"height": "6'1\"", "weight": 185, "fortyYard": 4.7},
        "academicProfile": {"gpa": 3.6},
        "strengthConditioning": {"yearsTraining": 3, "daysPerWeek": 4},
        "nutrition": {"dietType": "balanced"},
        "recruitingGoals": {"desiredDivision": "D1"},
    }


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
def database_url(tmp_path) -> str:
    """File-backed SQLite per test unless TEST_DATABASE_URL points elsewhere."""
    return os.getenv("TEST_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'gridiron_test.db'}")


@pytest.fixture
async def engine(database_url) -> AsyncEngine:
    """Create the test engine with a fresh schema, dropped on teardown."""
    engine = build_engine(database_url)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return build_session_factory(engine)


@pytest.fixture
async def athlete(session_factory) -> Athlete:
    """Athlete owned by user_a."""
    async with session_factory() as session:
        athlete = Athlete(user_id="user_a", onboarding_completed=False)
        session.add(athlete)
        await session.commit()
        await session.refresh(athlete)
        return athlete


@pytest.fixture
async def other_athlete(session_factory) -> Athlete:
    """Athlete owned by user_b."""
    async with session_factory() as session:
        athlete = Athlete(user_id="user_b", onboarding_completed=False)
        session.add(athlete)
        await session.commit()
        await session.refresh(athlete)
        return athlete
