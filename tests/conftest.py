import os

os.environ.setdefault("ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test-availability.db")

from datetime import UTC, datetime

import pytest_asyncio
from sqlmodel import SQLModel

import availability_engine.models  # noqa: F401 - register tables
from availability_engine.core.db import build_engine, build_session_maker
from availability_engine.models.availability_settings import AvailabilitySettingsBase
from availability_engine.services.settings_service import update_settings

ACTOR = "admin"
# Saturday; the following week is inside the lead time and advance-booking window
NOW = datetime(2030, 6, 1, 8, 0, tzinfo=UTC)
MONDAY = "2030-06-03"
WEDNESDAY = "2030-06-05"
SATURDAY = "2030-06-08"


@pytest_asyncio.fixture
async def engine(tmp_path):
    eng = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest_asyncio.fixture
async def session_maker(engine):
    return build_session_maker(engine)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


async def save_settings(session, actor_id: str = ACTOR, **overrides):
    """Store weekday 09:00-17:00, 30-minute sessions in Europe/London unless overridden."""
    values = {"working_days": [1, 2, 3, 4, 5], "time_zone": "Europe/London"}
    values.update(overrides)
    stored = await update_settings(session, actor_id, AvailabilitySettingsBase(**values))
    await session.commit()
    return stored
