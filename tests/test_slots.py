"""
Tests for slot generation and day listing.
"""

from datetime import UTC, datetime

import pytest

from availability_engine.core.timezones import InvalidLocalDate
from availability_engine.models.calendar_block import BlockType
from availability_engine.services.calendar_block_service import create_block
from availability_engine.services.conflict_service import ConflictReason
from availability_engine.services.slot_service import generate_slots, list_slots_for_date

from conftest import ACTOR, MONDAY, NOW, SATURDAY, WEDNESDAY, save_settings


class TestGenerateSlots:
    def test_working_day_at_session_granularity(self):
        slots = generate_slots("09:00", "17:00", 30)
        assert len(slots) == 16
        assert slots[0] == "09:00"
        assert slots[1] == "09:30"
        assert slots[-1] == "16:30"

    def test_session_must_fit_before_end(self):
        assert generate_slots("09:00", "10:10", 30) == ["09:00", "09:30"]
        assert generate_slots("09:00", "09:20", 30) == []

    def test_is_deterministic(self):
        assert generate_slots("08:15", "12:00", 45) == generate_slots("08:15", "12:00", 45)

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            generate_slots("09:00", "17:00", 0)


class TestListSlots:
    async def test_monday_with_default_hours(self, session):
        await save_settings(session)
        day = await list_slots_for_date(session, ACTOR, MONDAY, now=NOW)
        assert day.total_count == 16
        assert [s.time for s in day.slots][-1] == "16:30"

    async def test_wednesday_scenario(self, session):
        await save_settings(session)
        day = await list_slots_for_date(session, ACTOR, WEDNESDAY, now=NOW)
        assert day.available_count == 16
        assert day.total_count == 16
        assert day.date == WEDNESDAY

        # 12:00-13:00 BST is 11:00-12:00 UTC
        await create_block(
            session, ACTOR, "Team meeting",
            datetime(2030, 6, 5, 11, 0, tzinfo=UTC), datetime(2030, 6, 5, 12, 0, tzinfo=UTC),
            BlockType.MEETING,
        )
        await session.commit()

        day = await list_slots_for_date(session, ACTOR, WEDNESDAY, now=NOW)
        unavailable = {s.time: s.conflict_reason for s in day.slots if not s.is_available}
        assert unavailable == {
            "12:00": ConflictReason.CALENDAR_CONFLICT,
            "12:30": ConflictReason.CALENDAR_CONFLICT,
        }
        assert day.available_count == 14
        assert day.total_count == 16

    async def test_non_working_day_annotates_every_slot(self, session):
        await save_settings(session)
        day = await list_slots_for_date(session, ACTOR, SATURDAY, now=NOW)
        assert day.total_count == 16
        assert day.available_count == 0
        assert {s.conflict_reason for s in day.slots} == {ConflictReason.NOT_WORKING_DAY}

    async def test_unsaved_actor_uses_defaults(self, session):
        day = await list_slots_for_date(session, "someone-new", WEDNESDAY, now=NOW)
        assert day.total_count == 16
        assert day.available_count == 16

    async def test_invalid_date(self, session):
        with pytest.raises(InvalidLocalDate):
            await list_slots_for_date(session, ACTOR, "2030-02-30", now=NOW)

    async def test_lunch_break_slots_are_outside_working_hours(self, session):
        await save_settings(session, include_lunch_break=True)
        day = await list_slots_for_date(session, ACTOR, WEDNESDAY, now=NOW)
        assert day.total_count == 16
        assert day.available_count == 14
        unavailable = {s.time: s.conflict_reason for s in day.slots if not s.is_available}
        assert unavailable == {
            "12:00": ConflictReason.OUTSIDE_WORKING_HOURS,
            "12:30": ConflictReason.OUTSIDE_WORKING_HOURS,
        }

    async def test_lunch_break_ignored_when_disabled(self, session):
        await save_settings(session, lunch_break_start="12:00", lunch_break_end="13:00")
        day = await list_slots_for_date(session, ACTOR, WEDNESDAY, now=NOW)
        assert day.available_count == 16

    async def test_spring_forward_gap_slots_are_invalid(self, session):
        """Working hours spanning the skipped hour mark those starts as InvalidLocalTime."""
        await save_settings(session, working_days=[0], daily_start_time="00:00", daily_end_time="03:00")
        day = await list_slots_for_date(
            session, ACTOR, "2030-03-31", now=datetime(2030, 3, 1, tzinfo=UTC)
        )
        reasons = {s.time: s.conflict_reason for s in day.slots}
        assert reasons["00:30"] is None
        assert reasons["01:00"] == ConflictReason.INVALID_LOCAL_TIME
        assert reasons["01:30"] == ConflictReason.INVALID_LOCAL_TIME
        assert reasons["02:00"] is None
