"""
Tests for the availability checks and their ordering.
"""

from datetime import UTC, date, datetime

import pytest

from availability_engine.models.calendar_block import BlockType
from availability_engine.services.booking_service import Participant, reserve
from availability_engine.services.calendar_block_service import create_block, deactivate_block
from availability_engine.services.conflict_service import (
    ConflictReason,
    check_availability,
    intervals_overlap,
)
from availability_engine.services.settings_service import get_settings

from conftest import ACTOR, NOW, SATURDAY, WEDNESDAY, save_settings

WED = date(2030, 6, 5)
ALICE = Participant(name="Alice", email="alice@example.com")


async def _check(session, local_time, local_date=WED, now=NOW, duration=None):
    actor_settings = await get_settings(session, ACTOR)
    return await check_availability(session, local_date, local_time, actor_settings, duration=duration, now=now)


class TestIntervalOverlap:
    def test_touching_intervals_do_not_overlap(self):
        a = datetime(2030, 6, 5, 9, 0)
        b = datetime(2030, 6, 5, 9, 30)
        c = datetime(2030, 6, 5, 10, 0)
        assert not intervals_overlap(a, b, b, c)
        assert intervals_overlap(a, c, b, c)


class TestCheckOrder:
    async def test_available_slot(self, session):
        await save_settings(session)
        check = await _check(session, "10:00")
        assert check.is_available
        assert check.conflict_reason is None
        assert check.starts_at == datetime(2030, 6, 5, 9, 0, tzinfo=UTC)

    async def test_not_working_day(self, session):
        await save_settings(session)
        check = await _check(session, "10:00", local_date=date.fromisoformat(SATURDAY))
        assert check.conflict_reason == ConflictReason.NOT_WORKING_DAY

    async def test_inactive_settings_close_every_day(self, session):
        await save_settings(session, is_active=False)
        check = await _check(session, "10:00")
        assert check.conflict_reason == ConflictReason.NOT_WORKING_DAY

    @pytest.mark.parametrize("local_time", ["08:30", "16:45", "17:00", "18:15"])
    async def test_outside_working_hours(self, session, local_time):
        await save_settings(session)
        check = await _check(session, local_time)
        assert check.conflict_reason == ConflictReason.OUTSIDE_WORKING_HOURS

    async def test_session_overlapping_lunch_break(self, session):
        await save_settings(session, include_lunch_break=True, lunch_break_start="12:30", lunch_break_end="13:30")
        assert (await _check(session, "12:15")).conflict_reason == ConflictReason.OUTSIDE_WORKING_HOURS
        assert (await _check(session, "13:00")).conflict_reason == ConflictReason.OUTSIDE_WORKING_HOURS
        assert (await _check(session, "12:00")).is_available
        assert (await _check(session, "13:30")).is_available
        assert (await _check(session, "11:00", duration=120)).conflict_reason == ConflictReason.OUTSIDE_WORKING_HOURS

    async def test_malformed_time(self, session):
        await save_settings(session)
        check = await _check(session, "10h00")
        assert check.conflict_reason == ConflictReason.INVALID_LOCAL_TIME

    async def test_non_working_day_wins_over_hours(self, session):
        await save_settings(session)
        check = await _check(session, "20:00", local_date=date.fromisoformat(SATURDAY))
        assert check.conflict_reason == ConflictReason.NOT_WORKING_DAY


class TestLeadTime:
    async def test_slot_ten_minutes_away_is_past(self, session):
        await save_settings(session)
        # 10:20 BST
        check = await _check(session, "10:30", now=datetime(2030, 6, 5, 9, 20, tzinfo=UTC))
        assert check.conflict_reason == ConflictReason.PAST_TIME_SLOT

    async def test_slot_thirty_one_minutes_away_is_bookable(self, session):
        await save_settings(session)
        # 09:59 BST
        check = await _check(session, "10:30", now=datetime(2030, 6, 5, 8, 59, tzinfo=UTC))
        assert check.is_available

    async def test_beyond_advance_window(self, session):
        await save_settings(session, advance_booking_days=30)
        check = await _check(session, "10:00", local_date=date(2030, 7, 10))
        assert check.conflict_reason == ConflictReason.ADVANCE_BOOKING_WINDOW_EXCEEDED

    async def test_last_day_of_advance_window(self, session):
        await save_settings(session, advance_booking_days=4)
        assert (await _check(session, "10:00")).is_available  # NOW is 2030-06-01


class TestBookedSlots:
    async def test_overlapping_booking(self, session):
        await save_settings(session)
        assert (await reserve(session, ACTOR, WEDNESDAY, "10:00", ALICE, now=NOW)).success
        assert (await _check(session, "10:00")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
        # 09:45 for 30 minutes runs into the 10:00 booking
        assert (await _check(session, "09:45")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED

    async def test_adjacent_slots_stay_free(self, session):
        await save_settings(session)
        assert (await reserve(session, ACTOR, WEDNESDAY, "10:00", ALICE, now=NOW)).success
        assert (await _check(session, "09:30")).is_available
        assert (await _check(session, "10:30")).is_available

    async def test_buffer_keeps_neighbours_apart(self, session):
        await save_settings(session, buffer_time_between_sessions=10)
        assert (await reserve(session, ACTOR, WEDNESDAY, "10:00", ALICE, now=NOW)).success
        assert (await _check(session, "09:30")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
        assert (await _check(session, "10:30")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
        assert (await _check(session, "09:00")).is_available
        assert (await _check(session, "11:00")).is_available

    async def test_longer_existing_booking(self, session):
        await save_settings(session)
        assert (await reserve(session, ACTOR, WEDNESDAY, "10:00", ALICE, duration=90, now=NOW)).success
        assert (await _check(session, "11:00")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
        assert (await _check(session, "11:30")).is_available

    async def test_daily_limit(self, session):
        await save_settings(session, max_sessions_per_day=1)
        assert (await reserve(session, ACTOR, WEDNESDAY, "10:00", ALICE, now=NOW)).success
        assert (await _check(session, "14:00")).conflict_reason == ConflictReason.DAILY_LIMIT_REACHED

    async def test_late_booking_west_of_utc_counts_for_its_local_day(self, session):
        """A 23:45 New York booking lands on the next UTC date but still blocks 23:40."""
        await save_settings(
            session,
            time_zone="America/New_York",
            working_days=[0, 1, 2, 3, 4, 5, 6],
            daily_start_time="09:00",
            daily_end_time="23:59",
        )
        result = await reserve(session, ACTOR, WEDNESDAY, "23:45", ALICE, duration=10, now=NOW)
        assert result.success
        assert result.booking.scheduled_at == datetime(2030, 6, 6, 3, 45)
        assert (await _check(session, "23:40", duration=10)).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
        assert (await _check(session, "23:00")).is_available


class TestCalendarBlocks:
    async def _block(self, session, block_type, start_hour=11, end_hour=12):
        block = await create_block(
            session, ACTOR, "Blocked out",
            datetime(2030, 6, 5, start_hour, 0, tzinfo=UTC), datetime(2030, 6, 5, end_hour, 0, tzinfo=UTC),
            block_type,
        )
        await session.commit()
        return block

    async def test_meeting_block_conflicts(self, session):
        await save_settings(session)
        await self._block(session, BlockType.MEETING)
        assert (await _check(session, "12:00")).conflict_reason == ConflictReason.CALENDAR_CONFLICT
        assert (await _check(session, "11:30")).is_available
        assert (await _check(session, "13:00")).is_available

    async def test_availability_window_does_not_conflict(self, session):
        await save_settings(session)
        await self._block(session, BlockType.AVAILABILITY_WINDOW)
        assert (await _check(session, "12:00")).is_available

    @pytest.mark.parametrize(
        "block_type",
        [BlockType.BLOCKED, BlockType.HOLIDAY, BlockType.TRAINING, BlockType.PERSONAL, BlockType.MAINTENANCE],
    )
    async def test_every_other_type_reduces_availability(self, session, block_type):
        await save_settings(session)
        await self._block(session, block_type)
        assert (await _check(session, "12:30")).conflict_reason == ConflictReason.CALENDAR_CONFLICT

    async def test_title_does_not_change_classification(self, session):
        await save_settings(session)
        await create_block(
            session, ACTOR, "Open - free and available",
            datetime(2030, 6, 5, 11, 0, tzinfo=UTC), datetime(2030, 6, 5, 12, 0, tzinfo=UTC),
            BlockType.BLOCKED,
        )
        await session.commit()
        assert (await _check(session, "12:00")).conflict_reason == ConflictReason.CALENDAR_CONFLICT

    async def test_deactivated_block_no_longer_conflicts(self, session):
        await save_settings(session)
        block = await self._block(session, BlockType.HOLIDAY)
        assert await deactivate_block(session, block.id)
        await session.commit()
        assert (await _check(session, "12:00")).is_available

    async def test_booking_reported_before_block(self, session):
        await save_settings(session)
        assert (await reserve(session, ACTOR, WEDNESDAY, "12:00", ALICE, now=NOW)).success
        await self._block(session, BlockType.MEETING)
        assert (await _check(session, "12:00")).conflict_reason == ConflictReason.SLOT_ALREADY_BOOKED
