import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.core.timezones import (
    InvalidLocalTimeFormat,
    as_aware_utc,
    day_bounds_utc,
    is_valid_local_instant,
    local_today,
    local_weekday,
    minutes_since_midnight,
    parse_local_time,
    to_naive_utc,
    to_utc,
    utc_now,
)
from availability_engine.models.availability_settings import AvailabilitySettings
from availability_engine.models.booking import ACTIVE_BOOKING_STATUSES, Booking
from availability_engine.models.calendar_block import CalendarBlock
from availability_engine.services.calendar_block_service import list_active_blocks_overlapping

# Minimum delay between "now" and the start of a bookable slot
MIN_LEAD_TIME = timedelta(minutes=30)


class ConflictReason(str, enum.Enum):
    INVALID_DATE = "InvalidDate"
    INVALID_LOCAL_TIME = "InvalidLocalTime"
    INVALID_DURATION = "InvalidDuration"
    NOT_WORKING_DAY = "NotWorkingDay"
    OUTSIDE_WORKING_HOURS = "OutsideWorkingHours"
    PAST_TIME_SLOT = "PastTimeSlot"
    ADVANCE_BOOKING_WINDOW_EXCEEDED = "AdvanceBookingWindowExceeded"
    SLOT_ALREADY_BOOKED = "SlotAlreadyBooked"
    CALENDAR_CONFLICT = "CalendarConflict"
    DAILY_LIMIT_REACHED = "DailyLimitReached"
    STORAGE_ERROR = "StorageError"


@dataclass(frozen=True)
class SlotCheck:
    is_available: bool
    conflict_reason: ConflictReason | None = None
    starts_at: datetime | None = None  # aware UTC, set once the local time resolved


@dataclass
class DayContext:
    """Snapshot of everything that can conflict with a slot on one local day."""

    settings: AvailabilitySettings
    local_date: date
    day_start_utc: datetime
    day_end_utc: datetime
    bookings: list[Booking] = field(default_factory=list)
    blocks: list[CalendarBlock] = field(default_factory=list)


def intervals_overlap(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open [a_start, a_end) and [b_start, b_end) overlap; touching ends do not."""
    return a_start < b_end and b_start < a_end


def working_hours_fit(settings: AvailabilitySettings, start_minutes: int, end_minutes: int) -> bool:
    """True when [start, end) (local minutes since midnight) lies inside the working
    day and, if the lunch break is enabled, does not overlap it."""
    day_start = minutes_since_midnight(parse_local_time(settings.daily_start_time))
    day_end = minutes_since_midnight(parse_local_time(settings.daily_end_time))
    if not (day_start <= start_minutes and end_minutes <= day_end):
        return False
    if settings.include_lunch_break:
        lunch_start = minutes_since_midnight(parse_local_time(settings.lunch_break_start))
        lunch_end = minutes_since_midnight(parse_local_time(settings.lunch_break_end))
        if start_minutes < lunch_end and lunch_start < end_minutes:
            return False
    return True


async def get_active_bookings_for_day(
    session: AsyncSession, actor_id: str, day_start_utc: datetime, day_end_utc: datetime
) -> list[Booking]:
    result = await session.execute(
        select(Booking)
        .where(
            Booking.actor_id == actor_id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.scheduled_at >= to_naive_utc(day_start_utc),
            Booking.scheduled_at < to_naive_utc(day_end_utc),
        )
        .order_by(Booking.scheduled_at)
    )
    return list(result.scalars().all())


async def load_day_context(session: AsyncSession, settings: AvailabilitySettings, local_date: date) -> DayContext:
    day_start, day_end = day_bounds_utc(local_date, settings.time_zone)
    bookings = await get_active_bookings_for_day(session, settings.actor_id, day_start, day_end)
    blocks = await list_active_blocks_overlapping(session, settings.actor_id, day_start, day_end)
    return DayContext(
        settings=settings,
        local_date=local_date,
        day_start_utc=day_start,
        day_end_utc=day_end,
        bookings=bookings,
        blocks=blocks,
    )


def evaluate_slot(
    context: DayContext,
    local_time: time | str,
    duration: int | None = None,
    now: datetime | None = None,
) -> SlotCheck:
    """Check one candidate start against the day snapshot. The first failing rule
    decides the reason; nothing here raises for an unavailable slot."""
    s = context.settings
    try:
        t = parse_local_time(local_time)
    except InvalidLocalTimeFormat:
        return SlotCheck(False, ConflictReason.INVALID_LOCAL_TIME)
    if not is_valid_local_instant(context.local_date, t, s.time_zone):
        return SlotCheck(False, ConflictReason.INVALID_LOCAL_TIME)

    if not s.is_active or local_weekday(context.local_date) not in s.working_days:
        return SlotCheck(False, ConflictReason.NOT_WORKING_DAY)

    length = duration or s.session_duration
    start_minutes = minutes_since_midnight(t)
    # the whole session must end by daily_end_time on its own local day
    if not working_hours_fit(s, start_minutes, start_minutes + length):
        return SlotCheck(False, ConflictReason.OUTSIDE_WORKING_HOURS)

    slot_start = to_utc(context.local_date, t, s.time_zone)
    now = as_aware_utc(now) if now is not None else utc_now()
    if slot_start < now + MIN_LEAD_TIME:
        return SlotCheck(False, ConflictReason.PAST_TIME_SLOT, slot_start)
    if context.local_date > local_today(now, s.time_zone) + timedelta(days=s.advance_booking_days):
        return SlotCheck(False, ConflictReason.ADVANCE_BOOKING_WINDOW_EXCEEDED, slot_start)

    slot_end = slot_start + timedelta(minutes=length)
    buffer = timedelta(minutes=s.buffer_time_between_sessions)
    for booking in context.bookings:
        booked_start = as_aware_utc(booking.scheduled_at)
        booked_end = booked_start + timedelta(minutes=booking.duration)
        # buffer widens the candidate on both sides so neighbours keep their gap
        if intervals_overlap(slot_start - buffer, slot_end + buffer, booked_start, booked_end):
            return SlotCheck(False, ConflictReason.SLOT_ALREADY_BOOKED, slot_start)

    for block in context.blocks:
        if not block.block_type.reduces_availability:
            continue
        if intervals_overlap(slot_start, slot_end, as_aware_utc(block.start_time), as_aware_utc(block.end_time)):
            return SlotCheck(False, ConflictReason.CALENDAR_CONFLICT, slot_start)

    if s.max_sessions_per_day is not None and len(context.bookings) >= s.max_sessions_per_day:
        return SlotCheck(False, ConflictReason.DAILY_LIMIT_REACHED, slot_start)

    return SlotCheck(True, None, slot_start)


async def check_availability(
    session: AsyncSession,
    local_date: date,
    local_time: time | str,
    settings: AvailabilitySettings,
    duration: int | None = None,
    now: datetime | None = None,
) -> SlotCheck:
    context = await load_day_context(session, settings, local_date)
    return evaluate_slot(context, local_time, duration=duration, now=now)
