import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.core.timezones import (
    format_local_time,
    minutes_since_midnight,
    parse_local_date,
    parse_local_time,
    utc_now,
)
from availability_engine.services.conflict_service import ConflictReason, evaluate_slot, load_day_context
from availability_engine.services.settings_service import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimeSlot:
    time: str  # local HH:MM
    is_available: bool
    conflict_reason: ConflictReason | None = None


@dataclass
class DaySlots:
    date: str  # YYYY-MM-DD, actor-local
    slots: list[TimeSlot]

    @property
    def available_count(self) -> int:
        return sum(1 for s in self.slots if s.is_available)

    @property
    def total_count(self) -> int:
        return len(self.slots)


def generate_slots(start_time: time | str, end_time: time | str, interval_minutes: int) -> list[str]:
    """Local HH:MM slot starts from start_time in interval steps. A start is only
    emitted when a full interval still fits before end_time."""
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")
    current = minutes_since_midnight(parse_local_time(start_time))
    end = minutes_since_midnight(parse_local_time(end_time))
    slots: list[str] = []
    while current + interval_minutes <= end:
        slots.append(format_local_time(time(current // 60, current % 60)))
        current += interval_minutes
    return slots


async def list_slots_for_date(
    session: AsyncSession, actor_id: str, local_date: date | str, now: datetime | None = None
) -> DaySlots:
    """All candidate slots of one local day, each annotated with availability.
    Raises InvalidLocalDate for an unparseable date."""
    local_date = parse_local_date(local_date)
    now = now or utc_now()
    actor_settings = await get_settings(session, actor_id)
    candidates = generate_slots(
        actor_settings.daily_start_time, actor_settings.daily_end_time, actor_settings.session_duration
    )
    context = await load_day_context(session, actor_settings, local_date)
    slots = []
    for candidate in candidates:
        check = evaluate_slot(context, candidate, now=now)
        slots.append(TimeSlot(time=candidate, is_available=check.is_available, conflict_reason=check.conflict_reason))
    day = DaySlots(date=local_date.isoformat(), slots=slots)
    logger.debug(
        "Slots for %s on %s: %d/%d available (%d bookings, %d blocks)",
        actor_id, day.date, day.available_count, day.total_count, len(context.bookings), len(context.blocks),
    )
    return day
