import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.core.config import settings as app_settings
from availability_engine.core.timezones import (
    InvalidLocalTimeFormat,
    UnknownTimeZone,
    minutes_since_midnight,
    parse_local_time,
    resolve_zone,
)
from availability_engine.models._common import _utc_naive_now
from availability_engine.models.availability_settings import AvailabilitySettings, AvailabilitySettingsBase

logger = logging.getLogger(__name__)


class InvalidSettings(ValueError):
    pass


def validate_settings_values(data: AvailabilitySettingsBase) -> None:
    """Raise InvalidSettings when a configuration could not produce sane slots."""
    try:
        resolve_zone(data.time_zone)
    except UnknownTimeZone as e:
        raise InvalidSettings(str(e)) from e
    if any(not 0 <= d <= 6 for d in data.working_days):
        raise InvalidSettings("working_days must be weekday indices 0 (Sunday) to 6 (Saturday)")
    try:
        start = minutes_since_midnight(parse_local_time(data.daily_start_time))
        end = minutes_since_midnight(parse_local_time(data.daily_end_time))
    except InvalidLocalTimeFormat as e:
        raise InvalidSettings(str(e)) from e
    if start >= end:
        raise InvalidSettings("daily_start_time must be before daily_end_time")
    if data.include_lunch_break:
        try:
            lunch_start = minutes_since_midnight(parse_local_time(data.lunch_break_start))
            lunch_end = minutes_since_midnight(parse_local_time(data.lunch_break_end))
        except InvalidLocalTimeFormat as e:
            raise InvalidSettings(str(e)) from e
        if lunch_start >= lunch_end:
            raise InvalidSettings("lunch_break_start must be before lunch_break_end")
    if data.session_duration <= 0:
        raise InvalidSettings("session_duration must be positive")
    if data.buffer_time_between_sessions < 0:
        raise InvalidSettings("buffer_time_between_sessions must not be negative")
    if data.max_sessions_per_day is not None and data.max_sessions_per_day < 0:
        raise InvalidSettings("max_sessions_per_day must not be negative")
    if data.advance_booking_days < 0:
        raise InvalidSettings("advance_booking_days must not be negative")


async def get_stored_settings(session: AsyncSession, actor_id: str) -> AvailabilitySettings | None:
    result = await session.execute(select(AvailabilitySettings).where(AvailabilitySettings.actor_id == actor_id))
    return result.scalar_one_or_none()


async def get_settings(session: AsyncSession, actor_id: str) -> AvailabilitySettings:
    """Stored settings for the actor, or unsaved defaults when none exist yet."""
    stored = await get_stored_settings(session, actor_id)
    if stored:
        return stored
    return AvailabilitySettings(actor_id=actor_id, time_zone=app_settings.default_time_zone)


async def update_settings(
    session: AsyncSession, actor_id: str, data: AvailabilitySettingsBase
) -> AvailabilitySettings:
    """Replace the actor's configuration wholesale. Existing bookings are left alone:
    working hours are enforced when a booking is made, not re-checked later."""
    validate_settings_values(data)
    stored = await get_stored_settings(session, actor_id)
    if stored is None:
        stored = AvailabilitySettings(actor_id=actor_id)
    for name in AvailabilitySettingsBase.model_fields:
        value = getattr(data, name)
        if name == "working_days":
            value = sorted(set(value))
        setattr(stored, name, value)
    stored.updated_at = _utc_naive_now()
    session.add(stored)
    await session.flush()
    await session.refresh(stored)
    logger.info(
        "Availability settings for %s: days=%s %s-%s every %d min (tz %s)",
        actor_id, stored.working_days, stored.daily_start_time, stored.daily_end_time,
        stored.session_duration, stored.time_zone,
    )
    return stored
