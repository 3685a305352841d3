from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.api.deps import get_session
from availability_engine.api.schemas.availability_settings import AvailabilitySettingsIn, AvailabilitySettingsPublic
from availability_engine.models.availability_settings import AvailabilitySettings
from availability_engine.services.settings_service import get_settings, update_settings

router = APIRouter(tags=["availability-settings"])


def _to_public(s: AvailabilitySettings) -> AvailabilitySettingsPublic:
    return AvailabilitySettingsPublic(
        actor_id=s.actor_id,
        time_zone=s.time_zone,
        working_days=list(s.working_days),
        daily_start_time=s.daily_start_time,
        daily_end_time=s.daily_end_time,
        lunch_break_start=s.lunch_break_start,
        lunch_break_end=s.lunch_break_end,
        include_lunch_break=s.include_lunch_break,
        session_duration=s.session_duration,
        buffer_time_between_sessions=s.buffer_time_between_sessions,
        max_sessions_per_day=s.max_sessions_per_day,
        advance_booking_days=s.advance_booking_days,
        is_active=s.is_active,
        notes=s.notes,
        updated_at=s.updated_at if s.id is not None else None,
    )


@router.get("/actors/{actor_id}/availability-settings", response_model=AvailabilitySettingsPublic)
async def read_settings(actor_id: str, session: AsyncSession = Depends(get_session)) -> AvailabilitySettingsPublic:
    """Stored settings, or the defaults when the actor has never saved any."""
    return _to_public(await get_settings(session, actor_id))


@router.put("/actors/{actor_id}/availability-settings", response_model=AvailabilitySettingsPublic)
async def replace_settings(
    actor_id: str,
    body: AvailabilitySettingsIn,
    session: AsyncSession = Depends(get_session),
) -> AvailabilitySettingsPublic:
    stored = await update_settings(session, actor_id, body.to_base())
    return _to_public(stored)
