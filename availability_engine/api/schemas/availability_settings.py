from datetime import datetime

from pydantic import model_validator

from availability_engine.api.schemas.common import CamelModel
from availability_engine.models.availability_settings import DEFAULT_WORKING_DAYS, AvailabilitySettingsBase
from availability_engine.services.settings_service import validate_settings_values


class AvailabilitySettingsIn(CamelModel):
    time_zone: str = "Europe/London"
    working_days: list[int] = list(DEFAULT_WORKING_DAYS)
    daily_start_time: str = "09:00"
    daily_end_time: str = "17:00"
    lunch_break_start: str = "12:00"
    lunch_break_end: str = "13:00"
    include_lunch_break: bool = False
    session_duration: int = 30
    buffer_time_between_sessions: int = 0
    max_sessions_per_day: int | None = 8
    advance_booking_days: int = 30
    is_active: bool = True
    notes: str | None = None

    @model_validator(mode="after")
    def check_values(self) -> "AvailabilitySettingsIn":
        # InvalidSettings is a ValueError, which pydantic reports as a 422
        validate_settings_values(self.to_base())
        return self

    def to_base(self) -> AvailabilitySettingsBase:
        return AvailabilitySettingsBase(**self.model_dump(include=set(AvailabilitySettingsBase.model_fields)))


class AvailabilitySettingsPublic(AvailabilitySettingsIn):
    actor_id: str
    updated_at: datetime | None = None
