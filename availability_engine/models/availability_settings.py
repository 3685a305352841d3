from datetime import datetime

from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from availability_engine.models._common import _utc_naive_now

DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]  # 0=Sunday ... 6=Saturday


class AvailabilitySettingsBase(SQLModel):
    time_zone: str = "Europe/London"
    working_days: list[int] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS), sa_type=JSON)
    daily_start_time: str = "09:00"
    daily_end_time: str = "17:00"
    lunch_break_start: str = "12:00"
    lunch_break_end: str = "13:00"
    include_lunch_break: bool = False
    session_duration: int = 30  # minutes
    buffer_time_between_sessions: int = 0  # minutes
    max_sessions_per_day: int | None = 8
    advance_booking_days: int = 30
    is_active: bool = True
    notes: str | None = None


class AvailabilitySettings(AvailabilitySettingsBase, table=True):
    __tablename__ = "availability_settings"
    id: int | None = Field(default=None, primary_key=True)
    actor_id: str = Field(unique=True, index=True)
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)
