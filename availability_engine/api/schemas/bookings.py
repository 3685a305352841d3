from datetime import datetime

from pydantic import EmailStr, Field

from availability_engine.api.schemas.common import CamelModel
from availability_engine.models.booking import BookingStatus
from availability_engine.services.conflict_service import ConflictReason


class ParticipantIn(CamelModel):
    name: str = Field(min_length=1)
    email: EmailStr
    phone: str | None = None


class ReserveRequest(CamelModel):
    date: str  # actor-local YYYY-MM-DD
    time: str  # actor-local HH:MM
    duration: int | None = Field(default=None, gt=0)  # minutes, defaults to the session duration
    participant: ParticipantIn
    notes: str | None = None
    idempotency_key: str | None = Field(default=None, max_length=128)


class ReserveResponse(CamelModel):
    success: bool = True
    booking_id: int
    scheduled_at: datetime
    duration: int
    status: BookingStatus
    created_at: datetime


class ConflictResponse(CamelModel):
    success: bool = False
    conflict_reason: ConflictReason
    detail: str | None = None


class BookingPublic(CamelModel):
    id: int
    actor_id: str
    scheduled_at: datetime
    local_date: str
    duration: int
    status: BookingStatus
    participant_name: str
    participant_email: str
    participant_phone: str | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
