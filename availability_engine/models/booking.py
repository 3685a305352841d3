import enum
from datetime import date, datetime

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from availability_engine.models._common import _utc_naive_now


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses that hold their interval on the calendar
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class Booking(SQLModel, table=True):
    __tablename__ = "bookings"
    # idempotency keys are scoped to the actor that issued them
    __table_args__ = (UniqueConstraint("actor_id", "idempotency_key", name="uq_bookings_actor_idempotency_key"),)

    id: int | None = Field(default=None, primary_key=True)
    actor_id: str = Field(index=True)
    scheduled_at: datetime = Field(index=True)  # naive UTC
    local_date: date = Field(index=True)
    duration: int  # minutes
    status: BookingStatus = Field(default=BookingStatus.PENDING, index=True)
    participant_name: str
    participant_email: str
    participant_phone: str | None = None
    notes: str | None = None
    idempotency_key: str | None = None
    created_at: datetime = Field(default_factory=_utc_naive_now)
    updated_at: datetime = Field(default_factory=_utc_naive_now)


class BookingDayLock(SQLModel, table=True):
    """One row per actor and local day; locked FOR UPDATE while reserving."""

    __tablename__ = "booking_day_locks"
    actor_id: str = Field(primary_key=True)
    local_date: date = Field(primary_key=True)
