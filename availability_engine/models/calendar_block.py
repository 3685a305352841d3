import enum
from datetime import datetime

from sqlmodel import Field, SQLModel

from availability_engine.models._common import _utc_naive_now


class BlockType(str, enum.Enum):
    MEETING = "meeting"
    BLOCKED = "blocked"
    HOLIDAY = "holiday"
    TRAINING = "training"
    PERSONAL = "personal"
    MAINTENANCE = "maintenance"
    AVAILABILITY_WINDOW = "availability-window"

    @property
    def reduces_availability(self) -> bool:
        return self is not BlockType.AVAILABILITY_WINDOW


class CalendarBlock(SQLModel, table=True):
    __tablename__ = "calendar_blocks"
    id: int | None = Field(default=None, primary_key=True)
    actor_id: str = Field(index=True)
    title: str
    description: str | None = None
    start_time: datetime = Field(index=True)  # naive UTC
    end_time: datetime = Field(index=True)  # naive UTC
    block_type: BlockType
    created_by: str | None = None
    notes: str | None = None
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=_utc_naive_now)
    deactivated_at: datetime | None = None
