from datetime import datetime

from pydantic import Field

from availability_engine.api.schemas.common import CamelModel
from availability_engine.models.calendar_block import BlockType


class CalendarBlockCreate(CamelModel):
    title: str = Field(min_length=1)
    start_utc: datetime
    end_utc: datetime
    # required: whether a block restricts availability comes only from its type
    block_type: BlockType
    created_by: str | None = None
    description: str | None = None
    notes: str | None = None


class CalendarBlockCreated(CamelModel):
    block_id: int


class CalendarBlockPublic(CamelModel):
    id: int
    actor_id: str
    title: str
    description: str | None = None
    start_time: datetime
    end_time: datetime
    block_type: BlockType
    created_by: str | None = None
    notes: str | None = None
    is_active: bool
    created_at: datetime
