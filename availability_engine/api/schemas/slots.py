from availability_engine.api.schemas.common import CamelModel
from availability_engine.services.conflict_service import ConflictReason


class TimeSlotInfo(CamelModel):
    time: str  # local HH:MM
    is_available: bool
    conflict_reason: ConflictReason | None = None


class SlotsSummary(CamelModel):
    available_count: int
    total_count: int
    date: str  # YYYY-MM-DD


class DaySlotsResponse(CamelModel):
    slots: list[TimeSlotInfo]
    summary: SlotsSummary
