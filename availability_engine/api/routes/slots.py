from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.api.deps import get_now, get_session
from availability_engine.api.schemas.bookings import ConflictResponse
from availability_engine.api.schemas.slots import DaySlotsResponse, SlotsSummary, TimeSlotInfo
from availability_engine.core.timezones import InvalidLocalDate
from availability_engine.services.conflict_service import ConflictReason
from availability_engine.services.slot_service import list_slots_for_date

router = APIRouter(tags=["slots"])


@router.get(
    "/actors/{actor_id}/slots",
    response_model=DaySlotsResponse,
    responses={400: {"model": ConflictResponse}},
)
async def day_slots(
    actor_id: str,
    date_param: str = Query(..., alias="date", description="Actor-local date, YYYY-MM-DD"),
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
):
    """Every candidate slot of the local day with its availability and, when
    unavailable, the first rule it failed."""
    try:
        day = await list_slots_for_date(session, actor_id, date_param, now=now)
    except InvalidLocalDate as e:
        body = ConflictResponse(conflict_reason=ConflictReason.INVALID_DATE, detail=str(e))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump(mode="json", by_alias=True))
    return DaySlotsResponse(
        slots=[
            TimeSlotInfo(time=s.time, is_available=s.is_available, conflict_reason=s.conflict_reason)
            for s in day.slots
        ],
        summary=SlotsSummary(available_count=day.available_count, total_count=day.total_count, date=day.date),
    )
