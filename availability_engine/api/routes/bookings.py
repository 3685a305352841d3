import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.api.deps import get_now, get_session
from availability_engine.api.schemas.bookings import (
    BookingPublic,
    ConflictResponse,
    ReserveRequest,
    ReserveResponse,
)
from availability_engine.core.timezones import InvalidLocalDate, as_aware_utc
from availability_engine.models.booking import Booking
from availability_engine.services.booking_service import (
    InvalidStatusTransition,
    Participant,
    cancel_booking,
    complete_booking,
    confirm_booking,
    get_booking,
    list_bookings_for_day,
    reserve,
)
from availability_engine.services.conflict_service import ConflictReason

logger = logging.getLogger(__name__)
router = APIRouter(tags=["bookings"])

_REASON_STATUS = {
    ConflictReason.INVALID_DATE: status.HTTP_400_BAD_REQUEST,
    ConflictReason.INVALID_LOCAL_TIME: status.HTTP_400_BAD_REQUEST,
    ConflictReason.INVALID_DURATION: status.HTTP_400_BAD_REQUEST,
    ConflictReason.STORAGE_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _to_public(b: Booking) -> BookingPublic:
    return BookingPublic(
        id=b.id,
        actor_id=b.actor_id,
        scheduled_at=as_aware_utc(b.scheduled_at),
        local_date=b.local_date.isoformat(),
        duration=b.duration,
        status=b.status,
        participant_name=b.participant_name,
        participant_email=b.participant_email,
        participant_phone=b.participant_phone,
        notes=b.notes,
        created_at=as_aware_utc(b.created_at),
        updated_at=as_aware_utc(b.updated_at),
    )


@router.post(
    "/actors/{actor_id}/bookings",
    response_model=ReserveResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ConflictResponse}, 409: {"model": ConflictResponse}, 503: {"model": ConflictResponse}},
)
async def reserve_slot(
    actor_id: str,
    body: ReserveRequest,
    session: AsyncSession = Depends(get_session),
    now: datetime = Depends(get_now),
):
    result = await reserve(
        session,
        actor_id,
        body.date,
        body.time,
        Participant(name=body.participant.name, email=str(body.participant.email), phone=body.participant.phone),
        duration=body.duration,
        notes=body.notes,
        idempotency_key=body.idempotency_key,
        now=now,
    )
    if not result.success:
        code = _REASON_STATUS.get(result.conflict_reason, status.HTTP_409_CONFLICT)
        content = ConflictResponse(conflict_reason=result.conflict_reason).model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=code, content=content)
    booking = result.booking
    return ReserveResponse(
        booking_id=booking.id,
        scheduled_at=as_aware_utc(booking.scheduled_at),
        duration=booking.duration,
        status=booking.status,
        created_at=as_aware_utc(booking.created_at),
    )


@router.get("/actors/{actor_id}/bookings", response_model=list[BookingPublic])
async def day_bookings(
    actor_id: str,
    date_param: str = Query(..., alias="date"),
    session: AsyncSession = Depends(get_session),
) -> list[BookingPublic]:
    try:
        bookings = await list_bookings_for_day(session, actor_id, date_param)
    except InvalidLocalDate as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return [_to_public(b) for b in bookings]


@router.get("/bookings/{booking_id}", response_model=BookingPublic)
async def booking_detail(booking_id: int, session: AsyncSession = Depends(get_session)) -> BookingPublic:
    booking = await get_booking(session, booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return _to_public(booking)


async def _apply(action, session: AsyncSession, booking_id: int) -> BookingPublic:
    try:
        booking = await action(session, booking_id)
    except InvalidStatusTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e)) from e
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return _to_public(booking)


@router.post("/bookings/{booking_id}/confirm", response_model=BookingPublic)
async def confirm(booking_id: int, session: AsyncSession = Depends(get_session)) -> BookingPublic:
    return await _apply(confirm_booking, session, booking_id)


@router.post("/bookings/{booking_id}/complete", response_model=BookingPublic)
async def complete(booking_id: int, session: AsyncSession = Depends(get_session)) -> BookingPublic:
    return await _apply(complete_booking, session, booking_id)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingPublic)
async def cancel(booking_id: int, session: AsyncSession = Depends(get_session)) -> BookingPublic:
    return await _apply(cancel_booking, session, booking_id)
