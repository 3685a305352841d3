import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.core.timezones import (
    InvalidLocalDate,
    day_bounds_utc,
    parse_local_date,
    to_naive_utc,
)
from availability_engine.models._common import _utc_naive_now
from availability_engine.models.booking import Booking, BookingStatus
from availability_engine.services.conflict_service import ConflictReason, check_availability
from availability_engine.services.locks import day_locks, lock_day_row
from availability_engine.services.settings_service import get_settings

logger = logging.getLogger(__name__)

_ALLOWED_TRANSITIONS: dict[BookingStatus, set[BookingStatus]] = {
    BookingStatus.PENDING: {BookingStatus.CONFIRMED, BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.COMPLETED, BookingStatus.CANCELLED},
    BookingStatus.COMPLETED: set(),
    BookingStatus.CANCELLED: set(),
}


class InvalidStatusTransition(Exception):
    def __init__(self, booking_id: int, current: BookingStatus, target: BookingStatus) -> None:
        super().__init__(f"Booking {booking_id} cannot go from {current.value} to {target.value}")
        self.booking_id = booking_id
        self.current = current
        self.target = target


@dataclass(frozen=True)
class Participant:
    name: str
    email: str
    phone: str | None = None


@dataclass(frozen=True)
class ReservationResult:
    success: bool
    booking: Booking | None = None
    conflict_reason: ConflictReason | None = None

    @property
    def booking_id(self) -> int | None:
        return self.booking.id if self.booking else None

    @classmethod
    def ok(cls, booking: Booking) -> "ReservationResult":
        return cls(success=True, booking=booking)

    @classmethod
    def conflict(cls, reason: ConflictReason) -> "ReservationResult":
        return cls(success=False, conflict_reason=reason)


async def get_booking_by_idempotency_key(session: AsyncSession, actor_id: str, key: str) -> Booking | None:
    result = await session.execute(
        select(Booking).where(Booking.actor_id == actor_id, Booking.idempotency_key == key)
    )
    return result.scalar_one_or_none()


async def _reserve_locked(
    session: AsyncSession,
    actor_id: str,
    local_date: date,
    local_time: time | str,
    participant: Participant,
    duration: int | None,
    notes: str | None,
    idempotency_key: str | None,
    now: datetime | None,
) -> ReservationResult:
    await lock_day_row(session, actor_id, local_date)
    if idempotency_key:
        existing = await get_booking_by_idempotency_key(session, actor_id, idempotency_key)
        if existing:
            logger.info("Reservation retry with key %s returns booking %s", idempotency_key, existing.id)
            return ReservationResult.ok(existing)

    actor_settings = await get_settings(session, actor_id)
    check = await check_availability(session, local_date, local_time, actor_settings, duration=duration, now=now)
    if not check.is_available:
        return ReservationResult.conflict(check.conflict_reason)

    booking = Booking(
        actor_id=actor_id,
        scheduled_at=to_naive_utc(check.starts_at),
        local_date=local_date,
        duration=duration or actor_settings.session_duration,
        status=BookingStatus.PENDING,
        participant_name=participant.name,
        participant_email=participant.email,
        participant_phone=participant.phone,
        notes=notes,
        idempotency_key=idempotency_key,
    )
    session.add(booking)
    await session.flush()
    await session.refresh(booking)
    return ReservationResult.ok(booking)


async def reserve(
    session: AsyncSession,
    actor_id: str,
    local_date: date | str,
    local_time: time | str,
    participant: Participant,
    duration: int | None = None,
    notes: str | None = None,
    idempotency_key: str | None = None,
    now: datetime | None = None,
) -> ReservationResult:
    """Turn an available slot into a pending booking.

    The availability check and the insert run under the per-actor-per-day lock and
    the transaction is committed before the lock is released, so two overlapping
    requests can never both pass the check. On any failure the session is rolled
    back and no booking row survives.
    """
    try:
        local_date = parse_local_date(local_date)
    except InvalidLocalDate:
        return ReservationResult.conflict(ConflictReason.INVALID_DATE)
    if duration is not None and duration <= 0:
        return ReservationResult.conflict(ConflictReason.INVALID_DURATION)

    async with day_locks.lock_for(actor_id, local_date):
        try:
            result = await _reserve_locked(
                session, actor_id, local_date, local_time, participant, duration, notes, idempotency_key, now
            )
            if result.success:
                await session.commit()
                logger.info(
                    "Reserved booking %s for %s at %s (%s %s, %d min)",
                    result.booking_id, actor_id, result.booking.scheduled_at, local_date, local_time,
                    result.booking.duration,
                )
            else:
                await session.rollback()
                logger.info(
                    "Reservation for %s on %s %s refused: %s",
                    actor_id, local_date, local_time, result.conflict_reason.value,
                )
            return result
        except IntegrityError:
            await session.rollback()
            # a concurrent retry with the same idempotency key committed first
            if idempotency_key:
                existing = await get_booking_by_idempotency_key(session, actor_id, idempotency_key)
                if existing:
                    return ReservationResult.ok(existing)
            logger.exception("Reservation for %s on %s %s hit an integrity error", actor_id, local_date, local_time)
            return ReservationResult.conflict(ConflictReason.STORAGE_ERROR)
        except SQLAlchemyError:
            await session.rollback()
            logger.exception("Reservation for %s on %s %s failed in storage", actor_id, local_date, local_time)
            return ReservationResult.conflict(ConflictReason.STORAGE_ERROR)
        except BaseException:
            # includes cancellation of an abandoned request
            await session.rollback()
            raise


async def get_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    result = await session.execute(select(Booking).where(Booking.id == booking_id))
    return result.scalar_one_or_none()


async def list_bookings_for_day(session: AsyncSession, actor_id: str, local_date: date | str) -> list[Booking]:
    """Every booking (any status) whose start falls inside the actor's local day."""
    local_date = parse_local_date(local_date)
    actor_settings = await get_settings(session, actor_id)
    start, end = day_bounds_utc(local_date, actor_settings.time_zone)
    result = await session.execute(
        select(Booking)
        .where(
            Booking.actor_id == actor_id,
            Booking.scheduled_at >= to_naive_utc(start),
            Booking.scheduled_at < to_naive_utc(end),
        )
        .order_by(Booking.scheduled_at)
    )
    return list(result.scalars().all())


async def _transition(session: AsyncSession, booking_id: int, target: BookingStatus) -> Booking | None:
    booking = await get_booking(session, booking_id)
    if not booking:
        return None
    if target not in _ALLOWED_TRANSITIONS[booking.status]:
        raise InvalidStatusTransition(booking_id, booking.status, target)
    booking.status = target
    booking.updated_at = _utc_naive_now()
    session.add(booking)
    await session.flush()
    logger.info("Booking %s is now %s", booking_id, target.value)
    return booking


async def confirm_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    return await _transition(session, booking_id, BookingStatus.CONFIRMED)


async def complete_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    return await _transition(session, booking_id, BookingStatus.COMPLETED)


async def cancel_booking(session: AsyncSession, booking_id: int) -> Booking | None:
    """Cancelling an already cancelled booking is a no-op so retries are safe."""
    booking = await get_booking(session, booking_id)
    if booking and booking.status == BookingStatus.CANCELLED:
        return booking
    return await _transition(session, booking_id, BookingStatus.CANCELLED)


async def expire_stale_pending_bookings(
    session: AsyncSession, older_than_minutes: int, now: datetime | None = None
) -> int:
    """Cancel pending bookings created more than `older_than_minutes` ago. Returns count."""
    now = now or datetime.now(UTC)
    cutoff = to_naive_utc(now) - timedelta(minutes=older_than_minutes)
    result = await session.execute(
        update(Booking)
        .where(Booking.status == BookingStatus.PENDING, Booking.created_at < cutoff)
        .values(status=BookingStatus.CANCELLED, updated_at=to_naive_utc(now))
    )
    await session.flush()
    return result.rowcount or 0
