import asyncio
import logging
import weakref
from datetime import date

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.models.booking import BookingDayLock

logger = logging.getLogger(__name__)


class DayLockRegistry:
    """In-process mutex per (actor, local day).

    Locks are held weakly: an entry disappears once no coroutine holds or waits on it.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakValueDictionary[tuple[str, date], asyncio.Lock] = weakref.WeakValueDictionary()

    def lock_for(self, actor_id: str, local_date: date) -> asyncio.Lock:
        key = (actor_id, local_date)
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


day_locks = DayLockRegistry()


async def lock_day_row(session: AsyncSession, actor_id: str, local_date: date) -> None:
    """Take the cross-process half of the day lock inside the current transaction.

    On PostgreSQL the booking_day_locks row is upserted and then selected FOR UPDATE,
    so reservations for the same actor and day in other workers wait until this
    transaction ends. SQLite has no row locks; a single process relies on the
    in-process registry there.
    """
    dialect = session.get_bind().dialect.name
    if dialect != "postgresql":
        return
    await session.execute(
        pg_insert(BookingDayLock)
        .values(actor_id=actor_id, local_date=local_date)
        .on_conflict_do_nothing()
    )
    await session.execute(
        select(BookingDayLock)
        .where(BookingDayLock.actor_id == actor_id, BookingDayLock.local_date == local_date)
        .with_for_update()
    )
    logger.debug("Row lock held for %s on %s", actor_id, local_date)
