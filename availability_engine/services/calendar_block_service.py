import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.core.timezones import to_naive_utc
from availability_engine.models._common import _utc_naive_now
from availability_engine.models.calendar_block import BlockType, CalendarBlock

logger = logging.getLogger(__name__)


class InvalidBlockPeriod(ValueError):
    pass


async def create_block(
    session: AsyncSession,
    actor_id: str,
    title: str,
    start: datetime,
    end: datetime,
    block_type: BlockType | str,
    created_by: str | None = None,
    description: str | None = None,
    notes: str | None = None,
) -> CalendarBlock:
    """Blocks are never edited afterwards; a changed period is a new block plus a
    deactivated old one."""
    start_utc = to_naive_utc(start)
    end_utc = to_naive_utc(end)
    if end_utc <= start_utc:
        raise InvalidBlockPeriod(f"Block must end after it starts ({start.isoformat()} - {end.isoformat()})")
    block = CalendarBlock(
        actor_id=actor_id,
        title=title,
        description=description,
        start_time=start_utc,
        end_time=end_utc,
        block_type=BlockType(block_type),
        created_by=created_by,
        notes=notes,
        is_active=True,
    )
    session.add(block)
    await session.flush()
    await session.refresh(block)
    logger.info(
        "Created calendar block %s for %s: %s (%s) %s - %s",
        block.id, actor_id, title, block.block_type.value, start_utc, end_utc,
    )
    return block


async def get_block(session: AsyncSession, block_id: int) -> CalendarBlock | None:
    result = await session.execute(select(CalendarBlock).where(CalendarBlock.id == block_id))
    return result.scalar_one_or_none()


async def deactivate_block(session: AsyncSession, block_id: int) -> bool:
    block = await get_block(session, block_id)
    if not block:
        return False
    if block.is_active:
        block.is_active = False
        block.deactivated_at = _utc_naive_now()
        session.add(block)
        await session.flush()
        logger.info("Deactivated calendar block %s", block_id)
    return True


async def list_active_blocks_overlapping(
    session: AsyncSession, actor_id: str, start_utc: datetime, end_utc: datetime
) -> list[CalendarBlock]:
    result = await session.execute(
        select(CalendarBlock)
        .where(
            CalendarBlock.actor_id == actor_id,
            CalendarBlock.is_active.is_(True),
            CalendarBlock.start_time < to_naive_utc(end_utc),
            CalendarBlock.end_time > to_naive_utc(start_utc),
        )
        .order_by(CalendarBlock.start_time)
    )
    return list(result.scalars().all())
