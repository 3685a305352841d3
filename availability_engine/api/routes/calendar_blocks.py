from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from availability_engine.api.deps import get_session
from availability_engine.api.schemas.calendar_blocks import (
    CalendarBlockCreate,
    CalendarBlockCreated,
    CalendarBlockPublic,
)
from availability_engine.core.timezones import as_aware_utc
from availability_engine.models.calendar_block import CalendarBlock
from availability_engine.services.calendar_block_service import (
    InvalidBlockPeriod,
    create_block,
    deactivate_block,
    list_active_blocks_overlapping,
)

router = APIRouter(tags=["calendar-blocks"])


def _to_public(block: CalendarBlock) -> CalendarBlockPublic:
    return CalendarBlockPublic(
        id=block.id,
        actor_id=block.actor_id,
        title=block.title,
        description=block.description,
        start_time=as_aware_utc(block.start_time),
        end_time=as_aware_utc(block.end_time),
        block_type=block.block_type,
        created_by=block.created_by,
        notes=block.notes,
        is_active=block.is_active,
        created_at=as_aware_utc(block.created_at),
    )


@router.post(
    "/actors/{actor_id}/calendar-blocks",
    response_model=CalendarBlockCreated,
    status_code=status.HTTP_201_CREATED,
)
async def add_block(
    actor_id: str,
    body: CalendarBlockCreate,
    session: AsyncSession = Depends(get_session),
) -> CalendarBlockCreated:
    try:
        block = await create_block(
            session,
            actor_id,
            title=body.title,
            start=as_aware_utc(body.start_utc),
            end=as_aware_utc(body.end_utc),
            block_type=body.block_type,
            created_by=body.created_by,
            description=body.description,
            notes=body.notes,
        )
    except InvalidBlockPeriod as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e
    return CalendarBlockCreated(block_id=block.id)


@router.get("/actors/{actor_id}/calendar-blocks", response_model=list[CalendarBlockPublic])
async def active_blocks(
    actor_id: str,
    start: datetime = Query(...),
    end: datetime = Query(...),
    session: AsyncSession = Depends(get_session),
) -> list[CalendarBlockPublic]:
    """Active blocks overlapping [start, end); naive values are read as UTC."""
    blocks = await list_active_blocks_overlapping(session, actor_id, as_aware_utc(start), as_aware_utc(end))
    return [_to_public(b) for b in blocks]


@router.delete("/calendar-blocks/{block_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_block(block_id: int, session: AsyncSession = Depends(get_session)) -> None:
    ok = await deactivate_block(session, block_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Calendar block not found")
