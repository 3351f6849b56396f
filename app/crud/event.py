from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.event import Event, EventStatus
from app.schemas.event import EventCreate


async def get(db: AsyncSession, event_id: int, *, for_update: bool = False) -> Optional[Event]:
    query = (
        select(Event)
        .filter(Event.id == event_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        # Row lock on PostgreSQL; ignored by SQLite
        query = query.with_for_update()
    result = await db.execute(query)
    first: Optional[Event] = result.scalars().first()
    return first


async def get_events(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Event]:
    result = await db.execute(
        select(Event)
        .filter(Event.status != EventStatus.DRAFT)
        .order_by(Event.start_date_time.asc(), Event.id.asc())
        .offset(skip)
        .limit(limit)
    )
    return list(result.scalars().all())


async def get_by_organizer(db: AsyncSession, *, organizer_id: int) -> List[Event]:
    result = await db.execute(
        select(Event)
        .filter(Event.organizer_id == organizer_id)
        .order_by(Event.start_date_time.desc(), Event.id.desc())
    )
    return list(result.scalars().all())


async def create(db: AsyncSession, *, obj_in: EventCreate, organizer_id: int) -> Event:
    db_obj = Event(**obj_in.model_dump(), organizer_id=organizer_id)
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def update(db: AsyncSession, *, db_obj: Event, update_data: Dict[str, Any]) -> Event:
    for field, value in update_data.items():
        if hasattr(db_obj, field):
            setattr(db_obj, field, value)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj
