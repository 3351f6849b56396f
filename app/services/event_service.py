import hashlib
import json
import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.core.settings import settings
from app.crud import event as event_crud
from app.schemas.event import Event, EventCreate, EventUpdate
from app.utils.cache import cache_get, get_redis, invalidate_cache

logger = logging.getLogger(__name__)

EVENTS_LIST_VERSION_KEY = "events_list_version"


def event_cache_key(event_id: int) -> str:
    return f"event:{event_id}"


async def _invalidate_events_list_cache() -> None:
    """Increments the version key for event lists, invalidating all list caches."""
    r = get_redis()
    try:
        await r.incr(EVENTS_LIST_VERSION_KEY)
    except RedisError as e:
        logger.error(f"Events list cache invalidation failed: {e}")


async def get_event(db: AsyncSession, event_id: int) -> Event:
    """
    Reads an event from the cache if available, otherwise from the database.
    """

    async def db_loader() -> Event | None:
        event_obj = await event_crud.get(db, event_id)
        if event_obj:
            return Event.model_validate(event_obj)
        return None

    event = await cache_get(
        key=event_cache_key(event_id),
        ttl=settings.booking.EVENT_CACHE_TTL,
        db_loader=db_loader,
        serializer=lambda pyd: pyd.model_dump_json(),
        deserializer=lambda s: Event.model_validate_json(s),
    )
    if event is None:
        raise NotFoundError("Event not found")
    return event  # type: ignore[no-any-return]


async def list_events(db: AsyncSession, skip: int = 0, limit: int = 100) -> List[Event]:
    """
    Public listing of every non-draft event. Caching is versioned so that any
    create or update invalidates every cached page at once.
    """
    r = get_redis()
    try:
        version = await r.get(EVENTS_LIST_VERSION_KEY) or 0
    except RedisError as e:
        logger.warning(f"Events list version read failed, reading from database: {e}")
        events = await event_crud.get_events(db, skip=skip, limit=limit)
        return [Event.model_validate(ev) for ev in events]

    filters: Dict[str, Any] = {"skip": skip, "limit": limit}
    filters_hash = hashlib.sha256(
        json.dumps(filters, sort_keys=True).encode()
    ).hexdigest()
    key = f"events_list:v{version}:{filters_hash}"

    async def db_loader() -> List[Event]:
        events = await event_crud.get_events(db, skip=skip, limit=limit)
        return [Event.model_validate(e) for e in events]

    def list_serializer(events: List[Event]) -> str:
        return json.dumps([e.model_dump(mode="json") for e in events])

    def list_deserializer(data: str) -> List[Event]:
        return [Event.model_validate(item) for item in json.loads(data)]

    return await cache_get(  # type: ignore[no-any-return]
        key=key,
        ttl=settings.booking.EVENT_CACHE_TTL,
        db_loader=db_loader,
        serializer=list_serializer,
        deserializer=list_deserializer,
    )


async def list_organizer_events(db: AsyncSession, organizer_id: int) -> List[Event]:
    events = await event_crud.get_by_organizer(db, organizer_id=organizer_id)
    return [Event.model_validate(e) for e in events]


async def create_event(
    db: AsyncSession, organizer_id: int, event_data: EventCreate
) -> Event:
    """
    Creates an event, invalidates the event list cache, and returns the new event.
    """
    event_obj = await event_crud.create(db, obj_in=event_data, organizer_id=organizer_id)
    await _invalidate_events_list_cache()
    logger.info(f"Event {event_obj.id} created by organizer {organizer_id}")
    return Event.model_validate(event_obj)


async def update_event(
    db: AsyncSession, organizer_id: int, event_id: int, event_data: EventUpdate
) -> Event:
    """
    Owner-only update. The merged record must still satisfy every creation rule;
    capacity is carried over unchanged.
    """
    event_obj = await event_crud.get(db, event_id)
    if not event_obj:
        raise NotFoundError("Event not found")
    if event_obj.organizer_id != organizer_id:
        raise AuthorizationError("You are not allowed to update this event")

    changes = event_data.model_dump(exclude_unset=True)
    merged = Event.model_validate(event_obj).model_dump()
    merged.update(changes)
    try:
        validated = EventCreate.model_validate(merged)
    except PydanticValidationError as e:
        message = str(e.errors()[0].get("msg", "Invalid event data"))
        raise ValidationError(message.removeprefix("Value error, ")) from e

    update_data = validated.model_dump(include=set(changes) | {"ticket_price"})
    updated = await event_crud.update(db, db_obj=event_obj, update_data=update_data)

    await invalidate_cache(event_cache_key(event_id))
    await _invalidate_events_list_cache()
    logger.info(f"Event {event_id} updated by organizer {organizer_id}")
    return Event.model_validate(updated)
