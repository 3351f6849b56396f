"""
Event catalog: creation rules, owner-only updates and cache behaviour.
"""
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict

import pytest
from pydantic import ValidationError as PydanticValidationError
from redis.exceptions import ConnectionError as RedisConnectionError

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.crud import event as event_crud
from app.models.event import EntryType, EventMode, EventStatus
from app.schemas.event import EventCreate, EventUpdate
from app.services import event_service
from app.utils.dates import utcnow


def event_payload(**overrides: Any) -> Dict[str, Any]:
    start = utcnow() + timedelta(days=10)
    data: Dict[str, Any] = {
        "title": "Async Python Deep Dive",
        "start_date_time": start,
        "end_date_time": start + timedelta(hours=4),
        "registration_deadline": start - timedelta(days=1),
        "max_participants": 50,
        "entry_type": "free",
        "mode": "offline",
        "venue": "Room 101",
    }
    data.update(overrides)
    return data


class TestEventRules:
    @pytest.mark.parametrize(
        "overrides, message",
        [
            (
                {"end_date_time": utcnow() + timedelta(days=9)},
                "End date must be after start date",
            ),
            (
                {"registration_deadline": utcnow() + timedelta(days=11)},
                "Registration deadline must be on or before the start date",
            ),
            ({"entry_type": "paid"}, "Ticket price is required for paid events"),
            ({"ticket_price": "10.00"}, "Free events cannot have a ticket price"),
            ({"venue": None}, "Venue is required for offline and hybrid events"),
            ({"mode": "online", "venue": None}, "Streaming link is required"),
            ({"mode": "hybrid", "streaming_link": "https://meet.example.com/x"}, None),
        ],
    )
    def test_creation_rules(self, overrides: Dict[str, Any], message: Any) -> None:
        if message is None:
            EventCreate(**event_payload(**overrides))
            return
        with pytest.raises(PydanticValidationError) as exc_info:
            EventCreate(**event_payload(**overrides))
        assert message in str(exc_info.value)

    def test_capacity_must_be_positive(self) -> None:
        with pytest.raises(PydanticValidationError):
            EventCreate(**event_payload(max_participants=0))

    def test_deadline_equal_to_start_is_allowed(self) -> None:
        start = utcnow() + timedelta(days=3)
        event = EventCreate(
            **event_payload(
                start_date_time=start,
                end_date_time=start + timedelta(hours=1),
                registration_deadline=start,
            )
        )
        assert event.registration_deadline == event.start_date_time

    def test_paid_event_keeps_its_price(self) -> None:
        event = EventCreate(**event_payload(entry_type="paid", ticket_price="249.50"))
        assert event.ticket_price == Decimal("249.50")

    def test_capacity_cannot_be_updated(self) -> None:
        with pytest.raises(PydanticValidationError):
            EventUpdate(max_participants=500)


class TestEventService:
    async def test_create_then_get_is_served_from_cache(self, db, factory, fake_redis):
        organizer = await factory.organizer()
        created = await event_service.create_event(
            db, organizer.id, EventCreate(**event_payload())
        )

        fetched = await event_service.get_event(db, created.id)

        assert fetched.title == "Async Python Deep Dive"
        assert fetched.organizer_id == organizer.id
        assert fetched.status == EventStatus.UPCOMING
        assert await fake_redis.exists(event_service.event_cache_key(created.id)) == 1

    async def test_unknown_event(self, db):
        with pytest.raises(NotFoundError):
            await event_service.get_event(db, 424242)

    async def test_update_invalidates_cached_event(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        await event_service.get_event(db, event.id)

        await event_service.update_event(
            db, organizer.id, event.id, EventUpdate(title="Renamed Workshop")
        )

        fetched = await event_service.get_event(db, event.id)
        assert fetched.title == "Renamed Workshop"
        assert fetched.max_participants == event.max_participants

    async def test_only_the_owner_may_update(self, db, factory):
        owner = await factory.organizer()
        stranger = await factory.organizer()
        event = await factory.event(owner)

        with pytest.raises(AuthorizationError):
            await event_service.update_event(
                db, stranger.id, event.id, EventUpdate(title="Hijacked")
            )

    async def test_update_must_keep_rules_intact(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)

        with pytest.raises(ValidationError) as exc_info:
            await event_service.update_event(
                db,
                organizer.id,
                event.id,
                EventUpdate(end_date_time=event.start_date_time - timedelta(hours=1)),
            )
        assert exc_info.value.message == "End date must be after start date"

    async def test_switching_to_paid_needs_a_price(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)

        with pytest.raises(ValidationError):
            await event_service.update_event(
                db, organizer.id, event.id, EventUpdate(entry_type=EntryType.PAID)
            )

        updated = await event_service.update_event(
            db,
            organizer.id,
            event.id,
            EventUpdate(entry_type=EntryType.PAID, ticket_price=Decimal("99")),
        )
        assert updated.ticket_price == 99.0

    async def test_drafts_are_hidden_from_public_listing(self, db, factory):
        organizer = await factory.organizer()
        start = utcnow() + timedelta(days=20)
        later = await factory.event(
            organizer, start_date_time=start, end_date_time=start + timedelta(hours=2)
        )
        sooner = await factory.event(organizer)
        draft = await factory.event(organizer, status=EventStatus.DRAFT)

        public = await event_service.list_events(db)
        mine = await event_service.list_organizer_events(db, organizer.id)

        assert [e.id for e in public] == [sooner.id, later.id]
        assert {e.id for e in mine} == {later.id, sooner.id, draft.id}

    async def test_listing_cache_sees_new_events(self, db, factory):
        organizer = await factory.organizer()
        assert await event_service.list_events(db) == []

        await event_service.create_event(
            db,
            organizer.id,
            EventCreate(
                **event_payload(
                    mode=EventMode.ONLINE,
                    venue=None,
                    streaming_link="https://stream.example.com/live",
                )
            ),
        )

        assert len(await event_service.list_events(db)) == 1


async def _redis_down(*args: Any, **kwargs: Any) -> None:
    raise RedisConnectionError("Connection refused")


class TestRedisOutage:
    async def test_public_listing_reads_from_database(self, db, factory, fake_redis, monkeypatch):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        monkeypatch.setattr(fake_redis, "get", _redis_down)

        events = await event_service.list_events(db)

        assert [e.id for e in events] == [event.id]

    async def test_single_event_reads_from_database(self, db, factory, fake_redis, monkeypatch):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        monkeypatch.setattr(fake_redis, "get", _redis_down)

        fetched = await event_service.get_event(db, event.id)

        assert fetched.id == event.id

    async def test_committed_update_is_still_reported_as_success(
        self, db, factory, session_factory, fake_redis, monkeypatch
    ):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        monkeypatch.setattr(fake_redis, "delete", _redis_down)
        monkeypatch.setattr(fake_redis, "incr", _redis_down)

        updated = await event_service.update_event(
            db, organizer.id, event.id, EventUpdate(title="New")
        )

        assert updated.title == "New"
        async with session_factory() as session:
            stored = await event_crud.get(session, event.id)
        assert stored.title == "New"

    async def test_create_survives_list_invalidation_failure(
        self, db, factory, fake_redis, monkeypatch
    ):
        organizer = await factory.organizer()
        monkeypatch.setattr(fake_redis, "incr", _redis_down)

        created = await event_service.create_event(
            db, organizer.id, EventCreate(**event_payload())
        )

        assert created.id is not None
