"""Shared fixtures: file-backed SQLite per test, fakeredis, model factories, HTTP client."""

import os

# Must be set before any app module reads settings
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key-for-pytest-only")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "console")

from datetime import datetime, timedelta  # noqa: E402
from decimal import Decimal  # noqa: E402
from typing import Any, AsyncGenerator, Dict, List, Optional  # noqa: E402

import fakeredis  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models  # noqa: E402,F401
from app.api import deps  # noqa: E402
from app.core import security  # noqa: E402
from app.database import Base  # noqa: E402
from app.main import app as fastapi_app  # noqa: E402
from app.models.event import EntryType, Event, EventMode, EventStatus  # noqa: E402
from app.models.organizer import OrganizationType, Organizer  # noqa: E402
from app.models.user import AttendeeType, User, user_registered_events  # noqa: E402
from app.schemas.booking import BookingCreate  # noqa: E402
from app.services import booking_service  # noqa: E402
from app.utils.cache import set_redis  # noqa: E402
from app.utils.dates import utcnow  # noqa: E402

TEST_PASSWORD = "secret123"
# bcrypt is slow on purpose; hash once for every factory-made account
_PASSWORD_HASH = security.get_password_hash(TEST_PASSWORD)


@pytest.fixture
async def engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        connect_args={"timeout": 20},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture(autouse=True)
async def fake_redis() -> AsyncGenerator[Any, None]:
    client = fakeredis.FakeAsyncRedis(
        server=fakeredis.FakeServer(), decode_responses=True
    )
    set_redis(client)
    booking_service.init_concurrency_manager(client)
    yield client
    booking_service.init_concurrency_manager(None)
    set_redis(None)
    await client.aclose()


class Factory:
    """Creates rows in their own session so failures in a test session never expire them."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory
        self._seq = 0

    def _next(self) -> int:
        self._seq += 1
        return self._seq

    async def _save(self, obj: Any) -> Any:
        async with self.session_factory() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def user(self, **overrides: Any) -> User:
        n = self._next()
        data: Dict[str, Any] = {
            "full_name": f"Attendee {n}",
            "email": f"attendee{n}@example.com",
            "phone": f"555-000{n}",
            "hashed_password": _PASSWORD_HASH,
            "attendee_type": AttendeeType.STUDENT,
        }
        data.update(overrides)
        return await self._save(User(**data))  # type: ignore[no-any-return]

    async def organizer(self, **overrides: Any) -> Organizer:
        n = self._next()
        data: Dict[str, Any] = {
            "organization_name": f"Org {n}",
            "organization_type": OrganizationType.COMMUNITY,
            "contact_person": f"Contact {n}",
            "email": f"organizer{n}@example.com",
            "phone": f"555-100{n}",
            "hashed_password": _PASSWORD_HASH,
        }
        data.update(overrides)
        return await self._save(Organizer(**data))  # type: ignore[no-any-return]

    async def event(self, organizer: Organizer, **overrides: Any) -> Event:
        now = utcnow()
        data: Dict[str, Any] = {
            "organizer_id": organizer.id,
            "title": "PyCon Workshop",
            "start_date_time": now + timedelta(days=7),
            "end_date_time": now + timedelta(days=7, hours=3),
            "registration_deadline": now + timedelta(days=6),
            "max_participants": 10,
            "entry_type": EntryType.FREE,
            "ticket_price": None,
            "mode": EventMode.OFFLINE,
            "venue": "Hall A",
            "status": EventStatus.UPCOMING,
        }
        data.update(overrides)
        if data["entry_type"] == EntryType.PAID and data["ticket_price"] is None:
            data["ticket_price"] = Decimal("500")
        return await self._save(Event(**data))  # type: ignore[no-any-return]

    async def reschedule(
        self,
        event_id: int,
        *,
        start: datetime,
        deadline: Optional[datetime] = None,
    ) -> None:
        """Move an event in time after bookings exist, bypassing input validation."""
        async with self.session_factory() as session:
            event = await session.get(Event, event_id)
            assert event is not None
            event.start_date_time = start
            event.end_date_time = start + timedelta(hours=3)
            event.registration_deadline = deadline or start - timedelta(hours=1)
            await session.commit()


@pytest.fixture
def factory(session_factory: async_sessionmaker[AsyncSession]) -> Factory:
    return Factory(session_factory)


def booking_request(event_id: Optional[int], **overrides: Any) -> BookingCreate:
    data: Dict[str, Any] = {
        "event_id": event_id,
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "phone": "555-0100",
        "attendee_type": "student",
        "ticket_count": 1,
    }
    data.update(overrides)
    return BookingCreate(**data)


async def registered_event_ids(
    session_factory: async_sessionmaker[AsyncSession], user_id: int
) -> List[int]:
    async with session_factory() as session:
        result = await session.execute(
            select(user_registered_events.c.event_id)
            .where(user_registered_events.c.user_id == user_id)
            .order_by(user_registered_events.c.event_id)
        )
        return list(result.scalars().all())


def auth_headers(account_id: int, role: str) -> Dict[str, str]:
    token = security.create_access_token(account_id, role=role)
    return {"Authorization": f"Bearer {token}"}


def user_headers(user: User) -> Dict[str, str]:
    return auth_headers(user.id, security.ROLE_USER)


def organizer_headers(organizer: Organizer) -> Dict[str, str]:
    return auth_headers(organizer.id, security.ROLE_ORGANIZER)


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[deps.get_db] = override_get_db
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    fastapi_app.dependency_overrides.clear()
