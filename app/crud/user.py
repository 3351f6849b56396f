from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, user_registered_events
from app.schemas.user import UserCreate

from ..core.security import get_password_hash, verify_password


async def get(db: AsyncSession, id: Any) -> Optional[User]:
    result = await db.execute(select(User).filter(User.id == id))
    first: Optional[User] = result.scalars().first()
    return first


async def get_by_email(db: AsyncSession, *, email: str) -> Optional[User]:
    result = await db.execute(select(User).filter(User.email == email.lower()))
    first: Optional[User] = result.scalars().first()
    return first


async def create(db: AsyncSession, *, obj_in: UserCreate) -> User:
    db_obj = User(
        full_name=obj_in.full_name,
        email=obj_in.email.lower(),
        phone=obj_in.phone,
        attendee_type=obj_in.attendee_type,
        hashed_password=get_password_hash(obj_in.password),
    )
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def authenticate(db: AsyncSession, *, email: str, password: str) -> Optional[User]:
    user = await get_by_email(db, email=email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


# Registered-events relation. These join the caller's transaction and never commit.


async def add_registered_event(db: AsyncSession, *, user_id: int, event_id: int) -> bool:
    """Add ``event_id`` to the user's registered set. Returns False if it was already there."""
    existing = await db.execute(
        select(user_registered_events.c.event_id).where(
            user_registered_events.c.user_id == user_id,
            user_registered_events.c.event_id == event_id,
        )
    )
    if existing.first() is not None:
        return False
    await db.execute(
        user_registered_events.insert().values(user_id=user_id, event_id=event_id)
    )
    return True


async def remove_registered_event(
    db: AsyncSession, *, user_id: int, event_id: int
) -> None:
    await db.execute(
        delete(user_registered_events).where(
            user_registered_events.c.user_id == user_id,
            user_registered_events.c.event_id == event_id,
        )
    )
