from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.organizer import Organizer
from app.schemas.organizer import OrganizerCreate

from ..core.security import get_password_hash, verify_password


async def get(db: AsyncSession, id: Any) -> Optional[Organizer]:
    result = await db.execute(select(Organizer).filter(Organizer.id == id))
    first: Optional[Organizer] = result.scalars().first()
    return first


async def get_by_email(db: AsyncSession, *, email: str) -> Optional[Organizer]:
    result = await db.execute(select(Organizer).filter(Organizer.email == email.lower()))
    first: Optional[Organizer] = result.scalars().first()
    return first


async def create(db: AsyncSession, *, obj_in: OrganizerCreate) -> Organizer:
    data = obj_in.model_dump(exclude={"password"})
    data["email"] = obj_in.email.lower()
    db_obj = Organizer(**data, hashed_password=get_password_hash(obj_in.password))
    db.add(db_obj)
    await db.commit()
    await db.refresh(db_obj)
    return db_obj


async def authenticate(
    db: AsyncSession, *, email: str, password: str
) -> Optional[Organizer]:
    organizer = await get_by_email(db, email=email)
    if not organizer:
        return None
    if not verify_password(password, organizer.hashed_password):
        return None
    return organizer
