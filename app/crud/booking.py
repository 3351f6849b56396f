from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus


async def get(db: AsyncSession, booking_id: int) -> Optional[Booking]:
    result = await db.execute(
        select(Booking)
        .filter(Booking.id == booking_id)
        .execution_options(populate_existing=True)
    )
    first: Optional[Booking] = result.scalars().first()
    return first


async def get_booked_tickets(db: AsyncSession, *, event_id: int) -> int:
    """Sum of ticket counts over confirmed bookings. Computed on every call, never cached."""
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.ticket_count), 0)).filter(
            Booking.event_id == event_id,
            Booking.booking_status == BookingStatus.CONFIRMED,
        )
    )
    return int(result.scalar_one())


async def get_user_bookings(db: AsyncSession, *, user_id: int) -> List[Booking]:
    result = await db.execute(
        select(Booking)
        .filter(Booking.user_id == user_id)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
    )
    return list(result.scalars().all())


async def get_active_event_bookings(db: AsyncSession, *, event_id: int) -> List[Booking]:
    """Every non-cancelled booking for the event, oldest first"""
    result = await db.execute(
        select(Booking)
        .filter(
            Booking.event_id == event_id,
            Booking.booking_status != BookingStatus.CANCELLED,
        )
        .order_by(Booking.created_at.asc(), Booking.id.asc())
    )
    return list(result.scalars().all())
