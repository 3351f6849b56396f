"""
Capacity-aware booking engine.

The capacity check and the insert run under a per-event mutual-exclusion
token: a Redis lock when one is configured, plus a row lock on the event
inside the database transaction.
"""

import logging
from contextlib import asynccontextmanager, nullcontext
from decimal import Decimal
from typing import AsyncContextManager, AsyncGenerator, List, Optional

from redis.asyncio import Redis
from redis.exceptions import LockError, RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_utils import db_transaction
from app.core.exceptions import (
    AppError,
    AuthorizationError,
    CapacityError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from app.core.settings import settings
from app.crud import booking as booking_crud
from app.crud import event as event_crud
from app.crud import user as user_crud
from app.middleware.monitoring import metrics
from app.models.booking import (
    Booking,
    BookingParticipant,
    BookingStatus,
    PaymentStatus,
)
from app.models.event import EntryType, Event, EventMode
from app.models.user import AttendeeType
from app.schemas.booking import BookingCreate, RemainingSpots, TicketView
from app.utils.dates import ensure_utc, utcnow

logger = logging.getLogger(__name__)


class BookingConcurrencyManager:
    """Serialises bookers of the same event with a Redis lock keyed by event id"""

    def __init__(
        self,
        redis_client: Redis,
        lock_timeout: float = 30.0,
        blocking_timeout: float = 5.0,
    ):
        self.redis: Redis = redis_client
        self.lock_timeout = lock_timeout
        self.blocking_timeout = blocking_timeout

    @staticmethod
    def lock_key(event_id: int) -> str:
        return f"booking_lock:event:{event_id}"

    @asynccontextmanager
    async def event_lock(self, event_id: int) -> AsyncGenerator[None, None]:
        lock = self.redis.lock(
            self.lock_key(event_id),
            timeout=self.lock_timeout,
            blocking_timeout=self.blocking_timeout,
        )
        try:
            acquired = await lock.acquire()
        except RedisError as e:
            logger.error(f"Booking lock unavailable for event {event_id}: {e}")
            raise AppError("Booking service temporarily unavailable", 503) from e
        if not acquired:
            metrics.record_rejection("lock_busy")
            raise ConflictError("Booking process is busy, please try again")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError as e:
                # Lease expired while we held it
                logger.warning(f"Booking lock for event {event_id} lost before release: {e}")


# Global instance
concurrency_manager: Optional[BookingConcurrencyManager] = None


def init_concurrency_manager(redis_client: Optional[Redis]) -> None:
    global concurrency_manager
    if redis_client is None:
        concurrency_manager = None
        return
    concurrency_manager = BookingConcurrencyManager(
        redis_client,
        lock_timeout=settings.booking.BOOKING_LOCK_TIMEOUT,
        blocking_timeout=settings.booking.BOOKING_LOCK_BLOCKING_TIMEOUT,
    )


def _event_lock(event_id: int) -> AsyncContextManager[None]:
    if concurrency_manager is None:
        return nullcontext()
    return concurrency_manager.event_lock(event_id)


def calculate_total(event: Event, ticket_count: int) -> Decimal:
    if event.entry_type == EntryType.FREE:
        return Decimal("0")
    return Decimal(str(event.ticket_price or 0)) * ticket_count


async def create_booking(
    db: AsyncSession, user_id: int, booking_in: BookingCreate
) -> Booking:
    """
    Create a booking after checking, in order: required fields, event
    existence, start time, registration deadline and remaining capacity.
    The first failing check aborts with nothing written.
    """
    if booking_in.missing_required():
        metrics.record_rejection("validation")
        raise ValidationError("Missing required booking information")

    event_id = int(booking_in.event_id)  # type: ignore[arg-type]

    async with _event_lock(event_id):
        booking_id = await _create_locked(db, user_id, event_id, booking_in)

    booking = await booking_crud.get(db, booking_id)
    if booking is None:
        raise PersistenceError("Booking could not be read back after saving")

    metrics.record_booking(booking.booking_status.value)
    logger.info(
        f"Booking {booking.ticket_id} created: user={user_id} event={event_id} "
        f"tickets={booking.ticket_count} status={booking.booking_status.value}"
    )
    return booking


async def _create_locked(
    db: AsyncSession, user_id: int, event_id: int, booking_in: BookingCreate
) -> int:
    try:
        async with db_transaction(db):
            event = await event_crud.get(db, event_id, for_update=True)
            if not event:
                metrics.record_rejection("not_found")
                raise NotFoundError("Event not found")

            now = utcnow()
            if now >= ensure_utc(event.start_date_time):  # type: ignore[operator]
                metrics.record_rejection("started")
                raise ConflictError("Event has already started or passed")
            if now >= ensure_utc(event.registration_deadline):  # type: ignore[operator]
                metrics.record_rejection("deadline_passed")
                raise ConflictError("Registration deadline has passed")

            booked = await booking_crud.get_booked_tickets(db, event_id=event_id)
            remaining = event.max_participants - booked
            if remaining < booking_in.ticket_count:
                metrics.record_rejection("capacity")
                logger.info(
                    f"Capacity rejection for event {event_id}: "
                    f"requested={booking_in.ticket_count} remaining={remaining}"
                )
                raise CapacityError(remaining)

            if event.entry_type == EntryType.FREE:
                payment_status = PaymentStatus.COMPLETED
                booking_status = BookingStatus.CONFIRMED
            else:
                payment_status = PaymentStatus.PENDING
                booking_status = BookingStatus.PENDING

            booking = Booking(
                user_id=user_id,
                event_id=event_id,
                name=booking_in.name,
                email=booking_in.email,
                phone=booking_in.phone,
                attendee_type=booking_in.attendee_type,
                ticket_count=booking_in.ticket_count,
                total_amount=calculate_total(event, booking_in.ticket_count),
                payment_status=payment_status,
                booking_status=booking_status,
                additional_participants=[
                    BookingParticipant(position=i, name=p.name, email=str(p.email))
                    for i, p in enumerate(booking_in.additional_participants, start=1)
                ],
            )
            db.add(booking)
            await db.flush()

            await user_crud.add_registered_event(db, user_id=user_id, event_id=event_id)
            return booking.id
    except SQLAlchemyError as e:
        metrics.record_rejection("persistence")
        logger.error(
            f"Failed to save booking for user {user_id} on event {event_id}: {e}",
            exc_info=True,
        )
        raise PersistenceError("Failed to save booking") from e


async def remaining_spots(db: AsyncSession, event_id: int) -> RemainingSpots:
    event = await event_crud.get(db, event_id)
    if not event:
        raise NotFoundError("Event not found")
    booked = await booking_crud.get_booked_tickets(db, event_id=event_id)
    # Not clamped: a negative value exposes historical overbooking
    return RemainingSpots(
        capacity=event.max_participants,
        booked_tickets=booked,
        remaining=event.max_participants - booked,
    )


async def get_booking(db: AsyncSession, user_id: int, booking_id: int) -> Booking:
    booking = await booking_crud.get(db, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.user_id != user_id:
        raise AuthorizationError("Not authorized to view this booking")
    return booking


async def cancel_booking(db: AsyncSession, user_id: int, booking_id: int) -> Booking:
    booking = await booking_crud.get(db, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    if booking.user_id != user_id:
        raise AuthorizationError("Not authorized to cancel this booking")

    event = await event_crud.get(db, booking.event_id)
    if not event:
        logger.error(f"Booking {booking_id} references missing event {booking.event_id}")
        raise NotFoundError("Event not found")

    if utcnow() >= ensure_utc(event.start_date_time):  # type: ignore[operator]
        raise ConflictError("Cannot cancel booking after event has started")
    if booking.booking_status == BookingStatus.CANCELLED:
        raise ConflictError("Booking is already cancelled")

    try:
        async with db_transaction(db):
            # Payment status is left as is; refunds are out of band
            booking.booking_status = BookingStatus.CANCELLED
            await user_crud.remove_registered_event(
                db, user_id=user_id, event_id=booking.event_id
            )
    except SQLAlchemyError as e:
        logger.error(f"Failed to cancel booking {booking_id}: {e}", exc_info=True)
        raise PersistenceError("Failed to cancel booking") from e

    metrics.booking_cancellations_total.inc()
    logger.info(f"Booking {booking.ticket_id} cancelled by user {user_id}")
    return booking


def _ticket_type(attendee_type: AttendeeType) -> str:
    if attendee_type == AttendeeType.STUDENT:
        return "Student"
    if attendee_type == AttendeeType.PROFESSIONAL:
        return "Professional"
    return "General"


def to_ticket_view(booking: Booking) -> TicketView:
    event = booking.event
    start = ensure_utc(event.start_date_time)
    end = ensure_utc(event.end_date_time)

    if booking.booking_status == BookingStatus.CANCELLED:
        status = "cancelled"
    elif end is not None and end < utcnow():
        status = "completed"
    else:
        status = "upcoming"

    if event.venue:
        location = event.venue
    elif event.mode == EventMode.ONLINE:
        location = "Online"
    else:
        location = "TBA"

    return TicketView(
        id=booking.id,
        event_id=event.id,
        event_name=event.title or "Unnamed Event",
        event_date=start,  # type: ignore[arg-type]
        event_time=start.strftime("%I:%M %p"),  # type: ignore[union-attr]
        event_location=location,
        ticket_type=_ticket_type(booking.attendee_type),
        ticket_number=booking.ticket_id,
        price=float(booking.total_amount),
        purchase_date=ensure_utc(booking.created_at),  # type: ignore[arg-type]
        status=status,
    )


async def list_user_tickets(db: AsyncSession, user_id: int) -> List[TicketView]:
    """The caller's bookings, newest first, shaped for the ticket list"""
    bookings = await booking_crud.get_user_bookings(db, user_id=user_id)
    return [to_ticket_view(b) for b in bookings if b.event is not None]
