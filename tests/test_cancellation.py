"""
Booking cancellation: ownership, the start-time gate, and monotone status.
"""
from datetime import timedelta

import pytest

from app.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from app.crud import booking as booking_crud
from app.models.booking import AttendanceStatus, BookingStatus, PaymentStatus
from app.models.event import EntryType
from app.services import booking_service, participant_service
from app.utils.dates import utcnow
from conftest import booking_request, registered_event_ids


class TestCancelBooking:
    async def test_owner_cancels_and_capacity_is_released(self, db, factory, session_factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer, max_participants=3)
        user = await factory.user()
        booking = await booking_service.create_booking(
            db, user.id, booking_request(event.id, ticket_count=3)
        )

        cancelled = await booking_service.cancel_booking(db, user.id, booking.id)

        assert cancelled.booking_status == BookingStatus.CANCELLED
        # Payment status is not reversed
        assert cancelled.payment_status == PaymentStatus.COMPLETED
        spots = await booking_service.remaining_spots(db, event.id)
        assert spots.remaining == 3
        assert await registered_event_ids(session_factory, user.id) == []

    async def test_other_user_cannot_cancel(self, db, factory, session_factory):
        # Given: a booking owned by user A
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        owner, intruder = await factory.user(), await factory.user()
        booking = await booking_service.create_booking(db, owner.id, booking_request(event.id))

        # When: user B tries to cancel it
        with pytest.raises(AuthorizationError):
            await booking_service.cancel_booking(db, intruder.id, booking.id)

        # Then: the booking is unchanged
        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.booking_status == BookingStatus.CONFIRMED

    async def test_cannot_cancel_after_event_started(self, db, factory, session_factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        user = await factory.user()
        booking = await booking_service.create_booking(db, user.id, booking_request(event.id))
        await factory.reschedule(event.id, start=utcnow() - timedelta(hours=1))

        with pytest.raises(ConflictError) as exc_info:
            await booking_service.cancel_booking(db, user.id, booking.id)

        assert exc_info.value.message == "Cannot cancel booking after event has started"
        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.booking_status == BookingStatus.CONFIRMED

    async def test_unknown_booking(self, db, factory):
        user = await factory.user()

        with pytest.raises(NotFoundError):
            await booking_service.cancel_booking(db, user.id, 987654)

    async def test_pending_paid_booking_can_be_cancelled(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer, entry_type=EntryType.PAID)
        user = await factory.user()
        booking = await booking_service.create_booking(db, user.id, booking_request(event.id))

        cancelled = await booking_service.cancel_booking(db, user.id, booking.id)

        assert cancelled.booking_status == BookingStatus.CANCELLED
        assert cancelled.payment_status == PaymentStatus.PENDING


class TestCancelledIsTerminal:
    async def test_second_cancel_is_rejected(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        user = await factory.user()
        booking = await booking_service.create_booking(db, user.id, booking_request(event.id))
        await booking_service.cancel_booking(db, user.id, booking.id)

        with pytest.raises(ConflictError) as exc_info:
            await booking_service.cancel_booking(db, user.id, booking.id)

        assert exc_info.value.message == "Booking is already cancelled"

    async def test_attendance_marking_keeps_cancelled_status(self, db, factory, session_factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        user = await factory.user()
        booking = await booking_service.create_booking(db, user.id, booking_request(event.id))
        await booking_service.cancel_booking(db, user.id, booking.id)

        await participant_service.mark_attendance(db, organizer.id, booking.id, "absent")

        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.booking_status == BookingStatus.CANCELLED
        assert stored.attendance_status == AttendanceStatus.ABSENT

    async def test_cancelled_booking_leaves_listings_and_counts(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer, max_participants=4)
        keeper, leaver = await factory.user(), await factory.user()
        await booking_service.create_booking(db, keeper.id, booking_request(event.id, name="Keeper"))
        leaving = await booking_service.create_booking(
            db, leaver.id, booking_request(event.id, name="Leaver", ticket_count=2)
        )

        await booking_service.cancel_booking(db, leaver.id, leaving.id)

        participants = await participant_service.list_participants(db, organizer.id, event.id)
        assert [p.name for p in participants] == ["Keeper"]
        spots = await booking_service.remaining_spots(db, event.id)
        assert spots.booked_tickets == 1


class TestTicketIdStability:
    async def test_ticket_id_survives_updates(self, db, factory, session_factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        user = await factory.user()
        booking = await booking_service.create_booking(db, user.id, booking_request(event.id))
        original = booking.ticket_id

        await participant_service.mark_attendance(db, organizer.id, booking.id, "present")
        await booking_service.cancel_booking(db, user.id, booking.id)

        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.ticket_id == original
