"""
Participant list derivation, attendance marking and CSV export.
"""
import pytest

from app.core.exceptions import AuthorizationError, ValidationError
from app.crud import booking as booking_crud
from app.models.booking import AttendanceStatus
from app.services import booking_service, participant_service
from conftest import booking_request

NOT_OWNER_MESSAGE = "Event not found or you do not have access to it"


async def _event_with_group_booking(db, factory):
    organizer = await factory.organizer()
    event = await factory.event(organizer)
    user = await factory.user()
    booking = await booking_service.create_booking(
        db,
        user.id,
        booking_request(
            event.id,
            ticket_count=3,
            additional_participants=[
                {"name": "Guest One", "email": "one@example.com"},
                {"name": "Guest Two", "email": "two@example.com"},
            ],
        ),
    )
    return organizer, event, user, booking


class TestListParticipants:
    async def test_group_booking_expands_to_three_records(self, db, factory):
        organizer, event, user, booking = await _event_with_group_booking(db, factory)
        await participant_service.mark_attendance(db, organizer.id, booking.id, "present")

        participants = await participant_service.list_participants(db, organizer.id, event.id)

        assert len(participants) == 3
        primary, first, second = participants
        ticket = booking.ticket_id
        assert [p.ticket_id for p in participants] == [ticket, f"{ticket}-1", f"{ticket}-2"]
        assert primary.attendance_status == AttendanceStatus.PRESENT
        assert primary.user_id == user.id
        assert primary.phone == "555-0100"
        assert first.attendance_status == AttendanceStatus.NOT_MARKED
        assert second.attendance_status == AttendanceStatus.NOT_MARKED
        assert first.id == f"{booking.id}-1"
        assert first.user_id is None
        assert first.phone == ""
        assert first.is_additional and second.is_additional

    async def test_bookings_are_listed_oldest_first(self, db, factory):
        organizer = await factory.organizer()
        event = await factory.event(organizer)
        early, late = await factory.user(), await factory.user()
        await booking_service.create_booking(db, early.id, booking_request(event.id, name="Early"))
        await booking_service.create_booking(db, late.id, booking_request(event.id, name="Late"))

        participants = await participant_service.list_participants(db, organizer.id, event.id)

        assert [p.name for p in participants] == ["Early", "Late"]

    async def test_other_organizer_gets_generic_error(self, db, factory):
        _, event, _, _ = await _event_with_group_booking(db, factory)
        stranger = await factory.organizer()

        with pytest.raises(AuthorizationError) as exc_info:
            await participant_service.list_participants(db, stranger.id, event.id)
        assert exc_info.value.message == NOT_OWNER_MESSAGE

    async def test_missing_event_looks_the_same_as_foreign_event(self, db, factory):
        organizer = await factory.organizer()

        with pytest.raises(AuthorizationError) as exc_info:
            await participant_service.list_participants(db, organizer.id, 31337)
        assert exc_info.value.message == NOT_OWNER_MESSAGE


class TestMarkAttendance:
    async def test_owner_overwrites_status(self, db, factory, session_factory):
        organizer, _, _, booking = await _event_with_group_booking(db, factory)

        await participant_service.mark_attendance(db, organizer.id, booking.id, "present")
        await participant_service.mark_attendance(db, organizer.id, booking.id, "absent")

        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.attendance_status == AttendanceStatus.ABSENT

    @pytest.mark.parametrize("status", ["late", "", "PRESENT"])
    async def test_invalid_status_is_rejected(self, db, factory, status):
        organizer, _, _, booking = await _event_with_group_booking(db, factory)

        with pytest.raises(ValidationError) as exc_info:
            await participant_service.mark_attendance(db, organizer.id, booking.id, status)
        assert exc_info.value.message == "Invalid attendance status"

    async def test_other_organizer_is_rejected(self, db, factory, session_factory):
        _, _, _, booking = await _event_with_group_booking(db, factory)
        stranger = await factory.organizer()

        with pytest.raises(AuthorizationError):
            await participant_service.mark_attendance(db, stranger.id, booking.id, "present")

        async with session_factory() as session:
            stored = await booking_crud.get(session, booking.id)
        assert stored.attendance_status == AttendanceStatus.NOT_MARKED

    async def test_missing_booking_does_not_leak_existence(self, db, factory):
        organizer = await factory.organizer()

        with pytest.raises(AuthorizationError):
            await participant_service.mark_attendance(db, organizer.id, 55555, "present")


class TestExport:
    async def test_csv_contains_every_participant(self, db, factory):
        organizer, event, _, booking = await _event_with_group_booking(db, factory)

        csv_data = await participant_service.export_participants_csv(db, organizer.id, event.id)

        lines = csv_data.strip().split("\n")
        assert lines[0] == (
            "Name,Email,Phone,Registration Date,Attendee Type,Attendance Status,Ticket ID"
        )
        assert len(lines) == 4
        registered = booking.created_at.strftime("%Y-%m-%d")
        assert lines[1] == (
            f'"Ada Lovelace","ada@example.com","555-0100","{registered}",'
            f'"student","not_marked","{booking.ticket_id}"'
        )
        assert lines[3].endswith(f'"not_marked","{booking.ticket_id}-2"')
        assert '"Guest Two","two@example.com",""' in lines[3]

    async def test_export_requires_ownership(self, db, factory):
        _, event, _, _ = await _event_with_group_booking(db, factory)
        stranger = await factory.organizer()

        with pytest.raises(AuthorizationError):
            await participant_service.export_participants_csv(db, stranger.id, event.id)
