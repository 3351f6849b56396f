import csv
import io
import logging
from typing import List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db_utils import db_transaction
from app.core.exceptions import AuthorizationError, PersistenceError, ValidationError
from app.crud import booking as booking_crud
from app.crud import event as event_crud
from app.models.booking import AttendanceStatus, Booking
from app.models.event import Event
from app.schemas.participant import Participant
from app.utils.dates import ensure_utc

logger = logging.getLogger(__name__)

CSV_HEADER = [
    "Name",
    "Email",
    "Phone",
    "Registration Date",
    "Attendee Type",
    "Attendance Status",
    "Ticket ID",
]


async def _get_owned_event(db: AsyncSession, organizer_id: int, event_id: int) -> Event:
    # Missing and foreign events are indistinguishable to the caller
    event = await event_crud.get(db, event_id)
    if not event or event.organizer_id != organizer_id:
        raise AuthorizationError("Event not found or you do not have access to it")
    return event


def expand_booking(booking: Booking) -> List[Participant]:
    """
    One record for the booking's primary contact, then one per additional
    participant. Attendance is tracked per booking, so additional participants
    are always reported as not marked.
    """
    registered = ensure_utc(booking.created_at)
    records = [
        Participant(
            id=str(booking.id),
            booking_id=booking.id,
            user_id=booking.user_id,
            name=booking.name,
            email=booking.email,
            phone=booking.phone,
            attendee_type=booking.attendee_type.value,
            registration_date=registered,  # type: ignore[arg-type]
            attendance_status=booking.attendance_status,
            ticket_id=booking.ticket_id,
        )
    ]
    for index, extra in enumerate(booking.additional_participants, start=1):
        records.append(
            Participant(
                id=f"{booking.id}-{index}",
                booking_id=booking.id,
                name=extra.name,
                email=extra.email,
                phone="",
                attendee_type=booking.attendee_type.value,
                registration_date=registered,  # type: ignore[arg-type]
                attendance_status=AttendanceStatus.NOT_MARKED,
                ticket_id=f"{booking.ticket_id}-{index}",
                is_additional=True,
            )
        )
    return records


async def list_participants(
    db: AsyncSession, organizer_id: int, event_id: int
) -> List[Participant]:
    await _get_owned_event(db, organizer_id, event_id)
    bookings = await booking_crud.get_active_event_bookings(db, event_id=event_id)
    participants: List[Participant] = []
    for booking in bookings:
        participants.extend(expand_booking(booking))
    return participants


async def mark_attendance(
    db: AsyncSession, organizer_id: int, booking_id: int, status: str
) -> Booking:
    try:
        attendance = AttendanceStatus(status)
    except ValueError:
        raise ValidationError("Invalid attendance status") from None

    booking = await booking_crud.get(db, booking_id)
    event = await event_crud.get(db, booking.event_id) if booking else None
    if not booking or not event or event.organizer_id != organizer_id:
        raise AuthorizationError(
            "You do not have permission to update this participant"
        )

    try:
        async with db_transaction(db):
            booking.attendance_status = attendance
    except SQLAlchemyError as e:
        logger.error(f"Failed to mark attendance on booking {booking_id}: {e}", exc_info=True)
        raise PersistenceError("Failed to update attendance") from e

    logger.info(
        f"Attendance for booking {booking.ticket_id} set to {attendance.value} "
        f"by organizer {organizer_id}"
    )
    return booking


def participants_to_csv(participants: List[Participant]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    buffer.write(",".join(CSV_HEADER) + "\n")
    for p in participants:
        writer.writerow(
            [
                p.name,
                p.email,
                p.phone,
                p.registration_date.strftime("%Y-%m-%d"),
                p.attendee_type or "",
                p.attendance_status.value,
                p.ticket_id,
            ]
        )
    return buffer.getvalue()


async def export_participants_csv(
    db: AsyncSession, organizer_id: int, event_id: int
) -> str:
    participants = await list_participants(db, organizer_id, event_id)
    logger.info(f"Exporting {len(participants)} participants for event {event_id}")
    return participants_to_csv(participants)
