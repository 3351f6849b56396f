from typing import Any, List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.organizer import Organizer
from app.schemas.booking import Booking
from app.schemas.common import ApiResponse
from app.schemas.participant import AttendanceUpdate, Participant
from app.services import participant_service

router = APIRouter()


@router.get("/event/{event_id}", response_model=ApiResponse[List[Participant]])  # type: ignore[misc]
async def read_event_participants(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """
    Participants of an event owned by the caller. Each booking contributes
    its primary contact plus one entry per additional participant.
    """
    participants = await participant_service.list_participants(
        db, current_organizer.id, event_id
    )
    return ApiResponse(message=f"{len(participants)} participants", data=participants)


@router.post("/attendance/{booking_id}", response_model=ApiResponse[Booking])  # type: ignore[misc]
async def mark_attendance(
    booking_id: int,
    attendance_in: AttendanceUpdate,
    db: AsyncSession = Depends(deps.get_db),
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    booking = await participant_service.mark_attendance(
        db, current_organizer.id, booking_id, attendance_in.status
    )
    return ApiResponse(
        message="Attendance updated successfully", data=Booking.model_validate(booking)
    )


@router.get("/export/{event_id}", response_class=Response)  # type: ignore[misc]
async def export_participants(
    event_id: int,
    db: AsyncSession = Depends(deps.get_db),
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Response:
    csv_data = await participant_service.export_participants_csv(
        db, current_organizer.id, event_id
    )
    return Response(
        content=csv_data,
        media_type="text/csv",
        headers={
            "Content-Disposition": f"attachment; filename=participants-{event_id}.csv"
        },
    )
