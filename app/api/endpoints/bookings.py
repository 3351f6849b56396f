from typing import Any, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.user import User
from app.schemas.booking import Booking, BookingCreate, RemainingSpots, TicketView
from app.schemas.common import ApiResponse
from app.services import booking_service

router = APIRouter()


@router.post(
    "/create",
    response_model=ApiResponse[Booking],
    status_code=status.HTTP_201_CREATED,
)  # type: ignore[misc]
async def create_booking(
    *,
    db: AsyncSession = Depends(deps.get_db),
    booking_in: BookingCreate,
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    """
    Book tickets for an event.

    **Errors:**
    - `400`: missing contact details, event started, registration closed,
      or not enough spots (the body then carries `remaining`)
    - `404`: event not found
    - `500`: the booking could not be saved
    """
    booking = await booking_service.create_booking(db, current_user.id, booking_in)
    return ApiResponse(
        message="Booking created successfully", data=Booking.model_validate(booking)
    )


@router.get("/my-tickets", response_model=ApiResponse[List[TicketView]])  # type: ignore[misc]
async def read_my_tickets(
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    tickets = await booking_service.list_user_tickets(db, current_user.id)
    return ApiResponse(data=tickets)


@router.get("/remaining-spots/{event_id}", response_model=ApiResponse[RemainingSpots])  # type: ignore[misc]
async def read_remaining_spots(
    event_id: int, db: AsyncSession = Depends(deps.get_db)
) -> Any:
    spots = await booking_service.remaining_spots(db, event_id)
    return ApiResponse(data=spots)


@router.put("/cancel/{booking_id}", response_model=ApiResponse[Booking])  # type: ignore[misc]
async def cancel_booking(
    booking_id: int,
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    booking = await booking_service.cancel_booking(db, current_user.id, booking_id)
    return ApiResponse(
        message="Booking cancelled successfully", data=Booking.model_validate(booking)
    )


@router.get("/details/{booking_id}", response_model=ApiResponse[Booking])  # type: ignore[misc]
@router.get("/{booking_id}", response_model=ApiResponse[Booking])  # type: ignore[misc]
async def read_booking(
    booking_id: int,
    db: AsyncSession = Depends(deps.get_db),
    current_user: User = Depends(deps.get_current_user),
) -> Any:
    booking = await booking_service.get_booking(db, current_user.id, booking_id)
    return ApiResponse(data=Booking.model_validate(booking))
