from typing import Any, List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.models.organizer import Organizer
from app.schemas.common import ApiResponse
from app.schemas.event import Event, EventCreate, EventUpdate
from app.services import event_service

router = APIRouter()


@router.get("/", response_model=ApiResponse[List[Event]])  # type: ignore[misc]
async def read_events(
    db: AsyncSession = Depends(deps.get_db),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
) -> Any:
    """
    Public catalog: every event except drafts, soonest first.
    """
    events = await event_service.list_events(db, skip=skip, limit=limit)
    return ApiResponse(data=events)


@router.get("/organizer/my-events", response_model=ApiResponse[List[Event]])  # type: ignore[misc]
async def read_my_events(
    db: AsyncSession = Depends(deps.get_db),
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    events = await event_service.list_organizer_events(db, current_organizer.id)
    return ApiResponse(data=events)


@router.get("/{event_id}", response_model=ApiResponse[Event])  # type: ignore[misc]
async def read_event(event_id: int, db: AsyncSession = Depends(deps.get_db)) -> Any:
    event = await event_service.get_event(db, event_id)
    return ApiResponse(data=event)


@router.post(
    "/", response_model=ApiResponse[Event], status_code=status.HTTP_201_CREATED
)  # type: ignore[misc]
async def create_event(
    *,
    db: AsyncSession = Depends(deps.get_db),
    event_in: EventCreate,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    event = await event_service.create_event(db, current_organizer.id, event_in)
    return ApiResponse(message="Event created successfully", data=event)


@router.put("/{event_id}", response_model=ApiResponse[Event])  # type: ignore[misc]
async def update_event(
    *,
    db: AsyncSession = Depends(deps.get_db),
    event_id: int,
    event_in: EventUpdate,
    current_organizer: Organizer = Depends(deps.get_current_organizer),
) -> Any:
    """
    Update an event. Only the owning organizer may do this, and capacity
    cannot be changed after creation.
    """
    event = await event_service.update_event(
        db, current_organizer.id, event_id, event_in
    )
    return ApiResponse(message="Event updated successfully", data=event)
