from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from app.models.event import EntryType, EventMode, EventStatus, EventType
from app.utils.dates import ensure_utc


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    banner_image_url: Optional[str] = None
    start_date_time: datetime
    end_date_time: datetime
    registration_deadline: datetime
    entry_type: EntryType = EntryType.FREE
    ticket_price: Optional[Decimal] = None
    mode: EventMode
    venue: Optional[str] = None
    streaming_link: Optional[str] = None
    status: EventStatus = EventStatus.UPCOMING

    @field_validator(
        "start_date_time", "end_date_time", "registration_deadline", mode="after"
    )
    @classmethod
    def normalise_to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)  # type: ignore[return-value]


class EventCreate(EventBase):
    max_participants: int = Field(..., ge=1, description="Capacity must be positive.")

    @model_validator(mode="after")
    def check_event_rules(self) -> "EventCreate":
        if self.end_date_time <= self.start_date_time:
            raise ValueError("End date must be after start date")
        if self.registration_deadline > self.start_date_time:
            raise ValueError("Registration deadline must be on or before the start date")

        if self.entry_type == EntryType.PAID:
            if self.ticket_price is None or self.ticket_price <= 0:
                raise ValueError("Ticket price is required for paid events")
        elif self.ticket_price:
            raise ValueError("Free events cannot have a ticket price")
        else:
            self.ticket_price = None

        if self.mode in (EventMode.OFFLINE, EventMode.HYBRID) and not self.venue:
            raise ValueError("Venue is required for offline and hybrid events")
        if self.mode in (EventMode.ONLINE, EventMode.HYBRID) and not self.streaming_link:
            raise ValueError("Streaming link is required for online and hybrid events")
        return self


class EventUpdate(BaseModel):
    """Partial update. Capacity is fixed at creation and cannot be changed here."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    banner_image_url: Optional[str] = None
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    registration_deadline: Optional[datetime] = None
    entry_type: Optional[EntryType] = None
    ticket_price: Optional[Decimal] = None
    mode: Optional[EventMode] = None
    venue: Optional[str] = None
    streaming_link: Optional[str] = None
    status: Optional[EventStatus] = None

    model_config = ConfigDict(extra="forbid")


class Event(BaseModel):
    id: int
    organizer_id: int
    title: str
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    banner_image_url: Optional[str] = None
    start_date_time: datetime
    end_date_time: datetime
    registration_deadline: datetime
    max_participants: int
    entry_type: EntryType
    ticket_price: Optional[float] = None
    mode: EventMode
    venue: Optional[str] = None
    streaming_link: Optional[str] = None
    status: EventStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator(
        "start_date_time",
        "end_date_time",
        "registration_deadline",
        "created_at",
        "updated_at",
        mode="after",
    )
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class EventSummary(BaseModel):
    """Restricted event view embedded in booking responses"""

    id: int
    title: str
    banner_image_url: Optional[str] = None
    start_date_time: datetime
    venue: Optional[str] = None
    mode: EventMode
    entry_type: EntryType

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_date_time", mode="after")
    @classmethod
    def as_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)  # type: ignore[return-value]
