from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from app.models.booking import AttendanceStatus, BookingStatus, PaymentStatus
from app.models.user import AttendeeType
from app.utils.dates import ensure_utc

from .event import EventSummary


class ContactInfo(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    attendee_type: Optional[AttendeeType] = None

    @field_validator("name", "email", "phone", "attendee_type", mode="before")
    @classmethod
    def blank_as_missing(cls, v: Any) -> Any:
        # Blank fields are reported by the required-fields check, not as format errors
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AdditionalParticipant(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class BookingCreate(ContactInfo):
    """
    Booking request. Contact details may be sent flat or nested under
    ``primary_contact``; flat values take precedence.
    """

    event_id: Optional[int] = None
    primary_contact: Optional[ContactInfo] = None
    ticket_count: int = Field(1, ge=1, description="Number of tickets must be positive.")
    additional_participants: List[AdditionalParticipant] = Field(default_factory=list)

    @model_validator(mode="after")
    def merge_primary_contact(self) -> "BookingCreate":
        if self.primary_contact is not None:
            for field in ("name", "email", "phone", "attendee_type"):
                if not getattr(self, field):
                    setattr(self, field, getattr(self.primary_contact, field))
        return self

    def missing_required(self) -> bool:
        return not all(
            (self.event_id, self.name, self.email, self.phone, self.attendee_type)
        )


class Booking(BaseModel):
    id: int
    ticket_id: str
    user_id: int
    event_id: int
    name: str
    email: str
    phone: str
    attendee_type: AttendeeType
    ticket_count: int
    total_amount: float
    payment_status: PaymentStatus
    booking_status: BookingStatus
    attendance_status: AttendanceStatus
    additional_participants: List[AdditionalParticipant] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    event: Optional[EventSummary] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(v)


class RemainingSpots(BaseModel):
    capacity: int
    booked_tickets: int
    remaining: int


class TicketView(BaseModel):
    """A booking reshaped for the attendee's ticket list"""

    id: int
    event_id: int
    event_name: str
    event_date: datetime
    event_time: str
    event_location: str
    ticket_type: str
    ticket_number: str
    price: float
    purchase_date: datetime
    status: str
