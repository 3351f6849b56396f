# Import all models for easier access
from .booking import (  # noqa: F401
    AttendanceStatus,
    Booking,
    BookingParticipant,
    BookingStatus,
    PaymentStatus,
)
from .event import EntryType, Event, EventMode, EventStatus, EventType  # noqa: F401
from .organizer import Organizer, OrganizationType  # noqa: F401
from .user import AttendeeType, User, user_registered_events  # noqa: F401
