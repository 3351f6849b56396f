from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.booking import AttendanceStatus


class Participant(BaseModel):
    """One attendee derived from a booking (primary contact or additional participant)"""

    id: str
    booking_id: int
    user_id: Optional[int] = None
    name: str
    email: str
    phone: str = ""
    attendee_type: Optional[str] = None
    registration_date: datetime
    attendance_status: AttendanceStatus
    ticket_id: str
    is_additional: bool = False


class AttendanceUpdate(BaseModel):
    status: str
