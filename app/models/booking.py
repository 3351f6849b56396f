import enum
import time
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Any, List, Optional

from sqlalchemy import DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, event
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow
from .user import AttendeeType

if TYPE_CHECKING:
    from .event import Event


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class AttendanceStatus(str, enum.Enum):
    PRESENT = "present"
    ABSENT = "absent"
    NOT_MARKED = "not_marked"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


def generate_ticket_id(event_id: Any, user_id: Any, millis: Optional[int] = None) -> str:
    """Human readable ticket id: ``EVNT-<event>-<user>-<timestamp>``, last six chars each."""
    if millis is None:
        millis = int(time.time() * 1000)
    return f"EVNT-{str(event_id)[-6:]}-{str(user_id)[-6:]}-{str(millis)[-6:]}"


class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id"), nullable=False, index=True
    )
    event_id: Mapped[int] = mapped_column(
        ForeignKey("events.id"), nullable=False, index=True
    )
    ticket_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, index=True
    )

    # Primary contact
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    attendee_type: Mapped[AttendeeType] = mapped_column(
        SQLEnum(AttendeeType, name="attendee_type", values_callable=_values),
        nullable=False,
    )

    ticket_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    payment_status: Mapped[PaymentStatus] = mapped_column(
        SQLEnum(PaymentStatus, name="payment_status", values_callable=_values),
        nullable=False,
        default=PaymentStatus.PENDING,
    )
    booking_status: Mapped[BookingStatus] = mapped_column(
        SQLEnum(BookingStatus, name="booking_status", values_callable=_values),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    attendance_status: Mapped[AttendanceStatus] = mapped_column(
        SQLEnum(AttendanceStatus, name="attendance_status", values_callable=_values),
        nullable=False,
        default=AttendanceStatus.NOT_MARKED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    event: Mapped["Event"] = relationship("Event", lazy="selectin")
    additional_participants: Mapped[List["BookingParticipant"]] = relationship(
        "BookingParticipant",
        lazy="selectin",
        order_by="BookingParticipant.position",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("idx_booking_event_status", "event_id", "booking_status"),
        Index("idx_booking_user_created", "user_id", "created_at"),
    )


class BookingParticipant(Base):
    """An extra attendee named on a booking. Attendance is tracked per booking, not here."""

    __tablename__ = "booking_participants"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    booking_id: Mapped[int] = mapped_column(
        ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String, nullable=False)


@event.listens_for(Booking, "before_insert")
def assign_ticket_id(mapper: Any, connection: Any, target: Booking) -> None:
    # Assigned once on first save; updates never touch it
    if not target.ticket_id:
        target.ticket_id = generate_ticket_id(target.event_id, target.user_id)
