import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class EventType(str, enum.Enum):
    WORKSHOP = "workshop"
    HACKATHON = "hackathon"
    SEMINAR = "seminar"
    BOOTCAMP = "bootcamp"


class EntryType(str, enum.Enum):
    FREE = "free"
    PAID = "paid"


class EventMode(str, enum.Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    UPCOMING = "upcoming"
    ONGOING = "ongoing"
    COMPLETED = "completed"
    CANCELED = "canceled"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    organizer_id: Mapped[int] = mapped_column(
        ForeignKey("organizers.id"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    event_type: Mapped[Optional[EventType]] = mapped_column(
        SQLEnum(EventType, name="event_type", values_callable=_values), nullable=True
    )
    banner_image_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    start_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )
    end_date_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    registration_deadline: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    # Fixed at creation; sold tickets are always summed from bookings
    max_participants: Mapped[int] = mapped_column(Integer, nullable=False)
    entry_type: Mapped[EntryType] = mapped_column(
        SQLEnum(EntryType, name="entry_type", values_callable=_values),
        nullable=False,
        default=EntryType.FREE,
    )
    ticket_price: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(10, 2), nullable=True
    )
    mode: Mapped[EventMode] = mapped_column(
        SQLEnum(EventMode, name="event_mode", values_callable=_values),
        nullable=False,
    )
    venue: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    streaming_link: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    status: Mapped[EventStatus] = mapped_column(
        SQLEnum(EventStatus, name="event_status", values_callable=_values),
        nullable=False,
        default=EventStatus.UPCOMING,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (
        Index("idx_event_status_start", "status", "start_date_time"),
        Index("idx_event_organizer_start", "organizer_id", "start_date_time"),
    )
