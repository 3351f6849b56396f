import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from ..database import Base
from ..utils.dates import utcnow


class OrganizationType(str, enum.Enum):
    EDUCATIONAL = "educational"
    TECH_COMPANY = "tech-company"
    NON_PROFIT = "non-profit"
    COMMUNITY = "community"
    INDIVIDUAL = "individual"


class Organizer(Base):
    __tablename__ = "organizers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    organization_name: Mapped[str] = mapped_column(String(200), nullable=False)
    organization_type: Mapped[OrganizationType] = mapped_column(
        SQLEnum(
            OrganizationType,
            name="organization_type",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
    )
    website: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    contact_person: Mapped[str] = mapped_column(String(150), nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    hashed_password: Mapped[str] = mapped_column(String, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow
    )
