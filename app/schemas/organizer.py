from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.settings import settings
from app.models.organizer import OrganizationType


class OrganizerBase(BaseModel):
    organization_name: str = Field(..., min_length=1, max_length=200)
    organization_type: OrganizationType
    website: Optional[str] = None
    contact_person: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: str = Field(..., min_length=1)


class OrganizerCreate(OrganizerBase):
    password: str = Field(..., min_length=settings.security.PASSWORD_MIN_LENGTH)


class Organizer(OrganizerBase):
    id: int
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
