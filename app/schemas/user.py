from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.settings import settings
from app.models.user import AttendeeType


class UserBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    phone: Optional[str] = None
    attendee_type: Optional[AttendeeType] = None


# Properties to receive via API on creation
class UserCreate(UserBase):
    password: str = Field(..., min_length=settings.security.PASSWORD_MIN_LENGTH)


class User(UserBase):
    id: int
    is_active: bool = True
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    account_id: int
