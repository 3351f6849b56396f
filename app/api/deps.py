from typing import AsyncGenerator, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose.exceptions import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.crud import organizer as organizer_crud
from app.crud import user as user_crud
from app.models.organizer import Organizer
from app.models.user import User

from ..core import security
from ..core.database_manager import db_manager
from ..core.settings import settings

reusable_oauth2 = OAuth2PasswordBearer(
    tokenUrl=f"{settings.API_V1_PREFIX}/auth/user/login", auto_error=False
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with db_manager.get_session() as session:
        yield session


def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject_for_role(token: Optional[str], role: str) -> int:
    """Resolve a bearer token to the account id it was issued for"""
    if not token:
        raise _credentials_error("Not authorized, no token")
    try:
        payload = security.decode_access_token(token)
        subject = int(payload["sub"])
    except (JWTError, ValueError):
        raise _credentials_error("Not authorized, token failed") from None
    if payload.get("role") != role:
        raise _credentials_error("Not authorized for this resource")
    return subject


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
) -> User:
    user_id = _subject_for_role(token, security.ROLE_USER)
    user = await user_crud.get(db, user_id)
    if not user or not user.is_active:
        raise _credentials_error("Not authorized, user not found")
    return user


async def get_current_organizer(
    db: AsyncSession = Depends(get_db),
    token: Optional[str] = Depends(reusable_oauth2),
) -> Organizer:
    organizer_id = _subject_for_role(token, security.ROLE_ORGANIZER)
    organizer = await organizer_crud.get(db, organizer_id)
    if not organizer:
        raise _credentials_error("Not authorized, organizer not found")
    return organizer
