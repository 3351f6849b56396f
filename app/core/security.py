from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Union, cast

from jose import jwt
from jose.exceptions import JWTError
from passlib.context import CryptContext

from .settings import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = settings.security.JWT_ALGORITHM

ROLE_USER = "user"
ROLE_ORGANIZER = "organizer"


def create_access_token(
    subject: Union[str, Any],
    role: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.security.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode: dict[str, Any] = {"exp": expire, "sub": str(subject), "role": role}
    encoded_jwt = jwt.encode(
        to_encode, settings.security.JWT_SECRET_KEY, algorithm=ALGORITHM
    )
    return cast(str, encoded_jwt)


def decode_access_token(token: str) -> dict[str, Any]:
    """Decode and verify a bearer token. Raises ``JWTError`` when invalid or expired."""
    payload = jwt.decode(token, settings.security.JWT_SECRET_KEY, algorithms=[ALGORITHM])
    if "sub" not in payload or "role" not in payload:
        raise JWTError("Invalid token structure")
    return cast(dict[str, Any], payload)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return cast(bool, pwd_context.verify(plain_password, hashed_password))


def get_password_hash(password: str) -> str:
    return cast(str, pwd_context.hash(password))
