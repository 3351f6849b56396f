import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core import security
from app.core.exceptions import ConflictError
from app.crud import organizer as organizer_crud
from app.crud import user as user_crud
from app.schemas.common import ApiResponse
from app.schemas.organizer import OrganizerCreate
from app.schemas.user import LoginRequest, Token, UserCreate

logger = logging.getLogger(__name__)

router = APIRouter()


def _invalid_credentials() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password",
        headers={"WWW-Authenticate": "Bearer"},
    )


@router.post(
    "/user/register",
    response_model=ApiResponse[Token],
    status_code=status.HTTP_201_CREATED,
    summary="Register attendee",
)  # type: ignore[misc]
async def register_user(
    user_in: UserCreate, db: AsyncSession = Depends(deps.get_db)
) -> Any:
    """
    Create an attendee account and return an access token for it.
    A duplicate email is rejected with `400`.
    """
    if await user_crud.get_by_email(db, email=user_in.email):
        raise ConflictError("User already exists")
    user = await user_crud.create(db, obj_in=user_in)
    logger.info(f"User {user.id} registered")
    token = security.create_access_token(user.id, role=security.ROLE_USER)
    return ApiResponse(
        message="User registered successfully",
        data=Token(access_token=token, role=security.ROLE_USER, account_id=user.id),
    )


@router.post("/user/login", response_model=ApiResponse[Token], summary="Attendee login")  # type: ignore[misc]
async def login_user(
    credentials: LoginRequest, db: AsyncSession = Depends(deps.get_db)
) -> Any:
    user = await user_crud.authenticate(
        db, email=credentials.email, password=credentials.password
    )
    if not user or not user.is_active:
        raise _invalid_credentials()
    token = security.create_access_token(user.id, role=security.ROLE_USER)
    return ApiResponse(
        data=Token(access_token=token, role=security.ROLE_USER, account_id=user.id)
    )


@router.post(
    "/organizer/register",
    response_model=ApiResponse[Token],
    status_code=status.HTTP_201_CREATED,
    summary="Register organizer",
)  # type: ignore[misc]
async def register_organizer(
    organizer_in: OrganizerCreate, db: AsyncSession = Depends(deps.get_db)
) -> Any:
    if await organizer_crud.get_by_email(db, email=organizer_in.email):
        raise ConflictError("Organizer already exists")
    organizer = await organizer_crud.create(db, obj_in=organizer_in)
    logger.info(f"Organizer {organizer.id} registered")
    token = security.create_access_token(organizer.id, role=security.ROLE_ORGANIZER)
    return ApiResponse(
        message="Organizer registered successfully",
        data=Token(
            access_token=token, role=security.ROLE_ORGANIZER, account_id=organizer.id
        ),
    )


@router.post(
    "/organizer/login", response_model=ApiResponse[Token], summary="Organizer login"
)  # type: ignore[misc]
async def login_organizer(
    credentials: LoginRequest, db: AsyncSession = Depends(deps.get_db)
) -> Any:
    organizer = await organizer_crud.authenticate(
        db, email=credentials.email, password=credentials.password
    )
    if not organizer:
        raise _invalid_credentials()
    token = security.create_access_token(organizer.id, role=security.ROLE_ORGANIZER)
    return ApiResponse(
        data=Token(
            access_token=token, role=security.ROLE_ORGANIZER, account_id=organizer.id
        )
    )
