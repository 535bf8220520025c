"""
ClassNotes Backend - Authentication Routes
============================================

What:  Account registration and login.
Who:   Called by the front end's login and sign-up forms. These are the
       only /api routes that do not need a bearer token.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.database import get_db_session
from classnotes.dependencies import get_auth_service
from classnotes.schemas.auth import Credentials, MessageResponse, TokenResponse
from classnotes.schemas.common import ErrorResponse
from classnotes.services.auth_service import AuthService

router = APIRouter(prefix="/api", tags=["Auth"])


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing username or password", "model": ErrorResponse},
        409: {"description": "Username already taken", "model": ErrorResponse},
    },
    summary="Create an account",
)
async def register(
    body: Credentials,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.register(db, body.username, body.password)
    return MessageResponse(message="User registered successfully")


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={
        401: {"description": "Invalid credentials", "model": ErrorResponse},
    },
    summary="Exchange credentials for a bearer token",
    description=(
        "Returns a signed token valid for TOKEN_EXPIRY_HOURS. Unknown usernames "
        "and wrong passwords produce the same 401 response."
    ),
)
async def login(
    body: Credentials,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    token = await auth_service.login(db, body.username, body.password)
    return TokenResponse(token=token)
