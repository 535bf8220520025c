"""
ClassNotes Backend - User Administration Routes
=================================================

What:  List, create and delete accounts. Any authenticated user may call
       these; there are no roles.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from classnotes.database import get_db_session
from classnotes.dependencies import get_auth_service, require_user
from classnotes.schemas.auth import Credentials, UserResponse
from classnotes.schemas.common import DeleteResponse, ErrorResponse
from classnotes.services.auth_service import AuthService

router = APIRouter(
    prefix="/api/users",
    tags=["Users"],
    dependencies=[Depends(require_user)],
    responses={
        401: {"description": "Missing bearer token", "model": ErrorResponse},
        403: {"description": "Invalid or expired token", "model": ErrorResponse},
    },
)


@router.get("", response_model=List[UserResponse], summary="List accounts")
async def list_users(
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> List[UserResponse]:
    users = await auth_service.list_users(db)
    return [UserResponse(id=u.id, username=u.username) for u in users]


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"description": "Username already taken", "model": ErrorResponse}},
    summary="Create an account",
)
async def create_user(
    body: Credentials,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    user = await auth_service.register(db, body.username, body.password)
    return UserResponse(id=user.id, username=user.username)


@router.delete("/{user_id}", response_model=DeleteResponse, summary="Delete an account")
async def delete_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
    auth_service: AuthService = Depends(get_auth_service),
) -> DeleteResponse:
    await auth_service.delete_user(db, user_id)
    return DeleteResponse()
