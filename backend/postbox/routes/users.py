"""
Postbox Backend — User Route Handlers
=======================================

What:  POST /users and GET /users/{user_id}.
Why:   Enough of the user resource to create authors and read back their
       message lists; the rest of user CRUD is not served.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from postbox.database import get_db_session
from postbox.schemas.message import ErrorResponse
from postbox.schemas.user import UserCreate, UserResponse
from postbox.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post(
    "",
    status_code=201,
    response_model=UserResponse,
    responses={409: {"description": "Username taken", "model": ErrorResponse}},
    summary="Create a user",
)
async def create_user(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.create_user(db, payload)


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"description": "User not found", "model": ErrorResponse}},
    summary="Get a user and their message ids",
)
async def get_user(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> UserResponse:
    return await user_service.get_user(db, user_id)
