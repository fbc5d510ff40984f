"""
Postbox Backend — Message Route Handlers
==========================================

What:  GET/POST /messages and GET/PUT/DELETE /messages/{message_id}.
How:   Extracts path/body data, delegates to MessageService, returns JSON.
       Failures surface as app exceptions and are turned into structured
       error responses by the handlers registered in main.py.
"""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from postbox.database import get_db_session
from postbox.schemas.message import (
    ErrorResponse,
    MessageCreate,
    MessageDeleteResponse,
    MessageResponse,
    MessageUpdate,
    MessageUpdateResponse,
)
from postbox.services.message_service import message_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])


@router.get(
    "",
    response_model=List[MessageResponse],
    responses={500: {"description": "Server error", "model": ErrorResponse}},
    summary="List all messages",
)
async def list_messages(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
) -> List[MessageResponse]:
    """
    Returns every message. No pagination; the count is also sent in
    X-Total-Count for clients that only need the number.
    """
    messages = await message_service.list_messages(db)
    response.headers["X-Total-Count"] = str(len(messages))
    return messages


@router.get(
    "/{message_id}",
    response_model=MessageResponse,
    responses={
        404: {"description": "Message not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Get a single message by ID",
)
async def get_message(
    message_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return await message_service.get_message(db, message_id)


@router.post(
    "",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Author does not exist", "model": ErrorResponse},
        409: {"description": "Message ID already in use", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Create a message",
    description=(
        "Creates a message. When `author` is given, the new message is also "
        "prepended to that user's message list in the same transaction."
    ),
)
async def create_message(
    payload: MessageCreate,
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    logger.info("Received create request: author=%s", payload.author)
    return await message_service.create_message(db, payload)


@router.put(
    "/{message_id}",
    response_model=MessageUpdateResponse,
    responses={
        400: {"description": "New author does not exist", "model": ErrorResponse},
        404: {"description": "Message not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Update a message",
    description="Applies only the supplied fields (title, body, author).",
)
async def update_message(
    message_id: uuid.UUID,
    payload: MessageUpdate,
    db: AsyncSession = Depends(get_db_session),
) -> MessageUpdateResponse:
    message = await message_service.update_message(db, message_id, payload)
    return MessageUpdateResponse(message=message)


@router.delete(
    "/{message_id}",
    response_model=MessageDeleteResponse,
    responses={
        404: {"description": "Message not found", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Delete a message",
    description="Deletes the message and removes it from its author's message list.",
)
async def delete_message(
    message_id: uuid.UUID,
    db: AsyncSession = Depends(get_db_session),
) -> MessageDeleteResponse:
    return await message_service.delete_message(db, message_id)
