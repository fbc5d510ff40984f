"""
Postbox Backend — Pydantic Request/Response Schemas
=====================================================

What:  The API contract for messages, errors and health checks.
How:   FastAPI validates request bodies against these models and serializes
       responses through them (by alias, so identities appear as `_id`).

Design Decision:
    Schemas are separate from the ORM models: `password_hash` never leaves
    the server, and the update payload is an explicit list of mutable fields
    instead of an arbitrary merge into the stored document.
"""

import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


def _coerce_reference(value: Any) -> Any:
    """
    Accepts either a bare id or an embedded document carrying `_id`/`id`.

    Clients that just fetched a user sometimes post the whole user object
    as the author; only its identity is stored.
    """
    if isinstance(value, dict):
        return value.get("_id", value.get("id"))
    return value


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class MessageCreate(BaseModel):
    """
    What:  Body of POST /messages.
    Why `id` is accepted: lets clients (and fixtures) choose a stable id;
           a clash with an existing message is a 409.
    """
    id: Optional[uuid.UUID] = Field(
        default=None,
        validation_alias=AliasChoices("_id", "id"),
        description="Optional client-chosen message id",
    )
    title: str = Field(min_length=1, max_length=255, description="Message title")
    body: str = Field(description="Message body")
    author: Optional[uuid.UUID] = Field(
        default=None,
        description="Id of the authoring user; linked into that user's message list",
    )

    @field_validator("author", mode="before")
    @classmethod
    def unwrap_author(cls, v: Any) -> Any:
        return _coerce_reference(v)


class MessageUpdate(BaseModel):
    """
    What:  Body of PUT /messages/{id}; every field optional.

    Only fields present in the request are applied (`exclude_unset`), so
    PUT {"title": "x"} leaves body and author untouched. `author: null`
    detaches the message from its author. Unknown fields are rejected.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    body: Optional[str] = Field(default=None)
    author: Optional[uuid.UUID] = Field(default=None)

    model_config = {"extra": "forbid"}

    @field_validator("author", mode="before")
    @classmethod
    def unwrap_author(cls, v: Any) -> Any:
        return _coerce_reference(v)

    @field_validator("title", "body")
    @classmethod
    def reject_null(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class MessageResponse(BaseModel):
    """Full representation of a message document."""
    id: uuid.UUID = Field(
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="_id",
        description="Message id",
    )
    title: str
    body: str
    author: Optional[uuid.UUID] = Field(default=None, description="Authoring user id")
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, message) -> "MessageResponse":
        return cls(
            id=message.id,
            title=message.title,
            body=message.body,
            author=message.author_id,
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


class MessageUpdateResponse(BaseModel):
    """Returned by PUT: the re-read message wrapped under `message`."""
    message: MessageResponse


class MessageDeleteResponse(BaseModel):
    """Returned by DELETE: a confirmation plus the id that was removed."""
    message: str = Field(default="Message has been deleted")
    id: uuid.UUID = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="_id")


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "message with ID '...' was not found",
            "request_id": "1f0c9a2b"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
