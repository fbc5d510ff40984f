"""
Postbox Backend — User Schemas
================================

What:  Request/response models for the user endpoints.
Why:   The ORM row holds `password_hash`; the response model simply has no
       field for it, so it cannot leak through serialization.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import AliasChoices, BaseModel, Field


class UserCreate(BaseModel):
    """Body of POST /users. The password is hashed before it is stored."""
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, max_length=128)


class UserResponse(BaseModel):
    """Public view of a user."""
    id: uuid.UUID = Field(validation_alias=AliasChoices("id", "_id"), serialization_alias="_id")
    username: str
    messages: List[uuid.UUID] = Field(
        default_factory=list,
        description="Authored message ids, most recent first",
    )
    created_at: datetime

    @classmethod
    def from_model(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            messages=list(user.messages or []),
            created_at=user.created_at,
        )
