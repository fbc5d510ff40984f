"""
Postbox Backend — User SQLAlchemy Model
=========================================

What:  ORM model for the `users` table.
How:   `messages` is a JSON array of message id strings, newest first. It is a
       stored back-reference, not derived from the messages table, so the
       services in `postbox.services.backrefs` keep it in sync.

Table Design Rationale:
    - UUID primary key: same identity type as messages
    - username: unique, the only lookup key besides id
    - password_hash: passlib hash string; plaintext passwords are never stored
    - messages: ordered list kept as a document field so order (most recent
      first) is explicit rather than reconstructed from timestamps
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from postbox.database import Base


class User(Base):
    """
    A user and the ordered list of messages they authored.

    Invariant:
        Every message whose author is this user appears exactly once in
        `messages`. Writers must replace the list rather than mutate it in
        place; plain JSON columns do not track in-place mutation.
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    username: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        index=True,
    )

    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Message ids as strings, index 0 is the most recently linked message
    messages: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username='{self.username}', messages={len(self.messages or [])})>"
