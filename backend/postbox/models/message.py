"""
Postbox Backend — Message SQLAlchemy Model
============================================

What:  ORM model for the `messages` table.
Who:   Read and written by MessageService; referenced from `User.messages`.

Table Design Rationale:
    - UUID primary key: clients may supply one on create, otherwise generated
    - title / body: free text; TEXT for body since there is no length rule
    - author_id: nullable (authorless messages are allowed). The FK uses
      ON DELETE SET NULL so removing a user never blocks on its messages
    - created_at / updated_at: UTC, timezone-aware
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from postbox.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Message(Base):
    """
    A message document.

    Lifecycle:
        1. Created by POST /messages (linked into the author's list)
        2. Mutated in place by PUT /messages/{id}
        3. Removed by DELETE /messages/{id} (unlinked from the author's list)
    """

    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    body: Mapped[str] = mapped_column(Text, nullable=False)

    author_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        "author",
        Uuid,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, title='{self.title}', author={self.author_id})>"
