"""
Postbox Backend — Message Service
===================================

What:  CRUD over the messages table plus upkeep of each author's message list.
How:   Each method runs a short, strictly sequential chain of awaited store
       calls on the request's session and commits before returning, so the
       response is only built for data that is saved. If any step raises
       (commit included), the session dependency rolls back and the message
       write and the author write land together or not at all.
Who:   Called by the /messages route handlers.

Operation Flow:
    create:  [check id free] → [lock author] → insert message → flush → link → commit
    update:  load message → [lock old+new authors] → relink → apply → commit → re-read
    delete:  load message → [lock author] → delete message → flush → unlink → commit
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postbox.exceptions import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    PostboxError,
    ValidationError,
)
from postbox.models.message import Message
from postbox.schemas.message import (
    MessageCreate,
    MessageDeleteResponse,
    MessageResponse,
    MessageUpdate,
)
from postbox.services import backrefs

logger = logging.getLogger(__name__)


class MessageService:
    """
    Business logic for message operations.

    Error Handling Strategy:
        Missing rows become NotFoundError, unknown authors ValidationError,
        id clashes ConflictError. Any other SQLAlchemy failure is logged and
        wrapped in DatabaseError so driver details never reach the client.
    """

    async def list_messages(self, db: AsyncSession) -> List[MessageResponse]:
        """Every message, in the store's default order."""
        try:
            result = await db.execute(select(Message))
            messages = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Database error listing messages: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve messages. Please try again.",
                context={"error_type": type(e).__name__},
            )
        return [MessageResponse.from_model(message) for message in messages]

    async def get_message(self, db: AsyncSession, message_id: uuid.UUID) -> MessageResponse:
        """
        Retrieve a single message by id.

        Raises:
            NotFoundError: No message with that id (→ 404)
            DatabaseError: Query execution failed (→ 500)
        """
        message = await self._load(db, message_id)
        return MessageResponse.from_model(message)

    async def create_message(self, db: AsyncSession, payload: MessageCreate) -> MessageResponse:
        """
        Persist a new message and prepend it to its author's list.

        The author is resolved (and locked) before anything is written, so
        an unknown author leaves the store untouched.

        Raises:
            ConflictError:   payload.id already belongs to a message (→ 409)
            ValidationError: payload.author is not an existing user (→ 400)
            DatabaseError:   any other store failure (→ 500)
        """
        try:
            if payload.id is not None:
                existing = await db.execute(select(Message.id).where(Message.id == payload.id))
                if existing.scalar_one_or_none() is not None:
                    raise ConflictError(
                        message=f"message with ID '{payload.id}' already exists",
                        context={"resource": "message", "resource_id": str(payload.id)},
                    )

            author = None
            if payload.author is not None:
                author = await backrefs.lock_author(db, payload.author)
                if author is None:
                    raise ValidationError(
                        message=f"Author '{payload.author}' does not exist",
                        field="author",
                    )

            now = datetime.now(timezone.utc)
            message = Message(
                id=payload.id or uuid.uuid4(),
                title=payload.title,
                body=payload.body,
                author_id=payload.author,
                created_at=now,
                updated_at=now,
            )
            db.add(message)
            # Insert the message before the user row references its id
            await db.flush()

            if author is not None:
                backrefs.link_message(author, message.id)
                await db.flush()

            await db.commit()

            logger.info("Message %s created (author=%s)", message.id, message.author_id)
            return MessageResponse.from_model(message)

        except PostboxError:
            raise
        except IntegrityError as e:
            # A concurrent insert won the race for the same id
            logger.warning("Integrity error creating message: %s", str(e))
            raise ConflictError(
                message="A message with this ID already exists",
                context={"error_type": type(e).__name__},
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating message: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the message. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def update_message(
        self,
        db: AsyncSession,
        message_id: uuid.UUID,
        payload: MessageUpdate,
    ) -> MessageResponse:
        """
        Apply the supplied fields, then re-read and return the message.

        Fields absent from the request are left as they are. When the
        author changes, the id moves from the old author's list to the
        front of the new author's list.

        Raises:
            NotFoundError:   no message with that id (→ 404)
            ValidationError: the new author does not exist (→ 400)
            DatabaseError:   any other store failure (→ 500)
        """
        changes = payload.model_dump(exclude_unset=True)

        try:
            message = await self._load(db, message_id)

            if "author" in changes and changes["author"] != message.author_id:
                await self._reassign_author(db, message, changes["author"])

            if "title" in changes:
                message.title = changes["title"]
            if "body" in changes:
                message.body = changes["body"]
            if "author" in changes:
                message.author_id = changes["author"]
            message.updated_at = datetime.now(timezone.utc)

            await db.commit()
            await db.refresh(message)

            logger.info("Message %s updated: %s", message.id, sorted(changes))
            return MessageResponse.from_model(message)

        except PostboxError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error updating message %s: %s", message_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not update the message. Please try again.",
                context={"message_id": str(message_id)},
            )

    async def delete_message(
        self, db: AsyncSession, message_id: uuid.UUID
    ) -> MessageDeleteResponse:
        """
        Remove a message and drop it from its author's list.

        If the author row is already gone there is no list to repair; the
        message is still deleted and the skip is logged.

        Raises:
            NotFoundError: no message with that id (→ 404)
            DatabaseError: any other store failure (→ 500)
        """
        try:
            message = await self._load(db, message_id)

            author = None
            if message.author_id is not None:
                author = await backrefs.lock_author(db, message.author_id)
                if author is None:
                    logger.warning(
                        "Author %s of message %s no longer exists; skipping list cleanup",
                        message.author_id,
                        message_id,
                    )

            await db.delete(message)
            await db.flush()

            if author is not None and not backrefs.unlink_message(author, message_id):
                logger.warning(
                    "Message %s was missing from author %s's message list",
                    message_id,
                    author.id,
                )

            await db.commit()

            logger.info("Message %s deleted", message_id)
            return MessageDeleteResponse(id=message_id)

        except PostboxError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error deleting message %s: %s", message_id, str(e), exc_info=True)
            raise DatabaseError(
                message="Could not delete the message. Please try again.",
                context={"message_id": str(message_id)},
            )

    # ── Helpers ───────────────────────────────────────────────────────────

    async def _load(self, db: AsyncSession, message_id: uuid.UUID) -> Message:
        try:
            result = await db.execute(select(Message).where(Message.id == message_id))
            message = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching message %s: %s", message_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the message. Please try again.",
                context={"message_id": str(message_id)},
            )
        if message is None:
            raise NotFoundError(resource="message", resource_id=str(message_id))
        return message

    async def _reassign_author(self, db: AsyncSession, message: Message, new_author_id) -> None:
        wanted = [i for i in (message.author_id, new_author_id) if i is not None]
        authors = await backrefs.lock_authors(db, wanted)

        if new_author_id is not None and new_author_id not in authors:
            raise ValidationError(
                message=f"Author '{new_author_id}' does not exist",
                field="author",
            )

        previous = authors.get(message.author_id) if message.author_id else None
        if previous is not None:
            backrefs.unlink_message(previous, message.id)
        if new_author_id is not None:
            backrefs.link_message(authors[new_author_id], message.id)


# Stateless; one instance serves every request
message_service = MessageService()
