"""
Postbox Backend — User Back-reference Maintenance
===================================================

What:  Keeps `User.messages` consistent with the messages table.
How:   Message writes first lock the author row(s), then call
       `link_message` / `unlink_message` on the loaded User. The session
       flush that follows persists both the message and the user change in
       the same transaction.
Who:   MessageService.create_message / update_message / delete_message.

Locking:
    Authors are loaded with SELECT ... FOR UPDATE. On PostgreSQL two
    requests touching the same user serialize on that row lock instead of
    both reading the old list and the later commit silently discarding the
    earlier one. SQLite has no row locks and ignores the clause.
    When several users are locked at once (author reassignment) they are
    locked in id order so two opposite reassignments cannot deadlock.
"""

import logging
import uuid
from typing import Dict, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postbox.models.user import User

logger = logging.getLogger(__name__)


async def lock_author(db: AsyncSession, author_id: uuid.UUID) -> Optional[User]:
    """Loads a user for update; None if no such user exists."""
    result = await db.execute(
        select(User).where(User.id == author_id).with_for_update()
    )
    return result.scalar_one_or_none()


async def lock_authors(
    db: AsyncSession, author_ids: Iterable[uuid.UUID]
) -> Dict[uuid.UUID, User]:
    """Loads several users for update, acquiring row locks in id order."""
    ids = set(author_ids)
    if not ids:
        return {}
    # Row locks are taken in ORDER BY order
    result = await db.execute(
        select(User).where(User.id.in_(ids)).order_by(User.id).with_for_update()
    )
    return {user.id: user for user in result.scalars().all()}


def link_message(user: User, message_id: uuid.UUID) -> None:
    """
    Puts `message_id` at the front of the user's list.

    An existing entry for the same id is dropped first, so the id ends up
    in the list exactly once no matter how often this runs.
    """
    key = str(message_id)
    current = [value for value in (user.messages or []) if value != key]
    # Assign a new list: the JSON column only notices attribute replacement
    user.messages = [key] + current
    logger.debug("Linked message %s to user %s", key, user.id)


def unlink_message(user: User, message_id: uuid.UUID) -> bool:
    """
    Removes `message_id` from the user's list by linear search.

    Returns:
        True if an entry was removed, False if the id was not in the list.
    """
    key = str(message_id)
    current = list(user.messages or [])
    for index, value in enumerate(current):
        if value == key:
            del current[index]
            user.messages = current
            logger.debug("Unlinked message %s from user %s", key, user.id)
            return True
    return False
