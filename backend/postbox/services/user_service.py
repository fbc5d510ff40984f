"""
Postbox Backend — User Service
================================

What:  Creates and fetches users; hashes and verifies passwords.
Why:   Messages need real authors to link to, and the author's message
       list is what clients read to see the back-references.
How:   passlib's CryptContext does the hashing, so the scheme can be
       changed from configuration and old hashes still verify.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from postbox.config import settings
from postbox.exceptions import ConflictError, DatabaseError, NotFoundError
from postbox.models.user import User
from postbox.schemas.user import UserCreate, UserResponse

logger = logging.getLogger(__name__)


class UserService:
    """User creation and lookup."""

    def __init__(self, hash_scheme: Optional[str] = None):
        self.pwd_context = CryptContext(
            schemes=[hash_scheme or settings.password_hash_scheme],
            deprecated="auto",
        )

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        return self.pwd_context.verify(password, password_hash)

    async def create_user(self, db: AsyncSession, payload: UserCreate) -> UserResponse:
        """
        Store a new user with a hashed password and an empty message list.

        Raises:
            ConflictError: username already taken (→ 409)
            DatabaseError: any other store failure (→ 500)
        """
        try:
            existing = await db.execute(select(User.id).where(User.username == payload.username))
            if existing.scalar_one_or_none() is not None:
                raise ConflictError(
                    message=f"Username '{payload.username}' is already taken",
                    context={"field": "username"},
                )

            user = User(
                id=uuid.uuid4(),
                username=payload.username,
                password_hash=self.hash_password(payload.password),
                messages=[],
                created_at=datetime.now(timezone.utc),
            )
            db.add(user)
            await db.flush()
            await db.commit()
        except ConflictError:
            raise
        except IntegrityError as e:
            logger.warning("Integrity error creating user %s: %s", payload.username, str(e))
            raise ConflictError(
                message=f"Username '{payload.username}' is already taken",
                context={"field": "username"},
            )
        except SQLAlchemyError as e:
            logger.error("Database error creating user: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not create the user. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s created (%s)", user.id, user.username)
        return UserResponse.from_model(user)

    async def get_user(self, db: AsyncSession, user_id: uuid.UUID) -> UserResponse:
        """
        Raises:
            NotFoundError: no user with that id (→ 404)
        """
        try:
            result = await db.execute(select(User).where(User.id == user_id))
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching user %s: %s", user_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the user. Please try again.",
                context={"user_id": str(user_id)},
            )
        if user is None:
            raise NotFoundError(resource="user", resource_id=str(user_id))
        return UserResponse.from_model(user)


user_service = UserService()
