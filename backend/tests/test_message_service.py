"""
Postbox Backend — Message Service Unit Tests
==============================================

What:  Tests for MessageService (list, get, create, update, delete).
How:   Uses a mock DB session; the store calls each method makes are fed
       from `execute` side effects, so no database is needed.

What we test:
    ✅ Create links the new message to the front of its author's list
    ✅ Unknown author rejected before anything is written
    ✅ Update applies only supplied fields; author change moves the link
    ✅ Delete unlinks from the author; missing author doesn't block delete
    ✅ Writes are committed before the result is returned
    ✅ SQLAlchemy failures become DatabaseError
"""

import uuid
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from conftest import scalar_result, scalars_result
from postbox.exceptions import ConflictError, DatabaseError, NotFoundError, ValidationError
from postbox.schemas.message import MessageCreate, MessageUpdate
from postbox.services.message_service import MessageService


class TestMessageServiceRead:
    """Tests for list_messages and get_message."""

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_list_messages_returns_every_row(self, mock_db_session, make_message):
        rows = [make_message(title=f"m{i}") for i in range(3)]
        mock_db_session.execute.return_value = scalars_result(rows)

        result = await self.service.list_messages(mock_db_session)

        assert [m.title for m in result] == ["m0", "m1", "m2"]

    @pytest.mark.asyncio
    async def test_list_messages_empty(self, mock_db_session):
        mock_db_session.execute.return_value = scalars_result([])

        assert await self.service.list_messages(mock_db_session) == []

    @pytest.mark.asyncio
    async def test_get_message_found(self, mock_db_session, make_message):
        message = make_message()
        mock_db_session.execute.return_value = scalar_result(message)

        result = await self.service.get_message(mock_db_session, message.id)

        assert result.id == message.id
        assert result.title == "test message"
        assert result.body == "test body"

    @pytest.mark.asyncio
    async def test_get_message_not_found(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.get_message(mock_db_session, uuid.uuid4())

    @pytest.mark.asyncio
    async def test_database_failure_is_wrapped(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=SQLAlchemyError("connection reset"))

        with pytest.raises(DatabaseError):
            await self.service.list_messages(mock_db_session)


class TestMessageServiceCreate:
    """Tests for create_message and the author link."""

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_create_without_author(self, mock_db_session):
        payload = MessageCreate(title="t", body="b")

        result = await self.service.create_message(mock_db_session, payload)

        assert result.title == "t"
        assert result.author is None
        mock_db_session.add.assert_called_once()
        # No id supplied and no author: nothing to look up
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_prepends_to_author_list(self, mock_db_session, make_user):
        older = str(uuid.uuid4())
        author = make_user(messages=[older])
        mock_db_session.execute.return_value = scalar_result(author)

        result = await self.service.create_message(
            mock_db_session, MessageCreate(title="t", body="b", author=author.id)
        )

        assert result.author == author.id
        assert author.messages == [str(result.id), older]
        assert author.messages.count(str(result.id)) == 1

    @pytest.mark.asyncio
    async def test_create_accepts_embedded_author_document(self, mock_db_session, make_user):
        author = make_user()
        mock_db_session.execute.return_value = scalar_result(author)

        payload = MessageCreate(
            title="t", body="b", author={"_id": str(author.id), "username": "myuser"}
        )
        result = await self.service.create_message(mock_db_session, payload)

        assert result.author == author.id
        assert author.messages == [str(result.id)]

    @pytest.mark.asyncio
    async def test_create_unknown_author_writes_nothing(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(ValidationError) as exc_info:
            await self.service.create_message(
                mock_db_session, MessageCreate(title="t", body="b", author=uuid.uuid4())
            )

        assert exc_info.value.field == "author"
        mock_db_session.add.assert_not_called()
        mock_db_session.flush.assert_not_awaited()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_create_with_taken_id_conflicts(self, mock_db_session):
        taken = uuid.uuid4()
        mock_db_session.execute.return_value = scalar_result(taken)

        with pytest.raises(ConflictError):
            await self.service.create_message(
                mock_db_session, MessageCreate(_id=str(taken), title="t", body="b")
            )
        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_uses_supplied_id(self, mock_db_session):
        wanted = uuid.uuid4()
        mock_db_session.execute.return_value = scalar_result(None)

        result = await self.service.create_message(
            mock_db_session, MessageCreate(_id=str(wanted), title="t", body="b")
        )

        assert result.id == wanted

    @pytest.mark.asyncio
    async def test_create_integrity_error_is_conflict(self, mock_db_session):
        mock_db_session.flush = AsyncMock(
            side_effect=IntegrityError("INSERT", {}, Exception("duplicate key"))
        )

        with pytest.raises(ConflictError):
            await self.service.create_message(mock_db_session, MessageCreate(title="t", body="b"))

    @pytest.mark.asyncio
    async def test_create_commits_before_returning(self, mock_db_session, make_user):
        author = make_user()
        mock_db_session.execute.return_value = scalar_result(author)

        await self.service.create_message(
            mock_db_session, MessageCreate(title="t", body="b", author=author.id)
        )

        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_commit_failure_is_database_error(self, mock_db_session):
        mock_db_session.commit = AsyncMock(
            side_effect=OperationalError("COMMIT", {}, Exception("disk I/O error"))
        )

        with pytest.raises(DatabaseError):
            await self.service.create_message(mock_db_session, MessageCreate(title="t", body="b"))


class TestMessageServiceUpdate:
    """Tests for partial updates and author reassignment."""

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_update_title_only(self, mock_db_session, make_message):
        author_id = uuid.uuid4()
        message = make_message(author_id=author_id)
        mock_db_session.execute.return_value = scalar_result(message)

        result = await self.service.update_message(
            mock_db_session, message.id, MessageUpdate(title="another message")
        )

        assert result.title == "another message"
        assert result.body == "test body"
        assert result.author == author_id
        mock_db_session.refresh.assert_awaited_once_with(message)

    @pytest.mark.asyncio
    async def test_update_missing_message(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.update_message(
                mock_db_session, uuid.uuid4(), MessageUpdate(title="x")
            )

    @pytest.mark.asyncio
    async def test_update_author_moves_back_reference(
        self, mock_db_session, make_message, make_user
    ):
        old_author = make_user(username="old")
        new_author = make_user(username="new", messages=["other"])
        message = make_message(author_id=old_author.id)
        old_author.messages = [str(message.id)]

        mock_db_session.execute = AsyncMock(side_effect=[
            scalar_result(message),
            scalars_result([old_author, new_author]),
        ])

        result = await self.service.update_message(
            mock_db_session, message.id, MessageUpdate(author=new_author.id)
        )

        assert result.author == new_author.id
        assert old_author.messages == []
        assert new_author.messages == [str(message.id), "other"]

    @pytest.mark.asyncio
    async def test_update_to_unknown_author_rejected(
        self, mock_db_session, make_message, make_user
    ):
        old_author = make_user()
        message = make_message(author_id=old_author.id)
        old_author.messages = [str(message.id)]

        mock_db_session.execute = AsyncMock(side_effect=[
            scalar_result(message),
            scalars_result([old_author]),
        ])

        with pytest.raises(ValidationError):
            await self.service.update_message(
                mock_db_session, message.id, MessageUpdate(author=uuid.uuid4())
            )

        assert old_author.messages == [str(message.id)]
        assert message.author_id == old_author.id

    @pytest.mark.asyncio
    async def test_update_author_to_null_detaches(
        self, mock_db_session, make_message, make_user
    ):
        author = make_user()
        message = make_message(author_id=author.id)
        author.messages = [str(message.id)]

        mock_db_session.execute = AsyncMock(side_effect=[
            scalar_result(message),
            scalars_result([author]),
        ])

        result = await self.service.update_message(
            mock_db_session, message.id, MessageUpdate(author=None)
        )

        assert result.author is None
        assert author.messages == []


class TestMessageServiceDelete:
    """Tests for delete_message and the author unlink."""

    def setup_method(self):
        self.service = MessageService()

    @pytest.mark.asyncio
    async def test_delete_unlinks_from_author(self, mock_db_session, make_message, make_user):
        author = make_user()
        message = make_message(author_id=author.id)
        author.messages = ["newer", str(message.id), "older"]

        mock_db_session.execute = AsyncMock(side_effect=[
            scalar_result(message),
            scalar_result(author),
        ])

        result = await self.service.delete_message(mock_db_session, message.id)

        assert result.message == "Message has been deleted"
        assert result.id == message.id
        assert author.messages == ["newer", "older"]
        mock_db_session.delete.assert_awaited_once_with(message)
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_with_vanished_author_still_deletes(self, mock_db_session, make_message):
        message = make_message(author_id=uuid.uuid4())

        mock_db_session.execute = AsyncMock(side_effect=[
            scalar_result(message),
            scalar_result(None),
        ])

        result = await self.service.delete_message(mock_db_session, message.id)

        assert result.id == message.id
        mock_db_session.delete.assert_awaited_once_with(message)

    @pytest.mark.asyncio
    async def test_delete_authorless_message(self, mock_db_session, make_message):
        message = make_message()
        mock_db_session.execute.return_value = scalar_result(message)

        await self.service.delete_message(mock_db_session, message.id)

        # Only the message lookup; no author to lock
        assert mock_db_session.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_delete_missing_message(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)

        with pytest.raises(NotFoundError):
            await self.service.delete_message(mock_db_session, uuid.uuid4())
        mock_db_session.delete.assert_not_awaited()
