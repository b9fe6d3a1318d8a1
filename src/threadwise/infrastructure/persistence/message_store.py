"""SQLite implementation of MessageStore."""

from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stored_message import StoredMessage
from threadwise.domain.errors import StoreIOError
from threadwise.infrastructure.persistence.database import Database

# Columns replaced on conflict; everything but the primary key
_UPSERT_COLUMNS = (
    "channel_id",
    "author_id",
    "content",
    "is_bot_message",
    "attachments",
    "referenced_id",
    "created_at",
)


class SqliteMessageStore:
    """SQLite implementation of MessageStore.

    Uses SQLModel with async SQLite. Upserts are a single
    ``INSERT ... ON CONFLICT DO UPDATE`` statement, so concurrent writers
    to the same id each replace the whole row and never interleave fields.
    """

    def __init__(self, database: Database) -> None:
        """Initialize the store.

        Args:
            database: Database instance for session management.
        """
        self._database = database

    async def upsert(self, message: StoredMessage) -> None:
        """Insert or overwrite a message by id.

        Args:
            message: The message to save.

        Raises:
            StoreIOError: If the write fails.
        """
        values = {
            "id": message.id,
            "channel_id": message.channel_id,
            "author_id": message.author_id,
            "content": message.content,
            "is_bot_message": message.is_bot_message,
            "attachments": list(message.attachments or []),
            "referenced_id": message.referenced_id,
            "created_at": message.created_at,
        }
        statement = insert(StoredMessage).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=["id"],
            set_={column: statement.excluded[column] for column in _UPSERT_COLUMNS},
        )
        try:
            async with self._database.get_session() as session:
                await session.execute(statement)
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to upsert message {message.id}: {e}") from e

    async def get(self, message_id: str) -> StoredMessage | None:
        """Get a message by id.

        Raises:
            StoreIOError: If the read fails.
        """
        try:
            async with self._database.get_session() as session:
                return await session.get(StoredMessage, message_id)
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to read message {message_id}: {e}") from e

    async def get_chain_from(self, message_id: str) -> list[HistoryItem]:
        """Get the ancestors of a message, oldest first.

        The walk stops at a missing record, a record without reference, or
        an id that was already visited. Cycles truncate the chain quietly.

        Args:
            message_id: The message whose ancestors are wanted.

        Returns:
            Ancestor history items, oldest first.

        Raises:
            StoreIOError: If a read fails.
        """
        visited = {message_id}
        chain: list[HistoryItem] = []

        try:
            async with self._database.get_session() as session:
                start = await session.get(StoredMessage, message_id)
                current_id = start.referenced_id if start else None

                while current_id and current_id not in visited:
                    visited.add(current_id)
                    record = await session.get(StoredMessage, current_id)
                    if record is None:
                        break
                    chain.append(HistoryItem.from_record(record))
                    current_id = record.referenced_id
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to walk chain from {message_id}: {e}") from e

        chain.reverse()
        return chain

    async def get_recent_window(
        self, channel_id: str, limit: int
    ) -> list[StoredMessage]:
        """Get the latest messages of a channel, newest first.

        Args:
            channel_id: The channel id.
            limit: Maximum number of messages to return.

        Returns:
            List of messages.

        Raises:
            StoreIOError: If the read fails.
        """
        statement = (
            select(StoredMessage)
            .where(StoredMessage.channel_id == channel_id)
            .order_by(StoredMessage.created_at.desc())  # type: ignore[attr-defined]
            .limit(limit)
        )
        try:
            async with self._database.get_session() as session:
                result = await session.execute(statement)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreIOError(f"Failed to read window of {channel_id}: {e}") from e
