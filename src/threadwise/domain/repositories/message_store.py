"""MessageStore protocol."""

from typing import Protocol

from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stored_message import StoredMessage


class MessageStore(Protocol):
    """Repository protocol for observed chat messages.

    Implementations raise StoreIOError on I/O failure. Callers treat that
    as non-fatal.
    """

    async def upsert(self, message: StoredMessage) -> None:
        """Insert or overwrite a message by id.

        Every column is replaced; two writes to one id never mix fields.

        Args:
            message: The message to save.
        """
        ...

    async def get(self, message_id: str) -> StoredMessage | None:
        """Get a message by id.

        Args:
            message_id: The platform message id.

        Returns:
            The message if found, None otherwise.
        """
        ...

    async def get_chain_from(self, message_id: str) -> list[HistoryItem]:
        """Get the ancestors of a message, oldest first.

        Starts at the parent of ``message_id`` and follows referenced_id
        until a record is missing, has no reference, or repeats an id.

        Args:
            message_id: The message whose ancestors are wanted.

        Returns:
            Ancestor history items, oldest first. Empty if the message is
            unknown or has no parent on record.
        """
        ...

    async def get_recent_window(
        self, channel_id: str, limit: int
    ) -> list[StoredMessage]:
        """Get the latest messages of a channel, newest first.

        Args:
            channel_id: The channel id.
            limit: Maximum number of messages to return.

        Returns:
            List of messages.
        """
        ...
