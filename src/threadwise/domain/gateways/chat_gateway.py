"""Chat platform gateway protocols."""

from contextlib import AbstractAsyncContextManager
from typing import Protocol

from threadwise.domain.entities.chat_message import ChatMessage, SentMessage


class ReplySink(Protocol):
    """Destination of one outbound reply.

    Raises DeliveryTransportError when the platform rejects a call.
    """

    async def send(self, content: str) -> SentMessage:
        """Create the outbound message."""
        ...

    async def edit(self, message_id: str, content: str) -> SentMessage:
        """Replace the content of a previously sent message."""
        ...


class ChatGateway(Protocol):
    """Operations the bot performs against the chat platform."""

    async def fetch_message(self, channel_id: str, message_id: str) -> ChatMessage:
        """Fetch a message live from the platform.

        Raises:
            UpstreamFetchError: If the message cannot be fetched.
        """
        ...

    async def send_message(
        self, channel_id: str, content: str, reply_to: str | None = None
    ) -> SentMessage:
        """Send a new message, optionally as a reply.

        Raises:
            DeliveryTransportError: If the platform rejects the message.
        """
        ...

    async def edit_message(
        self, channel_id: str, message_id: str, content: str
    ) -> SentMessage:
        """Edit a message sent by the bot.

        Raises:
            DeliveryTransportError: If the platform rejects the edit.
        """
        ...

    async def add_reaction(self, channel_id: str, message_id: str, emoji: str) -> None:
        """React to a message. Failures are ignored by callers."""
        ...

    def typing(self, channel_id: str) -> AbstractAsyncContextManager[None]:
        """Show a typing indicator while the context is active."""
        ...

    def reply_sink(
        self, channel_id: str, trigger_id: str, as_reply: bool
    ) -> ReplySink:
        """Bind a sink for the reply to ``trigger_id``."""
        ...
