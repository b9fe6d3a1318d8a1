"""Discord gateway: inbound intake and outbound chat operations."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import discord
from structlog.stdlib import BoundLogger

from threadwise.config.models import DiscordConfig
from threadwise.domain.entities.chat_message import ChatMessage, SentMessage
from threadwise.domain.entities.event import MessageEvent
from threadwise.domain.errors import DeliveryTransportError, UpstreamFetchError
from threadwise.infrastructure.discord.converters import (
    to_chat_message,
    to_sent_message,
    to_trigger_message,
)
from threadwise.infrastructure.event_queue import EventQueue


class DiscordGateway(discord.Client):
    """discord.py client that feeds the intake queue and talks back.

    Inbound messages from the bot itself are ignored, as are direct
    messages unless ``allow_dm`` is set. Everything else is queued without
    blocking; when the queue is full the message is dropped.

    Args:
        config: Discord configuration.
        event_queue: Intake queue for trigger events.
        logger: Structured logger.
    """

    def __init__(
        self,
        config: DiscordConfig,
        event_queue: EventQueue,
        logger: BoundLogger,
    ) -> None:
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(intents=intents)
        self._config = config
        self._event_queue = event_queue
        self._logger = logger

    async def on_ready(self) -> None:
        self._logger.info("Connected to Discord", user=str(self.user))

    async def on_message(self, message: discord.Message) -> None:
        self.handle_message(message)

    async def on_raw_reaction_add(self, payload: discord.RawReactionActionEvent) -> None:
        await self.handle_reaction(payload)

    def handle_message(self, message: discord.Message) -> bool:
        """Filter an inbound message and enqueue it.

        Args:
            message: The message received from the gateway.

        Returns:
            True if the message was queued.
        """
        if str(message.author.id) == self._config.bot_id:
            return False

        if message.guild is None and not self._config.allow_dm:
            return False

        event = MessageEvent(message=to_trigger_message(message))
        if not self._event_queue.enqueue_nowait(event):
            self._logger.warning(
                "Message not enqueued",
                message_id=str(message.id),
                pending=self._event_queue.pending_count,
                capacity=self._event_queue.capacity,
            )
            return False

        self._logger.debug(
            "Message enqueued", event_id=event.id, message_id=str(message.id)
        )
        return True

    async def handle_reaction(self, payload: discord.RawReactionActionEvent) -> bool:
        """Delete a bot message when it receives the bonk emoji.

        Only the superuser may bonk unless ``bonk_from_anyone`` is set, and
        only messages authored by the bot are deleted.

        Returns:
            True if the message was deleted.
        """
        emoji_name = self._config.bonk_emoji_name
        if not emoji_name or payload.emoji.name != emoji_name:
            return False

        user_id = str(payload.user_id)
        if not self._config.bonk_from_anyone and user_id != self._config.superuser_id:
            return False

        if str(payload.message_author_id) != self._config.bot_id:
            return False

        self._logger.info(
            "Got bonk, removing message",
            message_id=str(payload.message_id),
            user_id=user_id,
        )
        return await self.delete_message(
            str(payload.channel_id), str(payload.message_id)
        )

    async def _lookup_channel(self, channel_id: str) -> Any:
        channel = self.get_channel(int(channel_id))
        if channel is None:
            channel = await self.fetch_channel(int(channel_id))
        return channel

    async def fetch_message(self, channel_id: str, message_id: str) -> ChatMessage:
        """Fetch a message live from Discord.

        Raises:
            UpstreamFetchError: If the channel or message cannot be fetched.
        """
        try:
            channel = await self._lookup_channel(channel_id)
            message = await channel.fetch_message(int(message_id))
        except (discord.DiscordException, ValueError) as e:
            raise UpstreamFetchError(
                f"Failed to fetch message {message_id} in {channel_id}: {e}"
            ) from e
        return to_chat_message(message)

    async def send_message(
        self, channel_id: str, content: str, reply_to: str | None = None
    ) -> SentMessage:
        """Send a message, as a reply to ``reply_to`` when given.

        Raises:
            DeliveryTransportError: If Discord rejects the message.
        """
        kwargs: dict[str, Any] = {}
        if reply_to is not None:
            kwargs["reference"] = discord.MessageReference(
                message_id=int(reply_to),
                channel_id=int(channel_id),
                fail_if_not_exists=False,
            )
        try:
            channel = await self._lookup_channel(channel_id)
            sent = await channel.send(content, **kwargs)
        except discord.DiscordException as e:
            raise DeliveryTransportError(f"Failed to send message: {e}") from e
        return to_sent_message(sent)

    async def edit_message(
        self, channel_id: str, message_id: str, content: str
    ) -> SentMessage:
        """Edit a message previously sent by the bot.

        Raises:
            DeliveryTransportError: If Discord rejects the edit.
        """
        try:
            channel = await self._lookup_channel(channel_id)
            edited = await channel.get_partial_message(int(message_id)).edit(
                content=content
            )
        except discord.DiscordException as e:
            raise DeliveryTransportError(
                f"Failed to edit message {message_id}: {e}"
            ) from e
        return to_sent_message(edited)

    async def add_reaction(self, channel_id: str, message_id: str, emoji: str) -> None:
        try:
            channel = await self._lookup_channel(channel_id)
            await channel.get_partial_message(int(message_id)).add_reaction(emoji)
        except discord.DiscordException as e:
            self._logger.warning(
                "Failed to add reaction", message_id=message_id, error=str(e)
            )

    async def delete_message(self, channel_id: str, message_id: str) -> bool:
        try:
            channel = await self._lookup_channel(channel_id)
            await channel.get_partial_message(int(message_id)).delete()
        except discord.DiscordException as e:
            self._logger.error(
                "Error deleting message", message_id=message_id, error=str(e)
            )
            return False
        return True

    @asynccontextmanager
    async def typing(self, channel_id: str) -> AsyncIterator[None]:
        """Show the typing indicator while the block runs."""
        try:
            channel = await self._lookup_channel(channel_id)
        except discord.DiscordException as e:
            self._logger.warning("Typing indicator unavailable", error=str(e))
            yield
            return

        async with channel.typing():
            yield

    def reply_sink(
        self, channel_id: str, trigger_id: str, as_reply: bool
    ) -> "DiscordReplySink":
        return DiscordReplySink(
            gateway=self,
            channel_id=channel_id,
            reply_to=trigger_id if as_reply else None,
        )


class DiscordReplySink:
    """ReplySink bound to one channel and, for replies, one trigger."""

    def __init__(
        self, gateway: DiscordGateway, channel_id: str, reply_to: str | None
    ) -> None:
        self._gateway = gateway
        self._channel_id = channel_id
        self._reply_to = reply_to

    async def send(self, content: str) -> SentMessage:
        return await self._gateway.send_message(
            self._channel_id, content, reply_to=self._reply_to
        )

    async def edit(self, message_id: str, content: str) -> SentMessage:
        return await self._gateway.edit_message(self._channel_id, message_id, content)
