"""Platform-neutral chat message models."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field

from threadwise.domain.entities.stored_message import StoredMessage


class Attachment(BaseModel):
    """File attached to a chat message."""

    model_config = ConfigDict(frozen=True)

    url: str
    content_type: str | None = None
    filename: str | None = None


class ChatMessage(BaseModel):
    """A message observed on the chat platform.

    Attributes:
        id: Platform-unique message id.
        channel_id: Channel the message was posted in.
        author_id: Author's user id.
        content: Raw message text.
        attachments: Attachments in platform order.
        referenced_id: Id of the message this one replies to, if any.
        created_at: When the platform created the message.
    """

    id: str
    channel_id: str
    author_id: str
    content: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    referenced_id: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self, bot_id: str) -> StoredMessage:
        """Build the persisted record for this message.

        Args:
            bot_id: The bot's own user id, used to flag bot messages.

        Returns:
            A StoredMessage ready for upsert.
        """
        return StoredMessage(
            id=self.id,
            channel_id=self.channel_id,
            author_id=self.author_id,
            content=self.content,
            is_bot_message=self.author_id == bot_id,
            attachments=[a.model_dump() for a in self.attachments],
            referenced_id=self.referenced_id,
            created_at=self.created_at,
        )


class TriggerMessage(ChatMessage):
    """An inbound message that may address the bot.

    Attributes:
        guild_id: Guild (server) id, None for direct messages.
        mentions: User ids mentioned in the message.
        referenced_message: The parent message when the platform resolved it.
    """

    guild_id: str | None = None
    mentions: list[str] = Field(default_factory=list)
    referenced_message: ChatMessage | None = None

    @property
    def is_direct(self) -> bool:
        """Return True for one-on-one conversations."""
        return self.guild_id is None


class SentMessage(BaseModel):
    """Result of an outbound send or edit."""

    id: str
    channel_id: str
    content: str
