"""StoredMessage entity for message persistence."""

from datetime import datetime
from typing import Any

from sqlalchemy import Column, Index
from sqlalchemy.types import JSON
from sqlmodel import Field, SQLModel


class StoredMessage(SQLModel, table=True):
    """Message record stored in the database.

    One row per platform message id. Rows are overwritten wholesale on
    upsert, so the latest write wins.

    Attributes:
        id: Platform message id.
        channel_id: Channel id.
        author_id: Author's user id.
        content: Raw message text.
        is_bot_message: Whether the bot authored the message.
        attachments: Attachment descriptors (url, content_type, filename).
        referenced_id: Parent message id for replies.
        created_at: Message creation time.
    """

    __tablename__ = "messages"
    __table_args__ = (Index("idx_messages_channel_created", "channel_id", "created_at"),)

    id: str = Field(primary_key=True)
    channel_id: str = Field(index=True)
    author_id: str
    content: str = ""
    is_bot_message: bool = Field(default=False)
    attachments: list[dict[str, Any]] = Field(
        default_factory=list, sa_column=Column(JSON)
    )
    referenced_id: str | None = Field(default=None, index=True)
    created_at: datetime
