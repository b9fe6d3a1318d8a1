"""History item projection of a stored message."""

from pydantic import BaseModel, ConfigDict, Field

from threadwise.domain.entities.chat_message import Attachment
from threadwise.domain.entities.stored_message import StoredMessage


class HistoryItem(BaseModel):
    """Read-only view of one message in a conversation history.

    Sequences of history items are ordered oldest-first and rebuilt for
    every request.
    """

    model_config = ConfigDict(frozen=True)

    content: str
    is_bot_message: bool = False
    attachments: list[Attachment] = Field(default_factory=list)
    id: str | None = None
    referenced_id: str | None = None

    @classmethod
    def from_record(cls, record: StoredMessage) -> "HistoryItem":
        """Project a stored message into a history item."""
        return cls(
            content=record.content,
            is_bot_message=record.is_bot_message,
            attachments=[Attachment(**a) for a in record.attachments or []],
            id=record.id,
            referenced_id=record.referenced_id,
        )
