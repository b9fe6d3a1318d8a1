"""Event entity for the intake queue."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

import ulid
from pydantic import BaseModel, Field

from threadwise.domain.entities.chat_message import TriggerMessage


class EventType(str, Enum):
    """Event type enumeration."""

    MESSAGE = "message"


class Event(BaseModel):
    """Base class for all events."""

    id: str = Field(default_factory=lambda: str(ulid.new()))
    type: EventType
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_identity_key(self) -> str:
        """Return the identity key for deduplication."""
        return self.id


class MessageEvent(Event):
    """A chat message that may require a reply."""

    type: Literal[EventType.MESSAGE] = EventType.MESSAGE
    source: Literal["discord"] = "discord"
    message: TriggerMessage

    def get_identity_key(self) -> str:
        """Return the platform message id.

        A gateway that redelivers the same message produces the same key,
        so the queue keeps only one pending copy.
        """
        return f"message:{self.message.id}"
