"""Domain entities."""

from threadwise.domain.entities.chat_message import (
    Attachment,
    ChatMessage,
    SentMessage,
    TriggerMessage,
)
from threadwise.domain.entities.event import Event, EventType, MessageEvent
from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stored_message import StoredMessage
from threadwise.domain.entities.stream import StreamChunk, StreamState

__all__ = [
    "Attachment",
    "ChatMessage",
    "Event",
    "EventType",
    "HistoryItem",
    "MessageEvent",
    "SentMessage",
    "StoredMessage",
    "StreamChunk",
    "StreamState",
    "TriggerMessage",
]
