"""Infrastructure layer."""

from threadwise.infrastructure.event_queue import EventQueue
from threadwise.infrastructure.persistence import Database, SqliteMessageStore

__all__ = ["Database", "EventQueue", "SqliteMessageStore"]
