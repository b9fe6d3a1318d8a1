"""Persistence infrastructure."""

from threadwise.infrastructure.persistence.database import Database
from threadwise.infrastructure.persistence.message_store import SqliteMessageStore

__all__ = ["Database", "SqliteMessageStore"]
