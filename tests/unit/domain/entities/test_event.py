"""Tests for Event entity."""

from datetime import datetime, timedelta, timezone

from threadwise.domain.entities.chat_message import TriggerMessage
from threadwise.domain.entities.event import Event, EventType, MessageEvent

TIMESTAMP_TOLERANCE_SECONDS = 5


def make_trigger(message_id: str = "1001") -> TriggerMessage:
    return TriggerMessage(
        id=message_id, channel_id="200", author_id="300", content="hello", guild_id="1"
    )


class TestMessageEvent:
    """Tests for MessageEvent class."""

    def test_event_id_is_ulid_format(self) -> None:
        """Event ID is auto-generated in ULID format (26 chars)."""
        event = MessageEvent(message=make_trigger())

        assert len(event.id) == 26
        assert event.id.isalnum()

    def test_event_ids_are_unique(self) -> None:
        event1 = MessageEvent(message=make_trigger())
        event2 = MessageEvent(message=make_trigger())

        assert event1.id != event2.id

    def test_created_at_is_auto_set(self) -> None:
        before = datetime.now(timezone.utc)
        event = MessageEvent(message=make_trigger())
        after = datetime.now(timezone.utc)

        assert event.created_at.tzinfo is not None
        assert (
            before - timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
            <= event.created_at
            <= after + timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
        )

    def test_identity_key_is_message_id(self) -> None:
        """Redelivered messages share an identity key."""
        event1 = MessageEvent(message=make_trigger("1001"))
        event2 = MessageEvent(message=make_trigger("1001"))
        other = MessageEvent(message=make_trigger("1002"))

        assert event1.get_identity_key() == "message:1001"
        assert event1.get_identity_key() == event2.get_identity_key()
        assert other.get_identity_key() != event1.get_identity_key()

    def test_type_and_source(self) -> None:
        event = MessageEvent(message=make_trigger())

        assert event.type == EventType.MESSAGE
        assert event.source == "discord"


class TestEvent:
    """Tests for Event base class."""

    def test_identity_key_returns_id(self) -> None:
        event = Event(type=EventType.MESSAGE, source="test")

        assert event.get_identity_key() == event.id

    def test_timestamp_defaults_to_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        event = Event(type=EventType.MESSAGE, source="test")
        after = datetime.now(timezone.utc)

        assert event.timestamp.tzinfo is not None
        assert (
            before - timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
            <= event.timestamp
            <= after + timedelta(seconds=TIMESTAMP_TOLERANCE_SECONDS)
        )
