"""Tests for ContextResolver."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import structlog

from threadwise.application.services.context_resolver import ContextResolver
from threadwise.config.models import ContextConfig, DiscordConfig
from threadwise.domain.entities.chat_message import ChatMessage, TriggerMessage
from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stored_message import StoredMessage
from threadwise.domain.errors import StoreIOError, UpstreamFetchError
from threadwise.infrastructure.persistence.database import Database
from threadwise.infrastructure.persistence.message_store import SqliteMessageStore

BOT_ID = "999"
USER_ID = "300"
CHANNEL_ID = "200"
GUILD_ID = "1"
KEYWORD = "!raw"
BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def msg(
    message_id: str,
    content: str,
    author_id: str = USER_ID,
    referenced_id: str | None = None,
    minute: int = 0,
) -> ChatMessage:
    return ChatMessage(
        id=message_id,
        channel_id=CHANNEL_ID,
        author_id=author_id,
        content=content,
        referenced_id=referenced_id,
        created_at=BASE_TIME + timedelta(minutes=minute),
    )


def trigger_for(
    content: str = "<@999> what next?",
    parent: ChatMessage | None = None,
    referenced_id: str | None = None,
    mention: bool = True,
    guild_id: str | None = GUILD_ID,
) -> TriggerMessage:
    return TriggerMessage(
        id="t",
        channel_id=CHANNEL_ID,
        author_id=USER_ID,
        content=content,
        referenced_id=parent.id if parent else referenced_id,
        created_at=BASE_TIME + timedelta(minutes=30),
        guild_id=guild_id,
        mentions=[BOT_ID] if mention else [],
        referenced_message=parent,
    )


class FakeChat:
    """Live platform stand-in that serves fetch_message from a dict."""

    def __init__(
        self, messages: list[ChatMessage] | None = None, failing: set[str] | None = None
    ) -> None:
        self.messages = {m.id: m for m in messages or []}
        self.failing = failing or set()
        self.fetched: list[str] = []

    async def fetch_message(self, channel_id: str, message_id: str) -> ChatMessage:
        self.fetched.append(message_id)
        if message_id in self.failing or message_id not in self.messages:
            raise UpstreamFetchError(f"cannot fetch {message_id}")
        return self.messages[message_id]


class RecordingStore(SqliteMessageStore):
    """SqliteMessageStore that records upserted ids."""

    def __init__(self, database: Database) -> None:
        super().__init__(database)
        self.upserted: list[str] = []

    async def upsert(self, message: StoredMessage) -> None:
        self.upserted.append(message.id)
        await super().upsert(message)


class BrokenStore:
    """Store whose every call fails."""

    async def upsert(self, message: StoredMessage) -> None:
        raise StoreIOError("disk full")

    async def get(self, message_id: str) -> StoredMessage | None:
        raise StoreIOError("disk full")

    async def get_chain_from(self, message_id: str) -> list[HistoryItem]:
        raise StoreIOError("disk full")

    async def get_recent_window(
        self, channel_id: str, limit: int
    ) -> list[StoredMessage]:
        raise StoreIOError("disk full")


@pytest.fixture
async def store(tmp_path: Path):
    database = Database(f"sqlite+aiosqlite:///{tmp_path / 'messages.db'}")
    await database.initialize()
    yield RecordingStore(database)
    await database.close()


def make_resolver(
    store: object,
    chat: FakeChat,
    dedupe: str = "content",
    **discord_overrides: object,
) -> ContextResolver:
    return ContextResolver(
        store=store,  # type: ignore[arg-type]
        chat=chat,  # type: ignore[arg-type]
        discord_config=DiscordConfig(
            token="token",
            bot_id=BOT_ID,
            override_keyword=KEYWORD,
            **discord_overrides,  # type: ignore[arg-type]
        ),
        context_config=ContextConfig(
            window_size=50, dedupe=dedupe  # type: ignore[arg-type]
        ),
        logger=structlog.get_logger(),
    )


async def seed(store: SqliteMessageStore, *messages: ChatMessage) -> None:
    for message in messages:
        await store.upsert(message.to_record(BOT_ID))


ROOT = msg("root", "how do I bake bread?", minute=0)
M1 = msg("m1", "start with flour", author_id=BOT_ID, referenced_id="root", minute=1)
M2 = msg("m2", "then what?", referenced_id="m1", minute=2)


class TestOrdering:
    """Chain first, oldest first, then window items."""

    async def test_chain_then_window(self, store: RecordingStore) -> None:
        await seed(
            store,
            ROOT,
            M1,
            M2,
            msg("w1", "unrelated chatter", minute=5),
            msg("w2", "more chatter", minute=6),
        )
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.content for item in context.history] == [
            "how do I bake bread?",
            "start with flour",
            "then what?",
            "more chatter",
            "unrelated chatter",
        ]
        assert [item.id for item in context.chain] == ["root", "m1", "m2"]
        assert [item.is_bot_message for item in context.history[:3]] == [
            False,
            True,
            False,
        ]
        assert context.reduced is False

    async def test_store_hit_needs_no_fetch(self, store: RecordingStore) -> None:
        await seed(store, ROOT, M1, M2)
        chat = FakeChat()
        resolver = make_resolver(store, chat)

        await resolver.resolve(trigger_for(parent=M2))

        assert chat.fetched == []

    async def test_trigger_is_stored(self, store: RecordingStore) -> None:
        resolver = make_resolver(store, FakeChat())

        await resolver.resolve(trigger_for())

        stored = await store.get("t")
        assert stored is not None
        assert stored.content == "<@999> what next?"


class TestLiveFallback:
    """Ancestors unknown to the store are fetched and written through."""

    async def test_empty_store_resolves_live(self, store: RecordingStore) -> None:
        chat = FakeChat([ROOT, M1, M2])
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(trigger_for(referenced_id="m2"))

        assert context is not None
        assert [item.id for item in context.history[:3]] == ["root", "m1", "m2"]
        assert chat.fetched == ["m2", "m1", "root"]
        for message_id in ("root", "m1", "m2"):
            assert await store.get(message_id) is not None

    async def test_resolved_parent_not_fetched(self, store: RecordingStore) -> None:
        chat = FakeChat([ROOT, M1])
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.id for item in context.history[:3]] == ["root", "m1", "m2"]
        assert chat.fetched == ["m1", "root"]

    async def test_partial_store_chain_continues_live(
        self, store: RecordingStore
    ) -> None:
        await seed(store, M1, M2)
        chat = FakeChat([ROOT])
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.id for item in context.history[:3]] == ["root", "m1", "m2"]
        assert chat.fetched == ["root"]

    async def test_second_resolution_uses_store(self, store: RecordingStore) -> None:
        chat = FakeChat([ROOT, M1, M2])
        resolver = make_resolver(store, chat)
        await resolver.resolve(trigger_for(referenced_id="m2"))
        chat.fetched.clear()

        context = await resolver.resolve(trigger_for(referenced_id="m2"))

        assert context is not None
        assert chat.fetched == []
        assert [item.id for item in context.history[:3]] == ["root", "m1", "m2"]

    async def test_fetch_failure_truncates(self, store: RecordingStore) -> None:
        chat = FakeChat([ROOT, M1], failing={"root"})
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.id for item in context.history] == ["m1", "m2"]

    async def test_live_cycle_terminates(self, store: RecordingStore) -> None:
        a = msg("a", "first", referenced_id="b")
        b = msg("b", "second", referenced_id="a")
        chat = FakeChat([a, b])
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(trigger_for(referenced_id="a"))

        assert context is not None
        ids = [item.id for item in context.history]
        assert sorted(ids) == ["a", "b"]
        assert chat.fetched == ["a", "b"]

    async def test_broken_store_falls_back_to_live(self) -> None:
        chat = FakeChat([ROOT, M1, M2])
        resolver = make_resolver(BrokenStore(), chat)

        context = await resolver.resolve(trigger_for(referenced_id="m2"))

        assert context is not None
        assert [item.id for item in context.history] == ["root", "m1", "m2"]


class TestAddressing:
    """Triggers that do not address the bot."""

    async def test_not_addressed_in_guild_has_no_side_effects(
        self, store: RecordingStore
    ) -> None:
        chat = FakeChat([ROOT])
        resolver = make_resolver(store, chat)

        context = await resolver.resolve(
            trigger_for(content="hi all", parent=M2, mention=False)
        )

        assert context is None
        assert store.upserted == []
        assert chat.fetched == []

    async def test_reply_to_bot_is_addressed(self, store: RecordingStore) -> None:
        resolver = make_resolver(store, FakeChat([ROOT]))

        context = await resolver.resolve(
            trigger_for(content="thanks", parent=M1, mention=False)
        )

        assert context is not None
        assert context.addressed is True

    async def test_unresolved_parent_checked_in_store(
        self, store: RecordingStore
    ) -> None:
        await seed(store, ROOT, M1)
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(
            trigger_for(content="thanks", referenced_id="m1", mention=False)
        )

        assert context is not None
        assert [item.id for item in context.history[:2]] == ["root", "m1"]

    async def test_direct_message_proceeds_unaddressed(
        self, store: RecordingStore
    ) -> None:
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(
            trigger_for(content="hello", mention=False, guild_id=None)
        )

        assert context is not None
        assert context.addressed is False

    async def test_direct_message_requires_mention_when_configured(
        self, store: RecordingStore
    ) -> None:
        resolver = make_resolver(store, FakeChat(), dm_requires_mention=True)

        context = await resolver.resolve(
            trigger_for(content="hello", mention=False, guild_id=None)
        )

        assert context is None
        assert store.upserted == []


class TestReducedMode:
    """The override keyword keeps only the immediate parent."""

    async def test_only_parent_kept_with_keyword_stripped(
        self, store: RecordingStore
    ) -> None:
        parent = msg("m2", f"{KEYWORD} check this", referenced_id="m1", minute=2)
        await seed(store, ROOT, M1, parent, msg("w1", "chatter", minute=5))
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(
            trigger_for(content=f"<@999> {KEYWORD} summarize", parent=parent)
        )

        assert context is not None
        assert [item.content for item in context.history] == ["check this"]
        assert context.chain == context.history
        assert context.history[0].id == "m2"
        assert context.reduced is True
        assert context.override_seen is True

    async def test_without_parent_history_is_empty(
        self, store: RecordingStore
    ) -> None:
        await seed(store, msg("w1", "chatter", minute=5))
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(trigger_for(content=f"<@999> {KEYWORD} hi"))

        assert context is not None
        assert context.history == []

    async def test_keyword_in_chain_marks_override(
        self, store: RecordingStore
    ) -> None:
        earlier = msg("root", f"{KEYWORD} be terse")
        await seed(store, earlier, M1, M2)
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert context.reduced is False
        assert context.override_seen is True


class TestDedupe:
    """Window items already in the conversation are skipped."""

    async def test_content_dedupe_skips_equal_content(
        self, store: RecordingStore
    ) -> None:
        copy = msg("copy", "start with flour", minute=7)
        await seed(store, ROOT, M1, M2, copy)
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.id for item in context.history] == ["root", "m1", "m2"]

    async def test_content_dedupe_skips_repeated_window_content(
        self, store: RecordingStore
    ) -> None:
        await seed(
            store,
            msg("w1", "same", minute=5),
            msg("w2", "same", minute=6),
        )
        resolver = make_resolver(store, FakeChat())

        context = await resolver.resolve(trigger_for())

        assert context is not None
        assert [item.id for item in context.history] == ["w2"]

    async def test_id_dedupe_keeps_equal_content(self, store: RecordingStore) -> None:
        copy = msg("copy", "start with flour", minute=7)
        await seed(store, ROOT, M1, M2, copy)
        resolver = make_resolver(store, FakeChat(), dedupe="id")

        context = await resolver.resolve(trigger_for(parent=M2))

        assert context is not None
        assert [item.id for item in context.history] == ["root", "m1", "m2", "copy"]

    async def test_window_is_bounded(self, store: RecordingStore) -> None:
        await seed(store, *(msg(f"w{i}", f"chatter {i}", minute=i) for i in range(10)))
        resolver = ContextResolver(
            store=store,
            chat=FakeChat(),  # type: ignore[arg-type]
            discord_config=DiscordConfig(token="token", bot_id=BOT_ID),
            context_config=ContextConfig(window_size=4),
            logger=structlog.get_logger(),
        )

        context = await resolver.resolve(trigger_for())

        assert context is not None
        # The trigger itself is the newest record of the window
        assert [item.id for item in context.history] == ["w9", "w8", "w7"]
