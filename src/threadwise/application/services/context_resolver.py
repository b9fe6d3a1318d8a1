"""Conversation context resolution for trigger messages."""

from pydantic import BaseModel, ConfigDict, Field
from structlog.stdlib import BoundLogger

from threadwise.config.models import ContextConfig, DiscordConfig
from threadwise.domain.entities.chat_message import TriggerMessage
from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.entities.stored_message import StoredMessage
from threadwise.domain.errors import StoreIOError, UpstreamFetchError
from threadwise.domain.gateways.chat_gateway import ChatGateway
from threadwise.domain.repositories.message_store import MessageStore


class ResolvedContext(BaseModel):
    """History assembled for one trigger.

    Attributes:
        history: Reply chain oldest-first, then channel window items.
        chain: The reply chain alone, without window items. In reduced mode
            this is the kept parent.
        addressed: Whether the bot was mentioned or replied to.
        reduced: Whether the override keyword stripped ambient context.
        override_seen: Whether the override keyword appeared in the trigger
            or in a user message of the reply chain.
    """

    model_config = ConfigDict(frozen=True)

    history: list[HistoryItem] = Field(default_factory=list)
    chain: list[HistoryItem] = Field(default_factory=list)
    addressed: bool = True
    reduced: bool = False
    override_seen: bool = False


class ContextResolver:
    """Builds the conversation history behind a trigger message.

    The reply chain is read from the store first. Ancestors the store does
    not know are fetched live from the chat platform and written back, so
    the store fills up as a side effect of reads. In full mode the chain is
    followed by recent channel messages that are not already part of it.
    """

    def __init__(
        self,
        store: MessageStore,
        chat: ChatGateway,
        discord_config: DiscordConfig,
        context_config: ContextConfig,
        logger: BoundLogger,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Message store shared by all tasks.
            chat: Gateway used for live fetches.
            discord_config: Bot identity and addressing rules.
            context_config: Window size and dedupe mode.
            logger: Logger instance.
        """
        self._store = store
        self._chat = chat
        self._bot_id = discord_config.bot_id
        self._discord = discord_config
        self._context = context_config
        self._logger = logger

    async def resolve(self, trigger: TriggerMessage) -> ResolvedContext | None:
        """Resolve the history for a trigger message.

        Args:
            trigger: The inbound message.

        Returns:
            The resolved context, or None when the bot was not addressed and
            the trigger must be dropped without side effects.
        """
        addressed = await self.is_addressed(trigger)
        if not addressed and (not trigger.is_direct or self._discord.dm_requires_mention):
            self._logger.debug("Bot not addressed, ignoring", message_id=trigger.id)
            return None

        await self._remember(trigger.to_record(self._bot_id))
        if trigger.referenced_message is not None:
            await self._remember(trigger.referenced_message.to_record(self._bot_id))

        chain = await self._assemble_chain(trigger)

        keyword = self._discord.override_keyword
        reduced = bool(keyword) and keyword in trigger.content
        override_seen = reduced or (
            bool(keyword)
            and any(not item.is_bot_message and keyword in item.content for item in chain)
        )

        if reduced:
            chain = [self._strip_keyword(chain[-1], keyword)] if chain else []
            history = list(chain)
        else:
            history = chain + await self._window_items(trigger, chain)

        self._logger.info(
            "Context resolved",
            message_id=trigger.id,
            chain_length=len(chain),
            history_length=len(history),
            reduced=reduced,
        )
        return ResolvedContext(
            history=history,
            chain=chain,
            addressed=addressed,
            reduced=reduced,
            override_seen=override_seen,
        )

    async def is_addressed(self, trigger: TriggerMessage) -> bool:
        """Return True if the trigger mentions the bot or replies to it.

        When the platform did not resolve the parent, the store is asked
        whether the parent is a bot message.
        """
        if self._bot_id in trigger.mentions:
            return True

        parent = trigger.referenced_message
        if parent is not None:
            return parent.author_id == self._bot_id

        if trigger.referenced_id is None:
            return False

        try:
            record = await self._store.get(trigger.referenced_id)
        except StoreIOError as e:
            self._logger.warning("Store read failed", error=str(e))
            return False
        return record is not None and record.is_bot_message

    async def _assemble_chain(self, trigger: TriggerMessage) -> list[HistoryItem]:
        visited = {trigger.id}
        try:
            chain = await self._store.get_chain_from(trigger.id)
        except StoreIOError as e:
            self._logger.warning(
                "Store read failed, fetching history live", error=str(e)
            )
            chain = []

        visited.update(item.id for item in chain if item.id is not None)

        if chain:
            next_id = chain[0].referenced_id
            if next_id is None or next_id in visited:
                self._logger.debug("History from store", count=len(chain))
                return chain
        elif trigger.referenced_message is not None:
            parent = trigger.referenced_message
            visited.add(parent.id)
            chain = [HistoryItem.from_record(parent.to_record(self._bot_id))]
            next_id = parent.referenced_id
        else:
            next_id = trigger.referenced_id

        self._logger.debug("Fetching history from Discord", start_id=next_id)
        ancestors = await self._walk_live(trigger.channel_id, next_id, visited)
        return ancestors + chain

    async def _walk_live(
        self, channel_id: str, next_id: str | None, visited: set[str]
    ) -> list[HistoryItem]:
        ancestors: list[HistoryItem] = []
        while next_id and next_id not in visited:
            visited.add(next_id)
            try:
                message = await self._chat.fetch_message(channel_id, next_id)
            except UpstreamFetchError as e:
                self._logger.warning(
                    "Live fetch failed, truncating history",
                    message_id=next_id,
                    error=str(e),
                )
                break

            record = message.to_record(self._bot_id)
            await self._remember(record)
            ancestors.append(HistoryItem.from_record(record))
            next_id = message.referenced_id

        ancestors.reverse()
        return ancestors

    async def _window_items(
        self, trigger: TriggerMessage, chain: list[HistoryItem]
    ) -> list[HistoryItem]:
        try:
            window = await self._store.get_recent_window(
                trigger.channel_id, self._context.window_size
            )
        except StoreIOError as e:
            self._logger.warning("Window read failed, skipping", error=str(e))
            return []

        by_id = self._context.dedupe == "id"
        if by_id:
            seen = {trigger.id, *(item.id for item in chain if item.id is not None)}
        else:
            seen = {trigger.content, *(item.content for item in chain)}

        extra: list[HistoryItem] = []
        for record in window:
            key = record.id if by_id else record.content
            if key in seen:
                continue
            seen.add(key)
            extra.append(HistoryItem.from_record(record))
        return extra

    def _strip_keyword(self, item: HistoryItem, keyword: str) -> HistoryItem:
        return item.model_copy(update={"content": item.content.replace(keyword, "").strip()})

    async def _remember(self, record: StoredMessage) -> None:
        try:
            await self._store.upsert(record)
        except StoreIOError as e:
            self._logger.error(
                "Failed to save message to database",
                message_id=record.id,
                error=str(e),
            )
