"""Incremental delivery of model output to a chat reply."""

import time
from collections.abc import AsyncIterable, Callable
from datetime import datetime, timezone

from pydantic import BaseModel
from structlog.stdlib import BoundLogger

from threadwise.config.models import DeliveryConfig
from threadwise.domain.entities.chat_message import SentMessage
from threadwise.domain.entities.stored_message import StoredMessage
from threadwise.domain.entities.stream import StreamChunk, StreamState
from threadwise.domain.errors import (
    DeliveryTransportError,
    InferenceError,
    StoreIOError,
)
from threadwise.domain.gateways.chat_gateway import ReplySink
from threadwise.domain.repositories.message_store import MessageStore


class StreamSession(BaseModel):
    """Per-trigger delivery state."""

    buffer: str = ""
    outbound_message_id: str | None = None
    last_edit_time: float = 0.0
    state: StreamState = StreamState.IDLE


class StreamDeliveryEngine:
    """Renders a model stream into one outbound message.

    The message is created on the first chunk with visible text and then
    edited at most once per ``throttle_interval``. The last chunk always
    triggers a final edit. Text beyond ``max_message_length`` is cut.

    Args:
        store: Store that receives the finished reply.
        bot_id: The bot's user id, recorded as the reply's author.
        config: Throttle, length limit and marker texts.
        logger: Logger instance.
        clock: Monotonic clock, in the same unit as ``throttle_interval``.
    """

    def __init__(
        self,
        store: MessageStore,
        bot_id: str,
        config: DeliveryConfig,
        logger: BoundLogger,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._bot_id = bot_id
        self._config = config
        self._logger = logger
        self._clock = clock

    async def deliver(
        self,
        chunks: AsyncIterable[StreamChunk],
        sink: ReplySink,
        trigger_id: str,
    ) -> str:
        """Consume a chunk stream and keep the reply up to date.

        Args:
            chunks: Model output in arrival order.
            sink: Destination of the reply.
            trigger_id: Id of the message being answered.

        Returns:
            The final text of the reply.

        Raises:
            InferenceError: If the stream reports or raises an error.
            DeliveryTransportError: If sending or editing fails.
        """
        session = StreamSession()
        iterator = aiter(chunks)
        try:
            while True:
                try:
                    chunk = await anext(iterator)
                except StopAsyncIteration:
                    break
                except Exception as e:
                    raise InferenceError(f"Inference stream failed: {e}") from e

                if chunk.error is not None:
                    raise InferenceError(f"Inference stream failed: {chunk.error}")

                await self._consume(session, sink, chunk)
                if chunk.done:
                    break

            return await self._finalize(session, sink, trigger_id)
        except (InferenceError, DeliveryTransportError) as e:
            await self._fail(session, sink, e)
            raise
        finally:
            aclose = getattr(iterator, "aclose", None)
            if aclose is not None:
                await aclose()

    async def deliver_text(self, text: str, sink: ReplySink, trigger_id: str) -> str:
        """Send a complete response in one message, without edits.

        Raises:
            DeliveryTransportError: If sending fails.
        """
        session = StreamSession(buffer=text)
        try:
            return await self._finalize(session, sink, trigger_id)
        except DeliveryTransportError as e:
            await self._fail(session, sink, e)
            raise

    def truncate(self, text: str) -> str:
        return text[: self._config.max_message_length]

    async def _consume(
        self, session: StreamSession, sink: ReplySink, chunk: StreamChunk
    ) -> None:
        session.buffer += chunk.content
        now = self._clock()

        if session.state is StreamState.IDLE:
            # Discord rejects whitespace-only messages
            if session.buffer.strip():
                sent = await sink.send(self.truncate(session.buffer))
                session.outbound_message_id = sent.id
                session.state = StreamState.CREATED
                session.last_edit_time = now
                session.state = StreamState.UPDATING
            return

        if not chunk.done and now - session.last_edit_time >= self._config.throttle_interval:
            await sink.edit(session.outbound_message_id, self.truncate(session.buffer))
            session.last_edit_time = now

    async def _finalize(
        self, session: StreamSession, sink: ReplySink, trigger_id: str
    ) -> str:
        text = self.truncate(session.buffer)
        if not text.strip():
            self._logger.warning("Empty llm response", trigger_id=trigger_id)
            text = self._config.empty_response_marker

        if session.outbound_message_id is None:
            sent = await sink.send(text)
            session.outbound_message_id = sent.id
        else:
            sent = await sink.edit(session.outbound_message_id, text)
            session.last_edit_time = self._clock()

        session.state = StreamState.FINALIZED
        await self._remember(sent, text, trigger_id)
        return text

    async def _fail(
        self, session: StreamSession, sink: ReplySink, error: Exception
    ) -> None:
        session.state = StreamState.ERRORED
        self._logger.error(
            "Reply delivery failed",
            outbound_message_id=session.outbound_message_id,
            error=str(error),
        )
        if session.outbound_message_id is None:
            return

        try:
            await sink.edit(session.outbound_message_id, self._config.error_marker)
        except DeliveryTransportError as e:
            self._logger.warning("Could not mark reply as failed", error=str(e))

    async def _remember(self, sent: SentMessage, text: str, trigger_id: str) -> None:
        record = StoredMessage(
            id=sent.id,
            channel_id=sent.channel_id,
            author_id=self._bot_id,
            content=text,
            is_bot_message=True,
            attachments=[],
            referenced_id=trigger_id,
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._store.upsert(record)
        except StoreIOError as e:
            self._logger.error(
                "Failed to save bot response to database",
                message_id=sent.id,
                error=str(e),
            )
