"""Reply loop: handles one trigger message from intake to delivery."""

from contextlib import AbstractAsyncContextManager, nullcontext

from structlog.stdlib import BoundLogger

from threadwise.application.handlers.message_query import (
    build_link_query,
    find_images,
    find_url,
)
from threadwise.application.services.context_resolver import (
    ContextResolver,
    ResolvedContext,
)
from threadwise.application.services.stream_delivery import StreamDeliveryEngine
from threadwise.config.models import AppConfig
from threadwise.domain.entities.chat_message import TriggerMessage
from threadwise.domain.entities.event import MessageEvent
from threadwise.domain.entities.history import HistoryItem
from threadwise.domain.errors import ContentExtractionError
from threadwise.domain.gateways.chat_gateway import ChatGateway
from threadwise.domain.gateways.content_extractor import ContentExtractor
from threadwise.domain.gateways.inference import InferenceClient

LINK_REACTION = "\N{EYES}"


class ReplyLoop:
    """Processes trigger events with the LLM.

    Each event is handled independently: context is resolved, the model
    is called and the answer is delivered. Nothing is shared between
    events except the message store behind the resolver and the engine.
    """

    def __init__(
        self,
        config: AppConfig,
        resolver: ContextResolver,
        delivery: StreamDeliveryEngine,
        inference: InferenceClient,
        chat: ChatGateway,
        extractor: ContentExtractor,
        logger: BoundLogger,
    ) -> None:
        """Initialize the reply loop.

        Args:
            config: Application configuration.
            resolver: Resolves conversation history.
            delivery: Renders model output into a reply.
            inference: Language model client.
            chat: Chat platform gateway.
            extractor: Webpage content extractor.
            logger: Logger instance.
        """
        self._config = config
        self._resolver = resolver
        self._delivery = delivery
        self._inference = inference
        self._chat = chat
        self._extractor = extractor
        self._logger = logger

    async def process(self, event: MessageEvent) -> str | None:
        """Answer the trigger message carried by ``event``.

        Args:
            event: The event to process.

        Returns:
            The delivered reply text, or None if nothing was sent.

        Raises:
            Exception: If inference or delivery fails.
        """
        trigger = event.message
        self._logger.info(
            "Processing message",
            event_id=event.id,
            message_id=trigger.id,
            channel_id=trigger.channel_id,
        )

        try:
            context = await self._resolver.resolve(trigger)
            if context is None:
                return None

            clean_system = context.override_seen or (
                trigger.is_direct and self._config.discord.dm_clean_system
            )
            system_prompt = self._select_system_prompt(clean_system)
            user_message = self._strip_override(trigger.content)
            history = list(context.history)

            link = self._find_link(trigger, context)
            if link is not None:
                if clean_system:
                    history.append(
                        HistoryItem(content=user_message.replace(link, "").strip())
                    )
                query = await self._read_link(trigger, link)
                if query is None:
                    return None
                user_message = query

            images = find_images(trigger, context.chain)
            if images:
                self._logger.info("Attaching images", images=images)

            response = await self._generate(
                trigger, system_prompt, user_message, history, images
            )

            self._logger.info(
                "Reply delivered",
                event_id=event.id,
                message_id=trigger.id,
                response_length=len(response),
            )
            return response

        except Exception as e:
            self._logger.error(
                "Error processing message",
                event_id=event.id,
                message_id=trigger.id,
                error=str(e),
                exc_info=True,
            )
            raise

    async def _generate(
        self,
        trigger: TriggerMessage,
        system_prompt: str,
        user_message: str,
        history: list[HistoryItem],
        images: list[str],
    ) -> str:
        model = self._config.agent.llm.model_id
        sink = self._chat.reply_sink(
            trigger.channel_id, trigger.id, as_reply=not trigger.is_direct
        )
        self._logger.debug(
            "Inferencing", content=user_message, history_length=len(history)
        )

        async with self._typing(trigger.channel_id):
            if self._config.agent.streaming and self._inference.supports_streaming:
                chunks = self._inference.stream(
                    model, system_prompt, user_message, history, images
                )
                return await self._delivery.deliver(chunks, sink, trigger.id)

            text = await self._inference.infer(
                model, system_prompt, user_message, history, images
            )
            return await self._delivery.deliver_text(text, sink, trigger.id)

    def _select_system_prompt(self, clean_system: bool) -> str:
        if clean_system:
            self._logger.info("Ignoring system prompt")
            return self._config.agent.minimal_system_prompt
        return self._config.agent.system_prompt

    def _strip_override(self, content: str) -> str:
        keyword = self._config.discord.override_keyword
        if not keyword:
            return content
        return content.replace(keyword, "").strip()

    def _find_link(
        self, trigger: TriggerMessage, context: ResolvedContext
    ) -> str | None:
        if not self._config.extractor.enabled or len(context.chain) > 1:
            return None

        link = find_url(trigger.content)
        if link is None and trigger.referenced_message is not None:
            link = find_url(trigger.referenced_message.content)
        return link

    async def _read_link(self, trigger: TriggerMessage, link: str) -> str | None:
        self._logger.info("Found url to parse", url=link)
        await self._chat.add_reaction(trigger.channel_id, trigger.id, LINK_REACTION)

        try:
            content = await self._extractor.extract(link)
        except ContentExtractionError as e:
            self._logger.warning(
                "Content parser failed", url=link, exit_code=e.exit_code, error=str(e)
            )
            await self._chat.send_message(
                trigger.channel_id,
                self._config.delivery.link_error_message,
                reply_to=trigger.id,
            )
            return None

        self._logger.debug("Content parser success", url=link, length=len(content))
        return build_link_query(link, content)

    def _typing(self, channel_id: str) -> AbstractAsyncContextManager[None]:
        if self._config.discord.typing:
            return self._chat.typing(channel_id)
        return nullcontext()
