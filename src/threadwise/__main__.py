"""Application entry point for threadwise."""

import argparse
import asyncio
import signal
import sys
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError
from structlog.stdlib import BoundLogger

from threadwise.application.services.context_resolver import ContextResolver
from threadwise.application.services.reply_loop import ReplyLoop
from threadwise.application.services.stream_delivery import StreamDeliveryEngine
from threadwise.config import (
    ConfigError,
    ConfigFileNotFoundError,
    default_config_path,
    load_config,
)
from threadwise.domain.entities.event import MessageEvent
from threadwise.infrastructure import Database, EventQueue, SqliteMessageStore
from threadwise.infrastructure.content import SubprocessContentExtractor
from threadwise.infrastructure.discord import DiscordGateway
from threadwise.infrastructure.llm import StrandsInferenceClient
from threadwise.infrastructure.logging import get_logger, setup_logging
from threadwise.infrastructure.tracing import setup_tracing
from threadwise.presentation.http.server import HTTPServer

# Shutdown timeout in seconds
SHUTDOWN_TIMEOUT = 30


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments.

    Args:
        args: Command line arguments. If None, uses sys.argv.

    Returns:
        Parsed arguments namespace.
    """
    parser = argparse.ArgumentParser(
        description="threadwise - Discord bot answering reply threads with an LLM"
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=default_config_path(),
        help="Path to configuration file (default: $THREADWISE_CONFIG or config.yaml)",
    )
    return parser.parse_args(args)


async def run_main_loop(
    event_queue: EventQueue,
    reply_loop: ReplyLoop,
    shutdown_event: asyncio.Event,
    running_check: Callable[[], bool],
    logger: BoundLogger,
    in_flight: set[asyncio.Task[None]] | None = None,
) -> None:
    """Dispatch queued events to their own tasks until shutdown.

    Each event is processed concurrently with every other. Tasks still
    running at shutdown are cancelled.

    Args:
        event_queue: EventQueue instance for retrieving events.
        reply_loop: ReplyLoop instance for processing events.
        shutdown_event: Event that signals shutdown.
        running_check: Callable that returns whether the loop should continue.
        logger: Logger instance.
        in_flight: Set receiving the running tasks, for status reporting.
    """
    tasks: set[asyncio.Task[None]] = in_flight if in_flight is not None else set()

    def spawn(event: MessageEvent) -> None:
        task = asyncio.create_task(
            _process_event(event, reply_loop, event_queue, logger),
            name=f"reply-{event.id}",
        )
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    try:
        while running_check():
            dequeue_task = asyncio.create_task(event_queue.dequeue())
            shutdown_task = asyncio.create_task(shutdown_event.wait())

            try:
                done, pending = await asyncio.wait(
                    [dequeue_task, shutdown_task],
                    return_when=asyncio.FIRST_COMPLETED,
                )
            except asyncio.CancelledError:
                dequeue_task.cancel()
                shutdown_task.cancel()
                await asyncio.gather(dequeue_task, shutdown_task, return_exceptions=True)
                raise

            for task in pending:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

            if dequeue_task in done:
                spawn(dequeue_task.result())

            if shutdown_task in done:
                break
    finally:
        await _cancel_in_flight(tasks, logger)


async def _cancel_in_flight(
    tasks: set[asyncio.Task[None]], logger: BoundLogger
) -> None:
    if not tasks:
        return

    logger.info("Cancelling in-flight replies", count=len(tasks))
    for task in list(tasks):
        task.cancel()
    await asyncio.gather(*tasks, return_exceptions=True)


async def _process_event(
    event: MessageEvent,
    reply_loop: ReplyLoop,
    event_queue: EventQueue,
    logger: BoundLogger,
) -> None:
    """Process a single event.

    Args:
        event: Event to process.
        reply_loop: ReplyLoop instance.
        event_queue: EventQueue instance for marking done.
        logger: Logger instance.
    """
    try:
        await reply_loop.process(event)
    except Exception as e:
        logger.error("Error processing event", event_id=event.id, error=str(e))
    finally:
        event_queue.mark_done(event)


async def main_async(
    config_path: Path,
    shutdown_timeout: float = SHUTDOWN_TIMEOUT,
) -> int:
    """Async main function.

    Args:
        config_path: Path to configuration file.
        shutdown_timeout: Maximum time in seconds to wait for graceful shutdown.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    # 1. Load configuration
    config = load_config(config_path)

    # 2. Initialize logging
    setup_logging(config.logging)
    logger = get_logger(__name__)
    logger.info("Starting threadwise", config_path=str(config_path))

    # 3. Initialize tracing (if OTEL endpoint is configured)
    telemetry = setup_tracing()
    if telemetry:
        logger.info("Tracing enabled")

    # 4. Initialize components
    database = Database(config.database.url)
    await database.initialize()
    store = SqliteMessageStore(database)

    event_queue = EventQueue(capacity=config.queue.capacity)
    gateway = DiscordGateway(
        config=config.discord,
        event_queue=event_queue,
        logger=get_logger("discord"),
    )
    resolver = ContextResolver(
        store=store,
        chat=gateway,
        discord_config=config.discord,
        context_config=config.context,
        logger=get_logger("context"),
    )
    delivery = StreamDeliveryEngine(
        store=store,
        bot_id=config.discord.bot_id,
        config=config.delivery,
        logger=get_logger("delivery"),
    )
    reply_loop = ReplyLoop(
        config=config,
        resolver=resolver,
        delivery=delivery,
        inference=StrandsInferenceClient(config.agent.llm, logger=get_logger("llm")),
        chat=gateway,
        extractor=SubprocessContentExtractor(
            config.extractor, logger=get_logger("extractor")
        ),
        logger=get_logger("reply_loop"),
    )

    in_flight: set[asyncio.Task[None]] = set()
    http_server = HTTPServer(
        config=config.server,
        event_queue=event_queue,
        logger=get_logger("http_server"),
        in_flight=lambda: len(in_flight),
    )

    # 5. Setup shutdown handling
    running = True
    shutdown_event = asyncio.Event()

    def is_running() -> bool:
        return running

    def signal_handler(sig: signal.Signals) -> None:
        nonlocal running
        logger.info("Received signal, initiating shutdown", signal=sig.name)
        running = False
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler, sig)

    gateway_task: asyncio.Task[None] | None = None

    def on_gateway_done(task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        if task.exception() is not None:
            logger.error("Discord gateway stopped", error=str(task.exception()))
        shutdown_event.set()

    try:
        # 6. Start HTTP server and Discord gateway
        await http_server.start()
        gateway_task = asyncio.create_task(gateway.start(config.discord.token))
        gateway_task.add_done_callback(on_gateway_done)
        logger.info("threadwise started successfully")

        # 7. Run main loop
        await run_main_loop(
            event_queue=event_queue,
            reply_loop=reply_loop,
            shutdown_event=shutdown_event,
            running_check=is_running,
            logger=logger,
            in_flight=in_flight,
        )

    except asyncio.CancelledError:
        logger.info("Main loop cancelled")

    finally:
        # 8. Shutdown
        logger.info("Shutting down")
        try:
            await asyncio.wait_for(
                _shutdown(gateway, gateway_task, http_server, database),
                timeout=shutdown_timeout,
            )
            logger.info("threadwise stopped")
        except TimeoutError:
            logger.warning(
                "Shutdown timed out, forcing termination",
                timeout_seconds=shutdown_timeout,
            )

    return 0


async def _shutdown(
    gateway: DiscordGateway,
    gateway_task: asyncio.Task[None] | None,
    http_server: HTTPServer,
    database: Database,
) -> None:
    await gateway.close()
    if gateway_task is not None:
        await asyncio.gather(gateway_task, return_exceptions=True)
    await http_server.stop()
    await database.close()


def main() -> None:
    """Main entry point."""
    args = parse_args()
    config_path = args.config

    try:
        exit_code = asyncio.run(main_async(config_path))
        sys.exit(exit_code)
    except ConfigFileNotFoundError:
        print(f"Error: {config_path} not found", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: Configuration error: {e}", file=sys.stderr)
        sys.exit(1)
    except ValidationError as e:
        print(f"Error: Configuration validation error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
