"""Logging setup module using structlog."""

import logging
import sys

import structlog
from structlog.stdlib import BoundLogger

from threadwise.config.models import LoggingConfig

# Third-party loggers that are noisy at DEBUG/INFO
LIBRARY_LOGGERS = ("discord", "aiosqlite", "sqlalchemy", "LiteLLM", "httpx", "strands")


def setup_logging(config: LoggingConfig) -> None:
    """Initialize logging configuration.

    Application loggers use ``config.level``. The loggers in
    LIBRARY_LOGGERS use ``config.library_level`` and share the same
    handler, so discord.py and LiteLLM output is rendered like ours.

    Args:
        config: Logging configuration specifying levels and format.
    """
    log_level = getattr(logging, config.level)
    library_level = getattr(logging, config.library_level)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(min(log_level, library_level))
    root_logger.addHandler(handler)

    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(library_level)
        # discord.py installs its own handler unless told otherwise
        for existing in library_logger.handlers[:]:
            library_logger.removeHandler(existing)
        library_logger.propagate = True

    shared_processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if config.format == "json":
        renderer: structlog.typing.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )
    handler.setFormatter(formatter)


def get_logger(name: str | None = None) -> BoundLogger:
    """Get a logger instance.

    Args:
        name: Logger name, typically the module name (__name__).

    Returns:
        A bound logger instance that can be used for logging.
    """
    return structlog.stdlib.get_logger(name)
