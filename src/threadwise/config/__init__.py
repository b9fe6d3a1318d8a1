"""Configuration module for threadwise."""

from threadwise.config.loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    EnvVarNotFoundError,
    default_config_path,
    load_config,
)
from threadwise.config.models import (
    AgentConfig,
    AppConfig,
    ContextConfig,
    DatabaseConfig,
    DeliveryConfig,
    DiscordConfig,
    ExtractorConfig,
    LLMConfig,
    LoggingConfig,
    QueueConfig,
    ServerConfig,
)

__all__ = [
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "EnvVarNotFoundError",
    # Functions
    "default_config_path",
    "load_config",
    # Models
    "AgentConfig",
    "AppConfig",
    "ContextConfig",
    "DatabaseConfig",
    "DeliveryConfig",
    "DiscordConfig",
    "ExtractorConfig",
    "LLMConfig",
    "LoggingConfig",
    "QueueConfig",
    "ServerConfig",
]
