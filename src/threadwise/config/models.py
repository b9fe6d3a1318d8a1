"""Pydantic models for application configuration."""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

DEFAULT_MINIMAL_SYSTEM_PROMPT = (
    "Keep your response short. Be concise and say only important things, "
    "not meaningful words (water)."
)


class DiscordConfig(BaseModel):
    """Discord integration configuration."""

    token: str = Field(..., description="Bot token used for the gateway and REST API.")
    bot_id: str = Field(..., description="The bot's own user id.")
    superuser_id: str | None = Field(
        default=None,
        description="User allowed to delete bot messages with the bonk emoji.",
    )
    bonk_emoji_name: str | None = Field(
        default=None,
        description="Reaction emoji that deletes a bot message. Disabled if unset.",
    )
    bonk_from_anyone: bool = Field(
        default=False,
        description="Let any user, not only the superuser, bonk bot messages.",
    )
    typing: bool = Field(
        default=False,
        description="Show a typing indicator while a reply is generated.",
    )
    allow_dm: bool = Field(
        default=False,
        description="Answer direct messages.",
    )
    dm_requires_mention: bool = Field(
        default=False,
        description="Require a mention or reply-to-bot in direct messages too.",
    )
    dm_clean_system: bool = Field(
        default=False,
        description="Use the minimal system prompt in direct messages.",
    )
    override_keyword: str = Field(
        default="",
        description=(
            "Keyword that strips ambient context: only the immediate parent is "
            "kept and the minimal system prompt is used. Disabled if empty."
        ),
    )


class DatabaseConfig(BaseModel):
    """Database connection configuration."""

    url: str = Field(
        default="sqlite+aiosqlite:///./data/messages.db",
        description=(
            "SQLAlchemy-style database connection URL "
            "(e.g., 'sqlite+aiosqlite:///path/to/db')."
        ),
    )


class LLMConfig(BaseModel):
    """LLM configuration for LiteLLM."""

    model_id: str
    params: dict[str, Any] = Field(default_factory=dict)
    client_args: dict[str, Any] = Field(default_factory=dict)


class AgentConfig(BaseModel):
    """Agent configuration."""

    system_prompt: str
    minimal_system_prompt: str = DEFAULT_MINIMAL_SYSTEM_PROMPT
    streaming: bool = True
    llm: LLMConfig


class ContextConfig(BaseModel):
    """Conversation context assembly."""

    window_size: int = Field(
        default=50,
        gt=0,
        description="Number of recent channel messages used to enrich history.",
    )
    dedupe: Literal["content", "id"] = Field(
        default="content",
        description="How window messages already in the reply chain are detected.",
    )


class DeliveryConfig(BaseModel):
    """Outbound reply rendering."""

    throttle_interval: float = Field(
        default=0.5,
        ge=0,
        description="Minimum seconds between two edits of a streaming reply.",
    )
    max_message_length: int = Field(
        default=1999,
        gt=0,
        description="Replies are cut to this many characters.",
    )
    empty_response_marker: str = "_(no response generated)_"
    error_marker: str = "_(something went wrong while answering)_"
    link_error_message: str = "I could not read that link."


class ExtractorConfig(BaseModel):
    """Webpage content extractor process."""

    enabled: bool = True
    command: list[str] = Field(default_factory=lambda: ["node", "index.js"])
    workdir: Path = Path("content-from-webpage")
    timeout: float = Field(default=30.0, gt=0)


class QueueConfig(BaseModel):
    """Intake queue configuration."""

    capacity: int = Field(default=128, gt=0)


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["json", "text"] = "json"
    library_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = (
        "WARNING"
    )


class AppConfig(BaseModel):
    """Application configuration."""

    discord: DiscordConfig
    agent: AgentConfig
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
