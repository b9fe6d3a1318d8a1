"""Tests for config Pydantic models."""

from pathlib import Path

import pytest
from pydantic import ValidationError

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


def make_app_config(**overrides: object) -> AppConfig:
    data: dict[str, object] = {
        "discord": DiscordConfig(token="token", bot_id="100"),
        "agent": AgentConfig(
            system_prompt="You are a helpful assistant.",
            llm=LLMConfig(model_id="ollama/llama3.1"),
        ),
    }
    data.update(overrides)
    return AppConfig(**data)  # type: ignore[arg-type]


class TestLLMConfig:
    """Tests for LLMConfig model."""

    def test_minimal_config(self) -> None:
        config = LLMConfig(model_id="openai/gpt-4o-mini")

        assert config.model_id == "openai/gpt-4o-mini"
        assert config.params == {}
        assert config.client_args == {}

    def test_missing_model_id_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LLMConfig()  # type: ignore[call-arg]

        errors = exc_info.value.errors()
        assert len(errors) == 1
        assert errors[0]["loc"] == ("model_id",)
        assert errors[0]["type"] == "missing"


class TestAgentConfig:
    """Tests for AgentConfig model."""

    def test_defaults(self) -> None:
        config = AgentConfig(
            system_prompt="Test", llm=LLMConfig(model_id="test/model")
        )

        assert config.streaming is True
        assert config.minimal_system_prompt.startswith("Keep your response short")

    def test_missing_system_prompt_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AgentConfig(llm=LLMConfig(model_id="test/model"))  # type: ignore[call-arg]

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("system_prompt",) for e in errors)


class TestDiscordConfig:
    """Tests for DiscordConfig model."""

    def test_defaults(self) -> None:
        config = DiscordConfig(token="token", bot_id="100")

        assert config.superuser_id is None
        assert config.bonk_emoji_name is None
        assert config.bonk_from_anyone is False
        assert config.typing is False
        assert config.allow_dm is False
        assert config.dm_requires_mention is False
        assert config.dm_clean_system is False
        assert config.override_keyword == ""

    def test_missing_token_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            DiscordConfig(bot_id="100")  # type: ignore[call-arg]

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("token",) for e in errors)


class TestContextConfig:
    """Tests for ContextConfig model."""

    def test_defaults(self) -> None:
        config = ContextConfig()

        assert config.window_size == 50
        assert config.dedupe == "content"

    def test_id_dedupe(self) -> None:
        assert ContextConfig(dedupe="id").dedupe == "id"

    def test_invalid_dedupe_raises_error(self) -> None:
        with pytest.raises(ValidationError):
            ContextConfig(dedupe="hash")  # type: ignore[arg-type]

    def test_window_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ContextConfig(window_size=0)


class TestDeliveryConfig:
    """Tests for DeliveryConfig model."""

    def test_defaults(self) -> None:
        config = DeliveryConfig()

        assert config.throttle_interval == 0.5
        assert config.max_message_length == 1999
        assert config.empty_response_marker
        assert config.error_marker

    def test_negative_throttle_raises_error(self) -> None:
        with pytest.raises(ValidationError):
            DeliveryConfig(throttle_interval=-1)


class TestExtractorConfig:
    """Tests for ExtractorConfig model."""

    def test_defaults(self) -> None:
        config = ExtractorConfig()

        assert config.enabled is True
        assert config.command == ["node", "index.js"]
        assert config.workdir == Path("content-from-webpage")
        assert config.timeout == 30.0


class TestLoggingConfig:
    """Tests for LoggingConfig model."""

    def test_default_values(self) -> None:
        config = LoggingConfig()

        assert config.level == "INFO"
        assert config.format == "json"
        assert config.library_level == "WARNING"

    def test_invalid_level_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LoggingConfig(level="INVALID")  # type: ignore[arg-type]

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("level",) for e in errors)

    def test_invalid_format_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            LoggingConfig(format="invalid")  # type: ignore[arg-type]

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("format",) for e in errors)


class TestAppConfig:
    """Tests for AppConfig model."""

    def test_minimal_config(self) -> None:
        """Sections other than discord and agent have defaults."""
        config = make_app_config()

        assert config.database == DatabaseConfig()
        assert config.database.url == "sqlite+aiosqlite:///./data/messages.db"
        assert config.context == ContextConfig()
        assert config.delivery == DeliveryConfig()
        assert config.queue == QueueConfig()
        assert config.queue.capacity == 128
        assert config.server == ServerConfig()
        assert config.logging == LoggingConfig()

    def test_custom_sections(self) -> None:
        config = make_app_config(
            queue=QueueConfig(capacity=4),
            server=ServerConfig(host="127.0.0.1", port=9000),
        )

        assert config.queue.capacity == 4
        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9000

    def test_missing_discord_raises_error(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            AppConfig(  # type: ignore[call-arg]
                agent=AgentConfig(
                    system_prompt="Test", llm=LLMConfig(model_id="test/model")
                )
            )

        errors = exc_info.value.errors()
        assert any(e["loc"] == ("discord",) for e in errors)
        assert any(e["type"] == "missing" for e in errors)
