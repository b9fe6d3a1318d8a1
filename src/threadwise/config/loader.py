"""Configuration loader with environment variable expansion."""

import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from threadwise.config.models import AppConfig

# Matches a whole value of the form ${VAR_NAME} or ${VAR_NAME:-default}
ENV_VAR_PATTERN = re.compile(r"^\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-(.*))?\}$")

# Environment variable that overrides the default config path
CONFIG_PATH_ENV = "THREADWISE_CONFIG"


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigFileNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the YAML file cannot be parsed."""


class EnvVarNotFoundError(ConfigError):
    """Raised when an environment variable is not found."""


def expand_env_vars(data: Any) -> Any:
    """Expand environment variables in the configuration data.

    Only complete string values are expanded. ``${VAR}`` requires the
    variable to be set; ``${VAR:-fallback}`` uses ``fallback`` when it is
    not. Partial matches like "prefix${VAR}suffix" are left untouched.

    Args:
        data: Configuration data (dict, list, or scalar value).

    Returns:
        Data with environment variables expanded.

    Raises:
        EnvVarNotFoundError: If a variable without fallback is not defined.
    """
    if isinstance(data, dict):
        return {key: expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        match = ENV_VAR_PATTERN.match(data)
        if not match:
            return data
        var_name, fallback = match.group(1), match.group(2)
        value = os.environ.get(var_name)
        if value is not None:
            return value
        if fallback is not None:
            return fallback
        raise EnvVarNotFoundError(f"Environment variable '{var_name}' not found")
    else:
        return data


def default_config_path() -> Path:
    """Return the config path from THREADWISE_CONFIG, or config.yaml."""
    return Path(os.environ.get(CONFIG_PATH_ENV) or "config.yaml")


def load_config(path: Path) -> AppConfig:
    """Load and validate configuration from a YAML file.

    A .env file next to the config file, if present, is loaded into the
    environment before variables are expanded.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Validated AppConfig instance.

    Raises:
        ConfigFileNotFoundError: If the file does not exist.
        ConfigParseError: If the YAML cannot be parsed.
        EnvVarNotFoundError: If an environment variable is not defined.
        ValidationError: If the configuration fails Pydantic validation.
    """
    if not path.exists():
        raise ConfigFileNotFoundError(f"Configuration file not found: {path}")

    # Variables already in the environment take precedence over .env
    load_dotenv(path.parent / ".env", override=False)

    try:
        with open(path) as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Failed to parse YAML: {e}") from e

    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, dict):
        raise ConfigParseError("Configuration root must be a mapping")

    expanded_data = expand_env_vars(raw_data)
    return AppConfig(**expanded_data)
