"""
Configuration management for riotprompt.

Configuration is read from ``riotprompt.json`` in the working directory, or
from ``~/.riotprompt/config.json`` when no local file exists. Environment
variables take precedence over file values for the default model and for
provider API keys.
"""
import json
import os
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any, Optional, Union

from .constants import (
    API_KEY_ENV_VARS,
    CONFIG_FILE,
    CONFIG_FILE_NAME,
    DEFAULT_IGNORE_PATTERNS,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    MODEL_ENV_VAR,
)
from .errors import ConfigError


@dataclass
class RiotConfig:
    """Library configuration.

    Attributes:
        default_model: Model used when a command does not name one.
        max_tokens: Default completion budget for execution.
        temperature: Default sampling temperature, or None for provider default.
        format: Formatter options, keyed like FormatOptions fields.
        ignore_patterns: Loader ignore patterns.
        api_keys: Provider name to API key.
    """
    default_model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    temperature: Optional[float] = None
    format: dict[str, Any] = field(default_factory=dict)
    ignore_patterns: list[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    api_keys: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the config, leaving API keys out."""
        data = asdict(self)
        data.pop("api_keys")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RiotConfig":
        """Create a RiotConfig from a dictionary.

        Raises:
            ConfigError: If a field has the wrong type.
        """
        errors = validate_config(data)
        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        return cls(
            default_model=data.get("default_model", DEFAULT_MODEL),
            max_tokens=data.get("max_tokens", DEFAULT_MAX_TOKENS),
            temperature=data.get("temperature"),
            format=dict(data.get("format", {})),
            ignore_patterns=list(data.get("ignore_patterns", DEFAULT_IGNORE_PATTERNS)),
            api_keys=dict(data.get("api_keys", {})),
        )

    def get_api_key(self, provider: str) -> Optional[str]:
        """Get the API key for a provider family."""
        return self.api_keys.get(provider)


def validate_config(data: Any) -> list[str]:
    """Validate a configuration dictionary.

    Returns:
        A list of error messages, empty when the data is valid.
    """
    if not isinstance(data, dict):
        return ["Configuration must be an object"]

    errors: list[str] = []

    if "default_model" in data and not isinstance(data["default_model"], str):
        errors.append("Field 'default_model' must be a string")

    if "max_tokens" in data and (
        not isinstance(data["max_tokens"], int) or isinstance(data["max_tokens"], bool)
    ):
        errors.append("Field 'max_tokens' must be an integer")

    temperature = data.get("temperature")
    if temperature is not None and not isinstance(temperature, (int, float)):
        errors.append("Field 'temperature' must be a number or null")

    if "format" in data and not isinstance(data["format"], dict):
        errors.append("Field 'format' must be an object")

    if "ignore_patterns" in data:
        patterns = data["ignore_patterns"]
        if not isinstance(patterns, list) or not all(isinstance(p, str) for p in patterns):
            errors.append("Field 'ignore_patterns' must be a list of strings")

    if "api_keys" in data:
        keys = data["api_keys"]
        if not isinstance(keys, dict) or not all(isinstance(v, str) for v in keys.values()):
            errors.append("Field 'api_keys' must map provider names to strings")

    return errors


def find_config_file(cwd: Optional[Path] = None) -> Optional[Path]:
    """Locate the config file, preferring the working directory."""
    local = (cwd or Path.cwd()) / CONFIG_FILE_NAME
    if local.is_file():
        return local
    if CONFIG_FILE.is_file():
        return CONFIG_FILE
    return None


def load_config(path: Optional[Union[str, Path]] = None) -> RiotConfig:
    """Load configuration from file and environment.

    Args:
        path: Explicit config file. When omitted the default locations are
            searched and a missing file yields the defaults.

    Returns:
        The loaded RiotConfig.

    Raises:
        ConfigError: If the file is malformed or fails validation, or an
            explicit path does not exist.
    """
    config_path = Path(path) if path is not None else find_config_file()

    if config_path is None:
        config = RiotConfig()
    else:
        try:
            text = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read config file {config_path.name}: {e.strerror or e}")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON: {e.msg}", line=e.lineno, column=e.colno)

        config = RiotConfig.from_dict(data)

    _apply_env(config)
    return config


def _apply_env(config: RiotConfig) -> None:
    """Apply environment variable overrides in place."""
    model = os.environ.get(MODEL_ENV_VAR)
    if model:
        config.default_model = model

    for provider, env_key in API_KEY_ENV_VARS.items():
        value = os.environ.get(env_key)
        if value:
            config.api_keys[provider] = value


_config: Optional[RiotConfig] = None


def get_config() -> RiotConfig:
    """Get the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Forget the cached configuration."""
    global _config
    _config = None
