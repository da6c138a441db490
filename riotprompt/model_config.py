"""
Model registry for riotprompt.

Maps model names to the settings the formatter and execution layer need:
which role carries the persona, the tokenizer encoding label, whether the
model supports tool calls, and which provider family serves it.

Lookup order is exact-match overrides, then patterns in registration order,
then the default config. Unknown models never raise.
"""
import logging
import re
from dataclasses import dataclass, replace
from typing import Optional, Pattern, Union

from .chat import Role


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModelConfig:
    """Settings for a family of models.

    Attributes:
        family: Provider family ("openai", "anthropic", "gemini").
        persona_role: Role used for the persona message.
        encoding: Tokenizer encoding label.
        supports_tool_calls: Whether the model accepts tool definitions.
        pattern: Regex matched against model names.
        exact_match: Model name this config is pinned to.
        description: Free-form note.
    """
    family: str = "openai"
    persona_role: Role = "system"
    encoding: str = "gpt-4o"
    supports_tool_calls: bool = True
    pattern: Optional[Pattern[str]] = None
    exact_match: Optional[str] = None
    description: str = ""

    def matches(self, model: str) -> bool:
        if self.exact_match is not None:
            return model == self.exact_match
        if self.pattern is not None:
            return self.pattern.search(model) is not None
        return False


DEFAULT_MODEL_CONFIG = ModelConfig(description="Default model family")

DEFAULT_MODEL_CONFIGS: tuple[ModelConfig, ...] = (
    ModelConfig(
        family="openai",
        persona_role="developer",
        encoding="o200k_base",
        pattern=re.compile(r"^o\d", re.IGNORECASE),
        description="OpenAI O-series reasoning models",
    ),
    ModelConfig(
        family="openai",
        persona_role="system",
        encoding="gpt-4o",
        pattern=re.compile(r"^gpt-", re.IGNORECASE),
        description="OpenAI GPT models",
    ),
    ModelConfig(
        family="anthropic",
        persona_role="system",
        encoding="cl100k_base",
        pattern=re.compile(r"^claude", re.IGNORECASE),
        description="Anthropic Claude models",
    ),
    ModelConfig(
        family="gemini",
        persona_role="system",
        encoding="cl100k_base",
        pattern=re.compile(r"^gemini", re.IGNORECASE),
        description="Google Gemini models",
    ),
)


class ModelRegistry:
    """Resolves model names to ModelConfig entries.

    Example:
        registry = ModelRegistry()
        registry.get_persona_role("o1-mini")        # "developer"
        registry.get_persona_role("claude-3-opus")  # "system"
        registry.register(ModelConfig(exact_match="my-model", family="anthropic"))
    """

    def __init__(
        self,
        configs: Optional[tuple[ModelConfig, ...]] = DEFAULT_MODEL_CONFIGS,
        default: ModelConfig = DEFAULT_MODEL_CONFIG,
    ) -> None:
        self._exact: dict[str, ModelConfig] = {}
        self._patterns: list[ModelConfig] = []
        self._default = default
        for config in configs or ():
            self.register(config)

    def register(self, config: ModelConfig) -> None:
        """Register a model config.

        Raises:
            ValueError: If the config has neither an exact match nor a pattern.
        """
        if config.exact_match is not None:
            self._exact[config.exact_match] = config
        elif config.pattern is not None:
            self._patterns.append(config)
        else:
            raise ValueError("A model config needs either exact_match or pattern")

    def get_config(self, model: Optional[str]) -> ModelConfig:
        """Resolve the config for a model name."""
        if not model:
            return self._default

        exact = self._exact.get(model)
        if exact is not None:
            return exact

        for config in self._patterns:
            if config.matches(model):
                return config

        logger.debug(f"No model config for '{model}', using default")
        return self._default

    def get_persona_role(self, model: Optional[str]) -> Role:
        return self.get_config(model).persona_role

    def get_encoding(self, model: Optional[str]) -> str:
        return self.get_config(model).encoding

    def supports_tool_calls(self, model: Optional[str]) -> bool:
        return self.get_config(model).supports_tool_calls

    def get_model_family(self, model: Optional[str]) -> str:
        return self.get_config(model).family

    @property
    def default(self) -> ModelConfig:
        return self._default

    def set_default(self, config: ModelConfig) -> None:
        self._default = config

    def list_configs(self) -> list[ModelConfig]:
        """All registered configs, exact matches first."""
        return list(self._exact.values()) + list(self._patterns)


_registry: Optional[ModelRegistry] = None


def get_model_registry() -> ModelRegistry:
    """Get the shared model registry."""
    global _registry
    if _registry is None:
        _registry = ModelRegistry()
    return _registry


def reset_model_registry() -> None:
    """Discard the shared registry and its custom registrations."""
    global _registry
    _registry = None


def configure_model(model: Union[str, Pattern[str]], **settings: object) -> ModelConfig:
    """Register settings for a model name or pattern on the shared registry.

    Args:
        model: Exact model name, or a compiled pattern.
        **settings: ModelConfig fields to set.

    Returns:
        The registered config.
    """
    if isinstance(model, str):
        config = replace(DEFAULT_MODEL_CONFIG, exact_match=model, description="", **settings)
    else:
        config = replace(DEFAULT_MODEL_CONFIG, pattern=model, description="", **settings)
    get_model_registry().register(config)
    return config


def get_persona_role(model: Optional[str]) -> Role:
    return get_model_registry().get_persona_role(model)


def get_encoding(model: Optional[str]) -> str:
    return get_model_registry().get_encoding(model)


def supports_tool_calls(model: Optional[str]) -> bool:
    return get_model_registry().supports_tool_calls(model)


def get_model_family(model: Optional[str]) -> str:
    return get_model_registry().get_model_family(model)
