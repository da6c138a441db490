"""
riotprompt - structured prompt assembly and multi-provider formatting.

Prompts are built from Sections of weighted items (parsed from markdown,
loaded from directories, or added directly), assembled into a Prompt, and
formatted into a provider-neutral ChatRequest that adapters turn into
OpenAI, Anthropic or Gemini payloads.
"""
from .constants import LIBRARY_DESCRIPTION, LIBRARY_NAME, LIBRARY_VERSION
from .errors import (
    ConfigError,
    ExecutionError,
    FileReadError,
    IndexOutOfRange,
    ParseError,
    RiotPromptError,
    SchemaTranslationError,
    UnsafePatternError,
    create_safe_error,
    sanitize_message,
)
from .items import (
    Content,
    Context,
    Instruction,
    Parameters,
    Section,
    Trait,
    Weighted,
    apply_parameters,
    create_content,
    create_context,
    create_instruction,
    create_parameters,
    create_section,
    create_trait,
    create_weighted,
)
from .prompt import Prompt, create_prompt
from .chat import ChatRequest, Message, ProviderResponse, Usage, create_request, json_schema_format
from .model_config import ModelConfig, ModelRegistry, configure_model, get_model_registry
from .parser import Parser, create_parser, extract_first_header, remove_first_header
from .safe_regex import SafeRegex, SafeRegexResult, create_safe_regex, glob_to_safe_regex
from .loader import Loader, create_loader
from .formatter import FormatOptions, Formatter, create_formatter
from .builder import Builder, create_builder
from .recipes import RecipeConfig, clear_templates, cook, get_templates, recipe, register_templates
from .logger import configure_logging, get_logger

__version__ = LIBRARY_VERSION

__all__ = [
    "LIBRARY_NAME",
    "LIBRARY_VERSION",
    "LIBRARY_DESCRIPTION",
    "RiotPromptError",
    "ParseError",
    "FileReadError",
    "IndexOutOfRange",
    "UnsafePatternError",
    "SchemaTranslationError",
    "ExecutionError",
    "ConfigError",
    "create_safe_error",
    "sanitize_message",
    "Parameters",
    "Weighted",
    "Instruction",
    "Context",
    "Content",
    "Trait",
    "Section",
    "apply_parameters",
    "create_parameters",
    "create_weighted",
    "create_instruction",
    "create_context",
    "create_content",
    "create_trait",
    "create_section",
    "Prompt",
    "create_prompt",
    "ChatRequest",
    "Message",
    "ProviderResponse",
    "Usage",
    "create_request",
    "json_schema_format",
    "ModelConfig",
    "ModelRegistry",
    "configure_model",
    "get_model_registry",
    "Parser",
    "create_parser",
    "extract_first_header",
    "remove_first_header",
    "SafeRegex",
    "SafeRegexResult",
    "create_safe_regex",
    "glob_to_safe_regex",
    "Loader",
    "create_loader",
    "FormatOptions",
    "Formatter",
    "create_formatter",
    "Builder",
    "create_builder",
    "RecipeConfig",
    "cook",
    "recipe",
    "register_templates",
    "get_templates",
    "clear_templates",
    "configure_logging",
    "get_logger",
]
