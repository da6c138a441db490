"""
Constants and defaults for riotprompt.
"""
from pathlib import Path
from typing import Final

LIBRARY_NAME: Final[str] = "riotprompt"
LIBRARY_VERSION: Final[str] = "0.1.0"
LIBRARY_DESCRIPTION: Final[str] = "Structured prompt assembly and multi-provider formatting for LLMs"

CONFIG_FILE_NAME: Final[str] = "riotprompt.json"
CONFIG_DIR: Final[Path] = Path.home() / ".riotprompt"
CONFIG_FILE: Final[Path] = CONFIG_DIR / "config.json"

LOGGING_ENV_VAR: Final[str] = "RIOTPROMPT_LOGGING"
MODEL_ENV_VAR: Final[str] = "RIOTPROMPT_MODEL"

DEFAULT_MODEL: Final[str] = "gpt-4o"
DEFAULT_MAX_TOKENS: Final[int] = 4096
DEFAULT_TIMEOUT: Final[float] = 120.0

CONTEXT_FILE_NAME: Final[str] = "context.md"

DEFAULT_IGNORE_PATTERNS: Final[list[str]] = [
    r"^\..*",  # hidden files
    r"\.(jpg|jpeg|png|gif|bmp|svg|webp|ico)$",
    r"\.(mp3|wav|ogg|aac|flac)$",
    r"\.(mp4|mov|avi|mkv|webm)$",
    r"\.(pdf|doc|docx|xls|xlsx|ppt|pptx)$",
    r"\.(zip|tar|gz|rar|7z)$",
]

# Upper bound applied to ignore patterns before compilation
MAX_PATTERN_LENGTH: Final[int] = 500

# Persona roles and the full chat role vocabulary
PERSONA_ROLES: Final[tuple[str, ...]] = ("system", "developer")
CHAT_ROLES: Final[tuple[str, ...]] = ("system", "developer", "user", "assistant")

API_KEY_ENV_VARS: Final[dict[str, str]] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

PROVIDER_BASE_URLS: Final[dict[str, str]] = {
    "openai": "https://api.openai.com/v1",
    "anthropic": "https://api.anthropic.com/v1",
    "gemini": "https://generativelanguage.googleapis.com/v1beta",
}

ANTHROPIC_API_VERSION: Final[str] = "2023-06-01"
STRUCTURED_TOOL_DESCRIPTION: Final[str] = "Output data in this structured format"
