"""
Error types and error sanitization for riotprompt.

Local, recoverable failures (a single unreadable file, a single unsafe ignore
pattern) are logged and absorbed by the component that hits them. Programmer
errors such as an invalid section index are raised to the caller.

Messages that may leave the process go through `sanitize_message`, which
strips absolute paths down to their base name and redacts API keys.
"""
import os
import re
from typing import Any, Optional


class RiotPromptError(Exception):
    """Base class for all riotprompt errors.

    Attributes:
        context: Optional key/value details about the failed operation.
    """

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        self.context = dict(context or {})
        super().__init__(message)


class ParseError(RiotPromptError):
    """Raised when markdown or serialized prompt input cannot be parsed."""


class FileReadError(RiotPromptError):
    """Raised when a single file cannot be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(
            f"Failed to read file {os.path.basename(path)}: {reason}",
            {"file": os.path.basename(path)},
        )


class IndexOutOfRange(RiotPromptError, IndexError):
    """Raised when a Section is mutated with an index outside its items."""

    def __init__(self, index: int, length: int):
        self.index = index
        self.length = length
        super().__init__(
            f"Index {index} is out of range for section with {length} items",
            {"index": index, "length": length},
        )


class UnsafePatternError(RiotPromptError):
    """Raised when a regex pattern is too dangerous to compile."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(
            f"Unsafe pattern rejected ({reason})",
            {"pattern_length": len(pattern), "reason": reason},
        )


class SchemaTranslationError(RiotPromptError):
    """Raised when a structured-output schema cannot be adapted for a provider."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"[{provider}] {message}", {"provider": provider})


class ExecutionError(RiotPromptError):
    """Raised when a provider request fails."""


class ConfigError(RiotPromptError):
    """Raised when configuration parsing or validation fails."""

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.line = line
        self.column = column

        if line is not None and column is not None:
            full_message = f"{message} (line {line}, column {column})"
        elif line is not None:
            full_message = f"{message} (line {line})"
        else:
            full_message = message

        super().__init__(full_message)


# Provider key shapes, most specific first
_SECRET_PATTERNS = [
    re.compile(r"sk-ant-[A-Za-z0-9_-]+"),
    re.compile(r"sk-proj-[A-Za-z0-9_-]+"),
    re.compile(r"sk-[A-Za-z0-9]{20,}"),
    re.compile(r"AIza[A-Za-z0-9_-]{35}"),
]

# POSIX absolute paths and Windows drive paths
_ABSOLUTE_PATH_PATTERN = re.compile(
    r"(?:(?<![\w.])/(?:[^\s/'\"]+/)+([^\s/'\"]+))"
    r"|(?:\b[A-Za-z]:\\(?:[^\s\\'\"]+\\)+([^\s\\'\"]+))"
)

REDACTED = "[REDACTED]"
MAX_MESSAGE_LENGTH = 500


def redact_secrets(text: str) -> str:
    """Replace API-key shaped substrings with a redaction marker."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


def strip_paths(text: str) -> str:
    """Reduce absolute paths in text to their final component."""
    def _base_name(match: re.Match) -> str:
        return match.group(1) or match.group(2) or ""

    return _ABSOLUTE_PATH_PATTERN.sub(_base_name, text)


def sanitize_message(message: str) -> str:
    """Make an error message safe for external display.

    Args:
        message: Raw error message.

    Returns:
        The message with secrets redacted, absolute paths reduced to base
        names and length capped.
    """
    cleaned = strip_paths(redact_secrets(message))
    if len(cleaned) > MAX_MESSAGE_LENGTH:
        cleaned = cleaned[:MAX_MESSAGE_LENGTH] + "..."
    return cleaned


def create_safe_error(
    error: BaseException,
    context: Optional[dict[str, Any]] = None,
) -> RiotPromptError:
    """Wrap an exception in a RiotPromptError with a sanitized message.

    Args:
        error: The original exception.
        context: Optional details about the failed operation. String values
            are sanitized the same way as the message.

    Returns:
        A new RiotPromptError chained to the original via __cause__.
    """
    safe_context = {
        key: sanitize_message(value) if isinstance(value, str) else value
        for key, value in (context or {}).items()
    }
    safe_error = RiotPromptError(sanitize_message(str(error) or type(error).__name__), safe_context)
    safe_error.__cause__ = error
    return safe_error


def format_error_for_display(error: BaseException) -> str:
    """Format an error as a user-facing one-line message."""
    message = sanitize_message(str(error))
    return f"{type(error).__name__}: {message}" if message else type(error).__name__
