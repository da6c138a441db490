"""
Logging helpers for riotprompt.

Every module logs through ``logging.getLogger(__name__)`` under the
``riotprompt`` namespace. Components that accept a caller-supplied logger
derive a child from it with `wrap_logger`, so log records stay attributable
to the component that emitted them.
"""
import logging
import os
from typing import Optional

from .constants import LIBRARY_NAME, LOGGING_ENV_VAR
from .errors import redact_secrets


LIBRARY_LOGGER = logging.getLogger(LIBRARY_NAME)
LIBRARY_LOGGER.addHandler(logging.NullHandler())

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class SensitiveDataFilter(logging.Filter):
    """Masks API keys in log records before they are emitted."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        masked = redact_secrets(message)
        if masked != message:
            record.msg = masked
            record.args = None
        return True


def is_logging_enabled() -> bool:
    """Check whether logging output was requested via the environment."""
    value = os.environ.get(LOGGING_ENV_VAR, "").strip().lower()
    return value in ("1", "true", "yes", "on")


def configure_logging(
    level: int = logging.INFO,
    enabled: Optional[bool] = None,
    fmt: str = DEFAULT_FORMAT,
) -> logging.Logger:
    """Attach a masking stream handler to the library logger.

    Args:
        level: Log level for the library logger.
        enabled: Force logging on or off. Defaults to the value of the
            RIOTPROMPT_LOGGING environment variable.
        fmt: Format string for the stream handler.

    Returns:
        The configured library logger.
    """
    if enabled is None:
        enabled = is_logging_enabled()

    for handler in list(LIBRARY_LOGGER.handlers):
        if getattr(handler, "_riotprompt_handler", False):
            LIBRARY_LOGGER.removeHandler(handler)

    if not enabled:
        LIBRARY_LOGGER.setLevel(logging.CRITICAL + 1)
        return LIBRARY_LOGGER

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(SensitiveDataFilter())
    handler._riotprompt_handler = True  # type: ignore[attr-defined]
    LIBRARY_LOGGER.addHandler(handler)
    LIBRARY_LOGGER.setLevel(level)
    return LIBRARY_LOGGER


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """Get the library logger or a child logger for a component."""
    if component:
        return LIBRARY_LOGGER.getChild(component)
    return LIBRARY_LOGGER


def wrap_logger(logger: Optional[logging.Logger], component: str) -> logging.Logger:
    """Derive a component logger from a caller-supplied logger.

    Args:
        logger: The injected logger, or None to use the library logger.
        component: Component name, e.g. "Loader".

    Returns:
        A child logger named after the component.
    """
    return (logger or LIBRARY_LOGGER).getChild(component)
