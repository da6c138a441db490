"""
Property-based tests for configuration loading, error sanitization and
logging helpers.
"""

import json
import logging
import tempfile
from pathlib import Path

import allure
import pytest
from hypothesis import given, settings, strategies as st

from riotprompt.config import RiotConfig, load_config, validate_config
from riotprompt.constants import DEFAULT_MAX_TOKENS, DEFAULT_MODEL
from riotprompt.errors import (
    ConfigError,
    RiotPromptError,
    create_safe_error,
    format_error_for_display,
    redact_secrets,
    sanitize_message,
)
from riotprompt.logger import (
    LIBRARY_LOGGER,
    SensitiveDataFilter,
    configure_logging,
    get_logger,
    wrap_logger,
)


def path_segment_strategy():
    return st.from_regex(r"^[a-z][a-z0-9_]{0,8}$", fullmatch=True)


@allure.feature("Errors")
@allure.story("Sanitization")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(segments=st.lists(path_segment_strategy(), min_size=2, max_size=5))
def test_absolute_paths_reduced_to_base_name(segments: list[str]):
    """No absolute directory prefix survives sanitization."""
    path = "/" + "/".join(segments)
    message = sanitize_message(f"Cannot open {path} for reading")

    assert message == f"Cannot open {segments[-1]} for reading"


@allure.feature("Errors")
@allure.story("Sanitization")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(key_body=st.from_regex(r"^[A-Za-z0-9]{24,40}$", fullmatch=True))
def test_api_keys_are_redacted(key_body: str):
    for key in (f"sk-{key_body}", f"sk-ant-{key_body}", f"sk-proj-{key_body}"):
        assert key not in redact_secrets(f"auth failed for {key}")
        assert "[REDACTED]" in sanitize_message(f"key={key}")


@allure.feature("Errors")
@allure.story("Sanitization")
@allure.severity(allure.severity_level.NORMAL)
def test_long_messages_are_capped():
    message = sanitize_message("x" * 2000)

    assert len(message) <= 503
    assert message.endswith("...")


@allure.feature("Errors")
@allure.story("Safe errors")
@allure.severity(allure.severity_level.NORMAL)
def test_create_safe_error_chains_and_sanitizes_context():
    original = OSError("Permission denied: /home/user/secret/notes.md")

    safe = create_safe_error(original, {"directory": "/home/user/secret", "attempt": 2})

    assert isinstance(safe, RiotPromptError)
    assert safe.__cause__ is original
    assert "/home/user" not in str(safe)
    assert "notes.md" in str(safe)
    assert safe.context == {"directory": "secret", "attempt": 2}
    assert format_error_for_display(ValueError("bad")) == "ValueError: bad"


@allure.feature("Configuration")
@allure.story("Defaults")
@allure.severity(allure.severity_level.NORMAL)
def test_config_defaults():
    config = RiotConfig()

    assert config.default_model == DEFAULT_MODEL
    assert config.max_tokens == DEFAULT_MAX_TOKENS
    assert config.api_keys == {}


@allure.feature("Configuration")
@allure.story("Loading")
@allure.severity(allure.severity_level.CRITICAL)
def test_load_config_reads_file_and_env_overrides(monkeypatch):
    monkeypatch.setenv("RIOTPROMPT_MODEL", "claude-3-opus")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "env-key")
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "riotprompt.json"
        path.write_text(json.dumps({
            "default_model": "gpt-4o-mini",
            "max_tokens": 256,
            "format": {"section_separator": "tag"},
            "api_keys": {"openai": "file-key"},
        }), encoding="utf-8")

        config = load_config(path)

    assert config.default_model == "claude-3-opus"
    assert config.max_tokens == 256
    assert config.format == {"section_separator": "tag"}
    assert config.get_api_key("openai") == "file-key"
    assert config.get_api_key("anthropic") == "env-key"
    assert "api_keys" not in config.to_dict()


@allure.feature("Configuration")
@allure.story("Validation")
@allure.severity(allure.severity_level.NORMAL)
def test_invalid_config_raises_config_error():
    with tempfile.TemporaryDirectory() as tmpdir:
        broken = Path(tmpdir) / "broken.json"
        broken.write_text('{"max_tokens": 1,\n  oops}', encoding="utf-8")
        wrong_types = Path(tmpdir) / "types.json"
        wrong_types.write_text(json.dumps({"max_tokens": "many", "ignore_patterns": [1]}), encoding="utf-8")

        with pytest.raises(ConfigError) as syntax_error:
            load_config(broken)
        with pytest.raises(ConfigError) as type_error:
            load_config(wrong_types)
        with pytest.raises(ConfigError):
            load_config(Path(tmpdir) / "absent.json")

    assert syntax_error.value.line == 2
    assert "max_tokens" in str(type_error.value)
    assert "ignore_patterns" in str(type_error.value)


@allure.feature("Configuration")
@allure.story("Validation")
@allure.severity(allure.severity_level.MINOR)
def test_validate_config_accepts_valid_data():
    assert validate_config({"default_model": "gpt-4o", "temperature": 0.2}) == []
    assert validate_config([]) == ["Configuration must be an object"]
    assert validate_config({"max_tokens": True}) == ["Field 'max_tokens' must be an integer"]


@allure.feature("Logging")
@allure.story("Component loggers")
@allure.severity(allure.severity_level.NORMAL)
def test_component_loggers_are_children_of_given_logger():
    custom = logging.getLogger("host.app")

    assert wrap_logger(custom, "Loader").name == "host.app.Loader"
    assert wrap_logger(None, "Parser").name == "riotprompt.Parser"
    assert get_logger("Formatter").name == "riotprompt.Formatter"
    assert get_logger() is LIBRARY_LOGGER


@allure.feature("Logging")
@allure.story("Secret masking")
@allure.severity(allure.severity_level.CRITICAL)
def test_sensitive_data_filter_masks_keys():
    record = logging.LogRecord(
        "riotprompt", logging.INFO, __file__, 1,
        "using key %s", ("sk-abcdefghijklmnopqrstuvwxyz",), None,
    )

    assert SensitiveDataFilter().filter(record)
    assert record.getMessage() == "using key [REDACTED]"


@allure.feature("Logging")
@allure.story("Configuration")
@allure.severity(allure.severity_level.MINOR)
def test_configure_logging_toggles_handler(monkeypatch):
    monkeypatch.delenv("RIOTPROMPT_LOGGING", raising=False)
    original_level = LIBRARY_LOGGER.level
    try:
        configure_logging(level=logging.DEBUG, enabled=True)
        handlers = [h for h in LIBRARY_LOGGER.handlers if getattr(h, "_riotprompt_handler", False)]
        assert len(handlers) == 1
        assert LIBRARY_LOGGER.level == logging.DEBUG

        configure_logging()
        handlers = [h for h in LIBRARY_LOGGER.handlers if getattr(h, "_riotprompt_handler", False)]
        assert handlers == []
        assert not LIBRARY_LOGGER.isEnabledFor(logging.CRITICAL)
    finally:
        LIBRARY_LOGGER.setLevel(original_level)
