"""
Parameter substitution for prompt text.

Placeholders take the form ``{{name}}`` or ``{{a.b.c}}``. Dotted names walk
nested mappings. Placeholders whose name cannot be resolved are left in the
text unchanged.
"""
import re
from typing import Any, Mapping, Optional

Parameters = dict[str, Any]

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*([A-Za-z_][\w-]*(?:\.[\w-]+)*)\s*\}\}")

_MISSING = object()


def create_parameters(parameters: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> Parameters:
    """Create a Parameters map from a mapping and/or keyword arguments.

    Raises:
        TypeError: If ``parameters`` is not a mapping or a key is not a string.
    """
    if parameters is not None and not isinstance(parameters, Mapping):
        raise TypeError(f"Parameters must be a mapping, got {type(parameters).__name__}")

    result: Parameters = dict(parameters or {})
    result.update(kwargs)

    for key in result:
        if not isinstance(key, str):
            raise TypeError(f"Parameter names must be strings, got {key!r}")

    return result


def merge_parameters(*layers: Optional[Mapping[str, Any]]) -> Parameters:
    """Merge parameter layers, later layers taking precedence.

    Pass layers lowest priority first, e.g.
    ``merge_parameters(loader_params, section_params, call_params)``.
    """
    merged: Parameters = {}
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def resolve(parameters: Mapping[str, Any], name: str) -> Any:
    """Look up a possibly dotted name.

    An exact key match wins over a dotted walk, so ``{"a.b": 1}`` resolves
    ``a.b`` directly.

    Returns:
        The value, or a sentinel when the name is unknown. Use
        `has_parameter` to test for presence.
    """
    if name in parameters:
        return parameters[name]

    current: Any = parameters
    for part in name.split("."):
        if isinstance(current, Mapping) and part in current:
            current = current[part]
        else:
            return _MISSING
    return current


def has_parameter(parameters: Mapping[str, Any], name: str) -> bool:
    """Check whether a possibly dotted name resolves."""
    return resolve(parameters, name) is not _MISSING


def apply_parameters(text: str, parameters: Optional[Mapping[str, Any]]) -> str:
    """Substitute placeholders in text.

    Args:
        text: Text containing ``{{name}}`` placeholders.
        parameters: Values to substitute. None or empty leaves text unchanged.

    Returns:
        The text with every resolvable placeholder replaced by the
        stringified value. Unresolved placeholders are preserved verbatim.

    Example:
        >>> apply_parameters("Hello, {{user.name}}!", {"user": {"name": "Ada"}})
        'Hello, Ada!'
        >>> apply_parameters("Hello, {{name}}!", {})
        'Hello, {{name}}!'
    """
    if not parameters or "{{" not in text:
        return text

    def replace_var(match: re.Match) -> str:
        value = resolve(parameters, match.group(1))
        if value is _MISSING:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(replace_var, text)


def find_placeholders(text: str) -> list[str]:
    """List placeholder names in order of first appearance."""
    seen: list[str] = []
    for match in PLACEHOLDER_PATTERN.finditer(text):
        name = match.group(1)
        if name not in seen:
            seen.append(name)
    return seen
