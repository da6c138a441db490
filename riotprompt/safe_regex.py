"""
ReDoS-safe regex compilation.

User-supplied patterns (ignore patterns in particular) are checked before
compilation. Patterns that are over-long or have a shape known to cause
catastrophic backtracking are rejected:

- nested quantifiers, e.g. ``(a+)+`` or ``([a-z]+)*``
- overlapping alternation under a quantifier, e.g. ``(a|ab)*``
- stacked wildcards, e.g. ``.*.*``

Rejected patterns are reported through the ``on_block`` callback and never
compiled. Glob patterns are translated into anchored regexes built only from
safe pieces.
"""
import re
from dataclasses import dataclass
from typing import Callable, Optional, Pattern

from .constants import MAX_PATTERN_LENGTH
from .errors import UnsafePatternError


# Reasons reported in SafeRegexResult.reason
PATTERN_TOO_LONG = "pattern_too_long"
NESTED_QUANTIFIERS = "nested_quantifiers"
OVERLAPPING_ALTERNATION = "overlapping_alternation"
CATASTROPHIC_BACKTRACKING = "catastrophic_backtracking"
INVALID_SYNTAX = "invalid_syntax"

BLOCK_MESSAGES = {
    PATTERN_TOO_LONG: "Pattern exceeds the maximum allowed length",
    NESTED_QUANTIFIERS: "Pattern contains nested quantifiers",
    OVERLAPPING_ALTERNATION: "Pattern contains a quantified alternation with overlapping branches",
    CATASTROPHIC_BACKTRACKING: "Pattern contains stacked wildcards",
}

# More unbounded wildcards than this in one pattern is treated as stacked
MAX_WILDCARDS = 2

_GROUP_PREFIX = re.compile(r"^\?(?:[:=!>]|<[=!]|P<\w+>|<\w+>|[aiLmsux-]+:)?")
_UNBOUNDED_BRACE = re.compile(r"\{\d*,\}")
_BOUNDED_BRACE = re.compile(r"\{\d*,?\d*\}")
_CLASS_ESCAPES = {"\\w", "\\d", "\\s", "\\W", "\\D", "\\S"}

BlockCallback = Callable[[str, str], None]


@dataclass
class SafeRegexResult:
    """Outcome of a safe compilation attempt.

    Attributes:
        safe: True when ``regex`` holds a usable compiled pattern.
        regex: The compiled pattern, if safe.
        reason: Machine-readable rejection reason.
        error: Human-readable detail for rejections.
    """
    safe: bool
    regex: Optional[Pattern[str]] = None
    reason: Optional[str] = None
    error: Optional[str] = None


def _skip_class(pattern: str, index: int) -> int:
    """Return the index just past the character class starting at ``index``."""
    i = index + 1
    if i < len(pattern) and pattern[i] == "^":
        i += 1
    # a leading ] is a literal
    if i < len(pattern) and pattern[i] == "]":
        i += 1
    while i < len(pattern):
        if pattern[i] == "\\":
            i += 2
            continue
        if pattern[i] == "]":
            return i + 1
        i += 1
    return i


def _unbounded_at(pattern: str, index: int) -> bool:
    """True if an unbounded quantifier starts at ``index``."""
    if index >= len(pattern):
        return False
    if pattern[index] in "+*":
        return True
    return _UNBOUNDED_BRACE.match(pattern, index) is not None


def _has_unbounded_quantifier(pattern: str) -> bool:
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i)
            continue
        if _unbounded_at(pattern, i):
            return True
        i += 1
    return False


def _iter_groups(pattern: str):
    """Yield ``(inner_text, end_index)`` for every parenthesized group."""
    stack: list[int] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i)
            continue
        if ch == "(":
            stack.append(i)
        elif ch == ")" and stack:
            start = stack.pop()
            inner = _GROUP_PREFIX.sub("", pattern[start + 1:i], count=1)
            yield inner, i
        i += 1


def _split_alternatives(inner: str) -> list[str]:
    """Split on top-level ``|`` only."""
    parts: list[str] = []
    depth = 0
    start = 0
    i = 0
    while i < len(inner):
        ch = inner[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(inner, i)
            continue
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif ch == "|" and depth == 0:
            parts.append(inner[start:i])
            start = i + 1
        i += 1
    parts.append(inner[start:])
    return parts


def _first_token(alternative: str) -> str:
    if alternative.startswith("\\"):
        return alternative[:2]
    return alternative[:1]


def _alternatives_overlap(alternatives: list[str]) -> bool:
    if len(alternatives) < 2:
        return False
    for a_index, first in enumerate(alternatives):
        for second in alternatives[a_index + 1:]:
            if not first or not second:
                return True
            if first.startswith(second) or second.startswith(first):
                return True
            heads = {_first_token(first), _first_token(second)}
            if "." in heads:
                return True
            if len(heads) == 1 and heads <= _CLASS_ESCAPES:
                return True
            if "\\w" in heads and heads & ({"\\d"} | {c for c in heads if c.isalnum()}):
                return True
    return False


def _count_wildcards(pattern: str) -> tuple[int, bool]:
    """Count unbounded ``.`` wildcards and report whether two are adjacent."""
    count = 0
    adjacent = False
    last_end = -1
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "[":
            i = _skip_class(pattern, i)
            continue
        if ch == "." and _unbounded_at(pattern, i + 1):
            count += 1
            if last_end == i:
                adjacent = True
            end = i + 2
            if end < len(pattern) and pattern[end] == "?":
                end += 1
            last_end = end
            i = end
            continue
        i += 1
    return count, adjacent


def analyze_pattern(pattern: str) -> Optional[str]:
    """Return the rejection reason for a dangerous pattern, or None.

    Only the shape of the pattern is inspected; nothing is compiled.
    """
    for inner, end in _iter_groups(pattern):
        if not _unbounded_at(pattern, end + 1):
            continue
        if _has_unbounded_quantifier(inner):
            return NESTED_QUANTIFIERS
        if _alternatives_overlap(_split_alternatives(inner)):
            return OVERLAPPING_ALTERNATION

    count, adjacent = _count_wildcards(pattern)
    if adjacent or count > MAX_WILDCARDS:
        return CATASTROPHIC_BACKTRACKING
    return None


def glob_to_regex(glob: str) -> str:
    """Translate a glob into an anchored regex string.

    ``**/`` matches any number of leading directories, ``**`` anything,
    ``*`` anything but a separator and ``?`` one non-separator character.

    Example:
        >>> glob_to_regex("*.txt")
        '^[^/]*\\\\.txt$'
    """
    parts = ["^"]
    i = 0
    while i < len(glob):
        if glob.startswith("**/", i):
            parts.append("(?:.*/)?")
            i += 3
        elif glob.startswith("**", i):
            parts.append(".*")
            i += 2
        elif glob[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif glob[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(glob[i]))
            i += 1
    parts.append("$")
    return "".join(parts)


class SafeRegex:
    """Compiles patterns only after they pass the safety checks.

    Example:
        safe = SafeRegex(on_block=lambda message, pattern: print(message))
        result = safe.create(r"^(a+)+$")
        result.safe    # False
        result.reason  # "nested_quantifiers"
    """

    def __init__(
        self,
        max_length: int = MAX_PATTERN_LENGTH,
        on_block: Optional[BlockCallback] = None,
        on_warning: Optional[BlockCallback] = None,
    ):
        """Initialize the compiler.

        Args:
            max_length: Longest pattern accepted.
            on_block: Called with (message, pattern) when a pattern is rejected.
            on_warning: Called with (message, pattern) for suspicious but
                accepted patterns.
        """
        self.max_length = max_length
        self._on_block = on_block
        self._on_warning = on_warning

    def _block(self, pattern: str, reason: str) -> SafeRegexResult:
        message = BLOCK_MESSAGES[reason]
        if self._on_block:
            self._on_block(message, pattern)
        return SafeRegexResult(safe=False, reason=reason, error=message)

    def _warn_bounded_repetition(self, pattern: str) -> None:
        if not self._on_warning:
            return
        for inner, end in _iter_groups(pattern):
            if _BOUNDED_BRACE.match(pattern, end + 1) and _has_unbounded_quantifier(inner):
                self._on_warning("Quantified group with bounded repetition", pattern)
                return

    def create(self, pattern: str, flags: int = 0) -> SafeRegexResult:
        """Check and compile a regex pattern.

        Args:
            pattern: Regex source.
            flags: ``re`` flags, e.g. ``re.IGNORECASE``.

        Returns:
            A SafeRegexResult. Dangerous patterns are never compiled.
        """
        if len(pattern) > self.max_length:
            return self._block(pattern, PATTERN_TOO_LONG)

        try:
            compiled = re.compile(pattern, flags)
        except re.error as e:
            return SafeRegexResult(safe=False, reason=INVALID_SYNTAX, error=str(e))

        reason = analyze_pattern(pattern)
        if reason:
            return self._block(pattern, reason)

        self._warn_bounded_repetition(pattern)
        return SafeRegexResult(safe=True, regex=compiled)

    def glob_to_regex(self, glob: str, flags: int = 0) -> SafeRegexResult:
        """Translate and compile a glob pattern."""
        if len(glob) > self.max_length:
            return self._block(glob, PATTERN_TOO_LONG)
        source = glob_to_regex(glob)
        reason = analyze_pattern(source)
        if reason:
            return self._block(glob, reason)
        try:
            compiled = re.compile(source, flags)
        except re.error as e:
            return SafeRegexResult(safe=False, reason=INVALID_SYNTAX, error=str(e))
        return SafeRegexResult(safe=True, regex=compiled)

    def compile(self, pattern: str, flags: int = 0) -> Pattern[str]:
        """Compile a pattern or raise.

        Raises:
            UnsafePatternError: If the pattern is rejected or invalid.
        """
        result = self.create(pattern, flags)
        if not result.safe or result.regex is None:
            raise UnsafePatternError(pattern, result.reason or INVALID_SYNTAX)
        return result.regex


def create_safe_regex(pattern: str, flags: int = 0) -> SafeRegexResult:
    return SafeRegex().create(pattern, flags)


def glob_to_safe_regex(glob: str, flags: int = 0) -> SafeRegexResult:
    return SafeRegex().glob_to_regex(glob, flags)
