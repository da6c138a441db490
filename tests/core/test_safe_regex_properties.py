"""
Property-based tests for ReDoS-safe regex compilation.

Tests that dangerous pattern shapes are rejected before compilation and
that glob translation produces anchored patterns.
"""

import re

import allure
import pytest
from hypothesis import given, settings, strategies as st

from riotprompt import UnsafePatternError
from riotprompt.constants import DEFAULT_IGNORE_PATTERNS
from riotprompt.safe_regex import (
    CATASTROPHIC_BACKTRACKING,
    INVALID_SYNTAX,
    NESTED_QUANTIFIERS,
    OVERLAPPING_ALTERNATION,
    PATTERN_TOO_LONG,
    SafeRegex,
    analyze_pattern,
    create_safe_regex,
    glob_to_regex,
    glob_to_safe_regex,
)


def atom_strategy():
    """Generate simple regex atoms that can carry a quantifier."""
    return st.sampled_from(["a", "b", "x", "\\d", "\\w", "[a-z]", "[0-9]", "."])


def glob_strategy():
    """Generate glob patterns from safe pieces."""
    piece = st.one_of(
        st.sampled_from(["*", "**/", "?", ".", "-", "_", "/"]),
        st.from_regex(r"^[a-z]{1,5}$", fullmatch=True),
    )
    return st.lists(piece, min_size=1, max_size=8).map("".join)


@allure.feature("Safe Regex")
@allure.story("Nested quantifiers")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(
    atom=atom_strategy(),
    inner=st.sampled_from(["+", "*", "{1,}"]),
    outer=st.sampled_from(["+", "*", "{2,}"]),
)
def test_quantified_group_with_unbounded_inner_quantifier_is_blocked(atom, inner, outer):
    """Any group containing an unbounded quantifier and itself unboundedly quantified is rejected."""
    pattern = f"({atom}{inner}){outer}"
    blocked = []

    result = SafeRegex(on_block=lambda message, p: blocked.append((message, p))).create(pattern)

    assert not result.safe
    assert result.regex is None
    assert result.reason == NESTED_QUANTIFIERS
    assert blocked == [(result.error, pattern)]


@allure.feature("Safe Regex")
@allure.story("Nested quantifiers")
@allure.severity(allure.severity_level.CRITICAL)
def test_known_redos_patterns_are_blocked():
    for pattern in ["(a+)+", "^([a-zA-Z]+)*$", "(\\d+)*x", "(?:a*b*)+"]:
        result = create_safe_regex(pattern)
        assert not result.safe, pattern
        assert result.reason == NESTED_QUANTIFIERS
        assert "nested" in result.error.lower()


@allure.feature("Safe Regex")
@allure.story("Overlapping alternation")
@allure.severity(allure.severity_level.NORMAL)
def test_overlapping_alternation_under_quantifier_is_blocked():
    assert analyze_pattern("(a|ab)*") == OVERLAPPING_ALTERNATION
    assert analyze_pattern("(a|a)+") == OVERLAPPING_ALTERNATION
    assert analyze_pattern("(\\w|\\d)+") == OVERLAPPING_ALTERNATION
    assert analyze_pattern("(.|x)*") == OVERLAPPING_ALTERNATION
    # disjoint branches are fine
    assert analyze_pattern("(cat|dog)+") is None
    # and alternation without a quantifier is never a problem
    assert analyze_pattern("(a|ab)") is None


@allure.feature("Safe Regex")
@allure.story("Stacked wildcards")
@allure.severity(allure.severity_level.NORMAL)
def test_stacked_wildcards_are_blocked():
    assert analyze_pattern(".*.*") == CATASTROPHIC_BACKTRACKING
    assert analyze_pattern("a.*b.*c.*d") == CATASTROPHIC_BACKTRACKING
    assert analyze_pattern("^.*\\.md$") is None
    assert analyze_pattern("a.*b.+c") is None


@allure.feature("Safe Regex")
@allure.story("Length limit")
@allure.severity(allure.severity_level.NORMAL)
@settings(max_examples=50)
@given(extra=st.integers(min_value=1, max_value=50))
def test_overlong_patterns_are_blocked(extra: int):
    safe_regex = SafeRegex(max_length=20)

    result = safe_regex.create("a" * (20 + extra))

    assert not result.safe
    assert result.reason == PATTERN_TOO_LONG
    assert safe_regex.create("a" * 20).safe


@allure.feature("Safe Regex")
@allure.story("Invalid syntax")
@allure.severity(allure.severity_level.NORMAL)
def test_invalid_syntax_is_reported_not_blocked():
    blocked = []

    result = SafeRegex(on_block=lambda message, p: blocked.append(p)).create("[invalid")

    assert not result.safe
    assert result.reason == INVALID_SYNTAX
    assert result.error
    assert blocked == []


@allure.feature("Safe Regex")
@allure.story("Safe patterns")
@allure.severity(allure.severity_level.CRITICAL)
def test_default_and_common_ignore_patterns_compile():
    common = [r"\.git", r"node_modules", r"^\.DS_Store$", r"\.log$", r"^build/", r"a{1,5}"]

    for pattern in [*DEFAULT_IGNORE_PATTERNS, *common]:
        result = create_safe_regex(pattern, re.IGNORECASE)
        assert result.safe, pattern
        assert result.regex is not None


@allure.feature("Safe Regex")
@allure.story("Warnings")
@allure.severity(allure.severity_level.MINOR)
def test_bounded_repetition_of_quantified_group_warns_but_compiles():
    warnings = []

    result = SafeRegex(on_warning=lambda message, p: warnings.append(p)).create("(a+){2,3}")

    assert result.safe
    assert warnings == ["(a+){2,3}"]


@allure.feature("Safe Regex")
@allure.story("Strict compilation")
@allure.severity(allure.severity_level.NORMAL)
def test_compile_raises_for_rejected_patterns():
    safe_regex = SafeRegex()

    with pytest.raises(UnsafePatternError) as exc_info:
        safe_regex.compile("(a+)+")

    assert exc_info.value.reason == NESTED_QUANTIFIERS
    assert safe_regex.compile("^abc$").match("abc")


@allure.feature("Safe Regex")
@allure.story("Glob translation")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(glob=glob_strategy())
def test_glob_translation_is_anchored_and_checked(glob: str):
    """Translated globs are anchored and pass the same shape checks as regexes."""
    source = glob_to_regex(glob)
    result = glob_to_safe_regex(glob)

    assert source.startswith("^") and source.endswith("$")
    assert result.safe == (analyze_pattern(source) is None)
    if result.safe:
        assert result.regex.pattern == source


@allure.feature("Safe Regex")
@allure.story("Glob translation")
@allure.severity(allure.severity_level.NORMAL)
def test_glob_with_stacked_double_stars_is_blocked():
    blocked = []
    safe_regex = SafeRegex(on_block=lambda message, pattern: blocked.append(pattern))

    result = safe_regex.glob_to_regex("**/**/**/**/x")

    assert not result.safe
    assert result.reason == CATASTROPHIC_BACKTRACKING
    assert result.regex is None
    assert blocked == ["**/**/**/**/x"]
    assert safe_regex.glob_to_regex("src/**/*.py").safe


@allure.feature("Safe Regex")
@allure.story("Glob translation")
@allure.severity(allure.severity_level.NORMAL)
def test_glob_semantics():
    ts = glob_to_safe_regex("**/*.ts").regex
    assert ts.match("index.ts")
    assert ts.match("src/deep/index.ts")
    assert not ts.match("index.tsx")

    star = glob_to_safe_regex("*.txt").regex
    assert star.match("notes.txt")
    assert not star.match("dir/notes.txt")

    single = glob_to_safe_regex("file?.md").regex
    assert single.match("file1.md")
    assert not single.match("file12.md")
