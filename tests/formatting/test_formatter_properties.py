"""
Property-based tests for the Formatter.

Tests separator styles, heading depth, persona role selection and the
shape of formatted chat requests.
"""

import allure
import pytest
from hypothesis import given, settings, strategies as st

from riotprompt.formatter import FormatOptions, Formatter, create_formatter
from riotprompt.items import Section, create_section
from riotprompt.model_config import ModelConfig, ModelRegistry
from riotprompt.parser import Parser
from riotprompt.prompt import create_prompt


def word_strategy():
    return st.from_regex(r"^[A-Za-z][A-Za-z0-9]{0,8}$", fullmatch=True)


@st.composite
def section_tree_strategy(draw):
    """A titled section with leaf items followed by titled child sections."""
    title = draw(word_strategy())
    leaves = draw(st.lists(word_strategy(), min_size=1, max_size=4))
    children = draw(st.lists(
        st.tuples(word_strategy(), st.lists(word_strategy(), min_size=1, max_size=3)),
        max_size=3,
    ))
    section = create_section(title=title, items=leaves)
    for child_title, child_items in children:
        section.add(create_section(title=child_title, items=child_items))
    return section


def shape(section: Section):
    """Titles and texts of a section tree, for structural comparison."""
    return (
        section.title,
        [shape(item) if isinstance(item, Section) else item.text for item in section.items],
    )


def instructions(*texts: str) -> Section:
    return create_section(title="Instructions", items=list(texts))


@allure.feature("Formatter")
@allure.story("Markdown round trip")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(section=section_tree_strategy())
def test_markdown_output_parses_back_to_same_structure(section: Section):
    """Formatting a section as markdown and parsing it back preserves titles and item order."""
    formatter = Formatter(FormatOptions(section_separator="markdown"))

    text = formatter.format_section(section)
    parsed = Parser().parse(text)

    assert shape(parsed) == shape(section)


@allure.feature("Formatter")
@allure.story("Purity")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(section=section_tree_strategy(), style=st.sampled_from(["tag", "markdown"]))
def test_formatting_is_deterministic_and_leaves_input_untouched(section: Section, style: str):
    formatter = Formatter(FormatOptions(area_separator=style, section_separator=style))
    before = shape(section)

    first = formatter.format_area(section)
    second = formatter.format_area(section)

    assert first == second
    assert shape(section) == before


@allure.feature("Formatter")
@allure.story("Tag style")
@allure.severity(allure.severity_level.NORMAL)
def test_tag_area_with_markdown_children():
    area = instructions("Do X.", "Do Y.")
    area.add(create_section(title="Rules", items=["Be brief."]))

    text = Formatter().format_area(area)

    assert text == "<Instructions>\nDo X.\n\nDo Y.\n\n## Rules\n\nBe brief.\n</Instructions>"


@allure.feature("Formatter")
@allure.story("Tag style")
@allure.severity(allure.severity_level.MINOR)
def test_title_prefix_and_indentation():
    options = FormatOptions(
        section_title_prefix="Section",
        section_title_separator=":",
        section_indentation=True,
    )

    text = Formatter(options).format_area(instructions("one\ntwo"))

    assert text == "<Section: Instructions>\n  one\n  two\n</Section: Instructions>"
    assert Formatter().format_area(create_section(title="Empty")) == "<Empty>\n</Empty>"


@allure.feature("Formatter")
@allure.story("Markdown depth")
@allure.severity(allure.severity_level.NORMAL)
def test_markdown_headings_cap_at_six():
    root = create_section(title="Level1")
    current = root
    for level in range(2, 9):
        child = create_section(title=f"Level{level}", items=[f"body {level}"])
        current.add(child)
        current = child

    text = Formatter(FormatOptions(area_separator="markdown")).format_area(root)
    headings = [line for line in text.splitlines() if line.startswith("#")]

    assert headings[0] == "# Level1"
    assert headings[5] == "###### Level6"
    assert headings[6] == "###### Level7"
    assert headings[7] == "###### Level8"


@allure.feature("Formatter")
@allure.story("Markdown depth")
@allure.severity(allure.severity_level.MINOR)
def test_section_depth_offsets_area_headings():
    options = FormatOptions(area_separator="markdown", section_depth=2)

    assert Formatter(options).format_area(instructions("x")) == "### Instructions\n\nx"


@allure.feature("Formatter")
@allure.story("Untitled sections")
@allure.severity(allure.severity_level.MINOR)
def test_untitled_section_renders_body_only():
    section = create_section(items=["a", "b"])

    assert Formatter().format_section(section) == "a\n\nb"


@allure.feature("Formatter")
@allure.story("Persona role")
@allure.severity(allure.severity_level.CRITICAL)
@pytest.mark.parametrize("model,role", [
    ("gpt-4o", "system"),
    ("o1-mini", "developer"),
    ("o3", "developer"),
    ("claude-3-opus", "system"),
    ("unknown-model", "system"),
])
def test_persona_role_follows_model(model: str, role: str):
    prompt = create_prompt(
        instructions("Do X."),
        persona=create_section(title="Persona", items=["You are helpful."]),
    )

    request = Formatter().format_prompt(model, prompt)

    assert request.model == model
    assert request.messages[0].role == role
    assert request.messages[0].content == "<Persona>\nYou are helpful.\n</Persona>"
    assert request.messages[1].role == "user"


@allure.feature("Formatter")
@allure.story("Persona role")
@allure.severity(allure.severity_level.NORMAL)
def test_custom_registry_overrides_persona_role():
    registry = ModelRegistry()
    registry.register(ModelConfig(exact_match="house", persona_role="developer"))
    prompt = create_prompt(instructions("x"), persona=create_section(title="Persona", items=["p"]))

    request = create_formatter(model_registry=registry).format_prompt("house", prompt)

    assert request.messages[0].role == "developer"


@allure.feature("Formatter")
@allure.story("Prompt layout")
@allure.severity(allure.severity_level.CRITICAL)
def test_user_message_orders_instructions_context_content():
    prompt = create_prompt(
        instructions("Do X."),
        contents=create_section(title="Content", items=["Text"]),
        contexts=create_section(title="Context", items=["Background"]),
    )

    request = Formatter().format_prompt("gpt-4o", prompt)

    assert len(request.messages) == 1
    assert request.messages[0].content == (
        "<Instructions>\nDo X.\n</Instructions>\n\n"
        "<Context>\nBackground\n</Context>\n\n"
        "<Content>\nText\n</Content>"
    )


@allure.feature("Formatter")
@allure.story("Prompt layout")
@allure.severity(allure.severity_level.NORMAL)
def test_empty_areas_are_omitted():
    prompt = create_prompt(
        create_section(title="Instructions"),
        persona=create_section(title="Persona"),
        contexts=create_section(title="Context"),
    )

    request = Formatter().format_prompt("gpt-4o", prompt)

    assert [(m.role, m.content) for m in request.messages] == [("user", "")]


@allure.feature("Formatter")
@allure.story("Response format")
@allure.severity(allure.severity_level.NORMAL)
def test_response_format_is_copied_into_request():
    response_format = {"type": "json_schema", "json_schema": {"name": "r", "schema": {"type": "object"}}}
    prompt = create_prompt(instructions("x"), response_format=response_format)

    request = Formatter().format_prompt("gpt-4o", prompt)
    request.response_format["json_schema"]["name"] = "changed"

    assert response_format["json_schema"]["name"] == "r"
    assert request.to_dict()["response_format"]["type"] == "json_schema"


@allure.feature("Formatter")
@allure.story("Options")
@allure.severity(allure.severity_level.MINOR)
def test_format_options_from_dict():
    options = FormatOptions.from_dict({"section_separator": "tag", "unknown": 1})

    assert options.section_separator == "tag"
    assert options.area_separator == "tag"
    with pytest.raises(ValueError):
        FormatOptions.from_dict({"area_separator": "xml"})


@allure.feature("Formatter")
@allure.story("Tag round trip")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=100)
@given(title=word_strategy(), texts=st.lists(word_strategy(), min_size=1, max_size=6))
def test_tag_rendering_parses_back_to_same_items(title: str, texts: list[str]):
    """The text between the tags re-parses to the same ordered item texts."""
    section = create_section(title=title, items=texts)

    rendered = Formatter().format_area(section)
    opening, closing = f"<{title}>\n", f"\n</{title}>"
    assert rendered.startswith(opening) and rendered.endswith(closing)

    inner = rendered[len(opening):-len(closing)]
    parsed = Parser().parse(inner, title=title)

    assert shape(parsed) == shape(section)
