"""
Property-based tests for recipes and templates.
"""

import asyncio

import allure
import pytest
from hypothesis import given, settings, strategies as st

from riotprompt.recipes import (
    OPTIONAL_SECTIONS,
    RecipeConfig,
    clear_templates,
    cook,
    get_templates,
    recipe,
    register_templates,
)


@pytest.fixture(autouse=True)
def no_templates():
    clear_templates()
    yield
    clear_templates()


@allure.feature("Recipes")
@allure.story("Optional sections")
@allure.severity(allure.severity_level.CRITICAL)
@settings(max_examples=50)
@given(chosen=st.lists(st.sampled_from([name for name, _ in OPTIONAL_SECTIONS]), unique=True))
def test_optional_sections_follow_fixed_order(chosen: list[str]):
    """Whatever order the recipe lists them in, groups appear in the canonical order."""
    config = {"instructions": "Do the task."}
    for name in chosen:
        config[name] = f"{name} text"

    prompt = asyncio.run(cook(config))

    titles = [section.title for section in prompt.instructions.sections]
    expected = [title for name, title in OPTIONAL_SECTIONS if name in chosen]
    assert titles == expected
    assert prompt.instructions.items[0].text == "Do the task."


@allure.feature("Recipes")
@allure.story("Cooking")
@allure.severity(allure.severity_level.CRITICAL)
def test_cook_assembles_all_areas():
    prompt = asyncio.run(cook(RecipeConfig(
        persona="You are {{role}}.",
        instructions=["Summarize.", {"content": "Cite sources.", "weight": 0.5}],
        content="Article body",
        context=["Audience: experts"],
        schema={"type": "object"},
        schema_name="summary",
        parameters={"role": "an editor"},
    )))

    assert prompt.persona.items[0].text == "You are an editor."
    assert [i.text for i in prompt.instructions.items] == ["Summarize.", "Cite sources."]
    assert prompt.instructions.items[1].weight == 0.5
    assert prompt.contents.items[0].text == "Article body"
    assert prompt.contexts.items[0].text == "Audience: experts"
    assert prompt.response_format["json_schema"]["name"] == "summary"


@allure.feature("Recipes")
@allure.story("Templates")
@allure.severity(allure.severity_level.CRITICAL)
def test_template_items_come_first():
    register_templates({
        "reviewer": {
            "persona": "You are a reviewer.",
            "instructions": ["Be thorough."],
            "constraints": "No more than five points.",
            "parameters": {"lang": "Go", "style": "terse"},
        },
    })

    prompt = asyncio.run(
        recipe()
        .template("reviewer")
        .instructions("Review this {{lang}} in a {{style}} way.")
        .constraints("Mention tests.")
        .parameters({"lang": "Rust"})
        .cook()
    )

    assert "reviewer" in get_templates()
    assert prompt.persona.items[0].text == "You are a reviewer."
    assert [i.text for i in prompt.instructions.leaves] == [
        "Be thorough.",
        "Review this Rust in a terse way.",
    ]
    constraints = prompt.instructions.sections[0]
    assert [i.text for i in constraints.items] == ["No more than five points.", "Mention tests."]


@allure.feature("Recipes")
@allure.story("Templates")
@allure.severity(allure.severity_level.NORMAL)
def test_unknown_template_raises():
    with pytest.raises(ValueError, match="not found"):
        asyncio.run(cook({"template": "missing", "instructions": "x"}))


@allure.feature("Recipes")
@allure.story("Validation")
@allure.severity(allure.severity_level.NORMAL)
def test_unknown_recipe_fields_raise():
    with pytest.raises(ValueError, match="colour"):
        RecipeConfig.from_dict({"instructions": "x", "colour": "red"})


@allure.feature("Recipes")
@allure.story("Fluent recipes")
@allure.severity(allure.severity_level.MINOR)
def test_recipe_builder_collects_fields():
    builder = (
        recipe("/prompts")
        .persona("p")
        .instructions("i1", "i2")
        .tone("calm")
        .examples("e")
        .reasoning("r")
        .response_format("bullets")
        .safeguards("s")
        .content("c")
        .context("ctx")
        .schema({"type": "object"}, name="out")
    )

    config = builder.config
    assert config.base_path == "/prompts"
    assert config.instructions == ["i1", "i2"]
    assert config.tone == ["calm"]
    assert config.schema_name == "out"
