"""
Recipes - declarative prompt assembly.

A RecipeConfig names the pieces of a prompt; `cook` turns it into a Prompt.
Besides persona, instructions, content and context, a recipe may carry
optional instruction groups that are added under Instructions as titled
sub-sections, always in this order: Constraints, Tone, Examples, Reasoning,
Response Format, Safeguards.

Templates are named partial recipes. A recipe that names a template gets the
template's items first and its own items appended.

Example:
    register_templates({"reviewer": {"persona": "You are a code reviewer."}})
    prompt = await (
        recipe("./prompts")
        .template("reviewer")
        .instructions("Review the diff.")
        .constraints("Keep it under 200 words.")
        .cook()
    )
"""
import logging
from dataclasses import dataclass, field, fields
from typing import Any, Mapping, Optional, Sequence, Union

from .builder import Builder, ItemSpec
from .chat import json_schema_format
from .prompt import Prompt


logger = logging.getLogger(__name__)

ItemList = Union[ItemSpec, Sequence[ItemSpec]]

# (field name, section title), in output order
OPTIONAL_SECTIONS: tuple[tuple[str, str], ...] = (
    ("constraints", "Constraints"),
    ("tone", "Tone"),
    ("examples", "Examples"),
    ("reasoning", "Reasoning"),
    ("response_format", "Response Format"),
    ("safeguards", "Safeguards"),
)

_LIST_FIELDS = (
    "persona",
    "instructions",
    "content",
    "context",
    *(name for name, _ in OPTIONAL_SECTIONS),
)


def _as_list(value: Optional[ItemList]) -> list[ItemSpec]:
    if value is None:
        return []
    if isinstance(value, (str, Mapping)):
        return [value]
    return list(value)


@dataclass
class RecipeConfig:
    """Declarative description of a prompt.

    Item fields accept a string, an item mapping (``{"content": ...}``,
    ``{"path": ...}`` or ``{"directories": [...]}``, with optional
    ``title`` and ``weight``), or a list of those.

    Attributes:
        schema: JSON Schema for structured output.
        schema_name: Name for the structured-output descriptor.
        template: Name of a registered template to extend.
        parameters: Substitution values for every piece.
        base_path: Directory that relative paths resolve against.
    """
    persona: list[ItemSpec] = field(default_factory=list)
    instructions: list[ItemSpec] = field(default_factory=list)
    content: list[ItemSpec] = field(default_factory=list)
    context: list[ItemSpec] = field(default_factory=list)
    constraints: list[ItemSpec] = field(default_factory=list)
    tone: list[ItemSpec] = field(default_factory=list)
    examples: list[ItemSpec] = field(default_factory=list)
    reasoning: list[ItemSpec] = field(default_factory=list)
    response_format: list[ItemSpec] = field(default_factory=list)
    safeguards: list[ItemSpec] = field(default_factory=list)
    schema: Optional[Any] = None
    schema_name: str = "response"
    template: Optional[str] = None
    parameters: dict[str, Any] = field(default_factory=dict)
    base_path: str = "."

    def __post_init__(self) -> None:
        for name in _LIST_FIELDS:
            setattr(self, name, _as_list(getattr(self, name)))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RecipeConfig":
        """Create a RecipeConfig from a dictionary.

        Raises:
            ValueError: If the dictionary has unknown keys.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown recipe fields: {', '.join(unknown)}")
        return cls(**dict(data))


_templates: dict[str, RecipeConfig] = {}


def register_templates(templates: Mapping[str, Union[RecipeConfig, Mapping[str, Any]]]) -> None:
    """Register named templates, replacing any with the same name."""
    for name, template in templates.items():
        if not isinstance(template, RecipeConfig):
            template = RecipeConfig.from_dict(template)
        _templates[name] = template
        logger.debug(f"Registered recipe template '{name}'")


def get_templates() -> dict[str, RecipeConfig]:
    return dict(_templates)


def clear_templates() -> None:
    _templates.clear()


def apply_template(config: RecipeConfig) -> RecipeConfig:
    """Merge a recipe with its template.

    Raises:
        ValueError: If the named template is not registered.
    """
    if not config.template:
        return config

    template = _templates.get(config.template)
    if template is None:
        raise ValueError(f"Template '{config.template}' not found")

    merged = RecipeConfig(
        schema=config.schema if config.schema is not None else template.schema,
        schema_name=config.schema_name,
        parameters={**template.parameters, **config.parameters},
        base_path=config.base_path,
    )
    for name in _LIST_FIELDS:
        setattr(merged, name, [*getattr(template, name), *getattr(config, name)])
    return merged


async def cook(config: Union[RecipeConfig, Mapping[str, Any]],
               logger: Optional[logging.Logger] = None) -> Prompt:
    """Assemble a Prompt from a recipe.

    Args:
        config: A RecipeConfig or an equivalent dictionary.
        logger: Optional logger passed on to the Parser and Loader.

    Returns:
        The assembled Prompt.
    """
    if not isinstance(config, RecipeConfig):
        config = RecipeConfig.from_dict(config)
    config = apply_template(config)

    builder = Builder(base_path=config.base_path, parameters=config.parameters, logger=logger)
    for item in config.persona:
        builder.add("persona", item)
    for item in config.instructions:
        builder.add("instructions", item)
    for name, title in OPTIONAL_SECTIONS:
        items = getattr(config, name)
        if items:
            builder.add_group("instructions", title, items)
    for item in config.content:
        builder.add("contents", item)
    for item in config.context:
        builder.add("contexts", item)

    if config.schema is not None:
        builder.set_response_format(json_schema_format(config.schema, name=config.schema_name))

    return await builder.build()


class RecipeBuilder:
    """Fluent front end for RecipeConfig.

    Each method appends to the matching recipe field and returns the builder.
    """

    def __init__(self, base_path: str = ".") -> None:
        self.config = RecipeConfig(base_path=str(base_path))

    def _extend(self, name: str, items: tuple[ItemSpec, ...]) -> "RecipeBuilder":
        getattr(self.config, name).extend(items)
        return self

    def persona(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("persona", items)

    def instructions(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("instructions", items)

    def content(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("content", items)

    def context(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("context", items)

    def constraints(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("constraints", items)

    def tone(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("tone", items)

    def examples(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("examples", items)

    def reasoning(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("reasoning", items)

    def response_format(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("response_format", items)

    def safeguards(self, *items: ItemSpec) -> "RecipeBuilder":
        return self._extend("safeguards", items)

    def schema(self, schema: Any, name: str = "response") -> "RecipeBuilder":
        self.config.schema = schema
        self.config.schema_name = name
        return self

    def parameters(self, parameters: Mapping[str, Any]) -> "RecipeBuilder":
        self.config.parameters.update(parameters)
        return self

    def template(self, name: str) -> "RecipeBuilder":
        self.config.template = name
        return self

    async def cook(self, logger: Optional[logging.Logger] = None) -> Prompt:
        return await cook(self.config, logger=logger)


def recipe(base_path: str = ".") -> RecipeBuilder:
    """Start a fluent recipe rooted at ``base_path``."""
    return RecipeBuilder(base_path)
