"""
Weighted text items, the leaves of a prompt.

A Weighted item is immutable once created. Its weight is an unconstrained
number kept as a selection signal; nothing in the library requires it to be
bounded.
"""
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, TypeVar

from .parameters import Parameters, apply_parameters


@dataclass(frozen=True)
class Weighted:
    """A unit of prompt text with an optional weight."""
    text: str
    weight: Optional[float] = None
    parameters: Optional[Parameters] = field(default=None, compare=False)

    # Used by the serializer and formatter to label item kinds
    kind = "weighted"

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Instruction(Weighted):
    """An instruction for the model."""
    kind = "instruction"


@dataclass(frozen=True)
class Context(Weighted):
    """Background information the model may use."""
    kind = "context"


@dataclass(frozen=True)
class Content(Weighted):
    """Content the model should operate on."""
    kind = "content"


@dataclass(frozen=True)
class Trait(Weighted):
    """A persona trait."""
    kind = "trait"


W = TypeVar("W", bound=Weighted)

ITEM_TYPES: dict[str, type[Weighted]] = {
    cls.kind: cls for cls in (Weighted, Instruction, Context, Content, Trait)
}


def create_weighted(
    text: str,
    weight: Optional[float] = None,
    parameters: Optional[Mapping[str, Any]] = None,
    item_type: type[W] = Weighted,  # type: ignore[assignment]
) -> W:
    """Create a weighted item, substituting parameters into its text.

    Args:
        text: Item text. Must be a non-empty string.
        weight: Optional weight.
        parameters: Values for ``{{placeholder}}`` substitution.
        item_type: Leaf class to instantiate.

    Returns:
        The new item.

    Raises:
        ValueError: If text is missing or empty.
        TypeError: If text is not a string.
    """
    if text is None:
        raise ValueError("Item text is required")
    if not isinstance(text, str):
        raise TypeError(f"Item text must be a string, got {type(text).__name__}")
    if not text:
        raise ValueError("Item text must not be empty")

    params = dict(parameters) if parameters else None
    return item_type(
        text=apply_parameters(text, params),
        weight=weight,
        parameters=params,
    )


def create_instruction(text: str, weight: Optional[float] = None,
                       parameters: Optional[Mapping[str, Any]] = None) -> Instruction:
    return create_weighted(text, weight, parameters, Instruction)


def create_context(text: str, weight: Optional[float] = None,
                   parameters: Optional[Mapping[str, Any]] = None) -> Context:
    return create_weighted(text, weight, parameters, Context)


def create_content(text: str, weight: Optional[float] = None,
                   parameters: Optional[Mapping[str, Any]] = None) -> Content:
    return create_weighted(text, weight, parameters, Content)


def create_trait(text: str, weight: Optional[float] = None,
                 parameters: Optional[Mapping[str, Any]] = None) -> Trait:
    return create_weighted(text, weight, parameters, Trait)
