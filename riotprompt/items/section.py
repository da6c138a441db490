"""
Section - ordered, optionally nested container of prompt items.

Sections hold Weighted items and nested Sections. Item order is significant:
every formatter renders items in the order they appear here.

Mutators modify the section in place and return it, so builder code can chain
calls. A Section must not be mutated from two call chains at once.

Example:
    section = create_section(title="Instructions", item_type=Instruction)
    section.add("Answer in English.").add("Be concise.", weight=0.5)
"""
from dataclasses import dataclass, field
from typing import Any, Generic, Iterable, Iterator, Mapping, Optional, TypeVar, Union

from ..errors import IndexOutOfRange
from .parameters import Parameters, merge_parameters
from .weighted import Weighted, create_weighted

T = TypeVar("T", bound=Weighted)

ItemInput = Union[str, Weighted, "Section[Any]", Iterable[Union[str, Weighted, "Section[Any]"]]]


@dataclass(eq=False)
class Section(Generic[T]):
    """A titled, ordered collection of items and sub-sections.

    Attributes:
        title: Section title, rendered as a heading or tag name.
        items: Ordered items and nested sections.
        weight: Optional weight of the section itself.
        item_weight: Weight given to raw strings added without one.
        parameters: Substitution values applied to raw strings on add.
        item_type: Leaf class used to wrap raw strings. Items of other kinds
            and nested sections are accepted as-is.
    """
    title: Optional[str] = None
    items: list[Union[Weighted, "Section[Any]"]] = field(default_factory=list)
    weight: Optional[float] = None
    item_weight: Optional[float] = None
    parameters: Parameters = field(default_factory=dict)
    item_type: type[Weighted] = Weighted

    def _wrap(
        self,
        item: Union[str, Weighted, "Section[Any]"],
        weight: Optional[float],
        parameters: Optional[Mapping[str, Any]],
    ) -> Union[Weighted, "Section[Any]"]:
        """Turn an add() argument into a stored item."""
        if isinstance(item, (Weighted, Section)):
            return item
        if isinstance(item, str):
            return create_weighted(
                item,
                weight=weight if weight is not None else self.item_weight,
                parameters=merge_parameters(self.parameters, parameters) or None,
                item_type=self.item_type,
            )
        raise TypeError(
            f"Section items must be str, Weighted or Section, got {type(item).__name__}"
        )

    def _expand(
        self,
        item: ItemInput,
        weight: Optional[float],
        parameters: Optional[Mapping[str, Any]],
    ) -> list[Union[Weighted, "Section[Any]"]]:
        if isinstance(item, (str, Weighted, Section)):
            return [self._wrap(item, weight, parameters)]
        if isinstance(item, Iterable) and not isinstance(item, (Mapping, bytes, bytearray)):
            return [self._wrap(entry, weight, parameters) for entry in item]
        raise TypeError(
            f"Section items must be str, Weighted or Section, got {type(item).__name__}"
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.items):
            raise IndexOutOfRange(index, len(self.items))

    def add(
        self,
        item: ItemInput,
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "Section[T]":
        """Append an item, a nested section, or a list of them.

        Args:
            item: Raw string, Weighted item, Section, or an iterable of those.
            weight: Weight for wrapped strings. Defaults to ``item_weight``.
            parameters: Per-call parameters, overriding section parameters.

        Returns:
            This section.
        """
        self.items.extend(self._expand(item, weight, parameters))
        return self

    def append(
        self,
        item: ItemInput,
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "Section[T]":
        """Alias of `add`."""
        return self.add(item, weight, parameters)

    def prepend(
        self,
        item: ItemInput,
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "Section[T]":
        """Insert items at the front, preserving their relative order."""
        self.items[0:0] = self._expand(item, weight, parameters)
        return self

    def insert(
        self,
        index: int,
        item: ItemInput,
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "Section[T]":
        """Insert items before position ``index``.

        Raises:
            IndexOutOfRange: If index is outside ``[0, len(items)]``.
        """
        if not 0 <= index <= len(self.items):
            raise IndexOutOfRange(index, len(self.items))
        self.items[index:index] = self._expand(item, weight, parameters)
        return self

    def replace(
        self,
        index: int,
        item: Union[str, Weighted, "Section[Any]"],
        weight: Optional[float] = None,
        parameters: Optional[Mapping[str, Any]] = None,
    ) -> "Section[T]":
        """Replace the item at ``index``.

        Raises:
            IndexOutOfRange: If index is outside ``[0, len(items))``.
        """
        self._check_index(index)
        self.items[index] = self._wrap(item, weight, parameters)
        return self

    def remove(self, index: int) -> "Section[T]":
        """Remove the item at ``index``.

        Raises:
            IndexOutOfRange: If index is outside ``[0, len(items))``.
        """
        self._check_index(index)
        del self.items[index]
        return self

    @property
    def sections(self) -> list["Section[Any]"]:
        """Nested sections, in order."""
        return [item for item in self.items if isinstance(item, Section)]

    @property
    def leaves(self) -> list[Weighted]:
        """Direct leaf items, in order."""
        return [item for item in self.items if not isinstance(item, Section)]

    def is_empty(self) -> bool:
        """True when the section has no text anywhere in its tree."""
        for item in self.items:
            if isinstance(item, Section):
                if not item.is_empty():
                    return False
            elif item.text.strip():
                return False
        return True

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Union[Weighted, "Section[Any]"]]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Union[Weighted, "Section[Any]"]:
        return self.items[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Section):
            return NotImplemented
        return (
            self.title == other.title
            and self.weight == other.weight
            and self.items == other.items
        )


def create_section(
    title: Optional[str] = None,
    items: Optional[ItemInput] = None,
    weight: Optional[float] = None,
    item_weight: Optional[float] = None,
    parameters: Optional[Mapping[str, Any]] = None,
    item_type: type[Weighted] = Weighted,
) -> Section[Any]:
    """Create a section, optionally seeded with items.

    Seed items are added through `Section.add`, so raw strings are wrapped
    with ``item_type`` and receive the section's parameters.
    """
    section: Section[Any] = Section(
        title=title,
        weight=weight,
        item_weight=item_weight,
        parameters=dict(parameters or {}),
        item_type=item_type,
    )
    if items is not None:
        section.add(items)
    return section
