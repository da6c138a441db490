"""
Prompt serialization to dictionaries, JSON and XML.

Serialized prompts keep section titles, weights, item kinds, item texts and
nesting. Item texts are stored after parameter substitution, so loading a
serialized prompt never substitutes again.
"""
import json
import re
import xml.etree.ElementTree as ET
from typing import Any, Optional, Union

from .errors import ParseError
from .items import Section, Weighted
from .items.weighted import ITEM_TYPES
from .prompt import Prompt

AREA_NAMES = ("persona", "instructions", "contexts", "contents")

# Characters XML 1.0 cannot carry, even as character references
_XML_INVALID = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")

Node = Union[Weighted, Section[Any]]


def _item_to_dict(item: Node) -> dict[str, Any]:
    if isinstance(item, Section):
        return section_to_dict(item)
    data: dict[str, Any] = {"type": "item", "kind": item.kind, "text": item.text}
    if item.weight is not None:
        data["weight"] = item.weight
    return data


def section_to_dict(section: Section[Any]) -> dict[str, Any]:
    data: dict[str, Any] = {
        "type": "section",
        "title": section.title,
        "item_type": section.item_type.kind,
        "items": [_item_to_dict(item) for item in section.items],
    }
    if section.weight is not None:
        data["weight"] = section.weight
    return data


def _item_class(kind: Any) -> type[Weighted]:
    try:
        return ITEM_TYPES[kind]
    except (KeyError, TypeError):
        raise ParseError(f"Unknown item kind '{kind}'")


def _weight(value: Any) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ParseError(f"Invalid weight '{value}'")


def _node_from_dict(data: Any) -> Node:
    if not isinstance(data, dict):
        raise ParseError(f"Expected an object, got {type(data).__name__}")
    if data.get("type") == "section":
        return section_from_dict(data)

    text = data.get("text")
    if not isinstance(text, str) or not text:
        raise ParseError("Items need a non-empty 'text' string")
    item_class = _item_class(data.get("kind", "weighted"))
    return item_class(text=text, weight=_weight(data.get("weight")))


def section_from_dict(data: Any) -> Section[Any]:
    """Rebuild a Section from `section_to_dict` output.

    Raises:
        ParseError: If the data does not describe a section.
    """
    if not isinstance(data, dict):
        raise ParseError(f"Expected a section object, got {type(data).__name__}")
    items = data.get("items", [])
    if not isinstance(items, list):
        raise ParseError("Section 'items' must be a list")
    title = data.get("title")
    if title is not None and not isinstance(title, str):
        raise ParseError("Section 'title' must be a string")

    return Section(
        title=title,
        items=[_node_from_dict(item) for item in items],
        weight=_weight(data.get("weight")),
        item_type=_item_class(data.get("item_type", "weighted")),
    )


def to_dict(prompt: Prompt) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for name, section in prompt.areas():
        if section is not None:
            data[name] = section_to_dict(section)
    if prompt.response_format is not None:
        data["response_format"] = prompt.response_format
    return data


def from_dict(data: Any) -> Prompt:
    """Rebuild a Prompt from `to_dict` output.

    Raises:
        ParseError: If the data is not a prompt object or lacks instructions.
    """
    if not isinstance(data, dict):
        raise ParseError(f"Expected a prompt object, got {type(data).__name__}")
    if data.get("instructions") is None:
        raise ParseError("Serialized prompt has no instructions")

    areas = {
        name: section_from_dict(data[name]) if data.get(name) is not None else None
        for name in AREA_NAMES
    }
    response_format = data.get("response_format")
    if response_format is not None and not isinstance(response_format, dict):
        raise ParseError("'response_format' must be an object")
    return Prompt(response_format=response_format, **areas)


def to_json(prompt: Prompt, indent: Optional[int] = 2) -> str:
    return json.dumps(to_dict(prompt), indent=indent, ensure_ascii=False)


def from_json(text: str) -> Prompt:
    """Parse a prompt from JSON.

    Raises:
        ParseError: On malformed JSON or an invalid prompt structure.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(
            f"Invalid prompt JSON at line {e.lineno}, column {e.colno}: {e.msg}"
        ) from e
    return from_dict(data)


def _xml_text(value: str, what: str) -> str:
    match = _XML_INVALID.search(value)
    if match:
        raise ParseError(
            f"{what} contains character U+{ord(match.group()):04X}, which XML cannot represent"
        )
    return value


def _node_to_element(node: Node) -> ET.Element:
    if isinstance(node, Section):
        element = ET.Element("section")
        if node.title is not None:
            element.set("title", _xml_text(node.title, "Section title"))
        element.set("item-type", node.item_type.kind)
        if node.weight is not None:
            element.set("weight", repr(node.weight))
        for item in node.items:
            element.append(_node_to_element(item))
        return element

    element = ET.Element("item")
    element.set("kind", node.kind)
    if node.weight is not None:
        element.set("weight", repr(node.weight))
    element.text = _xml_text(node.text, "Item text")
    return element


def _node_from_element(element: ET.Element) -> Node:
    if element.tag == "section":
        return Section(
            title=element.get("title"),
            items=[_node_from_element(child) for child in element],
            weight=_weight(element.get("weight")),
            item_type=_item_class(element.get("item-type", "weighted")),
        )
    if element.tag == "item":
        if not element.text:
            raise ParseError("XML items need text")
        item_class = _item_class(element.get("kind", "weighted"))
        return item_class(text=element.text, weight=_weight(element.get("weight")))
    raise ParseError(f"Unexpected XML element <{element.tag}>")


def to_xml(prompt: Prompt) -> str:
    """Serialize a prompt as an XML document.

    Raises:
        ParseError: If a title or item text holds a control character that
            XML 1.0 does not allow. Use `to_json` for such prompts.
    """
    root = ET.Element("prompt")
    for name, section in prompt.areas():
        if section is not None:
            area = ET.SubElement(root, name)
            area.append(_node_to_element(section))
    if prompt.response_format is not None:
        ET.SubElement(root, "response_format").text = json.dumps(prompt.response_format)
    ET.indent(root)
    return ET.tostring(root, encoding="unicode")


def from_xml(text: str) -> Prompt:
    """Parse a prompt from XML.

    Raises:
        ParseError: On malformed XML or an invalid prompt structure.
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError(f"Invalid prompt XML: {e}") from e
    if root.tag != "prompt":
        raise ParseError(f"Expected <prompt> root element, got <{root.tag}>")

    areas: dict[str, Optional[Section[Any]]] = {name: None for name in AREA_NAMES}
    response_format = None
    for child in root:
        if child.tag == "response_format":
            try:
                response_format = json.loads(child.text or "")
            except json.JSONDecodeError as e:
                raise ParseError(f"Invalid response_format in prompt XML: {e.msg}") from e
            continue
        if child.tag not in areas:
            raise ParseError(f"Unexpected XML element <{child.tag}>")
        sections = [node for node in child]
        if len(sections) != 1 or sections[0].tag != "section":
            raise ParseError(f"<{child.tag}> must hold exactly one <section>")
        areas[child.tag] = _node_from_element(sections[0])

    if areas["instructions"] is None:
        raise ParseError("Serialized prompt has no instructions")
    return Prompt(response_format=response_format, **areas)
