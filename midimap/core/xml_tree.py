"""Keyed views over XML element children."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ElementView:
    tag: str
    text: str
    attrs: dict[str, str]
    children: tuple[ET.Element, ...]


def _is_element(node: object) -> bool:
    # Comments and processing instructions carry callable tags.
    return isinstance(node, ET.Element) and isinstance(node.tag, str)


def element_children(element: ET.Element) -> tuple[ET.Element, ...]:
    return tuple(child for child in element if _is_element(child))


def view(element: ET.Element) -> ElementView:
    return ElementView(
        tag=element.tag,
        text=(element.text or "").strip(),
        attrs=dict(element.attrib),
        children=element_children(element),
    )


def flatten(elements: Iterable[ET.Element]) -> dict[str, ElementView]:
    """Map tag names to views of the given elements.

    When a tag occurs more than once the first occurrence wins, which matches
    what ``Element.find`` would return for the same tag.
    """
    flattened: dict[str, ElementView] = {}
    for element in elements:
        if not _is_element(element):
            continue
        if element.tag in flattened:
            continue
        flattened[element.tag] = view(element)
    return flattened


def flatten_element(element: ET.Element) -> dict[str, ElementView]:
    return flatten(element_children(element))
