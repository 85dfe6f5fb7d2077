"""Renderer-agnostic drawing primitives and their SVG serialization."""
from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .geometry import fmt

SVG_NS = "http://www.w3.org/2000/svg"
ET.register_namespace("", SVG_NS)


@dataclass
class Element:
    """One pseudo-element: a tag, its attributes and nested elements or text."""

    tag: str
    attrs: Dict[str, Any] = field(default_factory=dict)
    children: List[Union["Element", str]] = field(default_factory=list)


def _q(tag: str) -> str:
    return f"{{{SVG_NS}}}{tag}"


def _attr_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return fmt(float(value))
    return str(value)


def to_etree(element: Element) -> ET.Element:
    node = ET.Element(
        _q(element.tag),
        {key: _attr_value(value) for key, value in element.attrs.items() if value is not None},
    )
    last: Optional[ET.Element] = None
    for child in element.children:
        if isinstance(child, Element):
            last = to_etree(child)
            node.append(last)
        elif last is None:
            node.text = (node.text or "") + child
        else:
            last.tail = (last.tail or "") + child
    return node


def to_svg(
    elements: Iterable[Element],
    width: float,
    height: float,
    *,
    background: Optional[str] = None,
) -> str:
    """Serialize top-level pseudo-elements into a standalone SVG document."""
    svg_root = ET.Element(
        _q("svg"),
        {
            "width": fmt(width),
            "height": fmt(height),
            "viewBox": f"0 0 {fmt(width)} {fmt(height)}",
        },
    )
    if background and background.lower() not in {"none", "transparent"}:
        ET.SubElement(
            svg_root,
            _q("rect"),
            {"x": "0", "y": "0", "width": fmt(width), "height": fmt(height), "fill": background},
        )
    for element in elements:
        svg_root.append(to_etree(element))
    return _pretty_xml(svg_root)


def _pretty_xml(element: ET.Element) -> str:
    ET.indent(element, space="  ")
    return ET.tostring(element, encoding="unicode")
