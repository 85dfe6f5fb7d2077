"""Build a Diagram from an XML description.

    <diagram>
      <vbox id="server" x="20" y="20" padding="8 12" spacing="4">
        <text font-weight="bold">Server</text>
        <text font-size="12">nginx</text>
      </vbox>
      <database id="db" align="server 200 0"/>
      <line from="server" to="db" end-marker="arrow"/>
    </diagram>

Any namespace (or none) is accepted on the root; children must share it.
"""
from __future__ import annotations

import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Dict, Optional, Tuple, Type, Union

from .connectors import Line
from .diagram import Diagram, Placement
from .errors import ConfigurationError
from .measure import Measurer
from .shapes import Circle, Database, Ellipse, Hbox, Shape, Text, User, Vbox
from .style import _number

SHAPE_TAGS: Dict[str, Type[Shape]] = {
    "vbox": Vbox,
    "hbox": Hbox,
    "text": Text,
    "circle": Circle,
    "ellipse": Ellipse,
    "database": Database,
    "user": User,
}
CONTAINER_TAGS = {"vbox", "hbox"}
PLACEMENT_ATTRS = {"x", "y", "align"}


def load_diagram(
    source: Union[str, bytes],
    *,
    measurer: Optional[Measurer] = None,
) -> Diagram:
    """Parse an XML diagram description."""
    try:
        root = ET.fromstring(source)
    except ET.ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        location = (
            f" at line {line}, column {column}" if line is not None and column is not None else ""
        )
        raise ValueError(
            "Failed to parse diagram XML. Ensure entities like &, <, > are escaped "
            f"(use &amp;, &lt;, &gt;){location}"
        ) from exc

    ns = _namespace_of(root.tag)
    if _local_name(root.tag) != "diagram":
        raise ConfigurationError(f"root element must be <diagram>, got <{_local_name(root.tag)}>")

    diagram = Diagram(measurer=measurer)
    for node in root:
        if node.tag is ET.Comment:
            continue
        _check_namespace(node, ns)
        local = _local_name(node.tag)
        if local == "line":
            diagram.lines.append(Line(**_options(node, ns)))
            continue
        attrs = _options(node, ns)
        placement = {key: attrs.pop(key) for key in PLACEMENT_ATTRS if key in attrs}
        shape = _build_shape(node, ns, attrs)
        diagram.placements.append(
            Placement(
                shape,
                x=_coordinate(placement.get("x"), "x", shape),
                y=_coordinate(placement.get("y"), "y", shape),
                align=_parse_align(placement.get("align"), shape),
            )
        )
    return diagram


def load_diagram_file(path: Union[str, Path], *, measurer: Optional[Measurer] = None) -> Diagram:
    return load_diagram(Path(path).read_text(encoding="utf-8"), measurer=measurer)


def _build_shape(node: ET.Element, ns: Optional[str], attrs: Dict[str, str]) -> Shape:
    local = _local_name(node.tag)
    shape_class = SHAPE_TAGS.get(local)
    if shape_class is None:
        raise ConfigurationError(f"unknown element <{local}>")
    if local == "text":
        if len(node):
            raise ConfigurationError("<text> cannot contain elements; use a vbox of texts")
        return Text((node.text or "").strip(), **attrs)
    children = []
    for child in node:
        if child.tag is ET.Comment:
            continue
        if local not in CONTAINER_TAGS:
            raise ConfigurationError(f"<{local}> cannot contain child elements")
        _check_namespace(child, ns)
        child_attrs = _options(child, ns)
        nested_placement = PLACEMENT_ATTRS & set(child_attrs)
        if nested_placement:
            raise ConfigurationError(
                f"<{_local_name(child.tag)}> inside <{local}> is positioned by its parent; "
                f"remove {', '.join(sorted(nested_placement))}"
            )
        children.append(_build_shape(child, ns, child_attrs))
    if local in CONTAINER_TAGS:
        return shape_class(*children, **attrs)
    return shape_class(**attrs)


def _options(node: ET.Element, ns: Optional[str]) -> Dict[str, str]:
    options: Dict[str, str] = {}
    for key, value in node.attrib.items():
        key_ns = _namespace_of(key)
        if key_ns is not None and key_ns != ns:
            continue
        options[_local_name(key).replace("-", "_")] = value
    return options


def _coordinate(value: Optional[str], name: str, shape: Shape) -> Optional[float]:
    if value is None:
        return None
    try:
        return _number(value)
    except ValueError:
        raise ConfigurationError(f"{shape.describe()}: invalid {name}={value!r}") from None


def _parse_align(value: Optional[str], shape: Shape) -> Optional[Tuple[str, float, float]]:
    if value is None:
        return None
    parts = [chunk for chunk in re.split(r"[\s,]+", value.strip()) if chunk]
    if len(parts) not in (1, 3):
        raise ConfigurationError(
            f'{shape.describe()}: align takes "id" or "id dx dy", got {value!r}'
        )
    if len(parts) == 1:
        return parts[0], 0.0, 0.0
    try:
        return parts[0], _number(parts[1]), _number(parts[2])
    except ValueError:
        raise ConfigurationError(f"{shape.describe()}: invalid align offsets in {value!r}") from None


def _check_namespace(node: ET.Element, ns: Optional[str]) -> None:
    if _namespace_of(node.tag) != ns:
        raise ConfigurationError(f"element {node.tag} is outside the diagram namespace")


def _namespace_of(tag: str) -> Optional[str]:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return None


def _local_name(tag: str) -> str:
    if tag.startswith("{"):
        return tag.split("}", 1)[1]
    return tag
