"""Connector end markers and the read-only marker registry."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .elements import Element
from .errors import ConfigurationError
from .geometry import Affine, Point, fmt, rotation_affine, unit
from .resources import load_marker_definitions


@dataclass(frozen=True)
class Marker:
    """Glyph drawn with its tip at the origin and its body along +x.

    ``fill`` is a color, ``"none"``, or ``"stroke"`` to reuse the line color.
    """

    name: str
    path: str
    fill: str = "stroke"

    def render(
        self,
        point: Point,
        normal: Point,
        *,
        stroke: str = "black",
        stroke_width: float = 1.0,
    ) -> Element:
        transform = marker_transform(point, normal)
        return Element(
            "path",
            {
                "d": self.path,
                "transform": "matrix(" + " ".join(fmt(v) for v in transform) + ")",
                "fill": stroke if self.fill == "stroke" else self.fill,
                "stroke": stroke,
                "stroke-width": stroke_width,
                "stroke-linejoin": "round",
                "class": f"marker-{self.name}",
            },
        )


def marker_transform(point: Point, normal: Point) -> Affine:
    """Affine placing a canonical marker at ``point`` facing along ``normal``."""
    return rotation_affine(point, unit(*normal))


def load_markers(definitions: Optional[Mapping[str, Mapping[str, Any]]] = None) -> Mapping[str, Marker]:
    """Build an immutable name -> Marker mapping, by default from the packaged definitions."""
    if definitions is None:
        definitions = load_marker_definitions()
    markers = {}
    for name, entry in definitions.items():
        if isinstance(entry, Marker):
            markers[name] = entry
            continue
        path = entry.get("path")
        if not path:
            raise ConfigurationError(f'marker "{name}" has no path')
        unknown = set(entry) - {"path", "fill"}
        if unknown:
            raise ConfigurationError(
                f'marker "{name}": unknown option(s) {", ".join(sorted(unknown))}'
            )
        markers[name] = Marker(name=name, path=str(path), fill=str(entry.get("fill", "stroke")))
    return MappingProxyType(markers)
