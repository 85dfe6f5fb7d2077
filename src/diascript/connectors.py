"""Straight connectors between two shapes, with optional end markers."""
from __future__ import annotations

import logging
from typing import Any, Callable, List, Mapping, Optional

from .elements import Element
from .markers import Marker
from .router import route
from .shapes import Shape
from .style import LineConfig

LOGGER = logging.getLogger(__name__)


class Line:
    """Connector from one shape id to another."""

    def __init__(self, source: Optional[str] = None, target: Optional[str] = None, **options: Any) -> None:
        if source is not None:
            options["source"] = source
        if target is not None:
            options["target"] = target
        self.config = LineConfig.from_mapping(options)

    @property
    def source(self) -> Optional[str]:
        return self.config.source

    @property
    def target(self) -> Optional[str]:
        return self.config.target

    def describe(self) -> str:
        return f"line {self.source!r} -> {self.target!r}"

    def __repr__(self) -> str:
        return f"<Line {self.source!r} -> {self.target!r}>"

    def render(
        self,
        source: Shape,
        target: Shape,
        markers: Mapping[str, Marker],
        warn: Optional[Callable[[str], None]] = None,
    ) -> List[Element]:
        """Line primitive first, then the start and end markers that resolve."""
        warn = warn or LOGGER.warning
        config = self.config
        start, end = route(source, target)
        (x1, y1), (x2, y2) = start.position, end.position
        result = [
            Element(
                "line",
                {
                    "id": config.id,
                    "x1": x1,
                    "y1": y1,
                    "x2": x2,
                    "y2": y2,
                    "stroke": config.stroke,
                    "stroke-width": config.stroke_width,
                    "stroke-dasharray": config.stroke_dasharray,
                },
            )
        ]
        for name, point in ((config.start_marker, start), (config.end_marker, end)):
            if not name:
                continue
            marker = markers.get(name)
            if marker is None:
                warn(f'{self.describe()}: unknown marker "{name}"')
                continue
            result.append(
                marker.render(
                    point.position,
                    point.normal,
                    stroke=config.stroke,
                    stroke_width=config.stroke_width,
                )
            )
        return result
