"""Diagram assembler: places top-level shapes, routes lines and sizes the canvas."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .connectors import Line
from .elements import Element, to_svg
from .errors import ConfigurationError
from .markers import Marker, load_markers
from .measure import Measurer, TextMeasurer
from .shapes import Shape, Text, check_size
from .style import _number

LOGGER = logging.getLogger(__name__)

Align = Tuple[str, float, float]


@dataclass
class Placement:
    """A top-level shape with either absolute ``x``/``y`` or an ``align`` target.

    ``align`` is ``(target_id, dx, dy)``: this shape's center goes to the
    target's center plus the offset.
    """

    shape: Shape
    x: Optional[float] = None
    y: Optional[float] = None
    align: Optional[Align] = None

    def __post_init__(self) -> None:
        for name in ("x", "y"):
            value = getattr(self, name)
            if value is not None:
                setattr(self, name, _finite(value, name, self.shape))
        if self.align is not None:
            target, dx, dy = self.align
            self.align = (str(target), _finite(dx, "dx", self.shape), _finite(dy, "dy", self.shape))


@dataclass
class RenderResult:
    elements: List[Element]
    width: float
    height: float
    warnings: List[str] = field(default_factory=list)

    def to_svg(self, background: Optional[str] = None) -> str:
        return to_svg(self.elements, self.width, self.height, background=background)


class Diagram:
    """Ordered top-level shapes plus ordered lines."""

    def __init__(
        self,
        shapes: Iterable[Union[Shape, Placement]] = (),
        lines: Iterable[Line] = (),
        *,
        markers: Optional[Mapping[str, Marker]] = None,
        measurer: Optional[Measurer] = None,
    ) -> None:
        self.placements: List[Placement] = [
            item if isinstance(item, Placement) else Placement(item) for item in shapes
        ]
        self.lines: List[Line] = list(lines)
        self.markers = load_markers(markers) if markers is not None else load_markers()
        self.measurer = measurer

    def add(
        self,
        shape: Shape,
        x: Optional[float] = None,
        y: Optional[float] = None,
        *,
        align: Optional[Align] = None,
    ) -> Shape:
        self.placements.append(Placement(shape, x, y, align))
        return shape

    def connect(self, source: str, target: str, **options) -> Line:
        line = Line(source, target, **options)
        self.lines.append(line)
        return line

    @property
    def shapes(self) -> List[Shape]:
        return [placement.shape for placement in self.placements]

    def shape_by_id(self, shape_id: str) -> Optional[Shape]:
        """Depth-first search across the top-level shapes; first match wins."""
        for shape in self.shapes:
            found = shape.shape_by_id(shape_id)
            if found is not None:
                return found
        return None

    def render(self) -> RenderResult:
        """Lay out and render every shape, then every line, then size the canvas."""
        warnings: List[str] = []

        def warn(message: str) -> None:
            LOGGER.warning("%s", message)
            warnings.append(message)

        measurer = self.measurer
        if measurer is None and any(_has_text(p.shape) for p in self.placements):
            measurer = self.measurer = TextMeasurer()

        for placement in self.placements:
            placement.shape.layout(measurer)
            check_size(placement.shape)

        rendered: Dict[int, List[Element]] = {}
        placed: List[Shape] = []
        pending: List[Tuple[int, Placement]] = []
        for index, placement in enumerate(self.placements):
            shape = placement.shape
            if placement.x is not None and placement.y is not None:
                rendered[index] = shape.render(placement.x, placement.y)
                placed.append(shape)
            elif placement.align is not None:
                pending.append((index, placement))
            else:
                missing = [name for name in ("x", "y") if getattr(placement, name) is None]
                warn(f"{shape.describe()}: top-level shape has no {' or '.join(missing)}; skipped")

        progress = True
        while pending and progress:
            progress = False
            for entry in list(pending):
                index, placement = entry
                target_id, dx, dy = placement.align
                target = _find([s for s in self.shapes if s in placed], target_id)
                if target is None:
                    continue
                shape = placement.shape
                cx, cy = target.center()
                rendered[index] = shape.render(
                    cx + dx - shape.width / 2.0, cy + dy - shape.height / 2.0
                )
                placed.append(shape)
                pending.remove(entry)
                progress = True
        for _, placement in pending:
            warn(
                f"{placement.shape.describe()}: cannot align to "
                f'"{placement.align[0]}", no such placed shape; skipped'
            )

        elements: List[Element] = []
        for index in sorted(rendered):
            elements.extend(rendered[index])

        placed_in_order = [p.shape for p in self.placements if p.shape in placed]
        index_by_id = _build_index(placed_in_order)
        for line in self.lines:
            if not line.source or not line.target:
                warn(f"{line.describe()}: both from and to are required; skipped")
                continue
            source = index_by_id.get(line.source)
            target = index_by_id.get(line.target)
            if source is None or target is None:
                missing_id = line.source if source is None else line.target
                warn(f'{line.describe()}: no shape with id "{missing_id}"; skipped')
                continue
            elements.extend(line.render(source, target, self.markers, warn))

        width, height = canvas_size(placed_in_order)
        LOGGER.debug(
            "rendered %d of %d shapes and %d lines into %sx%s",
            len(placed_in_order),
            len(self.placements),
            len(self.lines),
            width,
            height,
        )
        return RenderResult(elements, width, height, warnings)


def canvas_size(shapes: Sequence[Shape]) -> Tuple[float, float]:
    """Union of top-level bounding boxes, offset rather than cropped to the top-left."""
    if not shapes:
        return 0.0, 0.0
    boxes = [shape.bbox() for shape in shapes]
    left = max(0.0, min(box[0] for box in boxes))
    top = max(0.0, min(box[1] for box in boxes))
    right = max(box[2] for box in boxes)
    bottom = max(box[3] for box in boxes)
    return left + right, top + bottom


def render_svg(diagram: Diagram, background: Optional[str] = None) -> str:
    return diagram.render().to_svg(background=background)


def _finite(value: float, name: str, shape: Shape) -> float:
    try:
        return _number(value)
    except ValueError as exc:
        raise ConfigurationError(f"{shape.describe()}: invalid {name}: {exc}") from None


def _build_index(shapes: Sequence[Shape]) -> Dict[str, Shape]:
    index: Dict[str, Shape] = {}
    for top in shapes:
        for shape in top.iter_shapes():
            if shape.id is not None:
                index.setdefault(shape.id, shape)
    return index


def _find(shapes: Sequence[Shape], shape_id: str) -> Optional[Shape]:
    for shape in shapes:
        found = shape.shape_by_id(shape_id)
        if found is not None:
            return found
    return None


def _has_text(shape: Shape) -> bool:
    return any(isinstance(node, Text) for node in shape.iter_shapes())
