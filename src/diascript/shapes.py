"""Shape tree: text leaves, stacking boxes and fixed-size icons."""
from __future__ import annotations

import math
from typing import Any, Iterator, List, Optional, Tuple

from .elements import Element
from .errors import LayoutError, MeasurementError
from .geometry import ConnectionPoint, fmt, unit
from .layout import AxisSpec, stack
from .measure import Measurer
from .style import (
    HALIGN,
    VALIGN,
    BoxConfig,
    CircleConfig,
    EllipseConfig,
    IconConfig,
    ShapeConfig,
    TextConfig,
)

# Fraction of the measured text height used as the baseline offset.
BASELINE_RATIO = 0.8


def _is_size(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and value >= 0
    )


class Shape:
    """Common capability of every shape: layout, render, connection points, lookup."""

    kind = "shape"
    config_class: type = ShapeConfig

    def __init__(self, *children: "Shape", **options: Any) -> None:
        self.config = self.config_class.from_mapping(options)
        self.children: Tuple[Shape, ...] = tuple(children)
        self.width: Optional[float] = None
        self.height: Optional[float] = None
        self.dx = 0.0
        self.dy = 0.0
        self.x: Optional[float] = None
        self.y: Optional[float] = None

    @property
    def id(self) -> Optional[str]:
        return self.config.id

    def describe(self) -> str:
        return f"{self.kind}#{self.id}" if self.id else self.kind

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.describe()} {self.width}x{self.height}>"

    def layout(self, measurer: Optional[Measurer]) -> None:
        raise NotImplementedError

    def render(self, x: float, y: float) -> List[Element]:
        """Record the absolute origin and emit this shape's primitives, then its children's."""
        check_size(self)
        self.x = x
        self.y = y
        result = self.draw()
        for child in self.children:
            result.extend(child.render(x + child.dx, y + child.dy))
        return result

    def draw(self) -> List[Element]:
        raise NotImplementedError

    def connection_points(self) -> Tuple[ConnectionPoint, ...]:
        """Side midpoints in top, right, bottom, left order."""
        left, top, right, bottom = self.bbox()
        mid_x = (left + right) / 2.0
        mid_y = (top + bottom) / 2.0
        return (
            ConnectionPoint((mid_x, top), (0.0, -1.0)),
            ConnectionPoint((right, mid_y), (1.0, 0.0)),
            ConnectionPoint((mid_x, bottom), (0.0, 1.0)),
            ConnectionPoint((left, mid_y), (-1.0, 0.0)),
        )

    def shape_by_id(self, shape_id: str) -> Optional["Shape"]:
        if self.id == shape_id:
            return self
        for child in self.children:
            found = child.shape_by_id(shape_id)
            if found is not None:
                return found
        return None

    def iter_shapes(self) -> Iterator["Shape"]:
        yield self
        for child in self.children:
            yield from child.iter_shapes()

    def bbox(self) -> Tuple[float, float, float, float]:
        if self.x is None or self.y is None:
            raise LayoutError("shape has not been rendered", [self.describe()])
        check_size(self)
        return (self.x, self.y, self.x + self.width, self.y + self.height)

    def center(self) -> Tuple[float, float]:
        left, top, right, bottom = self.bbox()
        return ((left + right) / 2.0, (top + bottom) / 2.0)

    def _layout_children(self, measurer: Optional[Measurer]) -> None:
        for child in self.children:
            try:
                child.layout(measurer)
                check_size(child)
            except LayoutError as exc:
                exc.path.insert(0, self.describe())
                raise

    def _stroke_attrs(self) -> dict:
        config = self.config
        return {
            "fill": config.fill,
            "stroke": config.stroke,
            "stroke-width": config.stroke_width,
            "stroke-dasharray": config.stroke_dasharray,
        }


def check_size(shape: Shape) -> None:
    """Fail fast when a shape's layout left its size undefined or invalid."""
    for attr in ("width", "height"):
        value = getattr(shape, attr)
        if not _is_size(value):
            raise LayoutError(
                f"{attr} is {value!r} after layout; expected a non-negative number",
                [shape.describe()],
            )


class Text(Shape):
    """A single line of text sized by the text-measurement service."""

    kind = "text"
    config_class = TextConfig

    def __init__(self, text: str, **options: Any) -> None:
        super().__init__(**options)
        self.text = str(text)

    def layout(self, measurer: Optional[Measurer]) -> None:
        if measurer is None:
            raise MeasurementError("no text measurer available", [self.describe()])
        config = self.config
        try:
            width, height = measurer.measure(
                self.text,
                font_size=config.font_size,
                font_weight=config.font_weight,
                font_family=config.font_family,
            )
        except Exception as exc:
            raise MeasurementError(
                f"measuring {self.text!r} failed: {exc}", [self.describe()]
            ) from exc
        self.width = width
        self.height = height

    def draw(self) -> List[Element]:
        config = self.config
        attrs = {
            "id": config.id,
            "x": self.x,
            "y": self.y + self.height * BASELINE_RATIO,
            "fill": config.fill,
            "font-weight": config.font_weight,
            "font-size": config.font_size,
            "font-family": config.font_family,
        }
        return [Element("text", attrs, [self.text])]


class Box(Shape):
    """Rectangle that stacks its children along ``stacking`` ("vertical" or "horizontal")."""

    kind = "box"
    config_class = BoxConfig
    stacking = "vertical"

    def layout(self, measurer: Optional[Measurer]) -> None:
        self._layout_children(measurer)
        config = self.config
        pad = config.padding
        horizontal = AxisSpec(config.width, pad.left, pad.right, HALIGN[config.align])
        vertical = AxisSpec(config.height, pad.top, pad.bottom, VALIGN[config.valign])

        if self.stacking == "vertical":
            sizes = [(child.height, child.width) for child in self.children]
            result = stack(sizes, vertical, horizontal, config.spacing)
            self.height, self.width = result.main_size, result.cross_size
            for child, (main, cross) in zip(self.children, result.offsets):
                child.dy, child.dx = main, cross
        else:
            sizes = [(child.width, child.height) for child in self.children]
            result = stack(sizes, horizontal, vertical, config.spacing)
            self.width, self.height = result.main_size, result.cross_size
            for child, (main, cross) in zip(self.children, result.offsets):
                child.dx, child.dy = main, cross

    def draw(self) -> List[Element]:
        attrs = {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }
        attrs.update(self._stroke_attrs())
        if self.config.corner_radius:
            attrs["rx"] = self.config.corner_radius
            attrs["ry"] = self.config.corner_radius
        attrs["shape-rendering"] = "geometricPrecision"
        return [Element("rect", attrs)]


class Vbox(Box):
    """Box that stacks its children top to bottom."""

    kind = "vbox"
    stacking = "vertical"


class Hbox(Box):
    """Box that stacks its children left to right."""

    kind = "hbox"
    stacking = "horizontal"


class Icon(Shape):
    """Leaf shape with a size fixed by configuration."""

    config_class = IconConfig
    default_size = (40.0, 40.0)

    def __init__(self, **options: Any) -> None:
        super().__init__(**options)

    def natural_size(self) -> Tuple[float, float]:
        width = self.config.width
        height = self.config.height
        return (
            self.default_size[0] if width is None else width,
            self.default_size[1] if height is None else height,
        )

    def layout(self, measurer: Optional[Measurer]) -> None:
        self.width, self.height = self.natural_size()


class Circle(Icon):
    kind = "circle"
    config_class = CircleConfig

    def natural_size(self) -> Tuple[float, float]:
        diameter = 2.0 * self.config.radius
        return diameter, diameter

    def draw(self) -> List[Element]:
        cx, cy = self.center()
        attrs = {"id": self.id, "cx": cx, "cy": cy, "r": self.config.radius}
        attrs.update(self._stroke_attrs())
        return [Element("circle", attrs)]

    def connection_points(self) -> Tuple[ConnectionPoint, ...]:
        return _elliptic_points(self.center(), self.width / 2.0, self.height / 2.0) or super().connection_points()


class Ellipse(Icon):
    kind = "ellipse"
    config_class = EllipseConfig

    def natural_size(self) -> Tuple[float, float]:
        return 2.0 * self.config.rx, 2.0 * self.config.ry

    def draw(self) -> List[Element]:
        cx, cy = self.center()
        attrs = {"id": self.id, "cx": cx, "cy": cy, "rx": self.config.rx, "ry": self.config.ry}
        attrs.update(self._stroke_attrs())
        return [Element("ellipse", attrs)]

    def connection_points(self) -> Tuple[ConnectionPoint, ...]:
        return _elliptic_points(self.center(), self.width / 2.0, self.height / 2.0) or super().connection_points()


class Database(Icon):
    """Cylinder icon."""

    kind = "database"
    default_size = (60.0, 80.0)

    def draw(self) -> List[Element]:
        x, y, w, h = self.x, self.y, self.width, self.height
        rx = w / 2.0
        ry = min(h / 8.0, rx)
        body = _path(
            "M", x, y + ry, "L", x, y + h - ry,
            "A", rx, ry, 0, 0, 0, x + w, y + h - ry,
            "L", x + w, y + ry, "A", rx, ry, 0, 0, 0, x, y + ry, "Z",
        )
        stroke = self._stroke_attrs()
        return [
            Element(
                "g",
                {"id": self.id},
                [
                    Element("path", dict(stroke, d=body)),
                    Element("ellipse", dict(stroke, cx=x + rx, cy=y + ry, rx=rx, ry=ry)),
                ],
            )
        ]


class User(Icon):
    """Head-and-shoulders person icon."""

    kind = "user"
    default_size = (40.0, 60.0)

    def draw(self) -> List[Element]:
        x, y, w, h = self.x, self.y, self.width, self.height
        head_r = min(w, h) * 0.25
        shoulder = y + h * 0.6
        neck = y + h * 0.45
        body = _path(
            "M", x, y + h, "L", x, shoulder, "Q", x, neck, x + w / 2.0, neck,
            "Q", x + w, neck, x + w, shoulder, "L", x + w, y + h, "Z",
        )
        stroke = self._stroke_attrs()
        return [
            Element(
                "g",
                {"id": self.id},
                [
                    Element("circle", dict(stroke, cx=x + w / 2.0, cy=y + head_r, r=head_r)),
                    Element("path", dict(stroke, d=body)),
                ],
            )
        ]


def _elliptic_points(
    center: Tuple[float, float], rx: float, ry: float, count: int = 8
) -> Tuple[ConnectionPoint, ...]:
    """Points around an ellipse starting at the top and going clockwise."""
    if rx <= 0 or ry <= 0:
        return ()
    cx, cy = center
    points = []
    for index in range(count):
        theta = -math.pi / 2.0 + index * 2.0 * math.pi / count
        cos_t = math.cos(theta)
        sin_t = math.sin(theta)
        points.append(
            ConnectionPoint((cx + rx * cos_t, cy + ry * sin_t), unit(cos_t / rx, sin_t / ry))
        )
    return tuple(points)


def _path(*parts: Any) -> str:
    return " ".join(part if isinstance(part, str) else fmt(part) for part in parts)
