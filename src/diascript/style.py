"""Validated configuration structures for shapes and lines."""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, fields
from typing import Any, Callable, ClassVar, Dict, Mapping, Optional, Sequence, TypeVar, Union

from .errors import ConfigurationError

# Alignment keywords map onto the leading/center/trailing policy of the layout engine.
HALIGN = {"left": "start", "center": "center", "right": "end"}
VALIGN = {"top": "start", "middle": "center", "bottom": "end"}

PaddingValue = Union[float, int, str, Sequence[float], "Padding", None]

C = TypeVar("C", bound="_Config")


@dataclass(frozen=True)
class Padding:
    """Padding resolved into its four edges."""

    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    @classmethod
    def resolve(cls, value: PaddingValue) -> "Padding":
        """Expand a number or a 1-4 item CSS shorthand into four edges.

        10 or [10]            all sides 10
        [10, 20]              vertical 10, horizontal 20
        [10, 20, 30]          top 10, horizontal 20, bottom 30
        [10, 20, 30, 40]      top, right, bottom, left
        """
        if value is None:
            return cls()
        if isinstance(value, Padding):
            return value
        if isinstance(value, str):
            parts = [chunk for chunk in re.split(r"[\s,]+", value.strip()) if chunk]
            values = [_number(chunk) for chunk in parts]
        elif isinstance(value, (int, float)) and not isinstance(value, bool):
            values = [_number(value)]
        else:
            try:
                values = [_number(item) for item in value]
            except TypeError as exc:
                raise ValueError(f"unsupported padding value {value!r}") from exc
        if len(values) == 1:
            (a,) = values
            return cls(a, a, a, a)
        if len(values) == 2:
            v, h = values
            return cls(v, h, v, h)
        if len(values) == 3:
            t, h, b = values
            return cls(t, h, b, h)
        if len(values) == 4:
            return cls(*values)
        raise ValueError(f"padding takes 1 to 4 values, got {len(values)}")


def _number(value: Any) -> float:
    if isinstance(value, bool):
        raise ValueError(f"expected a number, got {value!r}")
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("px"):
            text = text[:-2]
        try:
            number = float(text)
        except ValueError:
            raise ValueError(f"expected a number, got {value!r}") from None
    elif isinstance(value, (int, float)):
        number = float(value)
    else:
        raise ValueError(f"expected a number, got {value!r}")
    if not math.isfinite(number):
        raise ValueError(f"expected a finite number, got {value!r}")
    return number


def _size(value: Any) -> float:
    number = _number(value)
    if number < 0:
        raise ValueError(f"expected a non-negative number, got {value!r}")
    return number


def _text(value: Any) -> str:
    return str(value)


def _choice(options: Mapping[str, str]) -> Callable[[Any], str]:
    def convert(value: Any) -> str:
        key = str(value).strip().lower()
        if key not in options:
            raise ValueError(f"expected one of {', '.join(options)}, got {value!r}")
        return key

    return convert


def _convert(fn: Callable[[Any], Any]) -> Dict[str, Any]:
    return {"convert": fn}


@dataclass(frozen=True)
class _Config:
    """Common behaviour: type coercion on construction and strict mapping input."""

    ALIASES: ClassVar[Dict[str, str]] = {}

    id: Optional[str] = field(default=None, metadata=_convert(_text))

    def __post_init__(self) -> None:
        for f in fields(self):
            convert = f.metadata.get("convert")
            value = getattr(self, f.name)
            if convert is None or value is None:
                continue
            try:
                object.__setattr__(self, f.name, convert(value))
            except ValueError as exc:
                raise ConfigurationError(
                    f"{type(self).__name__}: invalid value for {f.name!r}: {exc}"
                ) from None

    @classmethod
    def from_mapping(cls: type[C], values: Optional[Mapping[str, Any]] = None) -> C:
        """Build a configuration from keyword-style options, rejecting unknown keys."""
        known = {f.name for f in fields(cls)}
        kwargs: Dict[str, Any] = {}
        unknown = []
        for key, value in (values or {}).items():
            name = cls.ALIASES.get(key, key).replace("-", "_")
            if name not in known:
                unknown.append(key)
                continue
            kwargs[name] = value
        if unknown:
            raise ConfigurationError(
                f"{cls.__name__}: unknown option(s) {', '.join(sorted(unknown))}"
            )
        return cls(**kwargs)


@dataclass(frozen=True)
class TextConfig(_Config):
    fill: str = field(default="black", metadata=_convert(_text))
    font_weight: str = field(default="normal", metadata=_convert(_text))
    font_size: float = field(default=16.0, metadata=_convert(_size))
    font_family: Optional[str] = field(default=None, metadata=_convert(_text))


@dataclass(frozen=True)
class ShapeConfig(_Config):
    fill: str = field(default="white", metadata=_convert(_text))
    stroke: str = field(default="black", metadata=_convert(_text))
    stroke_width: float = field(default=1.0, metadata=_convert(_size))
    stroke_dasharray: Optional[str] = field(default=None, metadata=_convert(_text))


@dataclass(frozen=True)
class BoxConfig(ShapeConfig):
    corner_radius: float = field(default=0.0, metadata=_convert(_size))
    align: str = field(default="center", metadata=_convert(_choice(HALIGN)))
    valign: str = field(default="middle", metadata=_convert(_choice(VALIGN)))
    padding: Padding = field(default=Padding(), metadata=_convert(Padding.resolve))
    spacing: float = field(default=0.0, metadata=_convert(_number))
    width: Optional[float] = field(default=None, metadata=_convert(_size))
    height: Optional[float] = field(default=None, metadata=_convert(_size))


@dataclass(frozen=True)
class CircleConfig(ShapeConfig):
    radius: float = field(default=20.0, metadata=_convert(_size))


@dataclass(frozen=True)
class EllipseConfig(ShapeConfig):
    rx: float = field(default=40.0, metadata=_convert(_size))
    ry: float = field(default=20.0, metadata=_convert(_size))


@dataclass(frozen=True)
class IconConfig(ShapeConfig):
    width: Optional[float] = field(default=None, metadata=_convert(_size))
    height: Optional[float] = field(default=None, metadata=_convert(_size))


@dataclass(frozen=True)
class LineConfig(_Config):
    ALIASES: ClassVar[Dict[str, str]] = {"from": "source", "to": "target"}

    source: Optional[str] = field(default=None, metadata=_convert(_text))
    target: Optional[str] = field(default=None, metadata=_convert(_text))
    stroke: str = field(default="black", metadata=_convert(_text))
    stroke_width: float = field(default=1.0, metadata=_convert(_size))
    stroke_dasharray: Optional[str] = field(default=None, metadata=_convert(_text))
    start_marker: Optional[str] = field(default=None, metadata=_convert(_text))
    end_marker: Optional[str] = field(default=None, metadata=_convert(_text))
