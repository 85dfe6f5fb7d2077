"""Small geometry helpers shared by shapes, the router and markers."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

Point = Tuple[float, float]
Affine = Tuple[float, float, float, float, float, float]


@dataclass(frozen=True)
class ConnectionPoint:
    """A boundary position paired with the outward unit normal at that spot."""

    position: Point
    normal: Point


def distance(p: Point, q: Point) -> float:
    return math.hypot(q[0] - p[0], q[1] - p[1])


def unit(vx: float, vy: float) -> Point:
    length = math.hypot(vx, vy)
    if length <= 1e-12:
        raise ValueError("cannot normalize a zero-length vector")
    return (vx / length, vy / length)


def rotation_affine(point: Point, normal: Point) -> Affine:
    """Rotate +x onto ``normal`` and translate the origin to ``point``.

    The tuple is in SVG ``matrix(a, b, c, d, e, f)`` order; for a unit normal
    the rotation uses cos = nx and sin = ny directly.
    """
    nx, ny = normal
    x, y = point
    return (nx, ny, -ny, nx, x, y)


def apply_affine(m: Affine, p: Point) -> Point:
    a, b, c, d, e, f = m
    x, y = p
    return (a * x + c * y + e, b * x + d * y + f)


def fmt(value: float) -> str:
    if math.isclose(value, round(value), abs_tol=1e-9):
        return str(int(round(value)))
    return f"{value:.3f}".rstrip("0").rstrip(".")
