"""Pick the closest pair of connection points between two rendered shapes."""
from __future__ import annotations

from typing import Tuple

from .geometry import ConnectionPoint, distance
from .shapes import Shape


def closest_pair(
    source_points: Tuple[ConnectionPoint, ...],
    target_points: Tuple[ConnectionPoint, ...],
) -> Tuple[ConnectionPoint, ConnectionPoint]:
    """Exhaustive search; on ties the first pair in enumeration order wins."""
    best = None
    for p in source_points:
        for q in target_points:
            dist = distance(p.position, q.position)
            if best is None or dist < best[0]:
                best = (dist, p, q)
    if best is None:
        raise ValueError("both shapes need at least one connection point")
    return best[1], best[2]


def route(source: Shape, target: Shape) -> Tuple[ConnectionPoint, ConnectionPoint]:
    return closest_pair(source.connection_points(), target.connection_points())
