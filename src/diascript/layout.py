"""Box-model arithmetic shared by the row and column containers.

The container kinds only differ in which axis is the stacking axis, so the
computation works on abstract (main, cross) pairs and the caller maps them to
(height, width) or (width, height).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple


@dataclass(frozen=True)
class AxisSpec:
    forced: Optional[float]
    lead_padding: float
    trail_padding: float
    align: str  # "start", "center" or "end"

    @property
    def padding(self) -> float:
        return self.lead_padding + self.trail_padding


@dataclass(frozen=True)
class StackResult:
    main_size: float
    cross_size: float
    offsets: List[Tuple[float, float]]
    content_main: float
    content_cross: float


def leading_offset(slack: float, align: str) -> float:
    """Space placed before content for the given slack; negative slack is kept."""
    if align == "start":
        return 0.0
    if align == "end":
        return slack
    return slack / 2.0


def content_extent(extents: Sequence[float], spacing: float) -> float:
    if not extents:
        return 0.0
    return sum(extents) + spacing * (len(extents) - 1)


def stack(
    sizes: Sequence[Tuple[float, float]],
    main: AxisSpec,
    cross: AxisSpec,
    spacing: float,
) -> StackResult:
    """Place children consecutively along the main axis and align each across it.

    ``sizes`` holds each child's (main, cross) extent. Offsets are relative to
    the container origin and include padding.
    """
    content_main = content_extent([m for m, _ in sizes], spacing)
    content_cross = max((c for _, c in sizes), default=0.0)

    if main.forced is None:
        slack_main = 0.0
    else:
        slack_main = main.forced - main.padding - content_main
    if cross.forced is None:
        cross_room = content_cross
    else:
        cross_room = cross.forced - cross.padding

    cursor = main.lead_padding + leading_offset(slack_main, main.align)
    offsets: List[Tuple[float, float]] = []
    for index, (child_main, child_cross) in enumerate(sizes):
        if index > 0:
            cursor += spacing
        cross_offset = cross.lead_padding + leading_offset(cross_room - child_cross, cross.align)
        offsets.append((cursor, cross_offset))
        cursor += child_main

    main_size = main.forced if main.forced is not None else content_main + main.padding
    cross_size = cross.forced if cross.forced is not None else content_cross + cross.padding
    return StackResult(main_size, cross_size, offsets, content_main, content_cross)
