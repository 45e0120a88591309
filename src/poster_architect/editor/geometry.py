from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class DisplayRect:
    """Rectangle in on-screen pixels, relative to the top-left of the rendered image."""

    x: float
    y: float
    width: float
    height: float

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


@dataclass(frozen=True)
class OriginalRect:
    """Rectangle in the source image's natural pixel grid."""

    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    def clamp(self, canvas: Size) -> "OriginalRect":
        x0 = max(0, min(self.x, int(canvas.width)))
        y0 = max(0, min(self.y, int(canvas.height)))
        x1 = max(0, min(self.x + self.width, int(canvas.width)))
        y1 = max(0, min(self.y + self.height, int(canvas.height)))
        return OriginalRect(x0, y0, max(0, x1 - x0), max(0, y1 - y0))


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def map_to_original(selection: DisplayRect, displayed: Size, natural: Size) -> OriginalRect | None:
    """
    Scale a display-space rect into natural pixel space.

    x and y scale independently, so a display box that is not letterboxed
    exactly to the image aspect still maps correctly. Returns None while either
    size is unknown (zero or negative).
    """
    if displayed.width <= 0 or displayed.height <= 0:
        return None
    if natural.width <= 0 or natural.height <= 0:
        return None

    sx = natural.width / displayed.width
    sy = natural.height / displayed.height
    return OriginalRect(
        x=_round_half_up(selection.x * sx),
        y=_round_half_up(selection.y * sy),
        width=_round_half_up(selection.width * sx),
        height=_round_half_up(selection.height * sy),
    )
