from __future__ import annotations

from enum import Enum

from poster_architect.editor.geometry import DisplayRect


class SelectionPhase(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"
    SELECTED = "selected"


def _bounding_box(origin: tuple[float, float], point: tuple[float, float]) -> DisplayRect:
    ox, oy = origin
    px, py = point
    return DisplayRect(
        x=min(ox, px),
        y=min(oy, py),
        width=abs(px - ox),
        height=abs(py - oy),
    )


class SelectionTracker:
    """
    Turns pointer events over the displayed poster into a rectangular selection.

    idle --down--> dragging --move--> dragging (live box)
    dragging --up/leave--> selected, or idle when the box has no area
    selected --clear--> idle
    """

    def __init__(self) -> None:
        self.phase = SelectionPhase.IDLE
        self.enabled = True
        self._origin: tuple[float, float] | None = None
        self._rect: DisplayRect | None = None

    @property
    def rect(self) -> DisplayRect | None:
        """Live box while dragging, finalized box once selected, else None."""
        if self.phase == SelectionPhase.IDLE:
            return None
        return self._rect

    @property
    def selection(self) -> DisplayRect | None:
        if self.phase != SelectionPhase.SELECTED:
            return None
        return self._rect

    def pointer_down(self, x: float, y: float) -> bool:
        if not self.enabled:
            return False
        # A new drag drops the previous selection right away.
        self._origin = (x, y)
        self._rect = None
        self.phase = SelectionPhase.DRAGGING
        return True

    def pointer_move(self, x: float, y: float) -> DisplayRect | None:
        if self.phase != SelectionPhase.DRAGGING or self._origin is None:
            return None
        self._rect = _bounding_box(self._origin, (x, y))
        return self._rect

    def pointer_up(self) -> DisplayRect | None:
        return self._finalize()

    def pointer_leave(self) -> DisplayRect | None:
        # Leaving the surface keeps the box; a lost pointer-up must not eat the drag.
        return self._finalize()

    def clear(self) -> None:
        self.phase = SelectionPhase.IDLE
        self._origin = None
        self._rect = None

    def _finalize(self) -> DisplayRect | None:
        if self.phase != SelectionPhase.DRAGGING:
            return self.selection
        rect = self._rect
        self._origin = None
        if rect is None or rect.is_empty:
            self.clear()
            return None
        self.phase = SelectionPhase.SELECTED
        return rect
