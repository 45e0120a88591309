from __future__ import annotations

from poster_architect.providers.base import PosterImage


class EditHistory:
    """
    Linear poster history with a cursor.

    seed() and commit() are the only calls that change the length; undo() and
    redo() just move the cursor, so redo never re-runs an edit. commit() drops
    everything after the cursor before appending.
    """

    def __init__(self) -> None:
        self._entries: list[PosterImage] = []
        self._index = -1

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> tuple[PosterImage, ...]:
        return tuple(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return 0 <= self._index < len(self._entries) - 1

    def reset(self) -> None:
        self._entries = []
        self._index = -1

    def seed(self, image: PosterImage) -> None:
        self._entries = [image]
        self._index = 0

    def commit(self, image: PosterImage) -> None:
        self._entries = self._entries[: self._index + 1] + [image]
        self._index = len(self._entries) - 1

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._index -= 1
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._index += 1
        return True

    def current(self) -> PosterImage | None:
        if self._index < 0:
            return None
        return self._entries[self._index]
