from __future__ import annotations

import hashlib
from typing import Iterator

from poster_architect.providers.base import PosterImage


def _sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


class FinalsCollection:
    """Posters the user chose to keep, in save order, one per distinct payload."""

    def __init__(self) -> None:
        self._images: list[PosterImage] = []
        self._digests: set[str] = set()

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[PosterImage]:
        return iter(list(self._images))

    def __getitem__(self, idx: int) -> PosterImage:
        return self._images[idx]

    @property
    def images(self) -> tuple[PosterImage, ...]:
        return tuple(self._images)

    def add(self, image: PosterImage) -> bool:
        digest = _sha256_bytes(image.data)
        if digest in self._digests:
            return False
        self._digests.add(digest)
        self._images.append(image)
        return True
