from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from io import BytesIO
from typing import Protocol

from PIL import Image


@dataclass(frozen=True)
class PosterImage:
    data: bytes
    mime_type: str = "image/png"

    @cached_property
    def size(self) -> tuple[int, int]:
        # Natural pixel size; decoded on first use only.
        with Image.open(BytesIO(self.data)) as img:
            return img.size

    def to_pil(self) -> Image.Image:
        img = Image.open(BytesIO(self.data))
        img.load()
        return img

    @classmethod
    def from_pil(cls, img: Image.Image) -> "PosterImage":
        buf = BytesIO()
        img.save(buf, format="PNG")
        return cls(data=buf.getvalue(), mime_type="image/png")


class PosterProvider(Protocol):
    name: str

    async def suggest_concept(self, images: list[PosterImage]) -> str: ...

    async def generate(self, images: list[PosterImage], prompt: str) -> PosterImage: ...

    async def edit(
        self,
        base: PosterImage,
        prompt: str,
        mask: PosterImage | None = None,
    ) -> PosterImage: ...
