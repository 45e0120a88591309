"""
Shared fixtures: PNG factories and a scripted stand-in for the image model.
"""

from __future__ import annotations

import asyncio

import pytest
from PIL import Image

from poster_architect.providers.base import PosterImage


class FakeProvider:
    """
    Plays back queued responses. Queue an Exception instance to make the
    next call raise it. Set `gate` to an asyncio.Event to hold calls open.
    """

    name = "fake"

    def __init__(self) -> None:
        self.concepts: list = []
        self.results: list = []
        self.calls: list[tuple] = []
        self.gate: asyncio.Event | None = None

    async def suggest_concept(self, images):
        self.calls.append(("suggest", list(images)))
        return await self._next(self.concepts)

    async def generate(self, images, prompt):
        self.calls.append(("generate", list(images), prompt))
        return await self._next(self.results)

    async def edit(self, base, prompt, mask=None):
        self.calls.append(("edit", base, prompt, mask))
        return await self._next(self.results)

    async def _next(self, queue):
        if self.gate is not None:
            await self.gate.wait()
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def make_png():
    """
    Build a PosterImage PNG of the given size; vary `color` to get distinct payloads.
    """

    def _make(width: int = 400, height: int = 400, color=(200, 30, 30)) -> PosterImage:
        return PosterImage.from_pil(Image.new("RGB", (width, height), color))

    return _make
