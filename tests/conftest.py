"""Shared test fixtures: in-memory PNGs and fake remote providers."""

from __future__ import annotations

import asyncio
import io

import pytest
from PIL import Image

from poster_fusion.imaging.raster import ImageObject


def _png(size: tuple[int, int] = (64, 48), color: tuple[int, int, int] = (200, 30, 30)) -> bytes:
    img = Image.new("RGB", size, color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class FakePosterProvider:
    name = "fake"

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.fail: Exception | None = None
        self.gate: asyncio.Event | None = None
        self._counter = 0

    def _next_poster(self) -> ImageObject:
        self._counter += 1
        # A distinct color per call keeps every poster's bytes unique.
        return ImageObject(data=_png((64, 64), (self._counter * 20 % 256, 90, 160)), mime_type="image/png")

    async def _respond(self) -> ImageObject:
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        return self._next_poster()

    async def generate_poster(self, product_images, concept, aspect_ratio, reference_image=None):
        self.calls.append(
            (
                "generate",
                {
                    "product_images": list(product_images),
                    "concept": concept,
                    "aspect_ratio": aspect_ratio,
                    "reference_image": reference_image,
                },
            )
        )
        return await self._respond()

    async def edit_poster(self, poster, instruction):
        self.calls.append(("edit", {"poster": poster, "instruction": instruction}))
        return await self._respond()


class FakeConceptProvider:
    name = "fake"

    def __init__(self, text: str = "A bold citrus splash poster with sunlit studio lighting.") -> None:
        self.text = text
        self.calls: list[list[ImageObject]] = []
        self.fail: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def suggest_concept(self, images):
        self.calls.append(list(images))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail is not None:
            raise self.fail
        return f"  {self.text}  "


@pytest.fixture
def make_png():
    return _png


@pytest.fixture
def product_image() -> ImageObject:
    return ImageObject(data=_png((80, 60), (10, 200, 10)), mime_type="image/png")


@pytest.fixture
def poster_provider() -> FakePosterProvider:
    return FakePosterProvider()


@pytest.fixture
def concept_provider() -> FakeConceptProvider:
    return FakeConceptProvider()
