from __future__ import annotations

from typing import Protocol, Sequence

from poster_fusion.imaging.raster import ImageObject


class PosterProvider(Protocol):
    name: str

    async def generate_poster(
        self,
        product_images: Sequence[ImageObject],
        concept: str,
        aspect_ratio: str,
        reference_image: ImageObject | None = None,
    ) -> ImageObject: ...

    async def edit_poster(self, poster: ImageObject, instruction: str) -> ImageObject: ...


class ConceptProvider(Protocol):
    name: str

    async def suggest_concept(self, images: Sequence[ImageObject]) -> str: ...
