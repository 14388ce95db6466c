from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Sequence

from poster_fusion.errors import (
    MissingInput,
    OperationInProgress,
    PosterError,
    RemoteCallFailure,
    SuggestionFailure,
)
from poster_fusion.gallery import Gallery
from poster_fusion.imaging.geometry import DEFAULT_ASPECT_RATIO, quality_dimensions
from poster_fusion.imaging.raster import ImageObject, export_poster
from poster_fusion.providers.base import ConceptProvider, PosterProvider
from poster_fusion.suggestions import SuggestionDebouncer
from poster_fusion.viewport import ViewportController

logger = logging.getLogger(__name__)


class PosterSession:
    """
    All state of one poster-making session, held in memory.

    Generate and edit are single-flight. The concept suggester runs alongside
    them and only ever writes `concept`. Providers are resolved lazily through
    factories so a missing API key only matters once a remote call is needed.
    """

    def __init__(
        self,
        poster_provider: Callable[[], PosterProvider],
        concept_provider: Callable[[], ConceptProvider],
        quiet_period: float | None = None,
    ) -> None:
        self._poster_provider = poster_provider
        self._concept_provider = concept_provider

        self.product_images: list[ImageObject] = []
        self.reference_image: ImageObject | None = None
        self.concept = ""
        self.aspect_ratio = DEFAULT_ASPECT_RATIO
        self.edit_instruction = ""

        self.current_poster: ImageObject | None = None
        # Ratio the current poster was generated at; edits keep it.
        self.poster_aspect_ratio = DEFAULT_ASPECT_RATIO

        self.gallery = Gallery()
        self.viewport = ViewportController()

        self.loading_message = ""
        self.last_error: str | None = None
        self._busy = False
        self._exporting = 0
        # Bumped on every manual concept edit.
        self._concept_revision = 0

        self._suggester: SuggestionDebouncer[ImageObject, tuple[str, int]] = SuggestionDebouncer(
            request=self._request_suggestion,
            on_result=self._apply_suggestion,
            on_clear=self._clear_suggestion,
            quiet_period=quiet_period,
        )

    # ---- inputs ----
    def set_product_images(self, images: Sequence[ImageObject]) -> None:
        self.product_images = list(images)
        self._set_poster(None)
        self._suggester.watch(self.product_images)

    def set_reference_image(self, image: ImageObject | None) -> None:
        self.reference_image = image

    def set_concept(self, text: str) -> None:
        self.concept = text
        self._concept_revision += 1

    def set_aspect_ratio(self, tag: str) -> None:
        self.aspect_ratio = tag

    def set_edit_instruction(self, text: str) -> None:
        self.edit_instruction = text

    def dismiss_error(self) -> None:
        self.last_error = None

    # ---- state ----
    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def suggesting(self) -> bool:
        return self._suggester.in_progress

    def _set_poster(self, poster: ImageObject | None) -> None:
        self.current_poster = poster
        self.viewport.show(poster)

    def _sync_viewport(self) -> None:
        self.viewport.set_busy(self._busy or self._exporting > 0)

    def _fail(self, exc: PosterError) -> PosterError:
        self.last_error = exc.message
        return exc

    # ---- suggestions ----
    async def _request_suggestion(self, images: Sequence[ImageObject]) -> tuple[str, int]:
        revision = self._concept_revision
        provider = self._concept_provider()
        text = (await provider.suggest_concept(images)).strip()
        if not text:
            raise SuggestionFailure("concept suggestion came back empty")
        return text, revision

    def _apply_suggestion(self, result: tuple[str, int]) -> None:
        text, revision = result
        if revision != self._concept_revision:
            logger.info("concept was edited while a suggestion was in flight; keeping the edit")
            return
        self.concept = text

    def _clear_suggestion(self) -> None:
        self.concept = ""

    # ---- remote operations ----
    def _begin(self, message: str) -> None:
        self._busy = True
        self.loading_message = message
        self.last_error = None
        self._sync_viewport()

    def _end(self) -> None:
        self._busy = False
        self.loading_message = ""
        self._sync_viewport()

    async def generate(self) -> ImageObject:
        if self._busy:
            raise self._fail(OperationInProgress("another generate or edit is still running"))
        if not self.product_images:
            raise self._fail(MissingInput("Please upload at least one product image first."))
        if not self.concept.strip():
            raise self._fail(MissingInput("Please provide a concept for the poster."))

        aspect_ratio = self.aspect_ratio
        self._begin("Generating poster...")
        try:
            provider = self._poster_provider()
            poster = await provider.generate_poster(
                product_images=list(self.product_images),
                concept=self.concept,
                aspect_ratio=aspect_ratio,
                reference_image=self.reference_image,
            )
        except PosterError as exc:
            logger.warning("poster generation failed: %s", exc.message)
            raise self._fail(exc)
        except Exception as exc:
            logger.exception("poster generation failed")
            raise self._fail(RemoteCallFailure(f"Failed to generate poster: {exc}")) from exc
        finally:
            self._end()

        self.poster_aspect_ratio = aspect_ratio
        self._set_poster(poster)
        return poster

    async def edit(self) -> ImageObject:
        if self._busy:
            raise self._fail(OperationInProgress("another generate or edit is still running"))
        if self.current_poster is None:
            raise self._fail(MissingInput("Generate a poster before you can edit it."))
        if not self.edit_instruction.strip():
            raise self._fail(MissingInput("Please provide an edit instruction."))

        source = self.current_poster
        self._begin("Applying edits...")
        try:
            provider = self._poster_provider()
            poster = await provider.edit_poster(source, self.edit_instruction)
        except PosterError as exc:
            logger.warning("poster edit failed: %s", exc.message)
            raise self._fail(exc)
        except Exception as exc:
            logger.exception("poster edit failed")
            raise self._fail(RemoteCallFailure(f"Failed to edit poster: {exc}")) from exc
        finally:
            self._end()

        self._set_poster(poster)
        self.edit_instruction = ""
        return poster

    # ---- gallery & export ----
    def save_current(self) -> bool:
        if self.current_poster is None:
            raise self._fail(MissingInput("There is no poster to save yet."))
        return self.gallery.save(self.current_poster, self.poster_aspect_ratio)

    def clear_gallery(self) -> None:
        self.gallery.clear()

    def current_qualities(self) -> dict[str, tuple[int, int]]:
        return quality_dimensions(self.poster_aspect_ratio)

    async def _export(self, poster: ImageObject, aspect_ratio: str, tier: str) -> tuple[str, bytes]:
        # Export failures (DecodeError) stay with the caller; session state is untouched.
        self._exporting += 1
        self._sync_viewport()
        try:
            return await asyncio.to_thread(export_poster, poster, aspect_ratio, tier)
        finally:
            self._exporting -= 1
            self._sync_viewport()

    async def export_current(self, tier: str) -> tuple[str, bytes]:
        if self.current_poster is None:
            raise MissingInput("There is no poster to download yet.")
        return await self._export(self.current_poster, self.poster_aspect_ratio, tier)

    async def export_saved(self, index: int, tier: str) -> tuple[str, bytes]:
        entry = self.gallery.get(index)
        return await self._export(entry.poster, entry.aspect_ratio, tier)

    # ---- lifecycle ----
    def close(self) -> None:
        self._suggester.close()

    def snapshot(self) -> dict[str, Any]:
        return {
            "product_count": len(self.product_images),
            "has_reference": self.reference_image is not None,
            "concept": self.concept,
            "suggesting_concept": self.suggesting,
            "aspect_ratio": self.aspect_ratio,
            "edit_instruction": self.edit_instruction,
            "has_poster": self.current_poster is not None,
            "poster_aspect_ratio": self.poster_aspect_ratio if self.current_poster is not None else None,
            "loading": self._busy,
            "loading_message": self.loading_message,
            "error": self.last_error,
            "gallery_size": len(self.gallery),
            "viewport": self.viewport.snapshot(),
        }
