from __future__ import annotations

import base64
from typing import Any, Sequence

from poster_fusion.config import settings
from poster_fusion.imaging.raster import ImageObject
from poster_fusion.providers.gemini_provider import CONCEPT_PROMPT


def _data_url(image: ImageObject) -> str:
    return f"data:{image.mime_type};base64,{base64.b64encode(image.data).decode('ascii')}"


class OpenAITextProvider:
    name = "openai"

    def __init__(self, api_key: str) -> None:
        from openai import AsyncOpenAI  # type: ignore

        self.client = AsyncOpenAI(api_key=api_key)

    async def suggest_concept(self, images: Sequence[ImageObject]) -> str:
        """
        Alternative concept writer: same prompt as Gemini, images sent as data URLs.
        """
        content: list[dict[str, Any]] = [{"type": "input_image", "image_url": _data_url(img)} for img in images]
        content.append({"type": "input_text", "text": CONCEPT_PROMPT})

        # The Responses API is the forward path; keep it minimal.
        resp = await self.client.responses.create(
            model=settings.openai_text_model,
            input=[{"role": "user", "content": content}],
        )
        return (getattr(resp, "output_text", None) or "").strip()
