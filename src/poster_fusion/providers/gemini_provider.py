from __future__ import annotations

from typing import Any, Sequence

from poster_fusion.config import settings
from poster_fusion.errors import MalformedResponse, NoImageReturned
from poster_fusion.imaging.raster import ImageObject, blank_canvas

CONCEPT_PROMPT = (
    "Analyze the product image(s) above. From the product's look, style and likely use, "
    "write a creative, detailed concept for a promotional poster.\n"
    "Return a single paragraph of roughly 200-300 characters.\n"
    "Return only the concept text: no preamble, no markdown."
)


def build_poster_prompt(concept: str, aspect_ratio: str, has_reference: bool) -> str:
    """
    The instruction text sent after all images. It describes the image order:
    canvas first, then products, then the optional style reference.
    """
    lines = [
        "Task: create a promotional poster.",
        "",
        f"Canvas: the FIRST image is a blank canvas with the target aspect ratio {aspect_ratio}. "
        "Use it as the foundation; the output must keep its dimensions.",
        "",
        f'Creative concept: "{concept}"',
        "",
        "Instructions:",
        "1. Replace the blank canvas entirely with a new scene inspired by the creative concept.",
        "2. The image(s) after the canvas are the product(s). Cut them out cleanly from their backgrounds.",
        "3. Place the product(s) in the scene as the main focus, natural and well composed.",
    ]
    if has_reference:
        lines.append(
            "4. The LAST image is a style reference. Take its palette, lighting and mood as strong inspiration."
        )
    lines += ["", "Output: return ONLY the final image. No text, logos or watermarks."]
    return "\n".join(lines)


def build_edit_prompt(instruction: str) -> str:
    return f'Apply the following edit to the image: "{instruction}". Output only the edited image.'


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str) -> None:
        # Imported lazily so the app can start without the dependency installed.
        from google import genai  # type: ignore

        self._genai = genai
        self.client = genai.Client(api_key=api_key)

    def _image_part(self, image: ImageObject) -> Any:
        from google.genai import types  # type: ignore

        return types.Part.from_bytes(data=image.data, mime_type=image.mime_type)

    async def _generate_image(self, contents: list[Any]) -> ImageObject:
        from google.genai import types  # type: ignore

        resp = await self.client.aio.models.generate_content(
            model=settings.gemini_image_model,
            contents=contents,
            config=types.GenerateContentConfig(response_modalities=["IMAGE", "TEXT"]),
        )
        return extract_image(resp)

    async def generate_poster(
        self,
        product_images: Sequence[ImageObject],
        concept: str,
        aspect_ratio: str,
        reference_image: ImageObject | None = None,
    ) -> ImageObject:
        # Part order matters: canvas, products, reference, then the text.
        contents: list[Any] = [self._image_part(blank_canvas(aspect_ratio))]
        contents += [self._image_part(img) for img in product_images]
        if reference_image is not None:
            contents.append(self._image_part(reference_image))
        contents.append(build_poster_prompt(concept, aspect_ratio, reference_image is not None))
        return await self._generate_image(contents)

    async def edit_poster(self, poster: ImageObject, instruction: str) -> ImageObject:
        return await self._generate_image([self._image_part(poster), build_edit_prompt(instruction)])

    async def suggest_concept(self, images: Sequence[ImageObject]) -> str:
        contents: list[Any] = [self._image_part(img) for img in images]
        contents.append(CONCEPT_PROMPT)
        resp = await self.client.aio.models.generate_content(
            model=settings.gemini_text_model,
            contents=contents,
        )
        return (getattr(resp, "text", None) or "").strip()


def extract_image(resp: Any) -> ImageObject:
    """
    Pull the first inline image out of a generate_content response.
    - no candidate content at all: MalformedResponse
    - content without an image: NoImageReturned, carrying any text the model sent back
    """
    candidates = getattr(resp, "candidates", None) or []
    content = getattr(candidates[0], "content", None) if candidates else None
    parts = getattr(content, "parts", None) or []
    if not parts:
        raise MalformedResponse("invalid response structure from the image model")

    texts: list[str] = []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None) if inline else None
        if data:
            mime = getattr(inline, "mime_type", None) or "image/png"
            if mime.startswith("image/"):
                return ImageObject(data=data, mime_type=mime)
        text = getattr(part, "text", None)
        if text:
            texts.append(text)

    if texts:
        model_text = "\n".join(texts).strip()
        raise NoImageReturned(f"the image model did not return an image. Response: {model_text}", model_text)
    raise NoImageReturned("no image found in the image model response")
