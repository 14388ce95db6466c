"""Gemini provider tests with a stub client; no network calls."""

from __future__ import annotations

import asyncio
import io
from types import SimpleNamespace

import pytest
from PIL import Image

from poster_fusion.errors import MalformedResponse, NoImageReturned
from poster_fusion.imaging.raster import ImageObject
from poster_fusion.providers.gemini_provider import (
    GeminiProvider,
    build_poster_prompt,
    extract_image,
)


def _response(*parts):
    return SimpleNamespace(candidates=[SimpleNamespace(content=SimpleNamespace(parts=list(parts)))])


def _image_part(data: bytes, mime: str = "image/png"):
    return SimpleNamespace(inline_data=SimpleNamespace(data=data, mime_type=mime), text=None)


def _text_part(text: str):
    return SimpleNamespace(inline_data=None, text=text)


class StubModels:
    def __init__(self, response) -> None:
        self.response = response
        self.requests: list[dict] = []

    async def generate_content(self, **kwargs):
        self.requests.append(kwargs)
        return self.response


def _provider(response) -> tuple[GeminiProvider, StubModels]:
    models = StubModels(response)
    provider = GeminiProvider.__new__(GeminiProvider)
    provider.client = SimpleNamespace(aio=SimpleNamespace(models=models))
    return provider, models


def test_extract_image_returns_first_inline_image():
    resp = _response(_text_part("here you go"), _image_part(b"png-bytes"), _image_part(b"second"))
    image = extract_image(resp)
    assert image == ImageObject(data=b"png-bytes", mime_type="image/png")


def test_extract_image_text_only_raises_no_image():
    with pytest.raises(NoImageReturned) as excinfo:
        extract_image(_response(_text_part("I cannot help with that request.")))
    assert excinfo.value.model_text == "I cannot help with that request."
    assert "I cannot help" in excinfo.value.message


def test_extract_image_without_parts_is_malformed():
    with pytest.raises(MalformedResponse):
        extract_image(SimpleNamespace(candidates=[]))
    with pytest.raises(MalformedResponse):
        extract_image(SimpleNamespace(candidates=None))
    with pytest.raises(MalformedResponse):
        extract_image(_response())


def test_extract_image_ignores_non_image_inline_data():
    with pytest.raises(NoImageReturned):
        extract_image(_response(_image_part(b"{}", "application/json")))


def test_poster_prompt_mentions_reference_only_when_given():
    with_ref = build_poster_prompt("Citrus splash", "9:16", True)
    without_ref = build_poster_prompt("Citrus splash", "9:16", False)
    assert "9:16" in with_ref and '"Citrus splash"' in with_ref
    assert "style reference" in with_ref
    assert "style reference" not in without_ref


def test_generate_poster_sends_parts_in_order(make_png):
    provider, models = _provider(_response(_image_part(b"poster")))
    products = [
        ImageObject(data=make_png(color=(1, 1, 1)), mime_type="image/png"),
        ImageObject(data=make_png(color=(2, 2, 2)), mime_type="image/jpeg"),
    ]
    reference = ImageObject(data=make_png(color=(3, 3, 3)), mime_type="image/webp")

    poster = asyncio.run(provider.generate_poster(products, "Citrus splash", "16:9", reference))
    assert poster.data == b"poster"

    contents = models.requests[0]["contents"]
    assert len(contents) == 5
    canvas = Image.open(io.BytesIO(contents[0].inline_data.data))
    assert canvas.size == (1024, 576)
    assert [c.inline_data.data for c in contents[1:4]] == [products[0].data, products[1].data, reference.data]
    assert contents[2].inline_data.mime_type == "image/jpeg"
    assert isinstance(contents[4], str) and "16:9" in contents[4]


def test_edit_poster_sends_poster_then_instruction():
    provider, models = _provider(_response(_image_part(b"edited", "image/jpeg")))
    edited = asyncio.run(provider.edit_poster(ImageObject(data=b"current", mime_type="image/png"), "add rain"))
    assert edited == ImageObject(data=b"edited", mime_type="image/jpeg")
    contents = models.requests[0]["contents"]
    assert contents[0].inline_data.data == b"current"
    assert '"add rain"' in contents[1]


def test_suggest_concept_trims_text():
    provider, models = _provider(SimpleNamespace(text="\n  A sunlit poster.  \n"))
    text = asyncio.run(provider.suggest_concept([ImageObject(data=b"p", mime_type="image/png")]))
    assert text == "A sunlit poster."
    assert models.requests[0]["model"] == "gemini-2.5-flash"
