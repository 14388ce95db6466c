from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.responses import JSONResponse, Response

from poster_fusion.config import settings
from poster_fusion.errors import PosterError, ProviderNotConfigured
from poster_fusion.imaging.geometry import ASPECT_RATIOS, is_aspect_ratio, is_quality_tier, quality_dimensions
from poster_fusion.imaging.raster import ImageObject
from poster_fusion.imaging.uploads import image_from_upload
from poster_fusion.providers.base import ConceptProvider
from poster_fusion.providers.gemini_provider import GeminiProvider
from poster_fusion.providers.openai_provider import OpenAITextProvider
from poster_fusion.session import PosterSession

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)
logger = logging.getLogger(__name__)


def _get_gemini() -> GeminiProvider:
    if not settings.gemini_api_key:
        raise ProviderNotConfigured("GEMINI_API_KEY is not set")
    return GeminiProvider(api_key=settings.gemini_api_key)


def _get_openai_text() -> OpenAITextProvider:
    if not settings.openai_api_key:
        raise ProviderNotConfigured("OPENAI_API_KEY is not set")
    return OpenAITextProvider(api_key=settings.openai_api_key)


def _get_concept_provider() -> ConceptProvider:
    if settings.concept_provider.strip().lower() == "openai":
        return _get_openai_text()
    return _get_gemini()


_session = PosterSession(poster_provider=_get_gemini, concept_provider=_get_concept_provider)


def get_session() -> PosterSession:
    return _session


@asynccontextmanager
async def lifespan(_app: FastAPI):
    yield
    # Drop any pending suggestion so nothing lands after shutdown.
    _session.close()


app = FastAPI(title="poster_fusion", lifespan=lifespan)


@app.exception_handler(PosterError)
async def _poster_error_handler(_request: Request, exc: PosterError) -> JSONResponse:
    logger.info("%s: %s", type(exc).__name__, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": type(exc).__name__})


def _require_aspect_ratio(value: str) -> str:
    tag = value.strip()
    if not is_aspect_ratio(tag):
        raise HTTPException(status_code=400, detail=f"aspect ratio '{value}' is not supported")
    return tag


def _require_quality(value: str) -> str:
    if not is_quality_tier(value):
        raise HTTPException(status_code=400, detail=f"quality '{value}' is not available")
    return value


async def _read_upload(file: UploadFile) -> ImageObject:
    content = await file.read()
    return image_from_upload(file.filename, file.content_type, content)


def _png_download(filename: str, content: bytes) -> Response:
    return Response(
        content=content,
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _dimensions_payload(dims: dict[str, tuple[int, int]]) -> list[dict[str, object]]:
    return [{"quality": tier, "width": w, "height": h} for tier, (w, h) in dims.items()]


@app.get("/health")
def health():
    return {"status": "ok", "aspect_ratios": list(ASPECT_RATIOS), "qualities": list(settings.quality_tiers)}


@app.get("/session")
async def read_session(session: PosterSession = Depends(get_session)):
    return session.snapshot()


@app.delete("/session/error")
async def dismiss_error(session: PosterSession = Depends(get_session)):
    session.dismiss_error()
    return session.snapshot()


# ---- inputs ----
@app.post("/session/products")
async def upload_products(
    files: list[UploadFile] = File(...),
    session: PosterSession = Depends(get_session),
):
    images = [await _read_upload(f) for f in files]
    session.set_product_images(images)
    return session.snapshot()


@app.delete("/session/products")
async def clear_products(session: PosterSession = Depends(get_session)):
    session.set_product_images([])
    return session.snapshot()


@app.post("/session/reference")
async def upload_reference(
    file: UploadFile = File(...),
    session: PosterSession = Depends(get_session),
):
    session.set_reference_image(await _read_upload(file))
    return session.snapshot()


@app.delete("/session/reference")
async def clear_reference(session: PosterSession = Depends(get_session)):
    session.set_reference_image(None)
    return session.snapshot()


@app.post("/session/concept")
async def update_concept(concept: str = Form(""), session: PosterSession = Depends(get_session)):
    session.set_concept(concept)
    return session.snapshot()


@app.post("/session/aspect-ratio")
async def update_aspect_ratio(aspect_ratio: str = Form(...), session: PosterSession = Depends(get_session)):
    session.set_aspect_ratio(_require_aspect_ratio(aspect_ratio))
    return {**session.snapshot(), "qualities": _dimensions_payload(quality_dimensions(session.aspect_ratio))}


@app.post("/session/edit-instruction")
async def update_edit_instruction(instruction: str = Form(""), session: PosterSession = Depends(get_session)):
    session.set_edit_instruction(instruction)
    return session.snapshot()


# ---- remote operations ----
@app.post("/session/generate")
async def generate_poster(session: PosterSession = Depends(get_session)):
    await session.generate()
    return session.snapshot()


@app.post("/session/edit")
async def edit_poster(
    instruction: str | None = Form(None),
    session: PosterSession = Depends(get_session),
):
    if instruction is not None:
        session.set_edit_instruction(instruction)
    await session.edit()
    return session.snapshot()


# ---- poster ----
@app.get("/session/poster")
async def get_poster(session: PosterSession = Depends(get_session)):
    poster = session.current_poster
    if poster is None:
        raise HTTPException(status_code=404, detail="no poster yet")
    return Response(content=poster.data, media_type=poster.mime_type)


@app.get("/session/poster/qualities")
async def poster_qualities(session: PosterSession = Depends(get_session)):
    if session.current_poster is None:
        raise HTTPException(status_code=404, detail="no poster yet")
    return {"aspect_ratio": session.poster_aspect_ratio, "qualities": _dimensions_payload(session.current_qualities())}


@app.get("/session/poster/download")
async def download_poster(quality: str = "Normal", session: PosterSession = Depends(get_session)):
    filename, content = await session.export_current(_require_quality(quality))
    return _png_download(filename, content)


# ---- viewport ----
@app.post("/session/viewport/wheel")
async def viewport_wheel(
    delta_y: float = Form(...),
    x: float = Form(0.0),
    y: float = Form(0.0),
    session: PosterSession = Depends(get_session),
):
    session.viewport.wheel(delta_y, x, y)
    return session.viewport.snapshot()


@app.post("/session/viewport/pointer-down")
async def viewport_pointer_down(x: float = Form(...), y: float = Form(...), session: PosterSession = Depends(get_session)):
    session.viewport.pointer_down(x, y)
    return session.viewport.snapshot()


@app.post("/session/viewport/pointer-move")
async def viewport_pointer_move(x: float = Form(...), y: float = Form(...), session: PosterSession = Depends(get_session)):
    session.viewport.pointer_move(x, y)
    return session.viewport.snapshot()


@app.post("/session/viewport/pointer-up")
async def viewport_pointer_up(session: PosterSession = Depends(get_session)):
    session.viewport.pointer_up()
    return session.viewport.snapshot()


@app.post("/session/viewport/pointer-leave")
async def viewport_pointer_leave(session: PosterSession = Depends(get_session)):
    session.viewport.pointer_leave()
    return session.viewport.snapshot()


@app.post("/session/viewport/reset")
async def viewport_reset(session: PosterSession = Depends(get_session)):
    session.viewport.reset()
    return session.viewport.snapshot()


# ---- gallery ----
@app.get("/session/gallery")
async def list_gallery(session: PosterSession = Depends(get_session)):
    return {"entries": session.gallery.describe()}


@app.post("/session/gallery")
async def save_to_gallery(session: PosterSession = Depends(get_session)):
    added = session.save_current()
    return {"added": added, "entries": session.gallery.describe()}


@app.delete("/session/gallery")
async def clear_gallery(session: PosterSession = Depends(get_session)):
    session.clear_gallery()
    return {"entries": []}


def _gallery_entry(session: PosterSession, index: int):
    try:
        return session.gallery.get(index)
    except IndexError:
        raise HTTPException(status_code=404, detail="gallery entry not found")


@app.get("/session/gallery/{index}")
async def get_gallery_entry(index: int, session: PosterSession = Depends(get_session)):
    entry = _gallery_entry(session, index)
    return Response(content=entry.poster.data, media_type=entry.poster.mime_type)


@app.get("/session/gallery/{index}/download")
async def download_gallery_entry(
    index: int,
    quality: str = "Normal",
    session: PosterSession = Depends(get_session),
):
    _gallery_entry(session, index)
    filename, content = await session.export_saved(index, _require_quality(quality))
    return _png_download(filename, content)
