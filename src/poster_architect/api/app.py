from __future__ import annotations

import logging
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import Response

from poster_architect.config import settings
from poster_architect.editor.geometry import Size
from poster_architect.editor.session import PosterSession, SessionSnapshot
from poster_architect.errors import ValidationError
from poster_architect.providers.base import PosterImage
from poster_architect.providers.gemini_provider import GeminiProvider

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="poster_architect")

ALLOWED_UPLOAD_TYPES = {"image/png", "image/jpeg", "image/webp"}
POINTER_EVENTS = {"down", "move", "up", "leave"}

# One in-memory editing session per process; nothing is persisted.
_session: PosterSession | None = None


def _get_gemini() -> GeminiProvider:
    if not settings.gemini_api_key:
        raise HTTPException(status_code=400, detail="GEMINI_API_KEY is not set")
    return GeminiProvider(api_key=settings.gemini_api_key)


def _get_session() -> PosterSession:
    global _session
    if _session is None:
        _session = PosterSession(provider=_get_gemini())
    return _session


def _require_idle(session: PosterSession) -> None:
    if session.pending:
        raise HTTPException(status_code=409, detail=f"{session.phase.value} is already in progress")


def _snapshot_payload(snap: SessionSnapshot) -> dict[str, Any]:
    return {
        "phase": snap.phase.value,
        "pending": snap.pending,
        "status_text": snap.status_text,
        "error": snap.error,
        "aspect_ratio": snap.aspect_ratio,
        "aspect_ratios": list(settings.aspect_ratios),
        "concept": snap.concept,
        "edit_instruction": snap.edit_instruction,
        "edit_placeholder": snap.edit_placeholder,
        "product_image_count": snap.product_image_count,
        "history": {
            "length": snap.history_length,
            "index": snap.history_index,
            "can_undo": snap.can_undo,
            "can_redo": snap.can_redo,
        },
        "has_poster": snap.has_poster,
        "selection": {
            "phase": snap.selection_phase.value,
            "rect": asdict(snap.selection) if snap.selection else None,
        },
        "finals_count": snap.finals_count,
    }


def _png_response(image: PosterImage, filename: str) -> Response:
    return Response(
        content=image.data,
        media_type=image.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.get("/session")
def get_session():
    return _snapshot_payload(_get_session().snapshot())


@app.post("/session/uploads")
async def upload_products(files: list[UploadFile] = File(...)):
    session = _get_session()
    _require_idle(session)

    images: list[PosterImage] = []
    for f in files:
        content_type = f.content_type or "application/octet-stream"
        if content_type not in ALLOWED_UPLOAD_TYPES:
            raise HTTPException(status_code=400, detail=f"unsupported file type: {content_type}")
        content = await f.read()
        if not content:
            raise HTTPException(status_code=400, detail=f"empty upload: {f.filename or 'file'}")
        images.append(PosterImage(data=content, mime_type=content_type))

    await session.upload(images)
    return _snapshot_payload(session.snapshot())


@app.post("/session/concept")
def set_concept(concept: str = Form("")):
    session = _get_session()
    if not session.set_concept(concept):
        raise HTTPException(status_code=409, detail="concept suggestion is in progress")
    return _snapshot_payload(session.snapshot())


@app.post("/session/aspect-ratio")
def set_aspect_ratio(aspect_ratio: str = Form(...)):
    session = _get_session()
    try:
        session.set_aspect_ratio(aspect_ratio)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _snapshot_payload(session.snapshot())


@app.post("/session/generate")
async def generate_poster():
    session = _get_session()
    _require_idle(session)
    await session.generate()
    return _snapshot_payload(session.snapshot())


@app.post("/session/selection/{event}")
def selection_event(event: str, x: float = Form(0.0), y: float = Form(0.0)):
    if event not in POINTER_EVENTS:
        raise HTTPException(status_code=404, detail=f"unknown pointer event '{event}'")
    session = _get_session()
    if event == "down":
        session.pointer_down(x, y)
    elif event == "move":
        session.pointer_move(x, y)
    elif event == "up":
        session.pointer_up()
    else:
        session.pointer_leave()
    return _snapshot_payload(session.snapshot())


@app.delete("/session/selection")
def clear_selection():
    session = _get_session()
    session.clear_selection()
    return _snapshot_payload(session.snapshot())


@app.post("/session/edit")
async def edit_poster(
    instruction: str = Form(""),
    displayed_width: float = Form(0.0),
    displayed_height: float = Form(0.0),
):
    session = _get_session()
    _require_idle(session)
    await session.submit_edit(displayed=Size(displayed_width, displayed_height), instruction=instruction)
    return _snapshot_payload(session.snapshot())


@app.post("/session/undo")
def undo():
    session = _get_session()
    _require_idle(session)
    session.undo()
    return _snapshot_payload(session.snapshot())


@app.post("/session/redo")
def redo():
    session = _get_session()
    _require_idle(session)
    session.redo()
    return _snapshot_payload(session.snapshot())


@app.post("/session/finals")
def save_to_finals():
    session = _get_session()
    if session.history.current() is None:
        raise HTTPException(status_code=400, detail="no poster to save")
    session.save_to_finals()
    return _snapshot_payload(session.snapshot())


@app.delete("/session/error")
def dismiss_error():
    session = _get_session()
    session.dismiss_error()
    return _snapshot_payload(session.snapshot())


@app.get("/session/poster")
def download_poster():
    current = _get_session().history.current()
    if current is None:
        raise HTTPException(status_code=404, detail="no poster yet")
    return _png_response(current, "ai-poster.png")


@app.get("/session/finals/{n}")
def download_final(n: int):
    finals = _get_session().finals
    if n < 0 or n >= len(finals):
        raise HTTPException(status_code=404, detail="final poster not found")
    return _png_response(finals[n], f"final-poster-{n + 1}.png")
