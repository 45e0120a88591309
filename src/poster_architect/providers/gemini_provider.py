from __future__ import annotations

import logging
from typing import Any

from poster_architect.config import settings
from poster_architect.errors import NoImageReturned, RemoteFailure
from poster_architect.providers.base import PosterImage

logger = logging.getLogger(__name__)

CONCEPT_PROMPT = (
    "Analyze the product(s) in the provided image(s). Based on the product's appearance, "
    "potential use, and style, generate a creative and detailed concept for a promotional poster. "
    "The concept should be a concise suggestion of around 100-150 characters, describing a theme, "
    "color palette, and mood."
)


class GeminiProvider:
    name = "gemini"

    def __init__(self, api_key: str) -> None:
        # Imported lazily so the app can start without the dependency installed.
        from google import genai  # type: ignore

        self._genai = genai
        self.client = genai.Client(api_key=api_key)

    async def suggest_concept(self, images: list[PosterImage]) -> str:
        contents: list[Any] = _image_parts(images[: settings.max_reference_images])
        contents.append(CONCEPT_PROMPT)

        try:
            resp = await self.client.aio.models.generate_content(
                model=settings.gemini_text_model,
                contents=contents,
            )
        except Exception as exc:
            logger.error("Gemini concept suggestion failed: %s", exc)
            raise RemoteFailure(f"Failed to generate concept with Gemini API: {exc}") from exc

        text = (getattr(resp, "text", None) or "").strip()
        if not text:
            raise RemoteFailure("Gemini API returned an empty concept suggestion.")
        return text

    async def generate(self, images: list[PosterImage], prompt: str) -> PosterImage:
        contents: list[Any] = _image_parts(images[: settings.max_reference_images])
        contents.append(prompt)
        return await self._image_from_content(contents)

    async def edit(
        self,
        base: PosterImage,
        prompt: str,
        mask: PosterImage | None = None,
    ) -> PosterImage:
        """
        Masked edits send the mask as a second image and pin the change to its white area.
        Without a mask the instruction applies to the whole poster.
        """
        parts = [base] if mask is None else [base, mask]
        contents: list[Any] = _image_parts(parts)
        contents.append(build_edit_prompt(prompt, masked=mask is not None))
        return await self._image_from_content(contents)

    async def _image_from_content(self, contents: list[Any]) -> PosterImage:
        from google.genai import types  # type: ignore

        model = settings.gemini_image_model
        try:
            resp = await self.client.aio.models.generate_content(
                model=model,
                contents=contents,
                config=types.GenerateContentConfig(response_modalities=["image", "text"]),
            )
        except Exception as exc:
            logger.error("Gemini image call failed (model=%s): %s", model, exc)
            raise RemoteFailure(f"Failed to generate image with Gemini API: {exc}") from exc

        extracted = _extract_images_from_generate_content(resp)
        if not extracted:
            logger.warning("Gemini returned no image part (model=%s)", model)
            raise NoImageReturned()
        return extracted[0]


def build_edit_prompt(instruction: str, masked: bool) -> str:
    if masked:
        return (
            "Using the provided image and mask, apply the following edit ONLY to the white area "
            f'indicated by the mask: "{instruction}". The rest of the image should remain unchanged. '
            "Maintain the overall style and aspect ratio."
        )
    return (
        f'Based on the provided image, apply the following edit: "{instruction}". '
        "Maintain the overall style and aspect ratio unless instructed otherwise."
    )


def _image_parts(images: list[PosterImage]) -> list[Any]:
    from google.genai import types  # type: ignore

    return [types.Part.from_bytes(data=img.data, mime_type=img.mime_type) for img in images]


def _extract_images_from_generate_content(resp: Any) -> list[PosterImage]:
    out: list[PosterImage] = []
    for cand in getattr(resp, "candidates", []) or []:
        content = getattr(cand, "content", None)
        parts = getattr(content, "parts", None) or []
        for part in parts:
            inline = getattr(part, "inline_data", None)
            if not inline:
                continue
            mime = getattr(inline, "mime_type", None) or ""
            data = getattr(inline, "data", None)
            if not data:
                continue
            if mime and not mime.startswith("image/"):
                continue
            out.append(PosterImage(data=data, mime_type=mime or "image/png"))
    return out
