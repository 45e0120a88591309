from __future__ import annotations

import logging

from PIL import Image, ImageDraw

from poster_architect.editor.geometry import DisplayRect, OriginalRect, Size, map_to_original
from poster_architect.errors import GeometryUnavailable
from poster_architect.providers.base import PosterImage

logger = logging.getLogger(__name__)

# Mask convention expected by the image model: white = edit here, black = leave alone.
MASK_KEEP = 0
MASK_EDIT = 255


def rasterize(rect: OriginalRect, canvas_size: Size) -> PosterImage:
    """
    Render a single-channel PNG of exactly canvas_size: black everywhere,
    with the (clamped) rect filled white.
    """
    w, h = int(canvas_size.width), int(canvas_size.height)
    canvas = Image.new("L", (w, h), MASK_KEEP)

    clamped = rect.clamp(Size(w, h))
    if not clamped.is_empty:
        draw = ImageDraw.Draw(canvas)
        # PIL rectangles include the far edge, so stop one pixel short.
        draw.rectangle(
            (clamped.x, clamped.y, clamped.x + clamped.width - 1, clamped.y + clamped.height - 1),
            fill=MASK_EDIT,
        )
    return PosterImage.from_pil(canvas)


def mask_for_selection(
    selection: DisplayRect | None,
    displayed: Size,
    natural: Size,
) -> PosterImage | None:
    """
    Build the edit mask for a display-space selection.

    Returns None when there is nothing to mask, so the edit applies to the whole
    image. An all-black mask would tell the model to change nothing, so it is
    never produced here. Raises GeometryUnavailable when either size is unknown.
    """
    if selection is None or selection.is_empty:
        return None

    rect = map_to_original(selection, displayed, natural)
    if rect is None:
        raise GeometryUnavailable(f"cannot map selection: displayed={displayed} natural={natural}")

    if rect.clamp(natural).is_empty:
        logger.debug("Selection %s maps outside the image; sending no mask", selection)
        return None
    return rasterize(rect, natural)
