"""Pillow helpers for plate previews and layer images."""
from __future__ import annotations

import io
import logging
from functools import lru_cache

from PIL import Image, ImageDraw, UnidentifiedImageError

logger = logging.getLogger(__name__)

LARGE_SIZE = (800, 480)
SMALL_SIZE = (400, 400)
LAYER_SIZE = (800, 480)

_TILE = 16
_PALETTE = ((32, 36, 43), (63, 74, 88), (90, 104, 122))
_OUTLINE = (150, 170, 196)


def thumbnail_dimensions(size: str) -> tuple[int, int]:
    """``Large`` previews are 800x480, every other size is 400x400."""
    return LARGE_SIZE if size == "Large" else SMALL_SIZE


@lru_cache(maxsize=8)
def generate_placeholder(width: int, height: int) -> bytes:
    """Return PNG bytes of a neutral tiled placeholder."""
    image = Image.new("RGB", (width, height), _PALETTE[0])
    draw = ImageDraw.Draw(image)
    for top in range(0, height, _TILE):
        for left in range(0, width, _TILE):
            shade = _PALETTE[((left // _TILE) + (top // _TILE)) % len(_PALETTE)]
            draw.rectangle((left, top, left + _TILE - 1, top + _TILE - 1), fill=shade)
    draw.rectangle(
        (width // 4, height // 4, (3 * width) // 4, (3 * height) // 4),
        outline=_OUTLINE,
        width=max(1, min(width, height) // 100),
    )
    return _encode_png(image)


def resize_layer_2d(data: bytes) -> bytes:
    """Force a layer image to 800x480; placeholder on empty or broken input."""
    if not data:
        return generate_placeholder(*LAYER_SIZE)
    try:
        with Image.open(io.BytesIO(data)) as source:
            image = source.convert("RGB").resize(LAYER_SIZE, Image.Resampling.BICUBIC)
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        logger.debug("Layer image could not be decoded: %s", exc)
        return generate_placeholder(*LAYER_SIZE)
    return _encode_png(image)


def _encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
