"""Monochrome raster conversion for logos."""

from __future__ import annotations

import logging
from pathlib import Path

from PIL import Image

from tableprint.constant import LOGO_THRESHOLD, LOGO_WIDTH_RATIO, RASTER_THRESHOLD
from tableprint.models import RasterBitmap

logger = logging.getLogger(__name__)


def _luminance(red: int, green: int, blue: int) -> float:
    return 0.2126 * red + 0.7152 * green + 0.0722 * blue


def _nearest(coord: int, ratio: float, limit: int) -> int:
    # Round half up, matching integer pixel centres of the source.
    return min(limit - 1, int(coord / ratio + 0.5))


def rasterize(image: Image.Image, max_dots_width: int, threshold: int = RASTER_THRESHOLD) -> RasterBitmap:
    """
    Convert an image to a 1-bit raster no wider than ``max_dots_width``.

    Downscaling is nearest-neighbour. Fully transparent pixels stay white;
    any other pixel prints when its luminance is below ``threshold``.
    """
    source = image.convert("RGBA")
    src_width, src_height = source.size
    if src_width < 1 or src_height < 1:
        raise ValueError("cannot rasterize an empty image")

    width = min(max(1, int(max_dots_width)), src_width)
    ratio = width / src_width
    height = max(1, round(src_height * ratio))
    row_bytes = (width + 7) // 8
    data = bytearray(row_bytes * height)
    pixels = source.load()

    columns = [_nearest(x, ratio, src_width) for x in range(width)]
    for y in range(height):
        sy = _nearest(y, ratio, src_height)
        offset = y * row_bytes
        for x, sx in enumerate(columns):
            red, green, blue, alpha = pixels[sx, sy]
            if alpha == 0:
                continue
            if _luminance(red, green, blue) < threshold:
                data[offset + (x >> 3)] |= 0x80 >> (x & 7)

    return RasterBitmap(width=width, height=height, data=bytes(data))


def load_logo(path: str | Path, max_dots: int) -> RasterBitmap | None:
    """
    Rasterize the configured logo once at startup.

    A missing or unreadable file only disables the logo, it never fails
    startup.
    """
    resolved = Path(path).expanduser()
    if not resolved.is_absolute():
        resolved = Path.cwd() / resolved
    if not resolved.is_file():
        logger.warning("Logo not found: %s", resolved)
        return None

    try:
        with Image.open(resolved) as image:
            bitmap = rasterize(image, int(max_dots * LOGO_WIDTH_RATIO), LOGO_THRESHOLD)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        logger.warning("Logo not loadable: %s (%s)", resolved, exc)
        return None

    logger.info("Logo loaded: %s (%dx%d dots)", resolved, bitmap.width, bitmap.height)
    return bitmap
