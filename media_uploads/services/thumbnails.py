"""
Thumbnail derivation for inline image uploads.
"""

import io
import logging
from typing import Tuple

from PIL import Image

from media_uploads.config import THUMBNAIL_SIZE

logger = logging.getLogger(__name__)

# Modes PNG can store as-is; anything else (CMYK, YCbCr, ...) is converted.
PNG_MODES = {"1", "L", "LA", "I;16", "P", "RGB", "RGBA"}
# 32-bit integer and float images; PNG support for these is going away.
WIDE_GRAYSCALE_MODES = {"I", "F"}


class ThumbnailDeriver:
    """Decodes image bytes and produces a fixed-size PNG thumbnail."""

    def __init__(
        self,
        size: Tuple[int, int] = THUMBNAIL_SIZE,
        resample: Image.Resampling = Image.Resampling.BILINEAR,
    ):
        self.size = size
        self.resample = resample

    def derive(self, data: bytes) -> Image.Image:
        """Resize the decoded image to exactly `size`, ignoring aspect ratio."""
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            thumbnail = image.resize(self.size, resample=self.resample)

        if thumbnail.mode in WIDE_GRAYSCALE_MODES:
            thumbnail = thumbnail.convert("L")
        elif thumbnail.mode not in PNG_MODES:
            thumbnail = thumbnail.convert("RGBA" if "A" in thumbnail.getbands() else "RGB")
        return thumbnail

    def render(self, data: bytes) -> bytes:
        """Return the encoded PNG thumbnail for the given image bytes."""
        thumbnail = self.derive(data)
        buffer = io.BytesIO()
        thumbnail.save(buffer, format="PNG")
        logger.debug("Derived %sx%s thumbnail", *self.size)
        return buffer.getvalue()
