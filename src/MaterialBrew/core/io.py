"""Image header probing for scan reports."""

import logging
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("material_pipeline")


def read_image_size(path: str) -> Optional[Tuple[int, int]]:
    """Return ``(width, height)`` read from the image header, or None.

    Only the header is parsed; pixel data is never decoded.
    """
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, ValueError, UnidentifiedImageError, Image.DecompressionBombError) as exc:
        logger.debug("Could not read image header of %s: %s", path, exc)
        return None
