"""Inspect the preview image embedded in a blueprint."""

import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def inspect_preview(data: bytes) -> Optional[tuple[str, int, int]]:
    """Identify the preview image.

    Args:
        data: Raw preview section bytes

    Returns:
        (format, width, height), or None if the bytes are empty or not an image
    """
    if not data:
        return None
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.format or "unknown", image.width, image.height
    except (UnidentifiedImageError, OSError) as e:
        logger.debug("Preview is not a readable image: %s", e)
        return None


def save_preview(data: bytes, path: str | Path) -> Optional[Path]:
    """Write the preview bytes unchanged, with an extension matching the format.

    Returns:
        The written path, or None if there was no readable preview
    """
    info = inspect_preview(data)
    if info is None:
        return None
    path = Path(path).with_suffix("." + info[0].lower())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return path
