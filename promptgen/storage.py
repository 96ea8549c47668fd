from __future__ import annotations

import io
import logging
import os
import tempfile
from pathlib import Path
from typing import Tuple, Union

from PIL import Image

from .exceptions import DecodeError, OutputError

logger = logging.getLogger(__name__)

# Pillow format -> file extension
EXTENSIONS = {
    "PNG": "png",
    "JPEG": "jpg",
    "MPO": "jpg",  # multi-picture JPEG (camera and phone output)
    "WEBP": "webp",
    "GIF": "gif",
    "BMP": "bmp",
    "TIFF": "tif",
}


def detect_image_type(image_data: bytes) -> Tuple[str, str]:
    """Detect the media type of image bytes.

    Uses PIL to open and verify the data rather than trusting any file name.
    Returns (mime_type, extension).

    Raises:
        DecodeError: If the bytes are not a recognizable image
    """
    try:
        with Image.open(io.BytesIO(image_data)) as img:
            fmt = img.format
            img.verify()
    except Exception as e:
        raise DecodeError("output", f"Couldn't detect an image type in {len(image_data)} response bytes: {e}") from e

    mime = Image.MIME.get(fmt or "", "")
    if not mime.startswith("image/"):
        raise DecodeError("output", f"Server sent {mime or fmt} for image")
    return mime, EXTENSIONS.get(fmt, fmt.lower())


def _atomic_write(path: Path, data: bytes) -> None:
    """Write via a temp file in the same directory so no partial file is left."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".part")
    except OSError as e:
        raise OutputError(str(path), str(e)) from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp_name, path)
    except OSError as e:
        Path(tmp_name).unlink(missing_ok=True)
        raise OutputError(str(path), str(e)) from e
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def write_image(path: Union[str, Path], image_data: bytes) -> Path:
    """Write image bytes, using the extension detected from the bytes.

    `out.jpg` holding PNG data is saved as `out.png`. Returns the final path.
    """
    requested = Path(path)
    if not requested.stem or requested.name in (".", ".."):
        raise OutputError(str(path), "not a valid file path")

    logger.debug("Inferring image type")
    mime, ext = detect_image_type(image_data)
    final = requested.with_name(f"{requested.stem}.{ext}")
    if final != requested:
        logger.debug(f"Detected {mime}; saving as {final.name} instead of {requested.name}")

    logger.debug("Writing bytes to disk")
    _atomic_write(final, image_data)
    return final


def write_text(path: Union[str, Path], text: str) -> Path:
    path = Path(path)
    _atomic_write(path, text.encode("utf-8"))
    return path
