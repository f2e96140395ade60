"""Image decoding and encoding at the edge of the core, built on Pillow."""

from __future__ import annotations

import base64
import io
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, ImageOps

from .buffer import PixelBuffer
from .logger import log

MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}
EXTENSIONS = {
    "JPEG": ".jpg",
    "PNG": ".png",
    "WEBP": ".webp",
}


def image_to_buffer(image: Image.Image) -> PixelBuffer:
    rgba = image if image.mode == "RGBA" else image.convert("RGBA")
    return PixelBuffer.from_array(np.asarray(rgba, dtype=np.uint8))


def buffer_to_image(buffer: PixelBuffer) -> Image.Image:
    return Image.fromarray(buffer.pixels.copy(), "RGBA")


def load_image(image_path: Union[str, Path]) -> PixelBuffer:
    """
    Decode an image file into a buffer.

    EXIF orientation is applied before conversion to RGBA.

    Raises:
        FileNotFoundError: If the image doesn't exist.
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    with Image.open(path) as image:
        image = ImageOps.exif_transpose(image)
        buffer = image_to_buffer(image)

    log.info(f"Loaded image: {path.name} ({buffer.width}x{buffer.height})")
    return buffer


def load_image_from_bytes(image_bytes: bytes) -> PixelBuffer:
    stream = io.BytesIO(image_bytes)
    with Image.open(stream) as image:
        image.load()
        return image_to_buffer(ImageOps.exif_transpose(image))


def normalise_format(fmt: str) -> str:
    fmt = fmt.strip().upper()
    return "JPEG" if fmt == "JPG" else fmt


def pil_quality(quality: float) -> int:
    """Map a 0-1 quality factor onto Pillow's 1-95 JPEG/WebP scale."""
    quality = min(max(float(quality), 0.0), 1.0)
    return max(1, int(round(quality * 95)))


def encode(buffer: PixelBuffer, fmt: str = "JPEG", quality: float = 0.8) -> bytes:
    """
    Encode a buffer into an image container.

    Formats without an alpha channel (JPEG) get the RGB channels only, which
    matches the opaque output of the resampler.
    """
    fmt = normalise_format(fmt)
    image = buffer_to_image(buffer)
    output = io.BytesIO()

    if fmt == "JPEG":
        image.convert("RGB").save(output, "JPEG", quality=pil_quality(quality), optimize=True)
    elif fmt == "WEBP":
        image.save(output, "WEBP", quality=pil_quality(quality))
    else:
        image.save(output, fmt)

    return output.getvalue()


def to_data_url(buffer: PixelBuffer, fmt: str = "JPEG", quality: float = 0.8) -> str:
    fmt = normalise_format(fmt)
    mime = MIME_TYPES.get(fmt, f"image/{fmt.lower()}")
    payload = base64.b64encode(encode(buffer, fmt, quality)).decode("ascii")
    return f"data:{mime};base64,{payload}"


def save_image(
        buffer: PixelBuffer,
        output_path: Union[str, Path],
        fmt: str = "JPEG",
        quality: float = 0.8,
) -> Path:
    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode(buffer, fmt, quality))
    log.info(f"Saved {normalise_format(fmt)}: {path.name}")
    return path


__all__ = [
    "EXTENSIONS",
    "MIME_TYPES",
    "buffer_to_image",
    "encode",
    "image_to_buffer",
    "load_image",
    "load_image_from_bytes",
    "normalise_format",
    "pil_quality",
    "save_image",
    "to_data_url",
]
