"""Uniform opacity adjustment of a buffer's alpha channel."""

from __future__ import annotations

import math

import numpy as np

from .buffer import PixelBuffer
from .errors import InvalidOpacity


def validate_opacity(opacity: float) -> float:
    opacity = float(opacity)
    if math.isnan(opacity) or not 0.0 <= opacity <= 1.0:
        raise InvalidOpacity(f"Opacity must be between 0 and 1, got {opacity}")
    return opacity


def adjust_alpha(buffer: PixelBuffer, opacity: float, in_place: bool = False) -> PixelBuffer:
    """
    Scale every alpha value by ``opacity``.

    Each alpha becomes ``round(alpha * opacity)`` (halves round up) clamped to
    0-255. Colour channels are left untouched.

    Args:
        buffer: Buffer to adjust.
        opacity: Factor within [0, 1].
        in_place: Mutate ``buffer`` and return it instead of returning an
            adjusted copy.

    Returns:
        The adjusted buffer.

    Raises:
        InvalidOpacity: If opacity is outside [0, 1]. Nothing is modified.
    """
    opacity = validate_opacity(opacity)
    target = buffer if in_place else buffer.copy()
    if opacity == 1.0:
        return target

    alpha = target.pixels[..., 3].astype(np.float64)
    scaled = np.floor(alpha * opacity + 0.5)
    target.pixels[..., 3] = np.clip(scaled, 0, 255).astype(np.uint8)
    return target


__all__ = ["adjust_alpha", "validate_opacity"]
