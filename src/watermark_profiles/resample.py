"""
Area-weighted scale and crop engine.
====================================

Every destination pixel maps to a rectangle in source space. The value
written is the average of all source pixels that rectangle overlaps, each
weighted by the exact overlap area (a box filter). Partially covered pixels
on the rectangle's edges contribute their covered fraction, interior pixels
contribute fully.

Colour is additionally weighted by source alpha so that transparent pixels
do not bleed their (meaningless) colour into the average. Alpha itself is the
plain area-weighted mean.

The filter is separable: the 2-D weight of a source pixel is the product of
its horizontal and vertical coverage. Both axes are therefore expressed as
dense ``(dst, src)`` weight matrices and applied with two tensor products,
one horizontal band of source rows at a time so that no float copy of the
whole source is ever held.
"""

from __future__ import annotations

import math
import time
from typing import NamedTuple, Optional

import numpy as np

from .buffer import PixelBuffer
from .errors import InvalidDimensions
from .logger import log

# Source pixels converted to float per band of destination rows
BAND_PIXELS = 1 << 20


class ResampleWindow(NamedTuple):
    """Source region to sample and the output size it maps to."""

    src_x: int
    src_y: int
    src_w: int
    src_h: int
    dst_w: int
    dst_h: int


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _check_dimensions(source: PixelBuffer, dst_w: int, dst_h: int) -> None:
    if dst_w <= 0 or dst_h <= 0:
        raise InvalidDimensions(f"Target dimensions must be positive, got {dst_w}x{dst_h}")
    if source.width < 1 or source.height < 1:
        raise InvalidDimensions(
            f"Source must be at least 1x1, got {source.width}x{source.height}"
        )


def plan_window(src_w: int, src_h: int, dst_w: int, dst_h: int, crop: bool) -> ResampleWindow:
    """
    Work out which part of the source is sampled and the final output size.

    With ``crop`` the source is scaled to cover ``dst_w x dst_h`` and the
    centred excess is cut away, so the output is exactly the requested size.
    Without it the whole source is scaled to fit inside the box, keeping its
    aspect ratio.
    """
    if crop:
        ratio = max(dst_w / src_w, dst_h / src_h)
        crop_w = min(src_w, max(1, round_half_up(dst_w / ratio)))
        crop_h = min(src_h, max(1, round_half_up(dst_h / ratio)))
        return ResampleWindow(
            src_x=(src_w - crop_w) // 2,
            src_y=(src_h - crop_h) // 2,
            src_w=crop_w,
            src_h=crop_h,
            dst_w=dst_w,
            dst_h=dst_h,
        )

    ratio = min(dst_w / src_w, dst_h / src_h)
    return ResampleWindow(
        src_x=0,
        src_y=0,
        src_w=src_w,
        src_h=src_h,
        dst_w=max(1, round_half_up(src_w * ratio)),
        dst_h=max(1, round_half_up(src_h * ratio)),
    )


def axis_weights(src_len: int, dst_len: int) -> np.ndarray:
    """
    Coverage of each source pixel by each destination pixel along one axis.

    Destination pixel ``d`` spans ``[d * src_len / dst_len,
    (d + 1) * src_len / dst_len)`` in source coordinates; entry ``[d, s]`` is
    the length of that span's intersection with ``[s, s + 1)``.
    """
    edges = np.arange(dst_len + 1, dtype=np.float64) * src_len / dst_len
    lo = edges[:-1, None]
    hi = edges[1:, None]
    index = np.arange(src_len, dtype=np.float64)[None, :]
    overlap = np.minimum(index + 1.0, hi) - np.maximum(index, lo)
    return np.clip(overlap, 0.0, None)


def _band_rows(window: ResampleWindow) -> int:
    """Destination rows per band so one band's planes stay near BAND_PIXELS."""
    src_rows = max(1.0, window.src_h / window.dst_h) + 1
    return max(1, int(BAND_PIXELS / (src_rows * window.src_w)))


def _area_average(
        source: PixelBuffer,
        window: ResampleWindow,
        band_rows: Optional[int] = None,
) -> np.ndarray:
    weight_y = axis_weights(window.src_h, window.dst_h)
    weight_x = axis_weights(window.src_w, window.dst_w)
    band_rows = band_rows or _band_rows(window)

    # Per destination pixel: alpha-weighted colour, colour weight, alpha
    sums = np.empty((window.dst_h, window.dst_w, 5), dtype=np.float64)

    # Source rows are converted to float one band at a time
    for dst_lo in range(0, window.dst_h, band_rows):
        dst_hi = min(dst_lo + band_rows, window.dst_h)
        used = np.flatnonzero(weight_y[dst_lo:dst_hi].any(axis=0))
        src_lo, src_hi = int(used[0]), int(used[-1]) + 1

        chunk = source.pixels[
            window.src_y + src_lo:window.src_y + src_hi,
            window.src_x:window.src_x + window.src_w,
        ]
        alpha = chunk[..., 3].astype(np.float64)
        planes = np.empty(chunk.shape[:2] + (5,), dtype=np.float64)
        np.divide(alpha, 255.0, out=planes[..., 3])
        np.multiply(chunk[..., :3], planes[..., 3:4], out=planes[..., :3])
        planes[..., 4] = alpha

        rows = np.tensordot(weight_y[dst_lo:dst_hi, src_lo:src_hi], planes, axes=(1, 0))
        sums[dst_lo:dst_hi] = np.tensordot(rows, weight_x, axes=(1, 1)).transpose(0, 2, 1)

    coverage = np.outer(weight_y.sum(axis=1), weight_x.sum(axis=1))
    color_weight = sums[..., 3]

    result = np.zeros((window.dst_h, window.dst_w, 4), dtype=np.float64)
    np.divide(
        sums[..., :3],
        color_weight[..., None],
        out=result[..., :3],
        where=color_weight[..., None] > 0,
    )
    np.divide(sums[..., 4], coverage, out=result[..., 3], where=coverage > 0)

    return np.clip(np.floor(result + 0.5), 0, 255).astype(np.uint8)


def resample_area(source: PixelBuffer, dst_w: int, dst_h: int, crop: bool) -> PixelBuffer:
    """
    Resample without flattening alpha.

    Where a destination pixel only covers fully transparent source pixels
    its colour stays at the zero-initialised default (black) and its alpha
    is 0.

    Raises:
        InvalidDimensions: For a non-positive target or an empty source.
    """
    dst_w, dst_h = int(dst_w), int(dst_h)
    _check_dimensions(source, dst_w, dst_h)
    window = plan_window(source.width, source.height, dst_w, dst_h, crop)

    started = time.perf_counter()
    pixels = _area_average(source, window)
    log.debug(
        f"Resampled {source.width}x{source.height} window "
        f"{window.src_w}x{window.src_h}+{window.src_x}+{window.src_y} -> "
        f"{window.dst_w}x{window.dst_h} in {time.perf_counter() - started:.3f}s"
    )
    return PixelBuffer(window.dst_w, window.dst_h, pixels)


def resample(source: PixelBuffer, dst_w: int, dst_h: int, crop: bool) -> PixelBuffer:
    """
    Scale (and optionally crop) ``source`` to a new opaque buffer.

    Args:
        source: Source raster, left untouched.
        dst_w: Target width, or maximum width when not cropping.
        dst_h: Target height, or maximum height when not cropping.
        crop: Fill exactly ``dst_w x dst_h`` by cropping the centred excess.

    Returns:
        A new buffer. Its alpha channel is always 255: resized outputs are
        flattened for baseline image export, even though the area-averaged
        alpha was computed. Use :func:`resample_area` to keep it.
    """
    result = resample_area(source, dst_w, dst_h, crop)
    result.pixels[..., 3] = 255
    return result


def scale_to_width(source: PixelBuffer, max_width: int) -> PixelBuffer:
    """Shrink to at most ``max_width`` wide, keeping aspect ratio and alpha."""
    max_width = int(max_width)
    if max_width <= 0:
        raise InvalidDimensions(f"Maximum width must be positive, got {max_width}")
    _check_dimensions(source, max_width, 1)
    if source.width <= max_width:
        return source.copy()

    height = max(1, round_half_up(source.height * max_width / source.width))
    window = ResampleWindow(0, 0, source.width, source.height, max_width, height)
    return PixelBuffer(max_width, height, _area_average(source, window))


__all__ = [
    "ResampleWindow",
    "axis_weights",
    "plan_window",
    "resample",
    "resample_area",
    "round_half_up",
    "scale_to_width",
]
