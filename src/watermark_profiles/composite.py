"""Watermark placement and source-over blending."""

from __future__ import annotations

from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np

from .buffer import PixelBuffer


class Anchor(str, Enum):
    """Corner the watermark is pinned to."""

    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"

    @property
    def is_top(self) -> bool:
        return self.value.startswith("top")

    @property
    def is_left(self) -> bool:
        return self.value.endswith("left")

    @classmethod
    def from_flags(cls, top: bool, left: bool) -> "Anchor":
        vertical = "top" if top else "bottom"
        horizontal = "left" if left else "right"
        return cls(f"{vertical}-{horizontal}")

    @classmethod
    def parse(cls, value: Union["Anchor", str]) -> "Anchor":
        """
        Accept an Anchor or a position string.

        Strings are read by keyword, so ``"top-right"``, ``"right top"`` and
        ``"topright"`` all resolve to TOP_RIGHT; a missing ``top`` means
        bottom and a missing ``left`` means right.
        """
        if isinstance(value, cls):
            return value
        text = str(value).lower()
        return cls.from_flags(top="top" in text, left="left" in text)


def resolve_anchor(
        target_size: Tuple[int, int],
        watermark_size: Tuple[int, int],
        anchor: Union[Anchor, str],
        padding: int,
) -> Tuple[int, int]:
    """Top-left corner of the watermark inside the target (may be negative)."""
    anchor = Anchor.parse(anchor)
    target_w, target_h = target_size
    wm_w, wm_h = watermark_size

    x = padding if anchor.is_left else target_w - wm_w - padding
    y = padding if anchor.is_top else target_h - wm_h - padding
    return x, y


def composite(
        target: PixelBuffer,
        watermark: Optional[PixelBuffer],
        position: Union[Anchor, str] = Anchor.TOP_RIGHT,
        padding: int = 25,
) -> PixelBuffer:
    """
    Blend ``watermark`` onto ``target`` in place and return ``target``.

    Each channel becomes ``src * a / 255 + dst * (255 - a) / 255`` where
    ``a`` is the watermark pixel's alpha; the target's own alpha is kept.
    Parts of the watermark falling outside the target are clipped. A
    ``None`` watermark leaves the target untouched. A negative padding pushes
    the watermark past the edge, where it is clipped like any other overflow.
    """
    anchor = Anchor.parse(position)
    if watermark is None:
        return target

    x, y = resolve_anchor(target.size, watermark.size, anchor, padding)

    # Overlap in target coordinates
    left = max(x, 0)
    top = max(y, 0)
    right = min(x + watermark.width, target.width)
    bottom = min(y + watermark.height, target.height)
    if left >= right or top >= bottom:
        return target

    src = watermark.pixels[top - y:bottom - y, left - x:right - x].astype(np.float64)
    dst = target.pixels[top:bottom, left:right]

    alpha = src[..., 3:4] / 255.0
    blended = src[..., :3] * alpha + dst[..., :3].astype(np.float64) * (1.0 - alpha)
    dst[..., :3] = np.clip(np.floor(blended + 0.5), 0, 255).astype(np.uint8)
    return target


__all__ = ["Anchor", "composite", "resolve_anchor"]
