"""Watermark images keyed by profile selector, loaded and adjusted once."""

from __future__ import annotations

from concurrent.futures import ALL_COMPLETED, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, Iterator, Mapping, Optional, Union

from .alpha import adjust_alpha, validate_opacity
from .buffer import PixelBuffer
from .errors import MissingWatermark
from .io import load_image
from .logger import log


class WatermarkSet(Mapping[str, PixelBuffer]):
    """Read-only mapping from watermark key to an opacity-adjusted buffer."""

    def __init__(self, watermarks: Optional[Mapping[str, PixelBuffer]] = None):
        self._watermarks: Dict[str, PixelBuffer] = dict(watermarks or {})

    @classmethod
    def from_buffers(cls, buffers: Mapping[str, PixelBuffer], opacity: float = 1.0) -> "WatermarkSet":
        """Adjust already decoded buffers (copies) and wrap them."""
        opacity = validate_opacity(opacity)
        return cls({key: adjust_alpha(buffer, opacity) for key, buffer in buffers.items()})

    def __getitem__(self, key: str) -> PixelBuffer:
        try:
            return self._watermarks[key]
        except KeyError:
            raise MissingWatermark(f"No watermark loaded for key '{key}'") from None

    def __iter__(self) -> Iterator[str]:
        return iter(self._watermarks)

    def __len__(self) -> int:
        return len(self._watermarks)

    def merged(self, other: Mapping[str, PixelBuffer]) -> "WatermarkSet":
        """New set with ``other`` added, replacing entries with the same key."""
        combined = dict(self._watermarks)
        combined.update(other)
        return WatermarkSet(combined)


def _load_one(path: Path, opacity: float) -> PixelBuffer:
    buffer = load_image(path)
    if opacity != 1.0:
        adjust_alpha(buffer, opacity, in_place=True)
    return buffer


def load_watermarks(
        paths: Mapping[str, Union[str, Path]],
        opacity: float = 1.0,
        max_workers: int = 4,
        on_complete: Optional[Callable[[WatermarkSet], None]] = None,
) -> WatermarkSet:
    """
    Decode every watermark concurrently and apply ``opacity`` to each.

    The call returns (and ``on_complete`` fires, once) only after every
    image has finished loading. If any load fails the error is raised after
    the remaining loads have settled and no set is returned.

    Args:
        paths: Watermark key to image file.
        opacity: Factor applied to each watermark's alpha, once.
        max_workers: Loader thread count.
        on_complete: Called with the finished set.

    Raises:
        InvalidOpacity: If opacity is outside [0, 1]. Nothing is loaded.
        FileNotFoundError: If a watermark image is missing.
    """
    opacity = validate_opacity(opacity)
    if not paths:
        watermarks = WatermarkSet()
        if on_complete is not None:
            on_complete(watermarks)
        return watermarks

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            key: executor.submit(_load_one, Path(path), opacity)
            for key, path in paths.items()
        }
        wait(futures.values(), return_when=ALL_COMPLETED)

    loaded: Dict[str, PixelBuffer] = {}
    for key, future in futures.items():
        error = future.exception()
        if error is not None:
            log.error(f"Failed to load watermark '{key}' from {paths[key]}: {error}")
            raise error
        loaded[key] = future.result()

    watermarks = WatermarkSet(loaded)
    log.info(f"Loaded {len(watermarks)} watermark(s) at opacity {opacity:.2f}")
    if on_complete is not None:
        on_complete(watermarks)
    return watermarks


__all__ = ["WatermarkSet", "load_watermarks"]
