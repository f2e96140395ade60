"""RGBA pixel buffer shared by every processing stage."""

from __future__ import annotations

from typing import Tuple, Union

import numpy as np

from .errors import InvalidBufferSize, InvalidDimensions, OutOfBounds

CHANNELS = 4

Pixel = Tuple[int, int, int, int]
PixelData = Union[bytes, bytearray, memoryview, np.ndarray]


class PixelBuffer:
    """
    A rectangular RGBA raster.

    Pixels are stored row-major as ``uint8`` with channel order R, G, B, A,
    so the stride of a row is ``width * 4`` bytes. The backing numpy array is
    exposed through :attr:`pixels` with shape ``(height, width, 4)``.

    Buffers are treated as values: resampling always produces a new buffer,
    and only the alpha adjuster (when asked to) and the compositor write
    into an existing one.
    """

    __slots__ = ("_width", "_height", "_pixels")

    def __init__(self, width: int, height: int, data: PixelData):
        """
        Create a buffer from raw RGBA bytes.

        Args:
            width: Width in pixels.
            height: Height in pixels.
            data: ``width * height * 4`` bytes, or a numpy array holding the
                same number of ``uint8`` values (flat or already shaped).

        Raises:
            InvalidDimensions: If width or height is negative.
            InvalidBufferSize: If the data length does not match.
        """
        width = int(width)
        height = int(height)
        if width < 0 or height < 0:
            raise InvalidDimensions(f"Buffer dimensions must not be negative, got {width}x{height}")

        expected = width * height * CHANNELS
        if isinstance(data, np.ndarray):
            flat = np.ascontiguousarray(data, dtype=np.uint8).reshape(-1)
        else:
            flat = np.frombuffer(bytes(data), dtype=np.uint8)
        if flat.size != expected:
            raise InvalidBufferSize(
                f"Expected {expected} bytes for {width}x{height} RGBA, got {flat.size}"
            )

        self._width = width
        self._height = height
        self._pixels = flat.reshape(height, width, CHANNELS).copy()

    @classmethod
    def from_array(cls, array: np.ndarray) -> "PixelBuffer":
        """Wrap an ``(height, width, 4)`` array (copied) as a buffer."""
        if array.ndim != 3 or array.shape[2] != CHANNELS:
            raise InvalidBufferSize(f"Expected an (h, w, 4) array, got shape {array.shape}")
        height, width = array.shape[:2]
        return cls(width, height, np.clip(np.asarray(array), 0, 255).astype(np.uint8))

    @classmethod
    def blank(cls, width: int, height: int, color: Pixel = (0, 0, 0, 0)) -> "PixelBuffer":
        """Create a buffer filled with a single colour."""
        if width < 0 or height < 0:
            raise InvalidDimensions(f"Buffer dimensions must not be negative, got {width}x{height}")
        fill = np.empty((height, width, CHANNELS), dtype=np.uint8)
        fill[...] = np.asarray(color, dtype=np.uint8)
        return cls(width, height, fill)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def size(self) -> Tuple[int, int]:
        return self._width, self._height

    @property
    def stride(self) -> int:
        return self._width * CHANNELS

    @property
    def pixels(self) -> np.ndarray:
        """The live ``(height, width, 4)`` view; writes go into the buffer."""
        return self._pixels

    @property
    def data(self) -> bytes:
        return self._pixels.tobytes()

    def __len__(self) -> int:
        return self._pixels.size

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.size == other.size and np.array_equal(self._pixels, other._pixels)

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self._width}, height={self._height})"

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self._width and 0 <= y < self._height):
            raise OutOfBounds(
                f"Pixel ({x}, {y}) is outside a {self._width}x{self._height} buffer"
            )

    def get(self, x: int, y: int) -> Pixel:
        """Return the ``(r, g, b, a)`` tuple at ``(x, y)``."""
        self._check_bounds(x, y)
        r, g, b, a = self._pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def set(self, x: int, y: int, r: int, g: int, b: int, a: int) -> None:
        """Write one pixel. Coordinates are never clamped."""
        self._check_bounds(x, y)
        values = (r, g, b, a)
        if any(not 0 <= v <= 255 for v in values):
            raise ValueError(f"Channel values must be within 0-255, got {values}")
        self._pixels[y, x] = values

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self._width, self._height, self._pixels)


__all__ = ["PixelBuffer", "Pixel", "CHANNELS"]
