"""Exception types raised by the resampling and compositing core."""


class WatermarkProfilesError(Exception):
    """Base class for every error raised by the package."""


class InvalidBufferSize(WatermarkProfilesError, ValueError):
    """Pixel data length does not match width * height * 4."""


class OutOfBounds(WatermarkProfilesError, IndexError):
    """Pixel coordinates fall outside the buffer."""


class InvalidDimensions(WatermarkProfilesError, ValueError):
    """A width or height is zero, negative or otherwise unusable."""


class InvalidOpacity(WatermarkProfilesError, ValueError):
    """Opacity is not within [0, 1]."""


class MissingWatermark(WatermarkProfilesError, KeyError):
    """A profile references a watermark key that was never loaded."""
