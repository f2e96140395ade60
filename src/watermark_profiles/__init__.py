"""Profile-based image resampling and watermark compositing."""

__version__ = "1.0.0"
__description__ = "Area-weighted resize, crop and watermark engine for output profiles"

from .alpha import adjust_alpha
from .buffer import PixelBuffer
from .composite import Anchor, composite, resolve_anchor
from .errors import (
    InvalidBufferSize,
    InvalidDimensions,
    InvalidOpacity,
    MissingWatermark,
    OutOfBounds,
    WatermarkProfilesError,
)
from .pipeline import ProfilePipeline, ProfileResult, process
from .profiles import DEFAULT_PROFILES, NO_WATERMARK, OutputProfile, load_profiles
from .resample import plan_window, resample, resample_area, scale_to_width
from .watermarks import WatermarkSet, load_watermarks

__all__ = [
    "Anchor",
    "DEFAULT_PROFILES",
    "InvalidBufferSize",
    "InvalidDimensions",
    "InvalidOpacity",
    "MissingWatermark",
    "NO_WATERMARK",
    "OutOfBounds",
    "OutputProfile",
    "PixelBuffer",
    "ProfilePipeline",
    "ProfileResult",
    "WatermarkProfilesError",
    "WatermarkSet",
    "adjust_alpha",
    "composite",
    "load_profiles",
    "load_watermarks",
    "plan_window",
    "process",
    "resample",
    "resample_area",
    "resolve_anchor",
    "scale_to_width",
]
