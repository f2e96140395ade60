"""Per-profile resample, watermark and export pipeline"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

from .buffer import PixelBuffer
from .composite import Anchor, composite
from .config import Settings
from .io import buffer_to_image, encode, to_data_url
from .logger import log
from .profiles import OutputProfile
from .resample import resample
from .watermarks import WatermarkSet

Exporter = Callable[[PixelBuffer, OutputProfile], Any]


@dataclass
class ProfileResult:
    """Output of one profile run."""

    profile: OutputProfile
    buffer: PixelBuffer
    output: Any = None

    @property
    def name(self) -> str:
        return self.profile.name

    @property
    def size(self):
        return self.buffer.size


class ProfilePipeline:
    """Renders a source buffer once per output profile"""

    def __init__(
            self,
            profiles: Sequence[OutputProfile],
            watermarks: Optional[Mapping[str, PixelBuffer]] = None,
            position: Union[Anchor, str] = Anchor.TOP_RIGHT,
            padding: int = 25,
            exporter: Optional[Exporter] = None,
    ):
        if padding < 0:
            raise ValueError(f"Padding must not be negative, got {padding}")
        self.profiles = list(profiles)
        self.watermarks = watermarks if watermarks is not None else WatermarkSet()
        self.position = Anchor.parse(position)
        self.padding = padding
        self.exporter = exporter

    @classmethod
    def from_settings(
            cls,
            settings: Settings,
            watermarks: Optional[Mapping[str, PixelBuffer]] = None,
            exporter: Optional[Exporter] = None,
    ) -> "ProfilePipeline":
        return cls(
            profiles=settings.profiles,
            watermarks=watermarks,
            position=settings.position,
            padding=settings.padding,
            exporter=exporter,
        )

    def run_profile(self, source: PixelBuffer, profile: OutputProfile) -> ProfileResult:
        """
        Resample ``source`` for one profile, watermark it and export it.

        The source buffer is only read; the resized buffer is new and owned
        by the returned result.

        Raises:
            MissingWatermark: If the profile names a watermark not in the set.
            InvalidDimensions: If the source is empty.
        """
        # Fail before doing any work for a watermark that isn't there
        watermark = self.watermarks[profile.watermark] if profile.has_watermark else None

        output = resample(source, profile.max_width, profile.max_height, profile.crop)
        if watermark is not None:
            composite(output, watermark, self.position, self.padding)

        log.info(
            f"Profile '{profile.name}': {source.width}x{source.height} -> "
            f"{output.width}x{output.height} (watermark: {profile.watermark})"
        )

        exported = self.exporter(output, profile) if self.exporter is not None else None
        return ProfileResult(profile=profile, buffer=output, output=exported)

    def run(self, source: PixelBuffer) -> List[ProfileResult]:
        """Run every profile in order; the first failure propagates."""
        results = []
        for profile in self.profiles:
            try:
                results.append(self.run_profile(source, profile))
            except Exception as e:
                log.error(f"Profile '{profile.name}' failed: {e}")
                raise
        return results

    def run_parallel(self, source: PixelBuffer, max_workers: Optional[int] = None) -> List[ProfileResult]:
        """Run profiles on a thread pool, results in profile order"""
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(self.run_profile, source, profile)
                for profile in self.profiles
            ]
            results = []
            for profile, future in zip(self.profiles, futures):
                try:
                    results.append(future.result())
                except Exception as e:
                    log.error(f"Profile '{profile.name}' failed: {e}")
                    raise
        return results


def make_exporter(fmt: str = "bytes", output_format: str = "JPEG") -> Exporter:
    """
    Build an exporter returning encoded bytes, a Pillow image or a data URL.

    The profile's quality is passed to the encoder.
    """
    kind = fmt.lower()
    if kind == "bytes":
        return lambda buffer, profile: encode(buffer, output_format, profile.quality)
    if kind == "image":
        return lambda buffer, profile: buffer_to_image(buffer)
    if kind == "data_url":
        return lambda buffer, profile: to_data_url(buffer, output_format, profile.quality)
    raise ValueError(f"Unknown export format: {fmt}")


def process(
        source: PixelBuffer,
        profiles: Sequence[OutputProfile],
        watermarks: Optional[Mapping[str, PixelBuffer]] = None,
        fmt: str = "bytes",
        output_format: str = "JPEG",
        position: Union[Anchor, str] = Anchor.TOP_RIGHT,
        padding: int = 25,
) -> List[Any]:
    """Render every profile and return just the exported outputs, in order"""
    pipeline = ProfilePipeline(
        profiles,
        watermarks=watermarks,
        position=position,
        padding=padding,
        exporter=make_exporter(fmt, output_format),
    )
    return [result.output for result in pipeline.run(source)]


__all__ = ["Exporter", "ProfilePipeline", "ProfileResult", "make_exporter", "process"]
