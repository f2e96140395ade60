from __future__ import annotations

from functools import cached_property, lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .composite import Anchor
from .profiles import DEFAULT_PROFILES, OutputProfile, load_profiles


class Settings(BaseSettings):
    """Settings loaded from the environment (``WATERMARK_*``) and ``.env``."""

    opacity: float = Field(default=0.8, ge=0.0, le=1.0, description="Opacity applied once to every watermark")
    padding: int = Field(default=25, ge=0, description="Distance between watermark and image edges in pixels")
    position: Anchor = Field(default=Anchor.TOP_RIGHT, description="Corner the watermark is anchored to")
    output_format: str = Field(default="JPEG", description="Encoder format for exported profiles")
    watermarks: Dict[str, Path] = Field(
        default_factory=lambda: {
            "standard": Path("img/watermark.png"),
            "highres": Path("img/watermark-high-res.png"),
        },
        description="Watermark key to image path",
    )
    watermark_root: Path = Field(default=Path("."), description="Base directory for relative watermark paths")
    profiles_config: Optional[Path] = Field(default=None, description="YAML file overriding the default profiles")
    load_workers: int = Field(default=4, gt=0, description="Threads used to load watermark images")
    log_level: str = Field(default="INFO")
    log_file: Optional[Path] = Field(default=None)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="WATERMARK_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("position", mode="before")
    @classmethod
    def parse_position(cls, v: Any) -> Anchor:
        return Anchor.parse(v)

    @field_validator("output_format")
    @classmethod
    def normalise_format(cls, v: str) -> str:
        v = v.strip().upper()
        return "JPEG" if v == "JPG" else v

    @cached_property
    def profiles(self) -> List[OutputProfile]:
        if self.profiles_config is None:
            return list(DEFAULT_PROFILES)
        return load_profiles(self.profiles_config)

    def watermark_paths(self) -> Dict[str, Path]:
        root = Path(self.watermark_root).expanduser()
        resolved = {}
        for key, path in self.watermarks.items():
            path = Path(path).expanduser()
            resolved[key] = path if path.is_absolute() else (root / path)
        return resolved


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
