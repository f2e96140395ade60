"""Output profile definitions and loader with validation."""

from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

NO_WATERMARK = "none"


class OutputProfile(BaseModel):
    """One output rendition of the source image."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Profile key, used in output file names")
    max_width: int = Field(..., gt=0, description="Target width, or maximum width when not cropping")
    max_height: int = Field(..., gt=0, description="Target height, or maximum height when not cropping")
    crop: bool = Field(True, description="Crop to exactly max_width x max_height")
    watermark: str = Field(NO_WATERMARK, description="Watermark key, or 'none'")
    quality: float = Field(0.8, ge=0.0, le=1.0, description="Encoder quality (0.0-1.0)")

    @field_validator('name', 'watermark')
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()

    @property
    def has_watermark(self) -> bool:
        return self.watermark.lower() != NO_WATERMARK


DEFAULT_PROFILES: List[OutputProfile] = [
    OutputProfile(name="large", max_width=1280, max_height=768, crop=True, watermark="highres", quality=1.0),
    OutputProfile(name="standard", max_width=700, max_height=420, crop=True, watermark="standard", quality=0.8),
    OutputProfile(name="low", max_width=320, max_height=200, crop=True, watermark=NO_WATERMARK, quality=0.8),
    OutputProfile(name="thumbnail", max_width=128, max_height=80, crop=True, watermark=NO_WATERMARK, quality=0.8),
]


def parse_profiles(data: Union[Dict[str, Any], List[Dict[str, Any]]]) -> List[OutputProfile]:
    """
    Build profiles from a mapping of ``name -> fields`` or a list of records.

    Mapping order is kept, so it decides the order profiles are processed in.
    """
    if isinstance(data, dict):
        return [OutputProfile(**{**(fields or {}), "name": name}) for name, fields in data.items()]
    return [OutputProfile(**record) for record in data]


def load_profiles(config_path: Union[str, Path]) -> List[OutputProfile]:
    """
    Load output profiles from a YAML file.

    The file holds a top-level ``profiles`` key, either a mapping keyed by
    profile name or a list of records with a ``name`` field.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the YAML is malformed or has no profiles.
        ValidationError: If a profile doesn't match the expected schema.
    """
    config_path = Path(config_path)
    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        raise FileNotFoundError(f"Profiles config file not found: {config_path}")
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in profiles config: {e}") from e

    profiles = data.get("profiles") if isinstance(data, dict) else None
    if not profiles:
        raise ValueError(f"No profiles defined in {config_path}")

    return parse_profiles(profiles)


__all__ = ["DEFAULT_PROFILES", "NO_WATERMARK", "OutputProfile", "load_profiles", "parse_profiles"]
