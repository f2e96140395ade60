from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Generator, Tuple

import numpy as np
import pytest
import yaml
from loguru import logger
from PIL import Image

from watermark_profiles.buffer import PixelBuffer
from watermark_profiles.config import get_settings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Keep .env files and WATERMARK_* variables from leaking into tests."""
    for key in list(os.environ):
        if key.upper().startswith("WATERMARK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)

    yield

    get_settings.cache_clear()
    # The CLI installs sinks bound to the captured stderr of the current test
    logger.remove()


@pytest.fixture
def solid() -> Callable[..., PixelBuffer]:
    """Factory for single-colour buffers."""

    def make(width: int, height: int, color: Tuple[int, int, int, int] = (0, 0, 0, 255)) -> PixelBuffer:
        return PixelBuffer.blank(width, height, color)

    return make


@pytest.fixture
def gradient() -> PixelBuffer:
    """Opaque buffer where every pixel differs."""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(7, 13, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    return PixelBuffer.from_array(pixels)


@pytest.fixture
def watermark_file(tmp_path: Path) -> Path:
    path = tmp_path / "watermark.png"
    Image.new("RGBA", (8, 8), (255, 255, 255, 200)).save(path)
    return path


@pytest.fixture
def source_file(tmp_path: Path) -> Path:
    path = tmp_path / "photo.png"
    Image.new("RGB", (300, 200), color=(40, 90, 160)).save(path)
    return path


@pytest.fixture
def profiles_file(tmp_path: Path) -> Path:
    config = {
        "profiles": {
            "small": {
                "max_width": 60,
                "max_height": 40,
                "crop": True,
                "watermark": "standard",
                "quality": 0.9,
            },
            "thumb": {
                "max_width": 30,
                "max_height": 30,
                "crop": False,
                "watermark": "none",
            },
        }
    }
    path = tmp_path / "profiles.yaml"
    path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return path
