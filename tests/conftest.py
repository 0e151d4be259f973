"""
Shared fixtures: synthetic images from a seeded generator.
"""
from pathlib import Path
import numpy as np
import cv2
import pytest

from hogscan.feature_extraction.pixel_buffer import PixelBuffer


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


def random_buffer(rng, height, width, channels=3):
    return PixelBuffer(rng.random((height, width, channels), dtype=np.float32))


@pytest.fixture
def window_buffer(rng):
    """A 64x128 three-channel image."""
    return random_buffer(rng, 128, 64)


@pytest.fixture
def scene_buffer(rng):
    """A 100 wide, 200 high image: 120 window positions at step 5."""
    return random_buffer(rng, 200, 100)


def write_image(path: Path, rng, height, width, channels=3) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    image = rng.integers(0, 256, (height, width, channels), dtype=np.uint8)
    assert cv2.imwrite(str(path), image)
    return path


@pytest.fixture
def image_writer(rng):
    """Write random uint8 images: image_writer(path, height, width, channels=3)."""
    def write(path: Path, height: int, width: int, channels: int = 3) -> Path:
        return write_image(path, rng, height, width, channels)
    return write
