"""
Image pyramid.
Progressively downscaled copies of an image for fixed-window multi-scale scanning.
"""
from dataclasses import dataclass
from typing import Generator, List

from hogscan.constants import SCALE_FACTOR, WINDOW_HEIGHT, WINDOW_WIDTH
from hogscan.errors import InvalidArgumentError
from hogscan.feature_extraction.pixel_buffer import PixelBuffer
from hogscan.preprocess.resize import downscale


@dataclass(frozen=True)
class PyramidLevel:
    """One level of the pyramid; scale is relative to the original image."""
    index: int
    buffer: PixelBuffer
    scale: float

    @property
    def width(self) -> int:
        return self.buffer.width

    @property
    def height(self) -> int:
        return self.buffer.height


def _fits(width: int, height: int, window_height: int, window_width: int) -> bool:
    return width >= window_width and height >= window_height


def iter_pyramid(image: PixelBuffer,
                 scale_factor: float = SCALE_FACTOR,
                 window_height: int = WINDOW_HEIGHT,
                 window_width: int = WINDOW_WIDTH,
                 method: str = "bilinear") -> Generator[PyramidLevel, None, None]:
    """
    Lazily generate pyramid levels, largest first.

    Level 0 is the original image. Each further level is the previous one
    resized by 1/scale_factor. Generation stops before a level that would be
    smaller than the window in either dimension.

    Args:
        image: Original image
        scale_factor: Per-level shrink factor (> 1)
        window_height: Detection window height
        window_width: Detection window width
        method: Interpolation used by the resize

    Yields:
        PyramidLevel instances in order
    """
    if scale_factor <= 1:
        raise InvalidArgumentError(f"Scale factor must be > 1, got {scale_factor}")

    if not _fits(image.width, image.height, window_height, window_width):
        return

    level = PyramidLevel(index=0, buffer=image, scale=1.0)
    while True:
        yield level

        next_width = int(level.width / scale_factor)
        next_height = int(level.height / scale_factor)
        if not _fits(next_width, next_height, window_height, window_width):
            return

        level = PyramidLevel(
            index=level.index + 1,
            buffer=downscale(level.buffer, scale_factor, method),
            scale=scale_factor ** (level.index + 1),
        )


def create_pyramid(image: PixelBuffer,
                   scale_factor: float = SCALE_FACTOR,
                   window_height: int = WINDOW_HEIGHT,
                   window_width: int = WINDOW_WIDTH) -> List[PyramidLevel]:
    """Materialize the whole pyramid as a list."""
    return list(iter_pyramid(image, scale_factor, window_height, window_width))
