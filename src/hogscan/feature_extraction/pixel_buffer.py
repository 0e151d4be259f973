"""
Immutable normalized pixel buffer.
"""
from typing import Tuple
import numpy as np

from hogscan.errors import InvalidArgumentError


SUPPORTED_CHANNELS = (3, 4)


class PixelBuffer:
    """
    Row-major, channel-interleaved image with samples in [0, 1].

    The underlying array has shape (height, width, channels) and is
    read-only once the buffer is constructed.
    """

    def __init__(self, data: np.ndarray):
        """
        Wrap a float image.

        Args:
            data: Array of shape (H, W, C) with C in {3, 4}, values in [0, 1]
        """
        data = np.asarray(data)
        if data.ndim != 3:
            raise InvalidArgumentError(
                f"Expected (height, width, channels) array, got shape {data.shape}"
            )
        if data.shape[2] not in SUPPORTED_CHANNELS:
            raise InvalidArgumentError(
                f"Unsupported channel count {data.shape[2]}, expected 3 or 4"
            )

        samples = np.array(data, dtype=np.float32, copy=True)
        samples.setflags(write=False)
        self._data = samples

    @classmethod
    def from_uint8(cls, image: np.ndarray) -> "PixelBuffer":
        """Build a buffer from a decoded 8-bit image (0-255)."""
        image = np.asarray(image)
        return cls(image.astype(np.float32) / 255.0)

    @property
    def data(self) -> np.ndarray:
        """Read-only (H, W, C) float32 samples."""
        return self._data

    @property
    def height(self) -> int:
        return self._data.shape[0]

    @property
    def width(self) -> int:
        return self._data.shape[1]

    @property
    def channels(self) -> int:
        return self._data.shape[2]

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self._data.shape

    @property
    def sample_count(self) -> int:
        """width * height * channels"""
        return self._data.size

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height}, channels={self.channels})"
