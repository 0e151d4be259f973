"""
Gradient feature extractor.
Computes central-difference derivatives, gradient magnitude and unsigned
orientation for every sample of a pixel buffer.
"""
from dataclasses import dataclass
from typing import Optional
import numpy as np

from hogscan.errors import InvalidArgumentError
from hogscan.feature_extraction.pixel_buffer import PixelBuffer
from hogscan.parallel.dispatcher import WorkDispatcher


@dataclass(frozen=True)
class GradientField:
    """Derivatives and derived arrays, each shaped like the source buffer."""
    dx: np.ndarray
    dy: np.ndarray
    magnitude: np.ndarray
    orientation: np.ndarray

    @property
    def height(self) -> int:
        return self.magnitude.shape[0]

    @property
    def width(self) -> int:
        return self.magnitude.shape[1]

    @property
    def channels(self) -> int:
        return self.magnitude.shape[2]


def _derive_line(line: np.ndarray) -> np.ndarray:
    """Central difference along axis 0, zero at both ends."""
    derived = np.zeros_like(line)
    derived[1:-1] = line[2:] - line[:-2]
    return derived


class GradientExtractor:
    """
    Gradient extractor.

    Each channel is treated as an independent scalar stream; samples are
    never aggregated per pixel before differentiation.
    """

    def __init__(self, dispatcher: Optional[WorkDispatcher] = None):
        """
        Initialize Gradient extractor.

        Args:
            dispatcher: Worker pool used in parallel mode (None = hardware-sized)
        """
        self.dispatcher = dispatcher if dispatcher is not None else WorkDispatcher()

    def derive(self, buffer: PixelBuffer, direction: str,
               parallel: bool = False) -> np.ndarray:
        """
        Central-difference derivative of the buffer.

        Args:
            buffer: Source pixel buffer
            direction: 'x' (across columns) or 'y' (across rows)
            parallel: Row-wise (x) or column-wise (y) decomposition over
                the dispatcher's workers

        Returns:
            Derivative array of shape (H, W, C), float32
        """
        if direction not in ('x', 'y'):
            raise InvalidArgumentError(f"Unknown derivative direction: {direction!r}")

        image = buffer.data

        if not parallel:
            derived = np.zeros_like(image)
            if direction == 'x':
                derived[:, 1:-1, :] = image[:, 2:, :] - image[:, :-2, :]
            else:
                derived[1:-1, :, :] = image[2:, :, :] - image[:-2, :, :]
            return derived

        if direction == 'x':
            rows = [None] * buffer.height
            self.dispatcher.run_parallel(
                buffer.height, self.dispatcher.workers,
                lambda r: _derive_line(image[r]), rows
            )
            return np.stack(rows, axis=0)

        columns = [None] * buffer.width
        self.dispatcher.run_parallel(
            buffer.width, self.dispatcher.workers,
            lambda c: _derive_line(image[:, c, :]), columns
        )
        return np.stack(columns, axis=1)

    @staticmethod
    def magnitude(dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
        """sqrt(dx^2 + dy^2) per sample."""
        dx = np.asarray(dx)
        dy = np.asarray(dy)
        if dx.shape != dy.shape:
            raise InvalidArgumentError(
                f"Derivative shapes differ: {dx.shape} vs {dy.shape}"
            )
        return np.sqrt(dx * dx + dy * dy)

    @staticmethod
    def orientation(dx: np.ndarray, dy: np.ndarray) -> np.ndarray:
        """
        Unsigned gradient orientation in degrees, in [0, 180).

        Angles in the lower half-plane are folded by 180 degrees.
        """
        dx = np.asarray(dx)
        dy = np.asarray(dy)
        if dx.shape != dy.shape:
            raise InvalidArgumentError(
                f"Derivative shapes differ: {dx.shape} vs {dy.shape}"
            )
        angle = np.degrees(np.arctan2(dy.astype(np.float64), dx.astype(np.float64)))
        angle = np.mod(angle, 180.0).astype(np.float32)
        # float32 rounding can land exactly on 180, which is the same direction as 0
        angle[angle >= 180.0] = 0.0
        return angle

    def compute(self, buffer: PixelBuffer, parallel: bool = False) -> GradientField:
        """
        Compute the full gradient field of a buffer.

        Args:
            buffer: Source pixel buffer
            parallel: Use the dispatcher for the derivative passes

        Returns:
            GradientField with dx, dy, magnitude and orientation
        """
        dx = self.derive(buffer, 'x', parallel=parallel)
        dy = self.derive(buffer, 'y', parallel=parallel)
        return GradientField(
            dx=dx,
            dy=dy,
            magnitude=self.magnitude(dx, dy),
            orientation=self.orientation(dx, dy),
        )
