"""
HOG (Histogram of Oriented Gradients) feature extractor.
Computes the 3780-value descriptor of one 64x128 detection window.
"""
from typing import Dict, Optional, Tuple, Union
import numpy as np

from hogscan.constants import (
    WINDOW_WIDTH, WINDOW_HEIGHT, DESCRIPTOR_LENGTH, EPSILON, TAU,
)
from hogscan.errors import UnsupportedSizeError
from hogscan.feature_extraction.block_normalizer import BlockNormalizer
from hogscan.feature_extraction.cell_histogram import CellHistogramBuilder
from hogscan.feature_extraction.descriptor import DescriptorAssembler
from hogscan.feature_extraction.gradient_extractor import GradientExtractor, GradientField
from hogscan.feature_extraction.pixel_buffer import PixelBuffer
from hogscan.parallel.dispatcher import WorkDispatcher


def as_pixel_buffer(image: Union[PixelBuffer, np.ndarray]) -> PixelBuffer:
    """Accept a PixelBuffer, a uint8 image (0-255) or a float image (0-1)."""
    if isinstance(image, PixelBuffer):
        return image
    image = np.asarray(image)
    if image.dtype == np.uint8:
        return PixelBuffer.from_uint8(image)
    return PixelBuffer(image)


class HOGExtractor:
    """
    HOG feature extractor.

    Runs gradients -> cell histograms -> block normalization -> descriptor
    assembly for one window. Stages are separated by barriers: each stage
    starts only after the previous one has produced all of its outputs.
    """

    def __init__(self,
                 epsilon: float = EPSILON,
                 tau: float = TAU,
                 workers: Optional[int] = None):
        """
        Initialize HOG extractor.

        Args:
            epsilon: Stabilizer used by every L2 normalization
            tau: Clipping ceiling of the descriptor's second stage
            workers: Threads used when a stage runs in parallel (None = hardware count)
        """
        self.epsilon = epsilon
        self.tau = tau
        self.workers = workers

        self.gradients = GradientExtractor(WorkDispatcher(workers))
        self.cells = CellHistogramBuilder()
        self.blocks = BlockNormalizer(epsilon=epsilon)
        self.assembler = DescriptorAssembler(tau=tau, epsilon=epsilon)

        self.feature_dim = DESCRIPTOR_LENGTH

    @classmethod
    def from_config(cls, config: Dict, workers: Optional[int] = None) -> "HOGExtractor":
        """Build an extractor from the 'hog' section of a config dictionary."""
        hog_config = config.get('hog', {}) or {}
        return cls(
            epsilon=float(hog_config.get('epsilon', EPSILON)),
            tau=float(hog_config.get('tau', TAU)),
            workers=workers,
        )

    def calculate_window(self, field: GradientField,
                         window_offset: Tuple[int, int] = (0, 0),
                         parallel_children: bool = False,
                         inner_workers: Optional[int] = None) -> np.ndarray:
        """
        Descriptor of the window whose top-left pixel is window_offset.

        Args:
            field: Gradient field covering the window (usually a whole pyramid level)
            window_offset: (row, col) of the window inside the field
            parallel_children: Fan cell and block stages out over a transient pool
            inner_workers: Size of that pool (None = extractor default)

        Returns:
            float32 descriptor of length 3780
        """
        dispatcher = None
        if parallel_children:
            dispatcher = WorkDispatcher(inner_workers if inner_workers is not None else self.workers)

        histograms = self.cells.histograms(
            window_offset, field.magnitude, field.orientation, dispatcher=dispatcher
        )
        blocks = self.blocks.normalize_blocks(histograms, dispatcher=dispatcher)
        return self.assembler.assemble(blocks)

    def extract(self, image: Union[PixelBuffer, np.ndarray],
                parallel: bool = False,
                parallel_children: bool = False) -> np.ndarray:
        """
        Extract HOG features from a 64x128 image.

        Args:
            image: Window-sized image (PixelBuffer, uint8 0-255 or float 0-1)
            parallel: Parallel derivative passes
            parallel_children: Parallel cell/block stages

        Returns:
            HOG feature vector (float32)
        """
        buffer = as_pixel_buffer(image)
        if buffer.width != WINDOW_WIDTH or buffer.height != WINDOW_HEIGHT:
            raise UnsupportedSizeError(
                f"Image is {buffer.width}x{buffer.height}, "
                f"expected {WINDOW_WIDTH}x{WINDOW_HEIGHT}"
            )

        field = self.gradients.compute(buffer, parallel=parallel)
        return self.calculate_window(field, (0, 0), parallel_children=parallel_children)

    def get_feature_dim(self) -> int:
        """Get feature dimension."""
        return self.feature_dim
