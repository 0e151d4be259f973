"""
Pyramid sliding-window scanner.
Slides the fixed 64x128 window over every pyramid level and computes one HOG
descriptor per window position.
"""
from dataclasses import dataclass
from typing import Dict, Generator, List, Optional, Tuple
import numpy as np
from tqdm import tqdm

from hogscan.constants import (
    WINDOW_WIDTH, WINDOW_HEIGHT, STEP_SIZE, SCALE_FACTOR, DESCRIPTOR_LENGTH,
)
from hogscan.detection.pyramid import PyramidLevel, iter_pyramid
from hogscan.errors import InvalidArgumentError, UnsupportedSizeError
from hogscan.feature_extraction.hog_extractor import HOGExtractor
from hogscan.feature_extraction.pixel_buffer import PixelBuffer
from hogscan.parallel.dispatcher import WorkDispatcher, plan_workers


@dataclass(frozen=True)
class WindowPosition:
    """Window location inside one pyramid level (pixel offsets of the top-left corner)."""
    level_index: int
    index: int
    row: int
    col: int


@dataclass(frozen=True)
class Detection:
    """
    A window the classifier accepted.

    ``rectangle`` is (x, y, width, height) in original-image pixels.
    """
    level_index: int
    window_index: int
    rectangle: Tuple[int, int, int, int]


class PyramidScanner:
    """
    Multi-scale sliding-window descriptor engine.

    Gradients are computed once per pyramid level and shared by every window
    position on that level. Two independent switches control parallelism:
    ``parallel`` distributes whole windows over an outer worker pool and
    ``parallel_children`` distributes the cell and block stages of each
    window over a transient inner pool. Both pools are sized from a single
    worker budget so that outer * inner never exceeds it.
    """

    def __init__(self,
                 extractor: Optional[HOGExtractor] = None,
                 step_size: int = STEP_SIZE,
                 scale_factor: float = SCALE_FACTOR,
                 window_height: int = WINDOW_HEIGHT,
                 window_width: int = WINDOW_WIDTH,
                 workers: Optional[int] = None):
        """
        Initialize scanner.

        Args:
            extractor: Per-window descriptor pipeline (default HOGExtractor)
            step_size: Window stride in pixels
            scale_factor: Pyramid shrink factor per level (> 1)
            window_height: Detection window height (must be 128)
            window_width: Detection window width (must be 64)
            workers: Worker budget shared by both pools (None = hardware count)
        """
        if step_size < 1:
            raise InvalidArgumentError(f"Step size must be >= 1, got {step_size}")
        if scale_factor <= 1:
            raise InvalidArgumentError(f"Scale factor must be > 1, got {scale_factor}")
        if window_height != WINDOW_HEIGHT or window_width != WINDOW_WIDTH:
            raise UnsupportedSizeError(
                f"Window is {window_width}x{window_height}, "
                f"descriptors are only defined for {WINDOW_WIDTH}x{WINDOW_HEIGHT}"
            )

        self.extractor = extractor if extractor is not None else HOGExtractor(workers=workers)
        self.step_size = step_size
        self.scale_factor = scale_factor
        self.window_height = window_height
        self.window_width = window_width
        self.workers = workers

    @classmethod
    def from_config(cls, config: Dict) -> "PyramidScanner":
        """Build a scanner from the 'scan' and 'hog' sections of a config dictionary."""
        scan_config = config.get('scan', {}) or {}
        workers = scan_config.get('workers')
        return cls(
            extractor=HOGExtractor.from_config(config, workers=workers),
            step_size=int(scan_config.get('step_size', STEP_SIZE)),
            scale_factor=float(scan_config.get('scale_factor', SCALE_FACTOR)),
            workers=workers,
        )

    # ── Index mapping ──────────────────────────────────────────────────────

    def window_grid(self, level_height: int, level_width: int,
                    step_size: Optional[int] = None) -> Tuple[int, int]:
        """
        Number of window rows and columns that fit in a level.

        Returns (0, 0) when the level is smaller than the window.
        """
        step = self.step_size if step_size is None else step_size
        if level_height < self.window_height or level_width < self.window_width:
            return 0, 0
        rows = (level_height - self.window_height) // step + 1
        cols = (level_width - self.window_width) // step + 1
        return rows, cols

    def window_count(self, level: PyramidLevel, step_size: Optional[int] = None) -> int:
        rows, cols = self.window_grid(level.height, level.width, step_size)
        return rows * cols

    def window_offset(self, index: int, cols: int,
                      step_size: Optional[int] = None) -> Tuple[int, int]:
        """(row, col) pixel offset of a row-major window index."""
        step = self.step_size if step_size is None else step_size
        row, col = divmod(index, cols)
        return row * step, col * step

    def positions(self, level: PyramidLevel,
                  step_size: Optional[int] = None) -> List[WindowPosition]:
        """All window positions of a level in row-major order."""
        rows, cols = self.window_grid(level.height, level.width, step_size)
        positions = []
        for index in range(rows * cols):
            row, col = self.window_offset(index, cols, step_size)
            positions.append(WindowPosition(level.index, index, row, col))
        return positions

    def window_rectangle(self, level: PyramidLevel, index: int,
                         step_size: Optional[int] = None) -> Tuple[int, int, int, int]:
        """
        Map a window index on a level back to original-image pixels.

        Returns:
            (x, y, width, height) rounded to whole pixels
        """
        rows, cols = self.window_grid(level.height, level.width, step_size)
        if not 0 <= index < rows * cols:
            raise InvalidArgumentError(
                f"Window index {index} out of range for level {level.index} "
                f"({rows * cols} positions)"
            )
        row, col = self.window_offset(index, cols, step_size)
        scale = level.scale
        return (int(round(col * scale)), int(round(row * scale)),
                int(round(self.window_width * scale)),
                int(round(self.window_height * scale)))

    # ── Descriptor computation ─────────────────────────────────────────────

    def slide_window(self, level: PyramidLevel,
                     step_size: Optional[int] = None,
                     parallel: bool = False,
                     parallel_children: bool = False) -> np.ndarray:
        """
        Descriptors of every window position on one level.

        Args:
            level: Pyramid level to scan
            step_size: Window stride (None = scanner default)
            parallel: One outer worker per window descriptor
            parallel_children: Inner pool per window for cells and blocks

        Returns:
            float32 array of shape (positions, 3780), row-major window order
        """
        step = self.step_size if step_size is None else step_size
        if step < 1:
            raise InvalidArgumentError(f"Step size must be >= 1, got {step}")

        rows, cols = self.window_grid(level.height, level.width, step)
        count = rows * cols
        if count == 0:
            return np.zeros((0, DESCRIPTOR_LENGTH), dtype=np.float32)

        outer, inner = plan_workers(self.workers, parallel, parallel_children)
        field = self.extractor.gradients.compute(level.buffer, parallel=parallel)

        def work(index: int) -> np.ndarray:
            offset = self.window_offset(index, cols, step)
            return self.extractor.calculate_window(
                field, offset,
                parallel_children=parallel_children,
                inner_workers=inner,
            )

        descriptors = [None] * count
        if parallel:
            WorkDispatcher(outer).run_parallel(count, outer, work, descriptors)
        else:
            for index in range(count):
                descriptors[index] = work(index)

        return np.stack(descriptors)

    def iter_levels(self, image: PixelBuffer,
                    parallel: bool = False,
                    parallel_children: bool = False
                    ) -> Generator[Tuple[PyramidLevel, np.ndarray], None, None]:
        """Yield (level, descriptors) for every level of a freshly built pyramid."""
        for level in iter_pyramid(image, self.scale_factor,
                                  self.window_height, self.window_width):
            yield level, self.slide_window(
                level, parallel=parallel, parallel_children=parallel_children
            )

    def scan(self, image: PixelBuffer, classifier,
             parallel: bool = False,
             parallel_children: bool = False,
             verbose: bool = False) -> List[Detection]:
        """
        Run the classifier on every window of every pyramid level.

        Args:
            image: Original image
            classifier: Object with ``predict_batch(vectors)`` or ``predict(vector)``
            parallel: Outer parallelism switch
            parallel_children: Inner parallelism switch
            verbose: Show a progress bar over pyramid levels

        Returns:
            Detections in level order, then window order
        """
        detections: List[Detection] = []

        levels = self.iter_levels(image, parallel, parallel_children)
        if verbose:
            levels = tqdm(levels, desc="Scanning pyramid", unit="level")

        for level, descriptors in levels:
            if len(descriptors) == 0:
                continue
            if hasattr(classifier, 'predict_batch'):
                matches = np.asarray(classifier.predict_batch(descriptors), dtype=bool)
            else:
                matches = np.array([bool(classifier.predict(d)) for d in descriptors])

            for index in np.flatnonzero(matches):
                index = int(index)
                detections.append(Detection(
                    level_index=level.index,
                    window_index=index,
                    rectangle=self.window_rectangle(level, index),
                ))

        return detections
