"""
Cell orientation histograms.
Bins the gradient samples of one 8x8 cell into 9 unsigned orientation bins.
"""
from typing import Optional, Tuple
import numpy as np

from hogscan.constants import CELL_COLUMNS, CELL_SIZE, CELLS_PER_WINDOW, NUM_BINS
from hogscan.errors import InvalidArgumentError
from hogscan.parallel.dispatcher import WorkDispatcher


class CellHistogramBuilder:
    """
    Builds per-cell histograms with linear interpolation between the two
    nearest bins.

    The magnitude and orientation arrays may cover a region larger than one
    window (e.g. a whole pyramid level); ``window_offset`` translates the
    window's cell grid into that region.
    """

    def __init__(self,
                 cell_size: int = CELL_SIZE,
                 cell_columns: int = CELL_COLUMNS,
                 cells_per_window: int = CELLS_PER_WINDOW,
                 nbins: int = NUM_BINS):
        """
        Initialize histogram builder.

        Args:
            cell_size: Cell side in pixels
            cell_columns: Cells per window row
            cells_per_window: Total cells in a window
            nbins: Number of orientation bins over [0, 180)
        """
        self.cell_size = cell_size
        self.cell_columns = cell_columns
        self.cells_per_window = cells_per_window
        self.nbins = nbins
        self.bin_width = 180.0 / nbins

    def cell_bounds(self, cell_index: int,
                    window_offset: Tuple[int, int]) -> Tuple[int, int]:
        """Top-left pixel (row, col) of a cell inside the source arrays."""
        cell_row, cell_col = divmod(cell_index, self.cell_columns)
        row_offset, col_offset = window_offset
        return (row_offset + cell_row * self.cell_size,
                col_offset + cell_col * self.cell_size)

    def histogram(self, cell_index: int, window_offset: Tuple[int, int],
                  magnitude: np.ndarray, orientation: np.ndarray) -> np.ndarray:
        """
        Orientation histogram of one cell.

        Args:
            cell_index: Row-major cell index within the window
            window_offset: (row, col) of the window's top-left pixel
            magnitude: Gradient magnitude, shape (H, W, C)
            orientation: Gradient orientation in degrees [0, 180), shape (H, W, C)

        Returns:
            float32 array of nbins values
        """
        if not 0 <= cell_index < self.cells_per_window:
            raise InvalidArgumentError(f"Cell index {cell_index} out of range")

        top, left = self.cell_bounds(cell_index, window_offset)
        bottom = top + self.cell_size
        right = left + self.cell_size
        if top < 0 or left < 0 or bottom > magnitude.shape[0] or right > magnitude.shape[1]:
            raise InvalidArgumentError(
                f"Cell {cell_index} at ({top}, {left}) lies outside "
                f"{magnitude.shape[0]}x{magnitude.shape[1]} gradient arrays"
            )

        mag = magnitude[top:bottom, left:right, :].ravel().astype(np.float64)
        ang = orientation[top:bottom, left:right, :].ravel().astype(np.float64)

        bins = np.floor(ang / self.bin_width).astype(np.int64)
        factor = (ang - self.bin_width * bins) / self.bin_width
        bins %= self.nbins
        next_bins = (bins + 1) % self.nbins

        hist = np.bincount(bins, weights=(1.0 - factor) * mag, minlength=self.nbins)
        hist += np.bincount(next_bins, weights=factor * mag, minlength=self.nbins)
        return hist.astype(np.float32)

    def histograms(self, window_offset: Tuple[int, int],
                   magnitude: np.ndarray, orientation: np.ndarray,
                   dispatcher: Optional[WorkDispatcher] = None) -> np.ndarray:
        """
        All cell histograms of one window.

        Args:
            window_offset: (row, col) of the window's top-left pixel
            magnitude: Gradient magnitude array
            orientation: Gradient orientation array
            dispatcher: Fan cells out across this pool (None = sequential)

        Returns:
            Array of shape (cells_per_window, nbins)
        """
        def work(index: int) -> np.ndarray:
            return self.histogram(index, window_offset, magnitude, orientation)

        if dispatcher is None:
            cells = [work(index) for index in range(self.cells_per_window)]
        else:
            cells = [None] * self.cells_per_window
            dispatcher.run_parallel(self.cells_per_window, dispatcher.workers, work, cells)
        return np.stack(cells)
