"""
Block normalization.
Groups 2x2 neighbouring cell histograms into one L2-normalized block vector.
"""
from typing import List, Optional
import numpy as np

from hogscan.constants import BLOCK_COLUMNS, BLOCKS_PER_WINDOW, CELL_COLUMNS, EPSILON
from hogscan.errors import InvalidArgumentError
from hogscan.parallel.dispatcher import WorkDispatcher


class BlockNormalizer:
    """
    Normalizes overlapping 2x2 cell blocks (stride one cell).

    Cell order within a block is fixed: top-left, top-right, bottom-left,
    bottom-right.
    """

    def __init__(self,
                 cell_columns: int = CELL_COLUMNS,
                 block_columns: int = BLOCK_COLUMNS,
                 blocks_per_window: int = BLOCKS_PER_WINDOW,
                 epsilon: float = EPSILON):
        self.cell_columns = cell_columns
        self.block_columns = block_columns
        self.blocks_per_window = blocks_per_window
        self.epsilon = epsilon

    def block_cells(self, block_index: int) -> List[int]:
        """Indices of the four cells covered by a block."""
        if not 0 <= block_index < self.blocks_per_window:
            raise InvalidArgumentError(f"Block index {block_index} out of range")
        block_row, block_col = divmod(block_index, self.block_columns)
        top_left = block_row * self.cell_columns + block_col
        return [top_left, top_left + 1,
                top_left + self.cell_columns, top_left + self.cell_columns + 1]

    def normalize_block(self, block_index: int, histograms: np.ndarray) -> np.ndarray:
        """
        L2-normalized block vector.

        Args:
            block_index: Row-major block index within the window
            histograms: Cell histograms, shape (cells_per_window, nbins)

        Returns:
            float32 vector of 4 * nbins values
        """
        block = histograms[self.block_cells(block_index)].ravel().astype(np.float64)
        norm = np.sqrt(np.sum(block * block) + self.epsilon)
        return (block / norm).astype(np.float32)

    def normalize_blocks(self, histograms: np.ndarray,
                         dispatcher: Optional[WorkDispatcher] = None) -> np.ndarray:
        """
        All normalized blocks of one window.

        Returns:
            Array of shape (blocks_per_window, 4 * nbins)
        """
        def work(index: int) -> np.ndarray:
            return self.normalize_block(index, histograms)

        if dispatcher is None:
            blocks = [work(index) for index in range(self.blocks_per_window)]
        else:
            blocks = [None] * self.blocks_per_window
            dispatcher.run_parallel(self.blocks_per_window, dispatcher.workers, work, blocks)
        return np.stack(blocks)
