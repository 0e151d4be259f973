"""
Published HOG and scanning constants.
Detection consumers rely on these to map window indices back to pixels.
"""

# Canonical detection window (width x height, pixels)
WINDOW_WIDTH = 64
WINDOW_HEIGHT = 128

# Cell and block geometry
CELL_SIZE = 8
BLOCK_CELLS = 2
CELL_COLUMNS = WINDOW_WIDTH // CELL_SIZE   # 8
CELL_ROWS = WINDOW_HEIGHT // CELL_SIZE     # 16
CELLS_PER_WINDOW = CELL_COLUMNS * CELL_ROWS

# Blocks overlap with a stride of one cell
BLOCK_COLUMNS = CELL_COLUMNS - BLOCK_CELLS + 1   # 7
BLOCK_ROWS = CELL_ROWS - BLOCK_CELLS + 1         # 15
BLOCKS_PER_WINDOW = BLOCK_COLUMNS * BLOCK_ROWS

# Unsigned orientation binning over [0, 180)
NUM_BINS = 9

BLOCK_LENGTH = BLOCK_CELLS * BLOCK_CELLS * NUM_BINS       # 36
DESCRIPTOR_LENGTH = BLOCKS_PER_WINDOW * BLOCK_LENGTH      # 3780

# Normalization
EPSILON = 1e-6
TAU = 0.2

# Scanning defaults
STEP_SIZE = 5
SCALE_FACTOR = 1.5

# Random negative windows drawn per training image
NEGATIVE_SAMPLES = 10
