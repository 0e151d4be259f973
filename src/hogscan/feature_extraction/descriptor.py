"""
Descriptor assembly.
Concatenates the blocks of a window and applies the two-stage normalization:
global L2, clip at TAU, L2 again.
"""
import numpy as np

from hogscan.constants import EPSILON, TAU


class DescriptorAssembler:
    """Flattens normalized blocks into the final window descriptor."""

    def __init__(self, tau: float = TAU, epsilon: float = EPSILON):
        """
        Args:
            tau: Ceiling applied to every component after the first L2 pass
            epsilon: Stabilizer added under every square root
        """
        self.tau = tau
        self.epsilon = epsilon

    def l2_normalize(self, vector: np.ndarray) -> np.ndarray:
        vector = np.asarray(vector, dtype=np.float64)
        return vector / np.sqrt(np.sum(vector * vector) + self.epsilon)

    def clip(self, vector: np.ndarray) -> np.ndarray:
        # Ceiling only; components are magnitudes and never negative
        return np.minimum(vector, self.tau)

    def assemble(self, blocks: np.ndarray) -> np.ndarray:
        """
        Build the descriptor from a window's blocks.

        Args:
            blocks: Array of shape (num_blocks, block_length)

        Returns:
            float32 descriptor of num_blocks * block_length values
        """
        vector = np.asarray(blocks).ravel()
        vector = self.l2_normalize(vector)
        vector = self.clip(vector)
        vector = self.l2_normalize(vector)
        return vector.astype(np.float32)
