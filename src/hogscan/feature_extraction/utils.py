"""
Utility functions for feature extraction.
Descriptor caching as .npy files.
"""
from pathlib import Path
from typing import Tuple
import numpy as np

from hogscan.preprocess.utils import ensure_dir


def save_features_batch(features: np.ndarray, labels: np.ndarray,
                        output_path: Path, split: str) -> None:
    """
    Save extracted descriptors and labels to .npy files.

    Args:
        features: Descriptor array (N, 3780)
        labels: Label array (N,), 1 for positive windows and 0 for negative
        output_path: Output directory
        split: Split name (e.g. positive, negative, train)
    """
    ensure_dir(output_path)

    features_file = output_path / f"{split}_features.npy"
    labels_file = output_path / f"{split}_labels.npy"

    np.save(str(features_file), features.astype(np.float32))
    np.save(str(labels_file), labels.astype(np.int32))

    print(f"✓ Saved {len(features)} descriptors to {features_file}")


def load_cached_features(output_path: Path, split: str) -> Tuple[np.ndarray, np.ndarray]:
    """
    Load cached descriptors from .npy files.

    Args:
        output_path: Directory containing cached features
        split: Split name

    Returns:
        Tuple of (features, labels)
    """
    features_file = output_path / f"{split}_features.npy"
    labels_file = output_path / f"{split}_labels.npy"

    if not features_file.exists():
        raise FileNotFoundError(f"Features file not found: {features_file}")
    if not labels_file.exists():
        raise FileNotFoundError(f"Labels file not found: {labels_file}")

    return np.load(str(features_file)), np.load(str(labels_file))


def check_cache_exists(output_path: Path, split: str) -> bool:
    """True if both the features and labels files of a split exist."""
    features_file = output_path / f"{split}_features.npy"
    labels_file = output_path / f"{split}_labels.npy"

    return features_file.exists() and labels_file.exists()
