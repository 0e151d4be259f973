"""
Training vector collection.
Positive descriptors come from window-sized images; negative descriptors are
sampled at random window positions of larger background images.
"""
from pathlib import Path
from typing import List, Optional
import numpy as np
from tqdm import tqdm

from hogscan.constants import NEGATIVE_SAMPLES
from hogscan.detection.pyramid import PyramidLevel
from hogscan.detection.scanner import PyramidScanner
from hogscan.errors import UnsupportedSizeError
from hogscan.feature_extraction.hog_extractor import HOGExtractor
from hogscan.preprocess.utils import image_generator


def positive_vectors(image_paths: List[Path],
                     extractor: Optional[HOGExtractor] = None,
                     verbose: bool = True) -> np.ndarray:
    """
    Descriptors of positive example images.

    Images that are not exactly window-sized are skipped with a warning.

    Args:
        image_paths: Paths of 64x128 images
        extractor: HOG extractor (default settings if None)
        verbose: Show a progress bar

    Returns:
        float32 array of shape (N, 3780)
    """
    extractor = extractor if extractor is not None else HOGExtractor()
    vectors = []

    images = image_generator(image_paths)
    if verbose:
        images = tqdm(images, total=len(image_paths), desc="Positive vectors")

    for buffer, img_path in images:
        try:
            vectors.append(extractor.extract(buffer))
        except UnsupportedSizeError as e:
            print(f"Warning: Skipping {img_path}: {e}")

    if not vectors:
        return np.zeros((0, extractor.get_feature_dim()), dtype=np.float32)
    return np.stack(vectors)


def negative_vectors(image_paths: List[Path],
                     scanner: Optional[PyramidScanner] = None,
                     samples_per_image: int = NEGATIVE_SAMPLES,
                     rng: Optional[np.random.Generator] = None,
                     verbose: bool = True) -> np.ndarray:
    """
    Descriptors of randomly chosen windows in background images.

    Window indices are drawn uniformly (with replacement) from the sliding
    window grid of each full-resolution image. Gradients are computed once
    per image. Images smaller than the window are skipped with a warning.

    Args:
        image_paths: Paths of background images
        scanner: Supplies the extractor and window grid (default settings if None)
        samples_per_image: Windows sampled per image
        rng: Random generator (unseeded if None)
        verbose: Show a progress bar

    Returns:
        float32 array of shape (N, 3780)
    """
    scanner = scanner if scanner is not None else PyramidScanner()
    rng = rng if rng is not None else np.random.default_rng()
    extractor = scanner.extractor
    vectors = []

    images = image_generator(image_paths)
    if verbose:
        images = tqdm(images, total=len(image_paths), desc="Negative vectors")

    for buffer, img_path in images:
        level = PyramidLevel(index=0, buffer=buffer, scale=1.0)
        rows, cols = scanner.window_grid(level.height, level.width)
        count = rows * cols
        if count == 0:
            print(f"Warning: Skipping {img_path}: smaller than the detection window")
            continue

        field = extractor.gradients.compute(buffer)
        for index in rng.integers(0, count, size=samples_per_image):
            offset = scanner.window_offset(int(index), cols)
            vectors.append(extractor.calculate_window(field, offset))

    if not vectors:
        return np.zeros((0, extractor.get_feature_dim()), dtype=np.float32)
    return np.stack(vectors)
