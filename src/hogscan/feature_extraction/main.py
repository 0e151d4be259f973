"""
Feature extraction pipeline.
Computes HOG descriptors of 64x128 window images and caches them as .npy.
"""
import sys
import argparse
from pathlib import Path
from typing import Dict, Optional, Tuple
import numpy as np
from tqdm import tqdm

from hogscan.errors import UnsupportedSizeError
from hogscan.feature_extraction.hog_extractor import HOGExtractor
from hogscan.feature_extraction.utils import (
    save_features_batch,
    load_cached_features,
    check_cache_exists,
)
from hogscan.preprocess.utils import load_config, collect_image_paths, image_generator


def extract_features_for_split(
    data_dir: Path,
    output_dir: Path,
    split: str,
    extractor: HOGExtractor,
    label: int = 1,
    use_cache: bool = True,
    parallel: bool = False,
    parallel_children: bool = False
) -> Tuple[np.ndarray, np.ndarray, Dict]:
    """
    Extract descriptors for every window-sized image below a directory.

    Images that are not exactly 64x128 are skipped with a warning.

    Args:
        data_dir: Directory containing window images
        output_dir: Directory to save extracted features
        split: Split name used in the cache file names
        extractor: HOG extractor instance
        label: Label stored for every descriptor of this split
        use_cache: Whether to use cached features if available
        parallel: Parallel derivative passes
        parallel_children: Parallel cell/block stages

    Returns:
        Tuple of (features, labels, stats)
    """
    if use_cache and check_cache_exists(output_dir, split):
        print(f"✓ Loading cached features for {split} split...")
        features, labels = load_cached_features(output_dir, split)
        stats = {
            'split': split,
            'num_samples': len(features),
            'feature_dim': features.shape[1] if features.ndim == 2 else 0,
            'cached': True
        }
        return features, labels, stats

    print(f"\nCollecting image paths for {split} split...")
    image_paths = collect_image_paths(data_dir)

    if len(image_paths) == 0:
        print(f"⚠️  No images found in {data_dir}")
        return (np.zeros((0, extractor.get_feature_dim()), dtype=np.float32),
                np.zeros(0, dtype=np.int32),
                {'split': split, 'num_samples': 0})

    print(f"Found {len(image_paths)} images")

    features_list = []
    skipped_count = 0

    for buffer, img_path in tqdm(image_generator(image_paths),
                                 total=len(image_paths), desc=f"Extracting {split}"):
        try:
            features_list.append(extractor.extract(
                buffer, parallel=parallel, parallel_children=parallel_children
            ))
        except UnsupportedSizeError as e:
            print(f"Warning: Skipping {img_path}: {e}")
            skipped_count += 1

    if features_list:
        features_array = np.stack(features_list).astype(np.float32)
    else:
        features_array = np.zeros((0, extractor.get_feature_dim()), dtype=np.float32)
    labels_array = np.full(len(features_array), label, dtype=np.int32)

    save_features_batch(features_array, labels_array, output_dir, split)

    stats = {
        'split': split,
        'num_samples': len(features_array),
        'feature_dim': extractor.get_feature_dim(),
        'skipped': skipped_count,
        'cached': False
    }
    return features_array, labels_array, stats


def run_feature_extraction_pipeline(
    config: Dict,
    input_dir: Path,
    output_dir: Path,
    split: str = "positive",
    label: int = 1,
    use_cache: bool = True,
    workers: Optional[int] = None
) -> Dict:
    """
    Run the feature extraction pipeline on one directory.

    Args:
        config: Configuration dictionary
        input_dir: Directory of 64x128 images
        output_dir: Directory receiving the .npy cache
        split: Split name used in the cache file names
        label: Label stored with every descriptor
        use_cache: Whether to reuse an existing cache
        workers: Worker budget (None = config or hardware count)

    Returns:
        Extraction statistics
    """
    scan_config = config.get('scan', {}) or {}
    if workers is None:
        workers = scan_config.get('workers')
    extractor = HOGExtractor.from_config(config, workers=workers)

    print("\n" + "=" * 60)
    print("Feature Extraction Pipeline")
    print("=" * 60)
    print(f"Input images: {input_dir}")
    print(f"Features output: {output_dir}")
    print(f"Feature dimension: {extractor.get_feature_dim()}")
    print("=" * 60)

    _, _, stats = extract_features_for_split(
        input_dir,
        output_dir,
        split,
        extractor,
        label=label,
        use_cache=use_cache,
        parallel=bool(scan_config.get('parallel', False)),
        parallel_children=bool(scan_config.get('parallel_children', False)),
    )

    print(f"\n✓ {split} split complete:")
    print(f"  - Samples: {stats['num_samples']}")
    if stats.get('skipped'):
        print(f"  - Skipped (wrong size): {stats['skipped']}")

    return stats


def main():
    """Main entry point for feature extraction."""
    parser = argparse.ArgumentParser(description='Extract HOG descriptors from 64x128 window images')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to config.yaml')
    parser.add_argument('--input', type=str, default=None,
                        help='Directory of window images (default: data.positive_dir)')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory for .npy files (default: data.features_dir)')
    parser.add_argument('--split', type=str, default='positive',
                        help='Split name used in the cache file names')
    parser.add_argument('--label', type=int, default=1, choices=[0, 1],
                        help='Label stored with every descriptor')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker thread budget')
    parser.add_argument('--no-cache', action='store_true',
                        help='Disable cache (re-extract all features)')

    args = parser.parse_args()

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else {}
    data_config = config.get('data', {}) or {}

    input_dir = args.input or data_config.get('positive_dir')
    output_dir = args.output or data_config.get('features_dir')
    if input_dir is None or output_dir is None:
        print("Error: --input and --output are required when the config does not set them")
        sys.exit(1)

    input_dir = Path(input_dir)
    if not input_dir.exists():
        print(f"Error: Input directory not found: {input_dir}")
        sys.exit(1)

    run_feature_extraction_pipeline(
        config,
        input_dir,
        Path(output_dir),
        split=args.split,
        label=args.label,
        use_cache=not args.no_cache,
        workers=args.workers,
    )


if __name__ == "__main__":
    main()
