"""
Main model training pipeline.
Collects positive and negative HOG descriptors and fits the window classifier.
"""
import sys
import argparse
import time
from pathlib import Path
from typing import Dict, Optional
import numpy as np

from hogscan.constants import NEGATIVE_SAMPLES
from hogscan.detection.scanner import PyramidScanner
from hogscan.feature_extraction.utils import check_cache_exists, load_cached_features
from hogscan.preprocess.utils import load_config, collect_image_paths
from hogscan.train.classifiers import DescriptorClassifier
from hogscan.train.dataset import positive_vectors, negative_vectors
from hogscan.train.utils import save_model


def train_model(
    config: Dict,
    positive_dir: Path,
    negative_dir: Path,
    models_dir: Path,
    workers: Optional[int] = None,
    features_dir: Optional[Path] = None,
    use_cache: bool = True
) -> DescriptorClassifier:
    """
    Train and save a window classifier.

    Args:
        config: Configuration dictionary
        positive_dir: Directory of 64x128 positive images
        negative_dir: Directory of background images
        models_dir: Output directory for model.pkl
        workers: Worker budget (None = config or hardware count)
        features_dir: Descriptor cache written by hogscan-extract; the
            'positive' and 'negative' splits found there replace extraction
        use_cache: Whether to read that cache

    Returns:
        Trained classifier
    """
    training_config = config.get('training', {}) or {}
    samples = int(training_config.get('negative_samples', NEGATIVE_SAMPLES))
    seed = training_config.get('seed', 42)

    if workers is not None:
        config = dict(config)
        config['scan'] = dict(config.get('scan', {}) or {}, workers=workers)
    scanner = PyramidScanner.from_config(config)

    print("\n" + "=" * 70)
    print("Model Training Pipeline")
    print("=" * 70)
    print(f"Classifier: {training_config.get('classifier', 'linear_svm').upper()}")
    print(f"Positive images: {positive_dir}")
    print(f"Negative images: {negative_dir} ({samples} windows per image)")
    print(f"Output: {models_dir}")
    print("=" * 70)

    start_time = time.time()

    print("\n[1] Collecting positive vectors...")
    if use_cache and features_dir is not None and check_cache_exists(features_dir, "positive"):
        positives, _ = load_cached_features(features_dir, "positive")
        print(f"  ✓ Loaded cached positive features from {features_dir}")
    else:
        positives = positive_vectors(collect_image_paths(positive_dir), scanner.extractor)
    print(f"  ✓ {len(positives):,} positive vectors")

    print("\n[2] Collecting negative vectors...")
    if use_cache and features_dir is not None and check_cache_exists(features_dir, "negative"):
        negatives, _ = load_cached_features(features_dir, "negative")
        print(f"  ✓ Loaded cached negative features from {features_dir}")
    else:
        negatives = negative_vectors(
            collect_image_paths(negative_dir),
            scanner,
            samples_per_image=samples,
            rng=np.random.default_rng(seed),
        )
    print(f"  ✓ {len(negatives):,} negative vectors")

    print("\n[3] Fitting classifier...")
    classifier = DescriptorClassifier.from_config(config)
    classifier.train(positives, negatives)

    X = np.concatenate([positives, negatives])
    y = np.concatenate([np.ones(len(positives), dtype=bool), np.zeros(len(negatives), dtype=bool)])
    accuracy = float(np.mean(classifier.predict_batch(X) == y))
    print(f"  ✓ Training accuracy: {accuracy:.4f}")

    model_file = save_model(classifier, models_dir)
    elapsed_time = time.time() - start_time
    print(f"\n✓ Model saved to {model_file} ({elapsed_time:.2f}s)")

    return classifier


def main():
    """Main entry point for training."""
    parser = argparse.ArgumentParser(description='Train a HOG window classifier')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to config.yaml')
    parser.add_argument('--positive', type=str, default=None,
                        help='Directory of 64x128 positive images (default: data.positive_dir)')
    parser.add_argument('--negative', type=str, default=None,
                        help='Directory of background images (default: data.negative_dir)')
    parser.add_argument('--model', type=str, default=None,
                        help='Output model directory (default: data.model_dir)')
    parser.add_argument('--features', type=str, default=None,
                        help='Descriptor cache from hogscan-extract (default: data.features_dir)')
    parser.add_argument('--no-cache', action='store_true',
                        help='Ignore cached descriptors and extract from images')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker thread budget')

    args = parser.parse_args()

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else {}
    data_config = config.get('data', {}) or {}

    positive_dir = args.positive or data_config.get('positive_dir')
    negative_dir = args.negative or data_config.get('negative_dir')
    model_dir = args.model or data_config.get('model_dir', 'models')
    features_dir = args.features or data_config.get('features_dir')
    features_dir = Path(features_dir) if features_dir is not None else None
    use_cache = not args.no_cache

    for name, split, directory in (('Positive', 'positive', positive_dir),
                                   ('Negative', 'negative', negative_dir)):
        if use_cache and features_dir is not None and check_cache_exists(features_dir, split):
            continue
        if directory is None or not Path(directory).exists():
            print(f"Error: {name} image directory not found: {directory}")
            sys.exit(1)

    try:
        train_model(config, Path(positive_dir or '.'), Path(negative_dir or '.'), Path(model_dir),
                    workers=args.workers, features_dir=features_dir, use_cache=use_cache)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
