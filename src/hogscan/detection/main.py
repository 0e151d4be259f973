"""
Detection pipeline.
Scans an image pyramid with a trained window classifier and prints matches.
"""
import sys
import argparse
import time
from pathlib import Path
from typing import Dict, List, Optional

from hogscan.detection.scanner import Detection, PyramidScanner
from hogscan.errors import InvalidArgumentError
from hogscan.preprocess.utils import load_config, load_image
from hogscan.train.utils import load_model


def run_detection(
    config: Dict,
    image_path: Path,
    model_dir: Path,
    parallel: Optional[bool] = None,
    parallel_children: Optional[bool] = None
) -> List[Detection]:
    """
    Detect objects in one image.

    Args:
        config: Configuration dictionary (the 'scan' section sets defaults)
        image_path: Image to scan
        model_dir: Directory containing model.pkl
        parallel: Outer parallelism (None = config value)
        parallel_children: Inner parallelism (None = config value)

    Returns:
        List of detections
    """
    scan_config = config.get('scan', {}) or {}
    if parallel is None:
        parallel = bool(scan_config.get('parallel', False))
    if parallel_children is None:
        parallel_children = bool(scan_config.get('parallel_children', False))

    image = load_image(image_path)
    if image is None:
        raise FileNotFoundError(f"Could not read image: {image_path}")

    classifier = load_model(model_dir)
    scanner = PyramidScanner.from_config(config)

    print(f"Image: {image_path} ({image.width}x{image.height}, {image.channels} channels)")
    print(f"Step: {scanner.step_size}, scale factor: {scanner.scale_factor}, "
          f"parallel: {parallel}, parallel children: {parallel_children}")

    start_time = time.time()
    detections = scanner.scan(image, classifier,
                              parallel=parallel,
                              parallel_children=parallel_children,
                              verbose=True)
    elapsed_time = time.time() - start_time

    for detection in detections:
        x, y, w, h = detection.rectangle
        print(f"  level {detection.level_index}, window {detection.window_index}: "
              f"x={x} y={y} w={w} h={h}")
    print(f"✓ {len(detections)} detections in {elapsed_time:.2f}s")

    return detections


def main():
    """Main entry point for detection."""
    parser = argparse.ArgumentParser(description='Scan an image for objects with a trained HOG classifier')
    parser.add_argument('image', type=str, help='Image to scan')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to config.yaml')
    parser.add_argument('--model', type=str, default=None,
                        help='Model directory (default: data.model_dir)')
    parser.add_argument('--step', type=int, default=None,
                        help='Window stride in pixels')
    parser.add_argument('--scale', type=float, default=None,
                        help='Pyramid scale factor (> 1)')
    parser.add_argument('--parallel', action='store_true', default=None,
                        help='Compute window descriptors in parallel')
    parser.add_argument('--parallel-children', action='store_true', default=None,
                        help='Compute cell and block stages in parallel')
    parser.add_argument('--workers', type=int, default=None,
                        help='Worker thread budget')

    args = parser.parse_args()

    config_path = Path(args.config)
    config = load_config(config_path) if config_path.exists() else {}

    scan_config = dict(config.get('scan', {}) or {})
    if args.step is not None:
        scan_config['step_size'] = args.step
    if args.scale is not None:
        scan_config['scale_factor'] = args.scale
    if args.workers is not None:
        scan_config['workers'] = args.workers
    config = dict(config, scan=scan_config)

    model_dir = args.model or (config.get('data', {}) or {}).get('model_dir', 'models')

    try:
        run_detection(config, Path(args.image), Path(model_dir),
                      parallel=args.parallel,
                      parallel_children=args.parallel_children)
    except (FileNotFoundError, InvalidArgumentError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
