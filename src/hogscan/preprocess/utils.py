"""
Utility functions for loading configuration and decoded images.
"""
from pathlib import Path
from typing import Generator, List, Optional, Tuple
import numpy as np
import cv2
import yaml
from PIL import Image

from hogscan.feature_extraction.pixel_buffer import PixelBuffer


IMAGE_EXTENSIONS = ['.jpg', '.jpeg', '.png', '.gif', '.bmp', '.ppm', '.pgm', '.tif', '.tiff']


def load_config(config_path: Path) -> dict:
    """Load configuration from YAML file."""
    with open(config_path, 'r') as f:
        return yaml.safe_load(f) or {}


def decode_image(image_path: Path) -> Optional[np.ndarray]:
    """
    Decode an image file into an 8-bit array.

    Args:
        image_path: Path to image file

    Returns:
        uint8 array (BGR or BGRA channel order) or None if decoding fails
    """
    if not image_path.exists():
        return None

    img = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
    if img is None:
        # Try with PIL as fallback
        try:
            pil_img = Image.open(image_path)
            if pil_img.mode in ('RGBA', 'LA', 'P'):
                img = cv2.cvtColor(np.array(pil_img.convert('RGBA')), cv2.COLOR_RGBA2BGRA)
            else:
                img = cv2.cvtColor(np.array(pil_img.convert('RGB')), cv2.COLOR_RGB2BGR)
        except Exception as e:
            print(f"Warning: Failed to load {image_path}: {e}")
            return None

    if img.dtype == np.uint16:
        img = (img // 257).astype(np.uint8)
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 1:
        img = cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGR)
    elif img.shape[2] == 2:
        img = cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2BGR)

    return img


def load_image(image_path: Path) -> Optional[PixelBuffer]:
    """
    Load an image as a normalized pixel buffer.

    Args:
        image_path: Path to image file

    Returns:
        PixelBuffer with 3 or 4 channels in [0, 1], or None if loading fails
    """
    img = decode_image(Path(image_path))
    if img is None:
        return None
    return PixelBuffer.from_uint8(img)


def image_generator(image_paths: List[Path]) -> Generator[Tuple[PixelBuffer, Path], None, None]:
    """
    Generator that yields images one at a time for memory efficiency.

    Args:
        image_paths: List of image file paths

    Yields:
        Tuple of (buffer, image_path)
    """
    for img_path in image_paths:
        buffer = load_image(img_path)
        if buffer is not None:
            yield buffer, img_path


def collect_image_paths(data_dir: Path) -> List[Path]:
    """
    Collect all image files below a directory, sorted for reproducibility.

    Args:
        data_dir: Directory to search recursively

    Returns:
        List of image paths (empty if the directory does not exist)
    """
    data_dir = Path(data_dir)
    if not data_dir.exists():
        return []

    return sorted(
        p for p in data_dir.rglob("*")
        if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS
    )


def ensure_dir(path: Path):
    """Ensure directory exists."""
    path.mkdir(parents=True, exist_ok=True)
