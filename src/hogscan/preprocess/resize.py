"""
Image resizing module.
Interpolated downscaling used to build the image pyramid.
"""
from typing import Tuple
import numpy as np
import cv2

from hogscan.feature_extraction.pixel_buffer import PixelBuffer


def resize_image(image: np.ndarray, target_size: Tuple[int, int],
                 method: str = "bilinear") -> np.ndarray:
    """
    Resize image to target size.

    Args:
        image: Input image as numpy array
        target_size: Target (width, height)
        method: Resize method (bilinear, nearest, cubic, area)

    Returns:
        Resized image
    """
    if method == "bilinear":
        interpolation = cv2.INTER_LINEAR
    elif method == "nearest":
        interpolation = cv2.INTER_NEAREST
    elif method == "cubic":
        interpolation = cv2.INTER_CUBIC
    elif method == "area":
        interpolation = cv2.INTER_AREA
    else:
        interpolation = cv2.INTER_LINEAR

    resized = cv2.resize(image, target_size, interpolation=interpolation)
    return resized


def downscale(buffer: PixelBuffer, scale_factor: float,
              method: str = "bilinear") -> PixelBuffer:
    """
    Shrink a buffer by 1/scale_factor in both dimensions.

    Args:
        buffer: Source buffer
        scale_factor: Divisor applied to width and height (> 1)
        method: Resize method

    Returns:
        New PixelBuffer of size (int(width / s), int(height / s))
    """
    width = int(buffer.width / scale_factor)
    height = int(buffer.height / scale_factor)
    resized = resize_image(buffer.data.copy(), (width, height), method)
    resized = np.clip(resized, 0.0, 1.0)
    return PixelBuffer(resized)
