"""
Pixel filters of the in-memory host.

Images are float32 arrays in [0, 1] with shape (H, W, C) or (H, W). Threshold
values are expressed in 8-bit levels (0-255), matching the host filter dialogs.
"""

from typing import Callable, Dict
import logging

import cv2
import numpy as np
from scipy.ndimage import median_filter

logger = logging.getLogger(__name__)


def _channels(image: np.ndarray) -> np.ndarray:
    """View a (H, W) or (H, W, C) image as (H, W, C)."""
    if image.ndim == 2:
        return image[:, :, np.newaxis]
    if image.ndim != 3:
        raise ValueError(f"Expected an (H, W) or (H, W, C) image, got shape {image.shape}")
    return image


def dust_and_scratches(image: np.ndarray, radius: int = 1, threshold: int = 10) -> np.ndarray:
    """
    Replace pixels that differ from their local median by more than threshold.

    Args:
        image: Float image in [0, 1]
        radius: Median neighbourhood radius in pixels
        threshold: Minimum deviation (0-255 levels) before a pixel is replaced

    Returns:
        Filtered image with the shape of the input
    """
    size = 2 * int(radius) + 1
    planes = _channels(image)
    result = planes.copy()

    for channel in range(planes.shape[2]):
        median = median_filter(planes[:, :, channel], size=size)
        diff = np.abs(planes[:, :, channel] - median)
        replace = diff > (threshold / 255.0)
        result[:, :, channel][replace] = median[replace]

    return result.reshape(image.shape)


def unsharp_mask(image: np.ndarray, amount: float = 100.0, radius: float = 1.0,
                 threshold: int = 0) -> np.ndarray:
    """Apply unsharp masking."""
    planes = _channels(image)
    # OpenCV drops a single channel axis
    blurred = cv2.GaussianBlur(planes, (0, 0), radius).reshape(planes.shape)

    mask = planes - blurred

    if threshold > 0:
        mask_magnitude = np.sqrt(np.sum(mask ** 2, axis=2))
        threshold_mask = mask_magnitude > (threshold / 255.0)
        mask = mask * threshold_mask[:, :, np.newaxis]

    sharpened = planes + (amount / 100.0) * mask

    return np.clip(sharpened, 0, 1).astype(np.float32).reshape(image.shape)


FILTERS: Dict[str, Callable[..., np.ndarray]] = {
    'dustAndScratches': dust_and_scratches,
    'unsharpMask': unsharp_mask,
}
