"""Grayscale and tone-curve enhancement for ID card scans.

Phone photos of ID cards come in large and colourful; Tesseract reads
them best as a bounded-size grayscale image with a slightly lifted
midtone curve and separated dark/light levels.
"""

import cv2
import numpy as np

from workspace_tools.utils.logger import get_logger

logger = get_logger(__name__)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert an RGB or RGBA image to grayscale.

    Uses the ITU-R 601 luma weights (0.299, 0.587, 0.114).

    Args:
        image: Input image (RGB, RGBA or already grayscale).

    Returns:
        Single-channel ``uint8`` image.
    """
    if image.ndim == 2:
        return image
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)


def resize_to_max(image: np.ndarray, max_size: int = 2048) -> np.ndarray:
    """Downscale an image so neither side exceeds ``max_size``.

    Args:
        image: Input image.
        max_size: Largest allowed width or height in pixels.

    Returns:
        The original image if it already fits, else a resized copy
        with the aspect ratio preserved.
    """
    height, width = image.shape[:2]
    if width <= max_size and height <= max_size:
        return image

    scale = min(max_size / width, max_size / height)
    new_size = (int(width * scale), int(height * scale))
    logger.debug("Resizing %dx%d image to %dx%d", width, height, *new_size)
    return cv2.resize(image, new_size, interpolation=cv2.INTER_AREA)


def build_tone_lut(gamma: float = 0.8, noise_push: int = 10) -> np.ndarray:
    """Build the 256-entry lookup table applied to grayscale pixels.

    Each level is raised to ``gamma`` on the 0-1 scale, then pushed
    ``noise_push`` levels darker (below 128) or lighter (128 and above).

    Args:
        gamma: Exponent of the tone curve; values below 1 lift midtones.
        noise_push: Levels to move each pixel away from mid-gray.

    Returns:
        ``uint8`` array of shape ``(256,)``.
    """
    levels = np.arange(256, dtype=np.float64) / 255.0
    curved = np.clip(levels**gamma * 255.0, 0, 255)
    pushed = np.where(
        curved < 128,
        np.maximum(0.0, curved - noise_push),
        np.minimum(255.0, curved + noise_push),
    )
    return np.rint(pushed).astype(np.uint8)


def enhance(image: np.ndarray, gamma: float = 0.8, noise_push: int = 10) -> np.ndarray:
    """Convert to grayscale and apply the card tone curve.

    Args:
        image: Input image (RGB, RGBA or grayscale).
        gamma: Tone curve exponent.
        noise_push: Dark/light separation in gray levels.

    Returns:
        Enhanced single-channel image.
    """
    gray = to_grayscale(image)
    if gray.dtype != np.uint8:
        gray = np.clip(gray, 0, 255).astype(np.uint8)
    result = cv2.LUT(gray, build_tone_lut(gamma, noise_push))
    logger.debug("Applied tone curve (gamma=%.2f, push=%d)", gamma, noise_push)
    return result
