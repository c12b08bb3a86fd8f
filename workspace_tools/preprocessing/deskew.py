"""Rotation correction for photographed ID cards.

Estimates the tilt of the card from the near-horizontal edges and
text baselines found by a probabilistic Hough transform.
"""

import cv2
import numpy as np

from workspace_tools.utils.logger import get_logger

from .enhance import to_grayscale

logger = get_logger(__name__)


def detect_skew_angle(image: np.ndarray, max_angle: float = 15.0) -> float:
    """Detect the tilt of a card image in degrees.

    Lines steeper than ``max_angle`` are ignored so that the vertical
    card edges and photo borders do not dominate the estimate.

    Args:
        image: Input image as a numpy array (RGB or grayscale).
        max_angle: Largest tilt considered plausible for a card photo.

    Returns:
        Median angle of the near-horizontal lines, or 0.0 when none.
    """
    gray = to_grayscale(image)
    edges = cv2.Canny(gray, 50, 150, apertureSize=3)
    min_length = max(50, gray.shape[1] // 4)
    lines = cv2.HoughLinesP(
        edges, 1, np.pi / 180, 100, minLineLength=min_length, maxLineGap=10
    )

    if lines is None:
        logger.debug("No lines detected for skew estimation")
        return 0.0

    angles = [
        np.arctan2(y2 - y1, x2 - x1) * 180 / np.pi for x1, y1, x2, y2 in lines[:, 0]
    ]
    angles = [a for a in angles if abs(a) <= max_angle]
    if not angles:
        return 0.0

    median_angle = float(np.median(angles))
    logger.debug("Detected skew angle: %.2f degrees", median_angle)
    return median_angle


def deskew(
    image: np.ndarray, angle_threshold: float = 0.5, max_angle: float = 15.0
) -> np.ndarray:
    """Rotate a card image so its text lines run horizontally.

    Args:
        image: Input image as a numpy array (RGB or grayscale).
        angle_threshold: Minimum tilt (degrees) worth correcting.
        max_angle: Largest tilt considered plausible.

    Returns:
        Rotated image with the same shape and dtype as input.
    """
    angle = detect_skew_angle(image, max_angle)

    if abs(angle) < angle_threshold:
        return image

    h, w = image.shape[:2]
    rotation_matrix = cv2.getRotationMatrix2D((w // 2, h // 2), angle, 1.0)
    result = cv2.warpAffine(
        image,
        rotation_matrix,
        (w, h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )
    logger.info("Applied deskew correction: %.2f degrees", angle)
    return result
