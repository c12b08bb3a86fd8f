"""Configurable image preprocessing pipeline for ID card OCR.

Orchestrates resizing, deskew and tone enhancement with quality
metrics tracking.
"""

from dataclasses import dataclass

import cv2
import numpy as np

from workspace_tools.utils.config import PreprocessingConfig
from workspace_tools.utils.logger import get_logger

from .deskew import deskew
from .enhance import enhance, resize_to_max, to_grayscale

logger = get_logger(__name__)


@dataclass
class QualityMetrics:
    """Before/after image quality measurements."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


def calculate_sharpness(image: np.ndarray) -> float:
    """Calculate image sharpness using Laplacian variance.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Sharpness score (higher means sharper).
    """
    return float(cv2.Laplacian(to_grayscale(image), cv2.CV_64F).var())


def calculate_contrast(image: np.ndarray) -> float:
    """Calculate image contrast as the standard deviation of pixel intensities.

    Args:
        image: Input image (RGB or grayscale).

    Returns:
        Contrast score (higher means more contrast).
    """
    return float(to_grayscale(image).std())


class PreprocessingPipeline:
    """Card image preprocessing pipeline.

    Args:
        config: Preprocessing configuration controlling which steps to apply.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        self.config = config

    def process(self, image: np.ndarray) -> tuple[np.ndarray, QualityMetrics]:
        """Run the preprocessing steps on an image.

        Args:
            image: Input card image (RGB, RGBA or grayscale).

        Returns:
            Tuple of (processed_image, quality_metrics).
        """
        metrics = QualityMetrics(
            sharpness_before=calculate_sharpness(image),
            contrast_before=calculate_contrast(image),
            sharpness_after=0.0,
            contrast_after=0.0,
        )

        result = resize_to_max(image, self.config.max_image_size)

        if self.config.deskew_enabled:
            result = deskew(
                result,
                angle_threshold=self.config.deskew_angle_threshold,
                max_angle=self.config.deskew_max_angle,
            )

        if self.config.enhance_enabled:
            result = enhance(
                result, gamma=self.config.gamma, noise_push=self.config.noise_push
            )

        metrics.sharpness_after = calculate_sharpness(result)
        metrics.contrast_after = calculate_contrast(result)

        logger.info(
            "Preprocessing complete: sharpness %.1f->%.1f, contrast %.1f->%.1f",
            metrics.sharpness_before,
            metrics.sharpness_after,
            metrics.contrast_before,
            metrics.contrast_after,
        )
        return result, metrics
