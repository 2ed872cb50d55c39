"""Per-frame image preparation before OCR.

Video frames of a hand-held card are small, unevenly lit and often
blurred by motion. Each frame is converted to grayscale, optionally
denoised, contrast-enhanced and binarized, and its sharpness is measured
so blurry frames can be skipped before the (slow) recognizer runs.
"""

import cv2
import numpy as np

from src.utils.config import PreprocessingConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

_DENOISE_METHODS = ("bilateral", "gaussian")
_BINARIZE_METHODS = ("otsu", "adaptive")


def to_gray(frame: np.ndarray) -> np.ndarray:
    """Convert a BGR frame to grayscale; grayscale input is returned as-is."""
    if frame.ndim == 3:
        return cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
    return frame


def measure_sharpness(frame: np.ndarray) -> float:
    """Variance of the Laplacian; low values mean a blurry frame."""
    return float(cv2.Laplacian(to_gray(frame), cv2.CV_64F).var())


def denoise(gray: np.ndarray, method: str = "bilateral") -> np.ndarray:
    """Reduce sensor noise while keeping character edges.

    Args:
        gray: Grayscale frame.
        method: ``"bilateral"`` or ``"gaussian"``.

    Returns:
        Filtered frame.

    Raises:
        ValueError: If the method is not supported.
    """
    if method == "bilateral":
        return cv2.bilateralFilter(gray, 9, 75, 75)
    if method == "gaussian":
        return cv2.GaussianBlur(gray, (5, 5), 0)
    raise ValueError(f"Unsupported denoise method: {method}")


def enhance_contrast(
    gray: np.ndarray, clip_limit: float = 2.0, tile_size: int = 8
) -> np.ndarray:
    """Equalize uneven lighting across the card with CLAHE."""
    clahe = cv2.createCLAHE(clipLimit=clip_limit, tileGridSize=(tile_size, tile_size))
    return clahe.apply(gray)


def binarize(gray: np.ndarray, method: str = "otsu") -> np.ndarray:
    """Threshold a grayscale frame to black text on white.

    Args:
        gray: Grayscale frame.
        method: ``"otsu"`` or ``"adaptive"``.

    Returns:
        Binary frame with pixel values 0 or 255.

    Raises:
        ValueError: If the method is not supported.
    """
    if method == "otsu":
        _, binary = cv2.threshold(gray, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary
    if method == "adaptive":
        return cv2.adaptiveThreshold(
            gray, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C, cv2.THRESH_BINARY, 11, 2
        )
    raise ValueError(f"Unsupported binarize method: {method}")


class FramePreprocessor:
    """Configurable frame preparation for the recognizer.

    Args:
        config: Preprocessing configuration controlling which steps to apply.

    Raises:
        ValueError: If the configuration names an unknown method.
    """

    def __init__(self, config: PreprocessingConfig) -> None:
        if config.denoise_method not in _DENOISE_METHODS:
            raise ValueError(f"Unsupported denoise method: {config.denoise_method}")
        if config.binarize_method not in _BINARIZE_METHODS:
            raise ValueError(
                f"Unsupported binarize method: {config.binarize_method}"
            )
        self.config = config

    def is_sharp_enough(self, sharpness: float) -> bool:
        return sharpness >= self.config.min_sharpness

    def process(self, frame: np.ndarray) -> tuple[np.ndarray, float]:
        """Prepare one frame for OCR.

        Args:
            frame: Captured frame (BGR or grayscale).

        Returns:
            Tuple of (prepared_frame, sharpness of the raw frame).
        """
        gray = to_gray(frame)
        sharpness = measure_sharpness(gray)

        if not self.config.enabled:
            return frame, sharpness

        result = gray
        if self.config.denoise_enabled:
            result = denoise(result, self.config.denoise_method)
        if self.config.contrast_enabled:
            result = enhance_contrast(
                result,
                clip_limit=self.config.clahe_clip_limit,
                tile_size=self.config.clahe_tile_size,
            )
        if self.config.binarize_enabled:
            result = binarize(result, self.config.binarize_method)

        logger.debug("Frame prepared, sharpness %.1f", sharpness)
        return result, sharpness
