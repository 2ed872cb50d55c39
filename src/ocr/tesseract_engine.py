"""Tesseract OCR engine wrapper for ID card frames.

Turns one captured frame into raw multi-line text using the Spanish
language pack by default.
"""

import shutil

import cv2
import numpy as np
import pytesseract
from PIL import Image

from src.utils.logger import get_logger

logger = get_logger(__name__)


class RecognitionError(Exception):
    """Raised when Tesseract fails to process a frame."""


class TesseractEngine:
    """Wrapper around Tesseract OCR for frame text recognition.

    Args:
        tesseract_cmd: Path to the Tesseract executable.
            If ``None``, uses the system default.
        lang: OCR language code.
        psm: Tesseract page segmentation mode.
    """

    def __init__(
        self,
        tesseract_cmd: str | None = None,
        lang: str = "spa",
        psm: int = 6,
    ) -> None:
        if tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = tesseract_cmd
        self.lang = lang
        self.psm = psm

    @staticmethod
    def is_available() -> bool:
        """Return whether the Tesseract executable can be found."""
        return shutil.which(pytesseract.pytesseract.tesseract_cmd) is not None

    def recognize(self, image: np.ndarray) -> str:
        """Recognize the text in one frame.

        Args:
            image: Frame as a numpy array, grayscale or BGR as captured.

        Returns:
            Raw recognizer text, possibly empty.

        Raises:
            RecognitionError: If Tesseract fails on the frame.
        """
        if image.ndim == 3:
            image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        pil_image = Image.fromarray(image)
        try:
            text = pytesseract.image_to_string(
                pil_image, lang=self.lang, config=f"--psm {self.psm}"
            )
        except pytesseract.TesseractError as exc:
            raise RecognitionError(str(exc)) from exc

        logger.debug("Recognized %d characters", len(text))
        return text
