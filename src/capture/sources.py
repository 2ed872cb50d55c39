"""Frame sources for the scan driver.

A frame source hands out one BGR frame per ``read`` call and ``None``
once it has nothing more to give. Live cameras and video files go
through OpenCV's ``VideoCapture``; recorded frames can be replayed from
a folder of images.
"""

from pathlib import Path

import cv2
import numpy as np

from src.utils.logger import get_logger

logger = get_logger(__name__)

_IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tif", ".tiff")


class CaptureError(Exception):
    """Raised when a capture device or source cannot be opened."""


class CameraSource:
    """Frames from a camera device or a video file.

    Args:
        source: Device index (``0`` for the default camera) or path to a
            video file.
        width: Requested frame width in pixels.
        height: Requested frame height in pixels.
    """

    def __init__(self, source: int | str = 0, width: int = 640, height: int = 480) -> None:
        self.source = int(source) if str(source).isdigit() else source
        self.width = width
        self.height = height
        self._capture: cv2.VideoCapture | None = None

    def open(self) -> None:
        """Open the underlying device.

        Raises:
            CaptureError: If the device is unavailable or access is denied.
        """
        if self._capture is not None:
            return
        capture = cv2.VideoCapture(self.source)
        if not capture.isOpened():
            capture.release()
            raise CaptureError(f"Cannot open capture source: {self.source}")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture
        logger.info("Opened capture source %s", self.source)

    def read(self) -> np.ndarray | None:
        """Grab the next frame, or ``None`` if none is available."""
        if self._capture is None:
            self.open()
        ok, frame = self._capture.read()
        if not ok or frame is None:
            return None
        return frame

    def close(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info("Released capture source %s", self.source)

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ImageFolderSource:
    """Replays frame images stored in a directory, in file name order.

    Args:
        directory: Folder holding the frame images.

    Raises:
        CaptureError: If ``directory`` is not a directory.
    """

    def __init__(self, directory: Path) -> None:
        if not directory.is_dir():
            raise CaptureError(f"Not a directory: {directory}")
        self.directory = directory
        self.paths = sorted(
            p for p in directory.iterdir() if p.suffix.lower() in _IMAGE_EXTENSIONS
        )
        self._index = 0
        logger.info("Found %d frame images in %s", len(self.paths), directory)

    def read(self) -> np.ndarray | None:
        """Load the next readable image, or ``None`` when exhausted."""
        while self._index < len(self.paths):
            path = self.paths[self._index]
            self._index += 1
            frame = cv2.imread(str(path))
            if frame is not None:
                return frame
            logger.warning("Skipping unreadable frame image %s", path.name)
        return None

    def close(self) -> None:
        self._index = len(self.paths)

    def __enter__(self) -> "ImageFolderSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
