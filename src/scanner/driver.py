"""Cooperative capture/recognize/merge loop.

The driver owns the cadence of a scan: it reads one frame, waits for
the recognizer to finish with it, feeds the text to the scan session
and only then moves on to the next frame. Recognizer failures never
reach the session; the frame is simply dropped.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

from src.extraction.accumulator import AccumulatorState
from src.extraction.session import ScanSession
from src.preprocessing.frame import FramePreprocessor
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ScanSummary:
    """Frame counters for one driver run."""

    frames_read: int = 0
    frames_recognized: int = 0
    frames_skipped: int = 0
    frames_failed: int = 0


class ScanDriver:
    """Runs a scan session over frames from a capture source.

    Args:
        source: Object with a ``read()`` method returning a frame or ``None``.
        recognizer: Object with a ``recognize(image) -> str`` method.
        session: Scan session receiving the recognized snapshots.
        preprocessor: Optional frame preparation applied before OCR.
        interval_s: Pause between iterations, in seconds.
        stop_on_complete: End the run once every field is detected.
        max_frames: Upper bound on frames read, ``None`` for unbounded.
        on_update: Called with the accumulated state after every merge.
    """

    def __init__(
        self,
        source,
        recognizer,
        session: ScanSession,
        preprocessor: FramePreprocessor | None = None,
        interval_s: float = 0.5,
        stop_on_complete: bool = True,
        max_frames: int | None = None,
        on_update: Callable[[AccumulatorState], None] | None = None,
    ) -> None:
        self.source = source
        self.recognizer = recognizer
        self.session = session
        self.preprocessor = preprocessor
        self.interval_s = interval_s
        self.stop_on_complete = stop_on_complete
        self.max_frames = max_frames
        self.on_update = on_update
        self.summary = ScanSummary()
        self.last_state = session.state
        self._stop_event = threading.Event()

    def request_stop(self) -> None:
        """Ask the loop to finish after the current frame.

        A request made before ``run`` starts ends that run before its
        first frame.
        """
        self._stop_event.set()

    def _recognize(self, frame: np.ndarray) -> str | None:
        """Prepare and recognize one frame.

        Returns:
            Recognized text, or ``None`` if the frame was skipped or failed.
        """
        try:
            image = frame
            if self.preprocessor is not None:
                image, sharpness = self.preprocessor.process(frame)
                if not self.preprocessor.is_sharp_enough(sharpness):
                    logger.debug("Skipping blurry frame (sharpness %.1f)", sharpness)
                    self.summary.frames_skipped += 1
                    return None
            text = self.recognizer.recognize(image)
        except Exception as exc:
            logger.warning("Recognition failed, dropping frame: %s", exc)
            self.summary.frames_failed += 1
            return None

        self.summary.frames_recognized += 1
        return text

    def run(self) -> AccumulatorState:
        """Scan until the source runs dry, the record completes or a stop is requested.

        The session is stopped (and its record discarded) on the way
        out, so the final state is returned to the caller.

        Returns:
            The accumulated state at the end of the run.
        """
        self.summary = ScanSummary()
        self.session.start()
        self.last_state = self.session.state

        try:
            while not self._stop_event.is_set():
                frame = self.source.read()
                if frame is None:
                    logger.info("Frame source exhausted")
                    break
                self.summary.frames_read += 1

                text = self._recognize(frame)
                if text is not None:
                    final = self.session.frame_observed(text)
                    self.last_state = final
                    if final.changed:
                        logger.info(
                            "Detected %s (%.1f%%)",
                            ", ".join(final.changed),
                            final.score,
                        )
                    if self.on_update is not None:
                        self.on_update(final)
                    if final.is_complete and self.stop_on_complete:
                        break

                if self.max_frames and self.summary.frames_read >= self.max_frames:
                    logger.info("Reached frame limit of %d", self.max_frames)
                    break

                if self.interval_s > 0:
                    self._stop_event.wait(self.interval_s)
        finally:
            self.session.stop()
            self._stop_event.clear()

        logger.info(
            "Scan finished: %d frames read, %d recognized, %d skipped, %d failed",
            self.summary.frames_read,
            self.summary.frames_recognized,
            self.summary.frames_skipped,
            self.summary.frames_failed,
        )
        return self.last_state
