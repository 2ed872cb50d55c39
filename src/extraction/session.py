"""Scan session state machine.

A session is either idle or scanning. Starting or stopping a session
resets the accumulated record; frames observed while idle are ignored.
"""

from enum import StrEnum

from src.utils.logger import get_logger

from .accumulator import AccumulatorState, RecordAccumulator
from .field_extractor import FieldExtractor, Snapshot

logger = get_logger(__name__)


class ScanState(StrEnum):
    """Lifecycle states of a scan session."""

    IDLE = "idle"
    SCANNING = "scanning"


class ScanSession:
    """Runs snapshots through extraction and accumulation.

    Not safe for concurrent use: the caller must wait for one
    ``frame_observed`` to return before submitting the next.

    Args:
        extractor: Field extractor to use. A default one is created if omitted.
    """

    def __init__(self, extractor: FieldExtractor | None = None) -> None:
        self.extractor = extractor or FieldExtractor()
        self.accumulator = RecordAccumulator()
        self._scan_state = ScanState.IDLE
        self._frames_observed = 0

    @property
    def scan_state(self) -> ScanState:
        return self._scan_state

    @property
    def is_scanning(self) -> bool:
        return self._scan_state is ScanState.SCANNING

    @property
    def frames_observed(self) -> int:
        return self._frames_observed

    @property
    def state(self) -> AccumulatorState:
        return self.accumulator.state

    def start(self) -> None:
        """Begin a fresh session, discarding anything accumulated so far."""
        if self.is_scanning:
            logger.info("Restarting scan session")
        else:
            logger.info("Starting scan session")
        self.accumulator.reset()
        self._frames_observed = 0
        self._scan_state = ScanState.SCANNING

    def stop(self) -> None:
        """End the session and discard the record."""
        if not self.is_scanning:
            return
        logger.info(
            "Stopping scan session after %d frames at %.1f%%",
            self._frames_observed,
            self.accumulator.score,
        )
        self.accumulator.reset()
        self._frames_observed = 0
        self._scan_state = ScanState.IDLE

    def frame_observed(self, snapshot: Snapshot) -> AccumulatorState:
        """Extract fields from one snapshot and merge them.

        Args:
            snapshot: Recognizer text (or its lines) for one frame.

        Returns:
            The accumulated state after the merge. While idle the
            snapshot is ignored and the current empty state is returned.
        """
        if not self.is_scanning:
            logger.debug("Ignoring snapshot while idle")
            return self.accumulator.state

        self._frames_observed += 1
        return self.accumulator.merge(self.extractor.extract(snapshot))
