"""Monotonic accumulation of extracted fields across snapshots.

Merges per-snapshot extraction results into one session record.
Detected values are never cleared by a later, worse frame; only
``reset`` empties the record.
"""

from dataclasses import dataclass, field

from src.utils.logger import get_logger

from .fields import FIELD_COUNT, CedulaField

logger = get_logger(__name__)


def completeness_score(detected: int) -> float:
    """Percentage of the record's fields detected, capped at 100.

    The result is not rounded: 4 of 9 fields gives ``44.44...``.

    Args:
        detected: Number of fields currently holding a value.

    Returns:
        Score in the range [0, 100].
    """
    return min(100.0, 100.0 * detected / FIELD_COUNT)


@dataclass
class AccumulatorState:
    """Snapshot of the accumulated record handed out to callers."""

    record: dict[CedulaField, str]
    score: float
    changed: list[CedulaField] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields

    @property
    def missing_fields(self) -> list[CedulaField]:
        return [f for f in CedulaField if f not in self.record]


class RecordAccumulator:
    """Owns the evolving cédula record and its completeness score."""

    def __init__(self) -> None:
        self._record: dict[CedulaField, str] = {}
        self._score = 0.0

    @property
    def record(self) -> dict[CedulaField, str]:
        return dict(self._record)

    @property
    def score(self) -> float:
        return self._score

    @property
    def state(self) -> AccumulatorState:
        return AccumulatorState(record=dict(self._record), score=self._score)

    def reset(self) -> None:
        """Clear the record and the score."""
        self._record.clear()
        self._score = 0.0

    def merge(self, extracted: dict[CedulaField, str]) -> AccumulatorState:
        """Merge the fields found in one snapshot into the record.

        Empty values are ignored so that a blurred or partial frame
        never erases an earlier detection. A non-empty value replaces
        the stored one only when it differs. Keys that are not
        record fields are skipped.

        Args:
            extracted: Output of ``FieldExtractor.extract`` for one snapshot.

        Returns:
            The updated state, with ``changed`` listing the fields this
            merge set or replaced.
        """
        was_complete = len(self._record) >= FIELD_COUNT
        changed: list[CedulaField] = []

        for key, value in extracted.items():
            try:
                name = CedulaField(key)
            except ValueError:
                logger.debug("Ignoring unknown field %r", key)
                continue
            if not value or self._record.get(name) == value:
                continue
            logger.debug("Field %s: %r -> %r", name, self._record.get(name), value)
            self._record[name] = value
            changed.append(name)

        self._score = completeness_score(len(self._record))

        if not was_complete and len(self._record) >= FIELD_COUNT:
            logger.info("All %d fields detected", FIELD_COUNT)

        return AccumulatorState(
            record=dict(self._record), score=self._score, changed=changed
        )
