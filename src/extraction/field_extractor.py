"""Line classification of OCR snapshots into cédula fields.

Each line of a snapshot is assigned to at most one field: labeled
fields are matched by their printed label, ``sex`` by its enumerated
values, and ``fullName`` by shape (an all-uppercase line).
"""

from collections.abc import Iterable

from src.utils.logger import get_logger

from .fields import LABELED_FIELDS, SEX_VALUES, CedulaField

logger = get_logger(__name__)

Snapshot = str | Iterable[str]


def split_snapshot(text: str) -> list[str]:
    """Split raw recognizer output into lines.

    Args:
        text: Multi-line OCR text, possibly empty.

    Returns:
        Lines in recognizer order, without line terminators.
    """
    return text.splitlines()


def _labeled_value(line: str, label: str) -> str | None:
    """Return the trimmed text after the first colon following ``label``.

    Args:
        line: Untrimmed OCR line.
        label: Printed field label to look for anywhere in the line.

    Returns:
        The value (possibly empty), or ``None`` if the line does not
        carry the label followed by a colon.
    """
    start = line.find(label)
    if start < 0:
        return None
    colon = line.find(":", start + len(label))
    if colon < 0:
        return None
    return line[colon + 1 :].strip()


def _is_sex_value(text: str) -> bool:
    return text.upper() in SEX_VALUES


def _is_uppercase_name(text: str) -> bool:
    """Check whether a trimmed line consists only of capitals and spaces.

    Any all-caps line qualifies, including place names printed in
    capitals, so this can misclassify lines as the holder's name.
    """
    return bool(text) and all(
        ch.isspace() or (ch.isalpha() and ch.isupper()) for ch in text
    )


class FieldExtractor:
    """Stateless extractor mapping one OCR snapshot to detected fields.

    Extraction never fails: lines that match nothing are ignored.
    """

    def classify_line(self, line: str) -> tuple[CedulaField, str] | None:
        """Classify a single OCR line.

        Args:
            line: One line of recognizer output, untrimmed.

        Returns:
            ``(field, value)`` for the first matching rule, or ``None``.
        """
        for field, label in LABELED_FIELDS:
            value = _labeled_value(line, label)
            if value is not None:
                return field, value

        text = line.strip()
        if _is_sex_value(text):
            return CedulaField.SEX, text
        if _is_uppercase_name(text):
            return CedulaField.FULL_NAME, text
        return None

    def extract(self, snapshot: Snapshot) -> dict[CedulaField, str]:
        """Extract the fields present in one snapshot.

        When a field matches on several lines, the last line wins.

        Args:
            snapshot: Raw recognizer text or a sequence of its lines.

        Returns:
            Mapping of detected fields to their values. Values may be
            empty strings when a label was read without a value.
        """
        lines = split_snapshot(snapshot) if isinstance(snapshot, str) else snapshot

        found: dict[CedulaField, str] = {}
        for line in lines:
            match = self.classify_line(line)
            if match is not None:
                field, value = match
                found[field] = value

        logger.debug("Snapshot classified into %d fields", len(found))
        return found
