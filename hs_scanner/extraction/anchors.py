"""Recognition of recurring field anchors on the declaration form.

An anchor is a line whose text identifies a known form field: the
numbered item-description box, the tariff heading label, or any later
numbered box that closes a region. Matching runs on normalized text and
tolerates the punctuation and neighbouring tokens OCR tends to attach.
"""

import re
from enum import Enum

from hs_scanner.ocr.geometry import Line
from hs_scanner.utils.config import AnchorConfig

_HORIZONTAL_SPACE = re.compile(r"[^\S\r\n]+")
_DIGIT_FOLD = str.maketrans("٠١٢٣٤٥٦٧٨٩۰۱۲۳۴۵۶۷۸۹", "01234567890123456789")


class AnchorKind(Enum):
    """Kinds of field anchors found on the form."""

    ITEM_NAME_FIELD = "item_name_field"
    TARIFF_CODE_LABEL = "tariff_code_label"
    NEXT_FIELD_HEADER = "next_field_header"
    DESIGNATION_LABEL = "designation_label"


def clean(text: str) -> str:
    """Collapse horizontal whitespace and strip non-breaking spaces.

    Case is preserved, so the result is suitable for display.
    """
    return _HORIZONTAL_SPACE.sub(" ", text.replace("\u00a0", " ")).strip()


def normalize(text: str) -> str:
    """Normalize text for pattern tests.

    Case-folds, folds Arabic-Indic digits to ASCII, and applies
    :func:`clean`. Idempotent: ``normalize(normalize(s)) == normalize(s)``.
    """
    return clean(text.casefold().translate(_DIGIT_FOLD))


class AnchorMatcher:
    """Classifies lines as field anchors using configurable patterns.

    Args:
        config: Anchor patterns for the form layout in use.
    """

    def __init__(self, config: AnchorConfig | None = None) -> None:
        self.config = config or AnchorConfig()
        separators = re.escape(self.config.field_separators)
        self._field_index = re.compile(rf"^(\d{{1,3}})(?=\s|$|[{separators}])")
        self._label_terms = [normalize(t) for t in self.config.tariff_label_terms]
        self._label_variants = [normalize(t) for t in self.config.tariff_label_variants]
        self._designations = [normalize(t) for t in self.config.designation_labels]

    def field_index(self, text: str) -> int | None:
        """Return the leading field number of a line, if it has one."""
        match = self._field_index.match(normalize(text))
        return int(match.group(1)) if match else None

    def is_anchor(self, line: Line, kind: AnchorKind) -> bool:
        """Check whether a line is an anchor of the given kind.

        Args:
            line: Line to classify.
            kind: Anchor kind to test for.

        Returns:
            True if the line's normalized text matches the anchor pattern.
        """
        return self.matches(line.text, kind)

    def matches(self, text: str, kind: AnchorKind) -> bool:
        """Text-only form of :meth:`is_anchor`."""
        if kind is AnchorKind.ITEM_NAME_FIELD:
            return self.field_index(text) == self.config.item_name_field
        if kind is AnchorKind.NEXT_FIELD_HEADER:
            index = self.field_index(text)
            return (
                index is not None
                and self.config.item_name_field < index <= self.config.max_field_index
            )

        normalized = normalize(text)
        if kind is AnchorKind.TARIFF_CODE_LABEL:
            return any(t in normalized for t in self._label_terms) and any(
                v in normalized for v in self._label_variants
            )
        if kind is AnchorKind.DESIGNATION_LABEL:
            return any(d in normalized for d in self._designations)
        raise ValueError(f"Unsupported anchor kind: {kind}")

    def designation_end(self, text: str) -> int | None:
        """Return the offset just past the designation label in cleaned text."""
        cleaned = clean(text)
        for label in self._designations:
            match = re.search(re.escape(label), cleaned, re.IGNORECASE)
            if match:
                return match.end()
        return None
