"""Geometry-free extraction from raw OCR text.

Used when a page carries no bounding boxes, or when the geometric
extractor finds nothing. Produces at most one item.
"""

import re

from hs_scanner.utils.config import ExtractionConfig
from hs_scanner.utils.logger import get_logger

from .anchors import AnchorKind, AnchorMatcher, clean
from .models import NO_CODE, NO_NAME, ParsedItem
from .text_rules import NameFilter, find_tariff_codes, search_tariff_code

logger = get_logger(__name__)

_INLINE_SEPARATOR = re.compile(r"^\s*[:：\-–]\s*")
_MIN_DESIGNATION_LENGTH = 3


class FallbackParser:
    """Extracts a single item from plain text.

    Args:
        config: Extraction configuration (anchors and name rules).
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.matcher = AnchorMatcher(self.config.anchors)
        self.name_filter = NameFilter(self.config.names)

    def parse(self, raw_text: str) -> ParsedItem:
        """Parse a tariff code and an item name out of raw text.

        Args:
            raw_text: Full OCR text, lines separated by line breaks.

        Returns:
            Parsed item; unresolved fields carry the sentinel values.
        """
        lines = [line for line in (clean(t) for t in raw_text.splitlines()) if line]
        code = search_tariff_code([raw_text])

        name = self._after_designation(lines)
        if name is None and code is not None:
            name = self._near_code(lines, code)
        if name is None:
            name = next(
                (
                    line
                    for line in lines
                    if len(line) >= self.config.names.fallback_min_length
                    and self.name_filter.is_meaningful(line)
                ),
                None,
            )

        item = ParsedItem(hs_code=code or NO_CODE, item_name=name or NO_NAME)
        logger.debug("Fallback parse result: %s", item)
        return item

    def _after_designation(self, lines: list[str]) -> str | None:
        """Take the text after an item-designation label.

        Inline text following a separator wins; otherwise the next
        non-blank line is used.
        """
        for i, line in enumerate(lines):
            if not self.matcher.matches(line, AnchorKind.DESIGNATION_LABEL):
                continue
            end = self.matcher.designation_end(line)
            tail = line[end:] if end is not None else ""
            separator = _INLINE_SEPARATOR.match(tail)
            if separator:
                inline = tail[separator.end() :].strip()
                if len(inline) >= _MIN_DESIGNATION_LENGTH:
                    return inline
            if i + 1 < len(lines) and len(lines[i + 1]) >= _MIN_DESIGNATION_LENGTH:
                return lines[i + 1]
        return None

    def _near_code(self, lines: list[str], code: str) -> str | None:
        """Return the longest meaningful line in a window after the code."""
        index = next(
            (i for i, line in enumerate(lines) if code in find_tariff_codes(line)),
            None,
        )
        if index is None:
            return None
        window = lines[index + 1 : index + 1 + self.config.names.fallback_window_lines]
        candidates = [line for line in window if self.name_filter.is_meaningful(line)]
        return max(candidates, key=len) if candidates else None
