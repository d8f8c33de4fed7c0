"""Geometry-driven extraction of line-items from a declaration page.

The form repeats one section per declared item. Each section starts with
the numbered item-description box, so every such anchor opens a vertical
segment that runs down to the next anchor. Inside a segment the item
name is the last plausible description line below the anchor, and the
tariff code is the digit run printed under the tariff heading label.
"""

from hs_scanner.ocr.geometry import Box, Line, Page
from hs_scanner.utils.config import ExtractionConfig
from hs_scanner.utils.logger import get_logger

from .anchors import AnchorKind, AnchorMatcher, clean
from .models import NO_CODE, NO_NAME, ParsedItem, dedupe_items
from .text_rules import NameFilter, search_tariff_code

logger = get_logger(__name__)


class FieldExtractor:
    """Extracts zero or more items from a page using anchor geometry.

    Args:
        config: Extraction configuration (anchors, margins, name rules).
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.margins = self.config.segments
        self.matcher = AnchorMatcher(self.config.anchors)
        self.name_filter = NameFilter(self.config.names)

    def extract_items(self, page: Page) -> list[ParsedItem]:
        """Extract items from a recognized page.

        Args:
            page: Recognized page. Lines without boxes are ignored for
                region search.

        Returns:
            Items in top-to-bottom order, without fully-empty items and
            without repeated ``(hs_code, item_name)`` pairs.
        """
        lines = page.boxed_lines
        anchors = [
            line
            for line in lines
            if self.matcher.is_anchor(line, AnchorKind.ITEM_NAME_FIELD)
        ]

        if not anchors:
            item = self._extract_whole_page(page, lines)
            logger.debug("No item anchors found, whole-page item: %s", item)
            return [item] if item.has_signal else []

        items: list[ParsedItem] = []
        for i, anchor in enumerate(anchors):
            next_anchor = anchors[i + 1] if i + 1 < len(anchors) else None
            next_box = next_anchor.box if next_anchor else None
            segment = self.segment_for(anchor.box, next_box)
            item = ParsedItem(
                hs_code=self._code_in_region(lines, segment) or NO_CODE,
                item_name=self._name_below(lines, anchor.box, segment) or NO_NAME,
            )
            if item.has_signal:
                items.append(item)

        unique = dedupe_items(items)
        logger.debug(
            "Extracted %d items from %d segments", len(unique), len(anchors)
        )
        return unique

    def segment_for(self, anchor: Box, next_anchor: Box | None) -> Box:
        """Compute the page region belonging to one item anchor.

        Args:
            anchor: Box of the item-description anchor.
            next_anchor: Box of the following anchor, if any.

        Returns:
            Segment box, never shorter than the minimum segment height.
        """
        m = self.margins
        top = max(0, anchor.top - m.top_margin)
        if next_anchor is not None:
            bottom = max(
                next_anchor.top - m.next_anchor_margin,
                anchor.bottom + m.min_segment_height,
            )
        else:
            bottom = anchor.bottom + m.trailing_window
        return Box(
            max(0, anchor.left - m.left_margin),
            top,
            anchor.right + m.right_margin,
            max(top, bottom),
        )

    def _name_below(self, lines: list[Line], anchor: Box, segment: Box) -> str | None:
        """Return the last meaningful line below the anchor inside the segment."""
        m = self.margins
        top = anchor.bottom + m.name_top_gap
        bottom = segment.bottom
        if m.name_stops_at_next_field:
            stopper = next(
                (
                    line
                    for line in lines
                    if top <= line.box.top < bottom
                    and self.matcher.is_anchor(line, AnchorKind.NEXT_FIELD_HEADER)
                ),
                None,
            )
            if stopper is not None:
                bottom = stopper.box.top
        if top >= bottom:
            return None

        left = max(0, anchor.left - m.name_left_margin)
        region = Box(left, top, segment.right, bottom)
        candidates = [
            line
            for line in lines
            if line.box.intersects(region)
            and region.top <= line.box.top <= region.bottom
            and not self.matcher.is_anchor(line, AnchorKind.NEXT_FIELD_HEADER)
            and self.name_filter.is_meaningful(line.text)
        ]
        return clean(candidates[-1].text) if candidates else None

    def _code_in_region(self, lines: list[Line], region: Box | None) -> str | None:
        """Find a tariff code, preferring the window under a tariff label.

        Args:
            lines: Boxed lines in reading order.
            region: Region to search, or ``None`` for the whole page.

        Returns:
            Tariff code, or ``None`` if no digit run qualifies.
        """
        inside = [
            line for line in lines if region is None or line.box.intersects(region)
        ]
        label = next(
            (
                line
                for line in inside
                if self.matcher.is_anchor(line, AnchorKind.TARIFF_CODE_LABEL)
            ),
            None,
        )
        if label is not None:
            window = self._code_window(label.box, region)
            code = search_tariff_code(
                line.text for line in inside if line.box.intersects(window)
            )
            if code:
                return code
        return search_tariff_code(line.text for line in inside)

    def _code_window(self, label: Box, region: Box | None) -> Box:
        """Vertical window below a tariff label, clipped to the region."""
        m = self.margins
        top = label.bottom + m.code_top_gap
        bottom = label.bottom + m.code_window_height
        if region is None:
            return Box(0, top, label.right + m.right_margin, bottom)
        top = min(top, region.bottom)
        bottom = max(top, min(bottom, region.bottom))
        return Box(region.left, top, region.right, bottom)

    def _extract_whole_page(self, page: Page, lines: list[Line]) -> ParsedItem:
        """Treat the whole page as a single segment."""
        code = self._code_in_region(lines, None)
        if code is None:
            code = search_tariff_code([page.raw_text or ""])
        names = [
            clean(line.text)
            for line in page.iter_lines()
            if self.name_filter.is_meaningful(line.text)
        ]
        return ParsedItem(
            hs_code=code or NO_CODE,
            item_name=max(names, key=len) if names else NO_NAME,
        )
