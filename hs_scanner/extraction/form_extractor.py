"""Per-frame extraction entry point.

Chooses between the geometric field extractor and the text-only fallback
parser and packages the outcome as an :class:`ExtractionResult`.
"""

from hs_scanner.ocr.geometry import Page
from hs_scanner.utils.config import ExtractionConfig
from hs_scanner.utils.logger import get_logger

from .fallback_parser import FallbackParser
from .field_extractor import FieldExtractor
from .models import ExtractionResult, ParsedItem

logger = get_logger(__name__)


class FormExtractor:
    """Runs geometric extraction with a text-only fallback.

    Args:
        config: Extraction configuration shared by both strategies.
    """

    def __init__(self, config: ExtractionConfig | None = None) -> None:
        self.config = config or ExtractionConfig()
        self.field_extractor = FieldExtractor(self.config)
        self.fallback_parser = FallbackParser(self.config)

    def extract(self, page: Page) -> ExtractionResult:
        """Extract items from one recognized page.

        Args:
            page: Recognized page, with or without geometry.

        Returns:
            Extraction result for the frame. Never raises on empty input.
        """
        raw_text = page.raw_text or ""
        items: list[ParsedItem] = []
        source = "none"

        if page.has_geometry:
            items = self.field_extractor.extract_items(page)
            source = "geometry"
        if not items and raw_text.strip():
            fallback = self.fallback_parser.parse(raw_text)
            items = [fallback] if fallback.has_signal else []
            source = "text"

        logger.debug("Extracted %d items via %s", len(items), source)
        return ExtractionResult(raw_text=raw_text, items=items)
