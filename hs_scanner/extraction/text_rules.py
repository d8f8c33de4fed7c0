"""Text-level rules shared by the geometric and text-only extractors.

Covers the tariff-code digit-run search with its length preference and
the predicate that decides whether a line reads like an item description
rather than OCR noise or a leaked field label.
"""

import re
from collections.abc import Iterable

from hs_scanner.utils.config import NameConfig

from .anchors import normalize

# Tariff headings are printed as 8-digit national codes or 10-digit
# extended codes; any longer or shorter run is something else.
_TARIFF_CODE = re.compile(r"(?<![0-9])([0-9]{10}|[0-9]{8})(?![0-9])")

PREFERRED_CODE_LENGTH = 8


def find_tariff_codes(text: str) -> list[str]:
    """Return all 8- or 10-digit runs in reading order."""
    return _TARIFF_CODE.findall(normalize(text))


def pick_tariff_code(candidates: Iterable[str]) -> str | None:
    """Choose a tariff code from candidates in reading order.

    The first 8-digit run wins; otherwise the first candidate.

    Args:
        candidates: Digit runs in reading order.

    Returns:
        The chosen code, or ``None`` when there are no candidates.
    """
    codes = list(candidates)
    for code in codes:
        if len(code) == PREFERRED_CODE_LENGTH:
            return code
    return codes[0] if codes else None


def search_tariff_code(texts: Iterable[str]) -> str | None:
    """Run :func:`pick_tariff_code` over every digit run in ``texts``."""
    return pick_tariff_code(code for text in texts for code in find_tariff_codes(text))


class NameFilter:
    """Decides whether a line is a plausible item description.

    Args:
        config: Length, script, digit and blacklist thresholds.
    """

    def __init__(self, config: NameConfig | None = None) -> None:
        self.config = config or NameConfig()
        self._low, self._high = self.config.letter_range
        self._blacklist = [normalize(term) for term in self.config.blacklist]

    def letter_count(self, text: str) -> int:
        return sum(1 for ch in text if self._low <= ch <= self._high)

    def is_meaningful(self, text: str) -> bool:
        """Apply the length, script, digit-ratio and blacklist checks."""
        t = normalize(text)
        if len(t) < self.config.min_length:
            return False
        if self.letter_count(t) < self.config.min_letters:
            return False
        digits = sum(1 for ch in t if ch.isdigit())
        if digits > len(t) * self.config.max_digit_ratio:
            return False
        return not any(term in t for term in self._blacklist)
