"""Data model shared by the extractors and the stream stabilizer."""

from dataclasses import dataclass, field

NO_CODE = "N/A"
NO_NAME = "Unknown"

_FINGERPRINT_SEPARATOR = "|"
_EMPTY_PROMPT = "Point the camera at the declaration...\nHS: ...\nItem: ..."


@dataclass(frozen=True)
class ParsedItem:
    """One declared line-item: a tariff code and an item description.

    Missing fields carry the sentinels ``"N/A"`` and ``"Unknown"``.
    """

    hs_code: str = NO_CODE
    item_name: str = NO_NAME

    @property
    def has_code(self) -> bool:
        return self.hs_code != NO_CODE

    @property
    def has_name(self) -> bool:
        return self.item_name != NO_NAME

    @property
    def has_signal(self) -> bool:
        """True if at least one field resolved."""
        return self.has_code or self.has_name

    @property
    def is_complete(self) -> bool:
        """True if both fields resolved."""
        return self.has_code and self.has_name


@dataclass
class ExtractionResult:
    """Items extracted from one processed frame."""

    raw_text: str
    items: list[ParsedItem] = field(default_factory=list)

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.items)

    @property
    def has_signal(self) -> bool:
        return any(item.has_signal for item in self.items)


def fingerprint(items: list[ParsedItem]) -> str:
    """Summarize items as ``code:name`` pairs in extraction order.

    Equal fingerprints mean equal results for stabilization purposes.
    """
    return _FINGERPRINT_SEPARATOR.join(
        f"{item.hs_code}:{item.item_name}" for item in items
    )


def dedupe_items(items: list[ParsedItem]) -> list[ParsedItem]:
    """Drop repeated ``(hs_code, item_name)`` pairs, keeping first-seen order."""
    seen: set[tuple[str, str]] = set()
    unique: list[ParsedItem] = []
    for item in items:
        key = (item.hs_code, item.item_name)
        if key in seen:
            continue
        seen.add(key)
        unique.append(item)
    return unique


def complete_items(items: list[ParsedItem]) -> list[ParsedItem]:
    """Keep only items where both the code and the name resolved."""
    return [item for item in items if item.is_complete]


def format_items(items: list[ParsedItem]) -> str:
    """Render items as numbered ``HS`` / ``Item`` lines for display."""
    if not items:
        return _EMPTY_PROMPT
    rows = []
    for idx, item in enumerate(items, 1):
        rows.append(f"{idx}) HS: {item.hs_code}\n   Item: {item.item_name}")
    return "\n".join(rows)
