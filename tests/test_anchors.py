"""Tests for text normalization, anchor matching and text rules."""

import pytest

from hs_scanner.extraction.anchors import AnchorKind, AnchorMatcher, clean, normalize
from hs_scanner.extraction.text_rules import (
    NameFilter,
    find_tariff_codes,
    pick_tariff_code,
    search_tariff_code,
)
from hs_scanner.ocr.geometry import Box, Line
from hs_scanner.utils.config import AnchorConfig, NameConfig


class TestNormalize:
    """Tests for clean/normalize."""

    @pytest.mark.parametrize(
        "text",
        [
            "",
            "   ",
            "  31 :  تسمية السلعة\t ",
            "Straße  COTTON",
            "٣١ البند  التعريفي",
            "line one\nline  two",
        ],
    )
    def test_idempotent(self, text: str) -> None:
        assert normalize(normalize(text)) == normalize(text)

    def test_collapses_horizontal_whitespace(self) -> None:
        assert normalize("  a \t  b  ") == "a b"

    def test_keeps_line_breaks(self) -> None:
        assert normalize("a  \n  b") == "a \n b"

    def test_casefolds(self) -> None:
        assert normalize("Cotton TOWELS") == "cotton towels"

    def test_folds_arabic_indic_digits(self) -> None:
        assert normalize("٦٤٠٣٩٩٠٠") == "64039900"

    def test_clean_preserves_case(self) -> None:
        assert clean("  Cotton  Towels ") == "Cotton Towels"


class TestAnchorMatcher:
    """Tests for the AnchorMatcher class."""

    def setup_method(self) -> None:
        self.matcher = AnchorMatcher()

    @pytest.mark.parametrize(
        "text", ["31", "31:", "31.", "31 تسمية السلعة", " ٣١ ", "31،"]
    )
    def test_item_name_field_matches(self, text: str) -> None:
        assert self.matcher.matches(text, AnchorKind.ITEM_NAME_FIELD)

    @pytest.mark.parametrize("text", ["310", "131", "رقم 31", "3l", "32", ""])
    def test_item_name_field_rejects(self, text: str) -> None:
        assert not self.matcher.matches(text, AnchorKind.ITEM_NAME_FIELD)

    def test_is_anchor_uses_line_text(self) -> None:
        line = Line("31", Box(0, 0, 10, 10))
        assert self.matcher.is_anchor(line, AnchorKind.ITEM_NAME_FIELD)

    @pytest.mark.parametrize(
        "text", ["32", "33 البند التعريفي", "40.", "35 الوزن", "44", "47 طريقة الدفع"]
    )
    def test_next_field_header_matches(self, text: str) -> None:
        assert self.matcher.matches(text, AnchorKind.NEXT_FIELD_HEADER)

    @pytest.mark.parametrize("text", ["31", "30", "100", "15 بلد", "no number"])
    def test_next_field_header_rejects(self, text: str) -> None:
        assert not self.matcher.matches(text, AnchorKind.NEXT_FIELD_HEADER)

    @pytest.mark.parametrize(
        "text",
        [
            "33 البند التعريفي",
            "البند التعريف:",
            "البند  التعريفة",
            "رمز البند التعريفي 1",
        ],
    )
    def test_tariff_label_variants(self, text: str) -> None:
        assert self.matcher.matches(text, AnchorKind.TARIFF_CODE_LABEL)

    @pytest.mark.parametrize("text", ["البند", "التعريفي", "وزن قائم"])
    def test_tariff_label_needs_both_terms(self, text: str) -> None:
        assert not self.matcher.matches(text, AnchorKind.TARIFF_CODE_LABEL)

    def test_designation_label(self) -> None:
        assert self.matcher.matches("31 تسمية السلعة", AnchorKind.DESIGNATION_LABEL)
        assert self.matcher.matches("التسمية", AnchorKind.DESIGNATION_LABEL)
        assert not self.matcher.matches("مفرش", AnchorKind.DESIGNATION_LABEL)

    def test_designation_end(self) -> None:
        text = "تسمية السلعة: مفرش"
        end = self.matcher.designation_end(text)
        assert end is not None
        assert text[end:] == ": مفرش"
        assert self.matcher.designation_end("no label") is None

    def test_field_index(self) -> None:
        assert self.matcher.field_index("33 البند") == 33
        assert self.matcher.field_index("البند 33") is None

    def test_configurable_field(self) -> None:
        matcher = AnchorMatcher(AnchorConfig(item_name_field=44, max_field_index=54))
        assert matcher.matches("44", AnchorKind.ITEM_NAME_FIELD)
        assert not matcher.matches("31", AnchorKind.ITEM_NAME_FIELD)
        assert matcher.matches("50", AnchorKind.NEXT_FIELD_HEADER)


class TestTariffCodes:
    """Tests for tariff code search and preference."""

    def test_finds_8_and_10_digit_runs(self) -> None:
        assert find_tariff_codes("a 64039900 b 3926909090") == [
            "64039900",
            "3926909090",
        ]

    @pytest.mark.parametrize("text", ["1234567", "123456789", "123456789012", ""])
    def test_ignores_other_lengths(self, text: str) -> None:
        assert find_tariff_codes(text) == []

    def test_arabic_indic_digits(self) -> None:
        assert find_tariff_codes("البند ٦٤٠٣٩٩٠٠") == ["64039900"]

    def test_prefers_8_digits(self) -> None:
        assert pick_tariff_code(["3926909090", "64039900"]) == "64039900"

    def test_first_8_digit_wins(self) -> None:
        assert pick_tariff_code(["11112222", "33334444"]) == "11112222"

    def test_10_digit_when_alone(self) -> None:
        assert pick_tariff_code(["3926909090"]) == "3926909090"

    def test_no_candidates(self) -> None:
        assert pick_tariff_code([]) is None

    def test_search_across_texts(self) -> None:
        assert search_tariff_code(["3926909090", "64039900"]) == "64039900"
        assert search_tariff_code(["nothing"]) is None


class TestNameFilter:
    """Tests for the meaningful-name predicate."""

    def setup_method(self) -> None:
        self.names = NameFilter()

    @pytest.mark.parametrize(
        "text", ["مفرش طاولة قطني", "أحذية رياضية", "قطن 100%", "  أقمشة  "]
    )
    def test_accepts_descriptions(self, text: str) -> None:
        assert self.names.is_meaningful(text)

    @pytest.mark.parametrize(
        "text",
        [
            "قطن",
            "Cotton towels",
            "64039900 قطن",
            "وزن قائم",
            "قيمة الإحصائية",
            "بلد المنشأ",
            "33 البند التعريفي",
            "وحدات إضافية",
            "",
        ],
    )
    def test_rejects_noise_and_labels(self, text: str) -> None:
        assert not self.names.is_meaningful(text)

    def test_custom_blacklist(self) -> None:
        names = NameFilter(NameConfig(blacklist=["مفرش"]))
        assert not names.is_meaningful("مفرش طاولة")
        assert names.is_meaningful("وزن قائم")
