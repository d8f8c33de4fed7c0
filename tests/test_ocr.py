"""Tests for the Tesseract recognizer."""

from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from hs_scanner.ocr.geometry import Box
from hs_scanner.ocr.tesseract_engine import RecognitionError, TesseractRecognizer
from hs_scanner.utils.config import OCRConfig


def _mock_tesseract_data() -> dict:
    """Create mock pytesseract output with two blocks and three lines."""
    return {
        "text": ["", "31", "تسمية", "السلعة", "", "64039900", "أحذية"],
        "conf": [-1, 95, 88, 91, -1, 90, 72],
        "left": [0, 1000, 800, 700, 0, 1500, 900],
        "top": [0, 100, 102, 98, 0, 200, 300],
        "width": [0, 40, 90, 80, 0, 140, 120],
        "height": [0, 30, 28, 34, 0, 30, 30],
        "block_num": [0, 1, 1, 1, 0, 2, 2],
        "par_num": [0, 1, 1, 1, 0, 1, 2],
        "line_num": [0, 1, 1, 1, 0, 1, 1],
        "word_num": [0, 1, 2, 3, 0, 1, 1],
    }


def _tesseract_errors(mock_pytesseract: MagicMock) -> None:
    mock_pytesseract.TesseractError = type("TesseractError", (Exception,), {})
    mock_pytesseract.TesseractNotFoundError = type(
        "TesseractNotFoundError", (Exception,), {}
    )


class TestTesseractRecognizer:
    """Tests for the TesseractRecognizer class (mocked)."""

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_recognize_groups_lines(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        recognizer = TesseractRecognizer()
        page = recognizer.recognize(np.zeros((100, 200), dtype=np.uint8))

        assert len(page.blocks) == 2
        assert [line.text for line in page.lines] == [
            "31 تسمية السلعة",
            "64039900",
            "أحذية",
        ]
        assert page.lines[0].box == Box(700, 98, 1040, 132)
        assert page.raw_text == "31 تسمية السلعة\n64039900\nأحذية"

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_recognize_passes_language_and_psm(
        self, mock_pytesseract: MagicMock
    ) -> None:
        mock_pytesseract.image_to_data.return_value = _mock_tesseract_data()
        mock_pytesseract.Output.DICT = "dict"

        recognizer = TesseractRecognizer(OCRConfig(default_lang="ara+eng", psm=4))
        recognizer.recognize(np.zeros((100, 200, 3), dtype=np.uint8))

        kwargs = mock_pytesseract.image_to_data.call_args.kwargs
        assert kwargs["lang"] == "ara+eng"
        assert kwargs["config"] == "--psm 4"
        assert kwargs["output_type"] == "dict"

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_recognize_without_paragraphs(self, mock_pytesseract: MagicMock) -> None:
        data = _mock_tesseract_data()
        del data["par_num"]
        mock_pytesseract.image_to_data.return_value = data
        mock_pytesseract.Output.DICT = "dict"

        page = TesseractRecognizer().recognize(np.zeros((100, 200), dtype=np.uint8))
        assert [line.text for line in page.lines] == [
            "31 تسمية السلعة",
            "64039900 أحذية",
        ]

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_recognize_empty_image(self, mock_pytesseract: MagicMock) -> None:
        mock_pytesseract.image_to_data.return_value = {
            "text": [],
            "conf": [],
            "left": [],
            "top": [],
            "width": [],
            "height": [],
            "block_num": [],
            "par_num": [],
            "line_num": [],
            "word_num": [],
        }
        mock_pytesseract.Output.DICT = "dict"

        page = TesseractRecognizer().recognize(np.zeros((100, 200), dtype=np.uint8))
        assert page.lines == []
        assert page.raw_text == ""

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_tesseract_failure(self, mock_pytesseract: MagicMock) -> None:
        _tesseract_errors(mock_pytesseract)
        mock_pytesseract.image_to_data.side_effect = (
            mock_pytesseract.TesseractError("bad frame")
        )

        with pytest.raises(RecognitionError):
            TesseractRecognizer().recognize(np.zeros((100, 200), dtype=np.uint8))

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_tesseract_missing(self, mock_pytesseract: MagicMock) -> None:
        _tesseract_errors(mock_pytesseract)
        mock_pytesseract.image_to_data.side_effect = (
            mock_pytesseract.TesseractNotFoundError("not installed")
        )

        with pytest.raises(RecognitionError):
            TesseractRecognizer().recognize(np.zeros((100, 200), dtype=np.uint8))

    @patch("hs_scanner.ocr.tesseract_engine.pytesseract")
    def test_custom_tesseract_cmd(self, mock_pytesseract: MagicMock) -> None:
        TesseractRecognizer(OCRConfig(tesseract_cmd="/opt/tesseract"))
        assert mock_pytesseract.pytesseract.tesseract_cmd == "/opt/tesseract"


class TestPrepare:
    """Tests for frame preparation before recognition."""

    def test_rgb_to_gray(self, sample_image: np.ndarray) -> None:
        prepared = TesseractRecognizer().prepare(sample_image)
        assert prepared.shape == (200, 300)
        assert prepared.dtype == np.uint8

    def test_rgba_to_gray(self) -> None:
        image = np.zeros((50, 60, 4), dtype=np.uint8)
        prepared = TesseractRecognizer().prepare(image)
        assert prepared.shape == (50, 60)

    def test_without_contrast(self, sample_image: np.ndarray) -> None:
        recognizer = TesseractRecognizer(OCRConfig(contrast_enabled=False))
        prepared = recognizer.prepare(sample_image)
        assert prepared[100, 150] == 255
        assert prepared[0, 0] == 0

    def test_float_image(self) -> None:
        image = np.random.default_rng(0).random((40, 50, 3))
        prepared = TesseractRecognizer().prepare(image)
        assert prepared.dtype == np.uint8
        assert prepared.shape == (40, 50)
