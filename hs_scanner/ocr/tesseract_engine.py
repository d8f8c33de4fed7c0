"""Tesseract recognizer producing line-level pages.

Runs Tesseract on a camera frame or scanned image, groups the detected
words into lines with bounding boxes, and returns a :class:`Page` ready
for field extraction.
"""

import cv2
import numpy as np
import pytesseract
from PIL import Image

from hs_scanner.utils.config import OCRConfig
from hs_scanner.utils.logger import get_logger

from .geometry import Block, Box, Line, Page

logger = get_logger(__name__)


class RecognitionError(Exception):
    """Raised when the OCR engine fails to process a frame."""


def _to_gray(image: np.ndarray) -> np.ndarray:
    """Convert an image to grayscale if it has color channels.

    Args:
        image: Input image (RGB, RGBA or grayscale).

    Returns:
        Grayscale image.
    """
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_RGBA2GRAY)
    if image.ndim == 3:
        return cv2.cvtColor(image, cv2.COLOR_RGB2GRAY)
    return image


class TesseractRecognizer:
    """Wrapper around Tesseract that returns a :class:`Page` per frame.

    Args:
        config: OCR configuration (language, page segmentation mode,
            contrast enhancement).
    """

    def __init__(self, config: OCRConfig | None = None) -> None:
        self.config = config or OCRConfig()
        if self.config.tesseract_cmd:
            pytesseract.pytesseract.tesseract_cmd = self.config.tesseract_cmd

    def prepare(self, image: np.ndarray) -> np.ndarray:
        """Convert to grayscale and optionally boost contrast with CLAHE.

        Args:
            image: Input frame as a numpy array.

        Returns:
            Grayscale image ready for recognition.
        """
        if image.dtype != np.uint8:
            image = cv2.normalize(image, None, 0, 255, cv2.NORM_MINMAX).astype(np.uint8)
        gray = _to_gray(image)
        if not self.config.contrast_enabled:
            return gray
        tile = self.config.clahe_tile_size
        clahe = cv2.createCLAHE(
            clipLimit=self.config.clahe_clip_limit, tileGridSize=(tile, tile)
        )
        return clahe.apply(gray)

    def recognize(self, image: np.ndarray) -> Page:
        """Recognize text lines in a frame.

        Args:
            image: Input frame as a numpy array.

        Returns:
            Page whose blocks and lines follow Tesseract's reading order.

        Raises:
            RecognitionError: If Tesseract is missing or fails on the frame.
        """
        prepared = self.prepare(image)
        try:
            data = pytesseract.image_to_data(
                Image.fromarray(prepared),
                lang=self.config.default_lang,
                config=f"--psm {self.config.psm}",
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as exc:
            raise RecognitionError(str(exc)) from exc

        page = self._build_page(data)
        logger.debug(
            "Recognized %d lines in %d blocks", len(page.lines), len(page.blocks)
        )
        return page

    def _build_page(self, data: dict) -> Page:
        """Group Tesseract word rows into blocks and lines.

        Args:
            data: ``image_to_data`` output in dict form.

        Returns:
            Assembled page.
        """
        words: dict[tuple[int, int, int], list[tuple[str, Box]]] = {}
        paragraphs = data.get("par_num") or [0] * len(data["text"])
        for i in range(len(data["text"])):
            word_text = str(data["text"][i]).strip()
            if not word_text or float(data["conf"][i]) < 0:
                continue
            left, top = int(data["left"][i]), int(data["top"][i])
            box = Box(
                left, top, left + int(data["width"][i]), top + int(data["height"][i])
            )
            key = (
                int(data["block_num"][i]),
                int(paragraphs[i]),
                int(data["line_num"][i]),
            )
            words.setdefault(key, []).append((word_text, box))

        blocks: dict[int, Block] = {}
        for (block_num, _, _), line_words in words.items():
            text = " ".join(w for w, _ in line_words)
            box = line_words[0][1]
            for _, word_box in line_words[1:]:
                box = box.union(word_box)
            blocks.setdefault(block_num, Block()).lines.append(Line(text=text, box=box))

        return Page(blocks=list(blocks.values()))
