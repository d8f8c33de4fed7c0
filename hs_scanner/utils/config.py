"""Configuration management for the customs declaration scanner.

Loads and validates YAML configuration with sensible defaults for OCR,
form anchors, segment geometry, item-name filtering, and stream
stabilization. Every form-layout constant lives here so that a different
declaration layout only needs a new YAML file.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class OCRConfig(BaseModel):
    """Configuration for the Tesseract recognizer."""

    tesseract_cmd: str | None = None
    default_lang: str = "ara"
    psm: int = 6
    contrast_enabled: bool = True
    clahe_clip_limit: float = 2.0
    clahe_tile_size: int = 8


class AnchorConfig(BaseModel):
    """Textual anchors that locate fields on the declaration form."""

    item_name_field: int = 31
    max_field_index: int = 99
    field_separators: str = ":.،-"
    tariff_label_terms: list[str] = Field(default_factory=lambda: ["البند"])
    tariff_label_variants: list[str] = Field(
        default_factory=lambda: ["التعريفي", "التعريف", "التعريفة"]
    )
    designation_labels: list[str] = Field(
        default_factory=lambda: ["تسمية السلعة", "التسمية", "تسمية"]
    )


class SegmentConfig(BaseModel):
    """Pixel margins used to carve a page into per-item segments."""

    top_margin: int = 80
    next_anchor_margin: int = 40
    min_segment_height: int = 300
    trailing_window: int = 1600
    left_margin: int = 500
    right_margin: int = 2500
    name_left_margin: int = 150
    name_top_gap: int = 5
    code_top_gap: int = 5
    code_window_height: int = 450
    name_stops_at_next_field: bool = False


class NameConfig(BaseModel):
    """Rules deciding whether a line looks like an item description."""

    min_length: int = 4
    min_letters: int = 3
    letter_range: tuple[str, str] = ("ء", "ي")
    max_digit_ratio: float = 0.5
    blacklist: list[str] = Field(
        default_factory=lambda: [
            "البند",
            "الرقم",
            "قيمة",
            "وزن",
            "عدد",
            "مستند",
            "النقل",
            "الوضع",
            "منشأ",
            "وحدات",
            "إضافية",
            "تسمية",
        ]
    )
    fallback_min_length: int = 10
    fallback_window_lines: int = 6


class ExtractionConfig(BaseModel):
    """Configuration for field extraction."""

    anchors: AnchorConfig = Field(default_factory=AnchorConfig)
    segments: SegmentConfig = Field(default_factory=SegmentConfig)
    names: NameConfig = Field(default_factory=NameConfig)


class StabilizerConfig(BaseModel):
    """Configuration for debouncing the per-frame extraction stream."""

    required_stable_frames: int = Field(default=8, ge=1)
    min_emit_interval_ms: float = Field(default=150.0, ge=0)


class AppConfig(BaseModel):
    """Top-level application configuration."""

    ocr: OCRConfig = Field(default_factory=OCRConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    stabilizer: StabilizerConfig = Field(default_factory=StabilizerConfig)
    log_level: str = "INFO"


def load_config(path: Path | None = None) -> AppConfig:
    """Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.
            Defaults to configs/config.yaml.

    Returns:
        Validated application configuration.
    """
    if path is None:
        path = Path("configs/config.yaml")

    if path.exists():
        logger.info("Loading configuration from %s", path)
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
        return AppConfig(**raw)

    logger.info("No config file found at %s, using defaults", path)
    return AppConfig()
