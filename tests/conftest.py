"""Shared test fixtures for the declaration scanner test suite."""

from pathlib import Path

import numpy as np
import pytest

from hs_scanner.ocr.geometry import Box, Line, Page


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic RGB test frame."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"


@pytest.fixture
def two_item_page() -> Page:
    """A declaration page with two stacked item sections."""
    return Page.from_lines(
        [
            Line("31", Box(1000, 100, 1040, 130)),
            Line("33 البند التعريفي", Box(1500, 150, 1800, 180)),
            Line("64039900", Box(1500, 200, 1640, 230)),
            Line("أحذية رياضية جلدية", Box(900, 300, 1300, 330)),
            Line("31", Box(1000, 1000, 1040, 1030)),
            Line("33 البند التعريفي", Box(1500, 1050, 1800, 1080)),
            Line("39269090", Box(1500, 1100, 1640, 1130)),
            Line("مفرش طاولة قطني", Box(900, 1200, 1300, 1230)),
        ]
    )
