"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel

from hs_scanner.extraction.models import ParsedItem


class ItemResponse(BaseModel):
    """Response schema for one extracted line-item."""

    hs_code: str
    item_name: str
    complete: bool

    @classmethod
    def from_item(cls, item: ParsedItem) -> "ItemResponse":
        return cls(
            hs_code=item.hs_code,
            item_name=item.item_name,
            complete=item.is_complete,
        )


class ExtractionResponse(BaseModel):
    """Response schema for a single-image extraction request."""

    success: bool
    items: list[ItemResponse]
    fingerprint: str
    raw_text: str
    processing_time_ms: float


class ScanFrameResponse(BaseModel):
    """Response schema for a frame fed into the live scan session."""

    accepted: bool
    emitted: bool
    should_auto_commit: bool = False
    items: list[ItemResponse] = []
    display_text: str | None = None


class ScanResetResponse(BaseModel):
    """Response schema for a scan session restart."""

    reset: bool
    processed_frames: int
    dropped_frames: int


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    version: str
    tesseract_available: bool
