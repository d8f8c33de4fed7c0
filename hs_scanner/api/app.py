"""FastAPI application for the Customs Declaration Scanner.

Provides REST endpoints for one-shot extraction from an uploaded image,
a live scan session fed frame by frame, and health checks.
"""

import asyncio
import io
import shutil
import time
from typing import Annotated

import numpy as np
from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from PIL import Image, UnidentifiedImageError

from hs_scanner import __version__
from hs_scanner.extraction.form_extractor import FormExtractor
from hs_scanner.ocr.tesseract_engine import TesseractRecognizer
from hs_scanner.stream.driver import ScanPipeline
from hs_scanner.utils.config import AppConfig, load_config
from hs_scanner.utils.logger import get_logger

from .schemas import (
    ExtractionResponse,
    HealthResponse,
    ItemResponse,
    ScanFrameResponse,
    ScanResetResponse,
)

logger = get_logger(__name__)

app = FastAPI(
    title="Customs Declaration Scanner API",
    description="Extract tariff codes and item names from customs declarations",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_ALLOWED_CONTENT_TYPES = {
    "image/png",
    "image/jpeg",
    "image/tiff",
    "image/webp",
    "application/octet-stream",
}


def _load_app_config() -> AppConfig:
    """Load the configuration the server was started with."""
    return load_config(getattr(app.state, "config_path", None))


def _get_components() -> tuple[TesseractRecognizer, FormExtractor]:
    """Initialize the recognizer and extractor for one-shot requests.

    Returns:
        Tuple of (recognizer, form_extractor).
    """
    config = _load_app_config()
    return TesseractRecognizer(config.ocr), FormExtractor(config.extraction)


def _get_pipeline() -> ScanPipeline:
    """Return the application's scan session, creating it on first use."""
    pipeline: ScanPipeline | None = getattr(app.state, "scan_pipeline", None)
    if pipeline is None:
        config = _load_app_config()
        pipeline = ScanPipeline.from_config(config, TesseractRecognizer(config.ocr))
        app.state.scan_pipeline = pipeline
    return pipeline


def _check_content_type(file: UploadFile) -> None:
    if file.content_type and file.content_type not in _ALLOWED_CONTENT_TYPES:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type: {file.content_type}",
        )


def _decode_image(content: bytes) -> np.ndarray:
    """Decode uploaded bytes into an RGB array.

    Raises:
        HTTPException: 400 if the bytes are not a readable image.
    """
    try:
        with Image.open(io.BytesIO(content)) as img:
            return np.array(img.convert("RGB"))
    except (UnidentifiedImageError, OSError) as exc:
        raise HTTPException(status_code=400, detail="Could not decode image") from exc


@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Return system health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        tesseract_available=shutil.which("tesseract") is not None,
    )


@app.post("/extract", response_model=ExtractionResponse)
async def extract_image(
    file: Annotated[UploadFile, File(...)],
) -> ExtractionResponse:
    """Extract line-items from a single uploaded image.

    Args:
        file: Uploaded image (PNG, JPEG, TIFF or WebP).

    Returns:
        Extracted items with the raw OCR text.
    """
    start_time = time.time()
    _check_content_type(file)

    try:
        image = _decode_image(await file.read())
        recognizer, extractor = _get_components()
        page = await asyncio.to_thread(recognizer.recognize, image)
        result = extractor.extract(page)
    except HTTPException:
        raise
    except Exception as exc:
        logger.error("Extraction failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    return ExtractionResponse(
        success=True,
        items=[ItemResponse.from_item(item) for item in result.items],
        fingerprint=result.fingerprint,
        raw_text=result.raw_text,
        processing_time_ms=(time.time() - start_time) * 1000,
    )


@app.post("/scan/frame", response_model=ScanFrameResponse)
async def scan_frame(
    file: Annotated[UploadFile, File(...)],
) -> ScanFrameResponse:
    """Feed one camera frame into the live scan session.

    Frames arriving while a previous frame is still being recognized are
    dropped and reported with ``accepted=false``.

    Args:
        file: Uploaded camera frame.

    Returns:
        Whether the frame was accepted, and the emitted event if any.
    """
    _check_content_type(file)
    image = _decode_image(await file.read())

    pipeline = _get_pipeline()
    task = pipeline.offer(image)
    if task is None:
        return ScanFrameResponse(accepted=False, emitted=False)

    event = await task
    if event is None:
        return ScanFrameResponse(accepted=True, emitted=False)

    return ScanFrameResponse(
        accepted=True,
        emitted=True,
        should_auto_commit=event.should_auto_commit,
        items=[ItemResponse.from_item(item) for item in event.result.items],
        display_text=event.display_text,
    )


@app.post("/scan/reset", response_model=ScanResetResponse)
async def scan_reset() -> ScanResetResponse:
    """Restart the live scan session."""
    pipeline = _get_pipeline()
    pipeline.reset()
    return ScanResetResponse(
        reset=True,
        processed_frames=pipeline.processed_frames,
        dropped_frames=pipeline.dropped_frames,
    )
