"""Frame pipeline: recognition, extraction and stabilization.

Frames arrive from a capture source at whatever rate it produces them.
At most one recognition runs at a time; a frame offered while another is
in flight is dropped rather than queued, so recognition latency never
builds a backlog. The busy flag is released by the worker thread as soon
as recognition finishes, whether it succeeded or failed, and even when
the task awaiting it has been cancelled.
"""

import asyncio
import threading
import time
from collections.abc import Callable
from typing import Any, Protocol

from hs_scanner.extraction.form_extractor import FormExtractor
from hs_scanner.extraction.models import ParsedItem, complete_items
from hs_scanner.ocr.geometry import Page
from hs_scanner.ocr.tesseract_engine import RecognitionError
from hs_scanner.utils.config import AppConfig
from hs_scanner.utils.logger import get_logger

from .stabilizer import StabilizedEvent, Stabilizer

logger = get_logger(__name__)


class Recognizer(Protocol):
    """OCR collaborator turning a frame into a page."""

    def recognize(self, frame: Any) -> Page: ...


class PersistenceGateway(Protocol):
    """Storage collaborator that records committed items."""

    def save(self, item: ParsedItem, raw_text: str, timestamp: float) -> None: ...


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class ScanPipeline:
    """Owns one scanning session from frame to stabilized event.

    Args:
        recognizer: OCR collaborator. Called in a worker thread.
        extractor: Per-frame extractor.
        stabilizer: Session stabilizer. Not shared with other pipelines.
        on_event: Callback receiving every emitted event.
        clock: Millisecond clock used to timestamp frames.
    """

    def __init__(
        self,
        recognizer: Recognizer,
        extractor: FormExtractor | None = None,
        stabilizer: Stabilizer | None = None,
        on_event: Callable[[StabilizedEvent], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        self.recognizer = recognizer
        self.extractor = extractor or FormExtractor()
        self.stabilizer = stabilizer or Stabilizer()
        self.on_event = on_event
        self.clock = clock or _monotonic_ms
        self._busy = threading.Lock()
        self.processed_frames = 0
        self.dropped_frames = 0
        self.failed_frames = 0

    @classmethod
    def from_config(
        cls,
        config: AppConfig,
        recognizer: Recognizer,
        on_event: Callable[[StabilizedEvent], None] | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "ScanPipeline":
        """Build a pipeline with extractor and stabilizer from configuration."""
        return cls(
            recognizer,
            extractor=FormExtractor(config.extraction),
            stabilizer=Stabilizer(config.stabilizer),
            on_event=on_event,
            clock=clock,
        )

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def offer(self, frame: Any) -> "asyncio.Task[StabilizedEvent | None] | None":
        """Submit a frame unless a recognition is already in flight.

        Must be called from a running event loop.

        Args:
            frame: Image frame for the recognizer.

        Returns:
            Task resolving to the emitted event (or ``None``), or ``None``
            if the frame was dropped.
        """
        if not self._busy.acquire(blocking=False):
            self.dropped_frames += 1
            logger.debug("Recognition in flight, dropped frame")
            return None
        try:
            loop = asyncio.get_running_loop()
            recognition = loop.run_in_executor(None, self._recognize, frame)
        except RuntimeError:
            self._busy.release()
            raise
        return loop.create_task(self._process(recognition))

    def _recognize(self, frame: Any) -> Page:
        # Runs in the worker thread; the flag follows the thread, not the task.
        try:
            return self.recognizer.recognize(frame)
        finally:
            self._busy.release()

    async def _process(
        self, recognition: "asyncio.Future[Page]"
    ) -> StabilizedEvent | None:
        page: Page | None = None
        error: Exception | None = None
        try:
            # Cancelling the task must not cancel a queued recognition,
            # or the flag would never be released.
            page = await asyncio.shield(recognition)
        except Exception as exc:
            error = exc

        if error is not None or page is None:
            self.failed_frames += 1
            if isinstance(error, RecognitionError):
                logger.warning("Recognition failed, skipping frame: %s", error)
            else:
                logger.error("Unexpected recognizer error: %r", error)
            return None
        return self.handle_page(page)

    def handle_page(self, page: Page) -> StabilizedEvent | None:
        """Extract and stabilize an already recognized page.

        Args:
            page: Page produced by the recognizer for one frame.

        Returns:
            The emitted event, or ``None`` when throttled.
        """
        result = self.extractor.extract(page)
        self.processed_frames += 1
        event = self.stabilizer.observe(result, self.clock())
        if event is not None and self.on_event is not None:
            self.on_event(event)
        return event

    def reset(self) -> None:
        """Restart the scanning session."""
        self.stabilizer.reset()
        logger.info(
            "Scan session reset (processed=%d, dropped=%d, failed=%d)",
            self.processed_frames,
            self.dropped_frames,
            self.failed_frames,
        )


def save_items(
    items: list[ParsedItem],
    raw_text: str,
    gateway: PersistenceGateway,
    timestamp: float | None = None,
) -> int:
    """Persist the complete items of a result.

    Items missing either field are skipped.

    Args:
        items: Extracted items.
        raw_text: OCR text the items came from.
        gateway: Storage collaborator.
        timestamp: Epoch milliseconds. Defaults to now.

    Returns:
        Number of items saved.
    """
    good = complete_items(items)
    if timestamp is None:
        timestamp = time.time() * 1000.0
    for item in good:
        gateway.save(item, raw_text, timestamp)
    return len(good)


def commit_event(
    event: StabilizedEvent,
    gateway: PersistenceGateway,
    timestamp: float | None = None,
) -> int:
    """Persist an event's items if the stabilizer flagged it for commit."""
    if not event.should_auto_commit:
        return 0
    saved = save_items(event.result.items, event.result.raw_text, gateway, timestamp)
    logger.info("Auto-committed %d item(s)", saved)
    return saved
