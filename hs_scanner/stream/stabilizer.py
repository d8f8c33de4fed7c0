"""Debouncing of the per-frame extraction stream.

Consecutive frames showing the same form usually produce the same
extraction, but OCR jitter makes individual frames unreliable. The
stabilizer counts how many consecutive frames agree on a fingerprint,
throttles how often results are emitted, and flags a result for
auto-commit once per distinct stable fingerprint.

Throttling and stability tracking are independent: the run-length
counter advances on every frame, including frames whose output is
suppressed by the throttle.
"""

from dataclasses import dataclass

from hs_scanner.extraction.models import ExtractionResult, format_items
from hs_scanner.utils.config import StabilizerConfig
from hs_scanner.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class StabilizerState:
    """Mutable tracking state for one scanning session."""

    last_key: str | None = None
    stable_count: int = 0
    last_emit_at: float | None = None
    last_auto_save_key: str | None = None


@dataclass
class StabilizedEvent:
    """A throttled extraction result, optionally flagged for auto-commit."""

    result: ExtractionResult
    should_auto_commit: bool = False

    @property
    def display_text(self) -> str:
        return format_items(self.result.items)


class Stabilizer:
    """Turns a noisy stream of extraction results into debounced events.

    One instance serves exactly one scanning session and must not be fed
    from more than one producer.

    Args:
        config: Stability threshold and minimum emission interval.
    """

    def __init__(self, config: StabilizerConfig | None = None) -> None:
        self.config = config or StabilizerConfig()
        self.state = StabilizerState()

    def reset(self) -> None:
        """Start a new scanning session."""
        self.state = StabilizerState()

    @property
    def is_stable(self) -> bool:
        return self.state.stable_count >= self.config.required_stable_frames

    def observe(self, result: ExtractionResult, now: float) -> StabilizedEvent | None:
        """Record one frame's result and decide whether to emit it.

        Args:
            result: Extraction result for the frame.
            now: Timestamp of the frame in milliseconds.

        Returns:
            An event, or ``None`` when the throttle suppresses output.
        """
        state = self.state
        key = result.fingerprint

        if key == state.last_key:
            state.stable_count += 1
        else:
            state.last_key = key
            state.stable_count = 1

        if (
            state.last_emit_at is not None
            and now - state.last_emit_at < self.config.min_emit_interval_ms
        ):
            return None
        state.last_emit_at = now

        should_auto_commit = (
            self.is_stable
            and result.has_signal
            and bool(key)
            and key != state.last_auto_save_key
        )
        if should_auto_commit:
            state.last_auto_save_key = key
            logger.info(
                "Stable result after %d frames, flagging %d item(s) for commit",
                state.stable_count,
                len(result.items),
            )

        return StabilizedEvent(result=result, should_auto_commit=should_auto_commit)
