"""Command-line interface for offline extraction and stream replay.

Provides subcommands for extracting items from a single image, replaying
a folder of captured frames through a scan session, and serving the API.
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np
from PIL import Image

from hs_scanner.extraction.form_extractor import FormExtractor
from hs_scanner.main import main as serve_api
from hs_scanner.ocr.geometry import Page
from hs_scanner.ocr.tesseract_engine import RecognitionError, TesseractRecognizer
from hs_scanner.stream.driver import ScanPipeline
from hs_scanner.stream.stabilizer import StabilizedEvent
from hs_scanner.utils.config import load_config
from hs_scanner.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.webp")


class _ReplayClock:
    """Millisecond clock advanced explicitly between replayed frames."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def _find_images(input_dir: Path) -> list[Path]:
    """Find all supported image files in a directory.

    Args:
        input_dir: Directory to scan for frames.

    Returns:
        Sorted list of image paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def _load_image(path: Path) -> np.ndarray:
    with Image.open(path) as img:
        return np.array(img.convert("RGB"))


def _event_to_dict(event: StabilizedEvent, frame: str) -> dict[str, object]:
    return {
        "frame": frame,
        "auto_commit": event.should_auto_commit,
        "items": [
            {"hs_code": item.hs_code, "item_name": item.item_name}
            for item in event.result.items
        ],
    }


def extract_single(
    file_path: Path, config_path: Path | None = None
) -> dict[str, object]:
    """Extract items from one image, or from saved OCR text.

    A ``.txt`` file is taken as raw OCR text and parsed without
    recognition, through the text-only path.

    Args:
        file_path: Path to the image or text file.
        config_path: Optional YAML configuration path.

    Returns:
        Dictionary with filename, items, fingerprint and raw_text.
    """
    config = load_config(config_path)
    extractor = FormExtractor(config.extraction)

    if file_path.suffix.lower() == ".txt":
        page = Page.from_text(file_path.read_text(encoding="utf-8"))
    else:
        recognizer = TesseractRecognizer(config.ocr)
        page = recognizer.recognize(_load_image(file_path))
    result = extractor.extract(page)
    return {
        "filename": file_path.name,
        "items": [
            {"hs_code": item.hs_code, "item_name": item.item_name}
            for item in result.items
        ],
        "fingerprint": result.fingerprint,
        "raw_text": result.raw_text,
    }


def replay_folder(
    input_dir: Path,
    interval_ms: float = 150.0,
    repeat: int = 1,
    config_path: Path | None = None,
) -> dict[str, int]:
    """Replay a folder of frames through one scan session.

    Each image is recognized once and presented ``repeat`` times, with
    the session clock advancing ``interval_ms`` per presented frame.
    Emitted events are printed as JSON lines.

    Args:
        input_dir: Directory of captured frames, replayed in name order.
        interval_ms: Simulated time between consecutive frames.
        repeat: How many consecutive frames each image stands for.
        config_path: Optional YAML configuration path.

    Returns:
        Summary dict with frame, event, auto-commit and failure counts.
    """
    config = load_config(config_path)
    recognizer = TesseractRecognizer(config.ocr)
    clock = _ReplayClock()
    pipeline = ScanPipeline.from_config(config, recognizer, clock=clock)

    summary = {"frames": 0, "events": 0, "auto_commits": 0, "failed": 0}
    files = _find_images(input_dir)
    if not files:
        logger.warning("No frames found in %s", input_dir)
        return summary

    for file_path in files:
        try:
            page = recognizer.recognize(_load_image(file_path))
        except RecognitionError as exc:
            logger.warning("Skipping %s: %s", file_path.name, exc)
            summary["failed"] += 1
            clock.advance(interval_ms * repeat)
            continue

        for _ in range(repeat):
            summary["frames"] += 1
            event = pipeline.handle_page(page)
            clock.advance(interval_ms)
            if event is None:
                continue
            summary["events"] += 1
            summary["auto_commits"] += int(event.should_auto_commit)
            print(json.dumps(_event_to_dict(event, file_path.name), ensure_ascii=False))

    logger.info("Replayed %d frames from %s", summary["frames"], input_dir)
    return summary


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Customs Declaration Scanner",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-c", "--config", type=Path, help="YAML configuration file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    extract_parser = subparsers.add_parser(
        "extract", help="Extract items from an image or saved OCR text"
    )
    extract_parser.add_argument("file", type=Path, help="Image or .txt file to process")

    replay_parser = subparsers.add_parser(
        "replay", help="Replay a folder of frames through a scan session"
    )
    replay_parser.add_argument("input_dir", type=Path, help="Directory of frames")
    replay_parser.add_argument(
        "--interval-ms",
        type=float,
        default=150.0,
        help="Simulated time between frames (default: 150)",
    )
    replay_parser.add_argument(
        "--repeat",
        type=int,
        default=1,
        help="Consecutive frames per image (default: 1)",
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    setup_logging(load_config(args.config).log_level)

    if args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        try:
            result = extract_single(args.file, args.config)
        except RecognitionError as exc:
            print(f"Error: recognition failed for {args.file}: {exc}", file=sys.stderr)
            sys.exit(1)
        print(json.dumps(result, indent=2, ensure_ascii=False))
    elif args.command == "replay":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        summary = replay_folder(
            args.input_dir, args.interval_ms, max(1, args.repeat), args.config
        )
        print(json.dumps(summary), file=sys.stderr)
    elif args.command == "serve":
        serve_api(args.host, args.port, args.config)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
