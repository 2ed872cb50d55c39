"""Command-line interface for scanning cédulas.

Provides subcommands for live camera scans, replaying recorded frame
images, and parsing saved OCR text without running the recognizer.
"""

import argparse
import json
import sys
from pathlib import Path

from src.capture.sources import CameraSource, CaptureError, ImageFolderSource
from src.extraction.accumulator import AccumulatorState
from src.extraction.fields import DISPLAY_LABELS, CedulaField
from src.extraction.session import ScanSession
from src.ocr.tesseract_engine import TesseractEngine
from src.preprocessing.frame import FramePreprocessor
from src.scanner.driver import ScanDriver
from src.utils.config import AppConfig, load_config
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_PLACEHOLDER = "Escaneando..."


def state_to_dict(state: AccumulatorState) -> dict[str, object]:
    """Convert an accumulated state to a JSON-serializable dict.

    Args:
        state: Accumulated record and score.

    Returns:
        Dictionary with record, score, completion flag, and missing fields.
    """
    return {
        "record": {f.value: state.record[f] for f in CedulaField if f in state.record},
        "score": state.score,
        "complete": state.is_complete,
        "missing": [f.value for f in state.missing_fields],
    }


def render_record(state: AccumulatorState) -> str:
    """Render the record as labeled lines followed by the progress.

    Args:
        state: Accumulated record and score.

    Returns:
        Multi-line human-readable text.
    """
    lines = [
        f"{DISPLAY_LABELS[f]}: {state.record.get(f) or _PLACEHOLDER}"
        for f in CedulaField
    ]
    lines.append(f"Progreso: {state.score:.1f}%")
    return "\n".join(lines)


def _print_progress(state: AccumulatorState) -> None:
    """Print newly detected fields as they arrive."""
    for name in state.changed:
        print(f"[{state.score:5.1f}%] {DISPLAY_LABELS[name]}: {state.record[name]}")


def _emit(state: AccumulatorState, output: Path | None) -> None:
    """Print the final record and optionally write it as JSON.

    Args:
        state: Final accumulated state.
        output: Destination JSON file, or ``None`` to skip writing.
    """
    print(f"\n{'=' * 50}")
    print(render_record(state))
    print(f"{'=' * 50}")
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(json.dumps(state_to_dict(state), indent=2, ensure_ascii=False))
        print(f"Output written to {output}")


def run_scan(source, config: AppConfig, verbose: bool = False) -> AccumulatorState:
    """Run the scan loop over a frame source with configured components.

    Args:
        source: Frame source to read from.
        config: Application configuration.
        verbose: Whether to print each field as it is detected.

    Returns:
        Final accumulated state.
    """
    recognizer = TesseractEngine(
        tesseract_cmd=config.ocr.tesseract_cmd,
        lang=config.ocr.lang,
        psm=config.ocr.psm,
    )
    driver = ScanDriver(
        source=source,
        recognizer=recognizer,
        session=ScanSession(),
        preprocessor=FramePreprocessor(config.preprocessing),
        interval_s=config.scan.interval_s,
        stop_on_complete=config.scan.stop_on_complete,
        max_frames=config.scan.max_frames,
        on_update=_print_progress if verbose else None,
    )
    try:
        return driver.run()
    except KeyboardInterrupt:
        logger.info("Scan interrupted")
        return driver.last_state


def parse_snapshots(files: list[Path]) -> AccumulatorState:
    """Merge saved OCR text files, one snapshot per file, in order.

    Args:
        files: Text files holding recognizer output.

    Returns:
        Accumulated state after all snapshots.
    """
    session = ScanSession()
    session.start()
    state = session.state
    for path in files:
        state = session.frame_observed(path.read_text(encoding="utf-8"))
        logger.info("Parsed %s: %.1f%%", path.name, state.score)
    session.stop()
    return state


def _apply_scan_overrides(config: AppConfig, args: argparse.Namespace) -> None:
    """Apply scan options given on the command line to the configuration."""
    if args.interval is not None:
        config.scan.interval_s = args.interval
    if args.max_frames is not None:
        config.scan.max_frames = args.max_frames
    if args.keep_going:
        config.scan.stop_on_complete = False


def _add_scan_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--interval", type=float, help="Seconds to wait between frames"
    )
    parser.add_argument(
        "--max-frames", type=int, help="Stop after this many frames"
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Keep sampling after every field is detected",
    )
    parser.add_argument("-o", "--output", type=Path, help="Output JSON file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Print fields as detected"
    )


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Costa Rican ID card (cédula) reader",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-c", "--config", type=Path, help="YAML configuration file"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan from a camera")
    scan_parser.add_argument(
        "--device", help="Camera index or video file (default: from config)"
    )
    _add_scan_options(scan_parser)

    replay_parser = subparsers.add_parser(
        "replay", help="Scan a folder of recorded frame images"
    )
    replay_parser.add_argument("input_dir", type=Path, help="Folder of frame images")
    _add_scan_options(replay_parser)

    parse_parser = subparsers.add_parser(
        "parse", help="Merge saved OCR text files without recognition"
    )
    parse_parser.add_argument(
        "files", type=Path, nargs="+", help="Text files, one snapshot each"
    )
    parse_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config.log_level)

    if args.command == "scan":
        _apply_scan_overrides(config, args)
        device = args.device if args.device is not None else config.capture.device
        source = CameraSource(device, config.capture.width, config.capture.height)
        try:
            with source:
                state = run_scan(source, config, args.verbose)
        except CaptureError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        _emit(state, args.output)
    elif args.command == "replay":
        _apply_scan_overrides(config, args)
        try:
            source = ImageFolderSource(args.input_dir)
        except CaptureError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            sys.exit(1)
        with source:
            state = run_scan(source, config, args.verbose)
        _emit(state, args.output)
    elif args.command == "parse":
        missing = [f for f in args.files if not f.exists()]
        if missing:
            print(f"Error: {missing[0]} does not exist", file=sys.stderr)
            sys.exit(1)
        _emit(parse_snapshots(args.files), args.output)
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
