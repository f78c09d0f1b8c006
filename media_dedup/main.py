#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Main CLI entry point for the media deduplication engine.
"""

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, Sequence

from tqdm import tqdm

from .config import DEFAULT_FRAME_COUNT, DEFAULT_SIMILARITY_THRESHOLD, FINGERPRINT_CONCURRENCY
from .jsonio import enable_json_logging, error, success
from .models.progress import DetectionProgress
from .models.results import DuplicateResult, SimilarityOptions, SimilarityResult
from .orchestrator import DetectionOrchestrator
from .scanning.discovery import discover_video_files
from .scanning.fingerprint import FingerprintExtractor
from .scanning.media import FFmpegFrameDecoder, FFprobeMediaProbe
from .utils.formatting import format_resolution, format_size
from .utils.time import format_elapsed, utc_now_str


def setup_logging(verbose: bool):
    """Configure logging for the CLI tool."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    logging.debug("Verbose logging enabled (DEBUG level).")


def create_parser():
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="media-dedup",
        description="Find exact duplicate and visually similar video files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Examples:
  # Byte-identical files
  %(prog)s duplicates --source /mnt/videos

  # Visually similar files, stricter threshold, JSON output
  %(prog)s similar --source /mnt/videos --threshold 0.9 --json

  # Similarity from metadata only (no frame extraction)
  %(prog)s similar --source /mnt/videos --no-visual
        """
    )
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Enable verbose (DEBUG) output")
    parser.add_argument("--json", action="store_true",
                        help="Output results as JSON instead of human-readable text")

    subparsers = parser.add_subparsers(dest="command", required=True, help="Available commands")
    _add_duplicates_parser(subparsers)
    _add_similar_parser(subparsers)
    return parser


def _add_source_args(sub):
    sub.add_argument("--source", required=True, help="Directory to scan for video files")
    sub.add_argument("--no-recursive", action="store_true",
                     help="Do not descend into sub-directories")
    sub.add_argument("--json", action="store_true", default=argparse.SUPPRESS, help="Output as JSON")


def _add_duplicates_parser(subparsers):
    """Add duplicates command parser."""
    dup_parser = subparsers.add_parser("duplicates", help="Find byte-identical files")
    _add_source_args(dup_parser)


def _add_similar_parser(subparsers):
    """Add similar command parser."""
    sim_parser = subparsers.add_parser("similar", help="Find visually similar videos")
    _add_source_args(sim_parser)
    sim_parser.add_argument("--threshold", type=float, default=DEFAULT_SIMILARITY_THRESHOLD,
                            help=f"Minimum overall similarity (default: {DEFAULT_SIMILARITY_THRESHOLD})")
    sim_parser.add_argument("--frames", type=int, default=DEFAULT_FRAME_COUNT,
                            help=f"Frames sampled per video (default: {DEFAULT_FRAME_COUNT})")
    sim_parser.add_argument("--concurrency", type=int, default=FINGERPRINT_CONCURRENCY,
                            help=f"Concurrent frame extractions (default: {FINGERPRINT_CONCURRENCY})")
    sim_parser.add_argument("--no-duration", action="store_true", help="Ignore duration")
    sim_parser.add_argument("--no-resolution", action="store_true", help="Ignore resolution")
    sim_parser.add_argument("--no-size", action="store_true", help="Ignore file size")
    sim_parser.add_argument("--no-visual", action="store_true",
                            help="Ignore frame fingerprints (no ffmpeg needed)")


class TqdmProgress:
    """Mirrors DetectionProgress snapshots onto a tqdm bar."""

    def __init__(self, disable: bool = False):
        self.bar = tqdm(total=0, unit="step", disable=disable, leave=False)

    def __call__(self, progress: DetectionProgress):
        self.bar.total = progress.total
        self.bar.n = progress.current
        self.bar.set_description(progress.message, refresh=False)
        self.bar.set_postfix_str(progress.current_item or "", refresh=False)
        self.bar.refresh()

    def close(self):
        self.bar.close()


def _install_sigint(orchestrator: DetectionOrchestrator):
    """First Ctrl+C cancels cooperatively, a second one interrupts."""
    requested = False

    def handler(sig, frame):
        nonlocal requested
        if requested or not orchestrator.is_detecting():
            raise KeyboardInterrupt
        requested = True
        print("\nCancelling... press Ctrl+C again to abort.", file=sys.stderr)
        orchestrator.cancel()

    return signal.signal(signal.SIGINT, handler)


def _print_banner(title: str, source: Path, count: int):
    print("=" * 80)
    print(f"{title} - {utc_now_str()}")
    print("=" * 80)
    print(f"Source: {source}")
    print(f"Video files: {count:,}")
    print()


def _print_duplicates(result: DuplicateResult):
    for i, group in enumerate(result.groups, 1):
        print(f"[{i}] {group.digest}  {len(group.files)} files, "
              f"{format_size(group.waste_size)} reclaimable")
        for f in group.files:
            mark = "*" if f.path == group.representative.path else " "
            print(f"   {mark} {f.path} ({format_size(f.size)})")
    print()
    print(f"Duplicate groups: {len(result.groups)}")
    print(f"Files in groups: {result.total_duplicates}")
    print(f"Reclaimable: {format_size(result.total_waste_size)}")
    print(f"Scan time: {format_elapsed(result.scan_time_ms)}")


def _print_similar(result: SimilarityResult):
    for i, group in enumerate(result.groups, 1):
        print(f"[{i}] {len(group.files)} files, average similarity {group.average_similarity:.1%}")
        for f in group.files:
            res = format_resolution(f) or "?"
            dur = f"{f.duration_seconds:.1f}s" if f.duration_seconds else "?"
            print(f"     {f.path} ({format_size(f.size)}, {res}, {dur})")
    print()
    print(f"Similar groups: {len(result.groups)}")
    print(f"Files in groups: {result.total_similar_files}")
    print(f"Threshold: {result.threshold:.2f}")
    print(f"Scan time: {format_elapsed(result.scan_time_ms)}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    as_json = getattr(args, 'json', False)

    if as_json:
        enable_json_logging()
    else:
        setup_logging(args.verbose)
    logging.debug("Parsed arguments: %s", args)

    source = Path(args.source)
    if not source.is_dir():
        if as_json:
            return error(args.command, f"Source is not a directory: {source}", code=2)
        logging.error("Source is not a directory: %s", source)
        return 2

    probe = FFprobeMediaProbe()
    progress = None
    previous_handler = None
    try:
        if args.command == "duplicates":
            files = discover_video_files(source, None, recursive=not args.no_recursive)
            orchestrator = DetectionOrchestrator()
            previous_handler = _install_sigint(orchestrator)
            if not as_json:
                _print_banner("DUPLICATE DETECTION", source, len(files))
            progress = TqdmProgress(disable=as_json)
            result = orchestrator.run_duplicate_detection(files, progress)
            if as_json:
                success("duplicates", result.to_dict(), meta={"source": str(source), "files": len(files)})
            else:
                _print_duplicates(result)

        else:
            options = SimilarityOptions(
                threshold=args.threshold,
                check_duration=not args.no_duration,
                check_resolution=not args.no_resolution,
                check_file_size=not args.no_size,
                check_visual=not args.no_visual,
                frame_count=args.frames,
            )
            files = discover_video_files(source, probe, recursive=not args.no_recursive)
            extractor = FingerprintExtractor(FFmpegFrameDecoder(probe), frame_count=args.frames)
            orchestrator = DetectionOrchestrator(extractor=extractor,
                                                 fingerprint_concurrency=args.concurrency)
            previous_handler = _install_sigint(orchestrator)
            if not as_json:
                _print_banner("SIMILARITY DETECTION", source, len(files))
            progress = TqdmProgress(disable=as_json)
            result = orchestrator.run_similarity_detection(files, options, progress)
            if as_json:
                success("similar", result.to_dict(), meta={"source": str(source), "files": len(files)})
            else:
                _print_similar(result)

        if result.cancelled:
            if not as_json:
                logging.warning("Detection cancelled; results above are partial.")
            return 130
        return 0

    except KeyboardInterrupt:
        if as_json:
            return error(args.command, "Operation interrupted by user", code=130)
        logging.warning("Operation interrupted by user.")
        return 130
    except Exception as e:
        if as_json:
            debug_info = {"exception_type": type(e).__name__} if args.verbose else None
            return error(args.command, str(e), debug=debug_info, code=1)
        logging.error("Error occurred: %s", e, exc_info=args.verbose)
        return 1
    finally:
        if progress is not None:
            progress.close()
        if previous_handler is not None:
            signal.signal(signal.SIGINT, previous_handler)


if __name__ == "__main__":
    sys.exit(main())
