#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Detection orchestrator for the media deduplication engine.
Sequences hashing, prefiltering, fingerprinting, scoring and grouping for one
run at a time per mode, reports progress, and honours cooperative cancellation.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .config import FINGERPRINT_CONCURRENCY
from .errors import RunAlreadyActiveError
from .grouping import build_duplicate_groups, build_similar_groups
from .models.file_descriptor import FileDescriptor
from .models.progress import DetectionProgress, ProgressCallback
from .models.results import (
    DuplicateResult, SimilarityOptions, SimilarityResult, SimilarPair,
)
from .scanning.fingerprint import Fingerprint, FingerprintExtractor
from .scanning.hasher import ContentHasher
from .scoring import SimilarityScorer
from .utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

CandidatePair = Tuple[FileDescriptor, FileDescriptor]


class DetectionMode(Enum):
    DUPLICATE = "duplicate"
    SIMILARITY = "similarity"


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


class DetectionRun:
    """Handle for one detection run: its mode, cancellation token and state."""

    def __init__(self, mode: DetectionMode):
        self.mode = mode
        self.token = CancellationToken()
        self.state = RunState.IDLE
        self.started_at: Optional[float] = None

    def cancel(self) -> None:
        self.token.cancel()

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    @property
    def elapsed_ms(self) -> int:
        if self.started_at is None:
            return 0
        return int((time.perf_counter() - self.started_at) * 1000)


def _unique_by_path(files: Sequence[FileDescriptor]) -> List[FileDescriptor]:
    seen: Dict[Path, FileDescriptor] = {}
    for f in files:
        seen.setdefault(f.path, f)
    return list(seen.values())


def _emit(on_progress: Optional[ProgressCallback], current: int, total: int,
          message: str, item: Optional[str] = None) -> None:
    if on_progress:
        on_progress(DetectionProgress(current, total, message, item))


class DetectionOrchestrator:
    """
    Drives duplicate and similarity detection.

    Only one run per mode may be active at a time; cancel() is idempotent and
    a no-op when nothing is running.
    """

    def __init__(self, hasher: Optional[ContentHasher] = None,
                 extractor: Optional[FingerprintExtractor] = None,
                 weights: Optional[Mapping[str, float]] = None,
                 fingerprint_concurrency: int = FINGERPRINT_CONCURRENCY):
        if fingerprint_concurrency < 1:
            raise ValueError("fingerprint_concurrency must be at least 1")
        self.hasher = hasher or ContentHasher()
        self.extractor = extractor or FingerprintExtractor()
        # Validated eagerly so bad weights fail at construction time
        self.weights = SimilarityScorer(weights).weights
        self.fingerprint_concurrency = fingerprint_concurrency
        self._lock = threading.Lock()
        self._active: Dict[DetectionMode, DetectionRun] = {}

    # ------------------------------------------------------------------ runs

    @contextmanager
    def _run(self, mode: DetectionMode) -> Iterator[DetectionRun]:
        with self._lock:
            if mode in self._active:
                raise RunAlreadyActiveError(mode)
            run = DetectionRun(mode)
            run.state = RunState.RUNNING
            run.started_at = time.perf_counter()
            self._active[mode] = run
        try:
            yield run
            run.state = RunState.CANCELLED if run.cancelled else RunState.COMPLETED
        except BaseException:
            run.state = RunState.FAILED
            raise
        finally:
            with self._lock:
                self._active.pop(mode, None)

    def current_run(self, mode: DetectionMode) -> Optional[DetectionRun]:
        with self._lock:
            return self._active.get(mode)

    def is_detecting(self, mode: Optional[DetectionMode] = None) -> bool:
        with self._lock:
            return bool(self._active) if mode is None else mode in self._active

    def cancel(self, mode: Optional[DetectionMode] = None) -> None:
        """Request cancellation of the active run(s); safe to call repeatedly."""
        with self._lock:
            runs = list(self._active.values()) if mode is None else \
                [r for m, r in self._active.items() if m is mode]
        for run in runs:
            if not run.cancelled:
                logger.info("Cancelling %s detection", run.mode.value)
            run.cancel()

    # ------------------------------------------------------------- duplicate

    def run_duplicate_detection(self, files: Sequence[FileDescriptor],
                                on_progress: Optional[ProgressCallback] = None) -> DuplicateResult:
        with self._run(DetectionMode.DUPLICATE) as run:
            candidates = [f for f in _unique_by_path(files) if f.size > 0]
            skipped = len(files) - len(candidates)
            if skipped:
                logger.debug("Skipping %d empty or repeated entries", skipped)
            files_by_path = {f.path: f for f in candidates}
            paths = list(files_by_path)

            def report(current: int, total: int, path: Path) -> None:
                phase = "Quick scan" if current < len(paths) else "Verifying"
                pct = DetectionProgress(current, total, "").percentage
                _emit(on_progress, current, total, f"{phase}... ({pct}%)", str(path))

            buckets = self.hasher.two_phase_group(paths, report, run.token)
            groups = build_duplicate_groups(buckets, files_by_path)
            result = DuplicateResult(groups=groups, scan_time_ms=run.elapsed_ms,
                                     cancelled=run.cancelled)
            logger.info("Duplicate detection %s: %d groups, %d files, %d bytes reclaimable",
                        "cancelled" if run.cancelled else "complete",
                        len(groups), result.total_duplicates, result.total_waste_size)
            return result

    # ------------------------------------------------------------ similarity

    def run_similarity_detection(self, files: Sequence[FileDescriptor],
                                 options: Optional[SimilarityOptions] = None,
                                 on_progress: Optional[ProgressCallback] = None) -> SimilarityResult:
        options = options or SimilarityOptions()
        scorer = SimilarityScorer.for_options(options, self.weights)
        with self._run(DetectionMode.SIMILARITY) as run:
            token = run.token
            files = _unique_by_path(files)
            n = len(files)

            # Phase 1: metadata prefilter
            candidates = self._prefilter(files, scorer, options.threshold, token, on_progress)

            unique: List[FileDescriptor] = []
            if scorer.is_enabled("visual"):
                unique = _unique_by_path([f for pair in candidates for f in pair])
            steps = n + len(unique) + len(candidates)
            _emit(on_progress, n, steps,
                  f"Prefilter complete, {len(candidates)} candidate pairs")

            # Phase 2: fingerprints for files that survived the prefilter
            fingerprints: Dict[Path, Fingerprint] = {}
            if unique and not token.cancelled:
                fingerprints = self._fingerprint_all(unique, options.frame_count, token,
                                                     on_progress, n, steps)

            # Phase 3: full scoring
            pairs: List[SimilarPair] = []
            offset = n + len(unique)
            for p, (a, b) in enumerate(candidates):
                if token.cancelled:
                    logger.info("Scoring cancelled after %d of %d pairs", p, len(candidates))
                    break
                _emit(on_progress, offset + p, steps, "Scoring similarity...",
                      f"{a.name} vs {b.name}")
                visual = 0.0
                if scorer.is_enabled("visual"):
                    fp_a = fingerprints.get(a.path)
                    fp_b = fingerprints.get(b.path)
                    if not fp_a or not fp_b:
                        continue
                    visual = scorer.visual(fp_a, fp_b)
                score = scorer.overall(a, b, visual)
                if score.overall >= options.threshold:
                    pairs.append(SimilarPair(a, b, score))

            groups = build_similar_groups(pairs)
            result = SimilarityResult(groups=groups, scan_time_ms=run.elapsed_ms,
                                      threshold=options.threshold, cancelled=run.cancelled)
            logger.info("Similarity detection %s: %d candidate pairs, %d accepted, %d groups",
                        "cancelled" if run.cancelled else "complete",
                        len(candidates), len(pairs), len(groups))
            return result

    def _prefilter(self, files: Sequence[FileDescriptor], scorer: SimilarityScorer,
                   threshold: float, token: CancellationToken,
                   on_progress: Optional[ProgressCallback] = None) -> List[CandidatePair]:
        """All unordered pairs passing the metadata-only check, one progress event per row."""
        min_threshold = scorer.prefilter_threshold(threshold)
        candidates: List[CandidatePair] = []
        for i, a in enumerate(files):
            _emit(on_progress, i, len(files), "Prefiltering...", a.name)
            for b in files[i + 1:]:
                if token.cancelled:
                    logger.info("Prefilter cancelled with %d candidate pairs", len(candidates))
                    return candidates
                if scorer.prefilter(a, b, min_threshold):
                    candidates.append((a, b))
        logger.debug("Prefilter kept %d of %d pairs", len(candidates),
                     len(files) * (len(files) - 1) // 2)
        return candidates

    def _fingerprint_all(self, files: Sequence[FileDescriptor], frame_count: int,
                         token: CancellationToken, on_progress: Optional[ProgressCallback],
                         offset: int, total: int) -> Dict[Path, Fingerprint]:
        """
        Fingerprint files with at most `fingerprint_concurrency` in flight.

        Units that have not started when cancellation is requested never
        start; units already running finish and their results are kept.
        """
        def unit(f: FileDescriptor) -> Optional[Fingerprint]:
            if token.cancelled:
                return None
            return self.extractor.fingerprint(f.path, frame_count)

        results: Dict[Path, Fingerprint] = {}
        with ThreadPoolExecutor(max_workers=self.fingerprint_concurrency,
                                thread_name_prefix="fingerprint") as pool:
            futures = {pool.submit(unit, f): f for f in files}
            for fut in as_completed(futures):
                if fut.cancelled():
                    continue
                fp = fut.result()
                if fp is None:
                    continue
                f = futures[fut]
                results[f.path] = fp
                _emit(on_progress, offset + len(results), total,
                      "Extracting video fingerprints...", f.name)
                if token.cancelled:
                    for pending in futures:
                        pending.cancel()
        failed = sum(1 for fp in results.values() if not fp)
        if failed:
            logger.warning("%d of %d files produced no fingerprint", failed, len(results))
        return results
