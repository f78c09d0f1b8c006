#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Weighted multi-dimensional similarity between two video files.

Every dimension function is symmetric in its two inputs and returns a value in
[0, 1]. The cheap metadata-only prefilter keeps clearly dissimilar pairs away
from fingerprint extraction.
"""

import math
from typing import Dict, Mapping, Optional, Sequence

from .config import (
    DEFAULT_WEIGHTS, DURATION_TOLERANCE, FILE_SIZE_TOLERANCE, PHASH_BITS, PREFILTER_RATIO,
)
from .errors import InvalidWeightsError
from .models.file_descriptor import FileDescriptor
from .models.results import SimilarityOptions, SimilarityScore
from .scanning.fingerprint import hamdist

DIMENSIONS = ("duration", "resolution", "file_size", "visual")


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _relative_falloff(a: float, b: float, tolerance: float) -> float:
    """1 within tolerance of the mean, then 1 - ratio down to 0 at ratio >= 1."""
    avg = (a + b) / 2
    if avg == 0:
        return 1.0
    ratio = abs(a - b) / avg
    if ratio <= tolerance:
        return 1.0
    if ratio >= 1:
        return 0.0
    return 1.0 - ratio


def duration_similarity(d1: Optional[float], d2: Optional[float],
                        tolerance: float = DURATION_TOLERANCE) -> float:
    if not d1 or not d2 or d1 < 0 or d2 < 0:
        return 0.0
    return _relative_falloff(d1, d2, tolerance)


def resolution_similarity(w1: Optional[int], h1: Optional[int],
                          w2: Optional[int], h2: Optional[int]) -> float:
    if not w1 or not h1 or not w2 or not h2:
        return 0.0
    pixels1 = w1 * h1
    pixels2 = w2 * h2
    return min(pixels1, pixels2) / max(pixels1, pixels2)


def file_size_similarity(s1: int, s2: int, tolerance: float = FILE_SIZE_TOLERANCE) -> float:
    return _relative_falloff(s1, s2, tolerance)


def visual_similarity(fp1: Sequence[int], fp2: Sequence[int], bit_width: int = PHASH_BITS) -> float:
    """1 - mean Hamming distance / bit width over the common prefix of two fingerprints."""
    n = min(len(fp1), len(fp2))
    if n == 0:
        return 0.0
    total = sum(hamdist(a, b) for a, b in zip(fp1[:n], fp2[:n]))
    return _clamp(1.0 - (total / n) / bit_width)


def validate_weights(weights: Mapping[str, float]) -> Dict[str, float]:
    unknown = set(weights) - set(DIMENSIONS)
    if unknown:
        raise InvalidWeightsError(f"Unknown similarity dimensions: {sorted(unknown)}")
    missing = set(DIMENSIONS) - set(weights)
    if missing:
        raise InvalidWeightsError(f"Missing similarity dimensions: {sorted(missing)}")
    if any(w < 0 for w in weights.values()):
        raise InvalidWeightsError(f"Weights must be non-negative: {dict(weights)}")
    if not math.isclose(sum(weights.values()), 1.0, abs_tol=1e-9):
        raise InvalidWeightsError(f"Weights must sum to 1, got {sum(weights.values())}")
    return {d: float(weights[d]) for d in DIMENSIONS}


class SimilarityScorer:
    """Scores pairs of files with a fixed weighted sum of four dimensions."""

    def __init__(self, weights: Optional[Mapping[str, float]] = None,
                 duration_tolerance: float = DURATION_TOLERANCE,
                 file_size_tolerance: float = FILE_SIZE_TOLERANCE,
                 bit_width: int = PHASH_BITS):
        self.weights = validate_weights(weights if weights is not None else DEFAULT_WEIGHTS)
        self.duration_tolerance = duration_tolerance
        self.file_size_tolerance = file_size_tolerance
        self.bit_width = bit_width

    @classmethod
    def for_options(cls, options: SimilarityOptions,
                    weights: Optional[Mapping[str, float]] = None) -> "SimilarityScorer":
        """Drop disabled dimensions and renormalise the remaining weights."""
        base = validate_weights(weights if weights is not None else DEFAULT_WEIGHTS)
        enabled = {
            "duration": options.check_duration,
            "resolution": options.check_resolution,
            "file_size": options.check_file_size,
            "visual": options.check_visual,
        }
        kept = {d: (w if enabled[d] else 0.0) for d, w in base.items()}
        total = sum(kept.values())
        if total <= 0:
            raise InvalidWeightsError("Enabled similarity dimensions carry no weight")
        return cls({d: w / total for d, w in kept.items()})

    def is_enabled(self, dimension: str) -> bool:
        return self.weights[dimension] > 0

    def dimension_scores(self, file1: FileDescriptor, file2: FileDescriptor) -> Dict[str, float]:
        return {
            "duration": duration_similarity(file1.duration_seconds, file2.duration_seconds,
                                            self.duration_tolerance),
            "resolution": resolution_similarity(file1.width, file1.height,
                                                file2.width, file2.height),
            "file_size": file_size_similarity(file1.size, file2.size, self.file_size_tolerance),
        }

    def visual(self, fp1: Sequence[int], fp2: Sequence[int]) -> float:
        return visual_similarity(fp1, fp2, self.bit_width)

    def overall(self, file1: FileDescriptor, file2: FileDescriptor, visual: float) -> SimilarityScore:
        dims = self.dimension_scores(file1, file2)
        dims["visual"] = visual
        overall = sum(dims[d] * self.weights[d] for d in DIMENSIONS)
        return SimilarityScore(
            duration=dims["duration"],
            resolution=dims["resolution"],
            file_size=dims["file_size"],
            visual=visual,
            overall=_clamp(overall),
        )

    def prefilter(self, file1: FileDescriptor, file2: FileDescriptor, min_threshold: float) -> bool:
        """True when every enabled metadata dimension reaches min_threshold."""
        dims = self.dimension_scores(file1, file2)
        return all(score >= min_threshold
                   for d, score in dims.items() if self.is_enabled(d))

    @staticmethod
    def prefilter_threshold(threshold: float) -> float:
        return threshold * PREFILTER_RATIO
