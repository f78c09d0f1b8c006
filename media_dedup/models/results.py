#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Result records produced by duplicate and similarity detection runs.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

from ..config import DEFAULT_FRAME_COUNT, DEFAULT_SIMILARITY_THRESHOLD
from .file_descriptor import FileDescriptor


@dataclass(frozen=True)
class SimilarityScore:
    """Per-dimension similarity in [0, 1]; overall is the scorer's weighted sum."""
    duration: float
    resolution: float
    file_size: float
    visual: float
    overall: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "duration": round(self.duration, 4),
            "resolution": round(self.resolution, 4),
            "file_size": round(self.file_size, 4),
            "visual": round(self.visual, 4),
            "overall": round(self.overall, 4),
        }


@dataclass(frozen=True)
class SimilarPair:
    file1: FileDescriptor
    file2: FileDescriptor
    similarity: SimilarityScore

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file1": str(self.file1.path),
            "file2": str(self.file2.path),
            "similarity": self.similarity.to_dict(),
        }


@dataclass(frozen=True)
class DuplicateGroup:
    """Files sharing one full-content digest."""
    id: str
    digest: str
    files: Tuple[FileDescriptor, ...]
    representative: FileDescriptor

    @property
    def total_size(self) -> int:
        return sum(f.size for f in self.files)

    @property
    def waste_size(self) -> int:
        return self.total_size - self.representative.size

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "digest": self.digest,
            "files": [f.to_dict() for f in self.files],
            "representative": str(self.representative.path),
            "total_size": self.total_size,
            "waste_size": self.waste_size,
        }


@dataclass(frozen=True)
class SimilarGroup:
    """Transitive closure of accepted similar pairs."""
    id: str
    files: Tuple[FileDescriptor, ...]
    pairs: Tuple[SimilarPair, ...]

    @property
    def average_similarity(self) -> float:
        if not self.pairs:
            return 0.0
        return sum(p.similarity.overall for p in self.pairs) / len(self.pairs)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "files": [f.to_dict() for f in self.files],
            "average_similarity": round(self.average_similarity, 4),
            "pairs": [p.to_dict() for p in self.pairs],
        }


@dataclass(frozen=True)
class SimilarityOptions:
    """Caller-tunable options for a similarity run."""
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    check_duration: bool = True
    check_resolution: bool = True
    check_file_size: bool = True
    check_visual: bool = True
    frame_count: int = DEFAULT_FRAME_COUNT

    def __post_init__(self):
        if not 0.0 < self.threshold <= 1.0:
            raise ValueError(f"threshold must be in (0, 1], got {self.threshold}")
        if self.frame_count < 1:
            raise ValueError(f"frame_count must be positive, got {self.frame_count}")
        if not (self.check_duration or self.check_resolution
                or self.check_file_size or self.check_visual):
            raise ValueError("At least one similarity dimension must be enabled")


@dataclass
class DuplicateResult:
    groups: List[DuplicateGroup] = field(default_factory=list)
    scan_time_ms: int = 0
    cancelled: bool = False

    @property
    def total_duplicates(self) -> int:
        return sum(len(g.files) for g in self.groups)

    @property
    def total_waste_size(self) -> int:
        return sum(g.waste_size for g in self.groups)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "total_duplicates": self.total_duplicates,
            "total_waste_size": self.total_waste_size,
            "scan_time_ms": self.scan_time_ms,
            "cancelled": self.cancelled,
        }


@dataclass
class SimilarityResult:
    groups: List[SimilarGroup] = field(default_factory=list)
    scan_time_ms: int = 0
    threshold: float = DEFAULT_SIMILARITY_THRESHOLD
    cancelled: bool = False

    @property
    def total_similar_files(self) -> int:
        return len({f.path for g in self.groups for f in g.files})

    def to_dict(self) -> Dict[str, Any]:
        return {
            "groups": [g.to_dict() for g in self.groups],
            "total_similar_files": self.total_similar_files,
            "scan_time_ms": self.scan_time_ms,
            "threshold": self.threshold,
            "cancelled": self.cancelled,
        }
