"""Data models for the media deduplication engine."""

from .file_descriptor import FileDescriptor
from .progress import DetectionProgress, ProgressCallback
from .results import (
    DuplicateGroup, DuplicateResult, SimilarGroup, SimilarityOptions,
    SimilarityResult, SimilarityScore, SimilarPair,
)

__all__ = [
    'FileDescriptor',
    'DetectionProgress',
    'ProgressCallback',
    'DuplicateGroup',
    'DuplicateResult',
    'SimilarGroup',
    'SimilarityOptions',
    'SimilarityResult',
    'SimilarityScore',
    'SimilarPair',
]
