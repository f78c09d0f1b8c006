"""Media Deduplication Engine - exact duplicate and visual similarity detection for videos."""

__version__ = "1.0.0"
__author__ = "Media Tool Team"

# Import key classes for convenient top-level access
from .orchestrator import DetectionMode, DetectionOrchestrator, DetectionRun, RunState
from .scanning import ContentHasher, FingerprintExtractor, FFmpegFrameDecoder, FFprobeMediaProbe
from .scoring import SimilarityScorer
from .grouping import DisjointSet, build_duplicate_groups, build_similar_groups
from .models import (
    FileDescriptor, DetectionProgress, DuplicateGroup, DuplicateResult,
    SimilarGroup, SimilarityOptions, SimilarityResult, SimilarityScore, SimilarPair,
)
from .errors import (
    MediaDedupError, ProbeError, FrameDecodeError, RunAlreadyActiveError, InvalidWeightsError,
)

__all__ = [
    # Engine
    'DetectionOrchestrator',
    'DetectionMode',
    'DetectionRun',
    'RunState',

    # Components
    'ContentHasher',
    'FingerprintExtractor',
    'FFmpegFrameDecoder',
    'FFprobeMediaProbe',
    'SimilarityScorer',
    'DisjointSet',
    'build_duplicate_groups',
    'build_similar_groups',

    # Data models
    'FileDescriptor',
    'DetectionProgress',
    'DuplicateGroup',
    'DuplicateResult',
    'SimilarGroup',
    'SimilarityOptions',
    'SimilarityResult',
    'SimilarityScore',
    'SimilarPair',

    # Errors
    'MediaDedupError',
    'ProbeError',
    'FrameDecodeError',
    'RunAlreadyActiveError',
    'InvalidWeightsError',

    # Package metadata
    '__version__',
    '__author__'
]
