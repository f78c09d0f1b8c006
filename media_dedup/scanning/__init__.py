"""Hashing, fingerprinting and discovery modules for the media deduplication engine."""

from .hasher import ContentHasher
from .fingerprint import EMPTY_FINGERPRINT, FingerprintExtractor, hamdist
from .media import FFmpegFrameDecoder, FFprobeMediaProbe, FrameDecoder, MediaInfo, MediaProbe
from .discovery import describe_file, discover_video_files

__all__ = [
    'ContentHasher',
    'FingerprintExtractor',
    'EMPTY_FINGERPRINT',
    'hamdist',
    'FFmpegFrameDecoder',
    'FFprobeMediaProbe',
    'FrameDecoder',
    'MediaInfo',
    'MediaProbe',
    'describe_file',
    'discover_video_files',
]
