#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Global configuration and constants for the media deduplication engine.
"""

import os
from typing import Dict, Set, Tuple

# File type categories
VIDEO_EXT: Set[str] = {
    ".mp4", ".mov", ".avi", ".mkv", ".wmv", ".flv", ".mpeg", ".mpg",
    ".m4v", ".webm", ".ts", ".3gp",
}

# Content hashing
FAST_HASH_CHUNK_SIZE = 64 * 1024  # 64KB head/middle/tail windows
FULL_HASH_BLOCK_SIZE = 1024 * 1024  # 1MB streaming reads

# Fingerprinting
DEFAULT_FRAME_COUNT = 5
FRAME_SIZE: Tuple[int, int] = (320, 240)
PHASH_RASTER = 16  # grayscale downsample is PHASH_RASTER x PHASH_RASTER
PHASH_BITS = 64

# Similarity scoring
DEFAULT_WEIGHTS: Dict[str, float] = {
    "duration": 0.2,
    "resolution": 0.15,
    "file_size": 0.15,
    "visual": 0.5,
}
DURATION_TOLERANCE = 0.05
FILE_SIZE_TOLERANCE = 0.10
PREFILTER_RATIO = 0.6
DEFAULT_SIMILARITY_THRESHOLD = 0.8

# Processing defaults
FINGERPRINT_CONCURRENCY = 2

# External tools (overridable from the environment)
FFMPEG_BIN = os.getenv("MEDIA_DEDUP_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.getenv("MEDIA_DEDUP_FFPROBE", "ffprobe")
TOOL_TIMEOUT_SECONDS = float(os.getenv("MEDIA_DEDUP_TOOL_TIMEOUT_SECONDS", "60"))
