#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Perceptual video fingerprints for the media deduplication engine.
"""

import logging
import math
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import imagehash
from PIL import Image

from ..config import DEFAULT_FRAME_COUNT, FRAME_SIZE, PHASH_BITS, PHASH_RASTER
from ..errors import FrameDecodeError, ProbeError
from .media import FFmpegFrameDecoder, FrameDecoder

logger = logging.getLogger(__name__)

Fingerprint = Tuple[int, ...]
EMPTY_FINGERPRINT: Fingerprint = ()


def hamdist(a: int, b: int) -> int:
    return (a ^ b).bit_count()


class FingerprintExtractor:
    """Samples key frames from a video and reduces each one to a block-mean hash."""

    def __init__(self, decoder: Optional[FrameDecoder] = None,
                 frame_count: int = DEFAULT_FRAME_COUNT,
                 frame_size: Tuple[int, int] = FRAME_SIZE,
                 raster: int = PHASH_RASTER, bits: int = PHASH_BITS):
        grid = math.isqrt(bits)
        if grid * grid != bits or raster % grid != 0:
            raise ValueError(f"{bits}-bit hash needs a square grid dividing a {raster}px raster")
        self.decoder = decoder or FFmpegFrameDecoder()
        self.frame_count = frame_count
        self.frame_size = frame_size
        self.raster = raster
        self.bits = bits
        self.grid = grid

    @contextmanager
    def extract_key_frames(self, path: Path, count: Optional[int] = None) -> Iterator[List[Path]]:
        """
        Decode evenly spaced frames into a private temporary directory.

        The directory and every frame in it are removed when the block exits,
        whether it finishes normally or through an exception.
        """
        if count is None:
            count = self.frame_count
        if count < 1:
            raise ValueError(f"frame count must be positive, got {count}")
        with tempfile.TemporaryDirectory(prefix="video-frames-") as tmp:
            out_dir = Path(tmp)
            frames = [f for f in self.decoder.decode_frames(path, count, out_dir, self.frame_size)
                      if f.is_file()]
            if not frames:
                raise FrameDecodeError(f"No frames extracted from {path}")
            yield frames

    def perceptual_hash(self, frame_path: Path) -> int:
        """Block-mean hash of the grayscale raster, one bit per grid cell."""
        with Image.open(frame_path) as img:
            gray = img.convert("L").resize((self.raster, self.raster), Image.Resampling.LANCZOS)
        h = imagehash.average_hash(gray, hash_size=self.grid)
        return int(str(h), 16)

    def fingerprint(self, path: Path, frame_count: Optional[int] = None) -> Fingerprint:
        """Hash sequence in frame order, or the empty fingerprint on any failure."""
        try:
            with self.extract_key_frames(path, frame_count) as frames:
                return tuple(self.perceptual_hash(f) for f in frames)
        except (FrameDecodeError, ProbeError, OSError) as e:
            logger.warning("Fingerprint extraction failed for %s: %s", path, e)
            return EMPTY_FINGERPRINT
