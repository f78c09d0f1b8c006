#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Content hashing for exact-duplicate detection.

Two passes keep full reads rare: a fast digest over bounded head/middle/tail
windows buckets candidates, and only files that share a fast digest are
streamed end to end for the authoritative full digest.
"""

import hashlib
import logging
import os
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ..config import FAST_HASH_CHUNK_SIZE, FULL_HASH_BLOCK_SIZE
from ..utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

HashProgress = Callable[[int, int, Path], None]


class ContentHasher:
    """Fast and full MD5 content digests plus two-phase grouping."""

    def __init__(self, chunk_size: int = FAST_HASH_CHUNK_SIZE,
                 block_size: int = FULL_HASH_BLOCK_SIZE):
        if chunk_size <= 0 or block_size <= 0:
            raise ValueError("chunk_size and block_size must be positive")
        self.chunk_size = chunk_size
        self.block_size = block_size

    def fast_digest(self, path: Path) -> str:
        """Partial hash of head, middle and tail windows plus the decimal size."""
        chunk = self.chunk_size
        h = hashlib.md5()
        with open(path, 'rb') as f:
            size = os.fstat(f.fileno()).st_size
            h.update(f.read(chunk))
            if size > chunk * 3:
                f.seek(size // 2 - chunk // 2)
                h.update(f.read(chunk))
            if size > chunk * 2:
                f.seek(size - chunk)
                h.update(f.read(chunk))
        h.update(str(size).encode('ascii'))
        return h.hexdigest()

    def full_digest(self, path: Path) -> str:
        """Stream the whole file through MD5."""
        h = hashlib.md5()
        with open(path, 'rb') as f:
            for block in iter(lambda: f.read(self.block_size), b""):
                h.update(block)
        return h.hexdigest()

    def two_phase_group(self, paths: Sequence[Path],
                        on_progress: Optional[HashProgress] = None,
                        token: Optional[CancellationToken] = None) -> Dict[str, List[Path]]:
        """
        Group paths by full digest, hashing fully only fast-digest collisions.

        Args:
            paths: Files to examine
            on_progress: Called as (current, total, path) before each file is hashed
            token: Checked before each file; once cancelled no new file is read

        Returns:
            Mapping of full digest to the paths sharing it (2 or more each)
        """
        total = len(paths)
        fast_buckets: Dict[str, List[Path]] = {}

        # Phase 1: fast digests
        for i, path in enumerate(paths):
            if token is not None and token.cancelled:
                logger.info("Fast hashing cancelled after %d of %d files", i, total)
                return {}
            if on_progress:
                on_progress(i, total * 2, path)
            try:
                digest = self.fast_digest(path)
            except OSError as e:
                logger.warning("Fast hash failed for %s: %s", path, e)
                continue
            fast_buckets.setdefault(digest, []).append(path)

        suspicious = [p for bucket in fast_buckets.values() if len(bucket) > 1 for p in bucket]
        logger.debug("Fast hashing bucketed %d files, %d need full verification",
                     total, len(suspicious))

        # Phase 2: full digests for fast-digest collisions only
        full_buckets: Dict[str, List[Path]] = {}
        for j, path in enumerate(suspicious):
            if token is not None and token.cancelled:
                logger.info("Full hashing cancelled after %d of %d files", j, len(suspicious))
                break
            if on_progress:
                on_progress(total + j, total + len(suspicious), path)
            try:
                digest = self.full_digest(path)
            except OSError as e:
                logger.warning("Full hash failed for %s: %s", path, e)
                continue
            full_buckets.setdefault(digest, []).append(path)

        return {digest: bucket for digest, bucket in full_buckets.items() if len(bucket) > 1}
