#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
File discovery for the command-line front end.
Walks a directory for video files and describes each one with the media probe.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from ..config import VIDEO_EXT
from ..errors import ProbeError
from ..models.file_descriptor import FileDescriptor
from .media import MediaInfo, MediaProbe

logger = logging.getLogger(__name__)


def describe_file(path: Path, probe: Optional[MediaProbe] = None) -> FileDescriptor:
    """Build a descriptor from stat() plus probe metadata (unknown on probe failure)."""
    st = path.stat()
    info = MediaInfo()
    if probe is not None:
        try:
            info = probe.probe(path)
        except ProbeError as e:
            logger.warning("Probe failed for %s: %s", path, e)
    return FileDescriptor(
        path=path,
        size=st.st_size,
        modified_time=st.st_mtime,
        width=info.width,
        height=info.height,
        duration_seconds=info.duration,
        extension=path.suffix.lower(),
    )


def _scan(path: Path, recursive: bool, found: List[Path]) -> None:
    try:
        with os.scandir(path) as entries:
            for entry in entries:
                try:
                    if entry.is_file():
                        if Path(entry.name).suffix.lower() in VIDEO_EXT:
                            found.append(Path(entry.path))
                    elif recursive and entry.is_dir(follow_symlinks=False):
                        _scan(Path(entry.path), recursive, found)
                except OSError as e:
                    logger.warning("Skipping %s: %s", entry.path, e)
    except OSError as e:
        logger.warning("Cannot list %s: %s", path, e)


def discover_video_files(root: Path, probe: Optional[MediaProbe] = None,
                         recursive: bool = True) -> List[FileDescriptor]:
    """
    Find video files under root and describe them.

    Args:
        root: Directory to scan
        probe: Media probe used for width/height/duration; None leaves them unknown
        recursive: Descend into sub-directories

    Returns:
        Descriptors in sorted path order
    """
    found: List[Path] = []
    _scan(Path(root), recursive, found)

    descriptors = []
    for path in sorted(found):
        try:
            descriptors.append(describe_file(path, probe))
        except OSError as e:
            logger.warning("Cannot stat %s: %s", path, e)
    logger.info("Discovered %d video files in %s", len(descriptors), root)
    return descriptors
