#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Shared pytest fixtures for the media deduplication engine tests.
"""

import os
from pathlib import Path

import pytest

from media_dedup.models.file_descriptor import FileDescriptor


@pytest.fixture
def write_file(tmp_path):
    """Write bytes to a file under tmp_path, optionally pinning its mtime."""
    def _write(name: str, content: bytes, mtime: float = None) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        if mtime is not None:
            os.utime(path, (mtime, mtime))
        return path
    return _write


@pytest.fixture
def describe():
    """Stat-only descriptor for a file on disk."""
    def _describe(path: Path) -> FileDescriptor:
        st = path.stat()
        return FileDescriptor(path=path, size=st.st_size, modified_time=st.st_mtime,
                              extension=path.suffix.lower())
    return _describe
