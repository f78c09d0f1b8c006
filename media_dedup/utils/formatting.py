#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Human-readable formatting helpers for CLI reports.
"""

from typing import Optional

from ..models.file_descriptor import FileDescriptor


def format_size(num_bytes: int) -> str:
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 ** 2:
        return f"{num_bytes / 1024:.2f} KB"
    if num_bytes < 1024 ** 3:
        return f"{num_bytes / 1024 ** 2:.2f} MB"
    return f"{num_bytes / 1024 ** 3:.2f} GB"


def format_resolution(f: FileDescriptor) -> Optional[str]:
    if f.width and f.height:
        return f"{f.width}x{f.height}"
    return None
