#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Time utility functions for the media deduplication engine.
"""

from datetime import datetime, timezone


def utc_now_str() -> str:
    """Return current UTC time in ISO-8601 format with 'Z'."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def format_elapsed(ms: int) -> str:
    """Render a millisecond duration as '850 ms', '12.3 s' or '4m 05s'."""
    if ms < 1000:
        return f"{ms} ms"
    seconds = ms / 1000
    if seconds < 60:
        return f"{seconds:.1f} s"
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}m {secs:02d}s"
