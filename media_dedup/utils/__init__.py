"""Utility functions for the media deduplication engine."""

from .cancellation import CancellationToken
from .formatting import format_resolution, format_size
from .time import format_elapsed, utc_now_str

__all__ = ['CancellationToken', 'format_resolution', 'format_size', 'format_elapsed', 'utc_now_str']
