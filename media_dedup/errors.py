#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Exception types raised by the detection engine.
"""


class MediaDedupError(Exception):
    """Base class for all engine errors."""


class ProbeError(MediaDedupError):
    """The media probe could not read stream metadata for a file."""


class FrameDecodeError(MediaDedupError):
    """The frame decoder failed or produced no usable frames."""


class RunAlreadyActiveError(MediaDedupError):
    """A detection run was started while another run of the same mode is active."""

    def __init__(self, mode):
        super().__init__(f"A {mode.value} detection run is already active")
        self.mode = mode


class InvalidWeightsError(MediaDedupError, ValueError):
    """Similarity weights are malformed or do not sum to 1."""
