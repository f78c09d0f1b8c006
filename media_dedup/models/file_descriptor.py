#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Data structures for file descriptors handed to the detection engine.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class FileDescriptor:
    """Immutable description of one media file, produced by a directory scan."""
    path: Path
    size: int
    modified_time: float  # seconds since the epoch
    width: Optional[int] = None
    height: Optional[int] = None
    duration_seconds: Optional[float] = None
    extension: str = ""

    @property
    def name(self) -> str:
        return self.path.name

    def to_dict(self) -> Dict[str, Any]:
        """Convert descriptor to a JSON-safe dictionary."""
        return {
            "path": str(self.path),
            "name": self.name,
            "size": self.size,
            "modified_time": self.modified_time,
            "width": self.width,
            "height": self.height,
            "duration_seconds": self.duration_seconds,
            "extension": self.extension,
        }
