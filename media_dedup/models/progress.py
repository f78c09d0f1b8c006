#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Progress snapshots emitted while a detection run is in flight.
"""

from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class DetectionProgress:
    """Ephemeral progress snapshot; never persisted."""
    current: int
    total: int
    message: str
    current_item: Optional[str] = None  # file name or "a vs b" pair label

    @property
    def percentage(self) -> int:
        if self.total <= 0:
            return 0
        return max(0, min(100, (self.current * 100) // self.total))


ProgressCallback = Callable[[DetectionProgress], None]
