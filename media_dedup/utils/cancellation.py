#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Cooperative cancellation shared between a run and its work units.
"""

import threading


class CancellationToken:
    """Flag checked before each unit of work and after each blocking call."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
