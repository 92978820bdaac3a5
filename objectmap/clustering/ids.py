"""Reusable integer ids for connected components."""

from __future__ import annotations

from collections import deque
from typing import Deque


class IdTracker:
    """
    Hands out increasing ids and recycles released ones, oldest first.

    Only ids below the counter can be released, so the free list never holds
    an id the counter has not issued yet.
    """

    def __init__(self, start: int = 0):
        self._next = start
        self._unused: Deque[int] = deque()

    def next(self) -> int:
        if self._unused:
            return self._unused.popleft()

        new_id = self._next
        self._next += 1
        return new_id

    def mark_free(self, idx: int) -> bool:
        if idx >= self._next or idx in self._unused:
            return False

        self._unused.append(idx)
        return True

    release = mark_free

    @property
    def counter(self) -> int:
        return self._next

    @property
    def num_free(self) -> int:
        return len(self._unused)

    def __repr__(self) -> str:
        return f"IdTracker(next={self._next}, free={list(self._unused)})"
