"""
Stage timing for update cycles.

Durations are accumulated per stage name in one process-wide registry
(``get_profiler``). The CLI writes the registry to JSON with ``--profile``.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Iterator, Optional

logger = logging.getLogger(__name__)


@dataclass
class StageTiming:
    """Running totals for one stage; individual samples are not kept."""
    count: int = 0
    total_time: float = 0.0
    min_time: float = float("inf")
    max_time: float = 0.0
    last_stamp_ns: Optional[int] = None

    def add(self, duration: float, stamp_ns: Optional[int] = None) -> None:
        self.count += 1
        self.total_time += duration
        self.min_time = min(self.min_time, duration)
        self.max_time = max(self.max_time, duration)
        if stamp_ns is not None:
            self.last_stamp_ns = stamp_ns

    @property
    def avg_time(self) -> float:
        return self.total_time / self.count if self.count else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "total_time": self.total_time,
            "avg_time": self.avg_time,
            "min_time": self.min_time if self.count else 0.0,
            "max_time": self.max_time,
            "last_stamp_ns": self.last_stamp_ns,
        }


class Profiler:
    """Stage name → ``StageTiming``. Disabled profilers record nothing."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self.stages: Dict[str, StageTiming] = {}

    def reset(self) -> None:
        self.stages.clear()

    @contextmanager
    def start(self, name: str, stamp_ns: Optional[int] = None) -> Iterator[None]:
        """Time the enclosed block as one run of ``name``."""
        begin = time.perf_counter()
        try:
            yield
        finally:
            elapsed = time.perf_counter() - begin
            self.add_timing(name, elapsed, stamp_ns)
            logger.debug(f"[{name}] stamp={stamp_ns} took {elapsed * 1000:.2f} ms")

    def add_timing(self, name: str, duration: float, stamp_ns: Optional[int] = None) -> None:
        if not self.enabled:
            return
        self.stages.setdefault(name, StageTiming()).add(duration, stamp_ns)

    def get_stats(self) -> Dict[str, Dict[str, Any]]:
        return {name: timing.to_dict() for name, timing in self.stages.items()}

    def save_stats(self, filepath: Path) -> None:
        Path(filepath).write_text(json.dumps(self.get_stats(), indent=2), encoding="utf-8")
        logger.info(f"Profiling stats saved to {filepath}")


_PROFILER = Profiler()


def get_profiler() -> Profiler:
    """The process-wide profiler used by the functor, replay and CLI."""
    return _PROFILER


def profile(name: Optional[str] = None):
    """Decorator timing every call of the wrapped function."""
    def decorator(func):
        stage = name or func.__name__

        @wraps(func)
        def wrapper(*args, **kwargs):
            with get_profiler().start(stage):
                return func(*args, **kwargs)
        return wrapper
    return decorator


__all__ = ["StageTiming", "Profiler", "get_profiler", "profile"]
