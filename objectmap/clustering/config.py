"""
Object Clustering Configuration
===============================

Validated configuration for the incremental object clustering functor.

All dataclasses validate in ``__post_init__`` and raise ``ConfigError`` with
a readable message. Configs can be built from nested dicts / JSON files and
are validated once when the functor is constructed.

Author: Orion Research Team
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from objectmap.semantic.metrics import METRICS
from objectmap.semantic.tasks import TaskSet

logger = logging.getLogger(__name__)

ORACLES = ("information_bottleneck", "single_cluster")


class ConfigError(ValueError):
    """Raised when a configuration value is invalid."""


def _from_dict(cls, data: Dict[str, Any], nested: Dict[str, Any]):
    if not isinstance(data, dict):
        raise ConfigError(f"{cls.__name__} expects a mapping, got {type(data).__name__}")

    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {', '.join(sorted(unknown))}")

    kwargs = dict(data)
    for key, sub_cls in nested.items():
        if kwargs.get(key) is not None:
            kwargs[key] = sub_cls.from_dict(kwargs[key])
    return cls(**kwargs)


@dataclass
class OverlapConfig:
    """Bounding-box overlap test between segments."""

    tolerance: float = 0.0
    """Distance every box is grown by before testing (negative shrinks)."""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "OverlapConfig":
        return _from_dict(cls, data, {})


@dataclass
class PyGivenXConfig:
    """How task scores become the conditional distribution p(y|x)."""

    temperature: float = 0.1
    """Softmax temperature applied to task scores."""

    def __post_init__(self):
        if self.temperature <= 0:
            raise ConfigError(f"temperature must be > 0, got {self.temperature}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PyGivenXConfig":
        return _from_dict(cls, data, {})


@dataclass
class SelectorConfig:
    """Stopping rule for agglomerative information-bottleneck merges."""

    max_delta: float = 0.05
    """Largest normalized information loss a single merge may cost."""

    py_x: PyGivenXConfig = field(default_factory=PyGivenXConfig)

    def __post_init__(self):
        if self.max_delta < 0:
            raise ConfigError(f"max_delta must be >= 0, got {self.max_delta}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SelectorConfig":
        return _from_dict(cls, data, {"py_x": PyGivenXConfig})


@dataclass
class TaskConfig:
    """Task embeddings, inline or from a ``.npy`` file."""

    names: List[str] = field(default_factory=list)
    embeddings: List[List[float]] = field(default_factory=list)
    path: Optional[str] = None

    def __post_init__(self):
        if self.embeddings and self.path:
            raise ConfigError("TaskConfig takes either 'embeddings' or 'path', not both")
        if self.embeddings:
            dims = {len(row) for row in self.embeddings}
            if len(dims) != 1 or 0 in dims:
                raise ConfigError("task embeddings must be non-empty rows of equal length")
            if self.names and len(self.names) != len(self.embeddings):
                raise ConfigError(
                    f"got {len(self.names)} task names for {len(self.embeddings)} embeddings"
                )

    def create(self) -> TaskSet:
        if self.path:
            path = Path(self.path).expanduser()
            if not path.exists():
                raise ConfigError(f"task embedding file not found: {path}")
            try:
                return TaskSet.from_file(path, self.names or None)
            except ValueError as exc:
                raise ConfigError(str(exc)) from exc

        if not self.embeddings:
            raise ConfigError("TaskConfig requires 'embeddings' or 'path'")
        return TaskSet(self.embeddings, self.names or None)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TaskConfig":
        return _from_dict(cls, data, {})


@dataclass
class ObjectUpdateConfig:
    """Top-level configuration of the object clustering functor."""

    prefix: str = "O"
    """Category key of object node ids."""

    edge_checker: Optional[OverlapConfig] = None
    """Segment connectivity test (defaults to zero-tolerance overlap)."""

    tasks: TaskConfig = field(default_factory=TaskConfig)

    metric: Optional[str] = None
    """Embedding metric name (defaults to cosine)."""

    selector: SelectorConfig = field(default_factory=SelectorConfig)

    oracle: str = "information_bottleneck"
    """Clustering oracle used to split each connected component."""

    min_segment_score: float = 0.0
    """Segments scoring below this are ignored permanently."""

    min_object_score: float = 0.0
    """Clusters scoring below this do not become objects."""

    neighbor_max_distance: float = 0.0
    """Distance above which place attachment is reported (0 disables)."""

    def __post_init__(self):
        if not isinstance(self.prefix, str) or len(self.prefix) != 1:
            raise ConfigError(f"prefix must be a single character, got {self.prefix!r}")

        if self.metric is not None and self.metric.lower() not in METRICS:
            raise ConfigError(f"Invalid metric: {self.metric}. Must be one of {sorted(METRICS)}")

        if self.oracle not in ORACLES:
            raise ConfigError(f"Invalid oracle: {self.oracle}. Must be one of {ORACLES}")

        if self.neighbor_max_distance < 0:
            raise ConfigError(
                f"neighbor_max_distance must be >= 0, got {self.neighbor_max_distance}"
            )

        logger.debug(
            f"ObjectUpdateConfig validated: prefix={self.prefix}, metric={self.metric or 'cosine'}, "
            f"min_segment_score={self.min_segment_score}, min_object_score={self.min_object_score}"
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ObjectUpdateConfig":
        return _from_dict(
            cls,
            data,
            {"edge_checker": OverlapConfig, "tasks": TaskConfig, "selector": SelectorConfig},
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_config(path: Path) -> ObjectUpdateConfig:
    """Load and validate an ``ObjectUpdateConfig`` from a JSON file."""
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Configuration file at {path} is not valid JSON: {exc}") from exc

    try:
        return ObjectUpdateConfig.from_dict(raw)
    except TypeError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def get_default_config(tasks: Optional[TaskConfig] = None) -> ObjectUpdateConfig:
    """
    Default mode: cosine scoring, conservative merges

    Use for task-driven mapping where irrelevant segments should be dropped
    """
    return ObjectUpdateConfig(
        tasks=tasks or TaskConfig(),
        selector=SelectorConfig(max_delta=0.05),
        min_segment_score=0.2,
        min_object_score=0.25,
        neighbor_max_distance=5.0,
    )


def get_permissive_config(tasks: Optional[TaskConfig] = None) -> ObjectUpdateConfig:
    """
    Permissive mode: keep everything, merge whole components

    Use for debugging connectivity without semantic filtering
    """
    return ObjectUpdateConfig(
        tasks=tasks or TaskConfig(),
        oracle="single_cluster",
        min_segment_score=float("-inf"),
        min_object_score=float("-inf"),
    )


__all__ = [
    "ConfigError",
    "OverlapConfig",
    "PyGivenXConfig",
    "SelectorConfig",
    "TaskConfig",
    "ObjectUpdateConfig",
    "load_config",
    "get_default_config",
    "get_permissive_config",
]
