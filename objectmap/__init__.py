"""Incremental segment-to-object clustering for layered scene graphs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("objectmap")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from objectmap.graph import (
    BoundingBox,
    Layer,
    LayeredSceneGraph,
    NodeSymbol,
    ObjectAttributes,
    PlaceAttributes,
    SegmentAttributes,
    UpdateInfo,
)
from objectmap.clustering import (
    ConfigError,
    ObjectUpdateConfig,
    ObjectUpdateFunctor,
    TaskConfig,
    load_config,
)

__all__ = [
    "__version__",
    # Graph
    "BoundingBox",
    "Layer",
    "LayeredSceneGraph",
    "NodeSymbol",
    "ObjectAttributes",
    "PlaceAttributes",
    "SegmentAttributes",
    "UpdateInfo",
    # Clustering
    "ConfigError",
    "ObjectUpdateConfig",
    "ObjectUpdateFunctor",
    "TaskConfig",
    "load_config",
]
