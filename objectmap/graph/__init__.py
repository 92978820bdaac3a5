"""Layered scene graph, nearest-node lookup and component search."""

from .types import (
    BoundingBox,
    Layer,
    NodeAttributes,
    NodeSymbol,
    ObjectAttributes,
    PlaceAttributes,
    SegmentAttributes,
    SemanticNodeAttributes,
    UpdateInfo,
    node_label,
)
from .scene_graph import GraphConsistencyError, LayeredSceneGraph, SceneGraphLayer, SceneGraphNode
from .nearest import NearestNodeFinder
from .components import get_connected_components

__all__ = [
    "BoundingBox",
    "Layer",
    "NodeAttributes",
    "NodeSymbol",
    "ObjectAttributes",
    "PlaceAttributes",
    "SegmentAttributes",
    "SemanticNodeAttributes",
    "UpdateInfo",
    "node_label",
    "GraphConsistencyError",
    "LayeredSceneGraph",
    "SceneGraphLayer",
    "SceneGraphNode",
    "NearestNodeFinder",
    "get_connected_components",
]
