"""
Scene Graph Data Types
======================

Typed node attributes and identifiers shared by the layered scene graph.

Node attributes form a small hierarchy:
    NodeAttributes → SemanticNodeAttributes → SegmentAttributes / ObjectAttributes
    NodeAttributes → PlaceAttributes

Clustering and scoring only rely on the "semantic" capability (position,
semantic feature, bounding box), never on a concrete leaf class.

Author: Orion Research Team
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Optional

import numpy as np


class Layer(IntEnum):
    """Scene graph layers, ordered bottom-up."""
    SEGMENTS = 1
    OBJECTS = 2
    PLACES = 3


class NodeSymbol:
    """
    Integer node id with a one-character category key.

    The key lives in the top byte and the index in the remaining 56 bits,
    so ``NodeSymbol("O", 3).value`` is a plain int usable as a graph key.
    """

    INDEX_BITS = 56
    INDEX_MASK = (1 << INDEX_BITS) - 1

    def __init__(self, key: str, index: int = 0):
        if len(key) != 1:
            raise ValueError(f"NodeSymbol key must be a single character, got '{key}'")
        if index < 0 or index > self.INDEX_MASK:
            raise ValueError(f"NodeSymbol index out of range: {index}")
        self.key = key
        self.index = index

    @classmethod
    def from_id(cls, node_id: int) -> "NodeSymbol":
        return cls(chr(node_id >> cls.INDEX_BITS), node_id & cls.INDEX_MASK)

    @property
    def value(self) -> int:
        return (ord(self.key) << self.INDEX_BITS) | self.index

    @property
    def label(self) -> str:
        return f"{self.key}{self.index}"

    def __int__(self) -> int:
        return self.value

    def __add__(self, offset: int) -> "NodeSymbol":
        return NodeSymbol(self.key, self.index + offset)

    def __eq__(self, other) -> bool:
        if isinstance(other, NodeSymbol):
            return self.value == other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"NodeSymbol({self.label})"


def node_label(node_id: int) -> str:
    """Readable label for an integer node id (falls back to the raw int)."""
    key = node_id >> NodeSymbol.INDEX_BITS
    if 32 < key < 127:
        return NodeSymbol.from_id(node_id).label
    return str(node_id)


@dataclass
class BoundingBox:
    """Axis-aligned 3D bounding box given by its min and max corners."""
    min: np.ndarray
    max: np.ndarray

    def __post_init__(self):
        self.min = np.asarray(self.min, dtype=float).reshape(3)
        self.max = np.asarray(self.max, dtype=float).reshape(3)

    @property
    def center(self) -> np.ndarray:
        return 0.5 * (self.min + self.max)

    @property
    def dimensions(self) -> np.ndarray:
        return self.max - self.min

    def expanded(self, amount: float) -> "BoundingBox":
        return BoundingBox(self.min - amount, self.max + amount)

    def merge(self, other: "BoundingBox") -> None:
        """Grow in place to also cover ``other``."""
        self.min = np.minimum(self.min, other.min)
        self.max = np.maximum(self.max, other.max)


@dataclass
class NodeAttributes:
    """Attributes every graph node carries."""
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    is_active: bool = False

    def __post_init__(self):
        self.position = np.asarray(self.position, dtype=float).reshape(3)

    def clone(self) -> "NodeAttributes":
        return copy.deepcopy(self)


@dataclass
class PlaceAttributes(NodeAttributes):
    """Spatial anchor. ``is_active`` marks a place that is still being revised."""
    distance: float = 0.0


@dataclass
class SemanticNodeAttributes(NodeAttributes):
    """Node with a semantic feature and spatial extent."""
    semantic_feature: np.ndarray = field(default_factory=lambda: np.zeros((0, 1)))
    bounding_box: BoundingBox = field(
        default_factory=lambda: BoundingBox(np.zeros(3), np.zeros(3))
    )
    name: str = ""
    first_observed_ns: int = 0
    last_observed_ns: int = 0

    def __post_init__(self):
        super().__post_init__()
        feature = np.asarray(self.semantic_feature, dtype=float)
        if feature.ndim == 1:
            # single sample stored as a column
            feature = feature.reshape(-1, 1)
        self.semantic_feature = feature

    @property
    def mean_feature(self) -> np.ndarray:
        """Feature reduced to a single vector by averaging over samples."""
        return self.semantic_feature.mean(axis=1)


@dataclass
class SegmentAttributes(SemanticNodeAttributes):
    """Low-level observation produced by the front end."""


@dataclass
class ObjectAttributes(SemanticNodeAttributes):
    """Object materialized from a cluster of segments."""
    num_segments: int = 1

    @classmethod
    def from_semantic(cls, attrs: SemanticNodeAttributes) -> "ObjectAttributes":
        return cls(
            position=attrs.position.copy(),
            is_active=attrs.is_active,
            semantic_feature=attrs.semantic_feature.copy(),
            bounding_box=BoundingBox(attrs.bounding_box.min.copy(), attrs.bounding_box.max.copy()),
            name=attrs.name,
            first_observed_ns=attrs.first_observed_ns,
            last_observed_ns=attrs.last_observed_ns,
        )


@dataclass
class UpdateInfo:
    """Per-cycle information handed to update functors."""
    timestamp_ns: int = 0
    cycle: Optional[int] = None


__all__ = [
    "Layer",
    "NodeSymbol",
    "node_label",
    "BoundingBox",
    "NodeAttributes",
    "PlaceAttributes",
    "SemanticNodeAttributes",
    "SegmentAttributes",
    "ObjectAttributes",
    "UpdateInfo",
]
