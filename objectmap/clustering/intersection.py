"""
Segment connectivity policies.

A policy decides whether two segments are spatially connected and should be
joined by an edge in the segment layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np

from objectmap.graph.types import SemanticNodeAttributes

from .config import OverlapConfig


class IntersectionPolicy(ABC):
    """Connectivity test between two segments."""

    @abstractmethod
    def call(self, lhs: SemanticNodeAttributes, rhs: SemanticNodeAttributes) -> bool:
        """True if the two segments should be connected."""

    def __call__(self, lhs: SemanticNodeAttributes, rhs: SemanticNodeAttributes) -> bool:
        return self.call(lhs, rhs)


class OverlapIntersection(IntersectionPolicy):
    """Axis-aligned bounding box overlap, with every box grown by ``tolerance``."""

    def __init__(self, config: Optional[OverlapConfig] = None):
        self.config = config or OverlapConfig()

    def call(self, lhs: SemanticNodeAttributes, rhs: SemanticNodeAttributes) -> bool:
        bbox_lhs = lhs.bounding_box.expanded(self.config.tolerance)
        bbox_rhs = rhs.bounding_box.expanded(self.config.tolerance)

        combined = np.vstack([bbox_lhs.min, bbox_rhs.min, bbox_lhs.max, bbox_rhs.max])
        # shift to the joint minimum corner to keep comparisons well conditioned
        combined -= combined.min(axis=0)
        return bool(
            np.all(combined[0] <= combined[3]) and np.all(combined[2] >= combined[1])
        )


def create_intersection(config: Optional[OverlapConfig] = None) -> IntersectionPolicy:
    """Build the connectivity policy; an unset config means zero tolerance."""
    return OverlapIntersection(config)


__all__ = ["IntersectionPolicy", "OverlapIntersection", "create_intersection"]
