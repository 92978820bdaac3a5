import sys
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import pytest

# Add repository root to sys.path so 'objectmap' can be imported in tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from objectmap.clustering.config import ObjectUpdateConfig, TaskConfig
from objectmap.clustering.object_update import ObjectUpdateFunctor
from objectmap.graph.scene_graph import LayeredSceneGraph
from objectmap.graph.types import (
    BoundingBox,
    Layer,
    NodeSymbol,
    PlaceAttributes,
    SegmentAttributes,
)

# Two tasks along x and y; features along z score 0 against both
TASK_EMBEDDINGS = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
RELEVANT = [1.0, 0.0, 0.0]
IRRELEVANT = [0.0, 0.0, 1.0]


class SceneBuilder:
    """Small helper to populate a LayeredSceneGraph with segments and places."""

    def __init__(self):
        self.graph = LayeredSceneGraph()

    def add_place(self, index: int, position: Sequence[float], active: bool = False) -> int:
        node_id = NodeSymbol("p", index).value
        self.graph.emplace_node(Layer.PLACES, node_id, PlaceAttributes(position=position, is_active=active))
        return node_id

    def add_segment(
        self,
        index: int,
        bbox_min: Sequence[float],
        bbox_max: Sequence[float],
        feature=RELEVANT,
        position: Optional[Sequence[float]] = None,
        parent: Optional[int] = None,
        stamp_ns: int = 0,
    ) -> int:
        node_id = NodeSymbol("s", index).value
        bbox = BoundingBox(bbox_min, bbox_max)
        attrs = SegmentAttributes(
            position=bbox.center if position is None else position,
            is_active=True,
            semantic_feature=np.asarray(feature, dtype=float),
            bounding_box=bbox,
            first_observed_ns=stamp_ns,
            last_observed_ns=stamp_ns,
        )
        self.graph.emplace_node(Layer.SEGMENTS, node_id, attrs)
        if parent is not None:
            self.graph.insert_edge(node_id, parent)
        return node_id

    def add_cube(self, index: int, corner: Sequence[float], size: float = 1.0, **kwargs) -> int:
        corner = np.asarray(corner, dtype=float)
        return self.add_segment(index, corner, corner + size, **kwargs)


@pytest.fixture
def scene() -> SceneBuilder:
    return SceneBuilder()


@pytest.fixture
def make_config():
    def _make(**overrides) -> ObjectUpdateConfig:
        params = dict(
            tasks=TaskConfig(names=["x", "y"], embeddings=TASK_EMBEDDINGS),
            min_segment_score=0.5,
            min_object_score=0.5,
        )
        params.update(overrides)
        return ObjectUpdateConfig(**params)

    return _make


@pytest.fixture
def make_functor(make_config):
    def _make(oracle=None, **overrides) -> ObjectUpdateFunctor:
        return ObjectUpdateFunctor(make_config(**overrides), oracle=oracle)

    return _make
