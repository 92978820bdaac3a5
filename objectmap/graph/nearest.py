"""
Nearest-node lookup over a scene graph layer using a KD-tree.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, List, Optional

import numpy as np
from scipy.spatial import cKDTree

from .scene_graph import SceneGraphLayer

logger = logging.getLogger(__name__)

# callback(node_id, rank, distance)
NeighborCallback = Callable[[int, int, float], None]


class NearestNodeFinder:
    """
    KD-tree over node positions of a layer, built once per query batch.

    The tree is a snapshot: nodes added to the layer afterwards are not
    visible until a new finder is built.
    """

    def __init__(self, layer: SceneGraphLayer, node_ids: Optional[Iterable[int]] = None):
        if node_ids is None:
            node_ids = layer.node_ids()

        self.node_ids: List[int] = []
        positions = []
        for node_id in node_ids:
            node = layer.get_node(node_id)
            if node is None:
                logger.warning(f"skipping unknown node {node_id} in nearest-node index")
                continue
            self.node_ids.append(node_id)
            positions.append(node.attributes().position)

        self._tree = cKDTree(np.asarray(positions)) if positions else None

    def __len__(self) -> int:
        return len(self.node_ids)

    def find(
        self,
        position: np.ndarray,
        num_to_find: int,
        skip_first: bool,
        callback: NeighborCallback,
    ) -> int:
        """
        Invoke ``callback`` for the ``num_to_find`` nearest nodes, closest first.

        Args:
            position: Query point
            num_to_find: Number of neighbors to report
            skip_first: Drop the closest hit (query point is itself indexed)
            callback: Called with (node_id, rank, distance)

        Returns:
            Number of neighbors reported
        """
        if self._tree is None or num_to_find <= 0:
            return 0

        k = min(num_to_find + (1 if skip_first else 0), len(self.node_ids))
        distances, indices = self._tree.query(np.asarray(position, dtype=float), k=k)
        distances = np.atleast_1d(distances)
        indices = np.atleast_1d(indices)
        if skip_first:
            distances, indices = distances[1:], indices[1:]

        for rank, (distance, index) in enumerate(zip(distances, indices)):
            callback(self.node_ids[int(index)], rank, float(distance))
        return len(indices)
