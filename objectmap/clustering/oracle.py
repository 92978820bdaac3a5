"""
Clustering Oracles
==================

An oracle splits one connected group of segments into object candidates.
The update functor only depends on ``ClusteringOracle.partition``.

Author: Orion Research Team
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Set, Tuple

import numpy as np

from objectmap.semantic.metrics import EmbeddingDistance
from objectmap.semantic.tasks import TaskSet

from .config import SelectorConfig
from .information import (
    ClusteringWorkspace,
    compute_delta_weight,
    compute_px,
    compute_py_given_x,
    merge_cost,
)

logger = logging.getLogger(__name__)

EPS = 1e-12


class ClusteringOracle(ABC):
    """Partitions a workspace into clusters of segment ids."""

    @abstractmethod
    def partition(
        self,
        ws: ClusteringWorkspace,
        tasks: TaskSet,
        metric: EmbeddingDistance,
        I_xy_full: float,
    ) -> List[List[int]]:
        """
        Args:
            ws: Workspace over the member segments of one connected group
            tasks: Task embeddings
            metric: Embedding metric
            I_xy_full: Mutual information of the whole segment population

        Returns:
            Clusters of segment ids that together cover the group exactly
        """


class SingleClusterOracle(ClusteringOracle):
    """Never splits: every connected group is one object candidate."""

    def partition(self, ws, tasks, metric, I_xy_full):
        for idx in range(1, ws.size):
            ws.merge(0, idx)
        return ws.get_clusters()


class InformationBottleneckOracle(ClusteringOracle):
    """
    Agglomerative information bottleneck restricted to graph edges.

    Starting from singletons, repeatedly merges the adjacent pair of clusters
    that loses the least task information, until the cheapest merge costs
    more than ``max_delta`` of the population-wide information.
    """

    def __init__(self, config: Optional[SelectorConfig] = None):
        self.config = config or SelectorConfig()

    def partition(self, ws, tasks, metric, I_xy_full):
        if ws.size <= 1:
            return ws.get_clusters()

        px = compute_px(ws)
        py_x = compute_py_given_x(ws, tasks, metric, self.config.py_x)
        delta_weight = compute_delta_weight(ws)
        normalizer = max(I_xy_full, EPS)

        weights: Dict[int, float] = {i: float(px[i]) for i in range(ws.size)}
        dists: Dict[int, np.ndarray] = {i: py_x[i] for i in range(ws.size)}
        candidates: Set[Tuple[int, int]] = set(ws.edges)

        while candidates:
            costs = {
                edge: merge_cost(weights[edge[0]], dists[edge[0]], weights[edge[1]], dists[edge[1]])
                for edge in candidates
            }
            # ties resolve to the lowest index pair
            best = min(costs, key=lambda edge: (costs[edge], edge))
            delta = costs[best] * delta_weight / normalizer
            if delta > self.config.max_delta:
                logger.debug(f"stopping aIB: delta {delta:.4f} > {self.config.max_delta}")
                break

            target, source = best
            total = weights[target] + weights[source]
            dists[target] = (weights[target] * dists[target] + weights[source] * dists[source]) / total
            weights[target] = total
            del weights[source], dists[source]
            ws.merge(target, source, delta)

            candidates = {
                (min(a, b), max(a, b))
                for a, b in (
                    (target if u == source else u, target if v == source else v)
                    for u, v in candidates
                )
                if a != b
            }

        return ws.get_clusters()


def create_oracle(name: str, selector: Optional[SelectorConfig] = None) -> ClusteringOracle:
    if name == "information_bottleneck":
        return InformationBottleneckOracle(selector)
    if name == "single_cluster":
        return SingleClusterOracle()
    raise ValueError(f"Unknown clustering oracle '{name}'")


__all__ = [
    "ClusteringOracle",
    "SingleClusterOracle",
    "InformationBottleneckOracle",
    "create_oracle",
]
