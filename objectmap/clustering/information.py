"""
Information Bottleneck Utilities
================================

Distributions and mutual information used by agglomerative information
bottleneck (aIB) clustering.

    X: segments (p(x) uniform)
    Y: tasks    (p(y) uniform)
    p(y|x): softmax of task scores over the segment's mean feature

Author: Orion Research Team
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from scipy.special import rel_entr, softmax
from scipy.stats import entropy

from objectmap.graph.scene_graph import GraphConsistencyError, SceneGraphLayer
from objectmap.graph.types import SemanticNodeAttributes, node_label
from objectmap.semantic.metrics import EmbeddingDistance
from objectmap.semantic.tasks import TaskSet

from .config import PyGivenXConfig


@dataclass
class MergeRecord:
    """One agglomerative merge: ``source`` cluster absorbed into ``target``."""
    target: int
    source: int
    delta: float


class ClusteringWorkspace:
    """
    Features, adjacency and cluster assignment of a group of segments.

    Clusters are indexed by the position of their first member; merging
    cluster ``b`` into ``a`` reassigns every member of ``b``.
    """

    def __init__(self, layer: SceneGraphLayer, nodes: Optional[Iterable[int]] = None):
        self.node_ids: List[int] = list(layer.node_ids() if nodes is None else nodes)
        self.node_lookup: Dict[int, int] = {n: i for i, n in enumerate(self.node_ids)}
        self.population = layer.num_nodes()

        features = []
        for node_id in self.node_ids:
            node = layer.get_node(node_id)
            if node is None:
                raise GraphConsistencyError(f"segment {node_label(node_id)} missing from layer")
            features.append(node.attributes(SemanticNodeAttributes).mean_feature)
        self.features = np.vstack(features) if features else np.zeros((0, 0))

        self.edges: List[Tuple[int, int]] = []
        for source, target in layer.edges(self.node_ids):
            i, j = self.node_lookup[source], self.node_lookup[target]
            self.edges.append((min(i, j), max(i, j)))

        self.assignments: List[int] = list(range(len(self.node_ids)))
        self.history: List[MergeRecord] = []

    @property
    def size(self) -> int:
        return len(self.node_ids)

    def merge(self, target: int, source: int, delta: float = 0.0) -> None:
        for idx, cluster in enumerate(self.assignments):
            if cluster == source:
                self.assignments[idx] = target
        self.history.append(MergeRecord(target=target, source=source, delta=delta))

    def get_clusters(self) -> List[List[int]]:
        """Node ids per cluster, in member order."""
        clusters: Dict[int, List[int]] = {}
        for idx, cluster in enumerate(self.assignments):
            clusters.setdefault(cluster, []).append(self.node_ids[idx])
        return list(clusters.values())


def compute_py(tasks: TaskSet) -> np.ndarray:
    return np.full(len(tasks), 1.0 / len(tasks))


def compute_px(ws: ClusteringWorkspace) -> np.ndarray:
    if ws.size == 0:
        return np.zeros(0)
    return np.full(ws.size, 1.0 / ws.size)


def compute_py_given_x(
    ws: ClusteringWorkspace,
    tasks: TaskSet,
    metric: EmbeddingDistance,
    config: PyGivenXConfig,
) -> np.ndarray:
    """Rows are p(y|x) for each workspace node, shape (N, num_tasks)."""
    if ws.size == 0:
        return np.zeros((0, len(tasks)))
    scores = tasks.get_scores(metric, ws.features)
    return softmax(scores / config.temperature, axis=1)


def mutual_information(py: np.ndarray, px: np.ndarray, py_x: np.ndarray) -> float:
    """I(X;Y) = sum_x p(x) KL(p(y|x) || p(y))."""
    if px.size == 0:
        return 0.0
    return float(px @ rel_entr(py_x, py[np.newaxis, :]).sum(axis=1))


def js_divergence(pi_a: float, dist_a: np.ndarray, pi_b: float, dist_b: np.ndarray) -> float:
    """Weighted Jensen-Shannon divergence with weights ``pi_a + pi_b == 1``."""
    mixture = pi_a * dist_a + pi_b * dist_b
    return float(entropy(mixture) - pi_a * entropy(dist_a) - pi_b * entropy(dist_b))


def merge_cost(p_a: float, dist_a: np.ndarray, p_b: float, dist_b: np.ndarray) -> float:
    """Information lost by merging clusters a and b."""
    total = p_a + p_b
    if total <= 0.0:
        return 0.0
    return max(0.0, total * js_divergence(p_a / total, dist_a, p_b / total, dist_b))


def compute_delta_weight(ws: ClusteringWorkspace) -> float:
    """Rescales group-local costs to the whole segment population."""
    if ws.population == 0:
        return 0.0
    return ws.size / ws.population


@dataclass
class InformationBaseline:
    """Population-wide I(X;Y), computed once per update cycle."""
    mutual_information: float
    num_segments: int


def compute_information_baseline(
    layer: SceneGraphLayer,
    tasks: TaskSet,
    metric: EmbeddingDistance,
    config: PyGivenXConfig,
) -> InformationBaseline:
    # segments without feature samples carry no task information
    usable = [
        node_id
        for node_id, node in layer.nodes()
        if node.attributes(SemanticNodeAttributes).semantic_feature.size > 0
    ]
    total_ws = ClusteringWorkspace(layer, usable)
    py_all = compute_py(tasks)
    px_all = compute_px(total_ws)
    py_x_all = compute_py_given_x(total_ws, tasks, metric, config)
    return InformationBaseline(
        mutual_information=mutual_information(py_all, px_all, py_x_all),
        num_segments=total_ws.size,
    )


__all__ = [
    "MergeRecord",
    "ClusteringWorkspace",
    "compute_py",
    "compute_px",
    "compute_py_given_x",
    "mutual_information",
    "js_divergence",
    "merge_cost",
    "compute_delta_weight",
    "InformationBaseline",
    "compute_information_baseline",
]
