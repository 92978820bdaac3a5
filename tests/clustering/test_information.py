"""
Unit Tests for information-bottleneck clustering
================================================

Distributions, merge costs and oracle partitions.

Author: Orion Research Team
"""

import numpy as np
import pytest

from objectmap.clustering.config import PyGivenXConfig, SelectorConfig
from objectmap.clustering.information import (
    ClusteringWorkspace,
    compute_delta_weight,
    compute_information_baseline,
    compute_px,
    compute_py,
    js_divergence,
    merge_cost,
    mutual_information,
)
from objectmap.clustering.oracle import (
    InformationBottleneckOracle,
    SingleClusterOracle,
    create_oracle,
)
from objectmap.graph.scene_graph import GraphConsistencyError
from objectmap.graph.types import Layer, NodeSymbol
from objectmap.semantic.metrics import CosineDistance
from objectmap.semantic.tasks import TaskSet

TASK_EMBEDDINGS = [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]
RELEVANT = [1.0, 0.0, 0.0]
IRRELEVANT = [0.0, 0.0, 1.0]


@pytest.fixture
def tasks():
    return TaskSet(TASK_EMBEDDINGS)


@pytest.fixture
def metric():
    return CosineDistance()


def _segments(scene):
    return scene.graph.get_layer(Layer.SEGMENTS)


class TestDistributions:
    def test_uniform_marginals(self, scene, tasks):
        for idx in range(4):
            scene.add_cube(idx, [2 * idx, 0, 0])
        ws = ClusteringWorkspace(_segments(scene))
        np.testing.assert_allclose(compute_px(ws), np.full(4, 0.25))
        np.testing.assert_allclose(compute_py(tasks), [0.5, 0.5])

    def test_information_zero_when_uninformative(self):
        py = np.array([0.5, 0.5])
        px = np.array([0.5, 0.5])
        py_x = np.array([[0.5, 0.5], [0.5, 0.5]])
        assert mutual_information(py, px, py_x) == pytest.approx(0.0)

    def test_information_of_deterministic_labels(self):
        py = np.array([0.5, 0.5])
        px = np.array([0.5, 0.5])
        py_x = np.array([[1.0, 0.0], [0.0, 1.0]])
        assert mutual_information(py, px, py_x) == pytest.approx(np.log(2))

    def test_js_divergence(self):
        a = np.array([1.0, 0.0])
        b = np.array([0.0, 1.0])
        assert js_divergence(0.5, a, 0.5, a) == pytest.approx(0.0)
        assert js_divergence(0.5, a, 0.5, b) == pytest.approx(np.log(2))

    def test_merge_cost_scales_with_mass(self):
        a = np.array([0.9, 0.1])
        b = np.array([0.2, 0.8])
        assert merge_cost(0.5, a, 0.5, b) == pytest.approx(2 * merge_cost(0.25, a, 0.25, b))
        assert merge_cost(0.0, a, 0.0, b) == 0.0


class TestWorkspace:
    def test_edges_restricted_to_members(self, scene):
        seg0 = scene.add_cube(0, [0, 0, 0])
        seg1 = scene.add_cube(1, [0.5, 0, 0])
        seg2 = scene.add_cube(2, [1, 0, 0])
        scene.graph.insert_edge(seg0, seg1)
        scene.graph.insert_edge(seg1, seg2)

        ws = ClusteringWorkspace(_segments(scene), [seg2, seg1])
        assert ws.size == 2
        assert ws.population == 3
        assert ws.edges == [(0, 1)]
        assert compute_delta_weight(ws) == pytest.approx(2 / 3)

    def test_merge_and_clusters(self, scene):
        ids = [scene.add_cube(idx, [idx, 0, 0]) for idx in range(3)]
        ws = ClusteringWorkspace(_segments(scene))
        ws.merge(0, 2, 0.01)
        assert ws.get_clusters() == [[ids[0], ids[2]], [ids[1]]]
        assert ws.history[0].delta == 0.01

    def test_missing_node(self, scene):
        scene.add_cube(0, [0, 0, 0])
        with pytest.raises(GraphConsistencyError):
            ClusteringWorkspace(_segments(scene), [NodeSymbol("s", 7).value])

    def test_baseline_counts_population(self, scene, tasks, metric):
        scene.add_cube(0, [0, 0, 0], feature=[1.0, 0.0, 0.0])
        scene.add_cube(1, [5, 0, 0], feature=[0.0, 1.0, 0.0])
        baseline = compute_information_baseline(_segments(scene), tasks, metric, PyGivenXConfig())
        assert baseline.num_segments == 2
        # near-deterministic labels over two tasks
        assert baseline.mutual_information == pytest.approx(np.log(2), abs=1e-3)


class TestOracles:
    def _connected(self, scene, features):
        ids = []
        for idx, feature in enumerate(features):
            ids.append(scene.add_cube(idx, [0.5 * idx, 0, 0], feature=feature))
        for lhs, rhs in zip(ids, ids[1:]):
            scene.graph.insert_edge(lhs, rhs)
        return ids

    def _partition(self, oracle, scene, tasks, metric, nodes):
        segments = _segments(scene)
        baseline = compute_information_baseline(segments, tasks, metric, PyGivenXConfig())
        ws = ClusteringWorkspace(segments, nodes)
        return oracle.partition(ws, tasks, metric, baseline.mutual_information)

    def test_identical_features_merge(self, scene, tasks, metric):
        ids = self._connected(scene, [RELEVANT, RELEVANT, RELEVANT])
        clusters = self._partition(InformationBottleneckOracle(), scene, tasks, metric, ids)
        assert clusters == [ids]

    def test_different_tasks_stay_apart(self, scene, tasks, metric):
        ids = self._connected(scene, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        clusters = self._partition(InformationBottleneckOracle(), scene, tasks, metric, ids)
        assert clusters == [[ids[0]], [ids[1]]]

    def test_large_budget_merges_everything(self, scene, tasks, metric):
        ids = self._connected(scene, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        oracle = InformationBottleneckOracle(SelectorConfig(max_delta=10.0))
        assert self._partition(oracle, scene, tasks, metric, ids) == [ids]

    def test_only_adjacent_clusters_merge(self, scene, tasks, metric):
        seg0 = scene.add_cube(0, [0, 0, 0], feature=RELEVANT)
        seg1 = scene.add_cube(1, [10, 0, 0], feature=RELEVANT)
        clusters = self._partition(InformationBottleneckOracle(), scene, tasks, metric, [seg0, seg1])
        assert clusters == [[seg0], [seg1]]

    def test_partition_covers_group(self, scene, tasks, metric):
        ids = self._connected(scene, [RELEVANT, [0.0, 1.0, 0.0], RELEVANT, IRRELEVANT])
        clusters = self._partition(InformationBottleneckOracle(), scene, tasks, metric, ids)
        members = sorted(node for cluster in clusters for node in cluster)
        assert members == sorted(ids)

    def test_single_cluster_oracle(self, scene, tasks, metric):
        ids = self._connected(scene, [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], RELEVANT])
        assert self._partition(SingleClusterOracle(), scene, tasks, metric, ids) == [ids]

    def test_create_oracle(self):
        assert isinstance(create_oracle("single_cluster"), SingleClusterOracle)
        assert isinstance(create_oracle("information_bottleneck"), InformationBottleneckOracle)
        with pytest.raises(ValueError):
            create_oracle("spectral")
