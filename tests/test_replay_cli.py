"""
Tests for scene replay and the objectmap CLI
============================================

Author: Orion Research Team
"""

import json

import pytest

from objectmap.cli.main import create_parser, main
from objectmap.clustering.config import load_config
from objectmap.clustering.object_update import ObjectUpdateFunctor
from objectmap.graph.scene_graph import LayeredSceneGraph
from objectmap.graph.types import Layer, NodeSymbol
from objectmap.replay import ReplayError, load_replay, run_replay

CONFIG = {
    "tasks": {"names": ["mug", "chair"], "embeddings": [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]},
    "min_segment_score": 0.5,
    "min_object_score": 0.5,
}

REPLAY = {
    "places": [{"id": 0, "position": [0.0, 0.0, 0.0]}],
    "cycles": [
        {
            "timestamp_ns": 1000,
            "segments": [
                {"id": 0, "position": [0.5, 0.5, 0.5], "bbox_min": [0, 0, 0], "bbox_max": [1, 1, 1],
                 "feature": [1.0, 0.0, 0.0], "name": "mug"},
                {"id": 1, "position": [1.0, 0.5, 0.5], "bbox_min": [0.5, 0, 0], "bbox_max": [1.5, 1, 1],
                 "feature": [[1.0, 0.0, 0.0], [0.9, 0.1, 0.0]]},
            ],
        },
        {
            "timestamp_ns": 2000,
            "places": [{"id": 1, "position": [20.0, 0.0, 0.0], "active": True}],
            "segments": [
                {"id": 2, "position": [10.5, 0.5, 0.5], "bbox_min": [10, 0, 0], "bbox_max": [11, 1, 1],
                 "feature": [0.0, 0.0, 1.0]},
            ],
        },
        {
            "timestamp_ns": 3000,
            "archive_places": [1],
            "segments": [
                {"id": 3, "position": [20.5, 0.5, 0.5], "bbox_min": [20, 0, 0], "bbox_max": [21, 1, 1],
                 "feature": [0.0, 1.0, 0.0], "parent": 1},
            ],
        },
    ],
}


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "clustering.json"
    path.write_text(json.dumps(CONFIG))
    return path


@pytest.fixture
def replay_path(tmp_path):
    path = tmp_path / "scene.json"
    path.write_text(json.dumps(REPLAY))
    return path


class TestReplay:
    def test_load(self, replay_path):
        replay = load_replay(replay_path)
        assert len(replay.places) == 1
        assert [c.timestamp_ns for c in replay.cycles] == [1000, 2000, 3000]
        assert replay.cycles[2].archive_places == [1]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReplayError):
            load_replay(tmp_path / "missing.json")

    def test_run(self, replay_path, config_path):
        graph = LayeredSceneGraph()
        functor = ObjectUpdateFunctor(load_config(config_path))
        summaries = run_replay(load_replay(replay_path), functor, graph)

        assert [s.num_segments for s in summaries] == [2, 3, 4]
        assert [s.num_ignored for s in summaries] == [0, 1, 1]
        assert [s.num_components for s in summaries] == [1, 1, 2]
        assert [s.num_active for s in summaries] == [0, 0, 0]
        assert summaries[-1].object_labels == ["O0", "O1"]

        obj0 = NodeSymbol("O", 0).value
        obj1 = NodeSymbol("O", 1).value
        attrs = graph.get_node(obj0).attributes()
        assert attrs.name == "mug"
        assert attrs.first_observed_ns == attrs.last_observed_ns == 1000
        assert graph.get_parent(obj0) == NodeSymbol("p", 0).value
        assert graph.get_parent(obj1) == NodeSymbol("p", 1).value
        assert not graph.get_node(NodeSymbol("p", 1).value).attributes().is_active

    def test_sample_rows_become_columns(self, replay_path, config_path):
        graph = LayeredSceneGraph()
        replay = load_replay(replay_path)
        replay.cycles = replay.cycles[:1]
        run_replay(replay, ObjectUpdateFunctor(load_config(config_path)), graph)
        feature = graph.get_node(NodeSymbol("s", 1).value).attributes().semantic_feature
        assert feature.shape == (3, 2)
        assert graph.get_layer(Layer.SEGMENTS).num_nodes() == 2

    def test_missing_segment_field(self, tmp_path, config_path):
        path = tmp_path / "broken.json"
        path.write_text(json.dumps({"cycles": [{"segments": [{"id": 0}]}]}))
        with pytest.raises(ReplayError, match="missing field"):
            run_replay(load_replay(path), ObjectUpdateFunctor(load_config(config_path)))


class TestCLI:
    def test_parser(self):
        args = create_parser().parse_args(["replay", "scene.json", "-c", "cfg.json"])
        assert args.command == "replay"
        assert args.config == "cfg.json"
        assert args.profile is None

    def test_replay(self, replay_path, config_path, tmp_path):
        timing = tmp_path / "timing.json"
        code = main(["replay", str(replay_path), "--config", str(config_path), "--profile", str(timing)])
        assert code == 0
        stats = json.loads(timing.read_text())
        assert stats["backend/object_clustering"]["count"] >= 3

    def test_replay_bad_config(self, replay_path, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"prefix": "OO"}))
        assert main(["replay", str(replay_path), "-c", str(path)]) == 1

    def test_replay_missing_file(self, config_path, tmp_path):
        assert main(["replay", str(tmp_path / "none.json"), "-c", str(config_path)]) == 1

    def test_config_validate(self, config_path):
        assert main(["config", "validate", str(config_path)]) == 0

    def test_config_validate_without_tasks(self, tmp_path):
        path = tmp_path / "empty.json"
        path.write_text("{}")
        assert main(["config", "validate", str(path)]) == 1

    def test_config_show(self, config_path):
        assert main(["config", "show", str(config_path)]) == 0

    def test_config_defaults(self):
        assert main(["config", "defaults"]) == 0

    def test_no_command(self):
        assert main([]) == 1
