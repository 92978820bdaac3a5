"""
Scene Replay
============

Feeds a recorded sequence of segment observations through the object
functor, one cycle at a time.

File format (JSON):

    {
      "places": [{"id": 0, "position": [x, y, z], "active": false}],
      "cycles": [
        {
          "timestamp_ns": 0,
          "places": [...],                 # optional, added this cycle
          "archive_places": [0],           # optional, marked stable
          "segments": [
            {"id": 0, "position": [...], "bbox_min": [...], "bbox_max": [...],
             "feature": [...] or [[...], ...], "parent": 0, "name": "mug"}
          ]
        }
      ]
    }

Segment and place ids are indices; they are stored as ``NodeSymbol("s", id)``
and ``NodeSymbol("p", id)`` in the graph.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import numpy as np

from objectmap.clustering.object_update import ObjectUpdateFunctor
from objectmap.graph.scene_graph import LayeredSceneGraph
from objectmap.graph.types import (
    BoundingBox,
    Layer,
    NodeSymbol,
    PlaceAttributes,
    SegmentAttributes,
    UpdateInfo,
)
from objectmap.utils.profiling import profile

logger = logging.getLogger(__name__)

SEGMENT_KEY = "s"
PLACE_KEY = "p"


class ReplayError(RuntimeError):
    """Raised when a replay file cannot be parsed."""


@dataclass
class ReplayCycle:
    timestamp_ns: int
    segments: List[Dict[str, Any]] = field(default_factory=list)
    places: List[Dict[str, Any]] = field(default_factory=list)
    archive_places: List[int] = field(default_factory=list)


@dataclass
class Replay:
    places: List[Dict[str, Any]] = field(default_factory=list)
    cycles: List[ReplayCycle] = field(default_factory=list)


@dataclass
class CycleSummary:
    """Graph and functor state after one replayed cycle."""
    cycle: int
    timestamp_ns: int
    num_segments: int
    num_ignored: int
    num_components: int
    num_objects: int
    num_active: int
    object_labels: List[str] = field(default_factory=list)


@profile("replay/load")
def load_replay(path: Path) -> Replay:
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ReplayError(f"Replay file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ReplayError(f"Replay file at {path} is not valid JSON: {exc}") from exc

    try:
        cycles = [
            ReplayCycle(
                timestamp_ns=int(cycle.get("timestamp_ns", idx)),
                segments=list(cycle.get("segments", [])),
                places=list(cycle.get("places", [])),
                archive_places=[int(p) for p in cycle.get("archive_places", [])],
            )
            for idx, cycle in enumerate(raw.get("cycles", []))
        ]
    except (AttributeError, TypeError, ValueError) as exc:
        raise ReplayError(f"Malformed cycle in {path}: {exc}") from exc

    return Replay(places=list(raw.get("places", [])), cycles=cycles)


def _add_place(graph: LayeredSceneGraph, place: Dict[str, Any]) -> None:
    attrs = PlaceAttributes(
        position=place["position"],
        is_active=bool(place.get("active", False)),
    )
    graph.emplace_node(Layer.PLACES, NodeSymbol(PLACE_KEY, int(place["id"])).value, attrs)


def _add_segment(graph: LayeredSceneGraph, segment: Dict[str, Any], timestamp_ns: int) -> None:
    feature = np.asarray(segment["feature"], dtype=float)
    if feature.ndim == 2:
        # rows in the file are samples, columns in memory
        feature = feature.T

    attrs = SegmentAttributes(
        position=segment["position"],
        is_active=True,
        semantic_feature=feature,
        bounding_box=BoundingBox(segment["bbox_min"], segment["bbox_max"]),
        name=segment.get("name", ""),
        first_observed_ns=timestamp_ns,
        last_observed_ns=timestamp_ns,
    )
    segment_id = NodeSymbol(SEGMENT_KEY, int(segment["id"])).value
    graph.emplace_node(Layer.SEGMENTS, segment_id, attrs)

    parent = segment.get("parent")
    if parent is not None:
        graph.insert_edge(segment_id, NodeSymbol(PLACE_KEY, int(parent)).value)


def apply_cycle(graph: LayeredSceneGraph, cycle: ReplayCycle) -> None:
    """Add a cycle's places and segments to the graph and archive places."""
    try:
        for place in cycle.places:
            _add_place(graph, place)
        for segment in cycle.segments:
            _add_segment(graph, segment, cycle.timestamp_ns)
    except KeyError as exc:
        raise ReplayError(f"missing field {exc} in cycle at {cycle.timestamp_ns}") from exc

    for place_index in cycle.archive_places:
        node = graph.get_node(NodeSymbol(PLACE_KEY, place_index).value)
        if node is None:
            logger.warning(f"cannot archive unknown place {place_index}")
            continue
        node.attributes().is_active = False


def run_replay(
    replay: Replay,
    functor: ObjectUpdateFunctor,
    graph: Optional[LayeredSceneGraph] = None,
) -> List[CycleSummary]:
    graph = graph or LayeredSceneGraph()
    for place in replay.places:
        _add_place(graph, place)

    summaries: List[CycleSummary] = []
    for idx, cycle in enumerate(replay.cycles):
        apply_cycle(graph, cycle)
        functor.call(graph, UpdateInfo(timestamp_ns=cycle.timestamp_ns, cycle=idx))

        objects = graph.get_layer(Layer.OBJECTS).node_ids()
        summaries.append(
            CycleSummary(
                cycle=idx,
                timestamp_ns=cycle.timestamp_ns,
                num_segments=graph.get_layer(Layer.SEGMENTS).num_nodes(),
                num_ignored=len(functor.state.ignored),
                num_components=len(functor.state.components),
                num_objects=len(objects),
                num_active=len(functor.state.active),
                object_labels=[NodeSymbol.from_id(o).label for o in objects],
            )
        )
        logger.info(
            f"cycle {idx}: {summaries[-1].num_objects} objects, "
            f"{summaries[-1].num_active} awaiting a place"
        )

    return summaries


__all__ = [
    "ReplayError",
    "ReplayCycle",
    "Replay",
    "CycleSummary",
    "load_replay",
    "apply_cycle",
    "run_replay",
]
