"""
Object Update Functor
=====================

Incrementally clusters segments into objects and keeps objects attached to
places.

Each call runs one cycle, in this order:
    1. add_segment_edges        connect new segments, collect touched components
    2. clear_active_components  retire touched components and their objects
    3. detect_objects           cluster newly eligible segments into objects
    4. update_active_parents    attach active objects to their nearest place

All state that survives between cycles lives in ``ClusterState``.

Author: Orion Research Team
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from objectmap.graph.components import get_connected_components
from objectmap.graph.nearest import NearestNodeFinder
from objectmap.graph.scene_graph import (
    GraphConsistencyError,
    LayeredSceneGraph,
    SceneGraphLayer,
    SceneGraphNode,
)
from objectmap.graph.types import (
    Layer,
    NodeSymbol,
    SemanticNodeAttributes,
    UpdateInfo,
    node_label,
)
from objectmap.semantic.metrics import create_metric
from objectmap.utils.profiling import get_profiler

from .attributes import get_best_parent, get_merged_attributes
from .config import ObjectUpdateConfig
from .ids import IdTracker
from .information import ClusteringWorkspace, compute_information_baseline
from .intersection import create_intersection
from .oracle import ClusteringOracle, create_oracle

logger = logging.getLogger(__name__)

MergeMap = Dict[int, int]


@dataclass
class ComponentInfo:
    """A connected group of segments and the objects clustered from it."""
    segments: List[int]
    workspace: ClusteringWorkspace
    clusters: List[List[int]] = field(default_factory=list)
    objects: List[int] = field(default_factory=list)


class ComponentRegistry:
    """
    Live components stored densely by id.

    Ids come from an ``IdTracker``; a retired component leaves an empty slot
    that the next allocation reuses.
    """

    def __init__(self):
        self.ids = IdTracker()
        self._slots: List[Optional[ComponentInfo]] = []

    def add(self, info: ComponentInfo) -> int:
        component_id = self.ids.next()
        if component_id == len(self._slots):
            self._slots.append(None)
        if self._slots[component_id] is not None:
            raise RuntimeError(f"component id {component_id} reused while still live")
        self._slots[component_id] = info
        return component_id

    def get(self, component_id: int) -> Optional[ComponentInfo]:
        if 0 <= component_id < len(self._slots):
            return self._slots[component_id]
        return None

    def remove(self, component_id: int) -> Optional[ComponentInfo]:
        info = self.get(component_id)
        if info is None:
            return None
        self._slots[component_id] = None
        self.ids.mark_free(component_id)
        return info

    def items(self) -> Iterator[Tuple[int, ComponentInfo]]:
        for component_id, info in enumerate(self._slots):
            if info is not None:
                yield component_id, info

    def __contains__(self, component_id: int) -> bool:
        return self.get(component_id) is not None

    def __len__(self) -> int:
        return sum(1 for slot in self._slots if slot is not None)


@dataclass
class ClusterState:
    """Everything the functor remembers between cycles."""
    components: ComponentRegistry = field(default_factory=ComponentRegistry)
    node_to_component: Dict[int, int] = field(default_factory=dict)
    ignored: Set[int] = field(default_factory=set)
    active: Dict[int, None] = field(default_factory=dict)

    def is_eligible(self, node_id: int) -> bool:
        """True for segments neither clustered nor ignored."""
        return node_id not in self.node_to_component and node_id not in self.ignored


class ObjectUpdateFunctor:
    """
    Clusters segments into objects, one cycle per ``call``.

    Args:
        config: Validated functor configuration
        oracle: Optional oracle overriding ``config.oracle``
    """

    def __init__(self, config: ObjectUpdateConfig, oracle: Optional[ClusteringOracle] = None):
        self.config = config
        self.edge_checker = create_intersection(config.edge_checker)
        self.tasks = config.tasks.create()
        self.metric = create_metric(config.metric)
        self.oracle = oracle or create_oracle(config.oracle, config.selector)
        self.state = ClusterState()
        self._next_node_id = NodeSymbol(config.prefix, 0)

    @property
    def next_node_id(self) -> NodeSymbol:
        return self._next_node_id

    def call(self, graph: LayeredSceneGraph, info: Optional[UpdateInfo] = None) -> MergeMap:
        info = info or UpdateInfo()
        with get_profiler().start("backend/object_clustering", info.timestamp_ns):
            active_components = self.add_segment_edges(graph)
            self.clear_active_components(graph, active_components)
            self.detect_objects(graph)
            self.update_active_parents(graph)

        # clustering performs merges implicitly
        return {}

    update = call
    __call__ = call

    # ------------------------------------------------------------------
    # Segment edges
    # ------------------------------------------------------------------
    def add_segment_edges(self, graph: LayeredSceneGraph) -> Set[int]:
        """Connect new segments to all non-ignored segments; return touched components."""
        segments = graph.get_layer(Layer.SEGMENTS)
        state = self.state

        new_nodes: List[Tuple[int, SemanticNodeAttributes]] = []
        for node_id, node in segments.nodes():
            if not state.is_eligible(node_id):
                continue

            attrs = node.attributes(SemanticNodeAttributes)
            result = self.tasks.get_best_score(self.metric, attrs.semantic_feature)
            if not result.valid or result.score < self.config.min_segment_score:
                logger.debug(f"Skipping segment {node_label(node_id)} with score: {result.score:.3f}")
                state.ignored.add(node_id)
                attrs.is_active = False
                continue

            new_nodes.append((node_id, attrs))

        active_components: Set[int] = set()
        # TODO: replace pairwise scan with a spatial index over segment boxes
        for node_id, attrs in new_nodes:
            for other_id, other_node in segments.nodes():
                if other_id == node_id or other_id in state.ignored:
                    continue

                other_attrs = other_node.attributes(SemanticNodeAttributes)
                if not self.edge_checker.call(attrs, other_attrs):
                    continue

                graph.insert_edge(node_id, other_id)
                component_id = state.node_to_component.get(other_id)
                if component_id is not None:
                    active_components.add(component_id)

        return active_components

    # ------------------------------------------------------------------
    # Component lifecycle
    # ------------------------------------------------------------------
    def clear_active_components(self, graph: LayeredSceneGraph, active: Set[int]) -> None:
        """Retire touched components so their segments are clustered again."""
        state = self.state
        for component_id in sorted(active):
            info = state.components.remove(component_id)
            if info is None:
                continue

            for node_id in info.segments:
                state.node_to_component.pop(node_id, None)

            for object_id in info.objects:
                graph.remove_node(object_id)
                state.active.pop(object_id, None)

            logger.debug(
                f"Retired component {component_id} ({len(info.segments)} segments, "
                f"{len(info.objects)} objects)"
            )

    def create_component(
        self, segments: SceneGraphLayer, nodes: List[int], I_xy_full: float
    ) -> Tuple[int, ComponentInfo]:
        """Cluster one connected group and register it as a live component."""
        ws = ClusteringWorkspace(segments, nodes)
        clusters = self.oracle.partition(ws, self.tasks, self.metric, I_xy_full)
        info = ComponentInfo(segments=list(nodes), workspace=ws, clusters=clusters)

        component_id = self.state.components.add(info)
        for node_id in nodes:
            self.state.node_to_component[node_id] = component_id
        return component_id, info

    def _is_eligible(self, node: SceneGraphNode) -> bool:
        return self.state.is_eligible(node.id)

    def _is_eligible_edge(self, edge: Tuple[int, int]) -> bool:
        return self.state.is_eligible(edge[0]) and self.state.is_eligible(edge[1])

    # ------------------------------------------------------------------
    # Object detection
    # ------------------------------------------------------------------
    def detect_objects(self, graph: LayeredSceneGraph) -> List[int]:
        """Cluster every newly eligible component; return the created object ids."""
        segments = graph.get_layer(Layer.SEGMENTS)
        new_components = get_connected_components(
            graph, Layer.SEGMENTS, self._is_eligible, self._is_eligible_edge
        )
        if not new_components:
            return []

        baseline = compute_information_baseline(
            segments, self.tasks, self.metric, self.config.selector.py_x
        )
        logger.debug(
            f"{len(new_components)} new components, I(X;Y) = {baseline.mutual_information:.4f} "
            f"over {baseline.num_segments} segments"
        )

        created: List[int] = []
        for nodes in new_components:
            _, component = self.create_component(segments, nodes, baseline.mutual_information)
            for cluster in component.clusters:
                object_id = self._materialize(graph, cluster)
                if object_id is not None:
                    component.objects.append(object_id)
                    created.append(object_id)

        return created

    def _materialize(self, graph: LayeredSceneGraph, cluster: List[int]) -> Optional[int]:
        logger.debug(f"Cluster: [{', '.join(node_label(n) for n in cluster)}]")

        attrs = get_merged_attributes(graph, cluster)
        if attrs is None:
            logger.error("empty cluster!")
            return None

        result = self.tasks.get_best_score(self.metric, attrs.semantic_feature)
        if result.score < self.config.min_object_score:
            logger.debug(f"Skipping object with score: {result.score:.3f}")
            return None

        symbol = self._next_node_id
        object_id = symbol.value
        if not graph.emplace_node(Layer.OBJECTS, object_id, attrs):
            raise GraphConsistencyError(
                f"cannot create object '{symbol.label}': node id already in use"
            )
        self._next_node_id = symbol + 1

        parent = get_best_parent(graph, cluster)
        if parent is None:
            logger.warning(f"object '{symbol.label}' without parent!")
            self.state.active[object_id] = None
        else:
            graph.insert_edge(object_id, parent.parent_id)
            if parent.is_volatile:
                self.state.active[object_id] = None

        return object_id

    # ------------------------------------------------------------------
    # Place attachment
    # ------------------------------------------------------------------
    def update_active_parents(self, graph: LayeredSceneGraph) -> None:
        """Settle or (re)attach every active object to a place."""
        state = self.state
        places = graph.get_layer(Layer.PLACES)

        # objects can lose their place edge outside this functor; recheck them all
        for object_id in graph.get_layer(Layer.OBJECTS).node_ids():
            state.active.setdefault(object_id, None)

        places_finder = NearestNodeFinder(places)
        for object_id in list(state.active):
            node = graph.require_node(object_id)
            parent_id = node.get_parent()
            if parent_id is not None:
                if not graph.require_node(parent_id).attributes().is_active:
                    del state.active[object_id]
                continue

            found = False

            def _attach(place_id: int, _rank: int, distance: float) -> None:
                nonlocal found
                max_distance = self.config.neighbor_max_distance
                if max_distance > 0.0 and distance >= max_distance:
                    # the cap only warns; the place is still attached
                    logger.warning(
                        f"Nearest place '{node_label(place_id)}' for node "
                        f"'{node_label(object_id)}' has distance {distance:.3f} >= {max_distance}"
                    )

                graph.insert_edge(place_id, object_id)
                found = True

            places_finder.find(node.attributes().position, 1, False, _attach)
            if found:
                del state.active[object_id]


__all__ = [
    "MergeMap",
    "ComponentInfo",
    "ComponentRegistry",
    "ClusterState",
    "ObjectUpdateFunctor",
]
