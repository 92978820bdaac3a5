"""
Layered Scene Graph
===================

In-process layered graph store backed by networkx.

Nodes live in exactly one layer. Edges between nodes of the same layer are
sibling edges; an edge between two layers makes the higher-layer node the
parent of the lower-layer node. Every node has at most one parent.

Author: Orion Research Team
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Type, TypeVar

import networkx as nx

from .types import Layer, NodeAttributes, node_label

logger = logging.getLogger(__name__)

AttrT = TypeVar("AttrT", bound=NodeAttributes)


class GraphConsistencyError(RuntimeError):
    """Raised when the graph does not match what a caller requires of it."""


class SceneGraphNode:
    """View of a single node: id, layer, attributes and (optional) parent."""

    def __init__(self, graph: "LayeredSceneGraph", node_id: int):
        self._graph = graph
        self.id = node_id

    @property
    def layer(self) -> Layer:
        return self._graph._nx.nodes[self.id]["layer"]

    def attributes(self, expected: Optional[Type[AttrT]] = None) -> AttrT:
        """Return node attributes, checking their type when ``expected`` is given."""
        attrs = self._graph._nx.nodes[self.id]["attrs"]
        if expected is not None and not isinstance(attrs, expected):
            raise GraphConsistencyError(
                f"node '{node_label(self.id)}' has {type(attrs).__name__}, "
                f"expected {expected.__name__}"
            )
        return attrs

    def get_parent(self) -> Optional[int]:
        return self._graph.get_parent(self.id)

    def siblings(self) -> List[int]:
        return self._graph.sibling_ids(self.id)

    def __repr__(self) -> str:
        return f"SceneGraphNode({node_label(self.id)}, layer={self.layer.name})"


class SceneGraphLayer:
    """Read view over the nodes and sibling edges of one layer."""

    def __init__(self, graph: "LayeredSceneGraph", layer: Layer):
        self._graph = graph
        self.id = layer

    def nodes(self) -> Iterator[Tuple[int, SceneGraphNode]]:
        """Iterate ``(node_id, node)`` pairs in insertion order."""
        for node_id in list(self._graph._layers[self.id]):
            yield node_id, SceneGraphNode(self._graph, node_id)

    def node_ids(self) -> List[int]:
        return list(self._graph._layers[self.id])

    def has_node(self, node_id: int) -> bool:
        return node_id in self._graph._layers[self.id]

    def get_node(self, node_id: int) -> Optional[SceneGraphNode]:
        if not self.has_node(node_id):
            return None
        return SceneGraphNode(self._graph, node_id)

    def edges(self, nodes: Optional[Iterable[int]] = None) -> List[Tuple[int, int]]:
        """Sibling edges of the layer, or only those among ``nodes``."""
        members = self._graph._layers[self.id]
        if nodes is not None:
            members = [node_id for node_id in nodes if node_id in members]
        return list(self._graph._nx.subgraph(members).edges())

    def num_nodes(self) -> int:
        return len(self._graph._layers[self.id])

    def __len__(self) -> int:
        return self.num_nodes()


class LayeredSceneGraph:
    """
    Layered graph of segments, objects and places.

    Backed by an undirected ``networkx.Graph`` for sibling edges plus an
    explicit child → parent map for inter-layer edges.
    """

    def __init__(self, layers: Tuple[Layer, ...] = tuple(Layer)):
        self._nx = nx.Graph()
        # dicts keep insertion order, which callers rely on for determinism
        self._layers: Dict[Layer, Dict[int, None]] = {layer: {} for layer in layers}
        self._parents: Dict[int, int] = {}
        self._children: Dict[int, Dict[int, None]] = {}

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def has_node(self, node_id: int) -> bool:
        return self._nx.has_node(node_id)

    def get_node(self, node_id: int) -> Optional[SceneGraphNode]:
        if not self.has_node(node_id):
            return None
        return SceneGraphNode(self, node_id)

    def require_node(self, node_id: int) -> SceneGraphNode:
        """Like ``get_node`` but a missing node is a consistency error."""
        node = self.get_node(node_id)
        if node is None:
            raise GraphConsistencyError(f"missing node '{node_label(node_id)}'")
        return node

    def get_layer(self, layer: Layer) -> SceneGraphLayer:
        if layer not in self._layers:
            raise GraphConsistencyError(f"graph has no layer {layer!r}")
        return SceneGraphLayer(self, layer)

    def get_parent(self, node_id: int) -> Optional[int]:
        return self._parents.get(node_id)

    def get_children(self, node_id: int) -> List[int]:
        return list(self._children.get(node_id, {}))

    def sibling_ids(self, node_id: int) -> List[int]:
        return list(self._nx.neighbors(node_id))

    def has_edge(self, source: int, target: int) -> bool:
        if self._nx.has_edge(source, target):
            return True
        return self._parents.get(source) == target or self._parents.get(target) == source

    def num_nodes(self) -> int:
        return self._nx.number_of_nodes()

    def num_edges(self) -> int:
        return self._nx.number_of_edges() + len(self._parents)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------
    def emplace_node(self, layer: Layer, node_id: int, attrs: NodeAttributes) -> bool:
        """Add a node. Returns False if the id is already in use."""
        if layer not in self._layers:
            raise GraphConsistencyError(f"graph has no layer {layer!r}")
        if self._nx.has_node(node_id):
            logger.debug(f"node '{node_label(node_id)}' already exists")
            return False

        self._nx.add_node(node_id, layer=layer, attrs=attrs)
        self._layers[layer][node_id] = None
        return True

    def insert_edge(self, source: int, target: int) -> bool:
        """
        Insert an edge between two existing nodes.

        Same-layer endpoints produce a sibling edge. Otherwise the node in the
        higher layer becomes the parent of the other one; an edge that would
        give a node a second parent is rejected.
        """
        if source == target:
            return False
        source_node = self.require_node(source)
        target_node = self.require_node(target)

        if source_node.layer == target_node.layer:
            if self._nx.has_edge(source, target):
                return False
            self._nx.add_edge(source, target)
            return True

        if source_node.layer < target_node.layer:
            child, parent = source, target
        else:
            child, parent = target, source

        current = self._parents.get(child)
        if current is not None:
            if current != parent:
                logger.debug(
                    f"rejecting edge: '{node_label(child)}' already has parent "
                    f"'{node_label(current)}'"
                )
            return False

        self._parents[child] = parent
        self._children.setdefault(parent, {})[child] = None
        return True

    def remove_edge(self, source: int, target: int) -> bool:
        if self._nx.has_edge(source, target):
            self._nx.remove_edge(source, target)
            return True
        for child, parent in ((source, target), (target, source)):
            if self._parents.get(child) == parent:
                del self._parents[child]
                self._children[parent].pop(child, None)
                return True
        return False

    def remove_node(self, node_id: int) -> bool:
        """Remove a node together with its sibling, parent and child edges."""
        if not self._nx.has_node(node_id):
            return False

        layer = self._nx.nodes[node_id]["layer"]
        parent = self._parents.pop(node_id, None)
        if parent is not None:
            self._children[parent].pop(node_id, None)
        for child in self._children.pop(node_id, {}):
            self._parents.pop(child, None)

        self._nx.remove_node(node_id)
        del self._layers[layer][node_id]
        return True

    def sibling_subgraph(self, layer: Layer) -> nx.Graph:
        """Read-only networkx view of one layer's sibling edges."""
        return self._nx.subgraph(self._layers[layer].keys())


__all__ = [
    "GraphConsistencyError",
    "SceneGraphNode",
    "SceneGraphLayer",
    "LayeredSceneGraph",
]
