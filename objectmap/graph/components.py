"""Connected-component search restricted by node and edge predicates."""

from __future__ import annotations

from typing import Callable, List, Tuple

import networkx as nx

from .scene_graph import LayeredSceneGraph, SceneGraphNode
from .types import Layer

NodeFilter = Callable[[SceneGraphNode], bool]
EdgeFilter = Callable[[Tuple[int, int]], bool]


def get_connected_components(
    graph: LayeredSceneGraph,
    layer: Layer,
    node_filter: NodeFilter,
    edge_filter: EdgeFilter,
) -> List[List[int]]:
    """
    Partition the nodes of ``layer`` that pass ``node_filter`` into groups
    connected by sibling edges that pass ``edge_filter``.

    Groups are ordered by their earliest member and members keep the layer's
    insertion order, so the result is deterministic.
    """
    layer_view = graph.get_layer(layer)
    order = {node_id: idx for idx, node_id in enumerate(layer_view.node_ids())}
    valid = {node_id for node_id, node in layer_view.nodes() if node_filter(node)}

    view = nx.subgraph_view(
        graph.sibling_subgraph(layer),
        filter_node=lambda n: n in valid,
        filter_edge=lambda u, v: edge_filter((u, v)),
    )

    components = [sorted(group, key=order.__getitem__) for group in nx.connected_components(view)]
    components.sort(key=lambda group: order[group[0]])
    return components
