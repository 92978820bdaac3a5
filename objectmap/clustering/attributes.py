"""
Cluster attribute merging and parent selection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from objectmap.graph.scene_graph import LayeredSceneGraph
from objectmap.graph.types import ObjectAttributes, SemanticNodeAttributes


def merge_object_attributes(other: SemanticNodeAttributes, attrs: SemanticNodeAttributes) -> None:
    """Fold the auxiliary fields of ``other`` into ``attrs`` (extent and observation window)."""
    attrs.bounding_box.merge(other.bounding_box)
    attrs.first_observed_ns = min(attrs.first_observed_ns, other.first_observed_ns)
    attrs.last_observed_ns = max(attrs.last_observed_ns, other.last_observed_ns)
    if not attrs.name:
        attrs.name = other.name


def get_merged_attributes(
    graph: LayeredSceneGraph, nodes: Sequence[int]
) -> Optional[ObjectAttributes]:
    """
    Combine the attributes of a cluster of segments into one object.

    Position and (sample-averaged) feature are averaged over the cluster;
    auxiliary fields are folded in member order by ``merge_object_attributes``.

    Args:
        graph: Scene graph holding the segments
        nodes: Segment ids of the cluster

    Returns:
        Merged attributes, or None for an empty cluster
    """
    if not nodes:
        return None

    first = graph.require_node(nodes[0]).attributes(SemanticNodeAttributes)
    attrs = ObjectAttributes.from_semantic(first)
    attrs.semantic_feature = first.mean_feature.reshape(-1, 1)
    attrs.num_segments = len(nodes)

    for node_id in nodes[1:]:
        other = graph.require_node(node_id).attributes(SemanticNodeAttributes)
        attrs.position += other.position
        attrs.semantic_feature += other.mean_feature.reshape(-1, 1)
        merge_object_attributes(other, attrs)

    attrs.position /= len(nodes)
    attrs.semantic_feature /= len(nodes)
    return attrs


@dataclass
class ParentResult:
    """Parent chosen for a new object."""
    parent_id: int
    is_volatile: bool


def get_best_parent(graph: LayeredSceneGraph, nodes: Sequence[int]) -> Optional[ParentResult]:
    """
    Pick a parent place for an object from the parents of its segments.

    The first stable (archived) parent in member order wins; failing that,
    the first volatile one. Ties are not ranked by distance or support.
    """
    volatile: List[int] = []
    stable: List[int] = []
    for node_id in nodes:
        parent = graph.require_node(node_id).get_parent()
        if parent is None:
            continue

        parent_node = graph.require_node(parent)
        if parent_node.attributes().is_active:
            volatile.append(parent)
        else:
            stable.append(parent)

    if stable:
        return ParentResult(parent_id=stable[0], is_volatile=False)

    if volatile:
        return ParentResult(parent_id=volatile[0], is_volatile=True)

    return None


__all__ = [
    "merge_object_attributes",
    "get_merged_attributes",
    "ParentResult",
    "get_best_parent",
]
