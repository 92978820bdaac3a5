"""Incremental segment → object clustering."""

from .config import (
    ConfigError,
    ObjectUpdateConfig,
    OverlapConfig,
    PyGivenXConfig,
    SelectorConfig,
    TaskConfig,
    get_default_config,
    get_permissive_config,
    load_config,
)
from .ids import IdTracker
from .intersection import IntersectionPolicy, OverlapIntersection, create_intersection
from .information import ClusteringWorkspace, compute_information_baseline
from .oracle import ClusteringOracle, InformationBottleneckOracle, SingleClusterOracle, create_oracle
from .attributes import ParentResult, get_best_parent, get_merged_attributes, merge_object_attributes
from .object_update import ClusterState, ComponentInfo, ComponentRegistry, ObjectUpdateFunctor

__all__ = [
    "ConfigError",
    "ObjectUpdateConfig",
    "OverlapConfig",
    "PyGivenXConfig",
    "SelectorConfig",
    "TaskConfig",
    "get_default_config",
    "get_permissive_config",
    "load_config",
    "IdTracker",
    "IntersectionPolicy",
    "OverlapIntersection",
    "create_intersection",
    "ClusteringWorkspace",
    "compute_information_baseline",
    "ClusteringOracle",
    "InformationBottleneckOracle",
    "SingleClusterOracle",
    "create_oracle",
    "ParentResult",
    "get_best_parent",
    "get_merged_attributes",
    "merge_object_attributes",
    "ClusterState",
    "ComponentInfo",
    "ComponentRegistry",
    "ObjectUpdateFunctor",
]
