"""Semantic scoring: embedding metrics and task sets."""

from .metrics import CosineDistance, EmbeddingDistance, EuclideanDistance, create_metric
from .tasks import ScoreResult, TaskSet

__all__ = [
    "CosineDistance",
    "EmbeddingDistance",
    "EuclideanDistance",
    "create_metric",
    "ScoreResult",
    "TaskSet",
]
