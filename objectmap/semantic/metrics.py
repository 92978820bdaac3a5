"""
Embedding distance metrics.

Every metric exposes a *score* where larger means more aligned; thresholds
such as ``min_segment_score`` are expressed in that score's units.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

import numpy as np
from scipy.spatial.distance import cdist
from sklearn.metrics.pairwise import cosine_similarity


class EmbeddingDistance(ABC):
    """Pluggable similarity between feature vectors."""

    name: str = "base"

    @abstractmethod
    def scores(self, features: np.ndarray, references: np.ndarray) -> np.ndarray:
        """Pairwise scores, shape (num_features, num_references)."""

    def score(self, lhs: np.ndarray, rhs: np.ndarray) -> float:
        return float(self.scores(np.atleast_2d(lhs), np.atleast_2d(rhs))[0, 0])

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class CosineDistance(EmbeddingDistance):
    """Cosine similarity in [-1, 1]."""

    name = "cosine"

    def scores(self, features: np.ndarray, references: np.ndarray) -> np.ndarray:
        return cosine_similarity(np.atleast_2d(features), np.atleast_2d(references))


class EuclideanDistance(EmbeddingDistance):
    """Negated L2 distance, so that the closest reference scores highest."""

    name = "euclidean"

    def scores(self, features: np.ndarray, references: np.ndarray) -> np.ndarray:
        return -cdist(np.atleast_2d(features), np.atleast_2d(references), metric="euclidean")


METRICS: Dict[str, Type[EmbeddingDistance]] = {
    CosineDistance.name: CosineDistance,
    EuclideanDistance.name: EuclideanDistance,
}


def create_metric(name: Optional[str] = None) -> EmbeddingDistance:
    """Instantiate a metric by name; ``None`` selects cosine."""
    key = (name or CosineDistance.name).lower()
    if key not in METRICS:
        raise ValueError(f"Unknown metric '{name}'. Must be one of {sorted(METRICS)}")
    return METRICS[key]()


__all__ = [
    "EmbeddingDistance",
    "CosineDistance",
    "EuclideanDistance",
    "METRICS",
    "create_metric",
]
