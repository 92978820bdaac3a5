"""
Task Embeddings
===============

A fixed set of semantic tasks (e.g. "find the mug") that features are scored
against. The best score decides whether a segment or object is relevant.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import numpy as np

from .metrics import EmbeddingDistance

logger = logging.getLogger(__name__)


@dataclass
class ScoreResult:
    """Best alignment of a feature against a task set."""
    score: float
    index: int

    @property
    def valid(self) -> bool:
        return self.index >= 0


class TaskSet:
    """Immutable matrix of task embeddings (one row per task)."""

    def __init__(self, embeddings: np.ndarray, names: Optional[Sequence[str]] = None):
        embeddings = np.atleast_2d(np.asarray(embeddings, dtype=float))
        if embeddings.size == 0:
            raise ValueError("TaskSet requires at least one task embedding")

        if names is None or len(names) == 0:
            names = [f"task_{i}" for i in range(embeddings.shape[0])]
        if len(names) != embeddings.shape[0]:
            raise ValueError(
                f"got {len(names)} task names for {embeddings.shape[0]} embeddings"
            )

        self.embeddings = embeddings
        self.names: List[str] = list(names)

    @classmethod
    def from_file(cls, path: Path, names: Optional[Sequence[str]] = None) -> "TaskSet":
        """Load embeddings from a ``.npy`` file (rows are tasks)."""
        embeddings = np.load(Path(path))
        logger.info(f"Loaded {embeddings.shape[0]} task embeddings from {path}")
        return cls(embeddings, names)

    def __len__(self) -> int:
        return self.embeddings.shape[0]

    @property
    def dim(self) -> int:
        return self.embeddings.shape[1]

    def get_scores(self, metric: EmbeddingDistance, features: np.ndarray) -> np.ndarray:
        """Scores of each feature row against every task, shape (N, num_tasks)."""
        return metric.scores(np.atleast_2d(features), self.embeddings)

    def get_best_score(self, metric: EmbeddingDistance, feature: np.ndarray) -> ScoreResult:
        """Best task score for a feature vector (or a matrix of column samples)."""
        feature = np.asarray(feature, dtype=float)
        if feature.size == 0:
            return ScoreResult(score=float("-inf"), index=-1)
        if feature.ndim == 2:
            feature = feature.mean(axis=1)

        scores = self.get_scores(metric, feature)[0]
        best = int(np.argmax(scores))
        return ScoreResult(score=float(scores[best]), index=best)

    def __repr__(self) -> str:
        return f"TaskSet(num_tasks={len(self)}, dim={self.dim})"


__all__ = ["ScoreResult", "TaskSet"]
