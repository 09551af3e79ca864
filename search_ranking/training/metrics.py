"""
Grouped ranking metrics: DCG@K and NDCG@K.

This module contains pure functions for computing ranking quality over a
scored dataset. Rows are partitioned by query group; within each group:

- Gain:     gain(label) = 2^label - 1
- Discount: discount(i) = 1 / log2(i + 1), for rank positions i = 1..K
- DCG@i:    sum of gain x discount over the first i rows of the predicted order
- IDCG@i:   the same sum over the ideal order (labels descending)
- NDCG@i:   DCG@i / IDCG@i, or 0 when IDCG@i is 0

Orderings use a stable sort, so ties keep their original row order. Groups
shorter than the truncation level only sum the rows they have. The reported
values are the arithmetic mean over groups, one per truncation index 1..K.

Computation is kept separate from formatting: see evaluation/report.py for
the text rendering of RankingMetrics.
"""

from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd

from ..data.dataset import Dataset, ScoredDataset
from ..errors import EmptyInput, InvalidConfiguration, SchemaMismatch

MIN_TRUNCATION_LEVEL = 1
MAX_TRUNCATION_LEVEL = 10


def validate_truncation_level(truncation_level: int) -> int:
    """
    Check a truncation level is an integer in [1, 10].

    Raises:
        InvalidConfiguration: For anything else; values are never clamped
    """
    if (
        isinstance(truncation_level, bool)
        or not isinstance(truncation_level, (int, np.integer))
        or not MIN_TRUNCATION_LEVEL <= truncation_level <= MAX_TRUNCATION_LEVEL
    ):
        raise InvalidConfiguration(
            f"Metrics are only supported for {MIN_TRUNCATION_LEVEL} to "
            f"{MAX_TRUNCATION_LEVEL} truncation levels, got {truncation_level!r}"
        )
    return int(truncation_level)


@dataclass(frozen=True)
class RankingMetrics:
    """
    Mean DCG and NDCG per truncation index.

    Attributes:
        dcg: DCG@1..DCG@K averaged over query groups
        ndcg: NDCG@1..NDCG@K averaged over query groups
    """

    dcg: Tuple[float, ...]
    ndcg: Tuple[float, ...]

    @property
    def truncation_level(self) -> int:
        return len(self.dcg)

    def dcg_at(self, k: int) -> float:
        """DCG at 1-based truncation index k."""
        return self.dcg[k - 1]

    def ndcg_at(self, k: int) -> float:
        """NDCG at 1-based truncation index k."""
        return self.ndcg[k - 1]

    def to_dict(self, prefix: str = "") -> Dict[str, float]:
        """Flatten to {prefix}dcg_{i} / {prefix}ndcg_{i} entries."""
        metrics = {}
        for i, (dcg, ndcg) in enumerate(zip(self.dcg, self.ndcg), start=1):
            metrics[f"{prefix}dcg_{i}"] = dcg
            metrics[f"{prefix}ndcg_{i}"] = ndcg
        return metrics


def gain(labels: np.ndarray) -> np.ndarray:
    """Exponential relevance gain 2^label - 1."""
    return np.exp2(np.asarray(labels, dtype=np.float64)) - 1.0


def discount(num_positions: int) -> np.ndarray:
    """Position discounts 1 / log2(i + 1) for i = 1..num_positions."""
    positions = np.arange(1, num_positions + 1, dtype=np.float64)
    return 1.0 / np.log2(positions + 1.0)


def _cumulative_dcg(ordered_gains: np.ndarray, truncation_level: int) -> np.ndarray:
    """
    DCG@1..DCG@K for gains already in rank order.

    Past the end of a short group the sum stays at its last value.
    """
    top = ordered_gains[:truncation_level]
    cumulative = np.cumsum(top * discount(len(top)))
    if len(cumulative) < truncation_level:
        cumulative = np.pad(cumulative, (0, truncation_level - len(cumulative)), mode="edge")
    return cumulative


def group_dcg(
    labels: np.ndarray, scores: np.ndarray, truncation_level: int
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Compute DCG@1..K and NDCG@1..K for a single query group.

    Args:
        labels: Relevance labels of the group's rows, in row order
        scores: Predicted scores of the same rows
        truncation_level: K

    Returns:
        Tuple of (dcg, ndcg) arrays of length K

    Raises:
        EmptyInput: If the group has no rows
        SchemaMismatch: If the labels are so large that their gains overflow
    """
    if len(labels) == 0:
        raise EmptyInput("Cannot compute DCG for an empty group")

    # Stable descending sorts: negate and keep original order among ties
    predicted_order = np.argsort(-np.asarray(scores, dtype=np.float64), kind="stable")
    ideal_order = np.argsort(-np.asarray(labels, dtype=np.int64), kind="stable")

    with np.errstate(over="ignore"):
        gains = gain(labels)
        idcg = _cumulative_dcg(gains[ideal_order], truncation_level)

    # IDCG bounds DCG at every cutoff, so a finite IDCG keeps NDCG in [0, 1]
    if not np.isfinite(idcg[-1]):
        raise SchemaMismatch(
            f"Label gains overflow float64 (max label {int(np.max(labels))})"
        )
    dcg = _cumulative_dcg(gains[predicted_order], truncation_level)

    ndcg = np.divide(dcg, idcg, out=np.zeros_like(dcg), where=idcg > 0)
    return dcg, ndcg


@dataclass(frozen=True)
class _GroupCurves:
    """DCG/NDCG curves for every group, one matrix row per group."""

    group_ids: np.ndarray
    num_rows: np.ndarray
    dcg: np.ndarray
    ndcg: np.ndarray


def _per_group(scored: ScoredDataset, truncation_level: int) -> _GroupCurves:
    """Partition rows by group id and compute each group's curves."""
    if len(scored) == 0:
        raise EmptyInput("Cannot evaluate ranking metrics on an empty dataset")

    df = scored.to_frame()
    labels = df["label"].to_numpy()
    scores = df["score"].to_numpy()

    group_ids, sizes, dcg_rows, ndcg_rows = [], [], [], []
    for group_id, positions in df.groupby("group_id", sort=False).indices.items():
        dcg, ndcg = group_dcg(labels[positions], scores[positions], truncation_level)
        group_ids.append(group_id)
        sizes.append(len(positions))
        dcg_rows.append(dcg)
        ndcg_rows.append(ndcg)

    return _GroupCurves(
        group_ids=np.array(group_ids, dtype=np.uint64),
        num_rows=np.array(sizes, dtype=np.int64),
        dcg=np.vstack(dcg_rows),
        ndcg=np.vstack(ndcg_rows),
    )


class GroupedMetricsEvaluator:
    """
    Computes mean DCG/NDCG at truncation levels 1..K over query groups.

    The truncation level is fixed at construction and validated there.

    Example:
        evaluator = GroupedMetricsEvaluator(truncation_level=3)
        metrics = evaluator.evaluate(scored)
        metrics.ndcg_at(3)
    """

    def __init__(self, truncation_level: int = 3):
        """
        Args:
            truncation_level: K, an integer in [1, 10]

        Raises:
            InvalidConfiguration: If K is outside [1, 10]
        """
        self.truncation_level = validate_truncation_level(truncation_level)

    def evaluate(self, scored: ScoredDataset) -> RankingMetrics:
        """
        Evaluate a scored dataset.

        Raises:
            EmptyInput: If the dataset has no rows
        """
        curves = _per_group(scored, self.truncation_level)

        # Mean over groups; order-independent
        return RankingMetrics(
            dcg=tuple(float(v) for v in curves.dcg.mean(axis=0)),
            ndcg=tuple(float(v) for v in curves.ndcg.mean(axis=0)),
        )


def evaluate_ranking(scored: ScoredDataset, truncation_level: int = 3) -> RankingMetrics:
    """Functional form of GroupedMetricsEvaluator(truncation_level).evaluate(scored)."""
    return GroupedMetricsEvaluator(truncation_level).evaluate(scored)


def per_group_ndcg(scored: ScoredDataset, k: int = 3) -> pd.DataFrame:
    """
    Compute DCG@K and NDCG@K for each query group individually.

    Args:
        scored: Scored dataset with labels
        k: Truncation level in [1, 10]

    Returns:
        DataFrame with group_id, dcg, ndcg and num_rows columns
    """
    k = validate_truncation_level(k)
    curves = _per_group(scored, k)
    return pd.DataFrame(
        {
            "group_id": curves.group_ids,
            "dcg": curves.dcg[:, -1],
            "ndcg": curves.ndcg[:, -1],
            "num_rows": curves.num_rows,
        }
    )


def evaluate_model(
    transformer, dataset: Dataset, truncation_level: int = 3
) -> Tuple[RankingMetrics, ScoredDataset]:
    """
    Score every row of a dataset and evaluate the ranking.

    Args:
        transformer: Fitted transformer with a transform(Dataset) method
        dataset: Labeled dataset to score
        truncation_level: K, an integer in [1, 10]

    Returns:
        Tuple of:
            - RankingMetrics at 1..K
            - The scored dataset
    """
    evaluator = GroupedMetricsEvaluator(truncation_level)
    scored = transformer.transform(dataset)
    return evaluator.evaluate(scored), scored
