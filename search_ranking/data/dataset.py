"""
Immutable containers for grouped ranking data.

A Dataset is an ordered sequence of rows, each carrying a query-group id, a
relevance label and a fixed-width feature vector. Data is stored column-wise
in read-only numpy arrays so a loaded split can be shared between pipeline
stages without copies and without risk of mutation.

Insertion order is part of the contract: concatenating two datasets keeps the
rows of the first followed by the rows of the second, which makes staged
training reproducible.
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import SchemaMismatch

LABEL_COLUMN = "Label"
GROUP_ID_COLUMN = "GroupId"


def _read_only(array: np.ndarray) -> np.ndarray:
    """Return a private, non-writeable copy of an array."""
    array = np.array(array, copy=True)
    array.setflags(write=False)
    return array


def default_feature_names(num_features: int) -> Tuple[str, ...]:
    """Generated column names for data loaded without a header."""
    return tuple(f"Feature{i}" for i in range(num_features))


@dataclass(frozen=True)
class Row:
    """A single search result: query group, relevance label and features."""

    group_id: int
    label: int
    features: Tuple[float, ...]


@dataclass(frozen=True)
class ScoredRow:
    """
    A search result scored by a fitted transformer.

    The label is optional at scoring time (0 if unknown) but required when
    computing ranking metrics.
    """

    group_id: int
    score: float
    label: int = 0


@dataclass(frozen=True, eq=False)
class Dataset:
    """
    Ordered, immutable sequence of grouped rows.

    Attributes:
        group_ids: uint64 query-group id per row
        labels: uint32 relevance label per row
        features: float32 matrix of shape (num_rows, num_features)
        feature_names: Column names, one per feature
    """

    group_ids: np.ndarray
    labels: np.ndarray
    features: np.ndarray
    feature_names: Tuple[str, ...] = ()

    def __post_init__(self):
        group_ids = np.asarray(self.group_ids, dtype=np.uint64).reshape(-1)
        labels = np.asarray(self.labels, dtype=np.uint32).reshape(-1)
        features = np.asarray(self.features, dtype=np.float32)

        if features.ndim == 1 and features.size == 0:
            features = features.reshape(0, len(self.feature_names))
        if features.ndim != 2:
            raise SchemaMismatch(
                f"Features must be a 2-D matrix, got shape {features.shape}"
            )
        if not (len(group_ids) == len(labels) == features.shape[0]):
            raise SchemaMismatch(
                f"Column lengths differ: {len(group_ids)} group ids, "
                f"{len(labels)} labels, {features.shape[0]} feature rows"
            )

        feature_names = tuple(self.feature_names) or default_feature_names(features.shape[1])
        if len(feature_names) != features.shape[1]:
            raise SchemaMismatch(
                f"Got {len(feature_names)} feature names for "
                f"{features.shape[1]} feature columns"
            )

        object.__setattr__(self, "group_ids", _read_only(group_ids))
        object.__setattr__(self, "labels", _read_only(labels))
        object.__setattr__(self, "features", _read_only(features))
        object.__setattr__(self, "feature_names", feature_names)

    @classmethod
    def from_rows(
        cls, rows: Iterable[Row], feature_names: Optional[Sequence[str]] = None
    ) -> "Dataset":
        """
        Build a dataset from Row objects.

        Raises:
            SchemaMismatch: If rows have different feature-vector lengths
        """
        rows = list(rows)
        if not rows:
            names = tuple(feature_names or ())
            return cls(
                group_ids=np.empty(0, dtype=np.uint64),
                labels=np.empty(0, dtype=np.uint32),
                features=np.empty((0, len(names)), dtype=np.float32),
                feature_names=names,
            )

        width = len(rows[0].features)
        for index, row in enumerate(rows):
            if len(row.features) != width:
                raise SchemaMismatch(
                    f"Row {index} has {len(row.features)} features, expected {width}"
                )

        return cls(
            group_ids=np.array([row.group_id for row in rows], dtype=np.uint64),
            labels=np.array([row.label for row in rows], dtype=np.uint32),
            features=np.array([row.features for row in rows], dtype=np.float32),
            feature_names=tuple(feature_names or ()),
        )

    @classmethod
    def from_frame(cls, df: pd.DataFrame) -> "Dataset":
        """
        Build a dataset from a DataFrame with Label, GroupId and feature columns.

        Every column other than Label and GroupId is a feature, in frame order.
        """
        missing = [c for c in (LABEL_COLUMN, GROUP_ID_COLUMN) if c not in df.columns]
        if missing:
            raise SchemaMismatch(f"Missing required columns: {missing}")

        feature_cols = [c for c in df.columns if c not in (LABEL_COLUMN, GROUP_ID_COLUMN)]
        return cls(
            group_ids=df[GROUP_ID_COLUMN].to_numpy(dtype=np.uint64),
            labels=df[LABEL_COLUMN].to_numpy(dtype=np.uint32),
            features=df[feature_cols].to_numpy(dtype=np.float32),
            feature_names=tuple(str(c) for c in feature_cols),
        )

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def num_features(self) -> int:
        return self.features.shape[1]

    def rows(self) -> Iterator[Row]:
        """Iterate rows in insertion order."""
        for group_id, label, features in zip(self.group_ids, self.labels, self.features):
            yield Row(
                group_id=int(group_id),
                label=int(label),
                features=tuple(float(v) for v in features),
            )

    def concat(self, other: "Dataset") -> "Dataset":
        """
        Return a new dataset with this dataset's rows followed by other's.

        No deduplication and no reshuffling. Feature names are taken from self.

        Raises:
            SchemaMismatch: If the feature widths differ
        """
        if other.num_features != self.num_features:
            raise SchemaMismatch(
                f"Cannot concatenate datasets with {self.num_features} and "
                f"{other.num_features} features"
            )

        return Dataset(
            group_ids=np.concatenate([self.group_ids, other.group_ids]),
            labels=np.concatenate([self.labels, other.labels]),
            features=np.concatenate([self.features, other.features]),
            feature_names=self.feature_names,
        )

    def to_frame(self) -> pd.DataFrame:
        """Convert to a DataFrame laid out like the input TSV files."""
        df = pd.DataFrame(self.features, columns=list(self.feature_names))
        df.insert(0, GROUP_ID_COLUMN, self.group_ids)
        df.insert(0, LABEL_COLUMN, self.labels)
        return df


def merge_datasets(first: Dataset, second: Dataset) -> Dataset:
    """Concatenate two datasets, first's rows then second's."""
    return first.concat(second)


@dataclass(frozen=True, eq=False)
class ScoredDataset:
    """
    Predictions for a dataset, one score per input row, in input order.

    Attributes:
        group_ids: uint64 query-group id per row
        labels: uint32 relevance label per row (0 when unknown)
        scores: float32 predicted score per row
    """

    group_ids: np.ndarray
    labels: np.ndarray
    scores: np.ndarray

    def __post_init__(self):
        group_ids = np.asarray(self.group_ids, dtype=np.uint64).reshape(-1)
        labels = np.asarray(self.labels, dtype=np.uint32).reshape(-1)
        scores = np.asarray(self.scores, dtype=np.float32).reshape(-1)

        if not (len(group_ids) == len(labels) == len(scores)):
            raise SchemaMismatch(
                f"Column lengths differ: {len(group_ids)} group ids, "
                f"{len(labels)} labels, {len(scores)} scores"
            )

        object.__setattr__(self, "group_ids", _read_only(group_ids))
        object.__setattr__(self, "labels", _read_only(labels))
        object.__setattr__(self, "scores", _read_only(scores))

    @classmethod
    def from_rows(cls, rows: Iterable[ScoredRow]) -> "ScoredDataset":
        rows = list(rows)
        return cls(
            group_ids=np.array([row.group_id for row in rows], dtype=np.uint64),
            labels=np.array([row.label for row in rows], dtype=np.uint32),
            scores=np.array([row.score for row in rows], dtype=np.float32),
        )

    def __len__(self) -> int:
        return len(self.scores)

    def rows(self) -> Iterator[ScoredRow]:
        """Stream scored rows in input order."""
        for group_id, label, score in zip(self.group_ids, self.labels, self.scores):
            yield ScoredRow(group_id=int(group_id), score=float(score), label=int(label))

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {"group_id": self.group_ids, "label": self.labels, "score": self.scores}
        )
