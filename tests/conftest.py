"""
pytest configuration and fixtures.

Provides small in-memory datasets and deterministic stub rankers so the
metrics and orchestration code can be tested without training a real model.
"""

from typing import List, Optional

import numpy as np
import pytest

from search_ranking.data import Dataset, Row, ScoredDataset
from search_ranking.training import Ranker, TrainingConfig, Transformer

FEATURE_NAMES = ("f0", "f1", "f2")


def make_dataset(rows, feature_names=FEATURE_NAMES) -> Dataset:
    """Build a Dataset from (group_id, label, features) tuples."""
    return Dataset.from_rows(
        [Row(group_id=g, label=l, features=tuple(f)) for g, l, f in rows],
        feature_names=feature_names,
    )


def synthetic_dataset(num_groups: int, rows_per_group: int, seed: int, first_group: int = 0) -> Dataset:
    """
    Grouped rows whose first feature tracks the label.

    Every group contains at least one relevant row.
    """
    rng = np.random.default_rng(seed)
    group_ids, labels, features = [], [], []
    for g in range(first_group, first_group + num_groups):
        group_labels = rng.integers(0, 5, size=rows_per_group)
        group_labels[0] = max(group_labels[0], 1)
        for label in group_labels:
            group_ids.append(g)
            labels.append(label)
            features.append([label + rng.normal(0, 0.1), rng.normal(), rng.normal()])
    return Dataset(
        group_ids=np.array(group_ids),
        labels=np.array(labels),
        features=np.array(features),
        feature_names=FEATURE_NAMES,
    )


class LabelTransformer(Transformer):
    """Scores each row with its own label: a perfect ranking."""

    def transform(self, dataset: Dataset) -> ScoredDataset:
        return ScoredDataset(
            group_ids=dataset.group_ids,
            labels=dataset.labels,
            scores=dataset.labels.astype(np.float32),
        )


class FirstFeatureTransformer(Transformer):
    """Scores each row with its first feature."""

    def transform(self, dataset: Dataset) -> ScoredDataset:
        return ScoredDataset(
            group_ids=dataset.group_ids,
            labels=dataset.labels,
            scores=dataset.features[:, 0],
        )


class RecordingRanker(Ranker):
    """Records every dataset it is fitted on and returns a LabelTransformer."""

    def __init__(self, fail_on_call: Optional[int] = None, error: Optional[Exception] = None):
        self.fitted: List[Dataset] = []
        self.fail_on_call = fail_on_call
        self.error = error or RuntimeError("training exploded")

    def fit(self, dataset: Dataset) -> Transformer:
        self.fitted.append(dataset)
        if self.fail_on_call is not None and len(self.fitted) == self.fail_on_call:
            raise self.error
        return LabelTransformer()


class FakeModelStore:
    """
    Stand-in for ModelStore recording saves and loads.

    Saves write a placeholder file so artifact placement can be checked;
    loads hand back the last saved transformer, or raise load_error.
    """

    def __init__(self, load_error: Optional[Exception] = None):
        self.saved = []
        self.loaded = []
        self.load_error = load_error

    def save(self, transformer, path):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(b"model")
        self.saved.append((transformer, path))
        return path

    def load(self, path):
        self.loaded.append(path)
        if self.load_error is not None:
            raise self.load_error
        transformer = self.saved[-1][0]
        return transformer, None


@pytest.fixture
def splits():
    """Train / validation / test splits with disjoint group ids."""
    train = synthetic_dataset(num_groups=6, rows_per_group=5, seed=1, first_group=0)
    validation = synthetic_dataset(num_groups=3, rows_per_group=4, seed=2, first_group=100)
    test = synthetic_dataset(num_groups=3, rows_per_group=4, seed=3, first_group=200)
    return train, validation, test


@pytest.fixture
def recording_ranker():
    return RecordingRanker()


@pytest.fixture
def fast_config(tmp_path):
    """Small, single-threaded XGBoost settings for tests."""
    return TrainingConfig(
        model_path=tmp_path / "model.zip",
        n_estimators=20,
        learning_rate=0.3,
        max_depth=3,
        min_child_weight=0.0,
        n_jobs=1,
        random_seed=7,
    )
