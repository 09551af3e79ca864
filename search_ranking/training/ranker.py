"""
Ranker capability and its XGBoost implementation.

The training pipeline only depends on two small interfaces:

- Ranker.fit(Dataset) -> Transformer: trains on grouped, labeled rows
- Transformer.transform(Dataset) -> ScoredDataset: scores rows

XGBoostRanker trains an XGBRanker (LambdaMART, rank:ndcg objective) on the
feature pipeline's encoded labels and hashed group ids. Its RankingTransformer
owns the fitted booster and the feature pipeline (the model schema); neither
is mutated after training, and retraining produces a new transformer.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
import xgboost as xgb

from ..data.dataset import Dataset, ScoredDataset
from ..errors import EmptyInput
from ..features import FeatureConfig, FeaturePipeline, FeaturePipelineBuilder
from .config import TrainingConfig

logger = logging.getLogger(__name__)


class Transformer(ABC):
    """A fitted, immutable scoring function."""

    @abstractmethod
    def transform(self, dataset: Dataset) -> ScoredDataset:
        """Score every row of a dataset, preserving row order."""
        pass


class Ranker(ABC):
    """Trains a Transformer from grouped, labeled feature rows."""

    @abstractmethod
    def fit(self, dataset: Dataset) -> Transformer:
        """
        Train on a dataset.

        Must be deterministic for a fixed seed and dataset ordering.
        """
        pass


class RankingTransformer(Transformer):
    """
    XGBoost booster plus the feature pipeline it was trained with.

    Attributes:
        schema: FeaturePipeline describing the expected input layout
        num_training_rows: Number of rows the model was trained on
    """

    def __init__(self, booster: xgb.Booster, schema: FeaturePipeline, num_training_rows: int = 0):
        self._booster = booster
        self.schema = schema
        self.num_training_rows = num_training_rows

    @property
    def booster(self) -> xgb.Booster:
        return self._booster

    def transform(self, dataset: Dataset) -> ScoredDataset:
        """
        Score a dataset.

        Raises:
            SchemaMismatch: If the dataset's feature width differs from training
        """
        features = self.schema.feature_matrix(dataset)
        scores = self._booster.predict(xgb.DMatrix(features))
        return ScoredDataset(
            group_ids=dataset.group_ids,
            labels=dataset.labels,
            scores=np.asarray(scores, dtype=np.float32),
        )


class XGBoostRanker(Ranker):
    """
    Gradient-boosted LambdaMART ranker.

    Group ids are hashed into the pipeline's bucket space and the rows are
    stable-sorted by hashed id before fitting, since XGBoost expects each
    query group to be contiguous. Scores are per row, so this reordering does
    not affect predictions.

    Example:
        ranker = XGBoostRanker(TrainingConfig(n_estimators=200))
        transformer = ranker.fit(train_dataset)
        scored = transformer.transform(test_dataset)
    """

    def __init__(
        self,
        config: Optional[TrainingConfig] = None,
        feature_config: Optional[FeatureConfig] = None,
    ):
        self.config = config or TrainingConfig()
        self.pipeline_builder = FeaturePipelineBuilder(feature_config)

    def fit(self, dataset: Dataset) -> RankingTransformer:
        """
        Train an XGBRanker on a dataset.

        Raises:
            EmptyInput: If the dataset has no rows
        """
        if len(dataset) == 0:
            raise EmptyInput("Cannot train a ranker on an empty dataset")

        pipeline = self.pipeline_builder.build(dataset)

        features = pipeline.feature_matrix(dataset)
        labels = pipeline.encode_labels(dataset.labels)
        qid = pipeline.hash_group_ids(dataset.group_ids)

        order = np.argsort(qid, kind="stable")

        params = self.config.ranker_params()
        logger.info(
            f"Training XGBRanker on {len(dataset):,} rows, "
            f"{len(np.unique(qid)):,} hashed groups, {len(pipeline.feature_names)} features"
        )
        logger.debug(f"Ranker params: {params}")

        model = xgb.XGBRanker(**params)
        model.fit(features[order], labels[order], qid=qid[order], verbose=False)

        return RankingTransformer(
            booster=model.get_booster(),
            schema=pipeline,
            num_training_rows=len(dataset),
        )
