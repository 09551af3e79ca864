"""
Feature pipeline for the ranking model.

The FeaturePipelineBuilder inspects a training dataset and produces a
FeaturePipeline: the ordered list of feature columns fed to the model plus
the encodings applied before training:

- Label: mapped into an ordinal key space 0..n-1, in ascending label order
- GroupId: hashed into a fixed-width bucket space (20 bits by default)

The pipeline is immutable and is persisted next to the model as its schema,
so scoring data is laid out exactly as the training data was.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np
import pandas as pd

from ..data.dataset import Dataset
from ..errors import EmptyInput, SchemaMismatch
from .config import FeatureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeaturePipeline:
    """
    Fitted feature layout and encodings.

    Attributes:
        source_feature_names: All feature columns of the training data, in order
        feature_names: Columns used by the model (subset of source, same order)
        label_keys: Distinct training labels in ascending order; a label's
            position in this tuple is its ordinal key
        group_id_hash_bits: Width of the group-id bucket space
    """

    source_feature_names: Tuple[str, ...]
    feature_names: Tuple[str, ...]
    label_keys: Tuple[int, ...]
    group_id_hash_bits: int = 20

    @property
    def num_source_features(self) -> int:
        return len(self.source_feature_names)

    def feature_matrix(self, dataset: Dataset) -> np.ndarray:
        """
        Select the model's feature columns from a dataset.

        Raises:
            SchemaMismatch: If the dataset's feature width differs from training
        """
        if dataset.num_features != self.num_source_features:
            raise SchemaMismatch(
                f"Dataset has {dataset.num_features} features, model was trained "
                f"on {self.num_source_features}"
            )
        if self.feature_names == self.source_feature_names:
            return dataset.features

        positions = {name: i for i, name in enumerate(self.source_feature_names)}
        return dataset.features[:, [positions[name] for name in self.feature_names]]

    def encode_labels(self, labels: np.ndarray) -> np.ndarray:
        """
        Map raw labels to ordinal keys.

        Raises:
            SchemaMismatch: If a label was not seen when the pipeline was built
        """
        keys = np.asarray(self.label_keys, dtype=np.int64)
        labels = np.asarray(labels, dtype=np.int64)
        encoded = np.searchsorted(keys, labels)
        known = (encoded < len(keys)) & (keys[np.minimum(encoded, len(keys) - 1)] == labels)
        if not known.all():
            unknown = sorted(set(labels[~known].tolist()))
            raise SchemaMismatch(f"Labels not in the training key space: {unknown}")
        return encoded.astype(np.uint32)

    def hash_group_ids(self, group_ids: np.ndarray) -> np.ndarray:
        """Hash group ids into the fixed-width bucket space."""
        hashed = pd.util.hash_array(np.asarray(group_ids, dtype=np.uint64))
        mask = np.uint64((1 << self.group_id_hash_bits) - 1)
        return (hashed & mask).astype(np.uint32)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "source_feature_names": list(self.source_feature_names),
            "feature_names": list(self.feature_names),
            "label_keys": list(self.label_keys),
            "group_id_hash_bits": self.group_id_hash_bits,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FeaturePipeline":
        return cls(
            source_feature_names=tuple(data["source_feature_names"]),
            feature_names=tuple(data["feature_names"]),
            label_keys=tuple(int(k) for k in data["label_keys"]),
            group_id_hash_bits=int(data.get("group_id_hash_bits", 20)),
        )


class FeaturePipelineBuilder:
    """
    Builds the FeaturePipeline for a training dataset.

    Example:
        builder = FeaturePipelineBuilder(FeatureConfig())
        pipeline = builder.build(train_dataset)
        X = pipeline.feature_matrix(train_dataset)
        y = pipeline.encode_labels(train_dataset.labels)
        qid = pipeline.hash_group_ids(train_dataset.group_ids)
    """

    def __init__(self, config: Optional[FeatureConfig] = None):
        self.config = config or FeatureConfig()

    def build(self, dataset: Dataset) -> FeaturePipeline:
        """
        Assemble feature columns and label keys from a training dataset.

        Raises:
            EmptyInput: If the dataset has no rows
            SchemaMismatch: If an excluded feature does not exist or no
                feature columns remain
        """
        if len(dataset) == 0:
            raise EmptyInput("Cannot build a feature pipeline from an empty dataset")

        unknown = [c for c in self.config.excluded_features if c not in dataset.feature_names]
        if unknown:
            raise SchemaMismatch(f"Excluded features not in dataset: {unknown}")

        feature_names = tuple(
            name for name in dataset.feature_names if name not in self.config.excluded_features
        )
        if not feature_names:
            raise SchemaMismatch("No feature columns left after exclusions")

        label_keys = tuple(int(v) for v in np.unique(dataset.labels))

        logger.info(f"Feature pipeline: {len(feature_names)} features")
        logger.debug(f"Label keys: {label_keys}")

        return FeaturePipeline(
            source_feature_names=dataset.feature_names,
            feature_names=feature_names,
            label_keys=label_keys,
            group_id_hash_bits=self.config.group_id_hash_bits,
        )
