"""
Data package for ranking splits.

Modules:
    dataset: Immutable Row / Dataset / ScoredRow / ScoredDataset containers
    loader: TSV loading (header on the first split only)
    prepare_data: Download missing splits
    config: DataConfig with split paths and URLs
"""

from .config import DataConfig
from .dataset import (
    GROUP_ID_COLUMN,
    LABEL_COLUMN,
    Dataset,
    Row,
    ScoredDataset,
    ScoredRow,
    merge_datasets,
)
from .loader import load_splits, load_tsv

__all__ = [
    "DataConfig",
    "Dataset",
    "Row",
    "ScoredDataset",
    "ScoredRow",
    "merge_datasets",
    "load_tsv",
    "load_splits",
    "LABEL_COLUMN",
    "GROUP_ID_COLUMN",
]
