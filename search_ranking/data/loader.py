"""
TSV loading for ranking data splits.

Each file holds one row per search result:

    Label<TAB>GroupId<TAB>Feature0<TAB>Feature1 ...

Only the first split loaded carries a header row. Headerless splits are given
the feature names of the first split so every dataset in a run shares one
schema.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

import pandas as pd

from ..errors import SchemaMismatch
from .config import DataConfig
from .dataset import GROUP_ID_COLUMN, LABEL_COLUMN, Dataset, default_feature_names

logger = logging.getLogger(__name__)


def _check_id_column(df: pd.DataFrame, column: str, path: Path) -> None:
    """Label and GroupId must be non-negative integers."""
    values = df[column]
    if not pd.api.types.is_integer_dtype(values) or (values < 0).any():
        raise SchemaMismatch(
            f"Column '{column}' in {path} must hold non-negative integers "
            f"(dtype: {values.dtype})"
        )


def load_tsv(
    path: Union[str, Path],
    has_header: bool = True,
    feature_names: Optional[Sequence[str]] = None,
) -> Dataset:
    """
    Load a tab-separated split into a Dataset.

    Args:
        path: TSV file to read
        has_header: Whether the first line is a header row
        feature_names: Expected feature names. Required to name the columns of
            a headerless file; for a file with a header it is checked against
            the header width.

    Returns:
        Dataset with rows in file order

    Raises:
        FileNotFoundError: If the file does not exist
        SchemaMismatch: If the column layout is not Label, GroupId, features
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found at {path}")

    logger.info(f"Loading {path.name}...")
    df = pd.read_csv(path, sep="\t", header=0 if has_header else None)

    if has_header:
        df.columns = [str(c).strip() for c in df.columns]
        missing = [c for c in (LABEL_COLUMN, GROUP_ID_COLUMN) if c not in df.columns]
        if missing:
            raise SchemaMismatch(f"{path} is missing required columns: {missing}")
        num_features = df.shape[1] - 2
        if feature_names is not None and len(feature_names) != num_features:
            raise SchemaMismatch(
                f"{path} has {num_features} feature columns, expected {len(feature_names)}"
            )
    else:
        num_features = df.shape[1] - 2
        if num_features < 0:
            raise SchemaMismatch(f"{path} needs at least Label and GroupId columns")
        if feature_names is None:
            names = default_feature_names(num_features)
        elif len(feature_names) != num_features:
            raise SchemaMismatch(
                f"{path} has {num_features} feature columns, expected {len(feature_names)}"
            )
        else:
            names = tuple(feature_names)
        df.columns = [LABEL_COLUMN, GROUP_ID_COLUMN, *names]

    _check_id_column(df, LABEL_COLUMN, path)
    _check_id_column(df, GROUP_ID_COLUMN, path)

    dataset = Dataset.from_frame(df)
    logger.info(
        f"  {len(dataset):,} rows, {dataset.num_features} features, "
        f"{df[GROUP_ID_COLUMN].nunique():,} query groups"
    )
    return dataset


def load_splits(config: DataConfig) -> Tuple[Dataset, Dataset, Dataset]:
    """
    Load train, validation and test splits.

    The train split is read with its header; validation and test are read
    without one and take the train split's feature names.
    """
    train = load_tsv(config.train_path, has_header=True)
    validation = load_tsv(
        config.validation_path, has_header=False, feature_names=train.feature_names
    )
    test = load_tsv(config.test_path, has_header=False, feature_names=train.feature_names)
    return train, validation, test
