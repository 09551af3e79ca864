"""
Saving and loading trained ranking models.

A model artifact is a single zip archive at a caller-chosen path:

- model.json: XGBoost booster in JSON format
- schema.json: Feature pipeline (feature order, label keys, hash width);
  the order is critical for inference, features must be provided in the
  same layout as during training
- model_info.json: Metadata (creation time, sizes)

Archives are written to a temporary file first and renamed into place, so a
failed save never leaves a partial artifact at the target path.
"""

import json
import logging
import zipfile
from pathlib import Path
from typing import Dict, Tuple, Union

import pandas as pd
import xgboost as xgb

from ..features import FeaturePipeline
from ..training.ranker import RankingTransformer

logger = logging.getLogger(__name__)

MODEL_FILE = "model.json"
SCHEMA_FILE = "schema.json"
INFO_FILE = "model_info.json"


class ModelStore:
    """Persists RankingTransformers as zip archives."""

    @staticmethod
    def save(transformer: RankingTransformer, path: Union[str, Path]) -> Path:
        """
        Save a transformer and its schema.

        Args:
            transformer: Fitted transformer
            path: Target archive path (parent directories are created)

        Returns:
            The archive path
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        schema = transformer.schema
        model_info = {
            "model_name": path.stem,
            "created_at": pd.Timestamp.now().isoformat(),
            "num_features": len(schema.feature_names),
            "num_training_rows": transformer.num_training_rows,
            "xgboost_version": xgb.__version__,
        }

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with zipfile.ZipFile(tmp_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
                archive.writestr(MODEL_FILE, bytes(transformer.booster.save_raw(raw_format="json")))
                archive.writestr(SCHEMA_FILE, json.dumps(schema.to_dict(), indent=2))
                archive.writestr(INFO_FILE, json.dumps(model_info, indent=2))
            tmp_path.replace(path)
        finally:
            tmp_path.unlink(missing_ok=True)

        logger.info(f"Model saved to {path}")
        return path

    @staticmethod
    def load(path: Union[str, Path]) -> Tuple[RankingTransformer, FeaturePipeline]:
        """
        Load a transformer saved with ModelStore.save.

        Returns:
            Tuple of (transformer, schema)

        Raises:
            FileNotFoundError: If the archive doesn't exist
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Model not found at {path}")

        with zipfile.ZipFile(path) as archive:
            raw_model = archive.read(MODEL_FILE)
            schema = FeaturePipeline.from_dict(json.loads(archive.read(SCHEMA_FILE)))
            model_info = json.loads(archive.read(INFO_FILE))

        booster = xgb.Booster()
        booster.load_model(bytearray(raw_model))

        transformer = RankingTransformer(
            booster=booster,
            schema=schema,
            num_training_rows=int(model_info.get("num_training_rows", 0)),
        )
        logger.info(f"Model loaded from {path}")
        return transformer, schema

    @staticmethod
    def load_model_info(path: Union[str, Path]) -> Dict:
        """
        Load model metadata.

        Returns:
            Dictionary with model metadata, or {} if the archive doesn't exist
        """
        path = Path(path)
        if not path.exists():
            return {}
        with zipfile.ZipFile(path) as archive:
            return json.loads(archive.read(INFO_FILE))
