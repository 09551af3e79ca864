"""
Configuration dataclasses for ranking model training.

This module contains the configuration used by the ranker and the progressive
training pipeline. Using dataclasses provides type safety and clear
documentation of expected values; the same fields can be loaded from YAML.
"""

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..errors import InvalidConfiguration
from ..shared_utils.paths import MODEL_PATH
from .metrics import validate_truncation_level


@dataclass
class TrainingConfig:
    """
    Configuration for the ranking model training pipeline.

    Example YAML:
        random_seed: 0
        truncation_level: 5
        n_estimators: 200
        learning_rate: 0.1
        model_path: assets/output/ranking_model.zip
        mlflow_tracking_uri: file:./mlruns

    Attributes:
        model_path: Where the final model is saved (None = do not persist)
        mlflow_tracking_uri: MLflow tracking URI (None disables tracking)
        mlflow_experiment: Name of the MLflow experiment
        objective: XGBoost ranking objective
        n_estimators: Number of boosted trees
        learning_rate: Boosting learning rate
        max_depth: Maximum tree depth
        min_child_weight: Minimum hessian weight per leaf
        colsample_bytree: Feature sampling ratio
        n_jobs: Training threads (-1 = all cores)
        truncation_level: DCG/NDCG cutoff reported after each stage, in [1, 10]
        top_k_scan_window: Number of leading test predictions scanned when
            re-ranking one query group
        random_seed: Random seed for reproducibility
    """

    model_path: Optional[Path] = field(default_factory=lambda: MODEL_PATH)
    mlflow_tracking_uri: Optional[str] = None
    mlflow_experiment: str = "search_ranking"

    # Ranker hyperparameters
    objective: str = "rank:ndcg"
    n_estimators: int = 100
    learning_rate: float = 0.1
    max_depth: int = 6
    min_child_weight: float = 1.0
    colsample_bytree: float = 1.0
    n_jobs: int = -1

    # Evaluation
    truncation_level: int = 3
    top_k_scan_window: int = 100

    # Reproducibility
    random_seed: int = 0

    def __post_init__(self):
        """Normalise paths and validate ranges."""
        if isinstance(self.model_path, str):
            self.model_path = Path(self.model_path)
        validate_truncation_level(self.truncation_level)
        if self.top_k_scan_window < 0:
            raise InvalidConfiguration(
                f"top_k_scan_window must be >= 0, got {self.top_k_scan_window}"
            )
        if self.n_estimators < 1:
            raise InvalidConfiguration(f"n_estimators must be >= 1, got {self.n_estimators}")

    def ranker_params(self) -> Dict[str, Any]:
        """Keyword arguments for the XGBoost ranker."""
        return {
            "objective": self.objective,
            "n_estimators": self.n_estimators,
            "learning_rate": self.learning_rate,
            "max_depth": self.max_depth,
            "min_child_weight": self.min_child_weight,
            "colsample_bytree": self.colsample_bytree,
            "tree_method": "hist",
            "random_state": self.random_seed,
            "n_jobs": self.n_jobs,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["model_path"] = str(self.model_path) if self.model_path else None
        return data

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "TrainingConfig":
        """
        Load training configuration from a YAML file.

        Args:
            yaml_path: Path to YAML config file

        Returns:
            TrainingConfig instance

        Raises:
            InvalidConfiguration: If the file holds unknown keys
        """
        with open(yaml_path) as f:
            config_dict = yaml.safe_load(f) or {}

        valid = set(cls.__dataclass_fields__)
        unknown = sorted(set(config_dict) - valid)
        if unknown:
            raise InvalidConfiguration(
                f"Unknown training config keys: {unknown}. Valid keys: {sorted(valid)}"
            )

        return cls(**config_dict)
