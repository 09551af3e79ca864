"""
MLflow experiment tracking for pipeline runs.

One MLflow run is opened per pipeline invocation. Ranker parameters are
logged when the run starts and stage metrics (val_ndcg_3, test_dcg_1, ...)
as each evaluation stage completes. Tracking is off when no tracking URI is
configured.
"""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import mlflow

logger = logging.getLogger(__name__)


class ExperimentTracker:
    """Thin wrapper over the MLflow fluent API."""

    def __init__(self, tracking_uri: Optional[str], experiment: str):
        self.tracking_uri = tracking_uri
        self.experiment = experiment

    @property
    def enabled(self) -> bool:
        return self.tracking_uri is not None

    @contextmanager
    def run(self, run_name: str, params: Dict[str, Any]) -> Iterator[None]:
        """Open an MLflow run for the duration of the block."""
        if not self.enabled:
            yield
            return

        mlflow.set_tracking_uri(self.tracking_uri)
        mlflow.set_experiment(self.experiment)
        with mlflow.start_run(run_name=run_name):
            mlflow.log_params(params)
            logger.info(f"MLflow run started (experiment: {self.experiment})")
            yield

    def log_metrics(self, metrics: Dict[str, float]) -> None:
        if self.enabled:
            mlflow.log_metrics(metrics)

    def log_param(self, key: str, value: Any) -> None:
        if self.enabled:
            mlflow.log_param(key, value)
