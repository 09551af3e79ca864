"""
Progressive training and evaluation over widening data.

The orchestrator trains on a growing union of the dataset splits and
evaluates between stages:

    Initial
      -> TrainedOnTrain                   fit on train
      -> EvaluatedOnValidation            DCG/NDCG on validation
      -> TrainedOnTrainPlusValidation     fit on train + validation
      -> EvaluatedOnTest                  DCG/NDCG on test
      -> TrainedOnAll                     fit on train + validation + test
      -> Finalized                        save/reload, top-K re-ranking

Transitions are strictly sequential, with no branches and no retries. Each
transition takes an immutable PipelineSnapshot and returns a new one. A
failure inside a transition is raised as StageFailed (chained from the
original error) and the remaining stages do not run. The model is only
persisted in the final transition: it is saved next to the target path,
reloaded and consumed from there, and only moved onto the target once the
whole transition succeeds, so a failed run leaves no artifact.
"""

import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Dict, Optional, Tuple

from ..data.dataset import Dataset, ScoredRow, merge_datasets
from ..errors import StageFailed
from ..evaluation.report import format_metrics, format_scores
from ..serving.top_k import extract_top
from .config import TrainingConfig
from .metrics import RankingMetrics, evaluate_model
from .ranker import Ranker, Transformer
from .tracking import ExperimentTracker

if TYPE_CHECKING:
    from ..shared_utils.model_store import ModelStore

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    """States of the progressive training pipeline, in order."""

    INITIAL = "Initial"
    TRAINED_ON_TRAIN = "TrainedOnTrain"
    EVALUATED_ON_VALIDATION = "EvaluatedOnValidation"
    TRAINED_ON_TRAIN_PLUS_VALIDATION = "TrainedOnTrainPlusValidation"
    EVALUATED_ON_TEST = "EvaluatedOnTest"
    TRAINED_ON_ALL = "TrainedOnAll"
    FINALIZED = "Finalized"


NEXT_STAGE: Dict[PipelineStage, PipelineStage] = {
    PipelineStage.INITIAL: PipelineStage.TRAINED_ON_TRAIN,
    PipelineStage.TRAINED_ON_TRAIN: PipelineStage.EVALUATED_ON_VALIDATION,
    PipelineStage.EVALUATED_ON_VALIDATION: PipelineStage.TRAINED_ON_TRAIN_PLUS_VALIDATION,
    PipelineStage.TRAINED_ON_TRAIN_PLUS_VALIDATION: PipelineStage.EVALUATED_ON_TEST,
    PipelineStage.EVALUATED_ON_TEST: PipelineStage.TRAINED_ON_ALL,
    PipelineStage.TRAINED_ON_ALL: PipelineStage.FINALIZED,
}


@dataclass(frozen=True)
class PipelineSnapshot:
    """
    Immutable pipeline state between transitions.

    Attributes:
        stage: Current state
        transformer: Most recently trained transformer
        training_data: Data the current transformer was trained on
        validation_metrics: Metrics of the train-only model on validation
        test_metrics: Metrics of the train+validation model on test
        top_results: Top-K re-ranking of one test group (set when finalized)
        model_path: Where the final model was saved, if it was
    """

    stage: PipelineStage = PipelineStage.INITIAL
    transformer: Optional[Transformer] = None
    training_data: Optional[Dataset] = None
    validation_metrics: Optional[RankingMetrics] = None
    test_metrics: Optional[RankingMetrics] = None
    top_results: Tuple[ScoredRow, ...] = ()
    model_path: Optional[Path] = None


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a complete pipeline run."""

    transformer: Transformer
    training_rows: int
    validation_metrics: RankingMetrics
    test_metrics: RankingMetrics
    top_results: Tuple[ScoredRow, ...]
    model_path: Optional[Path] = None


class ProgressiveTrainingOrchestrator:
    """
    Trains on train -> train+val -> train+val+test, evaluating in between.

    The final transformer is trained on the union of all three splits, in the
    fixed order train, validation, test.

    Example:
        orchestrator = ProgressiveTrainingOrchestrator(
            ranker=XGBoostRanker(config),
            train=train, validation=validation, test=test,
            config=config,
            model_store=ModelStore(),
        )
        result = orchestrator.run()
    """

    def __init__(
        self,
        ranker: Ranker,
        train: Dataset,
        validation: Dataset,
        test: Dataset,
        config: Optional[TrainingConfig] = None,
        model_store: Optional["ModelStore"] = None,
        tracker: Optional[ExperimentTracker] = None,
    ):
        """
        Args:
            ranker: Trains transformers
            train: Training split
            validation: Validation split
            test: Test split
            config: Truncation level, scan window and model path
            model_store: Persists the final model; None skips persistence
            tracker: MLflow tracker; defaults to one built from config
        """
        self.ranker = ranker
        self.train_data = train
        self.validation_data = validation
        self.test_data = test
        self.config = config or TrainingConfig()
        self.model_store = model_store
        self.tracker = tracker or ExperimentTracker(
            self.config.mlflow_tracking_uri, self.config.mlflow_experiment
        )

        self._transitions: Dict[PipelineStage, Callable[[PipelineSnapshot], PipelineSnapshot]] = {
            PipelineStage.INITIAL: self._train_on_train,
            PipelineStage.TRAINED_ON_TRAIN: self._evaluate_on_validation,
            PipelineStage.EVALUATED_ON_VALIDATION: self._train_on_train_plus_validation,
            PipelineStage.TRAINED_ON_TRAIN_PLUS_VALIDATION: self._evaluate_on_test,
            PipelineStage.EVALUATED_ON_TEST: self._train_on_all,
            PipelineStage.TRAINED_ON_ALL: self._finalize,
        }

    # =========================================================================
    # Stage operations
    # =========================================================================

    def train(self, dataset: Dataset) -> Transformer:
        """Train a transformer on a dataset via the ranker."""
        return self.ranker.fit(dataset)

    def evaluate(
        self, transformer: Transformer, dataset: Dataset, truncation_level: Optional[int] = None
    ) -> RankingMetrics:
        """Score every row of a dataset and compute DCG/NDCG at 1..K."""
        level = self.config.truncation_level if truncation_level is None else truncation_level
        metrics, _ = evaluate_model(transformer, dataset, level)
        return metrics

    @staticmethod
    def merge_datasets(first: Dataset, second: Dataset) -> Dataset:
        """Concatenate first's rows then second's; no dedup, no reshuffle."""
        return merge_datasets(first, second)

    # =========================================================================
    # State machine
    # =========================================================================

    def step(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        """
        Advance the pipeline by one transition.

        Raises:
            StageFailed: If the transition fails; carries the stage being
                entered and the original exception
            RuntimeError: If the pipeline is already finalized
        """
        if snapshot.stage is PipelineStage.FINALIZED:
            raise RuntimeError("Pipeline is already finalized")

        target = NEXT_STAGE[snapshot.stage]
        transition = self._transitions[snapshot.stage]
        try:
            return transition(snapshot)
        except Exception as e:
            logger.error(f"Stage {target.value} failed: {e}")
            raise StageFailed(target.value, e) from e

    def run(self) -> PipelineResult:
        """
        Execute all stages in order.

        Returns:
            PipelineResult with the final transformer, metrics and top-K rows

        Raises:
            StageFailed: On the first failing stage
        """
        snapshot = PipelineSnapshot()

        with self.tracker.run("progressive_training", self._tracked_params()):
            while snapshot.stage is not PipelineStage.FINALIZED:
                snapshot = self.step(snapshot)

        logger.info("=" * 60)
        logger.info("Pipeline complete!")
        logger.info("=" * 60)

        return PipelineResult(
            transformer=snapshot.transformer,
            training_rows=len(snapshot.training_data),
            validation_metrics=snapshot.validation_metrics,
            test_metrics=snapshot.test_metrics,
            top_results=snapshot.top_results,
            model_path=snapshot.model_path,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def _train_on_train(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        self._banner("Train the model on the training dataset")
        data = self.train_data
        transformer = self.train(data)
        self.tracker.log_param("stage1_training_rows", len(data))
        return replace(
            snapshot,
            stage=PipelineStage.TRAINED_ON_TRAIN,
            transformer=transformer,
            training_data=data,
        )

    def _evaluate_on_validation(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        self._banner("Evaluate the model's result quality with the validation data")
        metrics = self.evaluate(snapshot.transformer, self.validation_data)
        self._report(metrics, prefix="val_")
        return replace(
            snapshot,
            stage=PipelineStage.EVALUATED_ON_VALIDATION,
            validation_metrics=metrics,
        )

    def _train_on_train_plus_validation(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        self._banner("Train the model on the training + validation dataset")
        data = self.merge_datasets(snapshot.training_data, self.validation_data)
        transformer = self.train(data)
        self.tracker.log_param("stage2_training_rows", len(data))
        return replace(
            snapshot,
            stage=PipelineStage.TRAINED_ON_TRAIN_PLUS_VALIDATION,
            transformer=transformer,
            training_data=data,
        )

    def _evaluate_on_test(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        self._banner("Evaluate the model's result quality with the testing data")
        metrics = self.evaluate(snapshot.transformer, self.test_data)
        self._report(metrics, prefix="test_")
        return replace(
            snapshot,
            stage=PipelineStage.EVALUATED_ON_TEST,
            test_metrics=metrics,
        )

    def _train_on_all(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        self._banner("Train the model on the training + validation + test dataset")
        data = self.merge_datasets(snapshot.training_data, self.test_data)
        transformer = self.train(data)
        self.tracker.log_param("stage3_training_rows", len(data))
        return replace(
            snapshot,
            stage=PipelineStage.TRAINED_ON_ALL,
            transformer=transformer,
            training_data=data,
        )

    def _finalize(self, snapshot: PipelineSnapshot) -> PipelineSnapshot:
        model_path = None

        if self.model_store is not None and self.config.model_path is not None:
            target = Path(self.config.model_path)
            staged = target.with_name(target.name + ".staged")

            self._banner("Save the model")
            try:
                self.model_store.save(snapshot.transformer, staged)
                # Consume the persisted artifact, not the in-memory model
                transformer, _ = self.model_store.load(staged)
                top_results = self._rerank_first_test_group(transformer)
                staged.replace(target)
            finally:
                staged.unlink(missing_ok=True)

            model_path = target
            logger.info(f"Model published to {model_path}")
        else:
            top_results = self._rerank_first_test_group(snapshot.transformer)

        return replace(
            snapshot,
            stage=PipelineStage.FINALIZED,
            top_results=top_results,
            model_path=model_path,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _rerank_first_test_group(self, transformer: Transformer) -> Tuple[ScoredRow, ...]:
        """Score the test split and re-rank the group of its first row."""
        self._banner("Consume the model")
        scored = transformer.transform(self.test_data)
        if len(scored) == 0:
            return ()

        first_group_id = int(scored.group_ids[0])
        top_results = tuple(
            extract_top(scored.rows(), first_group_id, self.config.top_k_scan_window)
        )
        for line in format_scores(top_results):
            logger.info(line)
        return top_results

    def _banner(self, title: str) -> None:
        logger.info("=" * 60)
        logger.info(title)
        logger.info("=" * 60)

    def _report(self, metrics: RankingMetrics, prefix: str) -> None:
        logger.info(f"Metrics at truncation levels 1..{metrics.truncation_level}:")
        for line in format_metrics(metrics):
            logger.info(line)
        self.tracker.log_metrics(metrics.to_dict(prefix=prefix))

    def _tracked_params(self) -> Dict:
        params = self.config.ranker_params()
        params.update(
            {
                "ranker": type(self.ranker).__name__,
                "truncation_level": self.config.truncation_level,
                "top_k_scan_window": self.config.top_k_scan_window,
            }
        )
        return params
