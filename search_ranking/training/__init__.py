"""
Ranking model training package.

This package contains modules for training an XGBoost ranking model
progressively on widening data splits, with DCG/NDCG evaluation between
stages and optional MLflow experiment tracking.

Modules:
    config: TrainingConfig dataclass (YAML-loadable)
    metrics: Grouped DCG@K / NDCG@K evaluation
    ranker: Ranker / Transformer interfaces and the XGBoost implementation
    orchestrator: ProgressiveTrainingOrchestrator state machine
    tracking: MLflow experiment tracking

CLI Usage:
    python -m search_ranking.training.train_ranking_model
    python -m search_ranking.training.train_ranking_model --truncation-level 10
    python -m search_ranking.training.train_ranking_model --config training.yaml
"""

from .config import TrainingConfig
from .metrics import (
    GroupedMetricsEvaluator,
    RankingMetrics,
    evaluate_model,
    evaluate_ranking,
    per_group_ndcg,
    validate_truncation_level,
)
from .orchestrator import (
    PipelineResult,
    PipelineSnapshot,
    PipelineStage,
    ProgressiveTrainingOrchestrator,
)
from .ranker import Ranker, RankingTransformer, Transformer, XGBoostRanker
from .tracking import ExperimentTracker

__all__ = [
    "TrainingConfig",
    "GroupedMetricsEvaluator",
    "RankingMetrics",
    "evaluate_model",
    "evaluate_ranking",
    "per_group_ndcg",
    "validate_truncation_level",
    "PipelineResult",
    "PipelineSnapshot",
    "PipelineStage",
    "ProgressiveTrainingOrchestrator",
    "Ranker",
    "RankingTransformer",
    "Transformer",
    "XGBoostRanker",
    "ExperimentTracker",
]
