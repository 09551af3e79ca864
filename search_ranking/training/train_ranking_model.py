#!/usr/bin/env python
"""
CLI entry point for progressive ranking model training.

Usage:
    # Default: download missing splits, train, evaluate at NDCG@1..3, save model
    python -m search_ranking.training.train_ranking_model

    # Report DCG/NDCG at truncation levels 1..10
    python -m search_ranking.training.train_ranking_model --truncation-level 10

    # Load settings from YAML (CLI flags override)
    python -m search_ranking.training.train_ranking_model --config training.yaml

    # Custom paths
    python -m search_ranking.training.train_ranking_model \\
        --train train.tsv --validation val.tsv --test test.tsv --model-path model.zip
"""

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import requests

from search_ranking.data import DataConfig, load_splits
from search_ranking.data.prepare_data import prepare_data
from search_ranking.errors import RankingError
from search_ranking.shared_utils import setup_logging
from search_ranking.shared_utils.model_store import ModelStore
from search_ranking.training.config import TrainingConfig
from search_ranking.training.orchestrator import ProgressiveTrainingOrchestrator
from search_ranking.training.ranker import XGBoostRanker


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Train an XGBoost ranking model on train, train+val, train+val+test.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default behavior
  python -m search_ranking.training.train_ranking_model

  # Wider metrics report
  python -m search_ranking.training.train_ranking_model --truncation-level 10

  # Skip downloads, use local files only
  python -m search_ranking.training.train_ranking_model --no-download

  # Verbose output
  python -m search_ranking.training.train_ranking_model -v
        """,
    )

    defaults = DataConfig()

    # Path arguments
    parser.add_argument("--train", type=Path, default=defaults.train_path,
                        help=f"Training split with header row (default: {defaults.train_path})")
    parser.add_argument("--validation", type=Path, default=defaults.validation_path,
                        help=f"Validation split (default: {defaults.validation_path})")
    parser.add_argument("--test", type=Path, default=defaults.test_path,
                        help=f"Test split (default: {defaults.test_path})")
    parser.add_argument("--model-path", type=Path, default=None,
                        help="Where to save the final model (default: from config)")
    parser.add_argument("--config", type=Path, default=None,
                        help="YAML file with TrainingConfig fields")

    # Training / evaluation arguments
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--truncation-level", type=int, default=None,
                        help="Report DCG/NDCG at 1..K, K in [1, 10] (default: 3)")
    parser.add_argument("--experiment", type=str, default=None,
                        help="MLflow experiment name")
    parser.add_argument("--mlflow-tracking-uri", type=str, default=None,
                        help="Enable MLflow tracking at this URI")
    parser.add_argument("--no-download", action="store_true",
                        help="Do not download missing splits")

    # Verbose output
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose output")
    return parser


def build_config(args: argparse.Namespace) -> TrainingConfig:
    """Defaults, then YAML, then explicit CLI flags."""
    config = TrainingConfig.from_yaml(args.config) if args.config else TrainingConfig()

    overrides = {
        "model_path": args.model_path,
        "random_seed": args.seed,
        "truncation_level": args.truncation_level,
        "mlflow_experiment": args.experiment,
        "mlflow_tracking_uri": args.mlflow_tracking_uri,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    return replace(config, **overrides)


def main() -> int:
    """Main entry point for the training script."""
    args = build_parser().parse_args()

    # Setup logging
    setup_logging(verbose=args.verbose)
    logger = logging.getLogger(__name__)

    data_config = DataConfig(
        train_path=args.train,
        validation_path=args.validation,
        test_path=args.test,
    )

    try:
        config = build_config(args)

        if not args.no_download:
            prepare_data(data_config)

        train, validation, test = load_splits(data_config)

        orchestrator = ProgressiveTrainingOrchestrator(
            ranker=XGBoostRanker(config),
            train=train,
            validation=validation,
            test=test,
            config=config,
            model_store=ModelStore(),
        )
        result = orchestrator.run()

        logger.info(f"Final model trained on {result.training_rows:,} rows")
        if result.model_path:
            logger.info(f"Model saved to {result.model_path}")
        logger.info("Done!")
        return 0
    except FileNotFoundError as e:
        logger.error(f"File not found: {e}")
        return 1
    except requests.exceptions.RequestException as e:
        logger.error(f"Download failed: {e}")
        return 1
    except RankingError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.exception(f"Training failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
