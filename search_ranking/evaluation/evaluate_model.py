"""
Model evaluation script.

Loads a saved model, scores a labeled TSV split and prints:
- DCG@1..K and NDCG@1..K (mean over query groups)
- Per-group NDCG@K distribution, worst and best groups

Usage:
    python -m search_ranking.evaluation.evaluate_model --data test.tsv
    python -m search_ranking.evaluation.evaluate_model --data train.tsv --header --truncation-level 10
"""

import argparse
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from search_ranking.data import load_tsv
from search_ranking.errors import RankingError
from search_ranking.evaluation.report import format_metrics
from search_ranking.shared_utils.model_store import ModelStore
from search_ranking.shared_utils.paths import MODEL_PATH, TEST_DATASET_PATH
from search_ranking.training.metrics import (
    GroupedMetricsEvaluator,
    RankingMetrics,
    per_group_ndcg,
)


def evaluate_on_split(
    model_path: Path, data_path: Path, has_header: bool = False, truncation_level: int = 3
) -> RankingMetrics:
    """
    Evaluate a saved model on a labeled split.

    Args:
        model_path: Model archive written by ModelStore.save
        data_path: TSV split to score
        has_header: Whether the split has a header row
        truncation_level: K, in [1, 10]

    Returns:
        RankingMetrics at 1..K
    """
    evaluator = GroupedMetricsEvaluator(truncation_level)

    print(f"\n{'='*60}")
    print(f"Evaluating model: {model_path}")
    print(f"{'='*60}\n")

    print("Loading model...")
    transformer, schema = ModelStore.load(model_path)

    print("Loading data...")
    dataset = load_tsv(data_path, has_header=has_header, feature_names=schema.source_feature_names)
    print(f"  Rows: {len(dataset):,}")
    print(f"  Features: {dataset.num_features}")

    print("\nMaking predictions...")
    scored = transformer.transform(dataset)
    metrics = evaluator.evaluate(scored)

    print("=" * 40)
    print(f"RANKING QUALITY (truncation level {truncation_level})")
    print("=" * 40)
    for line in format_metrics(metrics):
        print(line)

    per_group = per_group_ndcg(scored, k=truncation_level)
    print_group_distribution(per_group, truncation_level)

    model_info = ModelStore.load_model_info(model_path)
    if model_info:
        print(f"\n{'-'*40}")
        print("Model info:")
        print(f"{'-'*40}")
        for key in ("created_at", "num_features", "num_training_rows"):
            print(f"  {key}: {model_info.get(key, 'N/A')}")

    print()
    return metrics


def print_group_distribution(per_group: pd.DataFrame, k: int, top_n: int = 5) -> None:
    """Print the per-group NDCG@K distribution and extreme groups."""
    print(f"\n{'-'*40}")
    print(f"Per-group NDCG@{k}")
    print(f"{'-'*40}")
    print(f"  Groups: {len(per_group):,}")
    print(f"  Mean:   {per_group['ndcg'].mean():.4f}")
    print(f"  Median: {per_group['ndcg'].median():.4f}")
    print(f"  Min:    {per_group['ndcg'].min():.4f}")
    print(f"  Max:    {per_group['ndcg'].max():.4f}")

    print("\nPercentiles:")
    for p in [10, 25, 50, 75, 90]:
        print(f"  P{p:02d}: {np.percentile(per_group['ndcg'], p):.4f}")

    print(f"\nBottom {top_n} groups:")
    for _, row in per_group.nsmallest(top_n, "ndcg").iterrows():
        print(f"  Group {int(row['group_id']):>8}: NDCG={row['ndcg']:.4f} ({int(row['num_rows'])} rows)")

    print(f"\nTop {top_n} groups:")
    for _, row in per_group.nlargest(top_n, "ndcg").iterrows():
        print(f"  Group {int(row['group_id']):>8}: NDCG={row['ndcg']:.4f} ({int(row['num_rows'])} rows)")


def main() -> int:
    parser = argparse.ArgumentParser(description="Evaluate a trained ranking model on a TSV split")
    parser.add_argument(
        "--model",
        type=Path,
        default=MODEL_PATH,
        help=f"Model archive (default: {MODEL_PATH})",
    )
    parser.add_argument(
        "--data",
        type=Path,
        default=TEST_DATASET_PATH,
        help=f"Labeled TSV split (default: {TEST_DATASET_PATH})",
    )
    parser.add_argument(
        "--header",
        action="store_true",
        help="The split has a header row",
    )
    parser.add_argument(
        "--truncation-level",
        type=int,
        default=3,
        help="Report DCG/NDCG at 1..K, K in [1, 10] (default: 3)",
    )

    args = parser.parse_args()

    try:
        evaluate_on_split(args.model, args.data, args.header, args.truncation_level)
        return 0
    except (FileNotFoundError, RankingError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
