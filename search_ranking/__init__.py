"""
Search result ranking module.

This module implements a learning-to-rank pipeline for web search results:
- Data: Label / GroupId / feature rows loaded from TSV splits
- Training: XGBoost ranker trained progressively on widening splits
- Evaluation: DCG@K / NDCG@K per query group, averaged over groups
- Serving: Top-K re-ranking of one query group from scored predictions

Usage:
    # 1. Download data splits
    python -m search_ranking.data.prepare_data

    # 2. Train model (train -> train+val -> train+val+test)
    python -m search_ranking.training.train_ranking_model

    # 3. Evaluate a saved model
    python -m search_ranking.evaluation.evaluate_model --data test.tsv

    # 4. Re-rank a query group
    from search_ranking.serving import extract_top
    top = extract_top(scored.rows(), group_id=42, limit=100)
"""

__version__ = "1.0.0"
