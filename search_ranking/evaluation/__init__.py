"""
Evaluation module for trained ranking models.

This module provides tools for:
- Rendering DCG/NDCG reports and scored rows (report)
- Evaluating a saved model on a labeled split (evaluate_model CLI)
"""

from .report import format_metric_family, format_metrics, format_scores

__all__ = [
    "format_metric_family",
    "format_metrics",
    "format_scores",
]
