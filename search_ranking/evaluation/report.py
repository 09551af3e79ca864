"""
Text rendering of ranking metrics and scored rows.

Metrics are rendered one line per metric family, four decimals per value:

    DCG: @1:7.0000, @2:8.8928, @3:8.8928
    NDCG: @1:1.0000, @2:1.0000, @3:1.0000
"""

from typing import TYPE_CHECKING, Iterable, List, Sequence

from ..data.dataset import ScoredRow

if TYPE_CHECKING:
    from ..training.metrics import RankingMetrics


def format_metric_family(name: str, values: Sequence[float]) -> str:
    """Render one metric family as 'NAME: @1:v1, @2:v2, ...'."""
    return f"{name}: " + ", ".join(f"@{i}:{v:.4f}" for i, v in enumerate(values, start=1))


def format_metrics(metrics: "RankingMetrics") -> List[str]:
    """Render the DCG and NDCG lines for a RankingMetrics value."""
    return [
        format_metric_family("DCG", metrics.dcg),
        format_metric_family("NDCG", metrics.ndcg),
    ]


def format_scores(rows: Iterable[ScoredRow]) -> List[str]:
    """One 'GroupId: <g>, Score: <s>' line per row."""
    return [f"GroupId: {row.group_id}, Score: {row.score}" for row in rows]
