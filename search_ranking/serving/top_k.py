"""
Top-K re-ranking of one query group from a stream of predictions.

The extractor scans a fixed window at the head of the prediction stream:
only the first `limit` rows are looked at, and of those only the rows of the
requested group are kept. The limit bounds the scan, not the number of
results, so a group that is sparse (or absent) in the window yields fewer
rows (or none) even when it has more rows later in the stream.
"""

from itertools import islice
from typing import Iterable, List

from ..data.dataset import ScoredRow
from ..errors import InvalidConfiguration


def extract_top(scored_rows: Iterable[ScoredRow], group_id: int, limit: int = 100) -> List[ScoredRow]:
    """
    Re-rank the rows of one group found in the first `limit` predictions.

    Args:
        scored_rows: Prediction stream in scoring order
        group_id: Query group to extract
        limit: Number of leading rows of the stream to scan

    Returns:
        Matching rows sorted by score descending; ties keep scan order

    Raises:
        InvalidConfiguration: If limit is negative
    """
    if limit < 0:
        raise InvalidConfiguration(f"limit must be >= 0, got {limit}")

    window = islice(scored_rows, limit)
    matches = [row for row in window if row.group_id == group_id]

    # list.sort is stable
    matches.sort(key=lambda row: row.score, reverse=True)
    return matches
