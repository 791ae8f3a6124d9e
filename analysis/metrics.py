"""Pure metric helpers used by the aggregation jobs"""
import math
from collections import Counter
from typing import Any, Dict, Hashable, Iterable, List, Sequence, Tuple

import numpy as np


def nearest_rank_percentile(values: Sequence[float], pct: float) -> float:
    """
    Nearest-rank percentile on the ascending-sorted sample.

    Index is floor(pct * n), clamped to the last element, so
    [10, 20, 30, 40, 50] at 0.95 picks index 4 -> 50.
    """
    if len(values) == 0:
        raise ValueError("percentile of an empty sample")
    ordered = np.sort(np.asarray(values, dtype=float))
    index = min(int(math.floor(len(ordered) * pct)), len(ordered) - 1)
    return float(ordered[index])


def round_half_up(value: float) -> int:
    """Whole-number rounding with .5 going up (10.5 -> 11), unlike builtin round()"""
    return int(math.floor(value + 0.5))


def safe_ratio(numerator: float, denominator: float, default: float = 0.0) -> float:
    return numerator / denominator if denominator > 0 else default


def summarize_calls(durations: Sequence[float], errors: int) -> Dict[str, float]:
    """Mean, p95 and error rate for one group of call records"""
    total = len(durations)
    mean = float(np.mean(durations)) if total else 0.0
    return {
        "avg_response_time_ms": round_half_up(mean),
        "p95_response_time_ms": round_half_up(nearest_rank_percentile(durations, 0.95)) if total else 0,
        "error_rate": round(safe_ratio(errors, total), 3),
        "total_calls": total,
        "errors": errors,
    }


def engagement_score(likes: int, comments: int) -> int:
    """Daily top-video score: likes + 2*comments"""
    return (likes or 0) + 2 * (comments or 0)


def trending_score(likes: int, comments: int, shares: int, hours_since: float) -> float:
    """Engagement divided by the square root of age in hours (age floored at 1h)"""
    base = (likes or 0) + 2 * (comments or 0) + 3 * (shares or 0)
    hours = max(1.0, hours_since)
    return base / math.sqrt(hours)


def rank_by_score(scored: Iterable[Tuple[str, float]], keep: int) -> List[Tuple[int, str, float]]:
    """
    Sort (id, score) pairs by score descending and assign 1-based ranks.

    Ties fall back to the id so that identical input ranks identically.
    """
    ordered = sorted(scored, key=lambda item: (-item[1], item[0]))[:keep]
    return [(position, item_id, score) for position, (item_id, score) in enumerate(ordered, start=1)]


def success_rate(ready: int, failed: int, processing: int) -> float:
    """ready / (ready + failed + processing); 1 when nothing was updated"""
    return safe_ratio(ready, ready + failed + processing, default=1.0)


def failure_rate(ready: int, failed: int) -> float:
    return safe_ratio(failed, ready + failed)


def retention_rate(retained: int, cohort_size: int) -> float:
    return min(1.0, safe_ratio(retained, cohort_size))


def tally_desc(values: Iterable[Hashable]) -> List[Tuple[Any, int]]:
    """Count occurrences and sort by count descending, first-seen order on ties"""
    return sorted(Counter(v for v in values if v).items(), key=lambda item: -item[1])
