"""
Rating aggregation, recomputed on every read.

A restroom's ``review_count`` and ``review_rating`` are derived from its
reviews each time it is read; nothing is cached on the restroom row.
"""

import math
from collections import defaultdict
from typing import Any, Iterable, Mapping

MIN_RATING = 0.0
MAX_RATING = 5.0


def _coerce_rating(value: Any) -> float:
    """Rating as a float, or NaN when it is not a usable 0-5 number."""
    if isinstance(value, bool):
        return math.nan
    try:
        rating = float(value)
    except (TypeError, ValueError):
        return math.nan
    if not math.isfinite(rating) or not MIN_RATING <= rating <= MAX_RATING:
        return math.nan
    return rating


def group_ratings(rows: Iterable[tuple[str, Any]]) -> dict[str, list[Any]]:
    """Group ``(restroom_id, rating)`` rows by restroom, skipping NULL ratings."""
    grouped: dict[str, list[Any]] = defaultdict(list)
    for restroom_id, rating in rows:
        if rating is None:
            continue
        grouped[restroom_id].append(rating)
    return dict(grouped)


def aggregate(record: Mapping[str, Any], ratings: Iterable[Any]) -> dict[str, Any]:
    """
    Attach ``review_count`` and ``review_rating`` to a raw restroom row.

    The mean is NaN when any rating is malformed, which the record
    validator rejects; the bad row is dropped rather than silently
    averaged.
    """
    values = [_coerce_rating(r) for r in ratings]
    count = len(values)
    mean = sum(values) / count if count else 0.0
    return {**record, "review_count": count, "review_rating": mean}
