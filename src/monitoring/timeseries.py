"""
Time-series bucketing for trend charts.

Records are partitioned into equal-width, half-open windows covering
``[now - timeframe, now)``. Boundaries are computed in whole microseconds
from the window start and the final boundary is pinned to ``now``, so
fractional timeframes never leave a gap or an overlap between buckets.
"""

import bisect
import math
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.exceptions import InputValidationError
from src.monitoring.config import DAYS_PER_WEEK, HOURS_PER_DAY, MAX_BUCKETS, MAX_TIMEFRAME_HOURS

_TIMEFRAME_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([hdw])\s*$", re.IGNORECASE)

_UNIT_HOURS = {
    "h": 1.0,
    "d": float(HOURS_PER_DAY),
    "w": float(HOURS_PER_DAY * DAYS_PER_WEEK),
}


@dataclass(frozen=True)
class TimeSeriesRecord:
    timestamp: datetime
    value: float | None = None


@dataclass(frozen=True)
class TimeBucket:
    """Aggregate over one window; ``timestamp`` is the window end."""

    timestamp: datetime
    count: int
    avg_metric: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "count": self.count,
            "avg_metric": self.avg_metric,
        }


def parse_timeframe(timeframe: str) -> float:
    """
    Convert a timeframe such as ``1h``, ``7d`` or ``2w`` into hours.

    Args:
        timeframe: Positive number followed by a unit (h, d or w)

    Returns:
        Timeframe in hours

    Raises:
        InputValidationError: malformed string, unknown unit, or a value that is
            not positive or exceeds ``MAX_TIMEFRAME_HOURS``
    """
    match = _TIMEFRAME_PATTERN.match(timeframe) if isinstance(timeframe, str) else None
    if match is None:
        raise InputValidationError(
            f"Invalid timeframe '{timeframe}'",
            parameter_name="timeframe",
            parameter_value=timeframe,
            valid_values=["<number>h", "<number>d", "<number>w"],
        )

    hours = float(match.group(1)) * _UNIT_HOURS[match.group(2).lower()]
    if not 0 < hours <= MAX_TIMEFRAME_HOURS:
        raise InputValidationError(
            f"Timeframe must be positive and at most {MAX_TIMEFRAME_HOURS:g} hours",
            parameter_name="timeframe",
            parameter_value=timeframe,
        )
    return hours


def validate_timeframe_hours(timeframe_hours: float) -> float:
    if (
        isinstance(timeframe_hours, bool)
        or not isinstance(timeframe_hours, (int, float))
        or not math.isfinite(timeframe_hours)
        or not 0 < timeframe_hours <= MAX_TIMEFRAME_HOURS
    ):
        raise InputValidationError(
            f"Timeframe must be a positive number of hours up to {MAX_TIMEFRAME_HOURS:g}",
            parameter_name="timeframe_hours",
            parameter_value=timeframe_hours,
        )
    return float(timeframe_hours)


def bucket_count_for(timeframe_hours: float) -> int:
    """Whole hours up to a maximum of 24; fractional hours round up."""
    return min(math.ceil(validate_timeframe_hours(timeframe_hours)), MAX_BUCKETS)


def bucket_boundaries(timeframe_hours: float, now: datetime) -> list[datetime]:
    """``bucket_count + 1`` ascending boundaries, the first at the window start and the last at ``now``."""
    count = bucket_count_for(timeframe_hours)
    total_us = round(timeframe_hours * 3600 * 1_000_000)
    start = now - timedelta(microseconds=total_us)

    boundaries = [
        start + timedelta(microseconds=round(total_us * i / count)) for i in range(count)
    ]
    boundaries.append(now)
    return boundaries


def _record_fields(record: Any) -> tuple[datetime | None, Any]:
    if isinstance(record, Mapping):
        return record.get("timestamp"), record.get("value")
    return getattr(record, "timestamp", None), getattr(record, "value", None)


def _as_aware(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=timezone.utc)
    return timestamp


def assign_buckets(
    records: Iterable[Any],
    timeframe_hours: float,
    now: datetime | None = None,
) -> list[tuple[datetime, list[Any]]]:
    """
    Partition records into chronological buckets.

    Args:
        records: Items with ``timestamp`` and ``value`` (attributes or keys)
        timeframe_hours: Window length in hours, must be positive
        now: Window end; defaults to the current UTC time

    Returns:
        ``(bucket_end, members)`` pairs in chronological order. Records
        outside ``[now - timeframe, now)`` are dropped.
    """
    validate_timeframe_hours(timeframe_hours)
    now = _as_aware(now or datetime.now(timezone.utc))
    boundaries = bucket_boundaries(timeframe_hours, now)
    members: list[list[Any]] = [[] for _ in range(len(boundaries) - 1)]

    for record in records:
        timestamp, _ = _record_fields(record)
        if timestamp is None:
            continue
        timestamp = _as_aware(timestamp)
        if timestamp < boundaries[0] or timestamp >= boundaries[-1]:
            continue
        # bisect_right puts a record sitting on a boundary into the later bucket
        members[bisect.bisect_right(boundaries, timestamp) - 1].append(record)

    return list(zip(boundaries[1:], members))


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def bucketize(
    records: Iterable[Any],
    timeframe_hours: float,
    now: datetime | None = None,
) -> list[TimeBucket]:
    """Count and average ``value`` per bucket; a missing value counts as 0."""
    buckets = []
    for end, members in assign_buckets(records, timeframe_hours, now):
        values = [float(_record_fields(m)[1] or 0) for m in members]
        buckets.append(TimeBucket(timestamp=end, count=len(members), avg_metric=_mean(values)))
    return buckets
