"""
Delivery metric derivation.

Pure functions turning grouped counts into rates, peaks, splits and
averages. Nothing here performs I/O; every value is computed from the
aggregates of a single request.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence
import math

from delivery_insights.analytics.aggregation import AggregateBundle, SummaryBundle
from delivery_insights.db.record_store import GroupedCount

_TRUE_FLAGS = {"true", "t", "1", "yes", "y"}

@dataclass(frozen=True)
class Share:
    key: Any
    count: int
    percentage: float

@dataclass(frozen=True)
class DelaySummary:
    on_time: int
    delayed: int
    rate: float

@dataclass(frozen=True)
class WeekendSplit:
    weekend: int
    weekday: int

@dataclass(frozen=True)
class PeakSplit:
    peak: int
    off_peak: int

@dataclass
class DerivedMetrics:
    delay: DelaySummary
    peak_hour: Optional[int]
    ranked_hours: List[Share] = field(default_factory=list)
    size_shares: List[Share] = field(default_factory=list)
    type_shares: List[Share] = field(default_factory=list)
    month_shares: List[Share] = field(default_factory=list)
    traffic_shares: List[Share] = field(default_factory=list)
    payment_shares: List[Share] = field(default_factory=list)
    weekend_split: WeekendSplit = WeekendSplit(0, 0)
    peak_split: PeakSplit = PeakSplit(0, 0)
    avg_delivery_time: int = 0
    avg_distance: int = 0
    avg_delay: int = 0

def is_flag_set(value: Any) -> bool:
    """Interpret a boolean dimension key as stored by any backend."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_FLAGS
    if value is None:
        return False
    return bool(value)

def percentage(count: int, total: int) -> float:
    """Share of total as a percentage with one decimal, 0 for an empty total."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)

def shares(groups: Iterable[GroupedCount], total: int) -> List[Share]:
    return [Share(group.key, group.count, percentage(group.count, total)) for group in groups]

def delay_summary(by_delay: Iterable[GroupedCount], total: int) -> DelaySummary:
    """
    Summarize the delayed / not-delayed partition.

    A missing bucket counts as zero. The rate is the on-time percentage.
    """
    on_time = 0
    delayed = 0
    for group in by_delay:
        if is_flag_set(group.key):
            delayed += group.count
        else:
            on_time += group.count

    return DelaySummary(on_time=on_time, delayed=delayed, rate=percentage(on_time, total))

def _hour_counts(by_hour: Iterable[GroupedCount]) -> List[GroupedCount]:
    return [GroupedCount(int(group.key), group.count) for group in by_hour if group.key is not None]

def rank_hours(by_hour: Iterable[GroupedCount]) -> List[GroupedCount]:
    """Hours by count descending, ties resolved toward the earliest hour."""
    return sorted(_hour_counts(by_hour), key=lambda group: (-group.count, group.key))

def peak_hour(by_hour: Iterable[GroupedCount]) -> Optional[int]:
    """
    Hour with the most orders.

    Ties resolve to the numerically smallest hour. Returns None when there
    are no hours at all.
    """
    ranked = rank_hours(by_hour)
    return ranked[0].key if ranked else None

def _is_weekend(value: Any) -> bool:
    # Day type may be stored as a flag or as a "Weekend"/"Weekday" label
    if isinstance(value, str) and value.strip().lower() in ("weekend", "weekday"):
        return value.strip().lower() == "weekend"
    return is_flag_set(value)

def split_weekend(by_day_type: Iterable[GroupedCount]) -> WeekendSplit:
    weekend = 0
    weekday = 0
    for group in by_day_type:
        if _is_weekend(group.key):
            weekend += group.count
        else:
            weekday += group.count
    return WeekendSplit(weekend=weekend, weekday=weekday)

def split_peak(by_hour: Iterable[GroupedCount], peak_window_hours: Sequence[int]) -> PeakSplit:
    """Partition orders into the configured busy hours and the rest."""
    window = set(peak_window_hours)
    peak = 0
    off_peak = 0
    for group in _hour_counts(by_hour):
        if group.key in window:
            peak += group.count
        else:
            off_peak += group.count
    return PeakSplit(peak=peak, off_peak=off_peak)

def round_average(value: Optional[float]) -> int:
    """Round half up to whole units; missing or NaN averages become 0."""
    if value is None or math.isnan(value):
        return 0
    return int(math.floor(value + 0.5))

def derive(
    bundle: AggregateBundle,
    peak_window_hours: Sequence[int] = (),
    peak_hours_top_n: Optional[int] = None
) -> DerivedMetrics:
    """
    Derive metrics from one request's aggregates.

    Summary-only metrics (splits, averages, traffic shares) are filled in
    when the bundle is a SummaryBundle and left at zero otherwise.

    Args:
        bundle: Aggregates from the engine
        peak_window_hours: Hours counted as peak for the peak/off-peak split
        peak_hours_top_n: How many hours to keep in the ranked hour list

    Returns:
        DerivedMetrics
    """
    total = bundle.total
    ranked = rank_hours(bundle.by_hour)

    metrics = DerivedMetrics(
        delay=delay_summary(bundle.by_delay, total),
        peak_hour=peak_hour(bundle.by_hour),
        ranked_hours=shares(ranked[:peak_hours_top_n], total),
        size_shares=shares(bundle.by_size, total),
        type_shares=shares(bundle.by_type, total),
        month_shares=shares(bundle.by_month, total),
        payment_shares=shares(bundle.by_payment, total),
    )

    if isinstance(bundle, SummaryBundle):
        metrics.traffic_shares = shares(bundle.by_traffic, total)
        metrics.weekend_split = split_weekend(bundle.by_day_type)
        metrics.peak_split = split_peak(bundle.by_hour, peak_window_hours)
        metrics.avg_delivery_time = round_average(bundle.avg_delivery_duration)
        metrics.avg_distance = round_average(bundle.avg_distance)
        metrics.avg_delay = round_average(bundle.avg_delay)

    return metrics
