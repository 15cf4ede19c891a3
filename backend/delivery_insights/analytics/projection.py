"""
Analytics payloads.

Reshapes aggregates and derived metrics into the two response payloads:
the detail analytics view and the dashboard summary. No numbers are
computed here.
"""

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from delivery_insights.analytics.aggregation import AggregateBundle
from delivery_insights.analytics.metrics import DerivedMetrics, Share
from delivery_insights.db.record_store import GroupedCount

Key = Union[int, str, None]

class CamelModel(BaseModel):
    """Base model serialized with camelCase field names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

# Detail analytics models
class RestaurantCount(CamelModel):
    restaurant: str
    count: int

class SizeCount(CamelModel):
    size: Key
    count: int

class TypeCount(CamelModel):
    type: Key
    count: int

class MonthCount(CamelModel):
    month: Key
    count: int

class LocationCount(CamelModel):
    location: Key
    count: int

class HourCount(CamelModel):
    hour: int
    count: int

class PaymentCount(CamelModel):
    method: Key
    count: int

class DelayStats(CamelModel):
    on_time: int
    delayed: int
    rate: float

class DetailAnalytics(CamelModel):
    total_orders: int
    orders_by_restaurant: List[RestaurantCount]
    orders_by_size: List[SizeCount]
    orders_by_type: List[TypeCount]
    orders_by_month: List[MonthCount]
    orders_by_location: List[LocationCount]
    delay_stats: DelayStats
    peak_hour_stats: List[HourCount]
    payment_stats: List[PaymentCount]
    peak_hour: Optional[int] = None

# Dashboard models
class ChartPoint(CamelModel):
    label: str
    value: int
    percentage: float

class WeekendVsWeekday(CamelModel):
    weekend: int
    weekday: int

class PeakOffPeak(CamelModel):
    peak: int
    off_peak: int

class DashboardSummary(CamelModel):
    total_orders: int
    avg_delivery_time: int
    delayed_orders: int
    on_time_rate: float
    peak_hour: Optional[int] = None
    peak_hours: List[ChartPoint]
    pizza_sizes: List[ChartPoint]
    pizza_types: List[ChartPoint]
    delivery_performance: List[ChartPoint]
    traffic_impact: List[ChartPoint]
    payment_methods: List[ChartPoint]
    weekend_vs_weekday: WeekendVsWeekday
    peak_off_peak: PeakOffPeak
    avg_distance_km: int
    avg_delay_min: int

def _label(key: Any) -> str:
    if key is None:
        return "Unknown"
    return str(key)

def _hour_label(hour: int) -> str:
    return f"{hour:02d}:00"

def _points(items: List[Share], label=_label) -> List[ChartPoint]:
    return [ChartPoint(label=label(item.key), value=item.count, percentage=item.percentage) for item in items]

def _counts(groups: List[GroupedCount], model, field: str) -> list:
    return [model(**{field: group.key, "count": group.count}) for group in groups]

def project_detail(bundle: AggregateBundle, metrics: DerivedMetrics) -> DetailAnalytics:
    """
    Build the detail analytics payload.

    Args:
        bundle: Aggregates for the request
        metrics: Metrics derived from the same aggregates

    Returns:
        DetailAnalytics
    """
    names: Dict[Any, str] = bundle.restaurant_names

    return DetailAnalytics(
        total_orders=bundle.total,
        orders_by_restaurant=[
            RestaurantCount(restaurant=names[group.key], count=group.count)
            for group in bundle.by_restaurant
        ],
        orders_by_size=_counts(bundle.by_size, SizeCount, "size"),
        orders_by_type=_counts(bundle.by_type, TypeCount, "type"),
        orders_by_month=_counts(bundle.by_month, MonthCount, "month"),
        orders_by_location=_counts(bundle.by_location, LocationCount, "location"),
        delay_stats=DelayStats(
            on_time=metrics.delay.on_time,
            delayed=metrics.delay.delayed,
            rate=metrics.delay.rate
        ),
        peak_hour_stats=[
            HourCount(hour=int(group.key), count=group.count)
            for group in bundle.by_hour if group.key is not None
        ],
        payment_stats=_counts(bundle.by_payment, PaymentCount, "method"),
        peak_hour=metrics.peak_hour,
    )

def project_dashboard(bundle: AggregateBundle, metrics: DerivedMetrics) -> DashboardSummary:
    """
    Build the dashboard summary payload.

    Args:
        bundle: Aggregates for the request
        metrics: Metrics derived from the same aggregates

    Returns:
        DashboardSummary
    """
    return DashboardSummary(
        total_orders=bundle.total,
        avg_delivery_time=metrics.avg_delivery_time,
        delayed_orders=metrics.delay.delayed,
        on_time_rate=metrics.delay.rate,
        peak_hour=metrics.peak_hour,
        peak_hours=_points(metrics.ranked_hours, label=_hour_label),
        pizza_sizes=_points(metrics.size_shares),
        pizza_types=_points(metrics.type_shares),
        delivery_performance=_points(metrics.month_shares),
        traffic_impact=_points(metrics.traffic_shares),
        payment_methods=_points(metrics.payment_shares),
        weekend_vs_weekday=WeekendVsWeekday(
            weekend=metrics.weekend_split.weekend,
            weekday=metrics.weekend_split.weekday
        ),
        peak_off_peak=PeakOffPeak(
            peak=metrics.peak_split.peak,
            off_peak=metrics.peak_split.off_peak
        ),
        avg_distance_km=metrics.avg_distance,
        avg_delay_min=metrics.avg_delay,
    )
