"""Tests for payload projection."""

import pytest

from delivery_insights.analytics.aggregation import AggregationEngine
from delivery_insights.analytics.metrics import derive
from delivery_insights.analytics.projection import project_dashboard, project_detail
from delivery_insights.security.access_scope import AccessScope

@pytest.mark.asyncio
async def test_detail_payload(memory_store, test_settings):
    bundle = await AggregationEngine(memory_store, settings=test_settings).aggregate(AccessScope.organization())
    payload = project_detail(bundle, derive(bundle)).model_dump(by_alias=True)

    assert payload["totalOrders"] == 10
    assert payload["ordersByRestaurant"] == [
        {"restaurant": "Pizza Menteng", "count": 5},
        {"restaurant": "Pizza Kemang", "count": 3},
        {"restaurant": "Unknown", "count": 2},
    ]
    assert payload["ordersBySize"][0] == {"size": "L", "count": 4}
    assert payload["ordersByType"] == [{"type": "Pepperoni", "count": 8}, {"type": "Veggie", "count": 2}]
    assert payload["ordersByMonth"][-1] == {"month": 4, "count": 1}
    assert payload["ordersByLocation"][0] == {"location": "Menteng", "count": 4}
    assert payload["delayStats"] == {"onTime": 7, "delayed": 3, "rate": 70.0}
    assert payload["peakHourStats"][0] == {"hour": 9, "count": 2}
    assert payload["paymentStats"][0] == {"method": "Cash", "count": 7}
    assert payload["peakHour"] == 9

@pytest.mark.asyncio
async def test_dashboard_payload(memory_store, test_settings):
    bundle = await AggregationEngine(memory_store, settings=test_settings).aggregate_summary(AccessScope.organization())
    metrics = derive(
        bundle,
        peak_window_hours=test_settings.peak_window_hours,
        peak_hours_top_n=test_settings.peak_hours_top_n
    )
    payload = project_dashboard(bundle, metrics).model_dump(by_alias=True)

    assert payload["totalOrders"] == 10
    assert payload["delayedOrders"] == 3
    assert payload["onTimeRate"] == 70.0
    assert payload["avgDeliveryTime"] == 31
    assert payload["avgDistanceKm"] == 5
    assert payload["avgDelayMin"] == 4
    assert payload["peakHours"][:2] == [
        {"label": "09:00", "value": 2, "percentage": 20.0},
        {"label": "12:00", "value": 2, "percentage": 20.0},
    ]
    assert payload["pizzaSizes"][0] == {"label": "L", "value": 4, "percentage": 40.0}
    assert [p["label"] for p in payload["deliveryPerformance"]] == ["1", "2", "3", "4"]
    assert payload["trafficImpact"][0] == {"label": "Low", "value": 7, "percentage": 70.0}
    assert payload["paymentMethods"][-1] == {"label": "Wallet", "value": 1, "percentage": 10.0}
    assert payload["weekendVsWeekday"] == {"weekend": 3, "weekday": 7}
    assert payload["peakOffPeak"] == {"peak": 7, "offPeak": 3}

@pytest.mark.asyncio
async def test_empty_payloads_are_well_formed(empty_store, test_settings):
    engine = AggregationEngine(empty_store, settings=test_settings)

    bundle = await engine.aggregate(AccessScope.empty())
    detail = project_detail(bundle, derive(bundle)).model_dump(by_alias=True)
    assert detail["totalOrders"] == 0
    assert detail["delayStats"] == {"onTime": 0, "delayed": 0, "rate": 0.0}
    assert detail["peakHour"] is None
    assert detail["ordersByRestaurant"] == []

    summary_bundle = await engine.aggregate_summary(AccessScope.empty())
    summary = project_dashboard(summary_bundle, derive(summary_bundle, peak_window_hours=[12])).model_dump(by_alias=True)
    assert summary["peakHour"] is None
    assert summary["peakHours"] == []
    assert summary["weekendVsWeekday"] == {"weekend": 0, "weekday": 0}
    assert summary["peakOffPeak"] == {"peak": 0, "offPeak": 0}
    assert (summary["avgDeliveryTime"], summary["avgDistanceKm"], summary["avgDelayMin"]) == (0, 0, 0)

@pytest.mark.asyncio
async def test_configured_placeholder_reaches_payload(memory_store, test_settings):
    settings = test_settings.model_copy(update={"unknown_restaurant_name": "Lainnya"})
    bundle = await AggregationEngine(memory_store, settings=settings).aggregate(AccessScope.organization())

    payload = project_detail(bundle, derive(bundle)).model_dump(by_alias=True)

    assert payload["ordersByRestaurant"][-1] == {"restaurant": "Lainnya", "count": 2}
