"""
Analytics request pipeline.

Resolves the caller's scope, runs the aggregation battery and projects the
response payloads served by the analytics routes.
"""

from typing import Optional

from delivery_insights.analytics.aggregation import AggregationEngine
from delivery_insights.analytics.metrics import derive
from delivery_insights.analytics.projection import (
    DashboardSummary,
    DetailAnalytics,
    project_dashboard,
    project_detail,
)
from delivery_insights.config import Settings, get_settings
from delivery_insights.db.record_store import RecordStore
from delivery_insights.security.access_scope import resolve_scope
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

class DeliveryAnalyticsService:
    """
    Request-level analytics pipeline.

    Resolves the caller's scope, runs the aggregation battery, derives
    metrics and projects the response payload. Holds no per-request state.
    """

    def __init__(self, store: RecordStore, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine = AggregationEngine(store, settings=self.settings)

    async def get_detail_analytics(
        self,
        role: Optional[str],
        restaurant_id: Optional[str],
        requested_restaurant_id: Optional[str] = None
    ) -> DetailAnalytics:
        """
        Detail analytics for a caller.

        Args:
            role: Caller role
            restaurant_id: Caller's assigned restaurant
            requested_restaurant_id: Restaurant explicitly requested

        Returns:
            DetailAnalytics payload

        Raises:
            AggregationError: if the aggregation fails
        """
        scope = resolve_scope(role, restaurant_id, requested_restaurant_id)
        logger.debug(f"Detail analytics for role {role} with scope {scope.describe()}")

        bundle = await self.engine.aggregate(scope)
        metrics = derive(bundle, peak_hours_top_n=self.settings.peak_hours_top_n)
        return project_detail(bundle, metrics)

    async def get_dashboard_summary(
        self,
        role: Optional[str],
        restaurant_id: Optional[str]
    ) -> DashboardSummary:
        """
        Dashboard summary for a caller. No restaurant override is accepted.

        Raises:
            AggregationError: if the aggregation fails
        """
        scope = resolve_scope(role, restaurant_id)
        logger.debug(f"Dashboard summary for role {role} with scope {scope.describe()}")

        bundle = await self.engine.aggregate_summary(scope)
        metrics = derive(
            bundle,
            peak_window_hours=self.settings.peak_window_hours,
            peak_hours_top_n=self.settings.peak_hours_top_n
        )
        return project_dashboard(bundle, metrics)
