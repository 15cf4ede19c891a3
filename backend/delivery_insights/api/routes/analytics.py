from fastapi import APIRouter, Depends, Query, Request
from typing import Optional

from delivery_insights.analytics.projection import DashboardSummary, DetailAnalytics
from delivery_insights.analytics.service import DeliveryAnalyticsService
from delivery_insights.api.middleware.auth import CallerIdentity, get_current_caller
from delivery_insights.db.record_store import RecordStore
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

# Router
router = APIRouter(
    tags=["analytics"],
    responses={
        401: {"description": "Unauthorized"},
        500: {"description": "Internal server error"}
    }
)

def get_record_store(request: Request) -> RecordStore:
    """Dependency returning the application's record store."""
    return request.app.state.record_store

def get_analytics_service(
    request: Request,
    store: RecordStore = Depends(get_record_store)
) -> DeliveryAnalyticsService:
    return DeliveryAnalyticsService(store, settings=request.app.state.settings)

@router.get("/analytics", response_model=DetailAnalytics)
async def get_detail_analytics(
    restaurant_id: Optional[str] = Query(None, alias="restaurantId"),
    caller: CallerIdentity = Depends(get_current_caller),
    service: DeliveryAnalyticsService = Depends(get_analytics_service)
):
    """
    Order analytics scoped to the caller.

    GM and ADMIN_PUSAT may pass ``restaurantId`` to narrow the view; other
    roles always see their own restaurant.
    """
    result = await service.get_detail_analytics(
        role=caller.role,
        restaurant_id=caller.restaurant_id,
        requested_restaurant_id=restaurant_id
    )

    logger.info(f"Served detail analytics to {caller.username or caller.user_id}")
    return result

@router.get("/dashboard/charts", response_model=DashboardSummary)
async def get_dashboard_charts(
    caller: CallerIdentity = Depends(get_current_caller),
    service: DeliveryAnalyticsService = Depends(get_analytics_service)
):
    """Dashboard summary scoped to the caller."""
    result = await service.get_dashboard_summary(
        role=caller.role,
        restaurant_id=caller.restaurant_id
    )

    logger.info(f"Served dashboard summary to {caller.username or caller.user_id}")
    return result
