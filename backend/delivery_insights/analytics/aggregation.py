"""
Delivery aggregation engine.

This module runs the fixed battery of grouped counts behind the analytics
endpoints. All queries of one request are issued concurrently against the
record store and joined before any metric is derived; if one fails, the
others are cancelled and no partial result is returned.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Tuple
import asyncio
import time

from delivery_insights.analytics.dimension_lookup import DimensionLookup
from delivery_insights.config import Settings, get_settings
from delivery_insights.db.record_store import (
    Dimension,
    GroupedCount,
    Measure,
    OrderBy,
    RecordStore,
)
from delivery_insights.security.access_scope import AccessScope
from delivery_insights.utils.logger import get_logger, log_with_context

# Initialize logger
logger = get_logger(__name__)

class AggregationError(Exception):
    """Raised when any query of an aggregation run fails."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation

@dataclass
class AggregateBundle:
    """Raw grouped counts for one scope."""
    total: int
    by_restaurant: List[GroupedCount]
    by_size: List[GroupedCount]
    by_type: List[GroupedCount]
    by_month: List[GroupedCount]
    by_location: List[GroupedCount]
    by_delay: List[GroupedCount]
    by_hour: List[GroupedCount]
    by_payment: List[GroupedCount]
    restaurant_names: Dict[Optional[str], str] = field(default_factory=dict)

@dataclass
class SummaryBundle(AggregateBundle):
    """Grouped counts and measure averages backing the dashboard."""
    by_traffic: List[GroupedCount] = field(default_factory=list)
    by_day_type: List[GroupedCount] = field(default_factory=list)
    avg_delivery_duration: Optional[float] = None
    avg_distance: Optional[float] = None
    avg_delay: Optional[float] = None

class AggregationEngine:
    """Concurrent grouped-count runner over a record store."""

    def __init__(
        self,
        store: RecordStore,
        lookup: Optional[DimensionLookup] = None,
        settings: Optional[Settings] = None
    ):
        settings = settings or get_settings()
        self.store = store
        self.lookup = lookup or DimensionLookup(store, settings.unknown_restaurant_name)
        self.location_top_n = settings.location_top_n
        self.timeout = settings.aggregation_timeout_seconds

    async def aggregate(self, scope: AccessScope) -> AggregateBundle:
        """
        Run the detail-analytics battery for a scope.

        Args:
            scope: Access scope applied to every query

        Returns:
            AggregateBundle with all nine aggregates and restaurant names

        Raises:
            AggregationError: if any query fails or the run times out
        """
        results = await self._fan_out(scope, self._core_operations(scope))
        return AggregateBundle(**self._unpack_core(results))

    async def aggregate_summary(self, scope: AccessScope) -> SummaryBundle:
        """
        Run the dashboard battery for a scope.

        Same queries as ``aggregate`` plus the traffic and day-type
        partitions and the three measure averages.

        Raises:
            AggregationError: if any query fails or the run times out
        """
        operations = self._core_operations(scope)
        operations.update({
            "by_traffic": self.store.grouped_count(Dimension.TRAFFIC_LEVEL, scope, OrderBy.COUNT_DESC),
            "by_day_type": self.store.grouped_count(Dimension.IS_WEEKEND, scope),
            "avg_delivery_duration": self.store.average(Measure.DELIVERY_DURATION, scope),
            "avg_distance": self.store.average(Measure.DISTANCE, scope),
            "avg_delay": self.store.average(Measure.DELAY, scope),
        })

        results = await self._fan_out(scope, operations)
        return SummaryBundle(
            **self._unpack_core(results),
            by_traffic=results["by_traffic"],
            by_day_type=results["by_day_type"],
            avg_delivery_duration=results["avg_delivery_duration"],
            avg_distance=results["avg_distance"],
            avg_delay=results["avg_delay"],
        )

    def _core_operations(self, scope: AccessScope) -> Dict[str, Awaitable[Any]]:
        store = self.store
        return {
            "total": store.count(scope),
            "by_restaurant": self._restaurants_with_names(scope),
            "by_size": store.grouped_count(Dimension.PIZZA_SIZE, scope, OrderBy.COUNT_DESC),
            "by_type": store.grouped_count(Dimension.PIZZA_TYPE, scope, OrderBy.COUNT_DESC),
            "by_month": store.grouped_count(Dimension.ORDER_MONTH, scope, OrderBy.KEY_ASC),
            "by_location": store.grouped_count(
                Dimension.LOCATION, scope, OrderBy.COUNT_DESC, limit=self.location_top_n
            ),
            "by_delay": store.grouped_count(Dimension.IS_DELAYED, scope),
            "by_hour": store.grouped_count(Dimension.ORDER_HOUR, scope, OrderBy.KEY_ASC),
            "by_payment": store.grouped_count(Dimension.PAYMENT_METHOD, scope, OrderBy.COUNT_DESC),
        }

    @staticmethod
    def _unpack_core(results: Dict[str, Any]) -> Dict[str, Any]:
        by_restaurant, names = results["by_restaurant"]
        return {
            "total": results["total"],
            "by_restaurant": by_restaurant,
            "by_size": results["by_size"],
            "by_type": results["by_type"],
            "by_month": results["by_month"],
            "by_location": results["by_location"],
            "by_delay": results["by_delay"],
            "by_hour": results["by_hour"],
            "by_payment": results["by_payment"],
            "restaurant_names": names,
        }

    async def _restaurants_with_names(
        self,
        scope: AccessScope
    ) -> Tuple[List[GroupedCount], Dict[Optional[str], str]]:
        # Name lookup depends only on this branch, so it runs inside the fan-out
        by_restaurant = await self.store.grouped_count(Dimension.RESTAURANT, scope, OrderBy.COUNT_DESC)
        names = await self.lookup.resolve_names(group.key for group in by_restaurant)
        return by_restaurant, names

    async def _fan_out(self, scope: AccessScope, operations: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
        """
        Run operations concurrently and wait for all of them.

        Args:
            scope: Scope the operations were built for (for logging)
            operations: Mapping of result name to awaitable

        Returns:
            Mapping of result name to result

        Raises:
            AggregationError: if any operation fails or the timeout expires
        """
        names = list(operations)
        tasks = [asyncio.ensure_future(operations[name]) for name in names]
        started = time.perf_counter()

        try:
            results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Aggregation timed out after {self.timeout}s for scope {scope.describe()}")
            raise AggregationError("Aggregation timed out") from e
        except Exception as e:
            failed = next(
                (name for name, task in zip(names, tasks)
                 if task.done() and not task.cancelled() and task.exception() is not None),
                None
            )
            logger.error(
                f"Aggregation failed for scope {scope.describe()} in {failed}: {str(e)}",
                exc_info=True
            )
            raise AggregationError("Aggregation failed", operation=failed) from e
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        log_with_context(
            logger,
            "info",
            "Aggregation completed",
            {
                "scope": scope.describe(),
                "operations": len(names),
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            }
        )
        return dict(zip(names, results))
