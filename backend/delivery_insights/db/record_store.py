"""
Record store interface.

The analytics engine reads delivery records only through the grouped-count
capability defined here. Concrete stores live in ``db.connectors``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Optional, Sequence

from delivery_insights.security.access_scope import AccessScope

class Dimension(str, Enum):
    """Categorical columns of a delivery record that can be grouped on."""
    RESTAURANT = "restaurant_id"
    PIZZA_SIZE = "pizza_size"
    PIZZA_TYPE = "pizza_type"
    PAYMENT_METHOD = "payment_method"
    LOCATION = "location"
    ORDER_MONTH = "order_month"
    ORDER_HOUR = "order_hour"
    IS_WEEKEND = "is_weekend"
    TRAFFIC_LEVEL = "traffic_level"
    IS_DELAYED = "is_delayed"

class Measure(str, Enum):
    """Numeric columns of a delivery record that can be averaged."""
    DELIVERY_DURATION = "delivery_duration_min"
    DISTANCE = "distance_km"
    DELAY = "delay_min"

class OrderBy(str, Enum):
    COUNT_DESC = "count_desc"
    KEY_ASC = "key_asc"
    # No ordering guarantee
    NONE = "none"

@dataclass(frozen=True)
class GroupedCount:
    key: Any
    count: int

@dataclass(frozen=True)
class Restaurant:
    id: str
    name: str
    code: Optional[str] = None

class RecordStore(ABC):
    """
    Read-only access to delivery records and the restaurant reference table.

    Every method is filtered by an AccessScope and must be safe to call
    concurrently from several coroutines.
    """

    @abstractmethod
    async def count(self, scope: AccessScope) -> int:
        """Count records in scope."""

    @abstractmethod
    async def grouped_count(
        self,
        dimension: Dimension,
        scope: AccessScope,
        order_by: OrderBy = OrderBy.NONE,
        limit: Optional[int] = None
    ) -> List[GroupedCount]:
        """
        Count records in scope grouped by one dimension.

        ``OrderBy.COUNT_DESC`` breaks ties by ascending key so results are
        stable across backends.
        """

    @abstractmethod
    async def average(self, measure: Measure, scope: AccessScope) -> Optional[float]:
        """Mean of a measure over records in scope, or None when there are none."""

    @abstractmethod
    async def find_restaurants_by_ids(self, ids: Sequence[str]) -> List[Restaurant]:
        """Look up restaurants by id. Unknown ids are simply absent from the result."""

    async def close(self) -> None:
        """Release any resources held by the store."""
