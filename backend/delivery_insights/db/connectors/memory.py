"""
In-memory record store.

Holds delivery records in a pandas DataFrame. Used for local development
against a CSV export and as the store behind the test suite.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
import math

import pandas as pd

from delivery_insights.db.record_store import (
    Dimension,
    GroupedCount,
    Measure,
    OrderBy,
    RecordStore,
    Restaurant,
)
from delivery_insights.security.access_scope import AccessScope
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

RECORD_COLUMNS = ["order_id"] + [d.value for d in Dimension] + [m.value for m in Measure]

def _to_python(value: Any) -> Any:
    """Convert numpy scalars to plain Python values, missing values to None."""
    if pd.isna(value):
        return None
    if hasattr(value, "item"):
        return value.item()
    return value

class InMemoryRecordStore(RecordStore):
    """Record store over a pandas DataFrame of delivery records."""

    def __init__(
        self,
        records: Union[pd.DataFrame, Iterable[Dict[str, Any]], None] = None,
        restaurants: Optional[Iterable[Union[Restaurant, Dict[str, Any]]]] = None
    ):
        """
        Initialize the in-memory store.

        Args:
            records: DataFrame or iterable of record dictionaries. Missing
                columns are added as empty.
            restaurants: Restaurant reference rows
        """
        if isinstance(records, pd.DataFrame):
            frame = records.copy()
        else:
            frame = pd.DataFrame(list(records or []))

        for column in RECORD_COLUMNS:
            if column not in frame.columns:
                frame[column] = pd.Series(dtype="object")

        self.records = frame
        self.restaurants: Dict[str, Restaurant] = {}
        for restaurant in restaurants or []:
            if isinstance(restaurant, dict):
                restaurant = Restaurant(
                    id=str(restaurant["id"]),
                    name=restaurant["name"],
                    code=restaurant.get("code")
                )
            self.restaurants[restaurant.id] = restaurant

        logger.debug(f"Loaded {len(self.records)} records and {len(self.restaurants)} restaurants")

    @classmethod
    def from_csv(cls, records_path: str, restaurants_path: Optional[str] = None) -> "InMemoryRecordStore":
        """
        Build a store from CSV exports.

        Args:
            records_path: CSV of delivery records
            restaurants_path: Optional CSV with id, name and code columns

        Returns:
            InMemoryRecordStore
        """
        records = pd.read_csv(records_path, dtype={Dimension.RESTAURANT.value: str})
        restaurants = None
        if restaurants_path:
            restaurants = pd.read_csv(restaurants_path, dtype={"id": str}).to_dict("records")

        logger.info(f"Loaded delivery records from {records_path}")
        return cls(records, restaurants)

    def _scoped(self, scope: AccessScope) -> pd.DataFrame:
        if scope.matches_nothing:
            return self.records.iloc[0:0]
        if scope.restaurant_id is not None:
            return self.records[self.records[Dimension.RESTAURANT.value] == scope.restaurant_id]
        return self.records

    async def count(self, scope: AccessScope) -> int:
        return int(len(self._scoped(scope)))

    async def grouped_count(
        self,
        dimension: Dimension,
        scope: AccessScope,
        order_by: OrderBy = OrderBy.NONE,
        limit: Optional[int] = None
    ) -> List[GroupedCount]:
        column = Dimension(dimension).value
        frame = self._scoped(scope)

        if frame.empty:
            return []

        grouped = frame.groupby(column, dropna=False).size().reset_index(name="count")
        grouped = grouped.rename(columns={column: "key"})

        if order_by == OrderBy.COUNT_DESC:
            grouped = grouped.sort_values(["count", "key"], ascending=[False, True], kind="mergesort")
        elif order_by == OrderBy.KEY_ASC:
            grouped = grouped.sort_values("key", kind="mergesort")

        if limit is not None:
            grouped = grouped.head(limit)

        return [
            GroupedCount(key=_to_python(key), count=int(count))
            for key, count in zip(grouped["key"], grouped["count"])
        ]

    async def average(self, measure: Measure, scope: AccessScope) -> Optional[float]:
        values = pd.to_numeric(self._scoped(scope)[Measure(measure).value], errors="coerce").dropna()
        if values.empty:
            return None

        mean = float(values.mean())
        return None if math.isnan(mean) else mean

    async def find_restaurants_by_ids(self, ids: Sequence[str]) -> List[Restaurant]:
        return [self.restaurants[i] for i in ids if i in self.restaurants]
