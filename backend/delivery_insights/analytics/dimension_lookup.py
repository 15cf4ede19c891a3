"""
Restaurant name resolution for grouped counts.
"""

from typing import Dict, Iterable, Optional

from delivery_insights.db.record_store import RecordStore
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

UNKNOWN_RESTAURANT = "Unknown"

class DimensionLookup:
    """Resolves restaurant ids returned by grouping into display names."""

    def __init__(self, store: RecordStore, unknown_name: str = UNKNOWN_RESTAURANT):
        self.store = store
        self.unknown_name = unknown_name

    async def resolve_names(self, restaurant_ids: Iterable[Optional[str]]) -> Dict[Optional[str], str]:
        """
        Resolve restaurant ids to display names with one batched lookup.

        Ids without a reference row map to the placeholder name.

        Args:
            restaurant_ids: Restaurant ids to resolve

        Returns:
            Mapping of id to display name, covering every requested id
        """
        ids = list(dict.fromkeys(restaurant_ids))
        if not ids:
            return {}

        lookup_ids = [i for i in ids if i is not None]
        restaurants = await self.store.find_restaurants_by_ids(lookup_ids) if lookup_ids else []
        names = {restaurant.id: restaurant.name for restaurant in restaurants}

        missing = [i for i in ids if i not in names]
        if missing:
            logger.warning(f"No restaurant reference for ids {missing}, using '{self.unknown_name}'")

        return {i: names.get(i, self.unknown_name) for i in ids}
