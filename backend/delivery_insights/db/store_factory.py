"""
Record store selection.
"""

from typing import Optional

from delivery_insights.config import Settings, get_settings
from delivery_insights.db.connectors.memory import InMemoryRecordStore
from delivery_insights.db.connectors.postgres import PostgresRecordStore
from delivery_insights.db.record_store import RecordStore
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

def create_record_store(settings: Optional[Settings] = None) -> RecordStore:
    """
    Create the record store configured in settings.

    Args:
        settings: Settings to use (defaults to the cached application settings)

    Returns:
        RecordStore instance
    """
    settings = settings or get_settings()

    if settings.record_store == "memory":
        if settings.memory_dataset_path:
            store = InMemoryRecordStore.from_csv(
                settings.memory_dataset_path,
                settings.memory_restaurants_path
            )
        else:
            logger.warning("No memory_dataset_path configured, serving an empty record store")
            store = InMemoryRecordStore()
    else:
        store = PostgresRecordStore(settings=settings)

    logger.info(f"Using {settings.record_store} record store")
    return store
