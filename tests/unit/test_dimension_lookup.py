"""Tests for restaurant name resolution."""

from unittest.mock import AsyncMock

import pytest

from delivery_insights.analytics.dimension_lookup import DimensionLookup
from delivery_insights.db.record_store import Restaurant

@pytest.mark.asyncio
async def test_resolves_known_ids(memory_store):
    names = await DimensionLookup(memory_store).resolve_names(["R1", "R2"])
    assert names == {"R1": "Pizza Menteng", "R2": "Pizza Kemang"}

@pytest.mark.asyncio
async def test_dangling_id_gets_placeholder(memory_store):
    names = await DimensionLookup(memory_store).resolve_names(["R1", "R9"])
    assert names == {"R1": "Pizza Menteng", "R9": "Unknown"}

@pytest.mark.asyncio
async def test_custom_placeholder(memory_store):
    names = await DimensionLookup(memory_store, unknown_name="Tidak diketahui").resolve_names(["R9"])
    assert names == {"R9": "Tidak diketahui"}

@pytest.mark.asyncio
async def test_single_batched_lookup():
    store = AsyncMock()
    store.find_restaurants_by_ids.return_value = [Restaurant(id="R1", name="Pizza Menteng")]

    names = await DimensionLookup(store).resolve_names(["R1", "R2", "R1"])

    store.find_restaurants_by_ids.assert_awaited_once_with(["R1", "R2"])
    assert names == {"R1": "Pizza Menteng", "R2": "Unknown"}

@pytest.mark.asyncio
async def test_no_ids_skips_lookup():
    store = AsyncMock()

    assert await DimensionLookup(store).resolve_names([]) == {}
    store.find_restaurants_by_ids.assert_not_awaited()

@pytest.mark.asyncio
async def test_null_id_is_unknown_without_lookup():
    store = AsyncMock()

    assert await DimensionLookup(store).resolve_names([None]) == {None: "Unknown"}
    store.find_restaurants_by_ids.assert_not_awaited()
