"""
Pytest configuration and fixtures for the delivery insights tests.

Provides sample delivery records, an in-memory record store, settings and
an authenticated HTTP client factory.
"""

from typing import Any, Dict, List, Optional

import pytest
from jose import jwt

from delivery_insights.config import Settings
from delivery_insights.db.connectors.memory import InMemoryRecordStore

TEST_JWT_SECRET = "test-secret"

def make_record(order_id: str, **overrides: Any) -> Dict[str, Any]:
    """Build one delivery record with sensible defaults."""
    record = {
        "order_id": order_id,
        "restaurant_id": "R1",
        "pizza_size": "L",
        "pizza_type": "Pepperoni",
        "payment_method": "Cash",
        "location": "Menteng",
        "order_month": 1,
        "order_hour": 12,
        "is_weekend": False,
        "traffic_level": "Low",
        "is_delayed": False,
        "delivery_duration_min": 30.0,
        "distance_km": 5.0,
        "delay_min": 0.0,
    }
    record.update(overrides)
    return record

@pytest.fixture
def restaurants() -> List[Dict[str, Any]]:
    return [
        {"id": "R1", "name": "Pizza Menteng", "code": "MTG"},
        {"id": "R2", "name": "Pizza Kemang", "code": "KMG"},
    ]

@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """Ten orders over two restaurants."""
    return [
        make_record("O1", order_hour=9, pizza_size="L", order_month=1, is_weekend=True,
                    delivery_duration_min=25.0, distance_km=3.0),
        make_record("O2", order_hour=9, pizza_size="M", order_month=1, is_delayed=True,
                    delay_min=12.0, traffic_level="High", delivery_duration_min=45.0),
        make_record("O3", order_hour=12, pizza_size="L", order_month=2, payment_method="Card",
                    location="Kemang"),
        make_record("O4", order_hour=18, pizza_size="S", order_month=2, pizza_type="Veggie",
                    is_weekend=True),
        make_record("O5", order_hour=18, pizza_size="L", order_month=3, is_delayed=True,
                    delay_min=8.0, traffic_level="High"),
        make_record("O6", restaurant_id="R2", order_hour=12, pizza_size="M", order_month=1,
                    location="Kemang", payment_method="Card", distance_km=7.0),
        make_record("O7", restaurant_id="R2", order_hour=19, pizza_size="M", order_month=2,
                    location="Kemang", pizza_type="Veggie", is_weekend=True),
        make_record("O8", restaurant_id="R2", order_hour=20, pizza_size="XL", order_month=3,
                    location="Blok M", is_delayed=True, delay_min=20.0, traffic_level="Medium"),
        make_record("O9", restaurant_id="R3", order_hour=20, pizza_size="L", order_month=3,
                    location="Blok M"),
        make_record("O10", restaurant_id="R3", order_hour=14, pizza_size="S", order_month=4,
                    payment_method="Wallet", location="Senayan"),
    ]

@pytest.fixture
def memory_store(sample_records, restaurants) -> InMemoryRecordStore:
    return InMemoryRecordStore(sample_records, restaurants)

@pytest.fixture
def empty_store(restaurants) -> InMemoryRecordStore:
    return InMemoryRecordStore([], restaurants)

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        environment="testing",
        record_store="memory",
        jwt_secret_key=TEST_JWT_SECRET,
        aggregation_timeout_seconds=2.0,
        _env_file=None,
    )

def make_token(
    role: str,
    restaurant_id: Optional[str] = None,
    username: str = "tester",
    secret: str = TEST_JWT_SECRET
) -> str:
    """Encode a bearer token for a caller."""
    claims = {"sub": username, "user_id": f"user-{username}", "role": role}
    if restaurant_id is not None:
        claims["restaurant_id"] = restaurant_id
    return jwt.encode(claims, secret, algorithm="HS256")

def auth_headers(role: str, restaurant_id: Optional[str] = None) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(role, restaurant_id)}"}
