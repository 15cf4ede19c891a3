"""Tests for settings validation and structured logging."""

import json
import logging

import pytest
from pydantic import ValidationError

from delivery_insights.config import Settings
from delivery_insights.utils.logger import JSONLogFormatter, log_with_context

def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.peak_window_hours == [11, 12, 13, 17, 18, 19, 20]
    assert settings.location_top_n == 10
    assert settings.unknown_restaurant_name == "Unknown"

def test_peak_window_is_normalized():
    settings = Settings(peak_window_hours=[20, 11, 11, 0], _env_file=None)
    assert settings.peak_window_hours == [0, 11, 20]

def test_peak_window_rejects_invalid_hours():
    with pytest.raises(ValidationError):
        Settings(peak_window_hours=[12, 24], _env_file=None)

def test_production_requires_real_secret():
    with pytest.raises(ValidationError):
        Settings(environment="production", _env_file=None)

    settings = Settings(environment="production", jwt_secret_key="s3cret", _env_file=None)
    assert settings.environment == "production"

def test_log_level_is_normalized():
    assert Settings(log_level="debug", _env_file=None).log_level == "DEBUG"

def test_log_with_context(caplog):
    logger = logging.getLogger("delivery_insights.tests")

    with caplog.at_level(logging.INFO, logger="delivery_insights.tests"):
        log_with_context(logger, "info", "Aggregation complete", {"scope": "R1", "operations": 9})

    record = caplog.records[-1]
    assert record.getMessage() == "Aggregation complete [scope=R1 operations=9]"
    assert record.context == {"scope": "R1", "operations": 9}

    payload = json.loads(JSONLogFormatter().format(record))
    assert payload["level"] == "INFO"
    assert payload["scope"] == "R1"
    assert payload["operations"] == 9
