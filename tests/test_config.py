"""
test_config.py — Tests for storefront/config.py

Called by: pytest
Depends on: storefront/config.py
"""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from storefront.config import Settings, get_settings


def test_defaults():
    s = Settings(_env_file=None)
    assert s.api_base_url == "http://localhost:3000/api"
    assert s.api_timeout_seconds == 10
    assert s.max_retries == 2
    assert s.enable_validation is True
    assert s.enable_retry is True
    assert s.is_production is False


def test_env_prefix():
    env = {
        "STOREFRONT_API_BASE_URL": "https://shop.example.com/api",
        "STOREFRONT_MAX_RETRIES": "4",
        "STOREFRONT_ENABLE_LOGGING": "false",
        "STOREFRONT_ENVIRONMENT": "Production",
    }
    with patch.dict(os.environ, env):
        s = Settings(_env_file=None)
    assert s.api_base_url == "https://shop.example.com/api"
    assert s.max_retries == 4
    assert s.enable_logging is False
    assert s.is_production is True


def test_rejects_bad_values():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, api_timeout_seconds=0)
    with pytest.raises(ValidationError):
        Settings(_env_file=None, max_retries=-1)


def test_get_settings_is_cached():
    get_settings.cache_clear()
    try:
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
