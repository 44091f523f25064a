"""Unit-test conftest: reset cached settings between tests."""

from __future__ import annotations

import pytest

from relay.settings import get_settings


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Drop the cached settings around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
