"""Shared test fixtures for the relay.

Provides settings isolated to a temporary state directory and recording
doubles for the delivery and approval channels.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from relay.settings import Settings
from tests.mocks import AutoNotifier, FakeClock, RecordingSink

# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Provide test settings with safe defaults."""
    return Settings(
        environment="testing",
        log_level="DEBUG",
        state_dir=tmp_path / "relay-state",
        keepalive_interval_seconds=60.0,
    )


@pytest.fixture
def mock_settings(test_settings: Settings, monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Mock get_settings() to return test settings."""
    from relay import settings

    monkeypatch.setattr(settings, "get_settings", lambda: test_settings)
    return test_settings


# =============================================================================
# CHANNEL DOUBLES
# =============================================================================


@pytest.fixture
def recording_sink() -> RecordingSink:
    """Delivery sink that records chunks, warnings and errors."""
    return RecordingSink()


@pytest.fixture
def auto_notifier() -> AutoNotifier:
    """Approval notifier that approves once bound to a resolver."""
    return AutoNotifier(approve=True)


@pytest.fixture
def clock() -> FakeClock:
    """Manually advanced clock."""
    return FakeClock()
