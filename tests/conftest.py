"""Fixtures for testing."""
from unittest.mock import MagicMock

import pytest

from custom_components.octopus_intelligent.const import (
    CONF_ACCOUNT_NUMBER,
    CONF_MANUAL_REFRESH_COOLDOWN,
    CONF_RECONCILIATION_INTERVAL,
)
from custom_components.octopus_intelligent.core.config import ReconcilerConfig
from custom_components.octopus_intelligent.octopus_logging import unified_logger


@pytest.fixture(autouse=True)
def quiet_default_logger():
    """Never start the file writer thread from the shared default logger."""
    previous = unified_logger._logger_instance
    unified_logger._logger_instance = unified_logger.OctopusLogger(
        name="test", file_logging_enabled=False
    )
    yield
    unified_logger._logger_instance = previous


@pytest.fixture
def logger():
    """Mock structured logger."""
    return MagicMock()


@pytest.fixture
def publisher():
    """Mock state publisher."""
    return MagicMock()


@pytest.fixture
def config():
    """Default reconciler config for a test account."""
    return ReconcilerConfig.from_dict({CONF_ACCOUNT_NUMBER: "A-1234ABCD"})


@pytest.fixture
def mock_config_entry():
    """Mock a config entry."""
    entry = MagicMock()
    entry.data = {
        CONF_ACCOUNT_NUMBER: "A-1234ABCD",
        CONF_RECONCILIATION_INTERVAL: 10,
    }
    entry.options = {CONF_MANUAL_REFRESH_COOLDOWN: 45}
    entry.entry_id = "test_entry_id"
    return entry
