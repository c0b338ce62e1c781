"""Test reconciler configuration."""
from datetime import timedelta

import pytest

from custom_components.octopus_intelligent.const import (
    CONF_ACCOUNT_NUMBER,
    CONF_LEAD_TIME,
    CONF_RECONCILIATION_INTERVAL,
    CONF_VALIDATION_RETRY_INTERVALS,
)
from custom_components.octopus_intelligent.core.config import ReconcilerConfig


def test_defaults():
    """Only the account number is required."""
    config = ReconcilerConfig.from_dict({CONF_ACCOUNT_NUMBER: " A-1234ABCD "})

    assert config.account_number == "A-1234ABCD"
    assert config.reconciliation_interval == timedelta(seconds=10)
    assert config.manual_refresh_cooldown == timedelta(seconds=30)
    assert config.validation_retry_intervals == (
        timedelta(seconds=15),
        timedelta(seconds=30),
        timedelta(seconds=60),
        timedelta(seconds=120),
    )
    assert config.lead_time == timedelta(seconds=30)
    assert config.file_logging is True


def test_from_entry_options_override_data(mock_config_entry):
    """Options win over data."""
    mock_config_entry.options = {CONF_RECONCILIATION_INTERVAL: 5, CONF_LEAD_TIME: 0}

    config = ReconcilerConfig.from_entry(mock_config_entry)

    assert config.reconciliation_interval == timedelta(seconds=5)
    assert config.lead_time is None


@pytest.mark.parametrize(
    "raw",
    [
        {},
        {CONF_ACCOUNT_NUMBER: ""},
        {CONF_ACCOUNT_NUMBER: "A-1", CONF_RECONCILIATION_INTERVAL: 0},
        {CONF_ACCOUNT_NUMBER: "A-1", CONF_VALIDATION_RETRY_INTERVALS: []},
        {CONF_ACCOUNT_NUMBER: "A-1", CONF_VALIDATION_RETRY_INTERVALS: [15, -1]},
        {CONF_ACCOUNT_NUMBER: "A-1", CONF_LEAD_TIME: -30},
    ],
)
def test_invalid_config_raises_value_error(raw):
    """Schema failures surface as ValueError."""
    with pytest.raises(ValueError):
        ReconcilerConfig.from_dict(raw)
