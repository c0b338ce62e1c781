"""Test charge preference normalization."""
import pytest

from custom_components.octopus_intelligent.domain.preferences import (
    ChargePreferences,
    PreferenceValidator,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (80, 80),
        (87, 85),
        (88, 90),
        ("72.5", 70),
        (30, 50),
        (140, 100),
        (None, 50),
        ("abc", 50),
    ],
)
def test_normalize_limit(raw, expected):
    """Limits are clamped to 50-100 and snapped to 5%."""
    assert PreferenceValidator.normalize_limit(raw) == expected


def test_normalize_time_accepts_options(logger):
    """Allowed half-hour slots pass through."""
    assert PreferenceValidator.normalize_time("06:30", logger) == "06:30"
    logger.warning.assert_not_called()


@pytest.mark.parametrize("raw", ["12:00", "06:15", "", None])
def test_normalize_time_falls_back(raw, logger):
    """Anything else becomes 08:00 with a warning."""
    assert PreferenceValidator.normalize_time(raw, logger) == "08:00"
    assert logger.warning.call_args.args[0] == "INVALID_READY_TIME"


def test_normalize_and_matches(logger):
    """normalize builds preferences that compare against remote values."""
    prefs = PreferenceValidator.normalize("93", "07:00", logger)

    assert prefs == ChargePreferences(target_soc=95, target_time="07:00")
    assert prefs.matches(95, "07:00")
    assert not prefs.matches(90, "07:00")
