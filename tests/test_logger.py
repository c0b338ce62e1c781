"""Test the unified structured logger."""
import json
import logging
from datetime import datetime

from custom_components.octopus_intelligent.octopus_logging import OctopusLogger, get_logger


def test_format_message():
    """Events render as EVENT | key=value pairs."""
    assert OctopusLogger.format_message("EVENT", {}) == "EVENT"
    assert OctopusLogger.format_message("EVENT", {"a": 1, "b": True}) == "EVENT | a=1 | b=True"


def test_logs_to_ha_logger(caplog):
    """Every event reaches the HA logger at its level."""
    logger = OctopusLogger(name="unit", file_logging_enabled=False)

    with caplog.at_level(logging.DEBUG, logger="custom_components.octopus_intelligent.unit"):
        logger.warning("STATE_RECONCILED", from_state=False, to_state=True)
        logger.debug("TRANSITION_ARMED")

    assert "STATE_RECONCILED | from_state=False | to_state=True" in caplog.text
    levels = [r.levelno for r in caplog.records if r.name.endswith(".unit")]
    assert levels == [logging.WARNING, logging.DEBUG]


def test_bind_adds_context(caplog):
    """Bound loggers add their context to every event."""
    logger = OctopusLogger(name="unit", file_logging_enabled=False).bind(account="A-1")

    with caplog.at_level(logging.INFO, logger="custom_components.octopus_intelligent.unit"):
        logger.info("WINDOWS_REFRESHED", count=2)

    assert "WINDOWS_REFRESHED | account=A-1 | count=2" in caplog.text


def test_file_logging_writes_daily_json_lines(tmp_path):
    """With file logging on, events land in the daily structured log."""
    logger = OctopusLogger(name="files", log_dir=tmp_path, file_logging_enabled=True)
    logger.info("WINDOWS_REFRESHED", count=3)
    logger.shutdown()

    today = datetime.now()
    daily = tmp_path / str(today.year) / f"{today.month:02d}" / f"{today.day:02d}" / "events.log"
    entry = json.loads(daily.read_text(encoding="utf-8").splitlines()[0])

    assert entry["event"] == "WINDOWS_REFRESHED"
    assert entry["level"] == "info"
    assert entry["data"] == {"count": 3}


def test_get_logger_is_shared():
    """The default logger is a process-wide instance."""
    assert get_logger() is get_logger()


def test_get_logger_keeps_first_file_logging_setting():
    """Later callers never toggle the shared file sink."""
    shared = get_logger()

    assert get_logger(True) is shared
    assert shared.file_logging_enabled is False
