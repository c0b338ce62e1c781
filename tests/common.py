"""Shared helpers for the reconciler tests."""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from custom_components.octopus_intelligent.core.state import SlotWindow


def at(hour: int, minute: int = 0, second: int = 0) -> datetime:
    """A fixed UTC instant on the test night."""
    return datetime(2025, 11, 29, hour, minute, second, tzinfo=timezone.utc)


def window(start: datetime, end: datetime, kwh: float = -7.5, source: str = "smart-charge") -> SlotWindow:
    """Build a slot window."""
    return SlotWindow(start=start, end=end, energy_delta=kwh, source=source)


def window_around(now: datetime, before: timedelta, after: timedelta) -> SlotWindow:
    """Build a window that contains now."""
    return window(now - before, now + after)


def published(publisher: MagicMock, topic: str) -> list:
    """Payloads sent to topic, in order."""
    return [c.args[1] for c in publisher.publish.call_args_list if c.args[0] == topic]
