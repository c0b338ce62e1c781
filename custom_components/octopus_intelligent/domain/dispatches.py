"""Conversion of planned-dispatch records into slot windows.

Upstream records look like::

    {"startDt": "2025-11-29 01:30:00+00:00",
     "endDt": "2025-11-29 05:30:00+00:00",
     "deltaKwh": -15.5,
     "meta": {"source": "smart-charge"}}

Malformed records are dropped, never raised.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from homeassistant.util import dt as dt_util

from ..const import UNKNOWN_SOURCE
from ..core.state import SlotWindow
from ..octopus_logging import OctopusLogger, get_logger


def _to_utc(value: Any) -> datetime | None:
    """Parse a timestamp string or datetime; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        parsed = dt_util.parse_datetime(value)
    else:
        return None

    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt_util.UTC)
    return dt_util.as_utc(parsed)


def parse_dispatch(raw: Any, logger: OctopusLogger | None = None) -> SlotWindow | None:
    """Build a SlotWindow from one dispatch record.

    Returns:
        The window, or None when the record is malformed
    """
    if not isinstance(raw, dict):
        return None

    start = _to_utc(raw.get("startDt"))
    end = _to_utc(raw.get("endDt"))
    if start is None or end is None or start >= end:
        (logger or get_logger()).warning(
            "DISPATCH_SKIPPED",
            start=raw.get("startDt"),
            end=raw.get("endDt"),
        )
        return None

    try:
        energy_delta = float(raw.get("deltaKwh") or 0.0)
    except (TypeError, ValueError):
        energy_delta = 0.0

    meta = raw.get("meta") or {}
    source = meta.get("source") if isinstance(meta, dict) else None

    return SlotWindow(
        start=start,
        end=end,
        energy_delta=energy_delta,
        source=source or UNKNOWN_SOURCE,
        start_raw=raw["startDt"] if isinstance(raw["startDt"], str) else None,
        end_raw=raw["endDt"] if isinstance(raw["endDt"], str) else None,
    )


def parse_dispatches(
    raw_list: Iterable[Any] | None, logger: OctopusLogger | None = None
) -> list[SlotWindow]:
    """Convert dispatch records to windows, keeping order and dropping bad ones."""
    windows = []
    for raw in raw_list or ():
        window = parse_dispatch(raw, logger)
        if window is not None:
            windows.append(window)
    return windows
