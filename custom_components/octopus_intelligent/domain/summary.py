"""Pure builder for the retained status payload."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Iterable

from ..const import SUMMARY_SLOT_COUNT, UNKNOWN_SOURCE
from ..core.state import SlotWindow

if TYPE_CHECKING:
    from ..core.state import PreferenceState


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _raw(slot: SlotWindow | None, edge: str) -> str | None:
    """Upstream string for a slot edge, falling back to ISO format."""
    if slot is None:
        return None
    return getattr(slot, f"{edge}_raw") or _iso(getattr(slot, edge))


class StatusSummary:
    """Summarize the cached windows for publishing."""

    @staticmethod
    def active_and_future(windows: Iterable[SlotWindow], now: datetime) -> list[SlotWindow]:
        """Windows that have not ended yet, in input order.

        Entries that are not SlotWindows or cannot be compared with now are
        skipped.
        """
        upcoming = []
        for window in windows or ():
            if not isinstance(window, SlotWindow):
                continue
            try:
                if window.end > now:
                    upcoming.append(window)
            except TypeError:
                continue
        return upcoming

    @staticmethod
    def build(
        windows: Iterable[SlotWindow],
        now: datetime,
        preferences: PreferenceState,
        charging_now: bool,
        refresh_available_at: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the full status payload.

        Args:
            windows: Cached windows
            now: Evaluation instant
            preferences: Confirmed/pending preferences
            charging_now: Current state machine value
            refresh_available_at: Manual refresh cooldown expiry, None if none

        Returns:
            Flat payload dictionary with ISO-8601 timestamps
        """
        upcoming = StatusSummary.active_and_future(windows, now)
        next_slot = upcoming[0] if upcoming else None
        last_slot = upcoming[-1] if upcoming else None
        total_energy = sum(w.energy_delta for w in upcoming)

        payload: dict[str, Any] = {
            "charging_now": charging_now,
            "next_start": _iso(next_slot.start) if next_slot else None,
            "next_start_raw": _raw(next_slot, "start"),
            "total_energy": round(total_energy, 2),
            "next_kwh": round(next_slot.energy_delta, 2) if next_slot else 0.0,
            "next_source": next_slot.source if next_slot else UNKNOWN_SOURCE,
            **preferences.to_dict(),
            "refresh_available_at": _iso(refresh_available_at),
        }

        for index in range(SUMMARY_SLOT_COUNT):
            slot = upcoming[index] if index < len(upcoming) else None
            payload[f"slot{index + 1}_start"] = _iso(slot.start) if slot else None
            payload[f"slot{index + 1}_end"] = _iso(slot.end) if slot else None
            payload[f"slot{index + 1}_start_raw"] = _raw(slot, "start")
            payload[f"slot{index + 1}_end_raw"] = _raw(slot, "end")

        payload["window_start"] = _iso(next_slot.start) if next_slot else None
        payload["window_end"] = _iso(last_slot.end) if last_slot else None
        payload["window_start_raw"] = _raw(next_slot, "start")
        payload["window_end_raw"] = _raw(last_slot, "end")
        return payload

    @staticmethod
    def build_default(
        preferences: PreferenceState,
        charging_now: bool,
        refresh_available_at: datetime | None = None,
    ) -> dict[str, Any]:
        """Payload with no slot data, published when a refresh failed."""
        return StatusSummary.build(
            (), datetime.min, preferences, charging_now, refresh_available_at
        )
