"""Pure active-window evaluation.

No Home Assistant dependencies: takes a window collection and an instant,
returns which window (if any) is active and which one comes next.
"""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..core.state import EvaluationResult, SlotWindow


class WindowEvaluator:
    """Decides whether charging is active at a given instant.

    Windows are independent half-open intervals [start, end). When several
    overlap, the first one in input order wins; callers that need the
    earliest-starting match must pass windows sorted by start.
    """

    @staticmethod
    def evaluate(windows: Iterable[SlotWindow] | None, now: datetime) -> EvaluationResult:
        """Evaluate windows at now.

        Entries that are not SlotWindows, or whose datetimes cannot be
        compared with now (e.g. naive vs aware), are ignored.

        Args:
            windows: Window collection in any order, may be empty or None
            now: Instant to evaluate at

        Returns:
            EvaluationResult with the active and next windows
        """
        active: SlotWindow | None = None
        upcoming: SlotWindow | None = None

        for window in windows or ():
            if not isinstance(window, SlotWindow):
                continue
            try:
                if active is None and window.contains(now):
                    active = window
                elif upcoming is None and window.start > now:
                    upcoming = window
            except TypeError:
                continue

            if active is not None and upcoming is not None:
                break

        return EvaluationResult(active=active, next=upcoming)

    @staticmethod
    def is_active(windows: Iterable[SlotWindow] | None, now: datetime) -> bool:
        """Check if any window is active at now."""
        return WindowEvaluator.evaluate(windows, now).is_active
