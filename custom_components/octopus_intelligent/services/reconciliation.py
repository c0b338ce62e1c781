"""Reconciliation loop - periodic safety net for the charging state."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable, Sequence

from homeassistant.core import callback
from homeassistant.helpers.event import async_track_time_interval

from ..core.state import EvaluationResult, SlotWindow
from ..domain.evaluator import WindowEvaluator
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..domain.state_machine import ChargingStateMachine


def _as_text(state: bool) -> str:
    return "true" if state else "false"


class ReconciliationLoop:
    """Re-evaluates the cached windows on a fixed period.

    Catches every case where a one-shot timer was missed, suppressed or never
    armed. The tick always evaluates; nothing can switch it off except stop().
    """

    def __init__(
        self,
        hass: HomeAssistant,
        windows_provider: Callable[[], Sequence[SlotWindow]],
        machine: ChargingStateMachine,
        logger: OctopusLogger | None = None,
        on_transition: Callable[[EvaluationResult, datetime], None] | None = None,
    ) -> None:
        """Initialize the loop.

        Args:
            hass: Home Assistant instance
            windows_provider: Returns the currently cached windows
            machine: State machine to correct
            logger: Structured logger
            on_transition: Called after a tick changed the state
        """
        self.hass = hass
        self._windows_provider = windows_provider
        self._machine = machine
        self._logger = logger or get_logger()
        self._on_transition = on_transition
        self._unsub_interval: Callable[[], None] | None = None
        self._period: timedelta | None = None

    @property
    def is_running(self) -> bool:
        """Check if the periodic timer is armed."""
        return self._unsub_interval is not None

    @property
    def period(self) -> timedelta | None:
        """Tick period while running."""
        return self._period

    def start(self, period: timedelta) -> None:
        """Start ticking every period, replacing a running loop.

        Raises:
            ValueError: If period is not a positive timedelta
        """
        if not isinstance(period, timedelta) or period <= timedelta(0):
            raise ValueError(f"Reconciliation period must be a positive timedelta, got {period!r}")

        self.stop()
        self._period = period
        self._unsub_interval = async_track_time_interval(self.hass, self._handle_tick, period)
        self._logger.info("RECONCILIATION_STARTED", period_seconds=period.total_seconds())

    def stop(self) -> None:
        """Stop ticking; safe when not running."""
        if self._unsub_interval is None:
            return
        self._unsub_interval()
        self._unsub_interval = None
        self._period = None
        self._logger.info("RECONCILIATION_STOPPED")

    @callback
    def _handle_tick(self, now: datetime) -> None:
        """Timer entry point; a failing tick leaves the state as it was."""
        try:
            self.tick(now)
        except Exception as ex:  # noqa: BLE001
            self._logger.error("RECONCILIATION_TICK_FAILED", error=str(ex))

    def tick(self, now: datetime) -> bool:
        """Evaluate the cached windows at now and correct the state.

        Returns:
            True if the state was corrected
        """
        windows = self._windows_provider()
        if not windows:
            return False

        result = WindowEvaluator.evaluate(windows, now)

        if self._machine.would_change(result):
            old_state = self._machine.is_charging
            new_state = result.is_active
            self._logger.warning(
                "STATE_RECONCILED",
                message=(
                    f"Correcting charging_now from {_as_text(old_state)} "
                    f"to {_as_text(new_state)}"
                ),
                from_state=old_state,
                to_state=new_state,
            )

        changed = self._machine.apply(result)
        if changed and self._on_transition is not None:
            self._on_transition(result, now)
        return changed
