"""Transition scheduler - one-shot timers for the next state boundary."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from homeassistant.core import callback
from homeassistant.helpers.event import async_track_point_in_utc_time

from ..const import MAX_LEAD_TIME_HORIZON_HOURS
from ..core.state import EvaluationResult, ScheduledTransition, TransitionKind
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

# Type alias for boundary handlers
TransitionHandler = Callable[[datetime], None]


class TransitionScheduler:
    """Keeps at most one transition timer armed.

    While a window is active, a timer is armed at its end so charging stops
    on time. While inactive, an optional lead-time timer fires shortly before
    the next window starts. The reconciliation loop covers anything missed.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        on_boundary: TransitionHandler,
        on_lead_time: TransitionHandler | None = None,
        lead_time: timedelta | None = None,
        logger: OctopusLogger | None = None,
    ) -> None:
        """Initialize the scheduler.

        Args:
            hass: Home Assistant instance
            on_boundary: Called with the firing time when an active window ends
            on_lead_time: Called with the firing time before the next window
            lead_time: How long before the next window start to fire, None disables
            logger: Structured logger
        """
        self.hass = hass
        self._on_boundary = on_boundary
        self._on_lead_time = on_lead_time
        self._lead_time = lead_time
        self._logger = logger or get_logger()
        self._transition: ScheduledTransition | None = None

    @property
    def transition(self) -> ScheduledTransition | None:
        """The currently armed transition, if any."""
        return self._transition

    def rearm(self, result: EvaluationResult, now: datetime) -> ScheduledTransition | None:
        """Cancel the armed transition and arm one for result.

        Args:
            result: Latest evaluation result
            now: Instant the result was evaluated at

        Returns:
            The newly armed transition, or None
        """
        self.cancel()

        if result.active is not None:
            return self._arm(now, result.active.end, TransitionKind.END_OF_ACTIVE_WINDOW)

        if result.next is None or self._lead_time is None or self._on_lead_time is None:
            return None

        fire_at = result.next.start - self._lead_time
        if fire_at <= now or fire_at - now > timedelta(hours=MAX_LEAD_TIME_HORIZON_HOURS):
            return None

        return self._arm(now, fire_at, TransitionKind.LEAD_TIME)

    def cancel(self) -> None:
        """Cancel the armed transition; safe when nothing is armed."""
        transition = self._transition
        self._transition = None
        if transition is not None and transition.cancel is not None:
            transition.cancel()
            self._logger.debug("TRANSITION_CANCELLED", **transition.to_dict())

    def _arm(
        self, now: datetime, fire_at: datetime, kind: TransitionKind
    ) -> ScheduledTransition:
        transition = ScheduledTransition(armed_at=now, fire_at=fire_at, kind=kind)

        @callback
        def _fire(fired_at: datetime) -> None:
            self._handle_fire(transition, fired_at)

        transition.cancel = async_track_point_in_utc_time(self.hass, _fire, fire_at)
        self._transition = transition
        self._logger.debug("TRANSITION_ARMED", **transition.to_dict())
        return transition

    @callback
    def _handle_fire(self, transition: ScheduledTransition, fired_at: datetime) -> None:
        """Run the handler for a transition that reached its time."""
        if self._transition is not transition:
            return
        self._transition = None

        # Never evaluate before the boundary itself
        now = max(fired_at, transition.fire_at)
        self._logger.info("TRANSITION_FIRED", kind=transition.kind.value, at=now.isoformat())

        handler = (
            self._on_boundary
            if transition.kind is TransitionKind.END_OF_ACTIVE_WINDOW
            else self._on_lead_time
        )
        try:
            handler(now)
        except Exception as ex:  # noqa: BLE001
            self._logger.error(
                "TRANSITION_HANDLER_FAILED",
                kind=transition.kind.value,
                error=str(ex),
            )
