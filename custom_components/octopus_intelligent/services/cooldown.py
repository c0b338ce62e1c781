"""Cooldown gate - minimum interval between permitted manual actions."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Callable

from homeassistant.core import callback
from homeassistant.helpers.event import async_track_point_in_utc_time
from homeassistant.util import dt as dt_util

from ..const import TOPIC_REFRESH_COOLDOWN
from ..core.state import CooldownWindow
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..core.publisher import StatePublisher


@dataclass(frozen=True)
class CooldownResult:
    """Outcome of one acquisition attempt."""

    permitted: bool
    available_at: datetime | None
    seconds_remaining: int


class CooldownGate:
    """Rate limiter with a published "available at" timestamp.

    The published value is either a future timestamp or None; the expiry
    timer replaces it with None rather than letting it go stale.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        duration: timedelta,
        publisher: StatePublisher,
        logger: OctopusLogger | None = None,
        topic: str = TOPIC_REFRESH_COOLDOWN,
    ) -> None:
        """Initialize the gate.

        Raises:
            ValueError: If duration is not positive
        """
        if duration <= timedelta(0):
            raise ValueError(f"Cooldown must be positive, got {duration!r}")

        self.hass = hass
        self._publisher = publisher
        self._logger = logger or get_logger()
        self._topic = topic
        self._window = CooldownWindow(duration=duration)
        self._unsub_expiry: Callable[[], None] | None = None

    @property
    def window(self) -> CooldownWindow:
        """Cooldown bookkeeping."""
        return self._window

    def available_at(self, now: datetime | None = None) -> datetime | None:
        """When the next action is permitted, or None if it already is."""
        if self._window.last_triggered_at is None:
            return None
        now = now or dt_util.utcnow()
        available_at = self._window.last_triggered_at + self._window.duration
        return available_at if available_at > now else None

    def seconds_remaining(self, now: datetime | None = None) -> int:
        """Whole seconds until the next action is permitted, never negative."""
        now = now or dt_util.utcnow()
        available_at = self.available_at(now)
        if available_at is None:
            return 0
        return max(0, math.ceil((available_at - now).total_seconds()))

    def try_acquire(self, now: datetime | None = None) -> CooldownResult:
        """Permit the action if the cooldown has passed, recording it.

        Args:
            now: Attempt time (default: current UTC time)

        Returns:
            CooldownResult; blocked attempts leave the gate untouched
        """
        now = now or dt_util.utcnow()

        if not self._window.is_open(now):
            remaining = self.seconds_remaining(now)
            self._logger.warning(
                "MANUAL_REFRESH_BLOCKED",
                message=f"refresh blocked. Please wait {remaining} seconds",
                seconds_remaining=remaining,
            )
            return CooldownResult(
                permitted=False,
                available_at=self._window.last_triggered_at + self._window.duration,
                seconds_remaining=remaining,
            )

        self._window.last_triggered_at = now
        available_at = now + self._window.duration

        self.cancel()
        self._logger.info("MANUAL_REFRESH_PERMITTED", available_at=available_at.isoformat())

        # Expiry follows the caller's clock; an already-past expiry is never published
        if available_at <= dt_util.utcnow():
            self._publish(None)
        else:
            self._unsub_expiry = async_track_point_in_utc_time(
                self.hass, self._handle_expiry, available_at
            )
            self._publish(available_at)

        return CooldownResult(permitted=True, available_at=available_at, seconds_remaining=0)

    def cancel(self) -> None:
        """Cancel the expiry timer; safe when none is armed."""
        if self._unsub_expiry is not None:
            self._unsub_expiry()
            self._unsub_expiry = None

    @callback
    def _handle_expiry(self, _now: datetime) -> None:
        """Cooldown over - clear the published timestamp."""
        self._unsub_expiry = None
        self._logger.debug("MANUAL_REFRESH_AVAILABLE")
        self._publish(None)

    def _publish(self, available_at: datetime | None) -> None:
        try:
            self._publisher.publish(
                self._topic,
                {"refresh_available_at": available_at.isoformat() if available_at else None},
                retain=True,
            )
        except Exception as ex:  # noqa: BLE001
            self._logger.warning("COOLDOWN_PUBLISH_FAILED", error=str(ex))
