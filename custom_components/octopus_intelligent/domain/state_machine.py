"""Charging state machine.

Owns the single `is_charging` boolean. The only way to change it is apply(),
which publishes exactly once per real transition.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..const import TOPIC_CHARGING_NOW
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from ..core.publisher import StatePublisher
    from ..core.state import EvaluationResult


class ChargingStateMachine:
    """NotCharging <-> Charging, driven by evaluation results."""

    def __init__(
        self,
        publisher: StatePublisher,
        logger: OctopusLogger | None = None,
        topic: str = TOPIC_CHARGING_NOW,
    ) -> None:
        """Initialize in the NotCharging state.

        Args:
            publisher: Receives the new state on every transition (retained)
            logger: Structured logger
            topic: Publisher topic for the charging state
        """
        self._publisher = publisher
        self._logger = logger or get_logger()
        self._topic = topic
        self._is_charging = False
        self._publish_pending = False

    @property
    def is_charging(self) -> bool:
        """Current charging state."""
        return self._is_charging

    @property
    def publish_pending(self) -> bool:
        """True when the last publish failed and will be retried."""
        return self._publish_pending

    def would_change(self, result: EvaluationResult) -> bool:
        """Check if applying result would flip the state."""
        return result.is_active != self._is_charging

    def apply(self, result: EvaluationResult) -> bool:
        """Apply an evaluation result.

        Publishing failures never roll the state back; the publish is retried
        on the next call.

        Returns:
            True if the state changed
        """
        new_state = result.is_active
        changed = new_state != self._is_charging

        if changed:
            old_state = self._is_charging
            self._is_charging = new_state
            self._logger.info(
                "CHARGING_STATE_CHANGED",
                from_state=old_state,
                to_state=new_state,
                slot_end=result.active.end.isoformat() if result.active else None,
            )

        if changed or self._publish_pending:
            self._publish()

        return changed

    def _publish(self) -> None:
        """Publish the current state, remembering failures for a retry."""
        try:
            self._publisher.publish(self._topic, self._is_charging, retain=True)
        except Exception as ex:  # noqa: BLE001
            self._publish_pending = True
            self._logger.warning(
                "CHARGING_STATE_PUBLISH_FAILED",
                state=self._is_charging,
                error=str(ex),
            )
        else:
            self._publish_pending = False
