"""State publisher for the charging state reconciler.

Outbound state goes through a StatePublisher. The default implementation
dispatches on Home Assistant's dispatcher and keeps retained payloads so a
subscriber that connects late (or reconnects) gets the last value at once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Protocol

from homeassistant.core import callback
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from ..const import DOMAIN
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


class StatePublisher(Protocol):
    """Anything that can publish a value on a topic."""

    def publish(self, topic: str, payload: Any, retain: bool = False) -> None:
        """Publish payload on topic; retained payloads survive reconnects."""


# Type alias for subscribers
PayloadHandler = Callable[[Any], None]


class DispatcherStatePublisher:
    """Publish state through the HA dispatcher with retained values."""

    def __init__(
        self,
        hass: HomeAssistant,
        account_number: str,
        logger: OctopusLogger | None = None,
    ) -> None:
        """Initialize the publisher.

        Args:
            hass: Home Assistant instance
            account_number: Account the topics belong to
            logger: Structured logger
        """
        self.hass = hass
        self.account_number = account_number
        self._logger = logger or get_logger()
        self._retained: dict[str, Any] = {}

    def signal(self, topic: str) -> str:
        """Dispatcher signal name for a topic."""
        return f"{DOMAIN}_{self.account_number}_{topic}"

    @callback
    def publish(self, topic: str, payload: Any, retain: bool = False) -> None:
        """Send payload to every subscriber of topic."""
        if retain:
            self._retained[topic] = payload

        self._logger.debug("STATE_PUBLISHED", topic=topic, retain=retain, payload=payload)
        async_dispatcher_send(self.hass, self.signal(topic), payload)

    @callback
    def subscribe(self, topic: str, handler: PayloadHandler) -> Callable[[], None]:
        """Subscribe to topic, replaying the retained payload if any.

        Returns:
            Unsubscribe function
        """
        unsubscribe = async_dispatcher_connect(self.hass, self.signal(topic), handler)
        if topic in self._retained:
            handler(self._retained[topic])
        return unsubscribe

    def retained(self, topic: str) -> Any:
        """Last retained payload for topic, or None."""
        return self._retained.get(topic)
