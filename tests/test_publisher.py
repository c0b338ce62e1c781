"""Test the dispatcher state publisher."""
import pytest

from homeassistant.core import HomeAssistant, callback

from custom_components.octopus_intelligent.const import TOPIC_CHARGING_NOW, TOPIC_STATUS
from custom_components.octopus_intelligent.core.publisher import DispatcherStatePublisher


@pytest.mark.asyncio
async def test_retained_payload_is_replayed(hass: HomeAssistant, logger):
    """Late subscribers get the last retained value immediately."""
    publisher = DispatcherStatePublisher(hass, "A-1", logger)
    received = []

    @callback
    def _on_value(value):
        received.append(value)

    publisher.publish(TOPIC_CHARGING_NOW, True, retain=True)
    unsub = publisher.subscribe(TOPIC_CHARGING_NOW, _on_value)
    assert received == [True]

    publisher.publish(TOPIC_CHARGING_NOW, False, retain=True)
    await hass.async_block_till_done()
    assert received == [True, False]
    assert publisher.retained(TOPIC_CHARGING_NOW) is False

    unsub()


@pytest.mark.asyncio
async def test_non_retained_payload_is_not_replayed(hass: HomeAssistant, logger):
    """Quick updates only reach current subscribers."""
    publisher = DispatcherStatePublisher(hass, "A-1", logger)
    received = []

    @callback
    def _on_value(value):
        received.append(value)

    publisher.publish(TOPIC_STATUS, {"pending_limit": 85})
    unsub = publisher.subscribe(TOPIC_STATUS, _on_value)

    assert received == []
    assert publisher.retained(TOPIC_STATUS) is None
    unsub()


@pytest.mark.asyncio
async def test_topics_are_scoped_per_account(hass: HomeAssistant, logger):
    """Two accounts never see each other's state."""
    first = DispatcherStatePublisher(hass, "A-1", logger)
    second = DispatcherStatePublisher(hass, "A-2", logger)
    received = []

    @callback
    def _on_value(value):
        received.append(value)

    unsub = second.subscribe(TOPIC_CHARGING_NOW, _on_value)
    first.publish(TOPIC_CHARGING_NOW, True, retain=True)
    await hass.async_block_till_done()

    assert received == []
    assert first.signal(TOPIC_CHARGING_NOW) == "octopus_intelligent_A-1_charging_now"
    unsub()
