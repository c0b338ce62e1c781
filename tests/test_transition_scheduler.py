"""Test the one-shot transition scheduler."""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from pytest_homeassistant_custom_component.common import async_fire_time_changed

from homeassistant.core import HomeAssistant
from homeassistant.util import dt as dt_util

from custom_components.octopus_intelligent.core.state import EvaluationResult, TransitionKind
from custom_components.octopus_intelligent.services.transition_scheduler import TransitionScheduler

from .common import window, window_around


@pytest.mark.asyncio
async def test_end_timer_fires_at_window_end(hass: HomeAssistant, logger):
    """An active window arms a timer at its end."""
    now = dt_util.utcnow()
    slot = window_around(now, timedelta(minutes=5), timedelta(minutes=10))
    on_boundary = MagicMock()
    scheduler = TransitionScheduler(hass, on_boundary, logger=logger)

    transition = scheduler.rearm(EvaluationResult(active=slot), now)
    assert transition.kind is TransitionKind.END_OF_ACTIVE_WINDOW
    assert transition.fire_at == slot.end

    async_fire_time_changed(hass, slot.end - timedelta(minutes=1))
    await hass.async_block_till_done()
    on_boundary.assert_not_called()

    async_fire_time_changed(hass, slot.end + timedelta(seconds=1))
    await hass.async_block_till_done()

    on_boundary.assert_called_once()
    assert on_boundary.call_args.args[0] >= slot.end
    assert scheduler.transition is None


@pytest.mark.asyncio
async def test_rearm_cancels_previous_timer(hass: HomeAssistant, logger):
    """Only the latest armed transition fires."""
    now = dt_util.utcnow()
    first = window_around(now, timedelta(minutes=5), timedelta(minutes=10))
    second = window_around(now, timedelta(minutes=5), timedelta(minutes=20))
    on_boundary = MagicMock()
    scheduler = TransitionScheduler(hass, on_boundary, logger=logger)

    scheduler.rearm(EvaluationResult(active=first), now)
    scheduler.rearm(EvaluationResult(active=second), now)

    async_fire_time_changed(hass, first.end + timedelta(seconds=1))
    await hass.async_block_till_done()
    on_boundary.assert_not_called()

    async_fire_time_changed(hass, second.end + timedelta(seconds=1))
    await hass.async_block_till_done()
    on_boundary.assert_called_once()


@pytest.mark.asyncio
async def test_inactive_without_lead_time_arms_nothing(hass: HomeAssistant, logger):
    """Not active and no lead time means no timer."""
    now = dt_util.utcnow()
    upcoming = window(now + timedelta(minutes=5), now + timedelta(minutes=30))
    scheduler = TransitionScheduler(hass, MagicMock(), logger=logger)

    assert scheduler.rearm(EvaluationResult(next=upcoming), now) is None
    assert scheduler.transition is None


@pytest.mark.asyncio
async def test_lead_time_timer_fires_before_next_window(hass: HomeAssistant, logger):
    """The lead-time timer fires lead_time before the next start."""
    now = dt_util.utcnow()
    upcoming = window(now + timedelta(minutes=5), now + timedelta(minutes=30))
    on_boundary = MagicMock()
    on_lead_time = MagicMock()
    scheduler = TransitionScheduler(
        hass, on_boundary, on_lead_time, lead_time=timedelta(seconds=30), logger=logger
    )

    transition = scheduler.rearm(EvaluationResult(next=upcoming), now)
    assert transition.kind is TransitionKind.LEAD_TIME
    assert transition.fire_at == upcoming.start - timedelta(seconds=30)

    async_fire_time_changed(hass, upcoming.start - timedelta(seconds=29))
    await hass.async_block_till_done()

    on_lead_time.assert_called_once()
    on_boundary.assert_not_called()


@pytest.mark.asyncio
async def test_lead_time_beyond_horizon_is_not_armed(hass: HomeAssistant, logger):
    """Windows more than a day away get no lead-time timer."""
    now = dt_util.utcnow()
    far = window(now + timedelta(hours=30), now + timedelta(hours=31))
    scheduler = TransitionScheduler(
        hass, MagicMock(), MagicMock(), lead_time=timedelta(seconds=30), logger=logger
    )

    assert scheduler.rearm(EvaluationResult(next=far), now) is None


@pytest.mark.asyncio
async def test_cancel(hass: HomeAssistant, logger):
    """A cancelled transition never fires."""
    now = dt_util.utcnow()
    slot = window_around(now, timedelta(minutes=5), timedelta(minutes=10))
    on_boundary = MagicMock()
    scheduler = TransitionScheduler(hass, on_boundary, logger=logger)

    scheduler.rearm(EvaluationResult(active=slot), now)
    scheduler.cancel()
    scheduler.cancel()

    async_fire_time_changed(hass, slot.end + timedelta(seconds=1))
    await hass.async_block_till_done()
    on_boundary.assert_not_called()


@pytest.mark.asyncio
async def test_handler_failure_is_logged(hass: HomeAssistant, logger):
    """An exception in the boundary handler does not escape the timer."""
    now = dt_util.utcnow()
    slot = window_around(now, timedelta(minutes=5), timedelta(minutes=1))
    on_boundary = MagicMock(side_effect=RuntimeError("boom"))
    scheduler = TransitionScheduler(hass, on_boundary, logger=logger)

    scheduler.rearm(EvaluationResult(active=slot), now)
    async_fire_time_changed(hass, slot.end + timedelta(seconds=1))
    await hass.async_block_till_done()

    assert logger.error.call_args.args[0] == "TRANSITION_HANDLER_FAILED"
