"""Charging state coordinator - thin orchestration layer.

This coordinator:
1. Owns the ReconcilerState for one account
2. Wires the evaluator, state machine and timer services together
3. Exposes the operations the fetch/command shell calls
4. Publishes status snapshots

All decisions live in domain/, all timers in services/.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable

from homeassistant.core import HomeAssistant, callback
from homeassistant.util import dt as dt_util

from .const import TARGET_PREFERENCES, TOPIC_STATUS
from .core.config import ReconcilerConfig
from .core.publisher import DispatcherStatePublisher, StatePublisher
from .core.state import (
    EvaluationResult,
    ReconcilerState,
    RetrySession,
    SessionOutcome,
    SlotWindow,
)
from .domain.evaluator import WindowEvaluator
from .domain.preferences import ChargePreferences, PreferenceValidator
from .domain.state_machine import ChargingStateMachine
from .domain.summary import StatusSummary
from .octopus_logging import OctopusLogger, get_logger
from .services.backoff import BackoffRetryCoordinator, CheckFn
from .services.cooldown import CooldownGate, CooldownResult
from .services.reconciliation import ReconciliationLoop
from .services.transition_scheduler import TransitionScheduler

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


class ChargingStateCoordinator:
    """Keeps charging_now correct for one account."""

    def __init__(
        self,
        hass: HomeAssistant,
        config: ReconcilerConfig,
        publisher: StatePublisher | None = None,
        logger: OctopusLogger | None = None,
        refresh_callback: Callable[[], Awaitable[Any]] | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            hass: Home Assistant instance
            config: Validated settings
            publisher: Outbound state sink (default: HA dispatcher)
            logger: Structured logger (default: shared logger bound to the account)
            refresh_callback: Async data fetch run on manual refresh and lead time
        """
        self.hass = hass
        self.config = config
        if logger is None:
            logger = get_logger(config.file_logging).bind(account=config.account_number)
        self._logger = logger
        self._refresh_callback = refresh_callback

        self._logger.info("COORDINATOR_INIT_START", account=config.account_number)

        self.state = ReconcilerState(account_number=config.account_number)
        self.publisher = publisher or DispatcherStatePublisher(
            hass, config.account_number, self._logger
        )

        self.machine = ChargingStateMachine(self.publisher, self._logger)
        self.scheduler = TransitionScheduler(
            hass,
            on_boundary=self._handle_boundary,
            on_lead_time=self._handle_lead_time,
            lead_time=config.lead_time,
            logger=self._logger,
        )
        self.reconciliation = ReconciliationLoop(
            hass,
            windows_provider=lambda: self.state.windows,
            machine=self.machine,
            logger=self._logger,
            on_transition=self._handle_reconciled,
        )
        self.retries = BackoffRetryCoordinator(hass, self._logger)
        self.cooldown = CooldownGate(
            hass, config.manual_refresh_cooldown, self.publisher, self._logger
        )

        self._logger.info("COORDINATOR_INIT_COMPLETE")

    @classmethod
    def from_entry(
        cls, hass: HomeAssistant, entry: ConfigEntry, **kwargs: Any
    ) -> ChargingStateCoordinator:
        """Create a coordinator from a config entry.

        Raises:
            ValueError: If the entry holds invalid settings
        """
        return cls(hass, ReconcilerConfig.from_entry(entry), **kwargs)

    @property
    def is_charging(self) -> bool:
        """Current charging_now value."""
        return self.machine.is_charging

    # ========== Window handling ==========

    def refresh_windows(
        self,
        windows: Iterable[SlotWindow] | None,
        *,
        preferences: ChargePreferences | None = None,
        validation_mode: bool = False,
        now: datetime | None = None,
    ) -> EvaluationResult:
        """Replace the cached windows and re-evaluate.

        Evaluation, apply and rearm always run. Validation mode only skips
        syncing pending preferences and starting the reconciliation loop.

        Args:
            windows: Complete new window set
            preferences: Preferences the remote side currently reports
            validation_mode: True for fetches made to confirm a change
            now: Evaluation instant (default: current UTC time)

        Returns:
            The evaluation result
        """
        now = now or dt_util.utcnow()
        received = tuple(windows or ())
        self.state.windows = tuple(w for w in received if isinstance(w, SlotWindow))
        if len(self.state.windows) != len(received):
            self._logger.warning(
                "WINDOWS_SKIPPED",
                skipped=len(received) - len(self.state.windows),
            )
        self.state.last_refresh = now

        prefs = self.state.preferences
        if preferences is not None:
            prefs.confirmed_limit = preferences.target_soc
            prefs.confirmed_time = preferences.target_time
        if not validation_mode:
            prefs.sync_pending()

        self._logger.info(
            "WINDOWS_REFRESHED",
            count=len(self.state.windows),
            validation_mode=validation_mode,
        )

        result = self.evaluate_now(now)

        if not validation_mode and not self.reconciliation.is_running:
            self.start_reconciliation()

        return result

    def evaluate_now(self, now: datetime | None = None) -> EvaluationResult:
        """Evaluate the cached windows, apply the result and rearm."""
        now = now or dt_util.utcnow()
        result = WindowEvaluator.evaluate(self.state.windows, now)
        self.state.last_result = result
        self.machine.apply(result)
        self.scheduler.rearm(result, now)
        self.publish_status(now)
        return result

    @callback
    def _handle_boundary(self, now: datetime) -> None:
        """Active window ended."""
        self.evaluate_now(now)

    @callback
    def _handle_lead_time(self, now: datetime) -> None:
        """Next window is about to start - fetch fresh data early."""
        self._logger.info("LEAD_TIME_REACHED", at=now.isoformat())
        self._schedule_refresh("lead_time")

    @callback
    def _handle_reconciled(self, result: EvaluationResult, now: datetime) -> None:
        """Reconciliation corrected the state - arm timers for the new state."""
        self.state.last_result = result
        self.scheduler.rearm(result, now)
        self.publish_status(now)

    def report_refresh_failure(self, error: Any = None) -> None:
        """Publish a status without slot data after a failed fetch.

        The cached windows and charging_now are kept.
        """
        self._logger.warning("REFRESH_FAILED", error=str(error) if error else None)
        payload = StatusSummary.build_default(
            self.state.preferences,
            self.machine.is_charging,
            self.cooldown.available_at(),
        )
        self._publish(TOPIC_STATUS, payload, retain=True)

    # ========== Reconciliation ==========

    def start_reconciliation(self, period: timedelta | None = None) -> None:
        """Start (or restart) the reconciliation loop.

        Raises:
            ValueError: If period is not a positive timedelta
        """
        if period is None:
            period = self.config.reconciliation_interval
        self.reconciliation.start(period)

    def stop_reconciliation(self) -> None:
        """Stop the reconciliation loop."""
        self.reconciliation.stop()

    # ========== Preferences ==========

    def set_pending_limit(self, value: Any) -> int:
        """Store a user-selected charge limit, normalized."""
        limit = PreferenceValidator.normalize_limit(value)
        self.state.preferences.pending_limit = limit
        self._logger.info("PENDING_LIMIT_SET", requested=value, limit=limit)
        self.publish_status(retain=False)
        return limit

    def set_pending_time(self, value: Any) -> str:
        """Store a user-selected ready-by time, normalized."""
        ready_time = PreferenceValidator.normalize_time(value, self._logger)
        self.state.preferences.pending_time = ready_time
        self._logger.info("PENDING_TIME_SET", requested=value, ready_time=ready_time)
        self.publish_status(retain=False)
        return ready_time

    def submit_preference_change(
        self,
        expected: ChargePreferences,
        check_fn: CheckFn,
        schedule: Iterable[float | timedelta] | None = None,
    ) -> RetrySession:
        """Confirm a requested preference change with backoff.

        Args:
            expected: Preferences the remote side should report
            check_fn: Sync or async check returning a ConfirmationResult or bool
            schedule: Waits before each attempt (default: configured intervals)

        Raises:
            ValueError: If the schedule is invalid
        """
        if schedule is None:
            schedule = self.config.validation_retry_intervals

        session = self.retries.submit(
            TARGET_PREFERENCES,
            expected,
            schedule,
            check_fn,
            on_complete=self._handle_preference_outcome,
        )
        self.state.preferences.expected = expected
        self.publish_status()
        return session

    @callback
    def _handle_preference_outcome(
        self, target: str, outcome: SessionOutcome, expected: Any
    ) -> None:
        """Confirmation session finished."""
        prefs = self.state.preferences
        if prefs.expected is expected:
            prefs.expected = None

        if outcome is SessionOutcome.CONFIRMED:
            if isinstance(expected, ChargePreferences):
                prefs.confirmed_limit = expected.target_soc
                prefs.confirmed_time = expected.target_time
                prefs.sync_pending()
            self._logger.info("PREFERENCES_CONFIRMED", target=target)
        else:
            self._logger.warning(
                "PREFERENCES_NOT_CONFIRMED",
                target=target,
                message="waiting for normal sync",
            )

        self.publish_status()

    # ========== Manual refresh ==========

    def try_manual_refresh(self, now: datetime | None = None) -> CooldownResult:
        """Run the refresh callback unless the cooldown blocks it."""
        result = self.cooldown.try_acquire(now)
        if result.permitted:
            self._schedule_refresh("manual")
        return result

    def _schedule_refresh(self, reason: str) -> None:
        """Run the refresh callback in the background."""
        if self._refresh_callback is None:
            return
        self.hass.async_create_task(self._async_run_refresh(reason))

    async def _async_run_refresh(self, reason: str) -> None:
        try:
            await self._refresh_callback()
        except Exception as ex:  # noqa: BLE001
            self._logger.error("REFRESH_CALLBACK_FAILED", reason=reason, error=str(ex))

    # ========== Publishing ==========

    def status_payload(self, now: datetime | None = None) -> dict[str, Any]:
        """Build the current status payload."""
        now = now or dt_util.utcnow()
        return StatusSummary.build(
            self.state.windows,
            now,
            self.state.preferences,
            self.machine.is_charging,
            self.cooldown.available_at(now),
        )

    def publish_status(self, now: datetime | None = None, retain: bool = True) -> None:
        """Publish the status payload; retain=False for quick UI updates."""
        self._publish(TOPIC_STATUS, self.status_payload(now), retain=retain)

    def _publish(self, topic: str, payload: Any, retain: bool) -> None:
        try:
            self.publisher.publish(topic, payload, retain=retain)
        except Exception as ex:  # noqa: BLE001
            self._logger.warning("STATUS_PUBLISH_FAILED", topic=topic, error=str(ex))

    # ========== Lifecycle ==========

    async def async_unload(self) -> None:
        """Cancel every timer owned by this coordinator."""
        self.scheduler.cancel()
        self.reconciliation.stop()
        self.retries.async_cancel_all()
        self.cooldown.cancel()
        self._logger.info("COORDINATOR_UNLOADED", account=self.config.account_number)
