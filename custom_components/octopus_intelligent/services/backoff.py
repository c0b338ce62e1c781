"""Bounded backoff confirmation of remotely requested changes."""

from __future__ import annotations

import inspect
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Any, Callable, Iterable

from homeassistant.core import callback
from homeassistant.helpers.event import async_call_later

from ..core.state import ConfirmationResult, RetrySession, SessionOutcome
from ..octopus_logging import OctopusLogger, get_logger

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

# Type aliases for session callbacks; both may be sync or async
CheckFn = Callable[[], Any]
CompleteFn = Callable[[str, SessionOutcome, Any], Any]


class BackoffRetryCoordinator:
    """Runs at most one confirmation session per target.

    Each session waits schedule[i], asks check_fn whether the change took
    effect and either finishes or moves on to schedule[i + 1]. Errors raised
    by check_fn count as a failed attempt.
    """

    def __init__(self, hass: HomeAssistant, logger: OctopusLogger | None = None) -> None:
        """Initialize the coordinator."""
        self.hass = hass
        self._logger = logger or get_logger()
        self._sessions: dict[str, RetrySession] = {}

    @staticmethod
    def normalize_schedule(schedule: Iterable[float | timedelta]) -> tuple[timedelta, ...]:
        """Convert a schedule of seconds or timedeltas to timedeltas.

        Raises:
            ValueError: If the schedule is empty or holds a non-positive wait
        """
        if schedule is None or isinstance(schedule, (str, bytes)):
            raise ValueError(f"Retry schedule must be a sequence of waits, got {schedule!r}")

        delays = []
        for item in schedule:
            if isinstance(item, timedelta):
                delay = item
            elif isinstance(item, (int, float)) and not isinstance(item, bool):
                delay = timedelta(seconds=item)
            else:
                raise ValueError(f"Invalid retry wait {item!r}")

            if delay <= timedelta(0):
                raise ValueError(f"Retry waits must be positive, got {item!r}")
            delays.append(delay)

        if not delays:
            raise ValueError("Retry schedule must not be empty")
        return tuple(delays)

    def active_session(self, target: str) -> RetrySession | None:
        """Running session for target, if any."""
        return self._sessions.get(target)

    def submit(
        self,
        target: str,
        expected: Any,
        schedule: Iterable[float | timedelta],
        check_fn: CheckFn,
        on_complete: CompleteFn | None = None,
    ) -> RetrySession:
        """Start confirming expected for target, replacing a running session.

        Args:
            target: What is being confirmed (one session per target)
            expected: Value the remote side should end up with
            schedule: Waits before each attempt
            check_fn: Check returning (or awaiting to) a ConfirmationResult or bool
            on_complete: Called with (target, outcome, expected) when the
                session confirms or runs out of attempts

        Returns:
            The new session

        Raises:
            ValueError: If the schedule is invalid
        """
        delays = self.normalize_schedule(schedule)
        self.cancel(target)

        session = RetrySession(
            target=target,
            expected_outcome=expected,
            schedule=delays,
            check_fn=check_fn,
            on_complete=on_complete,
        )
        self._sessions[target] = session
        self._logger.info(
            "RETRY_SESSION_STARTED",
            target=target,
            attempts=len(delays),
            schedule=[d.total_seconds() for d in delays],
        )
        self._schedule_next(session)
        return session

    @callback
    def cancel(self, target: str) -> None:
        """Cancel the session for target; safe when none is running."""
        session = self._sessions.pop(target, None)
        if session is None:
            return
        self._cancel_timer(session)
        self._logger.info(
            "RETRY_SESSION_ENDED",
            target=target,
            outcome=SessionOutcome.CANCELLED.value,
            attempts=session.attempt_index,
        )

    @callback
    def async_cancel_all(self) -> None:
        """Cancel every running session."""
        for target in list(self._sessions):
            self.cancel(target)

    @staticmethod
    def _cancel_timer(session: RetrySession) -> None:
        if session.cancel_timer is not None:
            session.cancel_timer()
            session.cancel_timer = None

    def _schedule_next(self, session: RetrySession) -> None:
        """Arm the timer for the session's next attempt."""

        @callback
        def _attempt(_now: datetime) -> None:
            self.hass.async_create_task(self._async_attempt(session))

        session.cancel_timer = async_call_later(self.hass, session.next_delay, _attempt)

    @staticmethod
    def _coerce(result: Any) -> ConfirmationResult:
        """Map a check_fn return value to a ConfirmationResult."""
        if isinstance(result, ConfirmationResult):
            return result
        if isinstance(result, bool):
            return ConfirmationResult.CONFIRMED if result else ConfirmationResult.NOT_YET
        try:
            return ConfirmationResult(result)
        except ValueError:
            return ConfirmationResult.TRANSIENT_ERROR

    async def _async_attempt(self, session: RetrySession) -> None:
        """Run one confirmation attempt."""
        if self._sessions.get(session.target) is not session:
            return
        session.cancel_timer = None
        attempt = session.attempt_index + 1

        try:
            result = session.check_fn()
            if inspect.isawaitable(result):
                result = await result
            result = self._coerce(result)
        except Exception as ex:  # noqa: BLE001
            self._logger.warning(
                "RETRY_CHECK_FAILED",
                target=session.target,
                attempt=attempt,
                error=str(ex),
            )
            result = ConfirmationResult.TRANSIENT_ERROR

        # Superseded or cancelled while the check was running
        if self._sessions.get(session.target) is not session:
            self._logger.debug("RETRY_RESULT_DISCARDED", target=session.target, attempt=attempt)
            return

        self._logger.info(
            "RETRY_ATTEMPT",
            target=session.target,
            attempt=attempt,
            of=len(session.schedule),
            result=result.value,
        )

        session.attempt_index += 1
        if result is ConfirmationResult.CONFIRMED:
            await self._async_finish(session, SessionOutcome.CONFIRMED)
            return

        if session.is_exhausted:
            await self._async_finish(session, SessionOutcome.EXHAUSTED)
            return

        self._schedule_next(session)

    async def _async_finish(self, session: RetrySession, outcome: SessionOutcome) -> None:
        """End a session and notify its owner."""
        self._sessions.pop(session.target, None)
        log = self._logger.info if outcome is SessionOutcome.CONFIRMED else self._logger.warning
        log(
            "RETRY_SESSION_ENDED",
            target=session.target,
            outcome=outcome.value,
            attempts=session.attempt_index,
        )

        if session.on_complete is None:
            return
        try:
            completed = session.on_complete(session.target, outcome, session.expected_outcome)
            if inspect.isawaitable(completed):
                await completed
        except Exception as ex:  # noqa: BLE001
            self._logger.error(
                "RETRY_COMPLETE_CALLBACK_FAILED",
                target=session.target,
                error=str(ex),
            )
