"""State and value types for the charging state reconciler.

All runtime state for one monitored account lives on a ReconcilerState owned
by the coordinator. Timer handles live on the service that arms them; this
module only describes the values they operate on.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

from ..const import DEFAULT_TARGET_SOC, DEFAULT_TARGET_TIME


@dataclass(frozen=True)
class SlotWindow:
    """A half-open charging interval [start, end) with its payload."""

    start: datetime
    end: datetime
    energy_delta: float = 0.0
    source: str = "unknown"
    # Upstream timestamp strings, unchanged
    start_raw: str | None = field(default=None, compare=False)
    end_raw: str | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Reject empty or inverted intervals."""
        if not self.start < self.end:
            raise ValueError(f"Slot start {self.start} must be before end {self.end}")

    def contains(self, now: datetime) -> bool:
        """Check if now falls inside the window (start-inclusive, end-exclusive)."""
        return self.start <= now < self.end

    @property
    def duration(self) -> timedelta:
        """Length of the window."""
        return self.end - self.start

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
            "energy_delta": self.energy_delta,
            "source": self.source,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating a window set at one instant."""

    active: SlotWindow | None = None
    next: SlotWindow | None = None

    @property
    def is_active(self) -> bool:
        """Whether charging should be on."""
        return self.active is not None


class TransitionKind(str, Enum):
    """Kinds of one-shot transition timers."""

    END_OF_ACTIVE_WINDOW = "end_of_active_window"
    LEAD_TIME = "lead_time"


@dataclass
class ScheduledTransition:
    """The single armed one-shot timer of the transition scheduler."""

    armed_at: datetime
    fire_at: datetime
    kind: TransitionKind
    cancel: Callable[[], None] | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        return {
            "armed_at": self.armed_at.isoformat(),
            "fire_at": self.fire_at.isoformat(),
            "kind": self.kind.value,
        }


class ConfirmationResult(str, Enum):
    """Result of a single confirmation check."""

    CONFIRMED = "confirmed"
    NOT_YET = "not_yet"
    TRANSIENT_ERROR = "transient_error"


class SessionOutcome(str, Enum):
    """How a retry session ended."""

    CONFIRMED = "confirmed"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"


@dataclass
class RetrySession:
    """One bounded confirmation attempt sequence for a target."""

    target: str
    expected_outcome: Any
    schedule: tuple[timedelta, ...]
    attempt_index: int = 0
    cancel_timer: Callable[[], None] | None = None
    check_fn: Callable[[], Any] | None = field(default=None, repr=False)
    on_complete: Callable[..., Any] | None = field(default=None, repr=False)

    @property
    def is_exhausted(self) -> bool:
        """Check if every scheduled attempt has been used."""
        return self.attempt_index >= len(self.schedule)

    @property
    def next_delay(self) -> timedelta:
        """Wait before the next attempt."""
        return self.schedule[self.attempt_index]


@dataclass
class CooldownWindow:
    """Cooldown bookkeeping; last_triggered_at None means never triggered."""

    duration: timedelta
    last_triggered_at: datetime | None = None

    def elapsed(self, now: datetime) -> timedelta | None:
        """Time since the last permitted action, or None if never."""
        if self.last_triggered_at is None:
            return None
        return now - self.last_triggered_at

    def is_open(self, now: datetime) -> bool:
        """Check if an action is permitted at now."""
        elapsed = self.elapsed(now)
        return elapsed is None or elapsed >= self.duration


@dataclass
class PreferenceState:
    """Confirmed (remote) vs pending (user selected) charge preferences."""

    confirmed_limit: int = DEFAULT_TARGET_SOC
    confirmed_time: str = DEFAULT_TARGET_TIME
    pending_limit: int = DEFAULT_TARGET_SOC
    pending_time: str = DEFAULT_TARGET_TIME
    expected: Any = None

    def sync_pending(self) -> None:
        """Make the pending selection match what the remote confirmed."""
        self.pending_limit = self.confirmed_limit
        self.pending_time = self.confirmed_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "confirmed_limit": self.confirmed_limit,
            "confirmed_time": self.confirmed_time,
            "pending_limit": self.pending_limit,
            "pending_time": self.pending_time,
        }


@dataclass
class ReconcilerState:
    """Single source of truth for one monitored account."""

    account_number: str = ""
    windows: tuple[SlotWindow, ...] = ()
    last_refresh: datetime | None = None
    last_result: EvaluationResult = field(default_factory=EvaluationResult)
    preferences: PreferenceState = field(default_factory=PreferenceState)

    @property
    def has_windows(self) -> bool:
        """Check if any windows are cached."""
        return bool(self.windows)

    def to_dict(self) -> dict[str, Any]:
        """Export state as dictionary."""
        return {
            "account_number": self.account_number,
            "windows": [w.to_dict() for w in self.windows],
            "last_refresh": self.last_refresh.isoformat() if self.last_refresh else None,
            "preferences": self.preferences.to_dict(),
        }
