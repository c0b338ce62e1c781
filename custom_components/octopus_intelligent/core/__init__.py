"""Core module for the Octopus Intelligent reconciler.

Contains the fundamental building blocks:
- State: value types and the per-account source of truth
- Publisher: outbound state with retained payloads
- Config: validated settings from a config entry
"""

from .config import ReconcilerConfig
from .publisher import DispatcherStatePublisher, StatePublisher
from .state import (
    ConfirmationResult,
    EvaluationResult,
    ReconcilerState,
    SessionOutcome,
    SlotWindow,
)

__all__ = [
    "ConfirmationResult",
    "DispatcherStatePublisher",
    "EvaluationResult",
    "ReconcilerConfig",
    "ReconcilerState",
    "SessionOutcome",
    "SlotWindow",
    "StatePublisher",
]
