"""Timer-driven services for the Octopus Intelligent reconciler."""

from .backoff import BackoffRetryCoordinator
from .cooldown import CooldownGate, CooldownResult
from .reconciliation import ReconciliationLoop
from .transition_scheduler import TransitionScheduler

__all__ = [
    "BackoffRetryCoordinator",
    "CooldownGate",
    "CooldownResult",
    "ReconciliationLoop",
    "TransitionScheduler",
]
