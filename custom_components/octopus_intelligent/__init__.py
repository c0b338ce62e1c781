"""The Octopus Intelligent charging state reconciler.

Keeps a charging_now flag correct while an EV sits inside scheduled
charging windows:
- Pure window evaluation and state machine (domain/*.py)
- One-shot transition timers and a periodic safety net (services/*.py)
- Backoff confirmation of preference changes (services/backoff.py)
- Manual refresh cooldown (services/cooldown.py)
- Unified logging (octopus_logging/*.py)

Fetching dispatches and publishing to the outside world are left to the
caller; the coordinator is the only entry point it needs.
"""

from __future__ import annotations

from .const import DOMAIN
from .coordinator import ChargingStateCoordinator
from .core.config import ReconcilerConfig
from .core.state import ConfirmationResult, SessionOutcome, SlotWindow
from .domain.dispatches import parse_dispatches
from .domain.preferences import ChargePreferences

__all__ = [
    "DOMAIN",
    "ChargePreferences",
    "ChargingStateCoordinator",
    "ConfirmationResult",
    "ReconcilerConfig",
    "SessionOutcome",
    "SlotWindow",
    "parse_dispatches",
]
