"""Domain logic module - pure logic without HA timers.

All modules in this package:
- Take inputs and produce outputs
- Never arm timers or touch hass
- Are easy to unit test
"""

from .dispatches import parse_dispatch, parse_dispatches
from .evaluator import WindowEvaluator
from .preferences import ChargePreferences, PreferenceValidator
from .state_machine import ChargingStateMachine
from .summary import StatusSummary

__all__ = [
    "ChargePreferences",
    "ChargingStateMachine",
    "PreferenceValidator",
    "StatusSummary",
    "WindowEvaluator",
    "parse_dispatch",
    "parse_dispatches",
]
