"""Pure charge preference normalization."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

from ..const import (
    DEFAULT_TARGET_TIME,
    MAX_TARGET_SOC,
    MIN_TARGET_SOC,
    TARGET_SOC_STEP,
    TIME_OPTIONS,
)
from ..octopus_logging import OctopusLogger, get_logger


@dataclass(frozen=True)
class ChargePreferences:
    """Target state of charge and ready-by time."""

    target_soc: int
    target_time: str

    def matches(self, limit: Any, ready_time: Any) -> bool:
        """Check if remote values equal these preferences."""
        return limit == self.target_soc and ready_time == self.target_time


class PreferenceValidator:
    """Clamp and snap user-supplied preferences to what the tariff accepts."""

    @staticmethod
    def normalize_limit(value: Any) -> int:
        """Clamp to 50-100% and round half-up to the nearest 5%.

        Args:
            value: Raw input (number or numeric string)

        Returns:
            Normalized limit
        """
        try:
            limit = int(float(value))
        except (TypeError, ValueError):
            return MIN_TARGET_SOC

        limit = max(MIN_TARGET_SOC, min(MAX_TARGET_SOC, limit))
        return int(math.floor(limit / TARGET_SOC_STEP + 0.5) * TARGET_SOC_STEP)

    @staticmethod
    def normalize_time(value: Any, logger: OctopusLogger | None = None) -> str:
        """Validate the ready-by time against the allowed options.

        Args:
            value: Requested "HH:MM" time
            logger: Logger for the fallback warning

        Returns:
            value if allowed, otherwise 08:00
        """
        if value in TIME_OPTIONS:
            return value

        (logger or get_logger()).warning(
            "INVALID_READY_TIME",
            requested=value,
            fallback=DEFAULT_TARGET_TIME,
        )
        return DEFAULT_TARGET_TIME

    @staticmethod
    def normalize(
        limit: Any, ready_time: Any, logger: OctopusLogger | None = None
    ) -> ChargePreferences:
        """Normalize both values into a ChargePreferences."""
        return ChargePreferences(
            target_soc=PreferenceValidator.normalize_limit(limit),
            target_time=PreferenceValidator.normalize_time(ready_time, logger),
        )
