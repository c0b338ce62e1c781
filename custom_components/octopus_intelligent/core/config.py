"""Configuration for the charging state reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

import voluptuous as vol
import homeassistant.helpers.config_validation as cv

from ..const import (
    CONF_ACCOUNT_NUMBER,
    CONF_FILE_LOGGING,
    CONF_LEAD_TIME,
    CONF_MANUAL_REFRESH_COOLDOWN,
    CONF_RECONCILIATION_INTERVAL,
    CONF_VALIDATION_RETRY_INTERVALS,
    DEFAULT_FILE_LOGGING,
    DEFAULT_LEAD_TIME_SECONDS,
    DEFAULT_MANUAL_REFRESH_COOLDOWN_SECONDS,
    DEFAULT_RECONCILIATION_INTERVAL_SECONDS,
    DEFAULT_VALIDATION_RETRY_INTERVALS,
)

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


CONFIG_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_ACCOUNT_NUMBER): vol.All(cv.string, vol.Strip, vol.Length(min=1)),
        vol.Optional(
            CONF_RECONCILIATION_INTERVAL, default=DEFAULT_RECONCILIATION_INTERVAL_SECONDS
        ): vol.All(vol.Coerce(float), vol.Range(min=1)),
        vol.Optional(
            CONF_MANUAL_REFRESH_COOLDOWN, default=DEFAULT_MANUAL_REFRESH_COOLDOWN_SECONDS
        ): vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False)),
        vol.Optional(
            CONF_VALIDATION_RETRY_INTERVALS, default=DEFAULT_VALIDATION_RETRY_INTERVALS
        ): vol.All(
            cv.ensure_list,
            vol.Length(min=1),
            [vol.All(vol.Coerce(float), vol.Range(min=0, min_included=False))],
        ),
        vol.Optional(CONF_LEAD_TIME, default=DEFAULT_LEAD_TIME_SECONDS): vol.All(
            vol.Coerce(float), vol.Range(min=0)
        ),
        vol.Optional(CONF_FILE_LOGGING, default=DEFAULT_FILE_LOGGING): cv.boolean,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass(frozen=True)
class ReconcilerConfig:
    """Validated settings for one monitored account."""

    account_number: str
    reconciliation_interval: timedelta = timedelta(
        seconds=DEFAULT_RECONCILIATION_INTERVAL_SECONDS
    )
    manual_refresh_cooldown: timedelta = timedelta(
        seconds=DEFAULT_MANUAL_REFRESH_COOLDOWN_SECONDS
    )
    validation_retry_intervals: tuple[timedelta, ...] = field(
        default_factory=lambda: tuple(
            timedelta(seconds=s) for s in DEFAULT_VALIDATION_RETRY_INTERVALS
        )
    )
    lead_time: timedelta | None = timedelta(seconds=DEFAULT_LEAD_TIME_SECONDS)
    file_logging: bool = DEFAULT_FILE_LOGGING

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ReconcilerConfig:
        """Validate a raw mapping and build a config.

        Raises:
            ValueError: If the mapping does not satisfy CONFIG_SCHEMA
        """
        try:
            data = CONFIG_SCHEMA(dict(raw))
        except vol.Invalid as err:
            raise ValueError(f"Invalid configuration: {err}") from err

        lead_seconds = data[CONF_LEAD_TIME]
        return cls(
            account_number=data[CONF_ACCOUNT_NUMBER],
            reconciliation_interval=timedelta(seconds=data[CONF_RECONCILIATION_INTERVAL]),
            manual_refresh_cooldown=timedelta(seconds=data[CONF_MANUAL_REFRESH_COOLDOWN]),
            validation_retry_intervals=tuple(
                timedelta(seconds=s) for s in data[CONF_VALIDATION_RETRY_INTERVALS]
            ),
            lead_time=timedelta(seconds=lead_seconds) if lead_seconds > 0 else None,
            file_logging=data[CONF_FILE_LOGGING],
        )

    @classmethod
    def from_entry(cls, entry: ConfigEntry) -> ReconcilerConfig:
        """Build a config from a config entry; options override data."""
        return cls.from_dict({**entry.data, **entry.options})
