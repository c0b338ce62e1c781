"""Unified structured logger for the charging state reconciler.

Every event goes to the Home Assistant log. With file logging enabled it is
also written to a rotating text log and to a daily JSON-lines file under
``log/YYYY/MM/DD/events.log``.

Events are named in UPPER_SNAKE_CASE and carry key=value context, e.g.
``logger.warning("STATE_RECONCILED", from_state=False, to_state=True)``.

File I/O happens on a background thread so the event loop never blocks.
"""

from __future__ import annotations

import atexit
import json
import logging
import queue
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

_LOGGER = logging.getLogger(__name__)

_LEVELS = {
    "critical": logging.CRITICAL,
    "error": logging.ERROR,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}


class _FileSink:
    """Background writer for the rotating and daily log files."""

    def __init__(self, log_dir: Path, max_file_size_mb: int, backup_count: int) -> None:
        self.log_dir = log_dir
        self._max_bytes = max_file_size_mb * 1024 * 1024
        self._backup_count = backup_count
        self._queue: queue.Queue = queue.Queue()
        self._thread: threading.Thread | None = None
        self._rotating: RotatingFileHandler | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(
            target=self._run, name="OctopusLogWriter", daemon=True
        )
        self._thread.start()
        atexit.register(self.stop)

    def stop(self) -> None:
        """Flush queued events and stop the thread."""
        if self._thread is None:
            return
        self._queue.put(None)
        self._thread.join(timeout=2.0)
        self._thread = None

    def put(self, record: logging.LogRecord, event: str, data: dict[str, Any]) -> None:
        self._queue.put_nowait((record, event, data))

    def _run(self) -> None:
        self._open_rotating()
        while True:
            item = self._queue.get()
            if item is None:
                break
            try:
                self._write(*item)
            except Exception as ex:  # noqa: BLE001
                _LOGGER.error("Error in log writer thread: %s", ex)

        if self._rotating is not None:
            self._rotating.close()
            self._rotating = None

    def _open_rotating(self) -> None:
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._rotating = RotatingFileHandler(
                self.log_dir / "octopus_intelligent.log",
                maxBytes=self._max_bytes,
                backupCount=self._backup_count,
                encoding="utf-8",
            )
            self._rotating.setFormatter(
                logging.Formatter(
                    "%(asctime)s | %(levelname)s | %(message)s",
                    datefmt="%Y-%m-%d %H:%M:%S",
                )
            )
        except OSError as ex:
            _LOGGER.error("Failed to open rotating log: %s", ex)

    def daily_file(self, when: datetime) -> Path:
        """Path of the JSON-lines file for a given day."""
        return self.log_dir / f"{when:%Y}" / f"{when:%m}" / f"{when:%d}" / "events.log"

    def _write(self, record: logging.LogRecord, event: str, data: dict[str, Any]) -> None:
        if self._rotating is not None:
            self._rotating.emit(record)

        when = datetime.fromtimestamp(record.created)
        path = self.daily_file(when)
        path.parent.mkdir(parents=True, exist_ok=True)
        line = {
            "timestamp": when.isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": event,
            "data": data,
        }
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(line, default=str) + "\n")


class OctopusLogger:
    """Structured event logger.

    Bound copies (see bind()) share the HA logger and the file sink, so
    per-account context costs nothing extra.
    """

    def __init__(
        self,
        name: str = "reconciler",
        log_dir: Path | None = None,
        file_logging_enabled: bool = True,
        max_file_size_mb: int = 5,
        backup_count: int = 3,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Suffix of the HA logger name
            log_dir: Directory for log files (default: <component>/log)
            file_logging_enabled: Whether to also write log files
            max_file_size_mb: Size at which the rotating log rolls over
            backup_count: Rotated files to keep
            context: Key/values added to every event (e.g. the account number)
        """
        self.name = name
        self._ha_logger = logging.getLogger(f"custom_components.octopus_intelligent.{name}")
        self._context = dict(context or {})
        self._sink = _FileSink(
            log_dir or Path(__file__).parent.parent / "log",
            max_file_size_mb,
            backup_count,
        )
        self._file_logging_enabled = file_logging_enabled
        if file_logging_enabled:
            self._sink.start()

    @property
    def log_dir(self) -> Path:
        """Directory holding the log files."""
        return self._sink.log_dir

    @property
    def file_logging_enabled(self) -> bool:
        """Check if file logging is enabled."""
        return self._file_logging_enabled

    def bind(self, **context: Any) -> OctopusLogger:
        """Return a logger sharing this one's sinks with extra context."""
        bound = object.__new__(OctopusLogger)
        bound.__dict__.update(self.__dict__)
        bound._context = {**self._context, **context}
        return bound

    @staticmethod
    def format_message(event: str, data: dict[str, Any]) -> str:
        """Render an event and its context as a single log line."""
        if not data:
            return event
        return " | ".join([event, *(f"{k}={v}" for k, v in data.items())])

    def log(self, level: str, event: str, **data: Any) -> None:
        """Log an event.

        Args:
            level: critical, error, warning, info or debug
            event: Event name (e.g. "WINDOWS_REFRESHED")
            **data: Context for the event
        """
        data = {**self._context, **data}
        levelno = _LEVELS.get(level, logging.DEBUG)
        message = self.format_message(event, data)
        self._ha_logger.log(levelno, message)

        if self._file_logging_enabled:
            record = self._ha_logger.makeRecord(
                self._ha_logger.name, levelno, __file__, 0, message, None, None
            )
            self._sink.put(record, event, data)

    def critical(self, event: str, **data: Any) -> None:
        """Log critical event."""
        self.log("critical", event, **data)

    def error(self, event: str, **data: Any) -> None:
        """Log error event."""
        self.log("error", event, **data)

    def warning(self, event: str, **data: Any) -> None:
        """Log warning event - used for self-corrections and blocked actions."""
        self.log("warning", event, **data)

    def info(self, event: str, **data: Any) -> None:
        """Log info event."""
        self.log("info", event, **data)

    def debug(self, event: str, **data: Any) -> None:
        """Log debug event."""
        self.log("debug", event, **data)

    def shutdown(self) -> None:
        """Flush and stop the file writer."""
        self._sink.stop()


# Singleton instance
_logger_instance: OctopusLogger | None = None


def get_logger(file_logging_enabled: bool = True) -> OctopusLogger:
    """Get or create the process-wide default logger.

    file_logging_enabled only applies when the logger is first created;
    later callers share the existing sink unchanged.
    """
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = OctopusLogger(file_logging_enabled=file_logging_enabled)
    return _logger_instance
