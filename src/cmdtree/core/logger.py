"""Per-application logger built on :mod:`logging` and Rich.

Each :class:`Logger` owns its own stdlib logger (``propagate`` off), so
two applications in one process never share level, format or
subscribers.  Records go two ways:

* to stderr through :class:`rich.logging.RichHandler`, except in
  interactive mode where stderr belongs to the session display;
* to every subscriber registered with :meth:`Logger.on_log_event`, as a
  :class:`LogEvent`.
"""

from __future__ import annotations

import enum
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from rich.console import Console
from rich.logging import RichHandler


class LogLevel(enum.IntEnum):
    """Log levels from least to most severe."""

    SILLY = 0
    TRACE = 1
    DEBUG = 2
    INFO = 3
    WARN = 4
    ERROR = 5
    FATAL = 6

    @property
    def stdlib_level(self) -> int:
        """Numeric level understood by :mod:`logging`."""
        return _STDLIB_LEVELS[self]

    @classmethod
    def parse(cls, name: str) -> LogLevel | None:
        """Look up a level by name, case-insensitively (``"Debug"``, ``"warning"``)."""
        key = name.strip().upper()
        if key == "WARNING":
            key = "WARN"
        return cls.__members__.get(key)


_STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.SILLY: 1,
    LogLevel.TRACE: 5,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}


@dataclass(frozen=True, slots=True)
class LogEvent:
    """A log record as seen by subscribers."""

    message: str
    level: LogLevel
    timestamp: datetime


@dataclass(slots=True)
class LoggerConfig:
    min_level: LogLevel = LogLevel.INFO
    detailed: bool = False
    """Include timestamp and level in output."""
    interactive: bool = False
    """Publish events only; write nothing to stderr."""


LogListener = Callable[[LogEvent], None]


class _EventHandler(logging.Handler):
    """Forwards stdlib records to :class:`Logger` subscribers."""

    def __init__(self, owner: Logger) -> None:
        super().__init__(level=logging.NOTSET)
        self._owner = owner

    def emit(self, record: logging.LogRecord) -> None:
        self._owner._publish(record)


def _as_text(arg: object) -> str:
    if isinstance(arg, str):
        return arg
    try:
        return json.dumps(arg, default=str)
    except (TypeError, ValueError):
        return str(arg)


class Logger:
    """Application logger with runtime-adjustable level and format."""

    def __init__(self, config: LoggerConfig | None = None, *, name: str = "app") -> None:
        config = config or LoggerConfig()
        self._min_level: LogLevel = config.min_level
        self._detailed: bool = config.detailed
        self._interactive: bool = config.interactive
        self._listeners: list[LogListener] = []

        # Not registered with the logging manager; released with its owner.
        self._logger = logging.Logger(f"{__name__}.{name}")
        self._logger.propagate = False
        self._logger.setLevel(self._min_level.stdlib_level)
        self._logger.addHandler(_EventHandler(self))

        self._stderr_handler: RichHandler = self._make_stderr_handler()
        if not self._interactive:
            self._logger.addHandler(self._stderr_handler)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def _make_stderr_handler(self) -> RichHandler:
        return RichHandler(
            console=Console(stderr=True),
            show_time=self._detailed,
            show_level=self._detailed,
            show_path=self._detailed,
            markup=False,
            rich_tracebacks=False,
        )

    def set_min_level(self, level: LogLevel) -> None:
        self._min_level = level
        self._logger.setLevel(level.stdlib_level)

    def get_min_level(self) -> LogLevel:
        return self._min_level

    def set_detailed(self, enabled: bool) -> None:
        if enabled == self._detailed:
            return
        self._detailed = enabled
        self._logger.removeHandler(self._stderr_handler)
        self._stderr_handler = self._make_stderr_handler()
        if not self._interactive:
            self._logger.addHandler(self._stderr_handler)

    def is_detailed(self) -> bool:
        return self._detailed

    def set_interactive_mode(self, enabled: bool) -> None:
        """Stop (or resume) writing to stderr; subscribers keep receiving events."""
        self._interactive = enabled
        if enabled:
            self._logger.removeHandler(self._stderr_handler)
        elif self._stderr_handler not in self._logger.handlers:
            self._logger.addHandler(self._stderr_handler)

    # ------------------------------------------------------------------
    # Subscribers
    # ------------------------------------------------------------------

    def on_log_event(self, listener: LogListener) -> Callable[[], None]:
        """Subscribe *listener*; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, record: logging.LogRecord) -> None:
        level: LogLevel = getattr(record, "cmdtree_level", LogLevel.INFO)
        timestamp = datetime.fromtimestamp(record.created)
        message = record.getMessage()
        if self._detailed:
            message = f"{timestamp:%Y-%m-%d %H:%M:%S} {level.name:<5} {message}"
        event = LogEvent(message=message, level=level, timestamp=timestamp)
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------
    # Logging methods
    # ------------------------------------------------------------------

    def log(self, level: LogLevel, *args: object) -> None:
        message = " ".join(_as_text(arg) for arg in args)
        self._logger.log(level.stdlib_level, message, extra={"cmdtree_level": level})

    def silly(self, *args: object) -> None:
        self.log(LogLevel.SILLY, *args)

    def trace(self, *args: object) -> None:
        self.log(LogLevel.TRACE, *args)

    def debug(self, *args: object) -> None:
        self.log(LogLevel.DEBUG, *args)

    def info(self, *args: object) -> None:
        self.log(LogLevel.INFO, *args)

    def warn(self, *args: object) -> None:
        self.log(LogLevel.WARN, *args)

    def error(self, *args: object) -> None:
        self.log(LogLevel.ERROR, *args)

    def fatal(self, *args: object) -> None:
        self.log(LogLevel.FATAL, *args)
