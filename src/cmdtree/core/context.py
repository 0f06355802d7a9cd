"""Application context: configuration, logger, log history and services.

One :class:`AppContext` is built per application and threaded through
the engine explicitly.  There is no process-wide "current" context, so
independent applications in the same process stay isolated.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from cmdtree.core.logger import LogEvent, Logger, LoggerConfig
from cmdtree.exceptions import CmdtreeError


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Static application settings visible to commands."""

    name: str
    version: str
    values: Mapping[str, Any] = field(default_factory=dict)
    """Free-form application values."""

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)


class AppContext:
    """Container for application-wide services and state."""

    def __init__(self, config: AppConfig, logger_config: LoggerConfig | None = None) -> None:
        self.config: AppConfig = config
        self.logger: Logger = Logger(logger_config, name=config.name)
        self.log_history: list[LogEvent] = []
        self.logger.on_log_event(self.log_history.append)
        self._services: dict[str, Any] = {}

    def set_service(self, name: str, service: Any) -> None:
        self._services[name] = service

    def get_service(self, name: str) -> Any | None:
        return self._services.get(name)

    def require_service(self, name: str) -> Any:
        """Like :meth:`get_service` but raises when *name* is missing."""
        if name not in self._services:
            raise CmdtreeError(f"Service '{name}' not found in AppContext")
        return self._services[name]

    def has_service(self, name: str) -> bool:
        return name in self._services
