"""Core layer: option model, parsing, command tree, logging and execution.

Rules
-----
* No imports from ``cli``.
* Console output only through the context logger.
* Everything except :mod:`cmdtree.core.logger` is free of terminal I/O.
"""

from cmdtree.core.command import CancellationSignal, Command, ExecutionContext
from cmdtree.core.context import AppConfig, AppContext
from cmdtree.core.executor import CommandExecutor
from cmdtree.core.logger import LogEvent, Logger, LoggerConfig, LogLevel
from cmdtree.core.protocols import LifecycleRunner, ResultPresenter
from cmdtree.core.registry import CommandRegistry, ResolveResult

__all__: list[str] = [
    "AppConfig",
    "AppContext",
    "CancellationSignal",
    "Command",
    "CommandExecutor",
    "CommandRegistry",
    "ExecutionContext",
    "LifecycleRunner",
    "LogEvent",
    "LogLevel",
    "Logger",
    "LoggerConfig",
    "ResolveResult",
    "ResultPresenter",
]
