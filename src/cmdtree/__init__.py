"""cmdtree: declarative command trees with direct and interactive frontends.

One command definition, one execution pipeline, two ways to run it: a
scriptable command line and a menu-driven interactive session.
"""

from cmdtree.cli.application import (
    Application,
    ApplicationConfig,
    ApplicationHooks,
    InteractiveApplication,
)
from cmdtree.core.command import CancellationSignal, Command, ExecutionContext
from cmdtree.core.models import (
    CommandExample,
    CommandResult,
    ExecutionMode,
    ExecutionOutcome,
    OptionDef,
    OptionSchema,
    OptionValues,
)
from cmdtree.exceptions import AbortError, CmdtreeError, ConfigValidationError
from cmdtree.version import __version__

__all__: list[str] = [
    "AbortError",
    "Application",
    "ApplicationConfig",
    "ApplicationHooks",
    "CancellationSignal",
    "CmdtreeError",
    "Command",
    "CommandExample",
    "CommandResult",
    "ConfigValidationError",
    "ExecutionContext",
    "ExecutionMode",
    "ExecutionOutcome",
    "InteractiveApplication",
    "OptionDef",
    "OptionSchema",
    "OptionValues",
    "__version__",
]
