"""Custom exception hierarchy for cmdtree.

Every error the framework raises on purpose inherits from
:class:`CmdtreeError` so that the process boundary can render a clean
message without leaking stack traces.  Faults raised by user commands
are *not* wrapped; they propagate unchanged to the application error
handler.

Hierarchy
---------
CmdtreeError
├── CommandDefinitionError
│   ├── DuplicateCommandError
│   └── ReservedCommandError
├── CommandNotImplementedError
├── OptionParseError
├── InvalidOptionError
├── OptionValidationError
├── ConfigValidationError
├── UnknownCommandError
├── UnsupportedModeError
├── AbortError
└── EnvironmentError
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from cmdtree.core.models import ParseIssue


class CmdtreeError(Exception):
    """Base exception for all cmdtree errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Command definition / registration -------------------------------------

class CommandDefinitionError(CmdtreeError):
    """Raised when a command or option declaration is malformed."""


class DuplicateCommandError(CommandDefinitionError):
    """Raised when two sibling commands (or top-level aliases) collide."""


class ReservedCommandError(CommandDefinitionError):
    """Raised when a user command takes a name owned by the framework."""


class CommandNotImplementedError(CmdtreeError):
    """Raised when a runnable command never overrode ``execute``."""


# --- Option parsing / validation -------------------------------------------

class OptionParseError(CmdtreeError):
    """Raised by the low-level flag parser (unknown flag, missing value)."""


class InvalidOptionError(CmdtreeError):
    """Raised when a value cannot be coerced or violates its enum."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.field: str | None = field


class OptionValidationError(CmdtreeError):
    """Raised on the interactive path when structural validation fails."""

    def __init__(self, issues: Sequence[ParseIssue]) -> None:
        self.issues: tuple[ParseIssue, ...] = tuple(issues)
        super().__init__("; ".join(issue.message for issue in self.issues))


class ConfigValidationError(CmdtreeError):
    """Raised by ``build_config`` when parsed options do not form a valid config.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    field:
        Name of the offending option, if any.
    details:
        Free-form payload for callers that want structured data.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.field: str | None = field
        self.details: dict[str, Any] = dict(details or {})


# --- Dispatch ----------------------------------------------------------------

class UnknownCommandError(CmdtreeError):
    """Reported when a command path cannot be resolved."""


class UnsupportedModeError(CmdtreeError):
    """Raised when ``--mode`` selects a frontend the application lacks."""


class AbortError(CmdtreeError):
    """Raised by a command that noticed its cancellation signal."""

    def __init__(self, message: str = "Command was cancelled") -> None:
        super().__init__(message)


# --- Environment / tooling -------------------------------------------------

class EnvironmentError(CmdtreeError):
    """Raised when an optional runtime dependency is not available."""
