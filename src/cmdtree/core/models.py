"""Domain models for cmdtree.

Option declarations, results and outcomes are **frozen** dataclasses:
immutable value objects with no behaviour beyond data access and a
little normalisation on construction.  They carry zero I/O and no
dependencies on external packages.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Literal

from cmdtree.exceptions import CommandDefinitionError

OptionType = Literal["string", "number", "boolean", "array"]

OPTION_TYPES: tuple[str, ...] = ("string", "number", "boolean", "array")
"""Every type tag an :class:`OptionDef` may carry."""

IssueType = Literal["missing_required", "invalid_option", "validation", "unknown_command"]


# ---------------------------------------------------------------------------
# Option schema
# ---------------------------------------------------------------------------

def _enum_member(item: Any) -> str:
    if isinstance(item, bool):
        return "true" if item else "false"
    return str(item)


@dataclass(frozen=True, slots=True)
class OptionDef:
    """Declarative description of a single command option."""

    type: OptionType
    """Type tag driving parsing and coercion."""

    description: str = ""
    """One-line description shown in help and interactive forms."""

    alias: str | None = None
    """Single-character short form (``"v"`` → ``-v``)."""

    default: Any = None
    """Value used when neither a flag nor the environment supplies one."""

    required: bool = False

    env: str | None = None
    """Environment variable consulted before falling back to ``default``."""

    enum: tuple[str, ...] | None = None
    """Allowed values, compared case-sensitively against ``str(value)``."""

    min: float | None = None
    max: float | None = None

    # Presentation hints, read by help and the interactive field model.
    label: str | None = None
    order: int | None = None
    group: str | None = None
    placeholder: str | None = None
    hidden: bool = False

    def __post_init__(self) -> None:
        if self.type not in OPTION_TYPES:
            raise CommandDefinitionError(
                f"Unknown option type {self.type!r}.",
                hint=f"Use one of: {', '.join(OPTION_TYPES)}",
            )
        if self.alias is not None and len(self.alias) != 1:
            raise CommandDefinitionError(
                f"Option alias {self.alias!r} must be a single character.",
            )
        if self.enum is not None:
            object.__setattr__(self, "enum", tuple(_enum_member(item) for item in self.enum))


OptionSchema = Mapping[str, OptionDef]
"""Option key → definition.  Insertion order is presentation order."""

OptionValues = dict[str, Any]
"""Option key → coerced runtime value (``None`` when absent)."""


# ---------------------------------------------------------------------------
# Parse / validation issues
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParseIssue:
    """A single user-input problem, reported rather than raised."""

    type: IssueType
    message: str
    field: str | None = None


# ---------------------------------------------------------------------------
# Execution
# ---------------------------------------------------------------------------

class ExecutionMode(str, enum.Enum):
    """How a command invocation is being driven."""

    CLI = "cli"
    """Single-shot, non-interactive command-line invocation."""

    INTERACTIVE = "interactive"
    """Session-based, menu-driven invocation."""


@dataclass(frozen=True, slots=True)
class CommandResult:
    """What ``execute`` hands back for display and exit-code decisions."""

    success: bool
    data: Any = None
    error: str | None = None
    message: str | None = None


@dataclass(frozen=True, slots=True)
class ExecutionOutcome:
    """Result of running a command through the interactive execution path.

    ``cancelled`` is a distinct, non-error outcome: a cancelled run never
    carries an ``error``.
    """

    success: bool
    result: CommandResult | None = None
    error: BaseException | None = None
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class CommandExample:
    """An example invocation shown in command help."""

    command: str
    description: str


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Framework-level flags accepted anywhere in the token stream."""

    log_level: str | None = None
    detailed_logs: bool | None = None
    mode: str | None = None
