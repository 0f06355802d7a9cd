"""Command base class, cancellation signal and execution context.

A :class:`Command` is a node in the command tree: a name, an option
schema, optional nested sub-commands and optional lifecycle overrides.
Lifecycle methods may be plain functions or coroutines; the engine
awaits whatever they return when it is awaitable.

Capability queries (:meth:`Command.has_build_config` and friends) tell
the engine which stages a subclass actually provides, so the pipeline
never has to guess from attribute presence.
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, ClassVar

from cmdtree.core.models import CommandExample, CommandResult, OptionDef, OptionValues
from cmdtree.exceptions import (
    AbortError,
    CommandDefinitionError,
    CommandNotImplementedError,
    DuplicateCommandError,
)

if TYPE_CHECKING:
    from cmdtree.core.context import AppContext


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------

class CancellationSignal:
    """Cooperative cancellation flag.

    Backed by :class:`threading.Event` so a controller running on another
    thread may flip it.  Flipping it never interrupts anything by itself;
    ``execute`` implementations poll :attr:`cancelled` (or call
    :meth:`raise_if_cancelled`) at their own safe points.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise :class:`AbortError` when cancellation was requested."""
        if self._event.is_set():
            raise AbortError()


@dataclass(frozen=True, slots=True)
class ExecutionContext:
    """Per-invocation context handed to :meth:`Command.execute`."""

    signal: CancellationSignal = field(default_factory=CancellationSignal)
    app: AppContext | None = None
    """Application context (config, logger, services), filled in by the engine."""


# ---------------------------------------------------------------------------
# Command
# ---------------------------------------------------------------------------

class Command:
    """Base class for every command.

    Subclasses declare ``name``, ``description`` and ``options`` as class
    attributes and override the lifecycle methods they need.  Nested
    commands are passed to ``__init__`` so that two parents never share a
    child instance.

    Example::

        class GreetCommand(Command):
            name = "greet"
            description = "Greet someone"
            options = {"name": OptionDef(type="string", required=True)}

            async def execute(self, config, exec_ctx=None):
                return CommandResult(success=True, message=f"Hello, {config['name']}!")
    """

    name: str = ""
    description: str = ""
    options: Mapping[str, OptionDef] = {}

    aliases: ClassVar[tuple[str, ...]] = ()
    """Alternative top-level names; ignored for nested commands."""

    display_name: ClassVar[str | None] = None
    long_description: ClassVar[str | None] = None
    examples: ClassVar[tuple[CommandExample, ...]] = ()
    action_label: ClassVar[str | None] = None

    hidden: ClassVar[bool] = False
    """Keep this command out of the interactive menu."""

    def __init__(self, sub_commands: Iterable[Command] | None = None) -> None:
        if not self.name:
            raise CommandDefinitionError(
                f"{type(self).__name__} must define a non-empty 'name'.",
            )
        if not self.description:
            raise CommandDefinitionError(
                f"Command '{self.name}' must define a 'description'.",
            )
        # Schema keys are frozen for the lifetime of the instance.
        self.options = MappingProxyType(dict(type(self).options))
        self.sub_commands: list[Command] = list(sub_commands or ())

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    # ------------------------------------------------------------------
    # Lifecycle (override as needed)
    # ------------------------------------------------------------------

    def before_execute(self, options: OptionValues) -> Awaitable[None] | None:
        """Called first.  A fault here skips ``build_config`` and ``execute``."""
        return None

    def build_config(self, options: OptionValues) -> Any:
        """Turn parsed options into the object passed to :meth:`execute`.

        Raise :class:`~cmdtree.exceptions.ConfigValidationError` to report
        a problem with a specific option.
        """
        return options

    def execute(
        self,
        config: Any,
        exec_ctx: ExecutionContext | None = None,
    ) -> Awaitable[CommandResult | None] | CommandResult | None:
        """Run the command.

        The base implementation exists so command groups never need to
        define it; calling it on a runnable command is an error.
        """
        if exec_ctx is not None and exec_ctx.signal.cancelled:
            return None
        raise CommandNotImplementedError(
            f"Command '{self.name}' with config type '{type(config).__name__}' "
            "must implement execute method.",
        )

    def after_execute(
        self,
        options: OptionValues,
        error: BaseException | None = None,
    ) -> Awaitable[None] | None:
        """Always called last, with the fault from an earlier stage if any."""
        return None

    def on_config_change(
        self,
        key: str,
        value: Any,
        values: Mapping[str, Any],
    ) -> Mapping[str, Any] | None:
        """Return related field updates when *key* changes in a form."""
        return None

    # ------------------------------------------------------------------
    # Capability queries
    # ------------------------------------------------------------------

    def _overrides(self, method_name: str) -> bool:
        return getattr(type(self), method_name) is not getattr(Command, method_name)

    def has_before_execute(self) -> bool:
        return self._overrides("before_execute")

    def has_build_config(self) -> bool:
        return self._overrides("build_config")

    def has_execute(self) -> bool:
        return self._overrides("execute")

    def has_after_execute(self) -> bool:
        return self._overrides("after_execute")

    def supports_cli(self) -> bool:
        return True

    def supports_interactive(self) -> bool:
        return True

    # ------------------------------------------------------------------
    # Tree helpers
    # ------------------------------------------------------------------

    def validate(self) -> None:
        """Recursively reject duplicate sibling names."""
        seen: set[str] = set()
        for sub_command in self.sub_commands:
            if sub_command.name in seen:
                raise DuplicateCommandError(
                    f"Duplicate subcommand '{sub_command.name}' under '{self.name}'",
                )
            seen.add(sub_command.name)
            sub_command.validate()

    def get_sub_command(self, name: str) -> Command | None:
        return next((cmd for cmd in self.sub_commands if cmd.name == name), None)

    def has_sub_commands(self) -> bool:
        return len(self.sub_commands) > 0

    def add_sub_command(self, command: Command) -> None:
        self.sub_commands.append(command)

    def visible_sub_commands(self, exclude: Sequence[str] = ()) -> list[Command]:
        """Sub-commands minus the names in *exclude* (e.g. injected help)."""
        return [cmd for cmd in self.sub_commands if cmd.name not in exclude]

    # ------------------------------------------------------------------
    # Interactive form support
    # ------------------------------------------------------------------

    def apply_config_change(
        self,
        key: str,
        value: Any,
        values: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Return *values* with *key* set and :meth:`on_config_change` merged."""
        next_values = {**values, key: value}
        updates = self.on_config_change(key, value, next_values)
        if updates:
            next_values.update(updates)
        return next_values
