"""Application engine: dispatch, the per-command pipeline and the error boundary.

:class:`Application` turns a token list into at most one command run:

1. strip global flags (``--log-level``, ``--detailed-logs``, ``--mode``)
   from anywhere in the tokens and apply them;
2. split the rest into a command path and flag tokens, then resolve the
   path against the registry (default command, root help and unknown
   command fallbacks);
3. parse, coerce and validate the flags, printing the command's help on
   any user error;
4. run the lifecycle: ``on_before_run``, ``before_execute``,
   ``build_config``, ``execute``, ``after_execute`` (always) and
   ``on_after_run``, then re-raise the first fault once.

Faults that reach :meth:`Application.run` go to the ``on_error`` hook or
are logged, and turn into exit status 1.  :func:`cli` is the process
boundary for console scripts.
"""

from __future__ import annotations

import asyncio
import inspect
import sys
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from typing import Any, ClassVar, NoReturn

from rich.markup import escape

from cmdtree.builtins import RESERVED_COMMAND_NAMES, HelpCommand, SettingsCommand, VersionCommand
from cmdtree.cli import exit_codes
from cmdtree.cli.console import console, err_console
from cmdtree.cli.render import render_result
from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.context import AppConfig, AppContext
from cmdtree.core.help import HELP_COMMAND_NAME, HelpOptions
from cmdtree.core.logger import LoggerConfig, LogLevel
from cmdtree.core.models import CommandResult, ExecutionMode, GlobalOptions, OptionValues
from cmdtree.core.parser import (
    GLOBAL_OPTION_SCHEMA,
    extract_command_chain,
    extract_global_options,
    parse_flag_tokens,
    parse_option_values,
    validate_options,
)
from cmdtree.core.protocols import ResultPresenter
from cmdtree.core.registry import CommandRegistry
from cmdtree.exceptions import (
    CmdtreeError,
    ConfigValidationError,
    InvalidOptionError,
    OptionParseError,
    ReservedCommandError,
    UnknownCommandError,
    UnsupportedModeError,
)

_HELP_FLAGS = ("--help", "-h")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class ApplicationConfig:
    """Everything needed to construct an :class:`Application`."""

    name: str
    """Program name used in usage lines, help and version output."""
    version: str
    commands: Sequence[Command] = ()
    display_name: str | None = None
    """Human-readable name for the interactive session header."""
    commit_hash: str | None = None
    """Shown (first 7 characters) by ``version``; ``(dev)`` when unset."""
    default_command: str | None = None
    """Command run when no command path is given."""
    logger: LoggerConfig | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    """Free-form values exposed as ``context.config.values``."""


@dataclass(slots=True)
class ApplicationHooks:
    """Application-wide callbacks; each may be a plain or ``async`` function."""

    on_before_run: Callable[[str], Awaitable[None] | None] | None = None
    on_after_run: Callable[[str, BaseException | None], Awaitable[None] | None] | None = None
    on_error: Callable[[BaseException], Awaitable[None] | None] | None = None
    """Replaces the default error reporting when set."""


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

class Application:
    """Command-line application built from a tree of :class:`Command` objects.

    Parameters
    ----------
    config:
        Name, version, commands and logger settings.
    presenter:
        Receives the raw result of interactive-mode runs.  Defaults to a
        Rich panel renderer.

    Raises
    ------
    ReservedCommandError
        When a command is named ``help``, ``version`` or ``settings``, or
        defines its own ``help`` sub-command.
    DuplicateCommandError
        On colliding names or aliases.
    """

    supported_modes: ClassVar[tuple[str, ...]] = ("cli",)
    default_mode: ClassVar[str] = "cli"

    def __init__(
        self,
        config: ApplicationConfig,
        *,
        presenter: ResultPresenter | None = None,
    ) -> None:
        self.name: str = config.name
        self.display_name: str = config.display_name or config.name
        self.version: str = config.version
        self.commit_hash: str | None = config.commit_hash
        self.default_command_name: str | None = config.default_command

        self.context = AppContext(
            AppConfig(name=config.name, version=config.version, values=dict(config.extra)),
            config.logger,
        )
        self.logger = self.context.logger
        self.registry = CommandRegistry()
        self.hooks = ApplicationHooks()
        self.presenter: ResultPresenter = presenter or render_result
        self.exit_code: int = exit_codes.SUCCESS

        self._forced_mode: str | None = None
        self._user_commands: list[Command] = []
        self._register_commands(config.commands)

        self.logger.silly(f"Application initialized: {self.name} v{self.version}")

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    @property
    def help_options(self) -> HelpOptions:
        return HelpOptions(
            app_name=self.name,
            version=self.version,
            global_options=GLOBAL_OPTION_SCHEMA,
        )

    def _register_commands(self, commands: Sequence[Command]) -> None:
        for command in commands:
            if command.name in RESERVED_COMMAND_NAMES:
                raise ReservedCommandError(
                    f"Command name '{command.name}' is reserved by the framework",
                    hint="help, version and settings are provided automatically.",
                )
            self._reject_help_sub_commands(command)

        self.registry.register(VersionCommand(self.name, self.version, self.commit_hash))

        for command in commands:
            self._inject_help(command)
            self.registry.register(command)
            self._user_commands.append(command)

        self.registry.register(HelpCommand(self.help_options, commands=self.registry.list))

    def _reject_help_sub_commands(self, command: Command) -> None:
        for sub_command in command.sub_commands:
            if sub_command.name == HELP_COMMAND_NAME:
                raise ReservedCommandError(
                    f"Sub-command 'help' under '{command.name}' is automatically "
                    "injected and cannot be defined",
                )
            self._reject_help_sub_commands(sub_command)

    def _inject_help(self, command: Command, path: tuple[str, ...] = ()) -> None:
        command_path = (*path, command.name)
        for sub_command in command.sub_commands:
            self._inject_help(sub_command, command_path)
        command.add_sub_command(
            HelpCommand(self.help_options, parent=command, command_path=command_path)
        )

    def set_hooks(self, hooks: ApplicationHooks) -> None:
        """Merge *hooks* into the current hooks; unset fields are kept."""
        for name in ("on_before_run", "on_after_run", "on_error"):
            value = getattr(hooks, name)
            if value is not None:
                setattr(self.hooks, name, value)

    def interactive_commands(self) -> list[Command]:
        """Top-level commands offered in the interactive menu."""
        return [
            command
            for command in self._user_commands
            if command.supports_interactive() and not command.hidden
        ]

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def main(self, argv: Sequence[str] | None = None) -> int:
        """Synchronous wrapper around :meth:`run` returning the exit code."""
        return asyncio.run(self.run(argv))

    async def run(self, argv: Sequence[str] | None = None) -> int:
        """Run the application with *argv* (``sys.argv[1:]`` when ``None``).

        Returns
        -------
        int
            :data:`~cmdtree.cli.exit_codes.SUCCESS` or
            :data:`~cmdtree.cli.exit_codes.GENERAL_ERROR`.
        """
        tokens = list(sys.argv[1:] if argv is None else argv)
        self.exit_code = exit_codes.SUCCESS
        self._forced_mode = None

        try:
            global_options, remaining = extract_global_options(tokens)
            self._apply_global_options(global_options)
            if global_options.mode is not None:
                self._forced_mode = self._validate_mode(global_options.mode)
            await self._launch(self._forced_mode, remaining)
        except Exception as exc:
            await self._handle_error(exc)

        return self.exit_code

    async def _launch(self, mode: str | None, tokens: list[str]) -> None:
        await self.run_cli(tokens)

    # ------------------------------------------------------------------
    # Global options
    # ------------------------------------------------------------------

    def _apply_global_options(self, options: GlobalOptions) -> None:
        if options.detailed_logs is not None:
            self.logger.set_detailed(options.detailed_logs)

        if options.log_level is not None:
            level = LogLevel.parse(options.log_level)
            if level is None:
                self.logger.warn(
                    f"Unknown log level '{options.log_level}'; "
                    f"keeping {self.logger.get_min_level().name.lower()}",
                )
            else:
                self.logger.set_min_level(level)

    def _validate_mode(self, mode: str) -> str:
        resolved = self.default_mode if mode == "default" else mode
        if resolved not in self.supported_modes:
            raise UnsupportedModeError(
                f"Mode '{mode}' is not supported. "
                f"Supported modes: {', '.join(self.supported_modes)}",
            )
        return resolved

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def run_cli(self, tokens: Sequence[str]) -> None:
        """Resolve *tokens* to a command and run it in direct mode."""
        chain = extract_command_chain(tokens)
        path = chain.commands
        flag_tokens = chain.remaining

        # Flag-like aliases such as "--version" only count on their own.
        if not path and len(flag_tokens) == 1 and self.registry.has(flag_tokens[0]):
            path, flag_tokens = [flag_tokens[0]], []

        resolved = self.registry.resolve(path)
        command = resolved.command

        if command is None:
            if not path and self.default_command_name:
                default_command = self.registry.get(self.default_command_name)
                if default_command is not None:
                    await self.execute_command(default_command, flag_tokens, [default_command.name])
                    return
            self._root_help().show()
            return

        if resolved.remaining_path:
            if resolved.remaining_path[0] != HELP_COMMAND_NAME:
                parent_path = " ".join([self.name, *resolved.resolved_path])
                self._report_unknown(
                    UnknownCommandError(
                        f"Unknown command: {' '.join(resolved.remaining_path)}",
                        hint=f"Run '{parent_path} help' to list its sub-commands.",
                    )
                )
                return
            self._help_for(command).show(resolved.resolved_path)
            return

        await self.execute_command(command, flag_tokens, resolved.resolved_path)

    def _report_unknown(self, error: UnknownCommandError) -> None:
        self.logger.error(str(error))
        if error.hint:
            self.logger.info(f"Hint: {error.hint}")
        self.exit_code = exit_codes.GENERAL_ERROR

    def _root_help(self) -> HelpCommand:
        root = self.registry.get(HELP_COMMAND_NAME)
        if isinstance(root, HelpCommand):
            return root
        return HelpCommand(self.help_options, commands=self.registry.list)

    def _help_for(self, command: Command) -> HelpCommand:
        injected = command.get_sub_command(HELP_COMMAND_NAME)
        if isinstance(injected, HelpCommand) and injected.parent is command:
            return injected
        return HelpCommand(self.help_options, parent=command)

    def _wants_help(self, command: Command, flag_tokens: Sequence[str]) -> bool:
        taken = {f"--{key}" for key in command.options}
        taken.update(f"-{definition.alias}" for definition in command.options.values() if definition.alias)
        return any(token in _HELP_FLAGS and token not in taken for token in flag_tokens)

    def detect_execution_mode(self, command: Command, flag_tokens: Sequence[str]) -> ExecutionMode:
        """Interactive only with no flag tokens, on an interactive-capable app and command."""
        if self._forced_mode == "cli":
            return ExecutionMode.CLI
        if (
            not flag_tokens
            and "interactive" in self.supported_modes
            and command.supports_interactive()
        ):
            return ExecutionMode.INTERACTIVE
        return ExecutionMode.CLI

    # ------------------------------------------------------------------
    # Per-command pipeline
    # ------------------------------------------------------------------

    async def execute_command(
        self,
        command: Command,
        flag_tokens: Sequence[str],
        command_path: Sequence[str],
    ) -> None:
        """Parse *flag_tokens* for *command* and run it.

        User input errors are logged, followed by the command's help, and
        set exit status 1; the command does not run.  Lifecycle faults
        propagate to :meth:`run`.
        """
        if self._wants_help(command, flag_tokens):
            self._help_for(command).show(command_path)
            return

        if not command.has_execute() and command.visible_sub_commands((HELP_COMMAND_NAME,)):
            self._help_for(command).show(command_path)
            return

        mode = self.detect_execution_mode(command, flag_tokens)

        try:
            raw = parse_flag_tokens(command.options, flag_tokens)
            options = parse_option_values(command.options, raw)
        except (OptionParseError, InvalidOptionError) as exc:
            self.logger.error(f"Error: {exc}")
            self._help_for(command).show(command_path)
            self.exit_code = exit_codes.GENERAL_ERROR
            return

        issues = validate_options(command.options, options)
        if issues:
            for issue in issues:
                self.logger.error(f"Error: {issue.message}")
            self._help_for(command).show(command_path)
            self.exit_code = exit_codes.GENERAL_ERROR
            return

        await self.run_lifecycle(command, options, mode, ExecutionContext())

    async def run_lifecycle(
        self,
        command: Command,
        options: OptionValues,
        mode: ExecutionMode,
        exec_ctx: ExecutionContext,
    ) -> CommandResult | None:
        """Run the lifecycle stages of *command* on validated *options*.

        ``execute`` is skipped when ``before_execute`` or ``build_config``
        faulted.  ``after_execute`` always runs and receives the captured
        fault; its own fault is reported only when nothing failed before.
        ``on_after_run`` receives the same fault object that is re-raised.
        """
        if exec_ctx.app is None:
            exec_ctx = replace(exec_ctx, app=self.context)

        if self.hooks.on_before_run is not None:
            await _maybe_await(self.hooks.on_before_run(command.name))

        error: BaseException | None = None
        result: CommandResult | None = None
        try:
            if command.has_before_execute():
                await _maybe_await(command.before_execute(options))

            if command.has_build_config():
                config = await _maybe_await(command.build_config(options))
            else:
                config = options

            result = await _maybe_await(command.execute(config, exec_ctx))
            self._handle_result(command, result, mode, exec_ctx)
        except Exception as exc:
            error = exc
        finally:
            try:
                await _maybe_await(command.after_execute(options, error))
            except Exception as exc:
                if error is None:
                    error = exc

        if self.hooks.on_after_run is not None:
            await _maybe_await(self.hooks.on_after_run(command.name, error))

        if error is not None:
            raise error
        return result

    def _handle_result(
        self,
        command: Command,
        result: CommandResult | None,
        mode: ExecutionMode,
        exec_ctx: ExecutionContext,
    ) -> None:
        if mode is ExecutionMode.INTERACTIVE:
            if not exec_ctx.signal.cancelled:
                self.presenter(command, result)
            return

        if result is not None and not result.success:
            self.exit_code = exit_codes.GENERAL_ERROR

        if result is None:
            return
        if result.success:
            if result.data is not None:
                console.print_json(result.data)
        elif result.error:
            self.logger.error(f"Error: {result.error}")

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    async def _handle_error(self, error: BaseException) -> None:
        self.exit_code = exit_codes.GENERAL_ERROR

        if self.hooks.on_error is not None:
            await _maybe_await(self.hooks.on_error(error))
            return

        if isinstance(error, ConfigValidationError):
            field_info = f" ({error.field})" if error.field else ""
            self.logger.error(f"Configuration error{field_info}: {error}")
        else:
            self.logger.error(f"Error: {error}")

        if isinstance(error, CmdtreeError) and error.hint:
            self.logger.info(f"Hint: {error.hint}")


# ---------------------------------------------------------------------------
# Interactive application
# ---------------------------------------------------------------------------

class InteractiveApplication(Application):
    """Application that also offers a menu-driven interactive session.

    The session starts when there are no tokens at all, with
    ``--interactive`` / ``-i``, or with ``--mode interactive``.  Anything
    else runs in direct mode exactly like :class:`Application`.
    """

    supported_modes: ClassVar[tuple[str, ...]] = ("cli", "interactive")

    INTERACTIVE_FLAGS: ClassVar[tuple[str, ...]] = ("--interactive", "-i")

    def __init__(
        self,
        config: ApplicationConfig,
        *,
        presenter: ResultPresenter | None = None,
    ) -> None:
        super().__init__(config, presenter=presenter)
        self.settings_command = SettingsCommand(self.logger)

    async def _launch(self, mode: str | None, tokens: list[str]) -> None:
        requested = any(token in self.INTERACTIVE_FLAGS for token in tokens)
        remaining = [token for token in tokens if token not in self.INTERACTIVE_FLAGS]

        if mode == "interactive" or (mode is None and (requested or not remaining)):
            await self.run_interactive()
            return
        await self.run_cli(remaining)

    def interactive_commands(self) -> list[Command]:
        return [*super().interactive_commands(), self.settings_command]

    async def run_interactive(self) -> None:
        """Run the interactive session until the user leaves it."""
        from cmdtree.cli.interactive import InteractiveSession

        self.logger.set_interactive_mode(True)
        try:
            await InteractiveSession(self).run()
        finally:
            self.logger.set_interactive_mode(False)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli(app_factory: Callable[[], Application], argv: Sequence[str] | None = None) -> NoReturn:
    """Process boundary for console-script entry points.

    Builds the application, runs it and exits with its status.  Errors in
    command definitions, Ctrl+C and anything unexpected become a short
    message and a well-defined exit code instead of a stack trace.
    """
    try:
        app = app_factory()
        code = app.main(argv)
        sys.exit(code)
    except CmdtreeError as exc:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
        if exc.hint:
            err_console.print(f"[yellow]Hint:[/yellow] {escape(exc.hint)}")
        sys.exit(exit_codes.GENERAL_ERROR)
    except KeyboardInterrupt:
        err_console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        err_console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {escape(str(exc))}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
