"""Menu-driven interactive session.

This module is responsible for:

* Presenting the runnable commands as a ``questionary`` menu, with a
  sub-menu for every command group.
* Prompting for each visible option of the chosen command.
* Running it through :class:`~cmdtree.core.executor.CommandExecutor` and
  rendering failures and cancellations.

A command fault never ends the session.  Ctrl+C during a run cancels the
command; Ctrl+C or Esc at the top-level menu leaves the session.
"""

from __future__ import annotations

import asyncio
import contextlib
import signal
from collections.abc import Iterator
from typing import TYPE_CHECKING, Any

from rich.text import Text

from cmdtree.cli.console import console
from cmdtree.cli.render import render_cancelled, render_error
from cmdtree.core.command import Command
from cmdtree.core.executor import CommandExecutor
from cmdtree.core.fields import FieldConfig, schema_to_fields
from cmdtree.core.help import HELP_COMMAND_NAME
from cmdtree.core.models import ExecutionOutcome, OptionValues
from cmdtree.core.parser import build_command_line, parse_option_values
from cmdtree.exceptions import EnvironmentError, InvalidOptionError

if TYPE_CHECKING:
    from cmdtree.cli.application import Application

_BACK = "__back__"
_LOGS = "__logs__"
_EXIT = "__exit__"

_LOG_TAIL = 50


def _import_questionary() -> Any:
    """Import questionary lazily for interactive prompts."""
    try:
        import questionary
    except ModuleNotFoundError as exc:
        raise EnvironmentError(
            "questionary is not installed. Install with: pip install questionary",
        ) from exc
    return questionary


@contextlib.contextmanager
def _route_interrupt(
    loop: asyncio.AbstractEventLoop,
    interrupted: asyncio.Future[None],
) -> Iterator[None]:
    """Resolve *interrupted* on SIGINT for the duration of the block.

    The previous SIGINT handler is restored afterwards, so every run in a
    session gets the same treatment.  Where the loop cannot install signal
    handlers (Windows, non-main threads) nothing is routed.
    """

    def on_interrupt() -> None:
        if not interrupted.done():
            interrupted.set_result(None)

    previous = signal.getsignal(signal.SIGINT)
    try:
        loop.add_signal_handler(signal.SIGINT, on_interrupt)
    except (NotImplementedError, RuntimeError, ValueError):
        installed = False
    else:
        installed = True

    try:
        yield
    finally:
        if installed:
            loop.remove_signal_handler(signal.SIGINT)
            if previous is not None:
                signal.signal(signal.SIGINT, previous)


# ---------------------------------------------------------------------------
# Presentation helpers (pure transforms)
# ---------------------------------------------------------------------------

def _is_group(command: Command) -> bool:
    return not command.has_execute() and bool(command.visible_sub_commands((HELP_COMMAND_NAME,)))


def _menu_label(command: Command) -> str:
    title = command.display_name or command.name
    suffix = " ›" if _is_group(command) else ""
    return f"{title}{suffix}  {command.description}"


def _menu_entries(commands: list[Command]) -> list[Command]:
    return [cmd for cmd in commands if cmd.supports_interactive() and not cmd.hidden]


def _is_number_or_empty(text: str) -> bool | str:
    """questionary validator: ``True`` or an error message."""
    if not text.strip():
        return True
    try:
        float(text)
    except ValueError:
        return "Enter a number"
    return True


def _prompt_default(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(item) for item in value)
    return str(value)


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------

class InteractiveSession:
    """One interactive session bound to an application."""

    def __init__(self, app: Application) -> None:
        self._app = app
        self._executor = CommandExecutor(app)
        self._last_values: dict[tuple[str, ...], OptionValues] = {}
        self._background: set[asyncio.Future[ExecutionOutcome]] = set()

    @property
    def executor(self) -> CommandExecutor:
        return self._executor

    async def run(self) -> None:
        questionary = _import_questionary()
        self._print_header()

        stack: list[Command] = []
        while True:
            choice = await self._choose(questionary, stack)

            if choice is None:
                if not stack:
                    return
                stack.pop()
                continue
            if choice == _EXIT:
                return
            if choice == _BACK:
                stack.pop()
                continue
            if choice == _LOGS:
                self._show_logs()
                continue

            command: Command = choice
            if _is_group(command):
                stack.append(command)
                continue
            await self.run_command([*stack, command])

    # ------------------------------------------------------------------
    # Menus
    # ------------------------------------------------------------------

    def _print_header(self) -> None:
        header = Text(self._app.display_name, style="bold cyan")
        header.append(f" v{self._app.version}", style="dim")
        console.print(header)

    async def _choose(self, questionary: Any, stack: list[Command]) -> Any:
        if stack:
            commands = _menu_entries(stack[-1].sub_commands)
            title = " › ".join(cmd.display_name or cmd.name for cmd in stack)
        else:
            commands = self._app.interactive_commands()
            title = "Select a command"

        choices: list[Any] = [
            questionary.Choice(title=_menu_label(cmd), value=cmd) for cmd in commands
        ]
        choices.append(questionary.Separator())
        if stack:
            choices.append(questionary.Choice(title="Back", value=_BACK))
        else:
            choices.append(questionary.Choice(title="Logs", value=_LOGS))
            choices.append(questionary.Choice(title="Exit", value=_EXIT))

        return await questionary.select(title, choices=choices).ask_async()

    def _show_logs(self) -> None:
        history = self._app.context.log_history[-_LOG_TAIL:]
        if not history:
            console.print(Text("No log entries.", style="dim"))
            return
        for event in history:
            console.print(Text(f"[{event.level.name.lower()}] {event.message}"))

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    async def prompt_values(self, questionary: Any, command: Command, key: tuple[str, ...]) -> OptionValues | None:
        """Prompt for every visible field of *command*; ``None`` when aborted."""
        values: dict[str, Any] = {name: definition.default for name, definition in command.options.items()}
        values.update(self._last_values.get(key, {}))

        for field_config in schema_to_fields(command.options):
            answer = await self._ask_field(questionary, field_config, values.get(field_config.key))
            if answer is None:
                return None
            if answer == "" and field_config.type in ("text", "number"):
                answer = None
            values = command.apply_config_change(field_config.key, answer, values)

        return values

    async def _ask_field(self, questionary: Any, field_config: FieldConfig, current: Any) -> Any:
        label = field_config.label
        if field_config.description:
            label = f"{label} ({field_config.description})"

        if field_config.type == "boolean":
            return await questionary.confirm(label, default=bool(current)).ask_async()

        if field_config.type == "enum":
            choices = [option.value for option in field_config.options]
            default = str(current) if current is not None else None
            return await questionary.select(
                label,
                choices=choices,
                default=default if default in choices else None,
            ).ask_async()

        instruction = "comma-separated" if field_config.multiple else field_config.placeholder
        return await questionary.text(
            label,
            default=_prompt_default(current),
            validate=_is_number_or_empty if field_config.type == "number" else None,
            instruction=instruction,
        ).ask_async()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run_command(self, chain: list[Command]) -> ExecutionOutcome | None:
        """Prompt for, run and render the last command of *chain*.

        Returns ``None`` when the form was aborted or its values were
        rejected before the run started.
        """
        questionary = _import_questionary()
        command = chain[-1]
        key = tuple(cmd.name for cmd in chain)

        raw = await self.prompt_values(questionary, command, key)
        if raw is None:
            return None

        try:
            values = parse_option_values(command.options, raw)
        except InvalidOptionError as exc:
            render_error(exc)
            return None
        self._last_values[key] = values

        command_line = build_command_line(self._app.name, list(key), command.options, values)
        console.print(Text(f"$ {command_line}", style="dim"))

        loop = asyncio.get_running_loop()
        task = asyncio.ensure_future(self._executor.execute(command, values))
        interrupted: asyncio.Future[None] = loop.create_future()
        try:
            with _route_interrupt(loop, interrupted):
                await asyncio.wait({task, interrupted}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # Ctrl+C delivered as cancellation of the session task.
            return self._abandon(task)
        finally:
            interrupted.cancel()

        if not task.done():
            return self._abandon(task)

        outcome = task.result()
        if outcome.cancelled:
            render_cancelled()
        elif outcome.error is not None:
            render_error(outcome.error)
        return outcome

    def _abandon(self, task: asyncio.Future[ExecutionOutcome]) -> ExecutionOutcome:
        """Cancel the running command and return to the menu straight away.

        The command keeps running until it polls its signal.
        """
        self._executor.cancel()
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        render_cancelled()
        return ExecutionOutcome(success=False, cancelled=True)

