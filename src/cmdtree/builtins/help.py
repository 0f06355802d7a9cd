"""Auto-injected ``help`` command."""

from __future__ import annotations

from collections.abc import Callable, Sequence

from rich.text import Text

from cmdtree.cli.console import console
from cmdtree.core.command import Command, ExecutionContext
from cmdtree.core.help import HelpOptions, generate_app_help, generate_command_help


class HelpCommand(Command):
    """Prints help for its parent command, or for the whole application.

    One instance is injected under every command; the application also
    registers a parentless instance at the root.

    Parameters
    ----------
    help_options:
        Application name, version and global options for the page header.
    parent:
        Command whose help is shown.  ``None`` for the root instance.
    commands:
        Callable returning the top-level commands listed by the root
        instance.  Evaluated on every call so late registrations show up.
    command_path:
        Full path of *parent* from the top level, used in the usage line.
    """

    name = "help"
    description = "Show help for this command"

    def __init__(
        self,
        help_options: HelpOptions,
        *,
        parent: Command | None = None,
        commands: Callable[[], Sequence[Command]] | None = None,
        command_path: Sequence[str] = (),
    ) -> None:
        super().__init__()
        self._help_options = help_options
        self._parent = parent
        self._commands = commands or (lambda: ())
        self._command_path = tuple(command_path)

    @property
    def parent(self) -> Command | None:
        return self._parent

    def supports_interactive(self) -> bool:
        return False

    def render(self, command_path: Sequence[str] = ()) -> Text:
        """Build the help page; *command_path* locates the parent for the usage line."""
        if self._parent is None:
            return generate_app_help(list(self._commands()), self._help_options)
        options = HelpOptions(
            app_name=self._help_options.app_name,
            version=self._help_options.version,
            command_path=tuple(command_path) or self._command_path or (self._parent.name,),
            global_options=self._help_options.global_options,
        )
        return generate_command_help(self._parent, options)

    def show(self, command_path: Sequence[str] = ()) -> None:
        console.print(self.render(command_path))

    def execute(self, config: object, exec_ctx: ExecutionContext | None = None) -> None:
        self.show()
