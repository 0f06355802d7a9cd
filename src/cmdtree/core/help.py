"""Help text generation for commands and the application root.

Every section is built as a :class:`rich.text.Text` so that styling is
attached as spans rather than markup.  Option placeholders such as
``[options]`` and ``<string>`` would otherwise be parsed as Rich tags.
Use ``.plain`` for the unstyled string.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from rich.text import Text

from cmdtree.core.command import Command
from cmdtree.core.models import OptionDef

HELP_COMMAND_NAME = "help"


@dataclass(frozen=True, slots=True)
class HelpOptions:
    app_name: str = "cli"
    version: str | None = None
    """Shown in the header when set."""
    command_path: Sequence[str] = ()
    """Path leading to the command, e.g. ``("remote", "add")``."""
    global_options: Mapping[str, OptionDef] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Section helpers
# ---------------------------------------------------------------------------

def _full_path(command: Command, options: HelpOptions) -> list[str]:
    parts = [options.app_name, *options.command_path]
    if not options.command_path or options.command_path[-1] != command.name:
        parts.append(command.name)
    return parts


def _mode_hint(command: Command) -> str:
    modes = []
    if command.supports_cli():
        modes.append("cli")
    if command.supports_interactive():
        modes.append("interactive")
    return f" [{'/'.join(modes)}]" if modes else ""


def _command_entry(command: Command) -> Text:
    line = Text("  ")
    line.append(command.name, style="cyan")
    line.append(_mode_hint(command), style="dim")
    line.append(f"  {command.description}")
    return line


def format_usage(command: Command, options: HelpOptions | None = None) -> str:
    """Return the usage line, e.g. ``myapp remote [command] [options]``."""
    options = options or HelpOptions()
    parts = _full_path(command, options)
    if command.has_sub_commands():
        parts.append("[command]")
    if command.options:
        parts.append("[options]")
    return " ".join(parts)


def format_sub_commands(command: Command) -> Text:
    if not command.has_sub_commands():
        return Text()
    return Text("\n").join(
        [Text("Commands:", style="bold"), *(_command_entry(cmd) for cmd in command.sub_commands)]
    )


def format_option_schema(title: str, schema: Mapping[str, OptionDef]) -> Text:
    """Render *schema* as a titled section; empty when *schema* is empty."""
    if not schema:
        return Text()

    lines = [Text(f"{title}:", style="bold")]
    for key, definition in schema.items():
        alias = f"-{definition.alias}, " if definition.alias else "    "
        flag = f"{alias}--{key}"
        if definition.type == "boolean":
            flag += f", --no-{key}"

        line = Text("  ")
        line.append(flag, style="yellow")
        if definition.type != "boolean":
            line.append(f" <{definition.type}>", style="dim")
        if definition.required:
            line.append(" (required)", style="red")

        line.append(f"\n      {definition.description}")
        if definition.enum:
            line.append(f" [{' | '.join(definition.enum)}]", style="dim")
        if definition.default is not None:
            line.append(f" [default: {definition.default}]", style="dim")
        lines.append(line)

    return Text("\n").join(lines)


def format_examples(command: Command) -> Text:
    if not command.examples:
        return Text()
    lines = [Text("Examples:", style="bold")]
    for example in command.examples:
        line = Text("  ")
        line.append("$", style="dim")
        line.append(f" {example.command}\n      ")
        line.append(example.description, style="dim")
        lines.append(line)
    return Text("\n").join(lines)


def _header(options: HelpOptions) -> Text:
    header = Text(options.app_name, style="bold")
    header.append(f" v{options.version}", style="dim")
    header.append("\n")
    return header


# ---------------------------------------------------------------------------
# Public generators
# ---------------------------------------------------------------------------

def generate_command_help(command: Command, options: HelpOptions | None = None) -> Text:
    """Build the full help page for *command*.

    Sections, in order: header (when a version is given), description,
    long description, supported modes, usage, sub-commands, options,
    global options, examples and a hint for groups.
    """
    options = options or HelpOptions()
    sections: list[Text] = []

    if options.version:
        sections.append(_header(options))

    sections.append(Text(command.description))
    if command.long_description:
        sections.append(Text(f"\n{command.long_description}"))

    modes = []
    if command.supports_cli():
        modes.append("CLI")
    if command.supports_interactive():
        modes.append("Interactive")
    if modes:
        sections.append(Text(f"\nSupports: {', '.join(modes)}", style="dim"))

    usage = Text("\n")
    usage.append("Usage:", style="bold")
    usage.append(f"\n  {format_usage(command, options)}")
    sections.append(usage)

    for section in (
        format_sub_commands(command),
        format_option_schema("Options", command.options),
        format_option_schema("Global Options", options.global_options),
        format_examples(command),
    ):
        if section.plain:
            sections.append(Text("\n") + section)

    if command.has_sub_commands():
        full_path = " ".join(_full_path(command, options))
        sections.append(
            Text(
                f"\nRun '{full_path} <command> help' for more information on a command.",
                style="dim",
            )
        )

    return Text("\n").join(sections)


def generate_app_help(commands: Sequence[Command], options: HelpOptions | None = None) -> Text:
    """Build the root help page listing *commands*."""
    options = options or HelpOptions()
    sections: list[Text] = []

    if options.version:
        sections.append(_header(options))

    usage = Text("Usage:", style="bold")
    usage.append(f"\n  {options.app_name} [command] [options]\n")
    sections.append(usage)

    global_section = format_option_schema("Global Options", options.global_options)
    if global_section.plain:
        sections.append(global_section + Text("\n"))

    if commands:
        sections.append(
            Text("\n").join(
                [Text("Commands:", style="bold"), *(_command_entry(cmd) for cmd in commands)]
            )
        )

    sections.append(
        Text(
            f"\nRun '{options.app_name} <command> help' for more information on a command.",
            style="dim",
        )
    )
    return Text("\n").join(sections)
