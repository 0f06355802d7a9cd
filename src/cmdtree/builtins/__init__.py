"""Framework-owned commands registered by every application."""

from cmdtree.builtins.help import HelpCommand
from cmdtree.builtins.settings import SettingsCommand
from cmdtree.builtins.version import VersionCommand, format_version

RESERVED_COMMAND_NAMES: frozenset[str] = frozenset(
    {HelpCommand.name, VersionCommand.name, SettingsCommand.name},
)
"""Top-level names user commands may not take."""

__all__: list[str] = [
    "RESERVED_COMMAND_NAMES",
    "HelpCommand",
    "SettingsCommand",
    "VersionCommand",
    "format_version",
]
